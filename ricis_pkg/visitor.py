"""Visitor framework for expression trees.

``ExpressionVisitor`` dispatches on the node class, walking the MRO so a
``visit_Infinity`` method covers every singularity variant unless a more
specific ``visit_LazyInfinity`` (etc.) exists. ``ExpressionRewriter`` is the
identity-preserving rewrite: composite nodes are rebuilt only when a child
actually changed. Singularity nodes are opaque leaves to both unless a
subclass overrides their handling.
"""

from __future__ import annotations

from typing import Callable, Iterator, Optional, Set

from .expression import (
    TRIGONOMETRIC,
    BinaryOp,
    Call,
    Constant,
    Expression,
    Infinity,
    Negate,
    Variable,
)


class ExpressionVisitor:
    """Dispatches ``visit(node)`` to ``visit_<ClassName>``."""

    def visit(self, node: Expression):
        for cls in type(node).__mro__:
            method = getattr(self, f"visit_{cls.__name__}", None)
            if method is not None:
                return method(node)
        return self.generic_visit(node)

    def generic_visit(self, node: Expression):
        raise TypeError(
            f"{type(self).__name__} does not handle {type(node).__name__} nodes"
        )


class ExpressionRewriter(ExpressionVisitor):
    """Rewrites children bottom-up and rebuilds only what changed."""

    def visit_Constant(self, node: Constant) -> Expression:
        return node

    def visit_Variable(self, node: Variable) -> Expression:
        return node

    def visit_BinaryOp(self, node: BinaryOp) -> Expression:
        left = self.visit(node.left)
        right = self.visit(node.right)
        if left is node.left and right is node.right:
            return node
        return BinaryOp(node.op, left, right)

    def visit_Negate(self, node: Negate) -> Expression:
        operand = self.visit(node.operand)
        if operand is node.operand:
            return node
        return Negate(operand)

    def visit_Call(self, node: Call) -> Expression:
        args = tuple(self.visit(arg) for arg in node.args)
        if all(new is old for new, old in zip(args, node.args)):
            return node
        return Call(node.fn, args)

    def visit_Infinity(self, node: Infinity) -> Expression:
        return node


def children(node: Expression) -> tuple:
    if isinstance(node, BinaryOp):
        return (node.left, node.right)
    if isinstance(node, Negate):
        return (node.operand,)
    if isinstance(node, Call):
        return node.args
    return ()


def walk(node: Expression) -> Iterator[Expression]:
    """Pre-order traversal. Does not descend into singularity nodes."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(children(current)))


def any_node(node: Expression, predicate: Callable[[Expression], bool]) -> bool:
    return any(predicate(n) for n in walk(node))


def free_variables(node: Expression) -> Set[str]:
    return {n.name for n in walk(node) if isinstance(n, Variable)}


def single_variable(node: Expression) -> Optional[str]:
    """The only free variable of the tree, or None when there are zero or several."""
    names = free_variables(node)
    if len(names) == 1:
        return next(iter(names))
    return None


def depends_on(node: Expression, variable: str) -> bool:
    return any_node(node, lambda n: isinstance(n, Variable) and n.name == variable)


def contains_singularity(node: Expression) -> bool:
    return any_node(node, lambda n: isinstance(n, Infinity))


def is_transcendental_composite(node: Expression) -> bool:
    """True when a trigonometric call appears alongside an arithmetic operator."""
    has_trig = False
    has_arithmetic = False
    for n in walk(node):
        if isinstance(n, Call) and n.fn in TRIGONOMETRIC:
            has_trig = True
        elif isinstance(n, (BinaryOp, Negate)):
            has_arithmetic = True
    return has_trig and has_arithmetic
