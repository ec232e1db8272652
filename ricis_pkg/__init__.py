"""RICIS package: expression trees, root finding, singularity algebra and the simplification pipeline."""

__all__ = [
    "config",
    "rational",
    "expression",
    "visitor",
    "evaluator",
    "polynomial",
    "roots",
    "calculus",
    "singularity",
    "phases",
    "types",
    "api",
    "logging_config",
]

# Public API exports

__api_exports__ = [
    "simplify_expression",
    "find_expression_roots",
    "evaluate_expression",
    "differentiate_expression",
]
