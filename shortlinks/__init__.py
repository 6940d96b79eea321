"""shortlinks: short-code allocation and redirect service."""

__version__ = "1.0.0"
