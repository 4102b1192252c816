"""Plain-text knowledge base to GTD task lists, inbox and task server."""

__version__ = "0.1.0"
__all__ = ["__version__"]