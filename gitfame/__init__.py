"""Per-person git repository statistics, with generic and external-sort helpers."""

__version__ = "0.1.0"
__all__ = ["genericsum", "externalsort", "fame"]