"""In-memory table catalog with typed rows, primary keys, secondary index definitions and a binary snapshot format."""

__version__ = "0.1.0"
__all__ = ["ast", "catalog", "snapshot"]