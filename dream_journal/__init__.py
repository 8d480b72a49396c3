"""Dream journal analysis service."""

__version__ = "1.0.0"
