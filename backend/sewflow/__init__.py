"""sewflow: production allocation and completion engine for garment orders."""

__version__ = "0.1.0"
