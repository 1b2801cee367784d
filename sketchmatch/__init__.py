"""Freehand sketch → time series pattern matching"""

__version__ = "0.1.0"
