"""Claude usage threshold alerts."""

__version__ = "1.0.0"
