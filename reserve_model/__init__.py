"""Reserve accounting model for a money-market lending contract."""

__version__ = "0.1.0"
