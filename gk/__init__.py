"""gk: interactive helpers for everyday git."""

__version__ = "0.1.0"
