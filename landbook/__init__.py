"""Landbook: land sales back-office with cancelled-sale reconciliation."""

__version__ = "1.0.0"
