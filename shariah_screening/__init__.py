"""Shariah equity screening: record normalization, methodology scorers and portfolio aggregation."""

__version__ = "1.0.0"
