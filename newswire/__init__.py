"""Newswire - multi-provider news aggregation."""

__version__ = "0.1.0"
