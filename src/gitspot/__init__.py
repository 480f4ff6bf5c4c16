"""Rank files in a git repository by recency-weighted change activity."""

__version__ = "0.1.0"
