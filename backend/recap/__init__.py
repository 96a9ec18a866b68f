"""Recap: meeting recordings turned into structured, queryable records."""

__version__ = "1.0.0"
