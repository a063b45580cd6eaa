"""Structured JSON response envelope and rate-limiting contract."""

__version__ = "0.1.0"
