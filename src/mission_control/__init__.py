"""Mission Control - merged search and schedule views over independent sources."""

__version__ = "0.1.0"
