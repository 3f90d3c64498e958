"""Append-only prompt logging for a chat host."""

__version__ = "0.1.0"
