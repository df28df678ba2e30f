"""Talkback - speak a request, hear the answer."""

__version__ = "0.1.0"
