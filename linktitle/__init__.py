"""Paste bare URLs into Markdown as titled links."""

__version__ = "0.1.0"
