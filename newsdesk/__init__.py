"""Newsdesk - scheduled RSS importer for local news drafts."""

__version__ = "0.1.0"
