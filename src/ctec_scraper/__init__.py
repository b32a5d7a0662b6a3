"""Fetch a Northwestern CTEC report and extract its written comments."""

__version__ = "0.1.0"
