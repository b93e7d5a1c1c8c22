"""Listing search service: search serving and index synchronization."""

__version__ = "0.1.0"
