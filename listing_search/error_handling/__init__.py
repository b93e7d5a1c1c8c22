"""
Error handling module for the listing search service.

Provides retry logic with exponential backoff for startup connections.
"""

from .error_handler import ErrorHandler, RetryConfig

__all__ = ['ErrorHandler', 'RetryConfig']
