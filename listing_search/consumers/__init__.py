"""Message consumers"""

from .listing_consumer import ListingChangeConsumer, MessageOutcome

__all__ = ["ListingChangeConsumer", "MessageOutcome"]
