"""Durable storage for uploaded images."""

from promptledger.services.storage.local_storage import LocalImageStorage

__all__ = ["LocalImageStorage"]
