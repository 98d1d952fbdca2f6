"""Vision collaborators that describe images as text prompts."""

from promptledger.services.vision.replicate_client import ReplicateVisionClient, classify_error

__all__ = ["ReplicateVisionClient", "classify_error"]
