"""Replicate vision client for turning an image into a descriptive prompt."""

import asyncio
import io
from typing import Any

import replicate
import structlog
from replicate.exceptions import ReplicateException as ReplicateAPIError

from promptledger.services.exceptions import (
    VisionError,
    VisionPermanentError,
    VisionTimeoutError,
    VisionTransientError,
)

logger = structlog.get_logger(__name__)


def classify_error(exception: Exception) -> VisionError:
    """Classify exception into transient or permanent vision error.

    Classification rules:
        - Timeout errors → VisionTimeoutError
        - 429 (rate limit) → VisionTransientError
        - 503 (service unavailable) → VisionTransientError
        - 401/403 (authentication) → VisionPermanentError
        - Connection errors → VisionTransientError
        - Anything else → VisionPermanentError
    """
    error_message = str(exception)
    error_message_lower = error_message.lower()

    if isinstance(exception, TimeoutError) or "timeout" in error_message_lower:
        return VisionTimeoutError(f"Vision request timed out: {error_message}")

    if "429" in error_message or "rate limit" in error_message_lower:
        return VisionTransientError(f"Rate limit exceeded: {error_message}")

    if "503" in error_message or "service unavailable" in error_message_lower:
        return VisionTransientError(f"Service unavailable: {error_message}")

    if (
        "401" in error_message
        or "403" in error_message
        or "unauthorized" in error_message_lower
        or "forbidden" in error_message_lower
        or "authentication" in error_message_lower
        or "invalid api token" in error_message_lower
    ):
        return VisionPermanentError(f"Authentication failed: {error_message}")

    if isinstance(exception, (ConnectionError, OSError)):
        return VisionTransientError(f"Connection error: {error_message}")

    return VisionPermanentError(f"Vision request failed: {error_message}")


def _output_to_text(output: Any) -> str:
    """Flatten model output (string, list of chunks, or streamed iterator) into text."""
    if isinstance(output, str):
        return output
    if output is None:
        return ""
    try:
        return "".join(str(chunk) for chunk in output)
    except TypeError:
        return str(output)


class ReplicateVisionClient:
    """Generates image-generation prompts from images with a Replicate vision model."""

    def __init__(
        self,
        api_token: str,
        model: str,
        instruction: str,
        timeout_seconds: float = 60.0,
    ):
        """Initialize vision client.

        Args:
            api_token: Replicate API authentication token
            model: Model identifier (``owner/name`` or ``owner/name:version``)
            instruction: Text instruction sent alongside the image
            timeout_seconds: Upper bound on a single prediction
        """
        self.api_token = api_token
        self.model = model
        self.instruction = instruction
        self.timeout_seconds = timeout_seconds

    async def generate_prompt_for_image(self, image: bytes, mime_type: str | None = None) -> str:
        """Describe an image as a text prompt.

        Args:
            image: Raw image bytes
            mime_type: Declared MIME type of the image (logged only)

        Returns:
            Generated prompt text, stripped of surrounding whitespace

        Raises:
            VisionTransientError: Timeout, rate limit, unavailability, network failure
            VisionPermanentError: Auth failure, rejected input, empty output
        """
        if not self.api_token:
            raise VisionPermanentError("REPLICATE_API_TOKEN not configured")

        def _run_replicate() -> str:
            # SDK is synchronous; output may be a stream that must be consumed here
            client = replicate.Client(api_token=self.api_token)
            output = client.run(
                self.model,
                input={"image": io.BytesIO(image), "prompt": self.instruction},
            )
            return _output_to_text(output)

        logger.debug(
            "vision.request.started",
            model=self.model,
            image_bytes=len(image),
            mime_type=mime_type,
        )

        try:
            text = await asyncio.wait_for(
                asyncio.to_thread(_run_replicate), timeout=self.timeout_seconds
            )

        except asyncio.TimeoutError as e:
            raise VisionTimeoutError(
                f"Vision request timed out after {self.timeout_seconds}s"
            ) from e

        except ReplicateAPIError as e:
            raise classify_error(e) from e

        except (ConnectionError, OSError, TimeoutError) as e:
            raise classify_error(e) from e

        except Exception as e:
            raise VisionPermanentError(f"Unexpected error: {e}") from e

        prompt = text.strip()
        if not prompt:
            raise VisionPermanentError(f"Model {self.model} returned an empty prompt")

        return prompt
