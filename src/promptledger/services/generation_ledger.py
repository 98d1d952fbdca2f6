"""Generation ledger service.

Records image-to-prompt generations and lists them back to their owners.

Create workflow (each failure aborts the remaining steps):
1. Derive a sanitized, randomly suffixed storage filename
2. Store the image bytes (StorageError → nothing recorded)
3. Ask the vision model for a prompt (VisionError → stored file kept, nothing recorded)
4. Insert the GenerationRecord in its own unit of work (PersistenceError → rolled back)

Nothing is retried and orphaned files are not cleaned up.
"""

import math
from dataclasses import dataclass
from typing import Awaitable, Callable, Protocol
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError

from promptledger.core.config import MAX_PER_PAGE
from promptledger.models.generation import GenerationRecord
from promptledger.services.exceptions import PersistenceError, RetrievalError
from promptledger.services.filenames import build_storage_filename
from promptledger.services.sort_spec import parse_sort
from promptledger.services.upload_validator import ImageUpload
from promptledger.uow import UnitOfWork

logger = structlog.get_logger(__name__)


class ImageStorage(Protocol):
    async def store(self, content: bytes, filename: str) -> str: ...

    def url(self, path: str) -> str: ...


class VisionClient(Protocol):
    async def generate_prompt_for_image(
        self, image: bytes, mime_type: str | None = None
    ) -> str: ...


@dataclass
class GenerationPage:
    """One page of an owner's generation records plus pagination metadata."""

    items: list[GenerationRecord]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))


class GenerationLedgerService:
    """Creates and lists generation records on behalf of an authenticated user."""

    def __init__(
        self,
        uow_factory: Callable[[], Awaitable[UnitOfWork]],
        storage: ImageStorage,
        vision: VisionClient,
        default_per_page: int = 15,
    ):
        """Initialize service.

        Args:
            uow_factory: UnitOfWork factory (one unit of work per operation)
            storage: Durable image storage
            vision: Vision collaborator that turns an image into a prompt
            default_per_page: Page size used when the caller does not pass one
        """
        self.uow_factory = uow_factory
        self.storage = storage
        self.vision = vision
        self.default_per_page = default_per_page

    async def list_generations(
        self,
        owner_id: UUID,
        search: str | None = None,
        sort: str | None = None,
        page: int = 1,
        per_page: int | None = None,
    ) -> GenerationPage:
        """List an owner's generation records.

        Args:
            owner_id: Authenticated user; only their records are returned
            search: Case-insensitive substring filter on the generated prompt
            sort: ``[-]field`` sort parameter; invalid values fall back to
                ``-created_at``
            page: 1-based page number
            per_page: Page size (defaults to ``default_per_page``, capped at
                ``MAX_PER_PAGE``)

        Returns:
            GenerationPage with records and pagination metadata

        Raises:
            RetrievalError: If the record store query fails
        """
        sort_spec = parse_sort(sort)
        page = max(1, page)
        per_page = min(per_page or self.default_per_page, MAX_PER_PAGE)

        try:
            async with await self.uow_factory() as uow:
                records, total = await uow.generations.list_for_owner(
                    owner_id,
                    search=search,
                    sort=sort_spec,
                    offset=(page - 1) * per_page,
                    limit=per_page,
                )
        except SQLAlchemyError as e:
            logger.error(
                "generation.list_failed",
                user_id=str(owner_id),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise RetrievalError(f"Failed to list generations: {e}") from e

        logger.info(
            "generation.listed",
            user_id=str(owner_id),
            search=search or None,
            sort_field=sort_spec.field,
            descending=sort_spec.descending,
            page=page,
            per_page=per_page,
            total=total,
            returned=len(records),
        )

        return GenerationPage(items=records, total=total, page=page, per_page=per_page)

    async def create_generation(self, owner_id: UUID, upload: ImageUpload) -> GenerationRecord:
        """Store an uploaded image, generate its prompt, and record the result.

        Args:
            owner_id: Authenticated user who will own the record
            upload: Already validated image upload

        Returns:
            Newly persisted GenerationRecord

        Raises:
            StorageError: Image could not be stored
            VisionError: Prompt generation failed or timed out
            PersistenceError: Record could not be inserted
        """
        # Step 1: Derive collision-resistant storage filename
        storage_filename = build_storage_filename(upload.filename)

        # Step 2: Store image bytes
        image_path = await self.storage.store(upload.content, storage_filename)
        logger.info(
            "generation.image_stored",
            user_id=str(owner_id),
            image_path=image_path,
            file_size=upload.size,
            mime_type=upload.mime_type,
        )

        # Step 3: Generate prompt from the original upload
        generated_prompt = await self.vision.generate_prompt_for_image(
            upload.content, upload.mime_type
        )
        logger.info(
            "generation.prompt_generated",
            user_id=str(owner_id),
            image_path=image_path,
            prompt=generated_prompt,
        )

        # Step 4: Persist the record
        record = GenerationRecord(
            user_id=owner_id,
            image_path=image_path,
            generated_prompt=generated_prompt,
            original_filename=upload.filename,
            file_size=upload.size,
            mime_type=upload.mime_type,
        )

        try:
            async with await self.uow_factory() as uow:
                await uow.generations.add(record)
        except SQLAlchemyError as e:
            logger.error(
                "generation.persist_failed",
                user_id=str(owner_id),
                image_path=image_path,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise PersistenceError(f"Failed to save generation record: {e}") from e

        logger.info(
            "generation.created",
            user_id=str(owner_id),
            generation_id=str(record.id),
            image_path=image_path,
        )

        return record
