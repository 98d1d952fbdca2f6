"""Image-to-prompt generation API endpoints.

This module implements:
- GET /api/generations - Paginated, searchable, sortable list of the caller's generations
- POST /api/generations - Upload an image and generate a descriptive prompt for it

Both endpoints require a bearer token. Listings are always scoped to the caller.
"""

from datetime import datetime
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from promptledger.api.dependencies import (
    get_current_user,
    get_generation_ledger,
    get_image_upload,
)
from promptledger.core.config import MAX_PER_PAGE
from promptledger.models.generation import GenerationRecord
from promptledger.models.user import User
from promptledger.services.exceptions import (
    PersistenceError,
    RetrievalError,
    StorageError,
    VisionError,
    VisionTimeoutError,
)
from promptledger.services.generation_ledger import GenerationLedgerService
from promptledger.services.upload_validator import ImageUpload

logger = structlog.get_logger()
router = APIRouter(prefix="/api/generations", tags=["generations"])


# Request/Response Models


class GenerationDTO(BaseModel):
    """Data Transfer Object for a generation record in API responses."""

    id: UUID = Field(..., description="Generation record ID")
    generated_prompt: str = Field(..., description="Prompt generated from the image")
    original_filename: str = Field(..., description="Filename as uploaded by the client")
    file_size: int = Field(..., description="Uploaded image size in bytes")
    mime_type: str = Field(..., description="Declared MIME type of the uploaded image")
    image_path: str = Field(..., description="Storage path of the uploaded image")
    image_url: str = Field(..., description="Public URL of the uploaded image")
    created_at: datetime = Field(..., description="Timestamp when the record was created (UTC)")


class GenerationsResponse(BaseModel):
    """Response model for paginated generations list."""

    data: list[GenerationDTO] = Field(..., description="Generation records for current page")
    total: int = Field(..., description="Total number of matching records (across all pages)")
    page: int = Field(..., description="Current page number (1-based)")
    per_page: int = Field(..., description="Maximum number of records per page")
    last_page: int = Field(..., description="Number of the last page")


def to_dto(record: GenerationRecord, request: Request) -> GenerationDTO:
    """Convert a GenerationRecord entity to its API representation."""
    return GenerationDTO(
        id=record.id,
        generated_prompt=record.generated_prompt,
        original_filename=record.original_filename,
        file_size=record.file_size,
        mime_type=record.mime_type,
        image_path=record.image_path,
        image_url=request.app.state.image_storage.url(record.image_path),
        created_at=record.created_at,
    )


# API Endpoints


@router.get("", response_model=GenerationsResponse, status_code=status.HTTP_200_OK)
async def list_generations(
    request: Request,
    search: str | None = Query(
        default=None, description="Case-insensitive substring to match in generated prompts"
    ),
    sort: str | None = Query(
        default=None,
        description=(
            "Sort field with optional '-' prefix for descending order "
            "(created_at, generated_prompt, original_filename, file_size)"
        ),
    ),
    page: int = Query(default=1, ge=1, description="Page number (1-based)"),
    per_page: int | None = Query(
        default=None,
        ge=1,
        description=f"Records per page (values above {MAX_PER_PAGE} are capped)",
    ),
    user: User = Depends(get_current_user),
    ledger: GenerationLedgerService = Depends(get_generation_ledger),
) -> GenerationsResponse:
    """List the caller's image generations.

    Unknown sort fields fall back to newest first without an error.

    Example:
        GET /api/generations?search=bicycle&sort=-file_size&per_page=10

        Response 200:
        {
            "data": [
                {
                    "id": "0b6f...",
                    "generated_prompt": "A red bicycle leaning against a brick wall...",
                    "original_filename": "photo.jpg",
                    "file_size": 48213,
                    "mime_type": "image/jpeg",
                    "image_path": "uploads/images/photo_Ab3dE5gH7j.jpg",
                    "image_url": "/storage/uploads/images/photo_Ab3dE5gH7j.jpg",
                    "created_at": "2025-10-22T12:34:56"
                }
            ],
            "total": 1,
            "page": 1,
            "per_page": 10,
            "last_page": 1
        }
    """
    try:
        result = await ledger.list_generations(
            user.id,
            search=search,
            sort=sort,
            page=page,
            per_page=per_page,
        )
    except RetrievalError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve generations. Please try again later.",
        )

    return GenerationsResponse(
        data=[to_dto(record, request) for record in result.items],
        total=result.total,
        page=result.page,
        per_page=result.per_page,
        last_page=result.last_page,
    )


@router.post("", response_model=GenerationDTO, status_code=status.HTTP_201_CREATED)
async def create_generation(
    request: Request,
    user: User = Depends(get_current_user),
    upload: ImageUpload = Depends(get_image_upload),
    ledger: GenerationLedgerService = Depends(get_generation_ledger),
) -> GenerationDTO:
    """Upload an image and generate a descriptive prompt for it.

    The image is stored, sent to the vision model, and the resulting prompt is
    saved to the caller's generation history.

    Raises:
        HTTPException 401: Missing or invalid bearer token
        HTTPException 422: Upload is not an accepted image
        HTTPException 500: Image storage or database failure
        HTTPException 502: Vision model failed
        HTTPException 504: Vision model timed out
    """
    try:
        record = await ledger.create_generation(user.id, upload)

    except StorageError as e:
        logger.error(
            "generation.storage_failed",
            user_id=str(user.id),
            error=str(e),
            error_type=type(e).__name__,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store uploaded image. Please try again later.",
        )

    except VisionError as e:
        logger.error(
            "generation.vision_failed",
            user_id=str(user.id),
            error=str(e),
            error_type=type(e).__name__,
        )
        raise HTTPException(
            status_code=(
                status.HTTP_504_GATEWAY_TIMEOUT
                if isinstance(e, VisionTimeoutError)
                else status.HTTP_502_BAD_GATEWAY
            ),
            detail="Failed to generate prompt from image. Please try again later.",
        )

    except PersistenceError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save generation. Please try again later.",
        )

    return to_dto(record, request)
