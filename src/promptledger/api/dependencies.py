"""FastAPI dependencies for request validation and common operations.

This module provides reusable FastAPI dependencies for:
- Settings and collaborator access from app.state
- Bearer token authentication
- Image upload validation
"""

from typing import Annotated, Callable

import structlog
from fastapi import Depends, File, Header, HTTPException, Request, UploadFile, status

from promptledger.core.config import Settings
from promptledger.models.user import User
from promptledger.services.access_tokens import hash_token, parse_bearer_token
from promptledger.services.exceptions import UploadValidationError
from promptledger.services.generation_ledger import GenerationLedgerService
from promptledger.services.upload_validator import ImageUpload, validate_image_upload
from promptledger.uow import UnitOfWork

logger = structlog.get_logger()


def get_settings() -> Settings:
    """Get application settings instance.

    Returns:
        Settings instance loaded from environment variables.
    """
    return Settings()  # type: ignore[call-arg]  # Pydantic loads from env vars


def get_uow_factory(request: Request) -> Callable[[], UnitOfWork]:
    """Get UnitOfWork factory from app state.

    Example:
        >>> @router.get("/endpoint")
        >>> async def endpoint(uow_factory=Depends(get_uow_factory)):
        ...     async with await uow_factory() as uow:
        ...         await uow.users.get_by_email(email)
    """
    return request.app.state.uow_factory


def get_generation_ledger(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> GenerationLedgerService:
    """Build the ledger service from collaborators stored in app state."""
    return GenerationLedgerService(
        uow_factory=request.app.state.uow_factory,
        storage=request.app.state.image_storage,
        vision=request.app.state.vision_client,
        default_per_page=settings.default_per_page,
    )


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    uow_factory=Depends(get_uow_factory),
) -> User:
    """Resolve the bearer token in the Authorization header to its user.

    Raises:
        HTTPException: 401 Unauthorized if the token is missing or unknown
    """
    plain_token = parse_bearer_token(authorization)
    if plain_token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    async with await uow_factory() as uow:
        user = await uow.access_tokens.get_user_by_token_hash(hash_token(plain_token))

    if user is None:
        logger.warning("auth.invalid_token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid access token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


async def get_image_upload(
    image: UploadFile = File(..., description="Image to describe (JPEG, PNG, GIF or WEBP)"),
    settings: Settings = Depends(get_settings),
) -> ImageUpload:
    """Read and validate the multipart ``image`` field before the route runs.

    Raises:
        HTTPException: 422 Unprocessable Entity if the upload is not an acceptable image
    """
    # Starlette has already spooled the body to a temp file; reading one byte
    # past the limit only caps how much of it is loaded into memory
    content = await image.read(settings.max_upload_bytes + 1)

    try:
        return validate_image_upload(
            filename=image.filename,
            content=content,
            content_type=image.content_type,
            allowed_types=settings.allowed_image_types_list,
            max_bytes=settings.max_upload_bytes,
        )
    except UploadValidationError as e:
        logger.warning(
            "upload.validation_failed",
            filename=image.filename,
            content_type=image.content_type,
            error=str(e),
        )
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
