"""
Service error to HTTP translation.

Routers catch LandbookError and re-raise the result of ``http_error``;
the request-scoped session then rolls back.
"""

import logging
from typing import Optional

from fastapi import Header, HTTPException, status

from landbook.services.errors import (
    ConflictError,
    LandbookError,
    NotFoundError,
    ValidationFailed,
)

logger = logging.getLogger(__name__)


def http_error(exc: LandbookError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, ConflictError):
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, ValidationFailed):
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    else:
        status_code = status.HTTP_400_BAD_REQUEST

    logger.info(f"Request rejected ({exc.code}): {exc}")
    return HTTPException(
        status_code=status_code,
        detail={"code": exc.code, "message": str(exc)},
    )


async def idempotency_key_header(
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key", max_length=128),
) -> Optional[str]:
    """Optional caller-supplied workflow key."""
    if idempotency_key is not None and not idempotency_key.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Idempotency-Key must not be blank",
        )
    return idempotency_key.strip() if idempotency_key else None
