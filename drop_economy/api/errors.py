"""EconomyError -> HTTP response mapping."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from drop_economy.core.economy.errors import (
    DropNotFound,
    EconomyError,
    InternalStoreError,
    LimitError,
    OfferNotFound,
    OwnershipError,
    PostNotFound,
    StateConflictError,
    UserNotFound,
    ValidationError,
)
from drop_economy.core.logging import get_logger

logger = get_logger(__name__)

_NOT_FOUND = (DropNotFound, PostNotFound, UserNotFound, OfferNotFound)

# 먼저 매칭된 것이 우선, 구체적인 클래스부터
_STATUS_BY_FAMILY = [
    (_NOT_FOUND, 404),
    (ValidationError, 400),
    (OwnershipError, 403),
    (StateConflictError, 409),
    (LimitError, 429),
    (InternalStoreError, 500),
]


def status_for(exc: EconomyError) -> int:
    for family, status in _STATUS_BY_FAMILY:
        if isinstance(exc, family):
            return status
    return 500


async def economy_error_handler(request: Request, exc: EconomyError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        message = InternalStoreError().message
    else:
        message = exc.message
        logger.warning(
            "%s %s 거부: %s (%s)",
            request.method,
            request.url.path,
            exc.code,
            exc.message,
        )
    return JSONResponse(
        status_code=status, content={"error": exc.code, "message": message}
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EconomyError, economy_error_handler)
