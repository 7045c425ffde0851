"""
Translation of service errors into HTTP responses.

Services raise the ConfigurationError taxonomy and pydantic ValidationError;
route handlers wrap their service calls in ``translate_errors`` so every
endpoint answers with the same status codes and error body:

- ConfigurationError -> its status_code, body ErrorResponse
  (404 NotFoundError, 409 duplicate/locked, 422 incomplete/range)
- pydantic.ValidationError -> 422, body ErrorResponse with code
  INVALID_SHAPE and the offending locations
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException
from pydantic import ValidationError

from loyalty_backend.core.errors import ConfigurationError, ErrorResponse


logger = logging.getLogger(__name__)


def validation_error_response(error: ValidationError) -> ErrorResponse:
    """Flatten a pydantic ValidationError into a JSON-safe ErrorResponse."""
    problems = [
        {"loc": [str(part) for part in item["loc"]], "msg": item["msg"], "type": item["type"]}
        for item in error.errors()
    ]
    return ErrorResponse(
        code="INVALID_SHAPE",
        message=f"{error.error_count()} validation error(s)",
        details={"errors": problems},
    )


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """
    Re-raise service errors raised inside the block as HTTPException.

    Args:
        operation: Short description used in the log line.
    """
    try:
        yield
    except ConfigurationError as e:
        logger.warning(f"{operation} rejected: {e.code} {e.message}")
        raise HTTPException(
            status_code=e.status_code,
            detail=e.to_response().model_dump(),
        ) from e
    except ValidationError as e:
        logger.warning(f"{operation} rejected: invalid shape ({e.error_count()} errors)")
        raise HTTPException(
            status_code=422,
            detail=validation_error_response(e).model_dump(),
        ) from e
