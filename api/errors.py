"""
Translation of catalog failures into HTTP error responses.

classify_error is the single place where an exception is mapped to an ErrorKind,
an HTTP status code and a response body. It is only called by the exception
handlers registered in api.main.
"""

from typing import Any, Dict, List, Tuple

from fastapi import status
from fastapi.exceptions import RequestValidationError

from api.models import ErrorResponse, ValidationErrorResponse
from catalog.exceptions import ErrorKind, LibraryError, ValidationFailedError
from catalog.models import FieldViolation

STATUS_BY_KIND = {
    ErrorKind.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_IDENTIFIER: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.DUPLICATE_KEY: status.HTTP_409_CONFLICT,
    ErrorKind.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.UNEXPECTED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

VALIDATION_MESSAGE = "There was an error validating the input."
_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}


def _parameter_name(loc: Tuple[Any, ...]) -> str:
    """Pick the most specific named element of a pydantic error location."""
    names = [str(part) for part in loc if isinstance(part, str)]
    specific = [name for name in names if name not in _LOCATION_PREFIXES]
    if specific:
        return specific[-1]
    return names[0] if names else "body"


def request_violations(errors: List[Dict[str, Any]]) -> List[FieldViolation]:
    """Convert FastAPI request decoding errors into field violations."""
    return [
        FieldViolation(parameter=_parameter_name(tuple(error.get("loc", ()))), message=error.get("msg", ""))
        for error in errors
    ]


def classify_error(exc: Exception, debug: bool = False) -> Tuple[ErrorKind, int, ErrorResponse]:
    """
    Classify an exception into an error kind, HTTP status and response body.

    Args:
        exc: Exception raised while handling a request
        debug: Include the raw exception text for unexpected failures

    Returns:
        Tuple of (ErrorKind, HTTP status code, response body model)
    """
    if isinstance(exc, RequestValidationError):
        kind = ErrorKind.VALIDATION_FAILED
        code = STATUS_BY_KIND[kind]
        return kind, code, ValidationErrorResponse(
            status=code,
            message=VALIDATION_MESSAGE,
            errors=request_violations(exc.errors())
        )

    if isinstance(exc, ValidationFailedError):
        code = STATUS_BY_KIND[exc.kind]
        return exc.kind, code, ValidationErrorResponse(
            status=code,
            message=exc.message,
            errors=exc.violations
        )

    if isinstance(exc, LibraryError):
        code = STATUS_BY_KIND[exc.kind]
        return exc.kind, code, ErrorResponse(status=code, message=exc.message)

    kind = ErrorKind.UNEXPECTED
    code = STATUS_BY_KIND[kind]
    message = str(exc) if debug and str(exc) else "Internal server error"
    return kind, code, ErrorResponse(status=code, message=message)
