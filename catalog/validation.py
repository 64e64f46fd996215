"""
Request validation for the book catalog.

Each rule is a small function returning a FieldViolation or None. The create and
update validators compose the same rules; update only checks fields that are present.
All violations of a request are collected and returned together.
"""

import re
from datetime import date
from typing import Callable, List, Optional

from catalog.exceptions import ValidationFailedError
from catalog.models import CreateBookRequest, FieldViolation, UpdateBookRequest

ISBN_PATTERN = re.compile(r"[0-9]{13}")

# MongoDB encodes skip and limit as signed 64-bit integers.
MAX_STORE_INT = 2 ** 63 - 1


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def check_title(title: Optional[str]) -> Optional[FieldViolation]:
    if _is_blank(title):
        return FieldViolation(parameter="title", message="Title is required.")
    return None


def check_author(author: Optional[str]) -> Optional[FieldViolation]:
    if _is_blank(author):
        return FieldViolation(parameter="author", message="Author is required.")
    return None


def check_isbn(isbn: Optional[str]) -> Optional[FieldViolation]:
    if _is_blank(isbn):
        return FieldViolation(parameter="isbn", message="ISBN is required.")
    if not ISBN_PATTERN.fullmatch(isbn):
        return FieldViolation(parameter="isbn", message="ISBN must be exactly 13 digits")
    return None


def check_published_date(
    published_date: Optional[date],
    today: Optional[date] = None
) -> Optional[FieldViolation]:
    if published_date is None:
        return FieldViolation(parameter="publishedDate", message="Published date is required.")
    if published_date > (today or date.today()):
        return FieldViolation(
            parameter="publishedDate", message="Published date cannot be in future."
        )
    return None


def _collect(checks: List[Callable[[], Optional[FieldViolation]]]) -> List[FieldViolation]:
    violations = []
    for check in checks:
        violation = check()
        if violation is not None:
            violations.append(violation)
    return violations


def validate_create_request(
    request: CreateBookRequest,
    today: Optional[date] = None
) -> List[FieldViolation]:
    """
    Validate a create request.

    Args:
        request: Incoming create request
        today: Reference date for the future-date rule (defaults to the current date)

    Returns:
        List of violations, empty when the request is valid
    """
    return _collect([
        lambda: check_title(request.title),
        lambda: check_author(request.author),
        lambda: check_isbn(request.isbn),
        lambda: check_published_date(request.published_date, today),
    ])


def validate_update_request(
    request: UpdateBookRequest,
    today: Optional[date] = None
) -> List[FieldViolation]:
    """
    Validate a partial update request.

    Absent (None) fields mean "leave unchanged" and are not checked.

    Args:
        request: Incoming update request
        today: Reference date for the future-date rule (defaults to the current date)

    Returns:
        List of violations, empty when the request is valid
    """
    checks = []
    if request.title is not None:
        checks.append(lambda: check_title(request.title))
    if request.author is not None:
        checks.append(lambda: check_author(request.author))
    if request.isbn is not None:
        checks.append(lambda: check_isbn(request.isbn))
    if request.published_date is not None:
        checks.append(lambda: check_published_date(request.published_date, today))
    return _collect(checks)


def validate_pagination(page: int, size: int) -> List[FieldViolation]:
    """
    Validate pagination parameters.

    Pages are 0-based and a page must hold at least one book. The offset
    (page * size) and the size must both fit the store's 64-bit integers.
    """
    violations = []
    if page < 0 or (0 < size <= MAX_STORE_INT and page * size > MAX_STORE_INT):
        violations.append(FieldViolation(parameter="page", message=f"The value {page} is not valid."))
    if size < 1 or size > MAX_STORE_INT:
        violations.append(FieldViolation(parameter="size", message=f"The value {size} is not valid."))
    return violations


def ensure_valid(violations: List[FieldViolation]) -> None:
    """Raise ValidationFailedError when any violation was found."""
    if violations:
        raise ValidationFailedError(violations)
