"""
Error taxonomy shared by the account and catalog services.

Every error carries the HTTP status it maps to and a list of
``{"message": ..., "field": ...}`` entries rendered as ``{"errors": [...]}``.
"""

from typing import Dict, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError


class BookstoreError(Exception):
    """Base class for business-rule failures."""

    status_code: int = 400
    default_message: str = "Request failed"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[List[Dict[str, str]]] = None,
        status_code: Optional[int] = None,
    ):
        if errors is None:
            errors = [{"message": message or self.default_message}]
        self.errors = errors
        if status_code is not None:
            self.status_code = status_code
        super().__init__(errors[0]["message"] if errors else self.default_message)

    def to_dict(self) -> Dict[str, List[Dict[str, str]]]:
        return {"errors": self.errors}


class ValidationError(BookstoreError):
    """Malformed or missing input."""

    default_message = "Invalid input"


class DuplicateError(BookstoreError):
    """Uniqueness violation on email or title."""

    default_message = "Resource already exists"


class InvalidCredentialsError(BookstoreError):
    """Login failure. Unknown email and wrong password look the same."""

    default_message = "Invalid credentials"


class InvalidTokenError(BookstoreError):
    """Bad signature, malformed token, or expired token."""

    status_code = 401
    default_message = "Token is not valid"


class UnauthorizedError(BookstoreError):
    status_code = 401
    default_message = "No token, authorization denied"


class ForbiddenError(BookstoreError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(BookstoreError):
    status_code = 404
    default_message = "Not found"


def collect_violations(
    exc: PydanticValidationError,
    messages: Mapping[str, str],
) -> List[Dict[str, str]]:
    """
    Turn a pydantic validation failure into one entry per offending field.

    Args:
        exc: The pydantic error
        messages: Human readable message per field name

    Returns:
        List of error entries in field order
    """
    violations = []
    seen = set()
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "body"
        if field in seen:
            continue
        seen.add(field)
        violations.append({
            "message": messages.get(field, error["msg"]),
            "field": field,
        })
    return violations
