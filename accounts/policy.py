"""
Role-based authorization for catalog mutations.
"""

from enum import Enum

import structlog

from accounts.models import AuthenticatedUser, Role
from utilities.errors import ForbiddenError

logger = structlog.get_logger(__name__)


class BookAction(str, Enum):
    """Catalog mutations that need a role check."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


REQUIRED_ROLE = {
    BookAction.CREATE: Role.ADMIN,
    BookAction.UPDATE: Role.ADMIN,
    BookAction.DELETE: Role.ADMIN,
}

DENIED_MESSAGES = {
    BookAction.CREATE: "Only admin can add books",
    BookAction.UPDATE: "Only admin can update books",
    BookAction.DELETE: "Only admin can delete books",
}


def is_allowed(identity: AuthenticatedUser, action: BookAction) -> bool:
    return identity.role >= REQUIRED_ROLE[action]


def authorize(identity: AuthenticatedUser, action: BookAction) -> None:
    """
    Raise unless the identity may perform the action.

    Raises:
        ForbiddenError: If the identity's role is insufficient
    """
    if not is_allowed(identity, action):
        logger.warning("Forbidden catalog action", user_id=identity.id, action=action.value)
        raise ForbiddenError(DENIED_MESSAGES[action])
