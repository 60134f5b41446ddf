"""
Credential store backed by a MongoDB users collection.
"""

from typing import Optional

import structlog
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import DuplicateKeyError

from accounts.models import UserRecord
from utilities.errors import DuplicateError

logger = structlog.get_logger(__name__)


class UserRepository:
    """Persists user records with a unique email."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        """Create the unique email index that backs the duplicate check."""
        await self.collection.create_index("email", unique=True)
        logger.info("User indexes ensured")

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        """
        Look up a user by exact email.

        Args:
            email: Email address

        Returns:
            UserRecord if found, None otherwise
        """
        doc = await self.collection.find_one({"email": email})
        if not doc:
            return None
        doc["id"] = str(doc.pop("_id"))
        return UserRecord(**doc)

    async def insert(self, user: UserRecord) -> UserRecord:
        """
        Insert a new user.

        Raises:
            DuplicateError: If the unique email index rejects the insert
        """
        try:
            result = await self.collection.insert_one(user.to_document())
        except DuplicateKeyError:
            logger.warning("User insert hit unique index", email=user.email)
            raise DuplicateError("User already exists")
        return user.model_copy(update={"id": str(result.inserted_id)})
