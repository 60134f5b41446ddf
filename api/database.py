"""
Database service layer for the FastAPI application.
"""

from typing import Dict

import structlog
from motor.motor_asyncio import AsyncIOMotorDatabase

from accounts.database import UserRepository
from catalog.database import BookRepository

logger = structlog.get_logger(__name__)


class APIDatabaseService:
    """Owns the repositories for one database."""

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        users_collection: str = "users",
        books_collection: str = "books",
    ):
        self.database = database
        self.users = UserRepository(database[users_collection])
        self.books = BookRepository(database[books_collection])

    async def ensure_indexes(self) -> None:
        """Create the unique indexes every uniqueness check relies on."""
        await self.users.ensure_indexes()
        await self.books.ensure_indexes()

    async def health_check(self) -> Dict:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.database.command("ping")
            books_count = await self.books.collection.count_documents({})
            users_count = await self.users.collection.count_documents({})

            return {
                "status": "healthy",
                "books_count": books_count,
                "users_count": users_count
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }
