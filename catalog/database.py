"""
Book storage backed by a MongoDB books collection.
"""

import math
from typing import Any, Dict, Optional

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import DuplicateKeyError

from catalog.models import BookCreate, BookListResponse, BookQueryParams, BookResponse
from utilities.errors import DuplicateError

logger = structlog.get_logger(__name__)


def build_filter(query_params: BookQueryParams) -> Dict[str, Any]:
    """
    Build the listing filter. Out-of-stock books are never listed.

    Args:
        query_params: Listing filters

    Returns:
        MongoDB filter document
    """
    filter_query: Dict[str, Any] = {"stock": {"$gt": 0}}

    if query_params.category:
        filter_query["category"] = query_params.category

    if query_params.author_name:
        filter_query["author_name"] = query_params.author_name

    if query_params.min_rating is not None:
        filter_query["rating"] = {"$gte": query_params.min_rating}

    return filter_query


def to_object_id(book_id: str) -> Optional[ObjectId]:
    """Parse a book id; malformed ids never match anything."""
    if not ObjectId.is_valid(book_id):
        return None
    return ObjectId(book_id)


class BookRepository:
    """Persists book records with a unique title."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        """
        Create indexes for the listing filters and the unique title.
        """
        await self.collection.create_index("title", unique=True)
        await self.collection.create_index([("category", 1), ("stock", 1)])
        await self.collection.create_index("author_name")
        await self.collection.create_index("rating")
        logger.info("Book indexes ensured")

    async def list_books(self, query_params: BookQueryParams) -> BookListResponse:
        """
        Get in-stock books with filtering and pagination, in insertion order.

        Args:
            query_params: Query parameters for filtering and pagination

        Returns:
            BookListResponse with the requested page
        """
        filter_query = build_filter(query_params)
        skip = (query_params.page - 1) * query_params.limit

        total = await self.collection.count_documents(filter_query)
        total_pages = math.ceil(total / query_params.limit)

        cursor = self.collection.find(filter_query).sort("_id", 1).skip(skip).limit(query_params.limit)
        docs = await cursor.to_list(length=query_params.limit)

        return BookListResponse(
            books=[BookResponse.from_document(doc) for doc in docs],
            total_pages=total_pages,
            current_page=query_params.page,
        )

    async def find_by_id(self, book_id: str, projection: Optional[Dict[str, int]] = None) -> Optional[dict]:
        object_id = to_object_id(book_id)
        if object_id is None:
            return None
        return await self.collection.find_one({"_id": object_id}, projection)

    async def get_by_id(self, book_id: str) -> Optional[BookResponse]:
        """
        Get a single book by ID.

        Returns:
            BookResponse if found, None otherwise
        """
        doc = await self.find_by_id(book_id)
        if doc is None:
            return None
        return BookResponse.from_document(doc)

    async def exists(self, book_id: str) -> bool:
        # stock is left out of this read; updates may still set it
        return await self.find_by_id(book_id, {"stock": 0}) is not None

    async def find_by_title(self, title: str) -> Optional[dict]:
        return await self.collection.find_one({"title": title})

    async def insert(self, book: BookCreate) -> BookResponse:
        """
        Insert a new book.

        Raises:
            DuplicateError: If the unique title index rejects the insert
        """
        doc = book.to_document()
        try:
            result = await self.collection.insert_one(doc)
        except DuplicateKeyError:
            logger.warning("Book insert hit unique index", title=book.title)
            raise DuplicateError("Book already exists")
        doc["_id"] = result.inserted_id
        return BookResponse.from_document(doc)

    async def update(self, book_id: str, fields: Dict[str, Any]) -> bool:
        """
        Merge fields into a book.

        Returns:
            True if the book matched, False otherwise

        Raises:
            DuplicateError: If a new title collides with another book
        """
        object_id = to_object_id(book_id)
        if object_id is None:
            return False
        if not fields:
            return await self.collection.count_documents({"_id": object_id}) > 0
        try:
            result = await self.collection.update_one({"_id": object_id}, {"$set": fields})
        except DuplicateKeyError:
            logger.warning("Book update hit unique index", book_id=book_id)
            raise DuplicateError("Book already exists")
        return result.matched_count > 0

    async def delete(self, book_id: str) -> bool:
        object_id = to_object_id(book_id)
        if object_id is None:
            return False
        result = await self.collection.delete_one({"_id": object_id})
        return result.deleted_count > 0
