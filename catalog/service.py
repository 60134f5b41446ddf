"""
Catalog operations with validation and role checks.
"""

from typing import Any, Dict, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from accounts.models import AuthenticatedUser
from accounts.policy import BookAction, authorize
from catalog.database import BookRepository
from catalog.models import (
    CREATE_MESSAGES, QUERY_MESSAGES, UPDATE_MESSAGES,
    BookCreate, BookListResponse, BookQueryParams, BookResponse, BookUpdate
)
from utilities.errors import DuplicateError, NotFoundError, ValidationError, collect_violations

logger = structlog.get_logger(__name__)

BOOK_NOT_FOUND = "Could not find a book by this id"


class CatalogService:
    """Public reads and admin-only writes over the book repository."""

    def __init__(self, books: BookRepository):
        self.books = books

    async def list_books(
        self,
        category: Optional[str] = None,
        author_name: Optional[str] = None,
        min_rating: Optional[Any] = None,
        page: Any = 1,
        limit: Any = 10,
    ) -> BookListResponse:
        """
        List in-stock books.

        Raises:
            ValidationError: If rating, page or limit cannot be parsed or are below 1
        """
        try:
            query_params = BookQueryParams(
                category=category,
                author_name=author_name,
                min_rating=min_rating,
                page=page,
                limit=limit,
            )
        except PydanticValidationError as e:
            raise ValidationError(errors=collect_violations(e, QUERY_MESSAGES))

        return await self.books.list_books(query_params)

    async def get_book(self, book_id: str) -> BookResponse:
        book = await self.books.get_by_id(book_id)
        if book is None:
            raise NotFoundError(BOOK_NOT_FOUND)
        return book

    async def create_book(self, payload: Dict[str, Any], identity: AuthenticatedUser) -> BookResponse:
        """
        Create a book as an admin.

        Args:
            payload: Book fields
            identity: Authenticated caller

        Returns:
            The stored book

        Raises:
            ForbiddenError: If the caller is not an admin
            ValidationError: (401) listing every violated rule
            DuplicateError: If the title already exists
        """
        authorize(identity, BookAction.CREATE)

        try:
            book = BookCreate.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(errors=collect_violations(e, CREATE_MESSAGES), status_code=401)

        if await self.books.find_by_title(book.title):
            raise DuplicateError("Book already exists")

        created = await self.books.insert(book)
        logger.info("Book created", book_id=created.id, title=created.title, user_id=identity.id)
        return created

    async def update_book(
        self,
        book_id: str,
        payload: Dict[str, Any],
        identity: AuthenticatedUser,
    ) -> None:
        """
        Merge a partial patch into a book as an admin.

        Raises:
            ForbiddenError: If the caller is not an admin
            NotFoundError: If the book does not exist
            ValidationError: If a field has the wrong type or range
            DuplicateError: If the new title is already taken
        """
        authorize(identity, BookAction.UPDATE)

        if not await self.books.exists(book_id):
            raise NotFoundError(BOOK_NOT_FOUND)

        try:
            patch = BookUpdate.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(errors=collect_violations(e, UPDATE_MESSAGES))

        fields = patch.to_update()
        if not await self.books.update(book_id, fields):
            raise NotFoundError(BOOK_NOT_FOUND)
        logger.info("Book updated", book_id=book_id, fields=sorted(fields), user_id=identity.id)

    async def delete_book(self, book_id: str, identity: AuthenticatedUser) -> None:
        """
        Delete a book as an admin.

        Raises:
            ForbiddenError: If the caller is not an admin
            NotFoundError: If the book does not exist
        """
        authorize(identity, BookAction.DELETE)

        if not await self.books.delete(book_id):
            raise NotFoundError(BOOK_NOT_FOUND)
        logger.info("Book deleted", book_id=book_id, user_id=identity.id)
