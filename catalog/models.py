"""
Book models and schemas.

Documents are stored with snake_case fields; the JSON wire format uses
camelCase (``authorName``, ``publishDate``, ``totalPages``).
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field
from pydantic.alias_generators import to_camel


class BookCreate(BaseModel):
    """Body for creating a book."""
    title: str = Field(..., min_length=2, max_length=100, description="Unique title")
    description: Optional[str] = Field(None, max_length=500, description="Book description")
    price: float = Field(..., ge=0, description="Price")
    stock: int = Field(10, ge=0, description="Copies in stock")
    category: str = Field(..., min_length=1, description="Book category")
    author_name: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("authorName", "author", "author_name"),
        description="Author name",
    )
    rating: float = Field(..., ge=0, le=5, description="Rating (0-5)")

    def to_document(self) -> dict:
        doc = self.model_dump()
        doc["description"] = self.description or None
        doc["publish_date"] = datetime.now(timezone.utc)
        return doc


CREATE_MESSAGES = {
    "title": "Title must be between 2 to 100 characters",
    "description": "Description must be at most 500 characters",
    "price": "Price not included or invalid price given",
    "stock": "Stock must be a non-negative integer",
    "category": "Category is required",
    "authorName": "Author is required",
    "author": "Author is required",
    "rating": "Rating must be between 0 and 5",
}


class BookUpdate(BaseModel):
    """Partial update. Any book field may be set; unknown keys are ignored."""
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, max_length=500)
    price: Optional[float] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    category: Optional[str] = Field(None, min_length=1)
    author_name: Optional[str] = Field(
        None,
        min_length=1,
        validation_alias=AliasChoices("authorName", "author", "author_name"),
    )
    rating: Optional[float] = Field(None, ge=0, le=5)
    publish_date: Optional[datetime] = Field(
        None,
        validation_alias=AliasChoices("publishDate", "publish_date"),
    )

    def to_update(self) -> dict:
        """Fields explicitly present in the request, keyed by storage name."""
        fields = self.model_dump(exclude_unset=True)
        # only description may be cleared
        fields = {
            name: value for name, value in fields.items()
            if value is not None or name == "description"
        }
        if fields.get("description") == "":
            fields["description"] = None
        return fields


UPDATE_MESSAGES = {
    "price": "Price must be a non-negative number",
    "stock": "Stock must be a non-negative integer",
    "rating": "Rating must be between 0 and 5",
}


class BookResponse(BaseModel):
    """Book as returned by the API."""
    id: str = Field(..., description="Unique book identifier")
    title: str
    description: Optional[str] = None
    price: float
    stock: int
    category: str
    author_name: str
    rating: float
    publish_date: Optional[datetime] = None

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @classmethod
    def from_document(cls, doc: dict) -> "BookResponse":
        doc = dict(doc)
        doc["id"] = str(doc.pop("_id"))
        return cls.model_validate(doc)


# skip and limit are sent to the server as BSON int64
MAX_PAGE_VALUE = 2**31 - 1


class BookQueryParams(BaseModel):
    """Query parameters for book listing."""
    category: Optional[str] = Field(None, description="Filter by category")
    author_name: Optional[str] = Field(None, description="Filter by author")
    min_rating: Optional[float] = Field(None, description="Minimum rating")
    page: int = Field(1, ge=1, le=MAX_PAGE_VALUE, description="Page number")
    limit: int = Field(10, ge=1, le=MAX_PAGE_VALUE, description="Items per page")


QUERY_MESSAGES = {
    "min_rating": "Rating must be a number",
    "page": "Page must be a positive integer within range",
    "limit": "Limit must be a positive integer within range",
}


class BookListResponse(BaseModel):
    """Response model for book list with pagination."""
    books: List[BookResponse] = Field(..., description="Books on this page")
    total_pages: int = Field(..., description="Total number of pages")
    current_page: int = Field(..., description="Current page number")

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }
