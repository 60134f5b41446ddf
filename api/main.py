"""
FastAPI main application for the Bookstore API.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from fastapi import Body, Depends, FastAPI, Header, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from motor.motor_asyncio import AsyncIOMotorClient
from starlette.exceptions import HTTPException as StarletteHTTPException

from accounts.models import AuthenticatedUser, TokenResponse
from accounts.service import AccountService
from api.auth import get_current_user, token_service
from api.config import config as api_config
from api.database import APIDatabaseService
from api.models import ErrorResponse, HealthResponse, MessageResponse
from catalog.models import BookListResponse, BookResponse
from catalog.service import CatalogService
from utilities.config import config
from utilities.errors import BookstoreError
from utilities.logger import setup_logging

logger = structlog.get_logger(__name__)

# Global services, set during startup
db_service: Optional[APIDatabaseService] = None
account_service: Optional[AccountService] = None
catalog_service: Optional[CatalogService] = None


def build_services(database) -> None:
    """Wire repositories and services for a database handle."""
    global db_service, account_service, catalog_service
    db_service = APIDatabaseService(
        database,
        users_collection=config.users_collection,
        books_collection=config.books_collection,
    )
    account_service = AccountService(
        db_service.users,
        token_service,
        admin_signup_key=api_config.admin_signup_key,
        register_ttl_seconds=api_config.register_token_ttl_seconds,
        login_ttl_seconds=api_config.login_token_ttl_seconds,
    )
    catalog_service = CatalogService(db_service.books)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )
    logger.info("Starting Bookstore API")

    client = AsyncIOMotorClient(config.mongodb_url)
    try:
        database = client[config.mongodb_database]
        await database.command("ping")
        logger.info("Database connection established", database=config.mongodb_database)

        build_services(database)
        await db_service.ensure_indexes()
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        client.close()
        raise

    yield

    logger.info("Shutting down Bookstore API")
    client.close()


app = FastAPI(
    title=api_config.api_title,
    description="""
    REST API for a bookstore catalog.

    ## Features

    * **Accounts**: register and log in to receive a bearer token
    * **Books**: browse in-stock books filtered by category, author and rating
    * **Administration**: admins create, update and delete books

    ## Authentication

    Protected endpoints need the token returned by register or login:

    ```
    Authorization: Bearer your_token_here
    ```

    Registering with a valid `admin-signup-key` header grants the admin role.
    """,
    version=api_config.api_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=api_config.cors_origins,
    allow_credentials=api_config.cors_allow_credentials,
    allow_methods=api_config.cors_allow_methods,
    allow_headers=api_config.cors_allow_headers,
)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


# Exception handlers
@app.exception_handler(BookstoreError)
async def bookstore_exception_handler(request: Request, exc: BookstoreError):
    """Render business-rule failures as ``{"errors": [...]}``."""
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Unparseable requests are client errors."""
    errors = [
        {"message": error["msg"], "field": ".".join(str(part) for part in error["loc"])}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"errors": errors})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"errors": [{"message": str(exc.detail)}]},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected failures without leaking internals."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path, exc_info=exc)
    message = str(exc) if api_config.debug else "Server error"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"errors": [{"message": message}]}
    )


def get_account_service() -> AccountService:
    if account_service is None:
        raise StarletteHTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service not available"
        )
    return account_service


def get_catalog_service() -> CatalogService:
    if catalog_service is None:
        raise StarletteHTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service not available"
        )
    return catalog_service


@app.get("/", response_class=PlainTextResponse, tags=["Health"])
async def root():
    return "API running"


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    db_status = "unavailable"
    if db_service:
        health_info = await db_service.health_check()
        db_status = health_info.get("status", "unknown")

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=api_config.api_version,
        database_status=db_status
    )


# User endpoints
@app.post(
    "/api/users/register",
    status_code=status.HTTP_201_CREATED,
    response_model=TokenResponse,
    responses=ERROR_RESPONSES,
    tags=["Users"]
)
async def register(
    payload: Optional[Dict[str, Any]] = Body(None),
    admin_signup_key: Optional[str] = Header(None),
    accounts: AccountService = Depends(get_account_service),
):
    """
    Register a new user.

    - **name**: display name (required)
    - **email**: unique email address
    - **password**: at least 8 characters
    - **admin-signup-key** header: grants the admin role when it matches
    """
    token = await accounts.register(payload or {}, admin_key=admin_signup_key)
    return TokenResponse(token=token)


@app.post("/api/users/login", response_model=TokenResponse, responses=ERROR_RESPONSES, tags=["Users"])
async def login(
    payload: Optional[Dict[str, Any]] = Body(None),
    accounts: AccountService = Depends(get_account_service),
):
    """Log in with email and password."""
    token = await accounts.login(payload or {})
    return TokenResponse(token=token)


# Books endpoints
@app.get("/api/books", response_model=BookListResponse, responses=ERROR_RESPONSES, tags=["Books"])
async def get_books(
    category: Optional[str] = None,
    author: Optional[str] = None,
    rating: Optional[str] = None,
    page: str = "1",
    limit: str = "10",
    catalog: CatalogService = Depends(get_catalog_service),
):
    """
    Get in-stock books with filtering and pagination.

    - **category**: Filter by category
    - **author**: Filter by author name
    - **rating**: Minimum rating (0-5)
    - **page**: Page number (starts from 1)
    - **limit**: Books per page
    """
    result = await catalog.list_books(
        category=category,
        author_name=author,
        min_rating=rating or None,
        page=page,
        limit=limit,
    )
    return JSONResponse(content=result.model_dump(mode="json", by_alias=True))


@app.get("/api/books/{book_id}", response_model=BookResponse, responses=ERROR_RESPONSES, tags=["Books"])
async def get_book(
    book_id: str,
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Get a single book by ID."""
    book = await catalog.get_book(book_id)
    return JSONResponse(content=book.model_dump(mode="json", by_alias=True))


@app.post("/api/books", responses=ERROR_RESPONSES, tags=["Books"])
async def create_book(
    payload: Optional[Dict[str, Any]] = Body(None),
    user: AuthenticatedUser = Depends(get_current_user),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Create a book. Admin only."""
    book = await catalog.create_book(payload or {}, user)
    return JSONResponse(content={"newBook": book.model_dump(mode="json", by_alias=True)})


@app.patch("/api/books/{book_id}", response_model=MessageResponse, responses=ERROR_RESPONSES, tags=["Books"])
async def update_book(
    book_id: str,
    payload: Optional[Dict[str, Any]] = Body(None),
    user: AuthenticatedUser = Depends(get_current_user),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Patch any fields of a book. Admin only."""
    await catalog.update_book(book_id, payload or {}, user)
    return MessageResponse(message="Successfully updated the book")


@app.delete("/api/books/{book_id}", response_model=MessageResponse, responses=ERROR_RESPONSES, tags=["Books"])
async def delete_book(
    book_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Delete a book. Admin only."""
    await catalog.delete_book(book_id, user)
    return MessageResponse(message="Successfully deleted the book")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=api_config.debug,
        log_level="info"
    )
