"""
FastAPI main application for the Library Book API.
"""

from contextlib import asynccontextmanager
from datetime import datetime

import structlog
from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config import config as api_config
from api.errors import classify_error
from api.models import ErrorResponse, HealthResponse, ValidationErrorResponse
from catalog.database import BookRepository
from catalog.exceptions import ErrorKind, LibraryError, StoreUnavailableError
from catalog.models import BookResponse, CreateBookRequest, PagedBookResponse, UpdateBookRequest
from catalog.seeder import BookDataSeeder
from catalog.service import BookService
from utilities.config import config
from utilities.logger import setup_logging

logger = structlog.get_logger(__name__)

# Global repository and service, set up by the lifespan handler
repository: BookRepository = None
book_service: BookService = None

CLIENT_ERROR_KINDS = {
    ErrorKind.VALIDATION_FAILED,
    ErrorKind.INVALID_IDENTIFIER,
    ErrorKind.NOT_FOUND,
    ErrorKind.DUPLICATE_KEY,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )
    logger.info("Starting Library Book API")

    global repository, book_service
    repository = BookRepository(
        connection_url=config.mongodb_url,
        database_name=config.mongodb_database,
        collection_name=config.mongodb_collection,
        timeout_ms=config.mongodb_timeout_ms
    )
    try:
        await repository.connect()
        logger.info("Database connection established")

        if config.seed_on_startup:
            await BookDataSeeder(repository, config.get_seed_file_path()).run()

        book_service = BookService(repository)

    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise

    yield

    logger.info("Shutting down Library Book API")
    await repository.disconnect()
    book_service = None


app = FastAPI(
    title=api_config.api_title,
    description="""
    A REST API for managing a catalog of books stored in MongoDB.

    ## Features

    * **Create** books with validated title, author, 13-digit ISBN and publication date
    * **Browse** books with 0-based pagination
    * **Update** books partially; omitted fields keep their values
    * **Delete** books by ID

    ISBNs are unique across the catalog. Book IDs are 24-character hex strings.
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


def get_book_service() -> BookService:
    """Dependency returning the book service."""
    if book_service is None:
        raise StoreUnavailableError("Database service not available")
    return book_service


def _error_response(request: Request, exc: Exception) -> JSONResponse:
    kind, status_code, body = classify_error(exc, debug=api_config.debug)
    if kind in CLIENT_ERROR_KINDS:
        logger.warning("Request failed", kind=kind.value, message=body.message, path=request.url.path)
    else:
        logger.error("Request failed", kind=kind.value, error=str(exc), path=request.url.path)
    return JSONResponse(status_code=status_code, content=body.model_dump())


# Exception handlers
@app.exception_handler(LibraryError)
async def library_exception_handler(request: Request, exc: LibraryError):
    """Handle catalog errors."""
    return _error_response(request, exc)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request bodies and parameters that could not be decoded."""
    return _error_response(request, exc)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle routing errors raised by the framework."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(status=exc.status_code, message=str(exc.detail)).model_dump(),
        headers=exc.headers
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    return _error_response(request, exc)


# Health check endpoint
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    db_status = "unavailable"
    if repository:
        health_info = await repository.health_check()
        db_status = health_info.get("status", "unknown")

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.utcnow(),
        version=api_config.api_version,
        database_status=db_status
    )


# Books endpoints
@app.post(
    "/books",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ValidationErrorResponse, "description": "Invalid input."},
        409: {"model": ErrorResponse, "description": "Duplicate ISBN entered."},
    },
    tags=["Books"]
)
async def create_book(
    book_request: CreateBookRequest,
    response: Response,
    service: BookService = Depends(get_book_service)
):
    """
    Add a new book.

    - **title**: Title of the book
    - **author**: Author of the book
    - **isbn**: Exactly 13 digits, unique across the catalog
    - **publishedDate**: Publication date (yyyy-MM-dd), not in the future
    """
    logger.debug("Create book request", body=book_request.model_dump(mode="json"))
    book = await service.create_book(book_request)
    response.headers["Location"] = f"/books/{book.id}"
    return book


@app.get(
    "/books",
    response_model=PagedBookResponse,
    responses={400: {"model": ValidationErrorResponse, "description": "Invalid input."}},
    tags=["Books"]
)
async def get_books(
    page: int = 0,
    size: int = 10,
    service: BookService = Depends(get_book_service)
):
    """
    Get books with pagination.

    - **page**: Page number (starts from 0)
    - **size**: Books per page (at least 1)
    """
    logger.debug("Get all books request", page=page, size=size)
    return await service.get_all_books(page, size)


@app.get(
    "/books/{book_id}",
    response_model=BookResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid ID."},
        404: {"model": ErrorResponse, "description": "Book not found."},
    },
    tags=["Books"]
)
async def get_book(book_id: str, service: BookService = Depends(get_book_service)):
    """
    Get a single book by ID.

    - **book_id**: Book identifier (24-character hex string)
    """
    return await service.get_book_by_id(book_id)


@app.post(
    "/books/{book_id}",
    response_model=BookResponse,
    responses={
        400: {"model": ValidationErrorResponse, "description": "Invalid input or ID."},
        404: {"model": ErrorResponse, "description": "Book not found."},
        409: {"model": ErrorResponse, "description": "Duplicate ISBN entered."},
    },
    tags=["Books"]
)
async def update_book(
    book_id: str,
    book_request: UpdateBookRequest,
    service: BookService = Depends(get_book_service)
):
    """
    Update a book. Only the supplied fields are changed.

    - **book_id**: Book identifier (24-character hex string)
    """
    logger.debug("Update book request", book_id=book_id, body=book_request.model_dump(mode="json", exclude_none=True))
    return await service.update_book(book_id, book_request)


@app.delete(
    "/books/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid ID."},
        404: {"model": ErrorResponse, "description": "Book not found."},
    },
    tags=["Books"]
)
async def delete_book(book_id: str, service: BookService = Depends(get_book_service)):
    """
    Delete a book.

    - **book_id**: Book identifier (24-character hex string)
    """
    await service.delete_book(book_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=api_config.debug,
        log_level="info"
    )
