"""
Pydantic models for the book catalog.
Implements the Book entity and the request/response shapes exchanged over the API.
"""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field


class Book(BaseModel):
    """
    Book entity as held by the repository.

    The identifier is assigned by the store on first save and never changes afterwards.
    """
    id: Optional[str] = Field(None, description="Store-assigned book identifier")
    title: str = Field(..., description="Title of the book")
    author: str = Field(..., description="Author of the book")
    isbn: str = Field(..., description="13-digit ISBN, unique across the catalog")
    published_date: date = Field(..., description="Date the book was published")


class CreateBookRequest(BaseModel):
    """
    Request body for creating a book.

    Every field is required, but presence is enforced by the validator rather than
    by decoding so that all missing fields are reported together.
    """
    title: Optional[str] = Field(None, description="Title of the book")
    author: Optional[str] = Field(None, description="Author of the book")
    isbn: Optional[str] = Field(None, description="13-digit ISBN")
    published_date: Optional[date] = Field(
        None, alias="publishedDate", description="Publication date (yyyy-MM-dd)"
    )

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "title": "The Pragmatic Programmer",
                "author": "David Thomas, Andrew Hunt",
                "isbn": "9780135957059",
                "publishedDate": "2019-09-13",
            }
        },
    }


class UpdateBookRequest(BaseModel):
    """Request body for a partial update. Omitted or null fields are left unchanged."""
    title: Optional[str] = Field(None, description="New title")
    author: Optional[str] = Field(None, description="New author")
    isbn: Optional[str] = Field(None, description="New 13-digit ISBN")
    published_date: Optional[date] = Field(
        None, alias="publishedDate", description="New publication date (yyyy-MM-dd)"
    )

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "title": "The Pragmatic Programmer, 20th Anniversary Edition",
            }
        },
    }


class BookResponse(BaseModel):
    """Book response model for API."""
    id: str = Field(..., description="Unique book identifier")
    title: str = Field(..., description="Title of the book")
    author: str = Field(..., description="Author of the book")
    isbn: str = Field(..., description="13-digit ISBN")
    published_date: str = Field(
        ..., alias="publishedDate", description="Publication date (dd-MM-yyyy)"
    )

    model_config = {"populate_by_name": True}


class PagedBookResponse(BaseModel):
    """Response model for book list with pagination."""
    books: List[BookResponse] = Field(..., description="Books on the current page")
    current_page: int = Field(..., alias="currentPage", description="Current page (0-based)")
    total_pages: int = Field(..., alias="totalPages", description="Total number of pages")
    total_books: int = Field(..., alias="totalBooks", description="Total number of books")

    model_config = {"populate_by_name": True}


class FieldViolation(BaseModel):
    """A single field-level validation failure."""
    parameter: str = Field(..., description="Name of the offending parameter")
    message: str = Field(..., description="Why the value was rejected")
