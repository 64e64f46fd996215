"""
API-only response models for the FastAPI application.
Book request/response models live in catalog.models.
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from catalog.models import FieldViolation


class ErrorResponse(BaseModel):
    """Error response model."""
    status: int = Field(..., description="HTTP status code", examples=[404])
    message: str = Field(..., description="Error message", examples=["Book with ID: 665b11112222333344445555 was not found"])


class ValidationErrorResponse(ErrorResponse):
    """Error response model for input validation failures."""
    errors: List[FieldViolation] = Field(..., description="Detailed parameter errors")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
