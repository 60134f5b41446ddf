"""
API response models for the FastAPI application.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Single error entry."""
    message: str = Field(..., description="Error message")
    field: Optional[str] = Field(None, description="Offending field, if any")


class ErrorResponse(BaseModel):
    """Error response model."""
    errors: List[ErrorDetail] = Field(..., description="Errors for this request")


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
