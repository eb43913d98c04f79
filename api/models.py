"""
API models and schemas for the FastAPI application.

Book records themselves are schemaless; only the envelopes the service
wraps around storage results are modelled here.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class InsertResult(BaseModel):
    """Acknowledgement returned after inserting a book."""
    model_config = ConfigDict(populate_by_name=True)

    acknowledged: bool = Field(..., description="Whether the write was acknowledged")
    inserted_id: str = Field(..., alias="insertedId", description="Identifier assigned to the new book")


class UpdateResult(BaseModel):
    """Match/modify counts returned after updating a book."""
    model_config = ConfigDict(populate_by_name=True)

    acknowledged: bool = Field(..., description="Whether the write was acknowledged")
    matched_count: int = Field(..., alias="matchedCount", description="Number of books matched")
    modified_count: int = Field(..., alias="modifiedCount", description="Number of books modified")
    upserted_count: int = Field(0, alias="upsertedCount", description="Number of books created by upsert")
    upserted_id: Optional[str] = Field(None, alias="upsertedId", description="Identifier of the upserted book")


class MessageResponse(BaseModel):
    """Plain message response."""
    message: str = Field(..., description="Human-readable message")


class ErrorResponse(BaseModel):
    """Error response model."""
    message: str = Field(..., description="Error message")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
