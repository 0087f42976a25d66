"""
Pydantic models for API request/response schemas.
"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime

from metadata_extractor.services.field_pipeline import MetadataField


class UploadResponse(BaseModel):
    """Fields extracted from an uploaded document."""
    model_config = ConfigDict(populate_by_name=True)
    
    metadata: List[MetadataField]
    file_url: str = Field(..., alias='fileUrl')
    document_id: str = Field(..., alias='documentId', description="Handle for page, edit and export endpoints")
    total_pages: int = Field(..., alias='totalPages')


class NormalizeResponse(BaseModel):
    """Fields normalized from a pre-extracted OCR document."""
    model_config = ConfigDict(populate_by_name=True)
    
    metadata: List[MetadataField]
    total_pages: int = Field(..., alias='totalPages')


class PageField(BaseModel):
    """A field on a page together with its position in the document's field list."""
    index: int
    field: MetadataField


class PageResponse(BaseModel):
    """One page of a document's fields."""
    model_config = ConfigDict(populate_by_name=True)
    
    document_id: str = Field(..., alias='documentId')
    page: int = Field(..., description="Current page after clamping to [1, totalPages]")
    total_pages: int = Field(..., alias='totalPages')
    fields: List[PageField] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Health check response model."""
    model_config = ConfigDict(populate_by_name=True)
    
    status: str
    timestamp: datetime
    configured: bool = Field(..., description="Whether OCR credentials are configured")
    uploads_in_flight: int = Field(0, alias='uploadsInFlight')
    document_sessions: int = Field(0, alias='documentSessions')
    error: Optional[str] = None
