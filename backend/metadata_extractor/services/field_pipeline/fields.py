"""
Field records produced by the normalization pipeline.

A ``MetadataField`` is one editable record per detected document block.
JSON keys are camelCase (``pageNumber``, ``fieldType``, ``boundingBox``)
so the records round-trip with the viewer unchanged.
"""
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class FieldType(str, Enum):
    """Semantic kinds a field can be classified as."""
    TEXT = "text"
    DATE = "date"
    DROPDOWN = "dropdown"
    CHECKBOX = "checkbox"


class BoundingPoint(BaseModel):
    """One polygon vertex in the source document's coordinate space."""
    x: Union[int, float] = 0
    y: Union[int, float] = 0


class MetadataField(BaseModel):
    """A normalized, user-editable document field."""
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)
    
    page_number: int = Field(0, alias='pageNumber', frozen=True)
    text: str = ''
    bounding_box: List[BoundingPoint] = Field(default_factory=list, alias='boundingBox')
    field_type: FieldType = Field(FieldType.TEXT, alias='fieldType')
    length: Optional[str] = Field(None, description="Expected input length, user supplied")
    values: Optional[str] = Field(None, description="Allowed values, user supplied")
    annotations: Dict[str, str] = Field(
        default_factory=dict,
        description="Open-ended user annotations beyond length/values"
    )


class FieldUpdate(BaseModel):
    """Manual edit of a field. Unset attributes are left untouched."""
    model_config = ConfigDict(populate_by_name=True)
    
    field_type: Optional[FieldType] = Field(None, alias='fieldType')
    length: Optional[str] = None
    values: Optional[str] = None
    annotations: Optional[Dict[str, str]] = None
