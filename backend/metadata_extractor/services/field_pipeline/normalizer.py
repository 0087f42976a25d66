"""
Field Normalizer
================

Flattens a hierarchical OCR result (pages -> blocks -> text segments /
polygon) into an ordered list of ``MetadataField`` records.

Design Principles:
------------------
- Pure: no I/O, the input document is never mutated
- Page-major, block-minor order is preserved exactly (pagination filters
  on ``page_number`` and indexes into this sequence)
- Never raises on malformed optional data: offsets, coordinates and page
  numbers all default to 0; page and block entries of the wrong type are
  skipped
- Every field starts as ``text``; classification is a separate step
"""
import logging
import math
from typing import Any, List, Mapping, Sequence, Union

from .document_layout import DocumentPage, LayoutBlock, RawDocumentResult, TextSegment, Vertex
from .fields import BoundingPoint, FieldType, MetadataField
from .offsets import coerce_offset

logger = logging.getLogger(__name__)


class FieldNormalizer:
    """Converts OCR document layouts into flat field lists."""
    
    def normalize(self, document: Any) -> List[MetadataField]:
        """
        Produce one field per block, in document traversal order.
        
        Args:
            document: RawDocumentResult, or a Document AI style mapping
        
        Returns:
            Ordered list of fields; empty when the document has no pages
        """
        if isinstance(document, Mapping):
            document = RawDocumentResult.from_document_ai(document)
        if not isinstance(document, RawDocumentResult) or not isinstance(document.pages, list):
            logger.warning("OCR result has no page hierarchy, producing no fields")
            return []
        
        full_text = document.text if isinstance(document.text, str) else ''
        fields: List[MetadataField] = []
        
        for page in document.pages:
            if not isinstance(page, DocumentPage):
                logger.debug(f"Skipping malformed page entry {page!r}")
                continue
            page_number = coerce_offset(page.page_number)
            blocks = page.blocks if isinstance(page.blocks, list) else []
            for block in blocks:
                if not isinstance(block, LayoutBlock):
                    logger.debug(f"Skipping malformed block on page {page_number}")
                    continue
                fields.append(self.normalize_block(full_text, page_number, block))
        
        logger.info(f"Normalized {len(fields)} fields from {len(document.pages)} pages")
        return fields
    
    def normalize_block(self, full_text: str, page_number: int, block: LayoutBlock) -> MetadataField:
        """Build the field for a single block."""
        return MetadataField(
            page_number=page_number,
            text=self.reconstruct_text(full_text, block.text_segments or []),
            bounding_box=self.build_bounding_box(block.vertices or []),
            field_type=FieldType.TEXT,
        )
    
    @staticmethod
    def reconstruct_text(full_text: str, segments: Sequence[TextSegment]) -> str:
        """
        Concatenate every segment's slice of the full text, then trim once.
        
        Bounds are clamped to ``[0, len(full_text)]``; a range whose start
        is past its end contributes nothing.
        """
        length = len(full_text)
        parts = []
        for segment in segments:
            if not isinstance(segment, TextSegment):
                continue
            start = min(max(coerce_offset(segment.start_index), 0), length)
            end = min(max(coerce_offset(segment.end_index), 0), length)
            parts.append(full_text[start:end])
        return ''.join(parts).strip()
    
    @staticmethod
    def build_bounding_box(vertices: Sequence[Vertex]) -> List[BoundingPoint]:
        """Map every vertex to a point, keeping order; missing coordinates are 0."""
        return [
            BoundingPoint(
                x=_coordinate(getattr(vertex, 'x', None)),
                y=_coordinate(getattr(vertex, 'y', None))
            )
            for vertex in vertices
        ]


def _coordinate(value: Any) -> Union[int, float]:
    """Integers stay integers so exported polygons keep the OCR's own values."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Coordinate {value!r} is not numeric, defaulting to 0")
        return 0
    return number if math.isfinite(number) else 0
