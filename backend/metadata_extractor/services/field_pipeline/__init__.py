"""
Field Normalization Pipeline
============================

Turns an OCR document layout into a flat, editable list of fields.

Stages:
1. LAYOUT: RawDocumentResult (pages -> blocks -> text segments / polygon)
2. NORMALIZE: one MetadataField per block, text rebuilt from offsets
3. CLASSIFY: ordered keyword rules assign checkbox/date/dropdown/text
4. SESSION: pagination, manual edits and the JSON export projection
"""

from .fields import FieldType, BoundingPoint, MetadataField, FieldUpdate
from .offsets import coerce_offset
from .document_layout import (
    RawDocumentResult,
    DocumentPage,
    LayoutBlock,
    TextSegment,
    Vertex,
    to_document_ai
)
from .normalizer import FieldNormalizer
from .classifier import FieldClassifier
from .session import FieldSession, DocumentSessionStore, export_record, EXPORT_FILENAME

__all__ = [
    'FieldType',
    'BoundingPoint',
    'MetadataField',
    'FieldUpdate',
    'coerce_offset',
    'RawDocumentResult',
    'DocumentPage',
    'LayoutBlock',
    'TextSegment',
    'Vertex',
    'to_document_ai',
    'FieldNormalizer',
    'FieldClassifier',
    'FieldSession',
    'DocumentSessionStore',
    'export_record',
    'EXPORT_FILENAME',
]
