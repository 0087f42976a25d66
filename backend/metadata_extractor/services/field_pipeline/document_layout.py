"""
Raw OCR Document Layout
=======================

Read-only view of an OCR result as the normalizer consumes it:

    RawDocumentResult
      text   - full extracted text
      pages  - [DocumentPage]
                 page_number
                 blocks - [LayoutBlock]
                            text_segments - [TextSegment(start_index, end_index)]
                            vertices      - [Vertex(x, y)]

Offsets and coordinates are kept exactly as the OCR service sent them
(ints, numeric strings, wide-integer objects or missing). Coercion is the
normalizer's job, so a malformed value never fails parsing.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)


@dataclass
class TextSegment:
    """``[start_index, end_index)`` range into the document text."""
    start_index: Any = None
    end_index: Any = None


@dataclass
class Vertex:
    """Polygon point; either coordinate may be missing."""
    x: Any = None
    y: Any = None


@dataclass
class LayoutBlock:
    """A detected block of text and its bounding polygon."""
    text_segments: List[TextSegment] = field(default_factory=list)
    vertices: List[Vertex] = field(default_factory=list)


@dataclass
class DocumentPage:
    """One page of blocks, in reading order."""
    page_number: Any = None
    blocks: List[LayoutBlock] = field(default_factory=list)


@dataclass
class RawDocumentResult:
    """Hierarchical OCR output: full text plus pages of blocks."""
    text: str = ''
    pages: List[DocumentPage] = field(default_factory=list)
    
    @property
    def block_count(self) -> int:
        return sum(len(page.blocks) for page in self.pages)
    
    @classmethod
    def from_document_ai(cls, payload: Any) -> 'RawDocumentResult':
        """
        Build from a Google Document AI style document.
        
        Accepts either the document itself or a process response wrapping
        it under ``document``. camelCase (JSON) and snake_case (proto
        ``to_dict``) keys are both understood. Missing or non-list
        ``pages`` yield an empty result instead of an error.
        
        Args:
            payload: Parsed JSON document
        
        Returns:
            RawDocumentResult
        """
        if not isinstance(payload, Mapping):
            logger.warning(f"Ignoring OCR payload of type {type(payload).__name__}")
            return cls()
        
        document = payload.get('document')
        if not isinstance(document, Mapping):
            document = payload
        
        text = document.get('text')
        if not isinstance(text, str):
            text = ''
        
        pages = [
            DocumentPage(
                page_number=_get(page, 'pageNumber', 'page_number'),
                blocks=[_parse_block(block) for block in _as_list(page.get('blocks'))
                        if isinstance(block, Mapping)]
            )
            for page in _as_list(document.get('pages'))
            if isinstance(page, Mapping)
        ]
        return cls(text=text, pages=pages)


def _parse_block(block: Mapping) -> LayoutBlock:
    layout = block.get('layout')
    if not isinstance(layout, Mapping):
        layout = {}
    
    anchor = _get(layout, 'textAnchor', 'text_anchor')
    if not isinstance(anchor, Mapping):
        anchor = {}
    segments = [
        TextSegment(
            start_index=_get(segment, 'startIndex', 'start_index'),
            end_index=_get(segment, 'endIndex', 'end_index'),
        )
        for segment in _as_list(_get(anchor, 'textSegments', 'text_segments'))
        if isinstance(segment, Mapping)
    ]
    
    poly = _get(layout, 'boundingPoly', 'bounding_poly')
    if not isinstance(poly, Mapping):
        poly = {}
    vertices = [
        Vertex(x=vertex.get('x'), y=vertex.get('y'))
        for vertex in _as_list(poly.get('vertices'))
        if isinstance(vertex, Mapping)
    ]
    
    return LayoutBlock(text_segments=segments, vertices=vertices)


def _get(mapping: Mapping, camel: str, snake: str) -> Optional[Any]:
    value = mapping.get(camel)
    if value is None:
        value = mapping.get(snake)
    return value


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def to_document_ai(document: RawDocumentResult) -> Dict[str, Any]:
    """Serialize back to the Document AI JSON shape (camelCase)."""
    return {
        'text': document.text,
        'pages': [
            {
                'pageNumber': page.page_number,
                'blocks': [
                    {
                        'layout': {
                            'textAnchor': {
                                'textSegments': [
                                    {'startIndex': s.start_index, 'endIndex': s.end_index}
                                    for s in block.text_segments
                                ]
                            },
                            'boundingPoly': {
                                'vertices': [{'x': v.x, 'y': v.y} for v in block.vertices]
                            },
                        }
                    }
                    for block in page.blocks
                ],
            }
            for page in document.pages
        ],
    }
