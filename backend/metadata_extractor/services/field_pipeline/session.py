"""
Field sessions: the editable, paginated field list for one uploaded document.
"""
import json
import logging
import uuid
from collections import OrderedDict
from datetime import datetime
from threading import Lock
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .fields import FieldUpdate, MetadataField

logger = logging.getLogger(__name__)

EXPORT_FILENAME = 'metadata.json'


class FieldSession:
    """
    Ordered fields of one document plus the page currently being viewed.
    
    Pages are bounded to ``[1, max_page_number]``; navigation past either
    end is a no-op.
    """
    
    def __init__(
        self,
        fields: Iterable[MetadataField],
        document_id: Optional[str] = None,
        file_url: Optional[str] = None
    ):
        self.fields: List[MetadataField] = list(fields)
        self.document_id = document_id
        self.file_url = file_url
        self.current_page = 1
        self.created_at = datetime.now()
    
    @property
    def max_page_number(self) -> int:
        return max([field.page_number for field in self.fields] + [1])
    
    def go_to_page(self, page: int) -> int:
        """Move to ``page``, clamped to the valid range. Returns the new page."""
        self.current_page = min(max(page, 1), self.max_page_number)
        return self.current_page
    
    def next_page(self) -> int:
        if self.current_page < self.max_page_number:
            self.current_page += 1
        return self.current_page
    
    def previous_page(self) -> int:
        if self.current_page > 1:
            self.current_page -= 1
        return self.current_page
    
    def fields_on_page(self, page: Optional[int] = None) -> List[Tuple[int, MetadataField]]:
        """
        Fields on a page with their position in the full sequence.
        
        Args:
            page: Page number, defaults to the current page
        
        Returns:
            ``(index, field)`` pairs in sequence order
        """
        if page is None:
            page = self.current_page
        return [(index, field) for index, field in enumerate(self.fields) if field.page_number == page]
    
    def update_field(self, index: int, update: FieldUpdate) -> MetadataField:
        """
        Apply a manual edit to the field at ``index``.
        
        Raises:
            IndexError: if no field exists at ``index``
        """
        if index < 0 or index >= len(self.fields):
            raise IndexError(f"Field index {index} out of range (0-{len(self.fields) - 1})")
        
        field = self.fields[index]
        if update.field_type is not None:
            field.field_type = update.field_type
        if update.length is not None:
            field.length = update.length
        if update.values is not None:
            field.values = update.values
        if update.annotations:
            field.annotations = {**field.annotations, **update.annotations}
        return field
    
    def export_projection(self) -> List[Dict[str, Any]]:
        """Fields as JSON-ready dicts without ``pageNumber``. Does not modify the session."""
        return [export_record(field) for field in self.fields]
    
    def export_json(self) -> str:
        return json.dumps(self.export_projection())


def export_record(field: MetadataField) -> Dict[str, Any]:
    """Project one field for export: drop ``pageNumber`` and unset annotations."""
    record = field.model_dump(
        mode='json',
        by_alias=True,
        exclude={'page_number'},
        exclude_none=True,
    )
    if not record.get('annotations'):
        record.pop('annotations', None)
    return record


class DocumentSessionStore:
    """
    In-memory field sessions keyed by document id.
    Bounded; the oldest session is evicted when full.
    """
    
    def __init__(self, max_sessions: int = 50):
        self.max_sessions = max(1, max_sessions)
        self.sessions: 'OrderedDict[str, FieldSession]' = OrderedDict()
        self.lock = Lock()
    
    def create(self, fields: Iterable[MetadataField], file_url: Optional[str] = None) -> FieldSession:
        document_id = uuid.uuid4().hex
        session = FieldSession(fields, document_id=document_id, file_url=file_url)
        with self.lock:
            self.sessions[document_id] = session
            while len(self.sessions) > self.max_sessions:
                evicted_id, _ = self.sessions.popitem(last=False)
                logger.info(f"Evicted field session {evicted_id}")
        return session
    
    def get(self, document_id: str) -> Optional[FieldSession]:
        with self.lock:
            return self.sessions.get(document_id)
    
    def __len__(self) -> int:
        with self.lock:
            return len(self.sessions)
    
    def clear(self):
        with self.lock:
            self.sessions.clear()
