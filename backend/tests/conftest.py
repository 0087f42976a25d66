# backend/tests/conftest.py
"""
Shared fixtures.

The Textract service is replaced by ``FakeTextractService`` for API tests;
Textract client behaviour itself is covered with botocore's Stubber in
test_textract_service.py.
"""

import time
from typing import List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from metadata_extractor.config import Config
from metadata_extractor.routes import documents
from metadata_extractor.services.field_pipeline import (
    DocumentPage,
    DocumentSessionStore,
    LayoutBlock,
    RawDocumentResult,
    TextSegment,
)
from metadata_extractor.utils.upload_guard import UploadGuard
from metadata_extractor.utils.upload_store import UploadStore

PDF_BYTES = b'%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n'

# "  Patient Name  " is [0, 16), "Date of Birth" is [16, 29)
SCENARIO_TEXT = '  Patient Name  Date of Birth'


def make_scenario_document() -> RawDocumentResult:
    """Two pages, one block each, no polygons."""
    return RawDocumentResult(
        text=SCENARIO_TEXT,
        pages=[
            DocumentPage(page_number=1, blocks=[
                LayoutBlock(text_segments=[TextSegment(0, 9), TextSegment(9, 16)]),
            ]),
            DocumentPage(page_number=2, blocks=[
                LayoutBlock(text_segments=[TextSegment('16', '29')]),
            ]),
        ],
    )


class FakeTextractService:
    """Stands in for TextractService in route tests."""
    
    def __init__(
        self,
        result: Optional[RawDocumentResult] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0
    ):
        self.result = result if result is not None else make_scenario_document()
        self.error = error
        self.delay = delay
        self.calls: List[Tuple[bytes, str]] = []
    
    def process_document(self, document_bytes: bytes, mime_type: str = 'application/pdf') -> RawDocumentResult:
        self.calls.append((document_bytes, mime_type))
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def aws_config(monkeypatch):
    """Static AWS credentials so Config.validate() passes."""
    monkeypatch.setattr(Config, 'AWS_PROFILE', None)
    monkeypatch.setattr(Config, 'AWS_ACCESS_KEY_ID', 'AKIAEXAMPLEKEY')
    monkeypatch.setattr(Config, 'AWS_SECRET_ACCESS_KEY', 'example-secret')
    monkeypatch.setattr(Config, 'AWS_SESSION_TOKEN', None)
    monkeypatch.setattr(Config, 'AWS_REGION', 'us-east-1')


@pytest.fixture
def fake_textract(monkeypatch) -> FakeTextractService:
    service = FakeTextractService()
    monkeypatch.setattr(documents, '_textract_service', service)
    return service


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / 'uploads'


@pytest.fixture
def client(monkeypatch, upload_dir, aws_config):
    """Test client with isolated upload store, guard and sessions."""
    monkeypatch.setattr(documents, 'upload_store', UploadStore(root=str(upload_dir), url_prefix='/uploads'))
    monkeypatch.setattr(documents, 'upload_guard', UploadGuard())
    monkeypatch.setattr(documents, 'session_store', DocumentSessionStore(max_sessions=5))
    
    from metadata_extractor.main import app
    
    with TestClient(app) as test_client:
        yield test_client
