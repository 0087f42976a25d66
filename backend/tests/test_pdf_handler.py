# backend/tests/test_pdf_handler.py
"""
Tests for PDFHandler.

pdf2image is replaced with a recorder, so poppler is not needed.
"""

import pytest

from metadata_extractor.utils import pdf_handler
from metadata_extractor.utils.pdf_handler import PDFHandler

from conftest import PDF_BYTES


@pytest.fixture
def conversions(monkeypatch):
    """Records every convert_from_bytes call and returns two fake pages."""
    calls = []
    
    def convert(pdf_bytes, **kwargs):
        calls.append((pdf_bytes, kwargs))
        return ['page-1', 'page-2']
    
    monkeypatch.setattr(pdf_handler, 'convert_from_bytes', convert)
    return calls


class TestPdfToImages:
    
    def test_converts_every_page_at_handler_dpi(self, conversions):
        images = PDFHandler(dpi=150).pdf_to_images(PDF_BYTES)
        
        assert images == ['page-1', 'page-2']
        assert conversions == [(PDF_BYTES, {'dpi': 150})]
    
    def test_dpi_override(self, conversions):
        PDFHandler(dpi=150).pdf_to_images(PDF_BYTES, dpi=300)
        assert conversions[0][1] == {'dpi': 300}
    
    def test_conversion_failure_gives_no_pages(self, monkeypatch):
        def broken(pdf_bytes, **kwargs):
            raise RuntimeError('poppler not installed')
        
        monkeypatch.setattr(pdf_handler, 'convert_from_bytes', broken)
        
        assert PDFHandler().pdf_to_images(PDF_BYTES) == []


class TestIsPdf:
    
    def test_magic_bytes(self):
        assert PDFHandler.is_pdf(PDF_BYTES)
        assert not PDFHandler.is_pdf(b'\x89PNG\r\n')
