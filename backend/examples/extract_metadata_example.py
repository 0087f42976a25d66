#!/usr/bin/env python3
"""
PDF Metadata Extractor - Example Usage
======================================

Runs the field pipeline on a local document and writes metadata.json.

Usage:
    python examples/extract_metadata_example.py path/to/form.pdf
    python examples/extract_metadata_example.py --ocr-json saved_ocr.json
    python examples/extract_metadata_example.py form.pdf --save-ocr ocr.json --page 2

Requirements:
    - AWS credentials configured (for Textract), unless --ocr-json is used
    - Poppler installed for multi-page PDFs
"""

import sys
import json
import argparse
import logging
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from metadata_extractor.services.field_pipeline import (
    FieldClassifier,
    FieldNormalizer,
    FieldSession,
    RawDocumentResult,
    to_document_ai
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def load_document(path: Path, ocr_json: bool) -> RawDocumentResult:
    """Run OCR on a document, or load a saved Document AI style result."""
    if ocr_json:
        with open(path, 'r') as f:
            return RawDocumentResult.from_document_ai(json.load(f))
    
    from metadata_extractor.services.textract_service import TextractService
    
    document_bytes = path.read_bytes()
    logger.info(f"Processing: {path.name} ({len(document_bytes):,} bytes)")
    mime_type = 'application/pdf' if path.suffix.lower() == '.pdf' else f"image/{path.suffix.lower().lstrip('.')}"
    return TextractService().process_document(document_bytes, mime_type)


def print_page(session: FieldSession, page: int):
    """Print the fields on one page as a table."""
    current = session.go_to_page(page)
    print(f"\nPage {current}/{session.max_page_number}")
    print("-" * 70)
    print(f"{'#':>4}  {'Type':<10}  Text")
    for index, field in session.fields_on_page():
        print(f"{index:>4}  {field.field_type.value:<10}  {field.text[:50]}")


def main():
    parser = argparse.ArgumentParser(
        description="Extract form fields from a PDF and export them as JSON"
    )
    parser.add_argument('input', help="PDF/image file, or OCR JSON with --ocr-json")
    parser.add_argument('--ocr-json', action='store_true', help="Input is a saved Document AI style OCR result")
    parser.add_argument('--save-ocr', help="Also save the OCR layout as Document AI style JSON")
    parser.add_argument('--page', type=int, default=1, help="Page to print (default: 1)")
    parser.add_argument('-o', '--output', default='metadata.json', help="Export path (default: metadata.json)")
    args = parser.parse_args()
    
    path = Path(args.input)
    if not path.exists():
        logger.error(f"File not found: {path}")
        sys.exit(1)
    
    document = load_document(path, args.ocr_json)
    if args.save_ocr:
        with open(args.save_ocr, 'w') as f:
            json.dump(to_document_ai(document), f, indent=2)
        logger.info(f"OCR layout saved to: {args.save_ocr}")
    
    fields = FieldClassifier().classify_fields(FieldNormalizer().normalize(document))
    session = FieldSession(fields)
    print_page(session, args.page)
    
    with open(args.output, 'w') as f:
        f.write(session.export_json())
    logger.info(f"Exported {len(fields)} fields to: {args.output}")


if __name__ == "__main__":
    main()
