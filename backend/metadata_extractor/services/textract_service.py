"""
AWS Textract service for OCR processing of uploaded documents.

Produces the page/block/segment layout consumed by the field pipeline:
every Textract LINE becomes one block, the document text is the LINE texts
joined by newlines, and each block's text segment points at its line.
"""
import logging
import boto3
from typing import Any, Dict, List, Optional
from botocore.config import Config as BotoConfig
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    ReadTimeoutError,
)

from metadata_extractor.config import Config
from metadata_extractor.utils.pdf_handler import PDFHandler
from metadata_extractor.services.field_pipeline import (
    DocumentPage,
    LayoutBlock,
    RawDocumentResult,
    TextSegment,
    Vertex,
)

logger = logging.getLogger(__name__)

# Textract rejects multi-page PDFs on the synchronous API with these codes
RASTERIZE_ERROR_CODES = {
    'UnsupportedDocumentException',
    'BadDocumentException',
    'DocumentTooLargeException',
}


class IngestionError(Exception):
    """The OCR call failed or returned nothing usable."""
    
    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.error_code = error_code


class IngestionTimeoutError(IngestionError):
    """The OCR call did not finish within the configured timeout."""


class TextractService:
    """Service for processing documents with AWS Textract."""
    
    def __init__(self, client: Optional[Any] = None, pdf_handler: Optional[PDFHandler] = None):
        """
        Initialize Textract service.
        
        Args:
            client: Optional pre-built Textract client
            pdf_handler: Optional PDF rasterizer
        """
        self.service_name = 'textract'
        self.pdf_handler = pdf_handler or PDFHandler(dpi=Config.PDF_IMAGE_DPI)
        
        if client is not None:
            self.client = client
            return
        
        # No retries: failures surface to the caller as-is
        boto_config = BotoConfig(
            connect_timeout=Config.OCR_CONNECT_TIMEOUT_SECONDS,
            read_timeout=Config.OCR_TIMEOUT_SECONDS,
            retries={'total_max_attempts': 1, 'mode': 'standard'},
        )
        try:
            config = Config.get_boto3_config()
            if 'profile_name' in config:
                session = boto3.Session(profile_name=config['profile_name'])
                self.client = session.client('textract', region_name=config['region_name'], config=boto_config)
            else:
                self.client = boto3.client('textract', config=boto_config, **config)
            
            logger.info("Initialized AWS Textract service")
        except (BotoCoreError, ValueError) as e:
            logger.error(f"Failed to initialize Textract client: {e}")
            raise IngestionError(f"Failed to initialize Textract client: {e}") from e
    
    def process_document(self, document_bytes: bytes, mime_type: str = 'application/pdf') -> RawDocumentResult:
        """
        Run OCR on a document.
        
        Documents within the synchronous size limit are sent as-is. PDFs that
        Textract rejects (multi-page) or that are too large are rasterized and
        sent one page image at a time.
        
        Args:
            document_bytes: Raw document
            mime_type: Declared content type
        
        Returns:
            RawDocumentResult with one block per detected line
        
        Raises:
            IngestionError: on any OCR failure
        """
        if not document_bytes:
            raise IngestionError("Document is empty")
        
        is_pdf = PDFHandler.is_pdf(document_bytes)
        size_mb = len(document_bytes) / (1024 * 1024)
        logger.info(f"Processing {mime_type} with Textract ({len(document_bytes)} bytes)")
        
        responses: Optional[List[Dict[str, Any]]] = None
        if size_mb <= Config.OCR_SYNC_MAX_MB:
            try:
                responses = [self._detect_document_text(document_bytes)]
            except IngestionError as e:
                if not is_pdf or e.error_code not in RASTERIZE_ERROR_CODES:
                    raise
                logger.warning(f"Textract failed with PDF directly: {e}. Falling back to page images.")
        
        if responses is None:
            if not is_pdf:
                raise IngestionError(
                    f"Document is {size_mb:.2f} MB, above the {Config.OCR_SYNC_MAX_MB:g} MB OCR limit"
                )
            responses = self._detect_pages(document_bytes)
        
        document = self.build_document(responses)
        logger.info(
            f"Textract processing complete: {len(document.pages)} pages, "
            f"{document.block_count} lines"
        )
        return document
    
    def _detect_pages(self, pdf_bytes: bytes) -> List[Dict[str, Any]]:
        """Rasterize every PDF page and run text detection on each image."""
        images = self.pdf_handler.pdf_to_images(pdf_bytes)
        if not images:
            raise IngestionError(
                "Failed to convert PDF to images. Poppler may not be installed. "
                "Install with: brew install poppler (macOS) or apt-get install poppler-utils (Linux)"
            )
        
        responses = []
        for page_number, image in enumerate(images, 1):
            image_bytes = self.pdf_handler.image_to_bytes(image, format='PNG')
            logger.info(f"Running Textract on page {page_number}/{len(images)} ({len(image_bytes)} bytes)")
            response = self._detect_document_text(image_bytes)
            for block in response.get('Blocks', []):
                block['Page'] = page_number
            responses.append(response)
        return responses
    
    def _detect_document_text(self, document_bytes: bytes) -> Dict[str, Any]:
        """Single detect_document_text call with botocore errors translated."""
        try:
            return self.client.detect_document_text(Document={'Bytes': document_bytes})
        except (ReadTimeoutError, ConnectTimeoutError) as e:
            logger.error(f"Textract timed out: {e}")
            raise IngestionTimeoutError(f"Textract request timed out: {e}") from e
        except ClientError as e:
            logger.error(f"Textract error: {e}")
            raise IngestionError(
                self._describe_client_error(e),
                error_code=e.response.get('Error', {}).get('Code'),
            ) from e
        except BotoCoreError as e:
            logger.error(f"Textract transport error: {e}")
            raise IngestionError(str(e)) from e
    
    @staticmethod
    def _describe_client_error(error: ClientError) -> str:
        """Add hints for common credential problems."""
        error_msg = str(error)
        if "ExpiredTokenException" in error_msg or "expired" in error_msg.lower():
            return (
                f"AWS credentials have expired. {error_msg}\n"
                "Please refresh your AWS credentials."
            )
        if "InvalidClientTokenId" in error_msg:
            return (
                f"AWS credentials are invalid. {error_msg}\n"
                "Please check your AWS credentials."
            )
        return error_msg
    
    @staticmethod
    def build_document(responses: List[Dict[str, Any]]) -> RawDocumentResult:
        """
        Convert Textract responses into a page/block layout.
        
        Args:
            responses: detect_document_text responses in page order
        
        Returns:
            RawDocumentResult whose pages are sorted by page number
        """
        lines: List[str] = []
        offset = 0
        pages: Dict[int, DocumentPage] = {}
        
        for response_index, response in enumerate(responses, 1):
            for block in response.get('Blocks', []):
                if block.get('BlockType') != 'LINE':
                    continue
                
                page_number = block.get('Page') or response_index
                line_text = block.get('Text', '')
                if lines:
                    offset += 1  # newline separator
                start = offset
                offset += len(line_text)
                lines.append(line_text)
                
                polygon = block.get('Geometry', {}).get('Polygon', [])
                page = pages.setdefault(page_number, DocumentPage(page_number=page_number))
                page.blocks.append(LayoutBlock(
                    text_segments=[TextSegment(start_index=start, end_index=offset)],
                    vertices=[Vertex(x=point.get('X'), y=point.get('Y')) for point in polygon],
                ))
        
        return RawDocumentResult(
            text='\n'.join(lines),
            pages=[pages[number] for number in sorted(pages)],
        )
