"""
PDF handling utilities for in-memory processing.
Rasterizes PDF pages for OCR without saving to disk.
"""
import logging
from typing import List, Optional
from io import BytesIO
from pdf2image import convert_from_bytes
from PIL import Image

logger = logging.getLogger(__name__)

PDF_MAGIC = b'%PDF'


class PDFHandler:
    """Handler for PDF processing in memory."""
    
    def __init__(self, dpi: int = 200):
        self.dpi = dpi
    
    @staticmethod
    def is_pdf(document_bytes: bytes) -> bool:
        """Check for the PDF magic bytes."""
        return document_bytes[:4] == PDF_MAGIC
    
    def pdf_to_images(self, pdf_bytes: bytes, dpi: Optional[int] = None) -> List[Image.Image]:
        """
        Convert PDF bytes to PIL Image objects, one per page.
        
        Args:
            pdf_bytes: PDF file as bytes
            dpi: Rendering resolution (defaults to the handler's dpi)
        
        Returns:
            List of PIL Image objects, empty if conversion fails
        """
        try:
            images = convert_from_bytes(pdf_bytes, dpi=dpi or self.dpi)
            logger.info(f"Converted PDF to {len(images)} image(s)")
            return images
            
        except Exception as e:
            logger.error(f"Error converting PDF to images: {e}")
            return []
    
    @staticmethod
    def image_to_bytes(image: Image.Image, format: str = 'PNG') -> bytes:
        """
        Convert PIL Image to bytes.
        
        Args:
            image: PIL Image object
            format: Image format (PNG, JPEG, etc.)
        
        Returns:
            Image as bytes
        """
        buffer = BytesIO()
        image.save(buffer, format=format)
        return buffer.getvalue()
