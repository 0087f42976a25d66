"""
Document API Routes
===================

Upload, OCR, field review and export endpoints.

Endpoints:
- POST  /api/upload - Store a document, run OCR and return its fields
- GET   /uploads/{path} - Serve a stored document
- POST  /api/normalize - Normalize a pre-extracted Document AI style OCR result
- GET   /api/documents/{document_id}/pages/{page} - Fields on one page
- POST  /api/documents/{document_id}/pages/next - Move to the next page
- POST  /api/documents/{document_id}/pages/previous - Move to the previous page
- PATCH /api/documents/{document_id}/fields/{index} - Override type or annotate a field
- GET   /api/documents/{document_id}/export - Download metadata.json
- POST  /api/export - Download metadata.json for a client-held field list
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Body, HTTPException, Request
from fastapi.responses import FileResponse, Response
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import ClientDisconnect

from metadata_extractor.config import Config
from metadata_extractor.models import NormalizeResponse, PageField, PageResponse, UploadResponse
from metadata_extractor.services.field_pipeline import (
    DocumentSessionStore,
    EXPORT_FILENAME,
    FieldClassifier,
    FieldNormalizer,
    FieldSession,
    FieldUpdate,
    MetadataField,
    RawDocumentResult,
)
from metadata_extractor.services.textract_service import (
    IngestionError,
    IngestionTimeoutError,
    TextractService,
)
from metadata_extractor.utils.upload_guard import UploadGuard
from metadata_extractor.utils.upload_store import UploadStore, UploadStoreError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Documents"])

# How often a pending OCR call checks whether the client went away
DISCONNECT_POLL_SECONDS = 0.5

# Nginx convention for "client closed request"
CLIENT_CLOSED_REQUEST = 499


_BOUNDARY = re.compile(r'boundary="?([^";]+)"?', re.IGNORECASE)

UPLOAD_REQUEST_BODY = {
    "requestBody": {
        "required": True,
        "content": {
            "multipart/form-data": {
                "schema": {
                    "type": "object",
                    "properties": {
                        "file": {
                            "type": "string",
                            "format": "binary",
                            "description": "Document to extract fields from",
                        }
                    },
                    "required": ["file"],
                }
            }
        },
    }
}


class UploadAbandonedError(Exception):
    """The client disconnected while its upload was being processed."""


class UploadTransportError(Exception):
    """The multipart upload body could not be read or parsed."""


@dataclass
class UploadedDocument:
    filename: Optional[str]
    content_type: Optional[str]
    content: bytes


# ============================================================================
# Service Instances (Singletons)
# ============================================================================

upload_store = UploadStore()
upload_guard = UploadGuard()
session_store = DocumentSessionStore(max_sessions=Config.MAX_DOCUMENT_SESSIONS)
normalizer = FieldNormalizer()
classifier = FieldClassifier()

_textract_service: Optional[TextractService] = None


def get_textract_service() -> TextractService:
    """Get or create the Textract service instance."""
    global _textract_service
    
    if _textract_service is None:
        _textract_service = TextractService()
    
    return _textract_service


def extract_fields(document: Any) -> List[MetadataField]:
    """Normalize an OCR result and classify every field."""
    return classifier.classify_fields(normalizer.normalize(document))


def _client_key(request: Request) -> str:
    session_id = request.headers.get('X-Session-Id')
    if session_id:
        return session_id
    return request.client.host if request.client else 'anonymous'


def _get_session(document_id: str) -> FieldSession:
    session = session_store.get(document_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return session


def _export_response(content: str) -> Response:
    return Response(
        content=content,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'}
    )


async def _read_upload(request: Request) -> Optional[UploadedDocument]:
    """
    Parse the multipart body and read its ``file`` part.

    Returns None when the body is well formed but carries no file part
    (including a ``file`` field sent as plain text).

    Raises:
        UploadTransportError: if the body is truncated, has no boundary
            or the client disconnects while it is being read
    """
    try:
        body = await request.body()
        form = await request.form()
    except MultiPartException as e:
        raise UploadTransportError(e.message)
    except StarletteHTTPException as e:
        # Starlette re-raises parser failures as a 400 inside an app
        raise UploadTransportError(e.detail)
    except ClientDisconnect:
        raise UploadTransportError("Client disconnected while sending the upload")

    try:
        content_type = request.headers.get('content-type', '')
        match = _BOUNDARY.search(content_type)
        if match and b'--' + match.group(1).encode('latin-1') + b'--' not in body:
            raise UploadTransportError("Incomplete multipart body: closing boundary not found")

        upload = form.get('file')
        if not isinstance(upload, UploadFile):
            return None
        return UploadedDocument(
            filename=upload.filename,
            content_type=upload.content_type,
            content=await upload.read()
        )
    finally:
        await form.close()


async def _run_ocr(request: Request, document_bytes: bytes, mime_type: str) -> RawDocumentResult:
    """
    Run OCR in a worker thread under a hard timeout.
    
    Raises:
        IngestionTimeoutError: if OCR exceeds Config.OCR_TIMEOUT_SECONDS
        UploadAbandonedError: if the client disconnects first
    """
    service = get_textract_service()
    task = asyncio.ensure_future(
        run_in_threadpool(service.process_document, document_bytes, mime_type)
    )
    loop = asyncio.get_running_loop()
    deadline = loop.time() + Config.OCR_TIMEOUT_SECONDS
    
    try:
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise IngestionTimeoutError(
                    f"OCR request timed out after {Config.OCR_TIMEOUT_SECONDS:g} seconds"
                )
            done, _ = await asyncio.wait({task}, timeout=min(DISCONNECT_POLL_SECONDS, remaining))
            if task in done:
                return task.result()
            if await request.is_disconnected():
                raise UploadAbandonedError()
    finally:
        if not task.done():
            task.cancel()


# ============================================================================
# API Endpoints
# ============================================================================

@router.post("/api/upload", response_model=UploadResponse, openapi_extra=UPLOAD_REQUEST_BODY)
async def upload_document(request: Request) -> UploadResponse:
    """
    Store a document, run OCR on it and return its classified fields.
    
    The stored copy is served from the returned ``fileUrl``; ``documentId``
    addresses the field session for paging, edits and export.
    """
    try:
        upload = await _read_upload(request)
    except UploadTransportError as e:
        logger.error(f"Could not parse upload: {e}")
        raise HTTPException(status_code=500, detail=f"Error parsing upload: {e}")
    
    if upload is None or not upload.content:
        raise HTTPException(status_code=400, detail="No file uploaded.")
    
    try:
        Config.validate()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        raise HTTPException(status_code=500, detail=f"Missing required configuration: {e}")
    
    client_key = _client_key(request)
    acquired, reason = upload_guard.try_acquire(client_key)
    if not acquired:
        raise HTTPException(status_code=409, detail=reason)
    
    try:
        try:
            stored = upload_store.save(upload.content, upload.filename)
        except UploadStoreError as e:
            raise HTTPException(status_code=500, detail=str(e))
        
        mime_type = upload.content_type or 'application/pdf'
        logger.info(f"Extracting fields from {upload.filename} ({len(upload.content)} bytes, {mime_type})")
        
        try:
            raw_document = await _run_ocr(request, upload.content, mime_type)
            fields = extract_fields(raw_document)
        except UploadAbandonedError:
            logger.warning(f"Client disconnected during OCR of {upload.filename}, discarding upload")
            upload_store.delete(stored.name)
            return Response(status_code=CLIENT_CLOSED_REQUEST)
        except IngestionTimeoutError as e:
            logger.error(f"OCR timed out for {upload.filename}: {e}")
            upload_store.delete(stored.name)
            raise HTTPException(status_code=500, detail=f"Error processing document: {e}")
        except IngestionError as e:
            logger.error(f"OCR failed for {upload.filename}: {e}")
            upload_store.delete(stored.name)
            raise HTTPException(status_code=500, detail=f"Error processing document: {e}")
        except Exception as e:
            logger.error(f"Unexpected error processing {upload.filename}: {e}", exc_info=True)
            upload_store.delete(stored.name)
            raise HTTPException(status_code=500, detail=f"Error processing document: {e}")
        
        session = session_store.create(fields, file_url=stored.url)
        
        return UploadResponse(
            metadata=session.fields,
            file_url=stored.url,
            document_id=session.document_id,
            total_pages=session.max_page_number
        )
    finally:
        upload_guard.release(client_key)


@router.get("/uploads/{file_path:path}")
async def serve_upload(file_path: str):
    """Serve a stored document."""
    path = upload_store.resolve(file_path)
    if path is None:
        raise HTTPException(status_code=404, detail="File not found")
    
    return FileResponse(path, media_type="application/pdf")


@router.post("/api/normalize", response_model=NormalizeResponse)
async def normalize_document(document: Dict[str, Any] = Body(..., description="Document AI style OCR result")) -> NormalizeResponse:
    """
    Normalize and classify a pre-extracted OCR result without calling OCR.
    
    Accepts a document (``text`` + ``pages``) or a process response wrapping
    it under ``document``.
    """
    fields = extract_fields(document)
    return NormalizeResponse(metadata=fields, total_pages=FieldSession(fields).max_page_number)


@router.get("/api/documents/{document_id}/pages/{page}", response_model=PageResponse)
async def get_page(document_id: str, page: int) -> PageResponse:
    """Fields on a page. Out-of-range pages are clamped."""
    session = _get_session(document_id)
    session.go_to_page(page)
    return _page_response(session)


@router.post("/api/documents/{document_id}/pages/next", response_model=PageResponse)
async def next_page(document_id: str) -> PageResponse:
    """Advance one page; stays on the last page."""
    session = _get_session(document_id)
    session.next_page()
    return _page_response(session)


@router.post("/api/documents/{document_id}/pages/previous", response_model=PageResponse)
async def previous_page(document_id: str) -> PageResponse:
    """Go back one page; stays on the first page."""
    session = _get_session(document_id)
    session.previous_page()
    return _page_response(session)


def _page_response(session: FieldSession) -> PageResponse:
    return PageResponse(
        document_id=session.document_id,
        page=session.current_page,
        total_pages=session.max_page_number,
        fields=[PageField(index=index, field=field) for index, field in session.fields_on_page()]
    )


@router.patch("/api/documents/{document_id}/fields/{index}", response_model=MetadataField)
async def update_field(document_id: str, index: int, update: FieldUpdate) -> MetadataField:
    """Override a field's type or set its length, values or other annotations."""
    session = _get_session(document_id)
    try:
        return session.update_field(index, update)
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/api/documents/{document_id}/export")
async def export_document(document_id: str) -> Response:
    """Download the document's fields as metadata.json (without page numbers)."""
    session = _get_session(document_id)
    return _export_response(session.export_json())


@router.post("/api/export")
async def export_fields(fields: List[MetadataField]) -> Response:
    """Download a client-held field list as metadata.json (without page numbers)."""
    return _export_response(FieldSession(fields).export_json())
