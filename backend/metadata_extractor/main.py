"""
FastAPI application for the PDF Metadata Extractor.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from datetime import datetime
import logging

from metadata_extractor.config import Config
from metadata_extractor.models import HealthResponse
from metadata_extractor.routes import documents

# Configure logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="PDF Metadata Extractor API",
    description="API for extracting, classifying and exporting form fields from PDFs",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(documents.router)


@app.on_event("startup")
async def startup_event():
    """Initialize application on startup."""
    documents.upload_store.initialize()
    
    # Missing credentials are reported per upload, the API still serves
    # stored files, normalization and exports without them
    try:
        Config.validate()
        logger.info("Configuration validated successfully")
    except ValueError as e:
        logger.warning(f"Configuration incomplete, uploads will fail: {e}")


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    error = None
    try:
        Config.validate()
    except ValueError as e:
        error = str(e)
    
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(),
        configured=error is None,
        uploads_in_flight=documents.upload_guard.get_stats()['in_flight'],
        document_sessions=len(documents.session_store),
        error=error
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "metadata_extractor.main:app",
        host=Config.API_HOST,
        port=Config.API_PORT,
        reload=True
    )
