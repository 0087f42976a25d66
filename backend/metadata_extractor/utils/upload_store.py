"""
Storage for uploaded documents.
Files are written under a single upload directory and served back by name.
"""
import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from metadata_extractor.config import Config

logger = logging.getLogger(__name__)

# Kept extensions look like ".pdf"; anything else is dropped
_SAFE_SUFFIX = re.compile(r'^\.[A-Za-z0-9]{1,10}$')


class UploadStoreError(Exception):
    """Raised when an upload cannot be written or removed."""


@dataclass
class StoredUpload:
    """A document saved in the upload directory."""
    name: str
    path: Path
    url: str
    size: int


class UploadStore:
    """Writes uploads to disk and resolves retrieval paths."""
    
    def __init__(self, root: Optional[str] = None, url_prefix: Optional[str] = None):
        """
        Args:
            root: Upload directory (defaults to Config.UPLOAD_DIR)
            url_prefix: Public URL prefix (defaults to Config.UPLOAD_URL_PREFIX)
        """
        self.root = Path(root or Config.UPLOAD_DIR)
        self.url_prefix = (url_prefix or Config.UPLOAD_URL_PREFIX).rstrip('/')
    
    def initialize(self):
        """Create the upload directory. Called once at application startup."""
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise UploadStoreError(f"Cannot create upload directory {self.root}: {e}") from e
        logger.info(f"Upload store initialized. Directory: {self.root.resolve()}")
    
    def save(self, data: bytes, original_filename: Optional[str] = None) -> StoredUpload:
        """
        Write bytes under a random name, keeping the original extension.
        
        Raises:
            UploadStoreError: if the file cannot be written
        """
        suffix = Path(original_filename or '').suffix
        if not _SAFE_SUFFIX.match(suffix):
            suffix = ''
        name = f"{uuid.uuid4().hex}{suffix.lower()}"
        path = self.root / name
        
        try:
            path.write_bytes(data)
        except OSError as e:
            logger.error(f"Failed to store upload {original_filename}: {e}")
            raise UploadStoreError(f"Failed to store upload: {e}") from e
        
        logger.info(f"Stored upload {original_filename} as {name} ({len(data)} bytes)")
        return StoredUpload(name=name, path=path, url=f"{self.url_prefix}/{name}", size=len(data))
    
    def resolve(self, relative_path: str) -> Optional[Path]:
        """
        Locate a stored file.
        
        Returns:
            The file path, or None if it does not exist or lies outside the store
        """
        root = self.root.resolve()
        candidate = (root / relative_path).resolve()
        if root not in candidate.parents or not candidate.is_file():
            return None
        return candidate
    
    def delete(self, name: str):
        """Remove a stored file if present."""
        path = self.resolve(name)
        if path is None:
            return
        try:
            path.unlink()
            logger.info(f"Discarded upload {name}")
        except OSError as e:
            raise UploadStoreError(f"Failed to remove upload {name}: {e}") from e
