"""
Guard allowing a single in-flight upload per client.
A second upload from the same client is rejected until the first resolves.
"""
import logging
from collections import defaultdict
from datetime import datetime
from threading import Lock
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class UploadGuard:
    """Tracks uploads in progress per client key."""
    
    def __init__(self):
        self.in_flight: Dict[str, datetime] = {}
        self.total_uploads: Dict[str, int] = defaultdict(int)
        self.lock = Lock()
    
    def try_acquire(self, client_key: str) -> Tuple[bool, str]:
        """
        Claim the upload slot for a client.
        
        Args:
            client_key: Session identifier or client address
        
        Returns:
            Tuple of (acquired: bool, reason: str)
        """
        with self.lock:
            started = self.in_flight.get(client_key)
            if started is not None:
                return False, (
                    f"An upload from this client is already in progress "
                    f"(started {started.isoformat(timespec='seconds')})"
                )
            self.in_flight[client_key] = datetime.now()
            self.total_uploads[client_key] += 1
            return True, "OK"
    
    def release(self, client_key: str):
        """Free the client's upload slot."""
        with self.lock:
            started = self.in_flight.pop(client_key, None)
        if started is not None:
            elapsed = (datetime.now() - started).total_seconds()
            logger.info(f"Upload for {client_key} finished after {elapsed:.2f}s")
    
    def get_stats(self, client_key: Optional[str] = None) -> Dict:
        """
        Get upload statistics for one client or all clients.
        """
        with self.lock:
            if client_key:
                return {
                    'client': client_key,
                    'in_flight': client_key in self.in_flight,
                    'total_uploads': self.total_uploads[client_key],
                }
            return {
                'in_flight': len(self.in_flight),
                'total_uploads': sum(self.total_uploads.values()),
            }
    
    def reset(self):
        """Reset all tracking (useful for testing)."""
        with self.lock:
            self.in_flight.clear()
            self.total_uploads.clear()
