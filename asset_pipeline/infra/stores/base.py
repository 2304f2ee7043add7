"""Base file store with common operations."""
import contextlib
import json
import os
import tempfile
from typing import Optional

from asset_pipeline.infra.common.errors import StorageError
from asset_pipeline.infra.common.logger import get_logger

logger = get_logger(__name__)


class FileBaseStore:
    """Base class for local file stores with crash-safe writes."""
    
    @staticmethod
    def _write_atomic(path: str, body: bytes, mtime: float | None = None) -> None:
        """
        Write bytes to a temporary file, fsync it and rename it over `path`.
        
        Readers see either the previous file or the complete new one.
        
        Args:
            path: Destination path
            body: File content
            mtime: Optional modification time to set on the file
            
        Raises:
            StorageError: If the file cannot be written
        """
        directory = os.path.dirname(path) or "."
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=os.path.basename(path))
        except OSError as e:
            raise StorageError(f"Failed to prepare {path}: {e}") from e
        
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(body)
                f.flush()
                os.fsync(f.fileno())
            if mtime is not None:
                os.utime(tmp_path, (mtime, mtime))
            os.replace(tmp_path, path)
        except OSError as e:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_path)
            raise StorageError(f"Failed to write {path}: {e}") from e
    
    @staticmethod
    def _read_json(path: str) -> Optional[dict]:
        """Read JSON object from disk; missing, empty or invalid files read as None."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                content = f.read()
        except FileNotFoundError:
            return None
        
        if not content.strip():
            return None
        
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            logger.warning("Ignoring invalid JSON in %s", path)
            return None
        
        if not isinstance(data, dict):
            logger.warning("Ignoring non-object JSON in %s", path)
            return None
        return data
    
    def _write_json(self, path: str, data: dict) -> None:
        """Write JSON object to disk atomically."""
        body = json.dumps(data, indent=2, sort_keys=True).encode()
        self._write_atomic(path, body)
