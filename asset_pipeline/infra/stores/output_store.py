"""Compiled output store."""
import os
from datetime import datetime

from asset_pipeline.infra.common.errors import ArgumentError, StorageError
from asset_pipeline.infra.stores.base import FileBaseStore


class OutputStore(FileBaseStore):
    """Store for content-addressed compiled outputs under one directory."""
    
    def __init__(self, directory: str):
        """
        Initialize output store.
        
        Args:
            directory: Directory where digest paths are written
        """
        self.directory = directory
    
    def path_for(self, digest_path: str) -> str:
        """
        Get absolute file path for a digest path.
        
        Raises:
            ArgumentError: If the digest path points outside the output directory
        """
        path = os.path.join(self.directory, *digest_path.split("/"))
        root = os.path.realpath(self.directory)
        if not os.path.realpath(path).startswith(root + os.sep):
            raise ArgumentError(f"Digest path {digest_path!r} is outside {self.directory}")
        return path
    
    def exists(self, digest_path: str) -> bool:
        """Check if an output has already been written."""
        return os.path.isfile(self.path_for(digest_path))
    
    def write(self, digest_path: str, body: bytes, mtime: datetime | None = None) -> None:
        """Write output atomically, stamping it with the asset mtime."""
        self._write_atomic(
            self.path_for(digest_path),
            body,
            mtime=mtime.timestamp() if mtime is not None else None,
        )
    
    def delete(self, digest_path: str) -> bool:
        """
        Delete an output file.
        
        Returns:
            True if a file was deleted, False if it was already absent
        """
        try:
            os.unlink(self.path_for(digest_path))
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete {digest_path}: {e}") from e
        return True
