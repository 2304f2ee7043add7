"""Manifest file store operations."""
import contextlib
import os

from pydantic import ValidationError

from asset_pipeline.domain.entities.manifest import ManifestData
from asset_pipeline.infra.common.clock import Clock, get_clock
from asset_pipeline.infra.common.errors import PipelineError, StorageError
from asset_pipeline.infra.common.logger import get_logger
from asset_pipeline.infra.common.paths import LEGACY_MANIFEST_NAME, DigestPathBuilder
from asset_pipeline.infra.stores.base import FileBaseStore

logger = get_logger(__name__)


class ManifestStore(FileBaseStore):
    """
    Local store for the manifest JSON file.
    
    The manifest lives in the output directory under a hidden randomized
    name. Older manifests named ``manifest-<hex>.json`` or ``manifest.json``
    are still read, and are replaced by a canonical file on the next write.
    """
    
    def __init__(self, path: str | None = None, filename: str | None = None, clock: Clock | None = None):
        """
        Initialize manifest store.
        
        Args:
            path: Output directory, or the manifest file itself when it
                ends in ``.json`` or is an existing file
            filename: Explicit manifest file (relative names resolve
                against `path`)
            clock: Token source for new manifest names
            
        Raises:
            PipelineError: If neither a directory nor a filename is given
        """
        self.clock = clock or get_clock()
        self.paths = DigestPathBuilder()
        self._legacy = False
        
        if filename:
            if path and not os.path.isabs(filename):
                filename = os.path.join(path, filename)
            self.filename = os.path.abspath(filename)
            self.directory = os.path.abspath(path) if path else os.path.dirname(self.filename)
        elif path and (os.path.isfile(path) or path.endswith(".json")):
            self.filename = os.path.abspath(path)
            self.directory = os.path.dirname(self.filename)
        elif path:
            self.directory = os.path.abspath(path)
            self.filename = self._discover()
        else:
            raise PipelineError("Manifest requires an output directory or a manifest filename")
    
    def _discover(self) -> str:
        """Find an existing manifest in the directory, or pick a fresh canonical name."""
        try:
            names = sorted(os.listdir(self.directory))
        except FileNotFoundError:
            names = []
        
        for name in names:
            if self.paths.is_canonical_manifest(name):
                return os.path.join(self.directory, name)
        
        for name in names:
            if self.paths.is_legacy_manifest(name) or name == LEGACY_MANIFEST_NAME:
                logger.info("Found legacy manifest %s, it will be migrated on save", name)
                self._legacy = True
                return os.path.join(self.directory, name)
        
        return self._fresh_filename()
    
    def _fresh_filename(self) -> str:
        return os.path.join(self.directory, self.paths.canonical_manifest_name(self.clock.generate_token()))
    
    def read(self) -> ManifestData:
        """
        Read manifest data.
        
        Missing, empty, invalid or malformed manifests read as empty.
        """
        raw = self._read_json(self.filename)
        if raw is None:
            return ManifestData()
        
        try:
            return ManifestData.model_validate(raw)
        except ValidationError as e:
            logger.warning("Ignoring malformed manifest %s: %s", self.filename, e.error_count())
            return ManifestData()
    
    def write(self, data: ManifestData) -> None:
        """
        Write manifest data atomically.
        
        A legacy manifest is replaced by a canonical one; the legacy file is
        removed only after the new file is in place.
        """
        legacy_filename = self.filename if self._legacy else None
        if legacy_filename:
            self.filename = self._fresh_filename()
        
        self._write_json(self.filename, data.model_dump(mode="json"))
        logger.debug("Wrote manifest %s (%d files)", self.filename, len(data.files))
        
        if legacy_filename:
            try:
                with contextlib.suppress(FileNotFoundError):
                    os.unlink(legacy_filename)
            except OSError as e:
                raise StorageError(f"Failed to remove legacy manifest {legacy_filename}: {e}") from e
            self._legacy = False
            logger.info("Migrated legacy manifest %s to %s", legacy_filename, self.filename)
