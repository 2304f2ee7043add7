"""Manifest of compiled assets."""
import threading
from contextlib import contextmanager
from typing import Any, Iterator

from asset_pipeline.domain.entities.asset import ConcatenatedAsset
from asset_pipeline.domain.entities.manifest import ManifestData, ManifestEntry
from asset_pipeline.domain.plugins.base import AssetEnvironment
from asset_pipeline.infra.common.clock import Clock, get_clock
from asset_pipeline.infra.common.errors import FileNotFound, PipelineError
from asset_pipeline.infra.common.logger import get_logger
from asset_pipeline.infra.locks import DynamoDBLock
from asset_pipeline.infra.stores import ManifestStore, OutputStore
from asset_pipeline.use_cases.steps.find_assets import AssetQuery
from asset_pipeline.use_cases.steps.select_expired import select_expired
from asset_pipeline.use_cases.steps.write_output import write_output

logger = get_logger(__name__)


class Manifest:
    """
    Persistent index of compiled assets in an output directory.
    
    Maps each logical path to its current digest path and records every
    compiled file with its size, mtime and digest. All mutating operations
    are serialized by an in-process lock and, when a lock manager is given,
    by a distributed lock around the whole read-modify-write cycle.
    """
    
    def __init__(
        self,
        environment: AssetEnvironment | None,
        path: str | None = None,
        filename: str | None = None,
        lock_manager: DynamoDBLock | None = None,
        clock: Clock | None = None,
        lock_timeout_seconds: float = 60.0,
        lock_poll_seconds: float = 0.5,
    ):
        """
        Initialize manifest.
        
        Args:
            environment: Environment used to find and build assets (may be
                None for a manifest that is only read, removed from or cleaned)
            path: Output directory, or the manifest file itself
            filename: Explicit manifest file name
            lock_manager: Optional distributed lock
            clock: Clock for timestamps and tokens
            lock_timeout_seconds: How long to wait for the distributed lock
            lock_poll_seconds: Delay between distributed lock attempts
        """
        self.environment = environment
        self.clock = clock or get_clock()
        self.store = ManifestStore(path, filename, clock=self.clock)
        self.outputs = OutputStore(self.store.directory)
        self.lock_manager = lock_manager
        self.lock_timeout_seconds = lock_timeout_seconds
        self.lock_poll_seconds = lock_poll_seconds
        self._lock = threading.RLock()
        self._depth = 0
        self._data = self.store.read()
    
    # ============================================================================
    # Properties
    # ============================================================================
    
    @property
    def directory(self) -> str:
        """Output directory holding the manifest and compiled files."""
        return self.store.directory
    
    @property
    def filename(self) -> str:
        """Absolute path of the manifest file."""
        return self.store.filename
    
    @property
    def path(self) -> str:
        return self.store.filename
    
    @property
    def assets(self) -> dict[str, str]:
        """Logical path -> current digest path."""
        return self._data.assets
    
    @property
    def files(self) -> dict[str, ManifestEntry]:
        """Digest path -> entry, including older retained versions."""
        return self._data.files
    
    @property
    def data(self) -> ManifestData:
        return self._data
    
    # ============================================================================
    # Locking
    # ============================================================================
    
    @contextmanager
    def _locked(self, reload: bool = True) -> Iterator[None]:
        """
        Hold the manifest locks for a read-modify-write cycle.
        
        The outermost entry acquires the distributed lock and, when `reload`
        is set, re-reads the manifest so changes made elsewhere are kept.
        """
        with self._lock:
            outermost = self._depth == 0
            self._depth += 1
            lock_key = f"manifest:{self.directory}"
            owner_id = None
            try:
                if outermost and self.lock_manager is not None:
                    owner_id = self.clock.generate_token()
                    if not self.lock_manager.wait_acquire(
                        lock_key, owner_id, self.lock_timeout_seconds, self.lock_poll_seconds
                    ):
                        owner_id = None
                        raise PipelineError(f"Timed out waiting for manifest lock {lock_key}")
                if outermost and reload:
                    self._data = self.store.read()
                yield
            finally:
                self._depth -= 1
                if owner_id is not None:
                    self.lock_manager.release(lock_key, owner_id)
    
    # ============================================================================
    # Operations
    # ============================================================================
    
    def _require_environment(self) -> AssetEnvironment:
        if self.environment is None:
            raise PipelineError("Manifest requires an environment to find or compile assets")
        if not isinstance(self.environment, AssetEnvironment):
            raise PipelineError(
                f"Manifest environment must be an AssetEnvironment, got {type(self.environment).__name__}"
            )
        return self.environment
    
    def find(self, *patterns: Any) -> AssetQuery:
        """
        Find assets matching any of the given patterns.
        
        Args:
            patterns: Logical or absolute names, glob strings, compiled
                regexes, or callables taking (logical_path) or
                (logical_path, absolute_path)
                
        Returns:
            Lazy iterable of matching assets; it can be iterated again
            
        Raises:
            PipelineError: If the manifest has no environment
            ArgumentError: If a pattern type is not supported
        """
        return AssetQuery(self._require_environment(), patterns)
    
    def compile(self, *names: Any) -> list[ConcatenatedAsset]:
        """
        Compile assets into the output directory and record them.
        
        Linked assets are compiled as well. Outputs that already exist under
        their digest path are not rewritten.
        
        Args:
            names: Patterns accepted by `find`
            
        Returns:
            Compiled assets, including linked ones, in compile order
            
        Raises:
            PipelineError: If the manifest has no environment
            FileNotFound: If a linked file disappeared before it was compiled
        """
        environment = self._require_environment()
        compiled: list[ConcatenatedAsset] = []
        
        with self._locked():
            seen: set[str] = set()
            for name in names:
                matched = False
                for asset in self.find(name):
                    matched = True
                    self._compile_asset(environment, asset, seen, compiled)
                if not matched:
                    logger.warning("No assets matched %r", name)
            self.save()
        
        logger.info("Compiled %d assets into %s", len(compiled), self.directory)
        return compiled
    
    def _compile_asset(
        self,
        environment: AssetEnvironment,
        asset: ConcatenatedAsset,
        seen: set[str],
        compiled: list[ConcatenatedAsset],
    ) -> None:
        if asset.pathname in seen:
            return
        seen.add(asset.pathname)
        
        digest_path = environment.digest_path_for(asset)
        self._data.files[digest_path] = write_output(self.outputs, asset, digest_path, self.clock)
        self._data.assets[asset.logical_path] = digest_path
        compiled.append(asset)
        
        for link in asset.links:
            if link in seen:
                continue
            linked = environment.find_asset(link)
            if linked is None:
                raise FileNotFound(f"couldn't find linked file '{link}' from {asset.pathname}")
            self._compile_asset(environment, linked, seen, compiled)
    
    def remove(self, digest_path: str) -> None:
        """
        Remove a compiled file and its manifest entries.
        
        Args:
            digest_path: Digest path relative to the output directory
        """
        with self._locked():
            self._remove(digest_path)
            self.save()
    
    def _remove(self, digest_path: str) -> None:
        deleted = self.outputs.delete(digest_path)
        self._data.files.pop(digest_path, None)
        for logical_path, current in list(self._data.assets.items()):
            if current == digest_path:
                del self._data.assets[logical_path]
        
        if deleted:
            logger.info("Removed %s", self.outputs.path_for(digest_path))
        else:
            logger.debug("Output %s was already gone", digest_path)
    
    def clean(self, keep: int = 2, max_age: float = 3600) -> list[str]:
        """
        Remove old compiled versions.
        
        Per logical path, keeps the current version, the `keep` most recent
        versions and anything younger than `max_age` seconds.
        
        Args:
            keep: Number of recent versions to keep per logical path
            max_age: Age in seconds below which versions are always kept
            
        Returns:
            Removed digest paths
        """
        with self._locked():
            expired = select_expired(self._data, keep, max_age, self.clock.now())
            for digest_path in expired:
                self._remove(digest_path)
            if expired:
                self.save()
        
        logger.info("Cleaned %d old files from %s", len(expired), self.directory)
        return expired
    
    def save(self) -> None:
        """Persist the manifest atomically."""
        with self._locked(reload=False):
            self.store.write(self._data)
