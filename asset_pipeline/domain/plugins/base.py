"""Plugin and collaborator base interfaces."""
from abc import ABC, abstractmethod
from typing import Iterator

from asset_pipeline.domain.entities.asset import ConcatenatedAsset
from asset_pipeline.domain.entities.source_record import RenderedFile


class RendererPlugin(ABC):
    """Renderer (engine) plugin interface, keyed by file extension."""

    id: str
    extension: str

    @abstractmethod
    def render(self, path: str, text: str) -> str:
        """
        Render source text.

        Args:
            path: Absolute path of the file being rendered
            text: Text produced by the previous engine in the chain

        Returns:
            Rendered text
        """
        raise NotImplementedError


class AssetEnvironment(ABC):
    """
    Collaborator interface consumed by the resolver and the manifest.

    Combines the render service, the load-path resolver and asset lookup.
    """

    @abstractmethod
    def render(self, path: str) -> RenderedFile:
        """Render a file to text with its content type, format extension and mtime."""
        raise NotImplementedError

    @abstractmethod
    def resolve_argument(self, argument: str, from_path: str, format_extension: str | None) -> str:
        """
        Resolve a require-style directive argument to an absolute file path.

        Raises:
            FileNotFound: If nothing matches inside the load paths
        """
        raise NotImplementedError

    @abstractmethod
    def resolve_directory(self, argument: str | None, from_path: str) -> str:
        """
        Resolve a directory directive argument to an absolute directory.

        Raises:
            ArgumentError: If the argument is not relative or not a directory
            FileNotFound: If the directory is missing or outside the load paths
        """
        raise NotImplementedError

    @abstractmethod
    def each_entry(self, directory: str, recursive: bool) -> list[str]:
        """List files under a directory in lexicographic order of relative path."""
        raise NotImplementedError

    @abstractmethod
    def content_type_of(self, path: str) -> str:
        """Content type implied by a file's extensions, without rendering it."""
        raise NotImplementedError

    @abstractmethod
    def logical_path_for(self, path: str) -> str:
        """Logical path of an absolute file (index files collapse to their directory)."""
        raise NotImplementedError

    @abstractmethod
    def each_logical_path(self) -> Iterator[tuple[str, str]]:
        """Yield (logical path, absolute path) for every file in the load paths."""
        raise NotImplementedError

    @abstractmethod
    def find_asset(self, name: str) -> ConcatenatedAsset | None:
        """Resolve and build an asset from a logical or absolute path."""
        raise NotImplementedError

    @abstractmethod
    def digest_path_for(self, asset: ConcatenatedAsset) -> str:
        """Content-addressed output path for an asset."""
        raise NotImplementedError
