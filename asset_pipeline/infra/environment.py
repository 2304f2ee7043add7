"""File system asset environment."""
import os
import posixpath
from typing import Any, Iterable, Iterator

from asset_pipeline.domain.entities.asset import ConcatenatedAsset
from asset_pipeline.domain.entities.source_record import RenderedFile
from asset_pipeline.domain.plugins.base import AssetEnvironment, RendererPlugin
from asset_pipeline.domain.services.asset_builder import build_asset
from asset_pipeline.domain.services.asset_filters import build_filter, is_exact_name
from asset_pipeline.domain.services.resolver_service import DependencyResolver, ResolverContext
from asset_pipeline.infra.common.clock import file_mtime
from asset_pipeline.infra.common.errors import ArgumentError, EncodingError, FileNotFound
from asset_pipeline.infra.common.logger import get_logger
from asset_pipeline.infra.common.paths import DigestPathBuilder
from asset_pipeline.infra.plugins import registry

logger = get_logger(__name__)


def _split_name(name: str) -> tuple[str, list[str]]:
    """Split "app.min.js.tmpl" into ("app", [".min", ".js", ".tmpl"])."""
    stem, *extensions = name.split(".")
    return stem, ["." + extension for extension in extensions]


def _is_relative(argument: str) -> bool:
    return argument in (".", "..") or argument.startswith(("./", "../"))


class Environment(AssetEnvironment):
    """
    Resolves, renders and builds assets found under a list of load paths.

    Load paths are searched in order; resolution never leaves them.
    """

    def __init__(
        self,
        load_paths: Iterable[str],
        renderers: dict[str, RendererPlugin] | None = None,
        mime_types: dict[str, str] | None = None,
    ):
        """
        Initialize environment.

        Args:
            load_paths: Root directories, in search order
            renderers: Engines keyed by extension (defaults to the plugin registry)
            mime_types: Content types keyed by format extension (defaults to the registry)
        """
        self.load_paths = [os.path.realpath(path) for path in load_paths]
        self.renderers = registry.RENDERERS if renderers is None else renderers
        self.mime_types = registry.MIME_TYPES if mime_types is None else mime_types
        self.paths = DigestPathBuilder()

    # ============================================================================
    # Extension handling
    # ============================================================================

    def _format_extensions(self, name: str) -> tuple[str, list[str], list[str]]:
        """Split a file name into stem, non-engine extensions and trailing engine extensions."""
        stem, extensions = _split_name(name)
        engines: list[str] = []
        while extensions and extensions[-1] in self.renderers:
            engines.insert(0, extensions.pop())
        return stem, extensions, engines

    def format_extension_of(self, path: str) -> str | None:
        """Format extension of a file (last known mime extension before any engine)."""
        _, extensions, _ = self._format_extensions(os.path.basename(path))
        if extensions and extensions[-1] in self.mime_types:
            return extensions[-1]
        return None

    def content_type_of(self, path: str) -> str:
        """Content type implied by a file's extensions."""
        extension = self.format_extension_of(path)
        return self.mime_types.get(extension, registry.DEFAULT_CONTENT_TYPE)

    # ============================================================================
    # Render service
    # ============================================================================

    def render(self, path: str) -> RenderedFile:
        """
        Read a file and run its engine chain, right to left.

        Files whose content type is not text are read as bytes and passed
        through without engines.

        Raises:
            FileNotFound: If the file does not exist
            EncodingError: If a text file is not valid UTF-8
        """
        content_type = self.content_type_of(path)
        try:
            if not registry.is_text_content_type(content_type):
                with open(path, "rb") as f:
                    data = f.read()
                return RenderedFile(
                    path=path,
                    text="",
                    content_type=content_type,
                    format_extension=self.format_extension_of(path),
                    mtime=file_mtime(path),
                    data=data,
                )

            with open(path, "r", encoding="utf-8", newline="") as f:
                text = f.read()
        except FileNotFoundError as e:
            raise FileNotFound(f"couldn't find file '{path}'") from e
        except UnicodeDecodeError as e:
            raise EncodingError(f"{path} is not valid UTF-8 ({content_type}): {e.reason}") from e

        _, _, engines = self._format_extensions(os.path.basename(path))
        for extension in reversed(engines):
            text = self.renderers[extension].render(path, text)

        return RenderedFile(
            path=path,
            text=text,
            content_type=content_type,
            format_extension=self.format_extension_of(path),
            mtime=file_mtime(path),
        )

    # ============================================================================
    # Load path resolution
    # ============================================================================

    def within_load_paths(self, path: str) -> bool:
        """Check if an absolute path lies inside one of the load paths."""
        return any(path == root or path.startswith(root + os.sep) for root in self.load_paths)

    def _load_path_for(self, path: str) -> str:
        for root in self.load_paths:
            if path.startswith(root + os.sep):
                return root
        raise FileNotFound(f"{path} isn't in the load paths")

    def _matching_files(self, target: str) -> Iterator[str]:
        """Yield `target` itself, then `target` followed only by engine extensions."""
        if os.path.isfile(target):
            yield target
        directory, name = os.path.split(target)
        if not os.path.isdir(directory):
            return
        for entry in sorted(os.listdir(directory)):
            if not entry.startswith(name + ".") or entry == name:
                continue
            extensions = _split_name(entry[len(name):])[1]
            if extensions and all(extension in self.renderers for extension in extensions):
                candidate = os.path.join(directory, entry)
                if os.path.isfile(candidate):
                    yield candidate

    def _candidates(self, target: str) -> Iterator[str]:
        """Candidate files for a normalized absolute target, index files last."""
        yield from self._matching_files(target)
        stem, extension = os.path.splitext(target)
        if extension:
            yield from self._matching_files(os.path.join(stem, "index" + extension))

    def _names_for(self, argument: str, format_extension: str | None) -> list[str]:
        """Argument spellings to try; extensionless names inherit the requiring format."""
        _, extensions = _split_name(os.path.basename(argument))
        if format_extension and not (extensions and extensions[-1] in self.mime_types):
            return [argument + format_extension, argument]
        return [argument]

    def resolve(self, logical_path: str, format_extension: str | None = None) -> str:
        """
        Resolve a logical path against the load paths.

        Raises:
            FileNotFound: If no load path contains a match
        """
        for name in self._names_for(logical_path, format_extension):
            for root in self.load_paths:
                target = os.path.normpath(os.path.join(root, name))
                if not self.within_load_paths(target):
                    continue
                for candidate in self._candidates(target):
                    return candidate
        raise FileNotFound(f"couldn't find file '{logical_path}'")

    def resolve_relative(self, from_path: str, token: str, format_extension: str | None = None) -> str:
        """
        Resolve a ./ or ../ token against the directory of `from_path`.

        Raises:
            FileNotFound: If the target escapes the load paths or does not exist
        """
        base = os.path.dirname(from_path)
        for name in self._names_for(token, format_extension):
            target = os.path.normpath(os.path.join(base, name))
            if not self.within_load_paths(target):
                raise FileNotFound(f"'{token}' from {from_path} is outside the load paths")
            for candidate in self._candidates(target):
                return candidate
        raise FileNotFound(f"couldn't find file '{token}' relative to {from_path}")

    def resolve_argument(self, argument: str, from_path: str, format_extension: str | None) -> str:
        """Resolve a require-style directive argument."""
        if _is_relative(argument):
            return self.resolve_relative(from_path, argument, format_extension)
        if os.path.isabs(argument):
            path = os.path.realpath(argument)
            if self.within_load_paths(path) and os.path.isfile(path):
                return path
            raise FileNotFound(f"couldn't find file '{argument}' in the load paths")
        return self.resolve(argument, format_extension)

    def resolve_directory(self, argument: str | None, from_path: str) -> str:
        """Resolve a require_tree / require_directory argument."""
        argument = argument or "."
        if not _is_relative(argument):
            raise ArgumentError(f"directory argument must be a relative path: '{argument}'")

        directory = os.path.normpath(os.path.join(os.path.dirname(from_path), argument))
        if not self.within_load_paths(directory):
            raise FileNotFound(f"'{argument}' from {from_path} is outside the load paths")
        if os.path.isfile(directory):
            raise ArgumentError(f"directory argument must be a directory: '{argument}'")
        if not os.path.isdir(directory):
            raise FileNotFound(f"couldn't find directory '{argument}' relative to {from_path}")
        return directory

    def each_entry(self, directory: str, recursive: bool) -> list[str]:
        """Files under a directory in lexicographic order of their relative path."""
        relative: list[str] = []
        if recursive:
            for current, dirnames, filenames in os.walk(directory):
                dirnames[:] = [name for name in dirnames if not name.startswith(".")]
                prefix = os.path.relpath(current, directory)
                for name in filenames:
                    if not name.startswith("."):
                        relative.append(name if prefix == "." else posixpath.join(prefix.replace(os.sep, "/"), name))
        else:
            for name in os.listdir(directory):
                if not name.startswith(".") and os.path.isfile(os.path.join(directory, name)):
                    relative.append(name)
        return [os.path.join(directory, *name.split("/")) for name in sorted(relative)]

    # ============================================================================
    # Logical paths and lookup
    # ============================================================================

    def _logical_path(self, root: str, path: str) -> str:
        relative = os.path.relpath(path, root).replace(os.sep, "/")
        directory, name = posixpath.split(relative)
        stem, extensions, _ = self._format_extensions(name)
        if stem == "index" and directory:
            return directory + "".join(extensions)
        return posixpath.join(directory, stem + "".join(extensions))

    def logical_path_for(self, path: str) -> str:
        """Logical path of an absolute file; engine extensions dropped, index files collapsed."""
        return self._logical_path(self._load_path_for(path), path)

    def each_logical_path(self) -> Iterator[tuple[str, str]]:
        """Yield (logical path, absolute path); earlier load paths shadow later ones."""
        seen: set[str] = set()
        for root in self.load_paths:
            if not os.path.isdir(root):
                continue
            for path in self.each_entry(root, recursive=True):
                logical_path = self._logical_path(root, path)
                if logical_path in seen:
                    continue
                seen.add(logical_path)
                yield logical_path, path

    def build(self, path: str) -> ConcatenatedAsset:
        """Resolve and build the asset whose entry file is `path`."""
        context = ResolverContext()
        records = DependencyResolver(self).resolve(path, context)
        asset = build_asset(records, path, self.logical_path_for(path), context.links)
        logger.debug("Built %s (%d sources, digest=%s)", asset.logical_path, len(records), asset.digest[:8])
        return asset

    def find_asset(self, name: str) -> ConcatenatedAsset | None:
        """
        Find an asset by logical or absolute path.

        Returns:
            The built asset, or None if the name matches no file
        """
        if os.path.isabs(name):
            path = os.path.realpath(name)
            if not (os.path.isfile(path) and self.within_load_paths(path)):
                return None
        else:
            try:
                path = self.resolve(name)
            except FileNotFound:
                return None
        return self.build(path)

    def __getitem__(self, name: str) -> ConcatenatedAsset | None:
        return self.find_asset(name)

    def lookup(self, pattern: Any) -> ConcatenatedAsset | list[ConcatenatedAsset] | None:
        """
        Look up assets by exact name or by pattern.

        Returns:
            A single asset (or None) for an exact name, a list otherwise
        """
        if is_exact_name(pattern):
            return self.find_asset(os.fspath(pattern))
        matches = build_filter(pattern)
        return [self.build(path) for logical_path, path in self.each_logical_path() if matches(logical_path, path)]

    def digest_path_for(self, asset: ConcatenatedAsset) -> str:
        """Content-addressed output path for an asset."""
        return self.paths.digest_path(asset.logical_path, asset.digest)
