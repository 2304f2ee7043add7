"""Centralized output and manifest path building."""
import posixpath
import re


CANONICAL_MANIFEST_PATTERN = re.compile(r"^\.sprockets-manifest-[0-9a-f]{32}\.json$")
LEGACY_MANIFEST_PATTERN = re.compile(r"^manifest-[0-9a-f]{32}\.json$")
LEGACY_MANIFEST_NAME = "manifest.json"


class DigestPathBuilder:
    """Builder for content-addressed paths following consistent structure."""

    @staticmethod
    def digest_path(logical_path: str, digest: str) -> str:
        """
        Get digest path for a logical path.

        The digest is inserted before the last extension:
        "mobile/app.js" -> "mobile/app-<digest>.js".
        """
        directory, name = posixpath.split(logical_path)
        stem, ext = posixpath.splitext(name)
        return posixpath.join(directory, f"{stem}-{digest}{ext}")

    @staticmethod
    def canonical_manifest_name(token: str) -> str:
        """Get canonical hidden manifest filename for a 32 hex token."""
        return f".sprockets-manifest-{token}.json"

    @staticmethod
    def is_canonical_manifest(name: str) -> bool:
        """Check if a filename is a canonical manifest name."""
        return CANONICAL_MANIFEST_PATTERN.match(name) is not None

    @staticmethod
    def is_legacy_manifest(name: str) -> bool:
        """Check if a filename is a legacy manifest-<hex>.json name."""
        return LEGACY_MANIFEST_PATTERN.match(name) is not None
