"""Renderer plugin registry."""
from asset_pipeline.domain.plugins.base import RendererPlugin


# In-memory registry
RENDERERS: dict[str, RendererPlugin] = {}
MIME_TYPES: dict[str, str] = {
    ".css": "text/css",
    ".gif": "image/gif",
    ".html": "text/html",
    ".ico": "image/vnd.microsoft.icon",
    ".jpeg": "image/jpeg",
    ".jpg": "image/jpeg",
    ".js": "application/javascript",
    ".json": "application/json",
    ".png": "image/png",
    ".svg": "image/svg+xml",
    ".txt": "text/plain",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".xml": "application/xml",
    ".yaml": "text/yaml",
    ".yml": "text/yaml",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Non text/* types that still carry directives and go through engines
TEXT_CONTENT_TYPES: set[str] = {
    "application/javascript",
    "application/json",
    "application/xml",
    "image/svg+xml",
}


def register_renderer(plugin: RendererPlugin) -> None:
    """Register a renderer plugin under its extension."""
    RENDERERS[plugin.extension] = plugin


def register_mime_type(extension: str, content_type: str, text: bool = False) -> None:
    """
    Register a format extension and its content type.
    
    Args:
        extension: Format extension including the dot
        content_type: MIME type
        text: Treat a non text/* type as UTF-8 text with directives
    """
    MIME_TYPES[extension] = content_type
    if text:
        TEXT_CONTENT_TYPES.add(content_type)


def is_text_content_type(content_type: str) -> bool:
    """Check if files of a content type are rendered as UTF-8 text."""
    return content_type.startswith("text/") or content_type in TEXT_CONTENT_TYPES
