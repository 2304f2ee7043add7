"""Template renderer."""
from string import Template

from asset_pipeline.domain.plugins.base import RendererPlugin


class TemplateRenderer(RendererPlugin):
    """Substitutes $__FILE__ with the absolute path of the rendered file."""
    
    def __init__(self, plugin_id: str, extension: str = ".tmpl"):
        self.id = plugin_id
        self.extension = extension
    
    def render(self, path: str, text: str) -> str:
        """Render template text; unknown placeholders are left untouched."""
        return Template(text).safe_substitute({"__FILE__": path})
