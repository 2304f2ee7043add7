"""Template plugins."""
from asset_pipeline.infra.plugins.template.renderer import TemplateRenderer
from asset_pipeline.infra.plugins.registry import register_renderer

register_renderer(TemplateRenderer("template"))
