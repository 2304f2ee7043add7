"""Renderer plugins."""
from asset_pipeline.infra.plugins import template
