"""Local file stores for compiled outputs and manifests."""
from asset_pipeline.infra.stores.manifest_store import ManifestStore
from asset_pipeline.infra.stores.output_store import OutputStore

__all__ = [
    "ManifestStore",
    "OutputStore",
]
