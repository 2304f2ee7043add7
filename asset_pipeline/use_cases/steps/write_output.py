"""Write compiled output step."""
from asset_pipeline.domain.entities.asset import ConcatenatedAsset
from asset_pipeline.domain.entities.manifest import ManifestEntry
from asset_pipeline.infra.common.clock import Clock
from asset_pipeline.infra.common.logger import get_logger
from asset_pipeline.infra.stores.output_store import OutputStore

logger = get_logger(__name__)


def write_output(outputs: OutputStore, asset: ConcatenatedAsset, digest_path: str, clock: Clock) -> ManifestEntry:
    """
    Write an asset under its digest path unless that file already exists.
    
    Args:
        outputs: Output store for the manifest directory
        asset: Built asset
        digest_path: Content-addressed relative path
        clock: Clock used to stamp the compile time
        
    Returns:
        Manifest entry describing the output
    """
    if outputs.exists(digest_path):
        logger.debug("Skipping %s, already compiled", digest_path)
    else:
        outputs.write(digest_path, asset.to_bytes(), mtime=asset.mtime)
        logger.info("Writing %s", outputs.path_for(digest_path))
    
    return ManifestEntry(
        logical_path=asset.logical_path,
        mtime=asset.mtime,
        size=asset.length,
        digest=asset.digest,
        compiled_at=clock.now_iso(),
    )
