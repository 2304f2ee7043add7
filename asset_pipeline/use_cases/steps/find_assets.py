"""Find assets step."""
import os
from typing import Any, Iterator

from asset_pipeline.domain.entities.asset import ConcatenatedAsset
from asset_pipeline.domain.plugins.base import AssetEnvironment
from asset_pipeline.domain.services.asset_filters import build_filter, is_exact_name


class AssetQuery:
    """
    Lazy, restartable sequence of assets matching any of a set of patterns.
    
    Exact names are looked up directly; globs, regexes and callables are
    tested against every logical path of the environment. Each asset is
    built on demand and yielded at most once per iteration.
    """
    
    def __init__(self, environment: AssetEnvironment, patterns: tuple[Any, ...]):
        self.environment = environment
        self.patterns = patterns
        self.filters = [None if is_exact_name(pattern) else build_filter(pattern) for pattern in patterns]
    
    def __iter__(self) -> Iterator[ConcatenatedAsset]:
        seen: set[str] = set()
        for pattern, matches in zip(self.patterns, self.filters):
            if matches is None:
                asset = self.environment.find_asset(os.fspath(pattern))
                if asset is not None and asset.pathname not in seen:
                    seen.add(asset.pathname)
                    yield asset
                continue
            
            for logical_path, path in self.environment.each_logical_path():
                if path in seen or not matches(logical_path, path):
                    continue
                asset = self.environment.find_asset(path)
                if asset is not None:
                    seen.add(path)
                    yield asset
