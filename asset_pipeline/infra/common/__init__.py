"""Common infrastructure utilities."""
from asset_pipeline.infra.common.config import load_app_config, load_pipeline_config
from asset_pipeline.infra.common.paths import DigestPathBuilder
from asset_pipeline.infra.common.clock import Clock, SystemClock, get_clock, set_clock
from asset_pipeline.infra.common.logger import setup_logging, get_logger
from asset_pipeline.infra.common.errors import (
    PipelineError,
    ConfigError,
    StorageError,
    FileNotFound,
    ContentTypeMismatch,
    ArgumentError,
    EncodingError,
)
from asset_pipeline.infra.common.hash_utils import compute_source_digest

__all__ = [
    "load_app_config",
    "load_pipeline_config",
    "DigestPathBuilder",
    "Clock",
    "SystemClock",
    "get_clock",
    "set_clock",
    "setup_logging",
    "get_logger",
    "PipelineError",
    "ConfigError",
    "StorageError",
    "FileNotFound",
    "ContentTypeMismatch",
    "ArgumentError",
    "EncodingError",
    "compute_source_digest",
]
