"""Production environment configuration."""
import os
from asset_pipeline.domain.entities.app_config import AppConfig

config = AppConfig(
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    aws_region=os.getenv("AWS_DEFAULT_REGION", "us-east-1"),
    dynamodb_lock_table=os.getenv("DYNAMODB_LOCK_TABLE", "asset-pipeline-locks"),
    lock_ttl_seconds=900,
    lock_timeout_seconds=120.0,
)
