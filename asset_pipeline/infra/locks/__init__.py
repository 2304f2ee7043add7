"""Distributed locks."""
from asset_pipeline.infra.locks.dynamodb_lock import DynamoDBLock

__all__ = ["DynamoDBLock"]
