"""DynamoDB lock for manifest updates shared between machines."""
import time
from typing import Optional

import boto3
from botocore.exceptions import ClientError

from asset_pipeline.infra.common.clock import get_clock
from asset_pipeline.infra.common.logger import get_logger

logger = get_logger(__name__)


class DynamoDBLock:
    """
    Distributed lock using DynamoDB.
    
    Guards the read-modify-write cycle of a manifest when several build
    machines publish into the same output directory. Items expire after
    their TTL so a crashed holder never blocks forever.
    """
    
    def __init__(self, table_name: str, region: Optional[str] = None, ttl_seconds: int = 3600):
        """
        Initialize DynamoDB lock.
        
        Args:
            table_name: DynamoDB table name (partition key ``lock_key``)
            region: AWS region (defaults to boto3 default)
            ttl_seconds: Lock TTL in seconds
        """
        self.table_name = table_name
        self.ttl_seconds = ttl_seconds
        self.dynamodb = boto3.resource("dynamodb", region_name=region)
        self.table = self.dynamodb.Table(table_name)
    
    def acquire(self, lock_key: str, owner_id: str) -> bool:
        """
        Try to acquire a lock once.
        
        Args:
            lock_key: Lock key (e.g., manifest directory)
            owner_id: Unique identifier for this lock owner
            
        Returns:
            True if lock acquired, False if held by someone else
        """
        now = int(get_clock().now().timestamp())
        try:
            self.table.put_item(
                Item={
                    "lock_key": lock_key,
                    "owner_id": owner_id,
                    "expires_at": now + self.ttl_seconds,
                    "acquired_at": now,
                },
                ConditionExpression="attribute_not_exists(lock_key) OR expires_at < :now",
                ExpressionAttributeValues={":now": now},
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code", "") == "ConditionalCheckFailedException":
                logger.debug("Lock %s is held by another owner", lock_key)
                return False
            raise
        
        logger.info("Acquired lock for %s (owner: %s)", lock_key, owner_id)
        return True
    
    def wait_acquire(
        self, lock_key: str, owner_id: str, timeout_seconds: float, poll_seconds: float = 0.5
    ) -> bool:
        """
        Acquire a lock, polling until it frees up or the timeout passes.
        
        Returns:
            True if lock acquired, False on timeout
        """
        deadline = time.monotonic() + timeout_seconds
        while True:
            if self.acquire(lock_key, owner_id):
                return True
            if time.monotonic() >= deadline:
                logger.warning("Timed out after %.1fs waiting for lock %s", timeout_seconds, lock_key)
                return False
            time.sleep(poll_seconds)
    
    def release(self, lock_key: str, owner_id: str) -> bool:
        """
        Release a lock.
        
        Args:
            lock_key: Lock key
            owner_id: Owner ID (must match to release)
            
        Returns:
            True if released, False if lock doesn't exist or owner doesn't match
        """
        try:
            self.table.delete_item(
                Key={"lock_key": lock_key},
                ConditionExpression="owner_id = :owner",
                ExpressionAttributeValues={":owner": owner_id},
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code", "") == "ConditionalCheckFailedException":
                logger.warning("Lock not found or owner mismatch for %s", lock_key)
                return False
            raise
        
        logger.info("Released lock for %s (owner: %s)", lock_key, owner_id)
        return True
    
    def is_locked(self, lock_key: str) -> bool:
        """Check if a lock is currently held and not expired."""
        try:
            response = self.table.get_item(Key={"lock_key": lock_key})
        except ClientError:
            return False
        
        item = response.get("Item")
        if item is None:
            return False
        return int(item.get("expires_at", 0)) >= int(get_clock().now().timestamp())
