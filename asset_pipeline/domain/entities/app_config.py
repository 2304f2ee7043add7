"""Application configuration entity."""
from pydantic import BaseModel


class AppConfig(BaseModel):
    """Application configuration for runtime environment."""
    log_level: str = "INFO"
    aws_region: str | None = None
    dynamodb_lock_table: str | None = None
    """DynamoDB table name for distributed manifest locks."""
    lock_ttl_seconds: int = 3600
    lock_timeout_seconds: float = 60.0
    lock_poll_seconds: float = 0.5
