"""Manifest entities."""
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ManifestEntry(BaseModel):
    """One compiled output recorded in the manifest."""
    model_config = ConfigDict(extra="allow")

    logical_path: str
    mtime: datetime
    size: int
    digest: str | None = None

    @field_validator("mtime")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        # offset-less timestamps in older manifests are taken as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class ManifestData(BaseModel):
    """Persisted manifest index."""
    files: dict[str, ManifestEntry] = Field(default_factory=dict)
    """digest path -> entry, including retained older versions."""
    assets: dict[str, str] = Field(default_factory=dict)
    """logical path -> current digest path."""
