"""Pipeline configuration entity."""
from pydantic import BaseModel, Field


class CleanConfig(BaseModel):
    """Retention configuration for old compiled outputs."""
    keep: int = Field(default=2, ge=0)
    max_age: int = Field(default=3600, ge=0)
    """Entries younger than this many seconds are always kept."""


class PipelineConfig(BaseModel):
    """Asset pipeline configuration."""
    load_paths: list[str] = Field(min_length=1)
    output_dir: str
    manifest_path: str | None = None
    assets: list[str] = Field(default_factory=list)
    clean: CleanConfig = Field(default_factory=CleanConfig)
