"""Concatenated asset entity."""
import base64
from datetime import datetime, timezone
from typing import Any, Iterator
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from asset_pipeline.infra.common.clock import file_mtime
from asset_pipeline.infra.common.paths import DigestPathBuilder


class ConcatenatedAsset(BaseModel):
    """
    Result of resolving and building one logical asset.

    `source` holds each source path's contribution to the body, positional
    with `source_paths`, so the asset can be rebuilt from its serialized form
    without resolving or rendering anything again.
    """
    model_config = ConfigDict(frozen=True)

    logical_path: str
    pathname: str
    content_type: str
    format_extension: str | None = None
    source_paths: list[str]
    source: list[str]
    mtime: datetime
    length: int
    digest: str
    links: list[str] = Field(default_factory=list)
    data: bytes | None = None
    """Raw content of a binary asset; `source` parts are empty when set."""

    @field_validator("data", mode="before")
    @classmethod
    def _decode_data(cls, value: Any) -> Any:
        if isinstance(value, str):
            return base64.b64decode(value)
        return value

    @field_serializer("data", when_used="json")
    def _encode_data(self, value: bytes | None) -> str | None:
        if value is None:
            return None
        return base64.b64encode(value).decode("ascii")

    @field_validator("mtime")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _check_sources(self) -> "ConcatenatedAsset":
        if len(self.source_paths) != len(self.source):
            raise ValueError("source and source_paths must have the same length")
        return self

    @property
    def body(self) -> str:
        """Final concatenated text."""
        return "".join(self.source)

    @property
    def digest_path(self) -> str:
        """Logical path with the digest embedded before the extension."""
        return DigestPathBuilder.digest_path(self.logical_path, self.digest)

    def __str__(self) -> str:
        return self.body

    def to_bytes(self) -> bytes:
        """Body encoded as UTF-8, or the raw content of a binary asset."""
        if self.data is not None:
            return self.data
        return self.body.encode("utf-8")

    def each_part(self) -> Iterator[str]:
        """Yield the body in source-sized parts (response body style)."""
        for part in self.source:
            if part:
                yield part

    def is_stale(self) -> bool:
        """
        Check if any source changed since the asset was built.

        Returns:
            True if a source file is missing or was modified after `mtime`
        """
        for path in self.source_paths:
            try:
                if file_mtime(path) > self.mtime:
                    return True
            except FileNotFoundError:
                return True
        return False

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain JSON-compatible dict."""
        return self.model_dump(mode="json")

    def to_json(self) -> str:
        """Serialize to a JSON string."""
        return self.model_dump_json()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConcatenatedAsset":
        """Rebuild an asset from `to_dict` output."""
        return cls.model_validate(data)

    @classmethod
    def from_json(cls, text: str) -> "ConcatenatedAsset":
        """Rebuild an asset from `to_json` output."""
        return cls.model_validate_json(text)
