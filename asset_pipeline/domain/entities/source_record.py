"""Source record entities."""
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field


SourceRole = Literal["bundle", "inline", "dependency"]


class RenderedFile(BaseModel):
    """Output of the render collaborator for one file."""
    model_config = ConfigDict(frozen=True)

    path: str
    text: str
    content_type: str
    format_extension: str | None = None
    mtime: datetime
    data: bytes | None = None
    """Raw content of a binary file; `text` is empty when set."""


class Inclusion(BaseModel):
    """Body of another source spliced into a record at an offset."""
    model_config = ConfigDict(frozen=True)

    offset: int
    path: str


class SourceRecord(BaseModel):
    """One file's contribution to a build."""
    model_config = ConfigDict(frozen=True)

    path: str
    body: str
    content_type: str
    format_extension: str | None = None
    mtime: datetime
    role: SourceRole = "bundle"
    """bundle: own segment in sequence; inline: only spliced into an includer; dependency: never emitted."""
    inclusions: list[Inclusion] = Field(default_factory=list)
    data: bytes | None = None
    """Raw content of a binary source, passed through untouched."""
