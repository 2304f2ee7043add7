"""Directive entity."""
from enum import Enum
from pydantic import BaseModel, ConfigDict


class DirectiveKind(str, Enum):
    """Directive kinds recognised in a source file header."""
    REQUIRE = "require"
    INCLUDE = "include"
    REQUIRE_TREE = "require_tree"
    REQUIRE_SELF = "require_self"
    REQUIRE_DIRECTORY = "require_directory"
    DEPEND_ON = "depend_on"
    DEPEND_ON_ASSET = "depend_on_asset"
    LINK = "link"


class Directive(BaseModel):
    """A directive parsed from a source file header."""
    model_config = ConfigDict(frozen=True)

    kind: DirectiveKind
    argument: str | None = None
    line: int
    insertion_offset: int | None = None
    """Offset in the stripped body where included text is spliced (include only)."""


class DirectiveScan(BaseModel):
    """Result of scanning a rendered file for directives."""
    model_config = ConfigDict(frozen=True)

    body: str
    """Rendered text with directive lines removed."""
    directives: list[Directive]
    header_end: int
