"""Directive parsing service."""
import re
import shlex

from asset_pipeline.domain.entities.directive import Directive, DirectiveKind, DirectiveScan


# Leading comment blocks: /* */, ### ###, runs of // lines, runs of # lines.
HEADER_PATTERN = re.compile(
    r"""
    \A(?:
        \s*
        (?:
            /\*.*?\*/
          | \#\#\#.*?\#\#\#
          | (?://[^\n]*(?:\n|\Z))+
          | (?:\#[^\n]*(?:\n|\Z))+
        )
    )+
    """,
    re.VERBOSE | re.DOTALL,
)

DIRECTIVE_PATTERN = re.compile(r"^[^\w\n]*=\s*(\w+.*?)(\*/)?\s*$")

DIRECTIVE_NAMES = {kind.value: kind for kind in DirectiveKind}


def _parse_directive_line(line: str) -> tuple[DirectiveKind, list[str]] | None:
    """
    Match a single header line against the directive syntax.

    Returns:
        (kind, arguments) or None if the line is not a recognised directive
    """
    match = DIRECTIVE_PATTERN.match(line)
    if match is None:
        return None

    try:
        words = shlex.split(match.group(1))
    except ValueError:
        return None

    if not words or words[0] not in DIRECTIVE_NAMES:
        return None
    return DIRECTIVE_NAMES[words[0]], words[1:]


def parse_directives(text: str) -> DirectiveScan:
    """
    Scan rendered text for header directives.

    Only lines inside the leading comment header are considered. Matched
    directive lines are removed from the body; everything else, including
    unrecognised directives, is kept verbatim.

    Args:
        text: Rendered file text

    Returns:
        DirectiveScan with the stripped body, directives in file order and
        the offset right after the header in the stripped body
    """
    header_match = HEADER_PATTERN.match(text)
    header = header_match.group(0) if header_match else ""

    kept: list[str] = []
    parsed: list[tuple[DirectiveKind, list[str], int]] = []
    for number, line in enumerate(header.splitlines(keepends=True), start=1):
        result = _parse_directive_line(line.rstrip("\r\n"))
        if result is None:
            kept.append(line)
        else:
            parsed.append((result[0], result[1], number))

    stripped_header = "".join(kept)
    header_end = len(stripped_header)
    body = stripped_header + text[len(header):]

    directives = []
    for kind, arguments, number in parsed:
        directives.append(
            Directive(
                kind=kind,
                argument=arguments[0] if arguments else None,
                line=number,
                insertion_offset=header_end if kind == DirectiveKind.INCLUDE else None,
            )
        )

    return DirectiveScan(body=body, directives=directives, header_end=header_end)
