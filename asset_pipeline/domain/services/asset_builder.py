"""Asset assembly service."""
from typing import Iterable

from asset_pipeline.domain.entities.asset import ConcatenatedAsset
from asset_pipeline.domain.entities.source_record import SourceRecord
from asset_pipeline.infra.common.errors import PipelineError
from asset_pipeline.infra.common.hash_utils import compute_source_digest


def expand_inclusions(record: SourceRecord, records_by_path: dict[str, SourceRecord], cache: dict[str, str]) -> str:
    """
    Splice included bodies into a record's body.

    Inclusions sharing an offset keep directive order. Included records are
    expanded first, so nested includes end up inline as well.

    Args:
        record: Record whose body receives the inclusions
        records_by_path: All records of the build keyed by path
        cache: Expanded bodies already computed in this build

    Returns:
        Body with every inclusion spliced at its offset
    """
    if record.path in cache:
        return cache[record.path]

    if not record.inclusions:
        text = record.body
    else:
        parts = []
        cursor = 0
        for inclusion in sorted(record.inclusions, key=lambda item: item.offset):
            parts.append(record.body[cursor:inclusion.offset])
            parts.append(expand_inclusions(records_by_path[inclusion.path], records_by_path, cache))
            cursor = inclusion.offset
        parts.append(record.body[cursor:])
        text = "".join(parts)

    cache[record.path] = text
    return text


def build_asset(
    records: list[SourceRecord],
    entry_path: str,
    logical_path: str,
    links: Iterable[str] = (),
) -> ConcatenatedAsset:
    """
    Build a concatenated asset from resolved records.

    Args:
        records: Source records in build order
        entry_path: Absolute path of the entry file
        logical_path: Logical path of the entry file
        links: Paths linked from the resolution

    Returns:
        ConcatenatedAsset

    Raises:
        PipelineError: If the entry is not among the records
    """
    records_by_path = {record.path: record for record in records}
    entry = records_by_path.get(entry_path)
    if entry is None:
        raise PipelineError(f"Entry {entry_path} is not part of the resolved sources")

    cache: dict[str, str] = {}
    source = [
        expand_inclusions(record, records_by_path, cache) if record.role == "bundle" else ""
        for record in records
    ]
    body = "".join(source)
    length = len(entry.data) if entry.data is not None else len(body.encode("utf-8"))

    return ConcatenatedAsset(
        logical_path=logical_path,
        pathname=entry_path,
        content_type=entry.content_type,
        format_extension=entry.format_extension,
        source_paths=[record.path for record in records],
        source=source,
        mtime=max(record.mtime for record in records),
        length=length,
        digest=compute_source_digest(
            (record.path, record.data if record.data is not None else record.body) for record in records
        ),
        links=[path for path in links if path != entry_path],
        data=entry.data,
    )
