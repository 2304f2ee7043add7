"""Select expired outputs step."""
from collections import defaultdict
from datetime import datetime

from asset_pipeline.domain.entities.manifest import ManifestData, ManifestEntry


def _recency(item: tuple[str, ManifestEntry]) -> tuple[datetime, str]:
    entry = item[1]
    return entry.mtime, str((entry.model_extra or {}).get("compiled_at", ""))


def select_expired(data: ManifestData, keep: int, max_age: float, now: datetime) -> list[str]:
    """
    Select digest paths that retention allows removing.
    
    For each logical path an entry survives if it is the current version,
    one of the `keep` most recent versions, or younger than `max_age`
    seconds. Future mtimes count as age zero.
    
    Args:
        data: Manifest data
        keep: Number of most recent versions to keep per logical path
        max_age: Age in seconds below which versions are always kept
        now: Current time
        
    Returns:
        Digest paths to remove, oldest first within each logical path
    """
    versions: dict[str, list[tuple[str, ManifestEntry]]] = defaultdict(list)
    for digest_path, entry in data.files.items():
        versions[entry.logical_path].append((digest_path, entry))
    
    expired: list[str] = []
    for logical_path, entries in versions.items():
        current = data.assets.get(logical_path)
        entries.sort(key=_recency, reverse=True)
        for index, (digest_path, entry) in enumerate(entries):
            age = max(0.0, (now - entry.mtime).total_seconds())
            if digest_path == current or index < keep or age < max_age:
                continue
            expired.append(digest_path)
    
    expired.reverse()
    return expired
