"""Hash utilities."""
import hashlib
from typing import Iterable


def compute_source_digest(sources: Iterable[tuple[str, str | bytes]]) -> str:
    """
    Compute SHA1 digest over ordered (path, body) pairs.

    Each part is length-prefixed so that moving bytes between a path and
    its body, or between neighbouring bodies, changes the digest. Text
    bodies are hashed as UTF-8, binary bodies as they are.

    Args:
        sources: Ordered (path, body) pairs

    Returns:
        SHA1 hash as hex string
    """
    digest = hashlib.sha1()
    for path, body in sources:
        if isinstance(body, str):
            body = body.encode("utf-8")
        for part in (path.encode("utf-8"), body):
            digest.update(str(len(part)).encode())
            digest.update(b":")
            digest.update(part)
    return digest.hexdigest()
