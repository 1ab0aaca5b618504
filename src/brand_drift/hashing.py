"""Content fingerprinting for the identical-snapshot short-circuit."""
from __future__ import annotations

import hashlib


def content_hash(content: str) -> str:
    """SHA-256 of the UTF-8 bytes of ``content`` as lower-case hex.

    This is the only bit-exact contract drift detection exposes: the sampling
    pipeline stores the same digest next to each LLM answer.
    """
    return hashlib.sha256(content.encode("utf-8")).hexdigest()
