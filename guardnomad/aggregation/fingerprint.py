"""Deterministic request fingerprints used for cache, coalescing and scoping."""

import hashlib
import json
from typing import Any

PREFIX = "gn:"


def make_fingerprint(operation: str, params: dict[str, Any] | None = None) -> str:
    """Generate a deterministic key from operation name and parameters.

    Keys are sorted at every nesting level, so two dicts with the same
    items produce the same fingerprint regardless of construction order.
    """
    normalized = json.dumps(params or {}, sort_keys=True, ensure_ascii=False, default=str)
    content = f"{operation}:{normalized}"
    return f"{PREFIX}{hashlib.sha256(content.encode()).hexdigest()[:32]}"
