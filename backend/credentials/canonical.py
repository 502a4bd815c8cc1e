from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping


def canonicalize(data: Mapping[str, Any]) -> str:
    """Deterministic JSON text for a credential payload.

    Keys are sorted at every nesting level, separators carry no whitespace and
    non-ASCII text is kept as-is (UTF-8), so logically equal payloads always
    serialize to identical text.

    `data` must be JSON-native (str keys; str, int, finite float, bool, None,
    lists and nested mappings). Anything else, NaN/Infinity included, raises
    ValueError or TypeError. Credential callers go through
    `services.credential_payload`, which reduces every field to text first.
    """

    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def hash_canonical(raw_json: str) -> str:
    return hashlib.sha256(raw_json.encode("utf-8")).hexdigest()


def hash_credential(data: Mapping[str, Any]) -> str:
    return hash_canonical(canonicalize(data))
