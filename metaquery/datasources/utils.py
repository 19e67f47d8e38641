from __future__ import annotations

import json
from typing import Any, Iterable, Mapping


REDACTED = "__REDACTED__"

SECRET_KEYS = frozenset({"password", "passwd", "secret", "token", "accesskey", "secretkey", "authentication"})


def _is_secret(key: str, secret_keys: Iterable[str]) -> bool:
    lowered = key.lower().replace("_", "").replace("-", "").replace(".", "")
    return any(s in lowered for s in secret_keys)


def redact_params(params: Mapping[str, Any] | None, secret_keys: Iterable[str] = SECRET_KEYS) -> dict:
    """Return a deep copy of connect params with secret values replaced, safe for logs."""
    if not params:
        return {}
    keys = tuple(secret_keys)

    def walk(node: Any) -> Any:
        if isinstance(node, Mapping):
            return {k: (REDACTED if _is_secret(str(k), keys) and v not in (None, "") else walk(v)) for k, v in node.items()}
        if isinstance(node, list):
            return [walk(v) for v in node]
        return node

    return walk(params)


def parse_string_list(value: Any) -> list[str]:
    """Accept a literal list or a JSON encoded list of strings; anything else raises ValueError."""
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    try:
        decoded = json.loads(str(value))
    except json.JSONDecodeError as e:
        raise ValueError(f"not a JSON list: {value!r}") from e
    if not isinstance(decoded, list):
        raise ValueError(f"not a JSON list: {value!r}")
    return [str(v) for v in decoded]
