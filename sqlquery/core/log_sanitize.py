import re
from typing import Any, Dict


_REDACTED = "<REDACTED>"


# Only obvious secrets are masked.
_SENSITIVE_KEY_FRAGMENTS = {
    "password",
    "apikey",
    "api_key",
    "authorization",
    "token",
    "secret",
}


_SECRET_PATTERNS = [
    # Signature component of a signed blob URL
    re.compile(r"(?<=[?&]sig=)[^&\s\"']+", re.IGNORECASE),
    # apikey query parameter of a provider URL
    re.compile(r"(?<=[?&]apikey=)[^&\s\"']+", re.IGNORECASE),
    re.compile(r"\bBearer\s+[A-Za-z0-9\-\._=]{10,}\b", re.IGNORECASE),
]


def _sanitize_string(value: str) -> str:
    result = value
    for pattern in _SECRET_PATTERNS:
        result = pattern.sub(_REDACTED, result)
    return result


def _is_sensitive_key(key: Any) -> bool:
    k = str(key).strip().lower() if key is not None else ""
    return bool(k) and any(frag in k for frag in _SENSITIVE_KEY_FRAGMENTS)


def sanitize_for_log(obj: Any, *, _depth: int = 0, _max_depth: int = 50) -> Any:
    """
    Mask obvious secrets in data headed for SmartLogger.

    - dict: values under sensitive keys (password, apiKey, ...) are replaced whole
    - str: signed-URL signatures, apikey query params and bearer tokens are replaced
    - list/tuple: sanitized element-wise
    - anything else is returned unchanged
    """
    if _depth >= _max_depth or obj is None:
        return obj

    if isinstance(obj, str):
        return _sanitize_string(obj)

    if isinstance(obj, dict):
        sanitized: Dict[Any, Any] = {}
        for k, v in obj.items():
            if _is_sensitive_key(k):
                sanitized[k] = _REDACTED
            else:
                sanitized[k] = sanitize_for_log(v, _depth=_depth + 1, _max_depth=_max_depth)
        return sanitized

    if isinstance(obj, (list, tuple)):
        items = [sanitize_for_log(v, _depth=_depth + 1, _max_depth=_max_depth) for v in obj]
        return tuple(items) if isinstance(obj, tuple) else items

    return obj
