"""randrelay.security.redaction

Secret redaction helpers.

The relay holds a hot signing key. Randomness, commitments and revealed values
are public and stay readable; the key must never reach a log line.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Iterable
from typing import Any

_REDACTION_PATTERNS: list[tuple[str, str]] = [
    # Generic key/value
    (r"(?i)(private[_-]?key|secret_key|password|mnemonic)\s*[:=]\s*[^\s\"',}]+", r"\1=[REDACTED]"),
]

_SENSITIVE_FIELD_NAMES = {
    "password",
    "token",
    "private_key",
    "seed",
    "mnemonic",
    "auth",
    "authorization",
}


def redact_secrets(text: str, known: Iterable[str] = ()) -> str:
    """Redact generic secret patterns and any exact ``known`` secret values."""

    out = text
    for pattern, repl in _REDACTION_PATTERNS:
        out = re.sub(pattern, repl, out)
    for secret in known:
        bare = str(secret or "").removeprefix("0x")
        if bare:
            out = out.replace(bare, "[REDACTED]")
    return out


def sanitize_for_log(data: dict[str, Any], known: Iterable[str] = ()) -> dict[str, Any]:
    """Deep-copy and redact sensitive fields + embedded secrets."""

    known = tuple(known)

    def _walk(obj: Any) -> Any:
        if isinstance(obj, dict):
            new: dict[str, Any] = {}
            for k, v in obj.items():
                if str(k).lower() in _SENSITIVE_FIELD_NAMES:
                    new[k] = "[REDACTED]" if v else v
                else:
                    new[k] = _walk(v)
            return new
        if isinstance(obj, (list, tuple)):
            return [_walk(v) for v in obj]
        if isinstance(obj, str):
            return redact_secrets(obj, known)
        return obj

    return _walk(copy.deepcopy(data))
