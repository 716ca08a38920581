"""Shared utility functions used across the service."""

from __future__ import annotations

import json
import re
import secrets
import time
from typing import Any

_SCORE_RE = re.compile(r"^\s*(\d+)\s*/\s*(\d+)\s*$")


def parse_score(score: str | None, default_total: int = 8) -> tuple[int, int]:
    """Split a ``"correct/total"`` score into integers.

    Malformed or missing scores count as 0 correct out of ``default_total``.
    """
    if not score:
        return 0, default_total
    match = _SCORE_RE.match(score)
    if not match:
        return 0, default_total
    correct, total = int(match.group(1)), int(match.group(2))
    if total <= 0:
        total = default_total
    return min(correct, total), total


def truncate(text: str | None, limit: int, marker: str = "\n...(log truncated)...") -> str:
    """Cut ``text`` to ``limit`` characters, appending ``marker`` when shortened."""
    if not text:
        return ""
    if len(text) <= limit:
        return text
    return text[:limit] + marker


def new_submission_id() -> str:
    return f"sub_{int(time.time() * 1000)}_{secrets.token_hex(5)}"


def dump_json(value: Any) -> str | None:
    """Serialize optional structured payloads for text columns."""
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)
