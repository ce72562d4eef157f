"""Byte-stable JSON serialization for decode summaries.

Summaries printed by the CLI are compared in tests and diffed between
runs, so key order and separators must never depend on dict insertion
order or platform defaults.
"""

import json
from typing import Any


def canonical_dumps(obj: Any, pretty: bool = False) -> str:
    """
    Serialize ``obj`` with sorted keys and fixed separators.

    Args:
        obj: JSON-compatible object (e.g. ``DocumentSummary.model_dump()``)
        pretty: Indent two spaces per level instead of the compact form

    Returns:
        JSON string; non-ASCII characters are kept as-is
    """
    if pretty:
        return json.dumps(obj, sort_keys=True, indent=2, ensure_ascii=False)
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
