"""Byte-stable JSON documents for report files and `--format json` output.

Reports are diffed across runs and machines: keys are sorted, there is no
insignificant whitespace, text stays literal UTF-8 and every document ends
with exactly one newline. Non-finite floats are rejected rather than written
as the non-standard NaN/Infinity tokens.
"""

import json
from typing import Any

_ENCODER = json.JSONEncoder(
    sort_keys=True,
    separators=(",", ":"),
    ensure_ascii=False,
    allow_nan=False,
)


def json_document(payload: Any) -> str:
    """Encode `payload` as one newline-terminated document; list order is kept."""
    return _ENCODER.encode(payload) + "\n"


def json_document_bytes(payload: Any) -> bytes:
    return json_document(payload).encode("utf-8")
