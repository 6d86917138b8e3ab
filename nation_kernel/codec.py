# file: nation_kernel/codec.py
"""
Nation Kernel — Record Codec

JSON text and base64 blob forms of a NationRecord.

  - encode_record / decode_record: plain JSON text (2-space indent).
  - encode_blob / decode_blob: base64 of that text, the shape the GitHub
    contents API stores and returns.

Decoding validates; a payload that does not describe a usable record
raises MalformedRecordError. Unknown keys survive a decode/encode cycle.
"""

from __future__ import annotations

import base64
import binascii
import json

from .domain_types import NationRecord
from .invariants import MalformedRecordError


# ══════════════════════════════════════════════════════════════
# JSON
# ══════════════════════════════════════════════════════════════

def encode_record(record: NationRecord) -> str:
    """Serialize a record to indented JSON, non-ASCII kept as-is."""
    return json.dumps(record.to_dict(), ensure_ascii=False, indent=2)


def decode_record(json_str: str) -> NationRecord:
    """Parse and validate a record from JSON text."""
    try:
        raw = json.loads(json_str)
    except (json.JSONDecodeError, TypeError) as exc:
        raise MalformedRecordError("record", f"Invalid JSON: {exc}") from exc
    return NationRecord.from_dict(raw)


# ══════════════════════════════════════════════════════════════
# Base64
# ══════════════════════════════════════════════════════════════

def encode_blob(record: NationRecord) -> str:
    """JSON text -> UTF-8 -> base64 (ASCII)."""
    return base64.b64encode(encode_record(record).encode("utf-8")).decode("ascii")


def decode_blob(content_b64: str) -> NationRecord:
    """
    Inverse of encode_blob.

    The contents API wraps base64 at 60 columns, so embedded newlines
    are stripped before decoding.
    """
    cleaned = "".join(content_b64.split())
    try:
        text = base64.b64decode(cleaned, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise MalformedRecordError("record", f"Invalid base64 content: {exc}") from exc
    return decode_record(text)
