"""
Nation Kernel — Identifier Derivation

A nation's id is derived once, at founding, from its display name and
never regenerated afterwards.
"""

from __future__ import annotations

import re
import unicodedata

NATION_ID_PATTERN = re.compile(r"^[a-z0-9]+(?:_[a-z0-9]+)*$")

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def derive_nation_id(name: str) -> str:
    """
    "República de São Tomé" -> "republica_de_sao_tome"

    Accents are folded, runs of anything non-alphanumeric collapse to a
    single underscore, and leading/trailing underscores are stripped.
    """
    folded = unicodedata.normalize("NFKD", name)
    folded = "".join(ch for ch in folded if not unicodedata.combining(ch))
    nation_id = _NON_ALNUM.sub("_", folded.lower()).strip("_")
    if not nation_id:
        raise ValueError(f"Cannot derive a nation id from name {name!r}")
    return nation_id


def is_valid_nation_id(nation_id: str) -> bool:
    return bool(NATION_ID_PATTERN.match(nation_id))
