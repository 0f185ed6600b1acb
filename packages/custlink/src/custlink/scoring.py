"""Name similarity scoring."""

from __future__ import annotations

import math

from rapidfuzz.distance import Levenshtein

from custlink.normalize import name_key


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance with unit costs for insert, delete and substitute."""
    return Levenshtein.distance(a, b)


def name_similarity(
    a: str | None,
    b: str | None,
    *,
    strip_designators: bool = False,
) -> float:
    """Similarity in [0, 1] between two names: 1 - distance / max(len).

    Both names are normalized with name_key first. Missing names, or names
    that normalize to nothing, score 0.
    """
    a_key = name_key(a, strip_designators=strip_designators)
    b_key = name_key(b, strip_designators=strip_designators)
    if not a_key or not b_key:
        return 0.0

    distance = levenshtein_distance(a_key, b_key)
    return 1.0 - distance / max(len(a_key), len(b_key))


def to_confidence(similarity: float) -> int:
    """Scale a similarity to an integer percentage, rounding halves up."""
    return int(math.floor(similarity * 100 + 0.5))
