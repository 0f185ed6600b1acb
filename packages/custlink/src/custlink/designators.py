"""Legal designator handling for business names."""

from __future__ import annotations

import re

# Tokens that mark a query as a business name
BUSINESS_SUFFIXES: frozenset[str] = frozenset({"inc", "llc", "corp", "ltd", "co", "company"})

DESIGNATORS: frozenset[str] = BUSINESS_SUFFIXES | frozenset({
    "incorporated",
    "corporation",
    "limited",
    "llp",
    "lp",
    "plc",
    "pllc",
    "pc",
    "gmbh",
})

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def tokenize(name: str) -> list[str]:
    """Lower-case, split on whitespace and strip punctuation from each token.

    "L.L.C." becomes "llc" and "Acme," becomes "acme"; tokens left empty are
    dropped.
    """
    tokens: list[str] = []
    for raw in name.lower().split():
        cleaned = _NON_ALNUM.sub("", raw)
        if cleaned:
            tokens.append(cleaned)
    return tokens


def is_designator(token: str) -> bool:
    """Check if a token is a legal designator."""
    return token in DESIGNATORS


def has_business_suffix(tokens: list[str]) -> bool:
    return any(t in BUSINESS_SUFFIXES for t in tokens)


def strip_designators(
    tokens: list[str],
    *,
    min_tokens: int = 1,
) -> tuple[list[str], list[str]]:
    """Strip trailing legal designators from a token list.

    Returns:
        Tuple of (core_tokens, removed_designators).
        If stripping would leave fewer than min_tokens, returns original
        tokens unchanged and an empty removed list.
    """
    suffix_start = len(tokens)
    for i in range(len(tokens) - 1, -1, -1):
        if is_designator(tokens[i]):
            suffix_start = i
        else:
            break

    core = list(tokens[:suffix_start])
    removed = list(tokens[suffix_start:])

    if len(core) < min_tokens:
        return list(tokens), []

    return core, removed
