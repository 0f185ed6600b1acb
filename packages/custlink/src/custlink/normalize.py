"""Normalization of names and emails before comparison."""

from __future__ import annotations

import unicodedata

from custlink.designators import strip_designators as _strip, tokenize


def name_key(name: str | None, *, strip_designators: bool = False) -> str:
    """Collapse a business or person name to a lower-case alphanumeric key.

    With strip_designators, trailing legal designators ("Inc", "LLC",
    "Corp.") are dropped first, as long as one token remains.
    """
    if not name:
        return ""

    tokens = tokenize(unicodedata.normalize("NFKC", name))
    if strip_designators:
        tokens, _ = _strip(tokens, min_tokens=1)
    return "".join(tokens)


def email_key(email: str | None) -> str:
    if not email:
        return ""
    return email.strip().lower()


def text_key(value: str | None) -> str:
    """Case-insensitive key for free-text equality (company name fields)."""
    if not value:
        return ""
    return value.strip().lower()


def full_name(first: str | None, last: str | None) -> str:
    """Join first and last name with a single space, ignoring missing parts."""
    parts = [p.strip() for p in (first, last) if p and p.strip()]
    return " ".join(parts)
