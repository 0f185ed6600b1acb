"""Search query validation and type detection."""

from __future__ import annotations

import re

from custlink.designators import has_business_suffix, tokenize
from custlink.errors import InvalidQueryError
from custlink.types import QueryType

MIN_QUERY_LENGTH = 2
MAX_QUERY_LENGTH = 100

EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
PERSON_NAME_RE = re.compile(r"^[a-zA-Z\-']{2,}(\s[a-zA-Z\-']{2,})+$")
_ALLOWED_CHARS_RE = re.compile(r"^[a-zA-Z0-9\s@.\-_&',]+$")
_DANGEROUS_PATTERNS = [
    re.compile(r"<script", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
    re.compile(r"<iframe", re.IGNORECASE),
    re.compile(r"\beval\b", re.IGNORECASE),
    re.compile(r"\bexec\b", re.IGNORECASE),
]


def sanitize_search_query(query: str) -> str:
    """Trim, drop angle brackets, collapse whitespace and cap the length."""
    cleaned = query.strip().replace("<", "").replace(">", "")
    cleaned = re.sub(r"\s+", " ", cleaned)
    return cleaned[:MAX_QUERY_LENGTH]


def detect_query_type(query: str) -> QueryType:
    """Classify a query as an email, business name, person name or unknown.

    Unknown queries are searched as names by the adapters.
    """
    trimmed = query.strip()
    if "@" in trimmed:
        return "email"
    if has_business_suffix(tokenize(trimmed)):
        return "business"
    if PERSON_NAME_RE.match(trimmed):
        return "name"
    return "unknown"


def validate_search_query(query: str) -> QueryType:
    """Validate a query and return its type.

    Raises:
        InvalidQueryError: with a message suitable for the user.
    """
    trimmed = query.strip()
    if not trimmed:
        raise InvalidQueryError("Please enter a search query")
    if len(trimmed) < MIN_QUERY_LENGTH:
        raise InvalidQueryError(f"Search query must be at least {MIN_QUERY_LENGTH} characters")
    if len(trimmed) > MAX_QUERY_LENGTH:
        raise InvalidQueryError(f"Search query must be less than {MAX_QUERY_LENGTH} characters")
    if not _ALLOWED_CHARS_RE.match(trimmed):
        raise InvalidQueryError("Search query contains invalid characters")
    if any(p.search(trimmed) for p in _DANGEROUS_PATTERNS):
        raise InvalidQueryError("Invalid search query")

    query_type = detect_query_type(trimmed)
    if query_type == "email" and not EMAIL_RE.match(trimmed):
        raise InvalidQueryError("Please enter a valid email address")
    return query_type
