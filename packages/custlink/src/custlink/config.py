"""Configuration for the custlink correlation system."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Literal


@dataclass
class Thresholds:
    link_similarity: float = 0.80
    name_mismatch_low: float = 0.50
    name_mismatch_high: float = 0.90


@dataclass
class ConfidenceBands:
    external_id: int = 100
    email: int = 85
    # Keeps 100 exclusive to explicit-id links
    name_match_ceiling: int = 99


@dataclass
class MatchingConfig:
    tie_break: Literal["first", "best"] = "first"
    fallback_on_dangling_id: bool = False


@dataclass
class NormalizationConfig:
    # Links compare names literally; legal forms are ignored only when
    # flagging near-identical business names on an existing link
    strip_designators_for_links: bool = False
    strip_designators_for_name_check: bool = True


def _default_status_map() -> dict[str, str]:
    return {
        "verified": "complete",
        "unverified": "in_progress",
        "suspended": "blocked",
    }


@dataclass
class CorrelationConfig:
    thresholds: Thresholds = field(default_factory=Thresholds)
    confidence: ConfidenceBands = field(default_factory=ConfidenceBands)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    normalization: NormalizationConfig = field(default_factory=NormalizationConfig)
    status_map: dict[str, str] = field(default_factory=_default_status_map)


@dataclass
class SearchConfig:
    timeout_seconds: float = 10.0
    slow_search_seconds: float = 2.5


@dataclass
class SourceSettings:
    """Connection settings for the CRM and payments APIs."""

    hubspot_base_url: str = "https://api.hubapi.com"
    hubspot_portal_id: str | None = None
    dwolla_environment: str = "sandbox"
    request_timeout: float = 10.0
    max_results: int = 200

    @property
    def dwolla_base_url(self) -> str:
        if self.dwolla_environment == "production":
            return "https://api.dwolla.com"
        return "https://api-sandbox.dwolla.com"

    @property
    def dwolla_dashboard_url(self) -> str:
        if self.dwolla_environment == "production":
            return "https://dashboard.dwolla.com"
        return "https://dashboard-sandbox.dwolla.com"

    @classmethod
    def from_env(cls) -> SourceSettings:
        return cls(
            hubspot_base_url=os.environ.get("HUBSPOT_BASE_URL", cls.hubspot_base_url),
            hubspot_portal_id=os.environ.get("HUBSPOT_PORTAL_ID") or None,
            dwolla_environment=os.environ.get("DWOLLA_ENVIRONMENT", cls.dwolla_environment),
            request_timeout=float(os.environ.get("CUSTLINK_REQUEST_TIMEOUT", cls.request_timeout)),
            max_results=int(os.environ.get("CUSTLINK_MAX_RESULTS", cls.max_results)),
        )
