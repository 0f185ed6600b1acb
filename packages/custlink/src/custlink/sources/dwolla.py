"""Dwolla payments adapter: customer search and transfer listing."""

from __future__ import annotations

from typing import Any

import structlog

from custlink.config import SourceSettings
from custlink.sources.base import ApiSource, TokenProvider
from custlink.types import PaymentsCustomer, PaymentsTransfer

log = structlog.get_logger()

PAGE_SIZE = 200
TRANSFER_PAGE_SIZE = 50


def parse_customer(obj: dict[str, Any]) -> PaymentsCustomer:
    """Build a PaymentsCustomer from a Dwolla customer resource.

    Dwolla also reports "unverified" and "receive-only" customer types; any
    customer that is not a business is treated as personal.
    """
    business_name = obj.get("businessName") or None
    return PaymentsCustomer(
        id=str(obj.get("id") or ""),
        type="business" if obj.get("type") == "business" or business_name else "personal",
        email=obj.get("email") or "",
        status=obj.get("status") or "",
        created=obj.get("created") or "",
        business_name=business_name,
        first_name=obj.get("firstName") or None,
        last_name=obj.get("lastName") or None,
    )


def _party_id(obj: dict[str, Any], side: str) -> str | None:
    party = obj.get(side) or {}
    if party.get("id"):
        return str(party["id"])
    href = ((obj.get("_links") or {}).get(side) or {}).get("href")
    if href:
        return href.rstrip("/").rsplit("/", 1)[-1]
    return None


def parse_transfer(obj: dict[str, Any]) -> PaymentsTransfer:
    amount = obj.get("amount") or {}
    return PaymentsTransfer(
        id=str(obj.get("id") or ""),
        status=obj.get("status") or "",
        amount=str(amount.get("value", "0")),
        currency=amount.get("currency") or "USD",
        created=obj.get("created") or "",
        source_id=_party_id(obj, "source"),
        destination_id=_party_id(obj, "destination"),
    )


class DwollaSource(ApiSource):
    """PaymentsSource backed by the Dwolla v2 API."""

    provider = "dwolla"
    default_headers = {
        "Accept": "application/vnd.dwolla.v1.hal+json",
        "Content-Type": "application/vnd.dwolla.v1.hal+json",
    }

    @classmethod
    def from_settings(cls, settings: SourceSettings, tokens: TokenProvider) -> DwollaSource:
        return cls(
            settings.dwolla_base_url,
            tokens,
            timeout=settings.request_timeout,
            max_results=settings.max_results,
        )

    async def search_by_email(self, email: str) -> list[PaymentsCustomer]:
        items = await self._list("/customers", {"email": email, "limit": PAGE_SIZE}, "customers")
        return [parse_customer(c) for c in items]

    async def search_by_name(self, name: str) -> list[PaymentsCustomer]:
        """Filter the customer listing on full name or business name containment."""
        items = await self._list("/customers", {"limit": PAGE_SIZE}, "customers")
        needle = name.lower()
        customers = [parse_customer(c) for c in items]
        return [
            c for c in customers
            if needle in f"{c.first_name or ''} {c.last_name or ''}".lower()
            or needle in (c.business_name or "").lower()
        ]

    async def list_transfers(self, customer_id: str) -> list[PaymentsTransfer]:
        items = await self._list(
            f"/customers/{customer_id}/transfers",
            {"limit": TRANSFER_PAGE_SIZE},
            "transfers",
        )
        return [parse_transfer(t) for t in items]

    async def _list(self, path: str, params: dict[str, Any], key: str) -> list[dict[str, Any]]:
        """Collect embedded items, following HAL next links up to max_results."""
        items: list[dict[str, Any]] = []
        url: str | None = path
        query: dict[str, Any] | None = params

        while url and len(items) < self.max_results:
            data = await self._request("GET", url, params=query)
            items.extend((data.get("_embedded") or {}).get(key) or [])
            url = ((data.get("_links") or {}).get("next") or {}).get("href")
            # next hrefs already carry their query string
            query = None

        log.debug("dwolla_list_done", path=path, count=len(items))
        return items[: self.max_results]
