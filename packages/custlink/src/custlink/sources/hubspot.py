"""HubSpot CRM adapter: company and contact search."""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from custlink.config import SourceSettings
from custlink.sources.base import ApiSource, TokenProvider
from custlink.types import CrmCompany, CrmContact, CrmResults

log = structlog.get_logger()

PAGE_SIZE = 100

# Custom company property holding the Dwolla customer id
PAYMENTS_ID_PROPERTY = "dwolla_id"

COMPANY_PROPERTIES = [
    "name",
    "domain",
    PAYMENTS_ID_PROPERTY,
    "onboarding_step",
    "onboarding_status",
    "sob",
    "associated_policies",
]
CONTACT_PROPERTIES = ["firstname", "lastname", "email", "phone", "company"]


def _opt(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_company(obj: dict[str, Any]) -> CrmCompany:
    """Build a CrmCompany from a HubSpot company object.

    A missing id parses to "" and is dropped by the correlator.
    """
    props = obj.get("properties") or {}
    return CrmCompany(
        id=str(obj.get("id") or ""),
        name=props.get("name") or "",
        external_payments_id=_opt(props.get(PAYMENTS_ID_PROPERTY)),
        status=_opt(props.get("onboarding_status")),
        classification=_opt(props.get("sob")),
        domain=_opt(props.get("domain")),
    )


def parse_contact(obj: dict[str, Any]) -> CrmContact:
    props = obj.get("properties") or {}
    return CrmContact(
        id=str(obj.get("id") or ""),
        first_name=_opt(props.get("firstname")),
        last_name=_opt(props.get("lastname")),
        email=_opt(props.get("email")),
        phone=_opt(props.get("phone")),
        company_name=_opt(props.get("company")),
    )


class HubSpotSource(ApiSource):
    """CrmSource backed by the HubSpot CRM v3 object search API."""

    provider = "hubspot"

    @classmethod
    def from_settings(cls, settings: SourceSettings, tokens: TokenProvider) -> HubSpotSource:
        return cls(
            settings.hubspot_base_url,
            tokens,
            timeout=settings.request_timeout,
            max_results=settings.max_results,
        )

    async def search_by_email(self, email: str) -> CrmResults:
        contacts = await self._search(
            "contacts",
            [{"propertyName": "email", "operator": "EQ", "value": email}],
            CONTACT_PROPERTIES,
        )
        return CrmResults(contacts=tuple(parse_contact(c) for c in contacts))

    async def search_by_name(self, name: str) -> CrmResults:
        contacts, companies = await asyncio.gather(
            self._search("contacts", _contact_name_filters(name), CONTACT_PROPERTIES),
            self._search(
                "companies",
                [{"propertyName": "name", "operator": "CONTAINS_TOKEN", "value": name}],
                COMPANY_PROPERTIES,
            ),
        )
        return CrmResults(
            companies=tuple(parse_company(c) for c in companies),
            contacts=tuple(parse_contact(c) for c in contacts),
        )

    async def _search(
        self,
        object_type: str,
        filters: list[dict[str, str]],
        properties: list[str],
    ) -> list[dict[str, Any]]:
        """Run an object search, following paging cursors up to max_results."""
        results: list[dict[str, Any]] = []
        after: str | None = None

        while len(results) < self.max_results:
            body: dict[str, Any] = {
                "filterGroups": [{"filters": filters}],
                "properties": properties,
                "limit": min(PAGE_SIZE, self.max_results - len(results)),
            }
            if after:
                body["after"] = after

            data = await self._request("POST", f"/crm/v3/objects/{object_type}/search", json=body)
            results.extend(data.get("results") or [])
            after = ((data.get("paging") or {}).get("next") or {}).get("after")
            if not after:
                break

        log.debug("hubspot_search_done", object_type=object_type, count=len(results))
        return results[: self.max_results]


def _contact_name_filters(name: str) -> list[dict[str, str]]:
    parts = name.split()
    if len(parts) >= 2:
        return [
            {"propertyName": "firstname", "operator": "CONTAINS_TOKEN", "value": parts[0]},
            {"propertyName": "lastname", "operator": "CONTAINS_TOKEN", "value": parts[-1]},
        ]
    return [{"propertyName": "firstname", "operator": "CONTAINS_TOKEN", "value": name}]
