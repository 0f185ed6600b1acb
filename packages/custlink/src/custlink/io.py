"""JSON snapshot input and CSV/JSONL output for correlated views."""

from __future__ import annotations

import csv
import json
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from custlink.sources.dwolla import parse_customer, parse_transfer
from custlink.sources.hubspot import parse_company, parse_contact
from custlink.types import (
    CorrelatedCustomerView,
    CorrelationResult,
    CrmCompany,
    CrmContact,
    DataInconsistency,
    PaymentsCustomer,
    PaymentsTransfer,
    SearchSummary,
)


@dataclass
class Snapshot:
    """Raw search results from both platforms, parsed into records."""

    companies: list[CrmCompany]
    contacts: list[CrmContact]
    customers: list[PaymentsCustomer]
    transfers: list[PaymentsTransfer]


def parse_snapshot(data: dict[str, Any]) -> Snapshot:
    """Parse a dict of raw HubSpot and Dwolla objects.

    Keys: "companies" and "contacts" hold HubSpot objects, "customers" and
    "transfers" hold Dwolla resources. Missing keys mean empty lists.
    """
    return Snapshot(
        companies=[parse_company(o) for o in data.get("companies") or []],
        contacts=[parse_contact(o) for o in data.get("contacts") or []],
        customers=[parse_customer(o) for o in data.get("customers") or []],
        transfers=[parse_transfer(o) for o in data.get("transfers") or []],
    )


def read_snapshot(path: str | Path) -> Snapshot:
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        return parse_snapshot(json.load(f))


def view_to_dict(view: CorrelatedCustomerView) -> dict[str, Any]:
    """JSON-ready shape of a view; tuples become lists."""
    return {
        "crm": {
            "company": asdict(view.company) if view.company else None,
            "contacts": [asdict(c) for c in view.contacts],
        },
        "payments": {
            "customer": asdict(view.customer) if view.customer else None,
            "transfers": [asdict(t) for t in view.transfers],
        },
        "correlation": {
            "is_linked": view.correlation.is_linked,
            "link_type": view.correlation.link_type,
            "confidence": view.correlation.confidence,
            "inconsistencies": [asdict(i) for i in view.correlation.inconsistencies],
        },
    }


def view_from_dict(data: dict[str, Any]) -> CorrelatedCustomerView:
    """Inverse of view_to_dict."""
    crm = data.get("crm") or {}
    payments = data.get("payments") or {}
    correlation = data.get("correlation") or {}
    return CorrelatedCustomerView(
        company=CrmCompany(**crm["company"]) if crm.get("company") else None,
        contacts=tuple(CrmContact(**c) for c in crm.get("contacts") or []),
        customer=PaymentsCustomer(**payments["customer"]) if payments.get("customer") else None,
        transfers=tuple(PaymentsTransfer(**t) for t in payments.get("transfers") or []),
        correlation=CorrelationResult(
            is_linked=bool(correlation.get("is_linked", False)),
            link_type=correlation.get("link_type", "none"),
            confidence=int(correlation.get("confidence", 0)),
            inconsistencies=tuple(
                DataInconsistency(**i) for i in correlation.get("inconsistencies") or []
            ),
        ),
    )


def summary_to_dict(summary: SearchSummary) -> dict[str, int]:
    return asdict(summary)


ROW_FIELDS = [
    "crm_company_id",
    "crm_company_name",
    "crm_contact_ids",
    "payments_customer_id",
    "payments_customer_name",
    "payments_status",
    "is_linked",
    "link_type",
    "confidence",
    "transfer_count",
    "inconsistencies",
]


def view_to_row(view: CorrelatedCustomerView) -> dict[str, Any]:
    """Flatten a view into one table row."""
    return {
        "crm_company_id": view.company.id if view.company else "",
        "crm_company_name": view.company.name if view.company else "",
        "crm_contact_ids": "|".join(c.id for c in view.contacts),
        "payments_customer_id": view.customer.id if view.customer else "",
        "payments_customer_name": view.customer.display_name if view.customer else "",
        "payments_status": view.customer.status if view.customer else "",
        "is_linked": view.correlation.is_linked,
        "link_type": view.correlation.link_type,
        "confidence": view.correlation.confidence,
        "transfer_count": len(view.transfers),
        "inconsistencies": "|".join(
            f"{i.severity}:{i.field}" for i in view.correlation.inconsistencies
        ),
    }


def write_views(views: Sequence[CorrelatedCustomerView], path: str | Path) -> None:
    """Write views to CSV (one flat row each) or JSONL (full shape)."""
    path = Path(path)

    if path.suffix == ".jsonl":
        with path.open("w", encoding="utf-8") as f:
            for view in views:
                f.write(json.dumps(view_to_dict(view)) + "\n")
        return

    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=ROW_FIELDS)
        writer.writeheader()
        for view in views:
            writer.writerow(view_to_row(view))
