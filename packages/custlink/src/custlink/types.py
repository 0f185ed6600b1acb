"""Core types for the custlink correlation system."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Literal

LinkType = Literal["by-external-id", "by-email", "by-name-similarity", "none"]
Severity = Literal["warning", "error"]
CustomerType = Literal["business", "personal"]
QueryType = Literal["email", "name", "business", "unknown"]


@dataclass(frozen=True)
class CrmCompany:
    id: str
    name: str
    external_payments_id: str | None = None
    status: str | None = None
    classification: str | None = None
    domain: str | None = None


@dataclass(frozen=True)
class CrmContact:
    id: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    # Free text, only used to guess the owning company
    company_name: str | None = None


@dataclass(frozen=True)
class PaymentsCustomer:
    id: str
    type: CustomerType
    email: str
    status: str
    created: str = ""
    business_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    @property
    def display_name(self) -> str:
        if self.business_name:
            return self.business_name
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


@dataclass(frozen=True)
class PaymentsTransfer:
    id: str
    status: str
    amount: str
    currency: str
    created: str
    source_id: str | None = None
    destination_id: str | None = None

    @property
    def amount_decimal(self) -> Decimal:
        return Decimal(self.amount)

    def involves(self, party_id: str) -> bool:
        return party_id in (self.source_id, self.destination_id)


@dataclass(frozen=True)
class DataInconsistency:
    field: str
    crm_value: str | None
    payments_value: str | None
    severity: Severity
    message: str


@dataclass(frozen=True)
class CorrelationResult:
    is_linked: bool
    link_type: LinkType
    confidence: int
    inconsistencies: tuple[DataInconsistency, ...] = ()


UNLINKED = CorrelationResult(is_linked=False, link_type="none", confidence=0)


def transfers_for(customer_id: str, transfers: Iterable[PaymentsTransfer]) -> tuple[PaymentsTransfer, ...]:
    """Transfers where the customer is the source or destination party."""
    return tuple(t for t in transfers if t.involves(customer_id))


@dataclass(frozen=True)
class CorrelatedCustomerView:
    company: CrmCompany | None = None
    contacts: tuple[CrmContact, ...] = ()
    customer: PaymentsCustomer | None = None
    transfers: tuple[PaymentsTransfer, ...] = ()
    correlation: CorrelationResult = field(default=UNLINKED)

    def with_transfers(self, transfers: Iterable[PaymentsTransfer]) -> CorrelatedCustomerView:
        """Return a copy carrying the given transfers that belong to this view's customer."""
        if self.customer is None:
            return self
        return replace(self, transfers=transfers_for(self.customer.id, transfers))


@dataclass(frozen=True)
class SearchSummary:
    total_results: int
    linked_accounts: int
    unlinked_from_crm: int
    unlinked_from_payments: int
    inconsistency_count: int


@dataclass(frozen=True)
class SearchResponse:
    query: str
    query_type: QueryType
    views: tuple[CorrelatedCustomerView, ...]
    summary: SearchSummary


@dataclass(frozen=True)
class CrmResults:
    companies: tuple[CrmCompany, ...] = ()
    contacts: tuple[CrmContact, ...] = ()
