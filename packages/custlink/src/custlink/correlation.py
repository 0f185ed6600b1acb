"""Correlation of CRM and payments records: ordered matching passes and result assembly."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TypeVar

import structlog

from custlink.config import CorrelationConfig
from custlink.inconsistencies import (
    find_contact_inconsistencies,
    find_inconsistencies,
    missing_link_inconsistency,
    stale_link_inconsistency,
)
from custlink.normalize import email_key, text_key
from custlink.scoring import name_similarity, to_confidence
from custlink.types import (
    UNLINKED,
    CorrelatedCustomerView,
    CorrelationResult,
    CrmCompany,
    CrmContact,
    DataInconsistency,
    LinkType,
    PaymentsCustomer,
    PaymentsTransfer,
    SearchSummary,
    transfers_for,
)

log = structlog.get_logger()

R = TypeVar("R", CrmCompany, CrmContact, PaymentsCustomer, PaymentsTransfer)


@dataclass
class _Claims:
    """Ids already placed in a view during one correlate() call."""

    customers: set[str] = field(default_factory=set)
    companies: set[str] = field(default_factory=set)
    contacts: set[str] = field(default_factory=set)


def find_related_contacts(company: CrmCompany, contacts: Sequence[CrmContact]) -> list[CrmContact]:
    """Contacts whose free-text company field equals the company name, ignoring case.

    There is no real foreign key between the two, so this is a plain
    O(companies x contacts) scan over small per-search lists.
    """
    key = text_key(company.name)
    if not key:
        return []
    return [c for c in contacts if text_key(c.company_name) == key]


def find_related_company(contact: CrmContact, companies: Sequence[CrmCompany]) -> CrmCompany | None:
    """First company whose name equals the contact's company field, ignoring case."""
    key = text_key(contact.company_name)
    if not key:
        return None
    for company in companies:
        if text_key(company.name) == key:
            return company
    return None


def _well_formed(records: Sequence[R], kind: str) -> list[R]:
    """Drop records without a usable string id, and repeated ids after the first."""
    kept: list[R] = []
    seen: set[str] = set()
    for index, record in enumerate(records):
        record_id = getattr(record, "id", None)
        if not isinstance(record_id, str) or not record_id:
            log.warning("malformed_record_skipped", kind=kind, index=index, id=repr(record_id))
            continue
        if record_id in seen:
            log.warning("duplicate_record_skipped", kind=kind, index=index, id=record_id)
            continue
        seen.add(record_id)
        kept.append(record)
    return kept


class Correlator:
    """Links CRM companies and contacts to payments customers for one search."""

    def __init__(self, config: CorrelationConfig | None = None) -> None:
        self.config = config or CorrelationConfig()

    def correlate(
        self,
        companies: Sequence[CrmCompany],
        contacts: Sequence[CrmContact],
        customers: Sequence[PaymentsCustomer],
        transfers: Sequence[PaymentsTransfer] = (),
    ) -> list[CorrelatedCustomerView]:
        """Run the three matching passes in priority order, then place leftovers.

        Every company, contact and payments customer ends up in exactly one
        view. A payments customer claimed by an earlier pass is never
        reconsidered by a later one.
        """
        companies = _well_formed(companies, "crm_company")
        contacts = _well_formed(contacts, "crm_contact")
        customers = _well_formed(customers, "payments_customer")
        transfers = _well_formed(transfers, "payments_transfer")

        log.debug(
            "correlate_start",
            companies=len(companies),
            contacts=len(contacts),
            customers=len(customers),
            transfers=len(transfers),
        )

        claims = _Claims()
        views: list[CorrelatedCustomerView] = []
        views.extend(self._match_by_external_id(companies, contacts, customers, transfers, claims))
        views.extend(self._match_by_email(companies, contacts, customers, transfers, claims))
        views.extend(self._match_by_name(companies, contacts, customers, transfers, claims))
        views.extend(self._unlinked(companies, contacts, customers, transfers, claims))

        log.debug(
            "correlate_done",
            views=len(views),
            linked=sum(1 for v in views if v.correlation.is_linked),
        )
        return views

    def _match_by_external_id(
        self,
        companies: list[CrmCompany],
        contacts: list[CrmContact],
        customers: list[PaymentsCustomer],
        transfers: list[PaymentsTransfer],
        claims: _Claims,
    ) -> list[CorrelatedCustomerView]:
        by_id = {c.id: c for c in customers}
        views: list[CorrelatedCustomerView] = []

        for company in companies:
            if not company.external_payments_id:
                continue
            customer = by_id.get(company.external_payments_id)
            if customer is None or customer.id in claims.customers:
                continue

            views.append(self._link_company(
                company,
                customer,
                contacts,
                transfers,
                claims,
                link_type="by-external-id",
                confidence=self.config.confidence.external_id,
                inconsistencies=find_inconsistencies(company, customer, self.config),
            ))

        return views

    def _match_by_email(
        self,
        companies: list[CrmCompany],
        contacts: list[CrmContact],
        customers: list[PaymentsCustomer],
        transfers: list[PaymentsTransfer],
        claims: _Claims,
    ) -> list[CorrelatedCustomerView]:
        views: list[CorrelatedCustomerView] = []

        for contact in contacts:
            key = email_key(contact.email)
            if not key or contact.id in claims.contacts:
                continue
            customer = next(
                (
                    c for c in customers
                    if c.id not in claims.customers and email_key(c.email) == key
                ),
                None,
            )
            if customer is None:
                continue

            open_companies = [c for c in companies if c.id not in claims.companies]
            company = find_related_company(contact, open_companies)

            claims.customers.add(customer.id)
            claims.contacts.add(contact.id)
            if company is not None:
                claims.companies.add(company.id)

            log.debug(
                "correlated",
                link_type="by-email",
                contact_id=contact.id,
                customer_id=customer.id,
                company_id=company.id if company else None,
            )
            views.append(CorrelatedCustomerView(
                company=company,
                contacts=(contact,),
                customer=customer,
                transfers=transfers_for(customer.id, transfers),
                correlation=CorrelationResult(
                    is_linked=True,
                    link_type="by-email",
                    confidence=self.config.confidence.email,
                    inconsistencies=tuple(find_contact_inconsistencies(contact, customer, company)),
                ),
            ))

        return views

    def _match_by_name(
        self,
        companies: list[CrmCompany],
        contacts: list[CrmContact],
        customers: list[PaymentsCustomer],
        transfers: list[PaymentsTransfer],
        claims: _Claims,
    ) -> list[CorrelatedCustomerView]:
        known_ids = {c.id for c in customers}
        views: list[CorrelatedCustomerView] = []

        for company in companies:
            if company.id in claims.companies:
                continue

            stale_id = False
            if company.external_payments_id:
                # A company that declares an id only falls back to name
                # matching when that id is absent from this result set.
                dangling = company.external_payments_id not in known_ids
                if not (dangling and self.config.matching.fallback_on_dangling_id):
                    continue
                stale_id = True

            found = self._best_name_candidate(company, customers, claims)
            if found is None:
                continue
            customer, similarity = found

            inconsistencies = find_inconsistencies(company, customer, self.config)
            if stale_id:
                inconsistencies.append(stale_link_inconsistency(company, customer))
            else:
                inconsistencies.append(missing_link_inconsistency(customer, "consider linking"))

            confidence = self._name_confidence(similarity)
            views.append(self._link_company(
                company,
                customer,
                contacts,
                transfers,
                claims,
                link_type="by-name-similarity",
                confidence=confidence,
                inconsistencies=inconsistencies,
            ))

        return views

    def _name_confidence(self, similarity: float) -> int:
        """Similarity as a percentage, kept above the link threshold and below the id band."""
        floor = math.floor(self.config.thresholds.link_similarity * 100) + 1
        ceiling = self.config.confidence.name_match_ceiling
        return min(max(to_confidence(similarity), floor), ceiling)

    def _best_name_candidate(
        self,
        company: CrmCompany,
        customers: list[PaymentsCustomer],
        claims: _Claims,
    ) -> tuple[PaymentsCustomer, float] | None:
        """Pick an unclaimed customer whose business name clears the link threshold.

        With tie_break "first" the first customer in input order over the
        threshold wins; with "best" the highest similarity wins, earlier
        customers winning ties.
        """
        threshold = self.config.thresholds.link_similarity
        best: tuple[PaymentsCustomer, float] | None = None

        for customer in customers:
            if customer.id in claims.customers:
                continue
            similarity = name_similarity(
                company.name,
                customer.business_name or "",
                strip_designators=self.config.normalization.strip_designators_for_links,
            )
            if similarity <= threshold:
                continue
            if self.config.matching.tie_break == "first":
                return customer, similarity
            if best is None or similarity > best[1]:
                best = (customer, similarity)

        return best

    def _link_company(
        self,
        company: CrmCompany,
        customer: PaymentsCustomer,
        contacts: list[CrmContact],
        transfers: list[PaymentsTransfer],
        claims: _Claims,
        *,
        link_type: LinkType,
        confidence: int,
        inconsistencies: list[DataInconsistency],
    ) -> CorrelatedCustomerView:
        claims.customers.add(customer.id)
        claims.companies.add(company.id)
        related = self._claim_related_contacts(company, contacts, claims)

        log.debug(
            "correlated",
            link_type=link_type,
            company_id=company.id,
            customer_id=customer.id,
            confidence=confidence,
            inconsistencies=len(inconsistencies),
        )
        return CorrelatedCustomerView(
            company=company,
            contacts=related,
            customer=customer,
            transfers=transfers_for(customer.id, transfers),
            correlation=CorrelationResult(
                is_linked=True,
                link_type=link_type,
                confidence=confidence,
                inconsistencies=tuple(inconsistencies),
            ),
        )

    def _claim_related_contacts(
        self,
        company: CrmCompany,
        contacts: list[CrmContact],
        claims: _Claims,
    ) -> tuple[CrmContact, ...]:
        open_contacts = [c for c in contacts if c.id not in claims.contacts]
        related = find_related_contacts(company, open_contacts)
        claims.contacts.update(c.id for c in related)
        return tuple(related)

    def _unlinked(
        self,
        companies: list[CrmCompany],
        contacts: list[CrmContact],
        customers: list[PaymentsCustomer],
        transfers: list[PaymentsTransfer],
        claims: _Claims,
    ) -> list[CorrelatedCustomerView]:
        views: list[CorrelatedCustomerView] = []

        for company in companies:
            if company.id in claims.companies:
                continue
            claims.companies.add(company.id)
            views.append(CorrelatedCustomerView(
                company=company,
                contacts=self._claim_related_contacts(company, contacts, claims),
            ))

        for customer in customers:
            if customer.id in claims.customers:
                continue
            claims.customers.add(customer.id)
            views.append(CorrelatedCustomerView(
                customer=customer,
                transfers=transfers_for(customer.id, transfers),
            ))

        for contact in contacts:
            if contact.id in claims.contacts:
                continue
            claims.contacts.add(contact.id)
            views.append(CorrelatedCustomerView(contacts=(contact,), correlation=UNLINKED))

        return views


def correlate_search_results(
    companies: Sequence[CrmCompany],
    contacts: Sequence[CrmContact],
    customers: Sequence[PaymentsCustomer],
    transfers: Sequence[PaymentsTransfer] = (),
    config: CorrelationConfig | None = None,
) -> list[CorrelatedCustomerView]:
    """Correlate one search's CRM and payments results with a fresh Correlator."""
    return Correlator(config).correlate(companies, contacts, customers, transfers)


def summarize(views: Sequence[CorrelatedCustomerView]) -> SearchSummary:
    return SearchSummary(
        total_results=len(views),
        linked_accounts=sum(1 for v in views if v.correlation.is_linked),
        unlinked_from_crm=sum(1 for v in views if v.company is not None and v.customer is None),
        unlinked_from_payments=sum(1 for v in views if v.company is None and v.customer is not None),
        inconsistency_count=sum(len(v.correlation.inconsistencies) for v in views),
    )
