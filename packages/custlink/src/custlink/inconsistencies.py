"""Field-level inconsistency detection between linked CRM and payments records."""

from __future__ import annotations

from custlink.config import CorrelationConfig
from custlink.normalize import full_name
from custlink.scoring import name_similarity
from custlink.types import CrmCompany, CrmContact, DataInconsistency, PaymentsCustomer


def find_inconsistencies(
    company: CrmCompany,
    customer: PaymentsCustomer,
    config: CorrelationConfig | None = None,
) -> list[DataInconsistency]:
    """Compare a CRM company with the payments customer it was linked to.

    Business names only count as inconsistent when they are close but not
    equal: at or above the high threshold they are the same name, at or below
    the low threshold they are unrelated and the link came from another signal.
    Status is compared after mapping the payments status into the CRM's
    onboarding vocabulary; a suspended customer is an error, anything else a
    warning.
    """
    if config is None:
        config = CorrelationConfig()
    t = config.thresholds
    found: list[DataInconsistency] = []

    if customer.business_name and company.name:
        similarity = name_similarity(
            company.name,
            customer.business_name,
            strip_designators=config.normalization.strip_designators_for_name_check,
        )
        if t.name_mismatch_low < similarity < t.name_mismatch_high:
            found.append(DataInconsistency(
                field="businessName",
                crm_value=company.name,
                payments_value=customer.business_name,
                severity="warning",
                message="Business names are similar but not identical",
            ))

    if company.status and customer.status:
        mapped = config.status_map.get(customer.status, customer.status)
        if company.status != mapped:
            found.append(DataInconsistency(
                field="status",
                crm_value=company.status,
                payments_value=customer.status,
                severity="error" if customer.status == "suspended" else "warning",
                message=(
                    f'Status mismatch: CRM shows "{company.status}", '
                    f'payments shows "{customer.status}"'
                ),
            ))

    return found


def find_contact_inconsistencies(
    contact: CrmContact,
    customer: PaymentsCustomer,
    company: CrmCompany | None = None,
) -> list[DataInconsistency]:
    """Compare a contact matched by email with its payments customer."""
    found: list[DataInconsistency] = []

    if customer.type == "personal":
        crm_name = full_name(contact.first_name, contact.last_name)
        payments_name = full_name(customer.first_name, customer.last_name)
        if crm_name and payments_name and crm_name != payments_name:
            found.append(DataInconsistency(
                field="name",
                crm_value=crm_name,
                payments_value=payments_name,
                severity="warning",
                message="Names don't match exactly",
            ))

    if company is not None and not company.external_payments_id and customer.id:
        found.append(missing_link_inconsistency(customer, "consider updating"))

    return found


def missing_link_inconsistency(customer: PaymentsCustomer, suggestion: str) -> DataInconsistency:
    return DataInconsistency(
        field="externalPaymentsId",
        crm_value=None,
        payments_value=customer.id,
        severity="warning",
        message=f"CRM company missing payments customer ID - {suggestion}",
    )


def stale_link_inconsistency(company: CrmCompany, customer: PaymentsCustomer) -> DataInconsistency:
    return DataInconsistency(
        field="externalPaymentsId",
        crm_value=company.external_payments_id,
        payments_value=customer.id,
        severity="warning",
        message="CRM company payments customer ID does not resolve - consider updating",
    )
