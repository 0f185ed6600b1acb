"""Tests for inconsistency detection."""

from custlink.config import CorrelationConfig
from custlink.inconsistencies import (
    find_contact_inconsistencies,
    find_inconsistencies,
    missing_link_inconsistency,
    stale_link_inconsistency,
)
from custlink.types import CrmCompany, CrmContact, PaymentsCustomer


def make_customer(
    id: str = "p1",
    type: str = "business",
    status: str = "verified",
    business_name: str | None = None,
    first_name: str | None = None,
    last_name: str | None = None,
    email: str = "billing@acme.test",
) -> PaymentsCustomer:
    return PaymentsCustomer(
        id=id,
        type=type,
        email=email,
        status=status,
        business_name=business_name,
        first_name=first_name,
        last_name=last_name,
    )


class TestFindInconsistencies:
    """Company vs payments customer comparison."""

    def test_designator_variant_without_status(self):
        company = CrmCompany(id="c1", name="Acme Corp", external_payments_id="p1")
        customer = make_customer(business_name="Acme Corporation")
        assert find_inconsistencies(company, customer) == []

    def test_similar_business_names_warn(self):
        company = CrmCompany(id="c1", name="Acme Holdings Group")
        customer = make_customer(business_name="Acme Holdings Grp")

        found = find_inconsistencies(company, customer)

        assert len(found) == 1
        assert found[0].field == "businessName"
        assert found[0].severity == "warning"
        assert found[0].crm_value == "Acme Holdings Group"
        assert found[0].payments_value == "Acme Holdings Grp"

    def test_unrelated_business_names_not_flagged(self):
        company = CrmCompany(id="c1", name="Acme")
        customer = make_customer(business_name="Zenith Logistics")
        assert find_inconsistencies(company, customer) == []

    def test_personal_customer_skips_name_check(self):
        company = CrmCompany(id="c1", name="Acme Holdings Group")
        customer = make_customer(type="personal", first_name="Jane", last_name="Doe")
        assert find_inconsistencies(company, customer) == []

    def test_suspended_status_is_error(self):
        company = CrmCompany(id="c1", name="Acme", status="unverified")
        customer = make_customer(status="suspended")

        found = find_inconsistencies(company, customer)

        assert len(found) == 1
        assert found[0].field == "status"
        assert found[0].severity == "error"
        assert found[0].message == 'Status mismatch: CRM shows "unverified", payments shows "suspended"'

    def test_mapped_status_matches(self):
        company = CrmCompany(id="c1", name="Acme", status="complete")
        customer = make_customer(status="verified")
        assert find_inconsistencies(company, customer) == []

    def test_unmapped_status_compared_verbatim(self):
        company = CrmCompany(id="c1", name="Acme", status="in_progress")
        customer = make_customer(status="deactivated")

        found = find_inconsistencies(company, customer)

        assert [i.severity for i in found] == ["warning"]

    def test_custom_status_map(self):
        config = CorrelationConfig(status_map={"verified": "done"})
        company = CrmCompany(id="c1", name="Acme", status="done")
        customer = make_customer(status="verified")
        assert find_inconsistencies(company, customer, config) == []


class TestFindContactInconsistencies:
    """Contact vs payments customer comparison."""

    def test_personal_name_mismatch(self):
        contact = CrmContact(id="k1", first_name="J", last_name="Doe", email="j@x.com")
        customer = make_customer(
            id="p2", type="personal", first_name="Jane", last_name="Doe", email="j@x.com"
        )

        found = find_contact_inconsistencies(contact, customer)

        assert len(found) == 1
        assert found[0].field == "name"
        assert found[0].severity == "warning"
        assert found[0].crm_value == "J Doe"
        assert found[0].payments_value == "Jane Doe"

    def test_matching_names(self):
        contact = CrmContact(id="k1", first_name="Jane", last_name="Doe")
        customer = make_customer(type="personal", first_name="Jane", last_name="Doe")
        assert find_contact_inconsistencies(contact, customer) == []

    def test_business_customer_skips_name_check(self):
        contact = CrmContact(id="k1", first_name="J", last_name="Doe")
        customer = make_customer(business_name="Acme")
        assert find_contact_inconsistencies(contact, customer) == []

    def test_related_company_without_payments_id(self):
        contact = CrmContact(id="k1", company_name="Beta LLC")
        company = CrmCompany(id="c2", name="Beta LLC")
        customer = make_customer(id="p7", business_name="Beta LLC")

        found = find_contact_inconsistencies(contact, customer, company)

        assert len(found) == 1
        assert found[0].field == "externalPaymentsId"
        assert found[0].crm_value is None
        assert found[0].payments_value == "p7"
        assert found[0].message == "CRM company missing payments customer ID - consider updating"

    def test_related_company_with_payments_id(self):
        contact = CrmContact(id="k1", company_name="Beta LLC")
        company = CrmCompany(id="c2", name="Beta LLC", external_payments_id="p7")
        customer = make_customer(id="p7", business_name="Beta LLC")
        assert find_contact_inconsistencies(contact, customer, company) == []


def test_missing_link_message():
    found = missing_link_inconsistency(make_customer(id="p3"), "consider linking")
    assert found.message == "CRM company missing payments customer ID - consider linking"
    assert found.severity == "warning"


def test_stale_link_carries_declared_id():
    company = CrmCompany(id="c4", name="Acme", external_payments_id="p-gone")
    found = stale_link_inconsistency(company, make_customer(id="p9"))
    assert found.crm_value == "p-gone"
    assert found.payments_value == "p9"
