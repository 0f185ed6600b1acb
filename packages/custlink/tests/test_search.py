"""Tests for search orchestration."""

import asyncio

import pytest

from custlink.config import SearchConfig
from custlink.errors import (
    AuthenticationError,
    InvalidQueryError,
    SearchError,
    SearchTimeoutError,
    SourceError,
)
from custlink.search import SearchService
from custlink.types import (
    CorrelatedCustomerView,
    CrmCompany,
    CrmContact,
    CrmResults,
    PaymentsCustomer,
    PaymentsTransfer,
)

JANE = PaymentsCustomer(
    id="p2", type="personal", email="jane@x.com", status="verified", first_name="Jane", last_name="Doe"
)
ACME = PaymentsCustomer(
    id="p1", type="business", email="ap@acme.test", status="verified", business_name="Acme Corp"
)


class FakeCrm:
    """In-memory CrmSource."""

    def __init__(self, results: CrmResults | None = None, error: Exception | None = None, delay: float = 0.0):
        self.results = results or CrmResults()
        self.error = error
        self.delay = delay
        self.calls: list[tuple[str, str]] = []

    async def _answer(self) -> CrmResults:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.results

    async def search_by_email(self, email: str) -> CrmResults:
        self.calls.append(("email", email))
        return await self._answer()

    async def search_by_name(self, name: str) -> CrmResults:
        self.calls.append(("name", name))
        return await self._answer()


class FakePayments:
    """In-memory PaymentsSource."""

    def __init__(
        self,
        customers: list[PaymentsCustomer] | None = None,
        transfers: list[PaymentsTransfer] | None = None,
        error: Exception | None = None,
    ):
        self.customers = customers or []
        self.transfers = transfers or []
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def search_by_email(self, email: str) -> list[PaymentsCustomer]:
        self.calls.append(("email", email))
        if self.error:
            raise self.error
        return self.customers

    async def search_by_name(self, name: str) -> list[PaymentsCustomer]:
        self.calls.append(("name", name))
        if self.error:
            raise self.error
        return self.customers

    async def list_transfers(self, customer_id: str) -> list[PaymentsTransfer]:
        self.calls.append(("transfers", customer_id))
        if self.error:
            raise self.error
        return self.transfers


def test_email_search_correlates():
    crm = FakeCrm(CrmResults(contacts=(CrmContact(id="k1", first_name="J", last_name="Doe", email="jane@x.com"),)))
    payments = FakePayments([JANE])
    service = SearchService(crm, payments)

    response = asyncio.run(service.search("  jane@x.com "))

    assert response.query == "jane@x.com"
    assert response.query_type == "email"
    assert crm.calls == [("email", "jane@x.com")]
    assert payments.calls == [("email", "jane@x.com")]
    assert len(response.views) == 1
    assert response.views[0].correlation.link_type == "by-email"
    assert response.summary.linked_accounts == 1
    assert response.summary.inconsistency_count == 1


def test_business_search_uses_name_endpoints():
    crm = FakeCrm(CrmResults(companies=(CrmCompany(id="c1", name="Acme Corp", external_payments_id="p1"),)))
    payments = FakePayments([ACME])
    service = SearchService(crm, payments)

    response = asyncio.run(service.search("Acme Corp"))

    assert response.query_type == "business"
    assert crm.calls == [("name", "Acme Corp")]
    assert payments.calls == [("name", "Acme Corp")]
    assert response.views[0].correlation.confidence == 100


def test_invalid_query_makes_no_calls():
    crm = FakeCrm()
    payments = FakePayments()
    service = SearchService(crm, payments)

    with pytest.raises(InvalidQueryError):
        asyncio.run(service.search("a"))
    assert crm.calls == []
    assert payments.calls == []


def test_source_failure_fails_search():
    service = SearchService(
        FakeCrm(),
        FakePayments(error=SourceError("dwolla API error: 503", status_code=503, provider="dwolla")),
    )

    with pytest.raises(SearchError) as exc_info:
        asyncio.run(service.search("Jane Doe"))
    assert str(exc_info.value) == "Search failed: could not reach dwolla."
    assert not isinstance(exc_info.value, SearchTimeoutError)


def test_authentication_failure_asks_to_reconnect():
    service = SearchService(
        FakeCrm(error=AuthenticationError("Not authenticated with hubspot", 401, "hubspot")),
        FakePayments(),
    )

    with pytest.raises(SearchError) as exc_info:
        asyncio.run(service.search("Jane Doe"))
    assert str(exc_info.value) == "Please reconnect your hubspot account and try again."


def test_timeout():
    service = SearchService(
        FakeCrm(delay=1.0),
        FakePayments(),
        config=SearchConfig(timeout_seconds=0.01),
    )

    with pytest.raises(SearchTimeoutError) as exc_info:
        asyncio.run(service.search("Jane Doe"))
    assert str(exc_info.value) == "The search took too long. Please try again."


class TestLoadTransfers:
    """Lazy transfer loading for a single view."""

    def test_patches_view(self):
        transfers = [
            PaymentsTransfer(id="t1", status="processed", amount="5.00", currency="USD",
                             created="2024-03-01", source_id="p1"),
            PaymentsTransfer(id="t2", status="processed", amount="7.00", currency="USD",
                             created="2024-03-02", source_id="p9"),
        ]
        payments = FakePayments(transfers=transfers)
        service = SearchService(FakeCrm(), payments)
        view = CorrelatedCustomerView(customer=ACME)

        patched = asyncio.run(service.load_transfers(view))

        assert payments.calls == [("transfers", "p1")]
        assert [t.id for t in patched.transfers] == ["t1"]
        assert patched.customer == ACME

    def test_view_without_customer(self):
        payments = FakePayments()
        service = SearchService(FakeCrm(), payments)
        view = CorrelatedCustomerView(company=CrmCompany(id="c1", name="Acme"))

        assert asyncio.run(service.load_transfers(view)) is view
        assert payments.calls == []

    def test_failure(self):
        service = SearchService(FakeCrm(), FakePayments(error=SourceError("boom", provider="dwolla")))

        with pytest.raises(SearchError) as exc_info:
            asyncio.run(service.load_transfers(CorrelatedCustomerView(customer=ACME)))
        assert str(exc_info.value) == "Could not load transfers for this customer."
