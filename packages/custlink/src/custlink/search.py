"""Search orchestration: validate, fan out to both sources, correlate."""

from __future__ import annotations

import asyncio
import time

import structlog

from custlink.config import CorrelationConfig, SearchConfig
from custlink.correlation import Correlator, summarize
from custlink.errors import AuthenticationError, SearchError, SearchTimeoutError, SourceError
from custlink.query import sanitize_search_query, validate_search_query
from custlink.sources.base import CrmSource, PaymentsSource
from custlink.types import (
    CorrelatedCustomerView,
    CrmResults,
    PaymentsCustomer,
    QueryType,
    SearchResponse,
)

log = structlog.get_logger()


def _mask(query: str, query_type: QueryType) -> str:
    if query_type == "email":
        local, _, domain = query.partition("@")
        return f"{local[:3]}***@{domain}"
    return query[:20]


class SearchService:
    """Runs one customer search across the CRM and payments sources."""

    def __init__(
        self,
        crm: CrmSource,
        payments: PaymentsSource,
        config: SearchConfig | None = None,
        correlation: CorrelationConfig | None = None,
    ) -> None:
        self.crm = crm
        self.payments = payments
        self.config = config or SearchConfig()
        self.correlator = Correlator(correlation)

    async def search(self, query: str) -> SearchResponse:
        """Search both platforms and return correlated views with a summary.

        Raises:
            InvalidQueryError: the query failed validation.
            SearchTimeoutError: the sources did not answer within the budget.
            SearchError: a source failed; the whole search fails with it.
        """
        query = sanitize_search_query(query)
        query_type = validate_search_query(query)
        log.info("search_start", query_type=query_type, query=_mask(query, query_type))

        started = time.perf_counter()
        crm_results, customers = await self._fetch(query, query_type)
        fetched = time.perf_counter()

        views = self.correlator.correlate(
            crm_results.companies,
            crm_results.contacts,
            customers,
        )
        summary = summarize(views)
        elapsed = time.perf_counter() - started

        log.info(
            "search_done",
            query_type=query_type,
            companies=len(crm_results.companies),
            contacts=len(crm_results.contacts),
            customers=len(customers),
            fetch_ms=round((fetched - started) * 1000),
            total_ms=round(elapsed * 1000),
            linked=summary.linked_accounts,
            inconsistencies=summary.inconsistency_count,
        )
        if elapsed > self.config.slow_search_seconds:
            log.warning(
                "search_slow",
                query_type=query_type,
                total_ms=round(elapsed * 1000),
                threshold_ms=round(self.config.slow_search_seconds * 1000),
            )

        return SearchResponse(
            query=query,
            query_type=query_type,
            views=tuple(views),
            summary=summary,
        )

    async def _fetch(
        self, query: str, query_type: QueryType
    ) -> tuple[CrmResults, list[PaymentsCustomer]]:
        if query_type == "email":
            crm_call = self.crm.search_by_email(query)
            payments_call = self.payments.search_by_email(query)
        else:
            crm_call = self.crm.search_by_name(query)
            payments_call = self.payments.search_by_name(query)

        try:
            crm_results, customers = await asyncio.wait_for(
                asyncio.gather(crm_call, payments_call),
                timeout=self.config.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            log.error("search_timeout", timeout_s=self.config.timeout_seconds)
            raise SearchTimeoutError("The search took too long. Please try again.") from e
        except AuthenticationError as e:
            log.error("search_failed", provider=e.provider, error=str(e))
            raise SearchError(f"Please reconnect your {e.provider} account and try again.") from e
        except SourceError as e:
            log.error("search_failed", provider=e.provider, status=e.status_code, error=str(e))
            raise SearchError(f"Search failed: could not reach {e.provider}.") from e

        return crm_results, list(customers)

    async def load_transfers(self, view: CorrelatedCustomerView) -> CorrelatedCustomerView:
        """Fetch transfers for the view's payments customer and return the patched view."""
        if view.customer is None:
            return view
        try:
            transfers = await self.payments.list_transfers(view.customer.id)
        except SourceError as e:
            log.error("load_transfers_failed", customer_id=view.customer.id, error=str(e))
            raise SearchError("Could not load transfers for this customer.") from e

        log.info("transfers_loaded", customer_id=view.customer.id, count=len(transfers))
        return view.with_transfers(transfers)
