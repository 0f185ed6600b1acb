"""custlink - CRM and payments customer correlation."""

from custlink.config import CorrelationConfig, SearchConfig, SourceSettings
from custlink.correlation import Correlator, correlate_search_results, summarize
from custlink.search import SearchService
from custlink.types import (
    CorrelatedCustomerView,
    CorrelationResult,
    CrmCompany,
    CrmContact,
    DataInconsistency,
    PaymentsCustomer,
    PaymentsTransfer,
    SearchResponse,
    SearchSummary,
)

__all__ = [
    "CorrelatedCustomerView",
    "CorrelationConfig",
    "CorrelationResult",
    "Correlator",
    "CrmCompany",
    "CrmContact",
    "DataInconsistency",
    "PaymentsCustomer",
    "PaymentsTransfer",
    "SearchConfig",
    "SearchResponse",
    "SearchService",
    "SearchSummary",
    "SourceSettings",
    "correlate_search_results",
    "summarize",
]
