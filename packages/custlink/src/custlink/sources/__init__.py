"""CRM and payments source adapters."""

from custlink.sources.base import CrmSource, EnvTokenProvider, PaymentsSource, TokenProvider
from custlink.sources.dwolla import DwollaSource
from custlink.sources.hubspot import HubSpotSource

__all__ = [
    "CrmSource",
    "DwollaSource",
    "EnvTokenProvider",
    "HubSpotSource",
    "PaymentsSource",
    "TokenProvider",
]
