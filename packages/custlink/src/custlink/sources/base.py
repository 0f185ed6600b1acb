"""Shared plumbing for the CRM and payments API adapters."""

from __future__ import annotations

import os
from typing import Any, Protocol

import httpx
import structlog

from custlink.errors import AuthenticationError, SourceError
from custlink.types import CrmResults, PaymentsCustomer, PaymentsTransfer

log = structlog.get_logger()


class TokenProvider(Protocol):
    """Supplies a bearer token per provider. Acquisition and refresh live elsewhere."""

    async def get_token(self, provider: str) -> str | None: ...


class EnvTokenProvider:
    """TokenProvider reading HUBSPOT_ACCESS_TOKEN / DWOLLA_ACCESS_TOKEN."""

    def __init__(self, environ: dict[str, str] | None = None) -> None:
        self._environ = environ if environ is not None else os.environ

    async def get_token(self, provider: str) -> str | None:
        return self._environ.get(f"{provider.upper()}_ACCESS_TOKEN") or None


class CrmSource(Protocol):
    async def search_by_email(self, email: str) -> CrmResults: ...

    async def search_by_name(self, name: str) -> CrmResults: ...


class PaymentsSource(Protocol):
    async def search_by_email(self, email: str) -> list[PaymentsCustomer]: ...

    async def search_by_name(self, name: str) -> list[PaymentsCustomer]: ...

    async def list_transfers(self, customer_id: str) -> list[PaymentsTransfer]: ...


class ApiSource:
    """Authenticated JSON client for one provider.

    Returns parsed JSON or raises SourceError; no retries or caching.
    """

    provider: str = ""
    default_headers: dict[str, str] = {"Content-Type": "application/json"}

    def __init__(
        self,
        base_url: str,
        tokens: TokenProvider,
        *,
        timeout: float = 10.0,
        max_results: int = 200,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.tokens = tokens
        self.timeout = timeout
        self.max_results = max_results
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.default_headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> ApiSource:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        token = await self.tokens.get_token(self.provider)
        if not token:
            raise AuthenticationError(
                f"Not authenticated with {self.provider}",
                status_code=401,
                provider=self.provider,
            )

        client = await self._get_client()
        headers = {"Authorization": f"Bearer {token}", **kwargs.pop("headers", {})}

        try:
            response = await client.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            raise SourceError("Request timeout", status_code=408, provider=self.provider) from e
        except httpx.RequestError as e:
            raise SourceError(f"Request error: {e}", provider=self.provider) from e

        log.debug(
            "api_request_done",
            provider=self.provider,
            method=method,
            url=str(response.request.url),
            status=response.status_code,
        )

        if response.status_code == 401:
            raise AuthenticationError(
                f"{self.provider} rejected the access token",
                status_code=401,
                provider=self.provider,
            )

        if response.status_code >= 400:
            try:
                details: Any = response.json()
            except ValueError:
                details = response.text
            raise SourceError(
                f"{self.provider} API error: {response.status_code}",
                status_code=response.status_code,
                provider=self.provider,
                details=details,
            )

        if response.status_code == 204 or not response.content:
            return {}
        return response.json()
