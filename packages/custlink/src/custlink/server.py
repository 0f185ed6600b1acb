"""FastAPI server exposing search, correlation and quick actions."""

from dataclasses import asdict
from typing import Any

import structlog
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from custlink.correlation import Correlator, summarize
from custlink.errors import InvalidQueryError, SearchError, SearchTimeoutError, SourceError
from custlink.io import parse_snapshot, summary_to_dict, view_from_dict, view_to_dict
from custlink.quick_actions import QuickActionRegistry
from custlink.search import SearchService
from custlink.types import CorrelatedCustomerView, transfers_for

log = structlog.get_logger()


class CorrelateRequest(BaseModel):
    """Raw HubSpot and Dwolla objects to correlate."""

    companies: list[dict[str, Any]] = []
    contacts: list[dict[str, Any]] = []
    customers: list[dict[str, Any]] = []
    transfers: list[dict[str, Any]] = []


class ActionRequest(BaseModel):
    """A view in the shape returned by the search endpoints."""

    view: dict[str, Any]


class ActionResponse(BaseModel):
    success: bool
    message: str
    data: dict[str, Any]
    error: str | None = None


def _views_payload(
    views: list[CorrelatedCustomerView] | tuple[CorrelatedCustomerView, ...],
    registry: QuickActionRegistry,
) -> list[dict[str, Any]]:
    payload = []
    for view in views:
        item = view_to_dict(view)
        item["actions"] = [a.id for a in registry.applicable(view)]
        payload.append(item)
    return payload


def create_app(
    service: SearchService | None = None,
    registry: QuickActionRegistry | None = None,
    correlator: Correlator | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    Without a SearchService only the offline endpoints (correlate, actions)
    are usable.
    """
    app = FastAPI(title="custlink")
    registry = registry or QuickActionRegistry()
    correlator = correlator or (service.correlator if service else Correlator())

    def require_service() -> SearchService:
        if service is None:
            raise HTTPException(status_code=503, detail="Live search is not configured")
        return service

    @app.get("/api/health")
    async def health() -> dict[str, bool]:
        return {"ok": True, "search": service is not None}

    @app.get("/api/search")
    async def search(q: str) -> dict[str, Any]:
        """Search both platforms and return correlated views."""
        svc = require_service()
        try:
            response = await svc.search(q)
        except InvalidQueryError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except SearchTimeoutError as e:
            raise HTTPException(status_code=504, detail=str(e)) from e
        except SearchError as e:
            raise HTTPException(status_code=502, detail=str(e)) from e

        return {
            "query": response.query,
            "query_type": response.query_type,
            "views": _views_payload(response.views, registry),
            "summary": summary_to_dict(response.summary),
        }

    @app.post("/api/correlate")
    async def correlate(req: CorrelateRequest) -> dict[str, Any]:
        """Correlate raw records without calling either platform."""
        snapshot = parse_snapshot(req.model_dump())
        views = correlator.correlate(
            snapshot.companies,
            snapshot.contacts,
            snapshot.customers,
            snapshot.transfers,
        )
        log.info("api_correlate_done", views=len(views))
        return {
            "views": _views_payload(views, registry),
            "summary": summary_to_dict(summarize(views)),
        }

    @app.get("/api/customers/{customer_id}/transfers")
    async def transfers(customer_id: str) -> list[dict[str, Any]]:
        """List transfers for one payments customer."""
        svc = require_service()
        try:
            items = await svc.payments.list_transfers(customer_id)
        except SourceError as e:
            raise HTTPException(status_code=502, detail="Could not load transfers") from e
        return [asdict(t) for t in transfers_for(customer_id, items)]

    @app.post("/api/actions/{action_id}")
    async def run_action(action_id: str, req: ActionRequest) -> ActionResponse:
        """Build the output of a quick action for a view."""
        if registry.get(action_id) is None:
            raise HTTPException(status_code=404, detail="Action not found")
        try:
            view = view_from_dict(req.view)
        except (KeyError, TypeError) as e:
            raise HTTPException(status_code=422, detail=f"Malformed view: {e}") from e

        result = registry.execute(action_id, view)
        return ActionResponse(
            success=result.success,
            message=result.message,
            data=result.data,
            error=result.error,
        )

    return app
