"""CLI tool for correlating CRM and payments customer records."""

import argparse
import asyncio
import sys
from pathlib import Path

import pandas as pd
import structlog

from custlink.config import SourceSettings
from custlink.correlation import Correlator, summarize
from custlink.errors import CustlinkError
from custlink.io import read_snapshot, view_to_row, write_views
from custlink.logging import configure_logging
from custlink.search import SearchService
from custlink.sources import DwollaSource, EnvTokenProvider, HubSpotSource
from custlink.types import CorrelatedCustomerView, SearchSummary


def _views_frame(views: list[CorrelatedCustomerView]) -> pd.DataFrame:
    return pd.DataFrame([view_to_row(v) for v in views])


def _show_views(df: pd.DataFrame) -> None:
    """Display correlated views on screen."""
    if df.empty:
        print("\n=== No results ===")
        return

    display_cols = [
        "crm_company_name",
        "payments_customer_name",
        "link_type",
        "confidence",
        "inconsistencies",
    ]
    print(f"\n=== Results ({len(df)}) ===")
    print(df[display_cols].to_string(index=False))


def _print_summary(summary: SearchSummary, df: pd.DataFrame) -> None:
    print("\n--- Summary ---")
    print(f"Total results: {summary.total_results}")
    print(f"Linked accounts: {summary.linked_accounts}")
    print(f"Unlinked (CRM only): {summary.unlinked_from_crm}")
    print(f"Unlinked (payments only): {summary.unlinked_from_payments}")
    print(f"Inconsistencies: {summary.inconsistency_count}")
    if not df.empty:
        counts = df["link_type"].value_counts()
        parts = [f"{link_type}={count}" for link_type, count in counts.items()]
        print(f"By link type: {', '.join(parts)}")


def _write_output(views: list[CorrelatedCustomerView], df: pd.DataFrame, output: str) -> None:
    path = Path(output)
    if path.suffix == ".xlsx":
        df.to_excel(path, index=False)
    else:
        write_views(views, path)
    print(f"\nSaved to: {output}")


def _report(views: list[CorrelatedCustomerView], args: argparse.Namespace) -> None:
    df = _views_frame(views)
    if args.show:
        _show_views(df)
    _print_summary(summarize(views), df)
    if args.output:
        _write_output(views, df, args.output)


def cmd_correlate(args: argparse.Namespace) -> None:
    """Correlate a JSON snapshot of raw HubSpot and Dwolla objects."""
    log = structlog.get_logger()
    snapshot = read_snapshot(args.input)
    log.info(
        "snapshot_loaded",
        path=args.input,
        companies=len(snapshot.companies),
        contacts=len(snapshot.contacts),
        customers=len(snapshot.customers),
        transfers=len(snapshot.transfers),
    )

    views = Correlator().correlate(
        snapshot.companies,
        snapshot.contacts,
        snapshot.customers,
        snapshot.transfers,
    )
    _report(views, args)


async def _run_search(query: str) -> list[CorrelatedCustomerView]:
    settings = SourceSettings.from_env()
    tokens = EnvTokenProvider()
    async with HubSpotSource.from_settings(settings, tokens) as crm, \
            DwollaSource.from_settings(settings, tokens) as payments:
        service = SearchService(crm, payments)
        response = await service.search(query)
    return list(response.views)


def cmd_search(args: argparse.Namespace) -> None:
    """Search both platforms live using tokens from the environment."""
    try:
        views = asyncio.run(_run_search(args.query))
    except CustlinkError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    _report(views, args)


def cmd_serve(args: argparse.Namespace) -> None:
    """Run the HTTP API."""
    import uvicorn

    from custlink.server import create_app

    log = structlog.get_logger()
    settings = SourceSettings.from_env()
    tokens = EnvTokenProvider()
    service = SearchService(
        HubSpotSource.from_settings(settings, tokens),
        DwollaSource.from_settings(settings, tokens),
    )
    log.info("server_start", host=args.host, port=args.port)
    uvicorn.run(create_app(service), host=args.host, port=args.port, log_level="warning")


def main() -> None:
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Set logging level (default: INFO)",
    )

    parser = argparse.ArgumentParser(
        description="CRM / payments customer correlation CLI",
        parents=[parent_parser],
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    correlate_parser = subparsers.add_parser(
        "correlate", parents=[parent_parser], help="Correlate a saved JSON snapshot"
    )
    correlate_parser.add_argument("input", help="JSON file with companies/contacts/customers/transfers")
    correlate_parser.add_argument("--output", help="Write results to .csv, .jsonl or .xlsx")
    correlate_parser.add_argument("--show", action="store_true", help="Display results on screen")
    correlate_parser.set_defaults(func=cmd_correlate)

    search_parser = subparsers.add_parser(
        "search", parents=[parent_parser], help="Search HubSpot and Dwolla live"
    )
    search_parser.add_argument("query", help="Email, person name or business name")
    search_parser.add_argument("--output", help="Write results to .csv, .jsonl or .xlsx")
    search_parser.add_argument("--show", action="store_true", help="Display results on screen")
    search_parser.set_defaults(func=cmd_search)

    serve_parser = subparsers.add_parser("serve", parents=[parent_parser], help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, default=8765, help="Server port (default: 8765)")
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args()
    configure_logging(args.log_level)
    args.func(args)


if __name__ == "__main__":
    main()
