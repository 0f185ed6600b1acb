"""Quick actions offered for a correlated customer view.

Availability is a pure predicate over the view. Executing an action only
produces the text to copy or the URL to open; clipboard and tab handling
belong to whatever UI shows the actions.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

import structlog

from custlink.config import SourceSettings
from custlink.normalize import full_name
from custlink.types import CorrelatedCustomerView

log = structlog.get_logger()

Category = Literal["copy", "link", "support", "transfer", "verification"]
Variant = Literal["primary", "secondary", "warning", "danger"]

VERIFICATION_DOCS_URL = "https://developers.dwolla.com/concepts/customer-verification"
SUSPENSION_DOCS_URL = VERIFICATION_DOCS_URL + "#handling-suspended-customers"


@dataclass
class ActionResult:
    success: bool
    message: str = ""
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None


@dataclass(frozen=True)
class QuickAction:
    id: str
    name: str
    description: str
    category: Category
    variant: Variant
    is_available: Callable[[CorrelatedCustomerView], bool]
    build: Callable[[CorrelatedCustomerView], ActionResult]


def customer_display_name(view: CorrelatedCustomerView) -> str:
    if view.customer is not None and view.customer.display_name:
        return view.customer.display_name
    if view.company is not None and view.company.name:
        return view.company.name
    return "Unknown Customer"


def transfer_lines(view: CorrelatedCustomerView, limit: int | None = None) -> list[str]:
    transfers = view.transfers if limit is None else view.transfers[:limit]
    return [f"{t.status.upper()}: ${t.amount} ({t.created[:10]})" for t in transfers]


def issue_lines(view: CorrelatedCustomerView) -> list[str]:
    return [f"{i.severity.upper()}: {i.message}" for i in view.correlation.inconsistencies]


def generate_customer_summary(view: CorrelatedCustomerView, now: datetime | None = None) -> str:
    """Plain-text summary of everything known about one correlated customer."""
    now = now or datetime.now(timezone.utc)
    c = view.correlation
    lines = [f"Customer: {customer_display_name(view)}", "=" * 50, ""]

    if c.is_linked:
        lines.append(f"Linked Accounts ({c.confidence}% confidence via {c.link_type})")
    else:
        lines.append("Unlinked Accounts")
    lines.append("")

    if view.company is not None:
        lines.append("CRM Company:")
        lines.append(f"  Name: {view.company.name}")
        lines.append(f"  ID: {view.company.id}")
        if view.company.external_payments_id:
            lines.append(f"  Payments ID: {view.company.external_payments_id}")
        if view.company.status:
            lines.append(f"  Status: {view.company.status}")
        lines.append("")

    if view.contacts:
        lines.append(f"CRM Contacts ({len(view.contacts)}):")
        for contact in view.contacts:
            lines.append(f"  {full_name(contact.first_name, contact.last_name)} - {contact.email or ''}")
        lines.append("")

    if view.customer is not None:
        lines.append("Payments Customer:")
        lines.append(f"  Name: {view.customer.display_name}")
        lines.append(f"  Email: {view.customer.email}")
        lines.append(f"  ID: {view.customer.id}")
        lines.append(f"  Type: {view.customer.type}")
        lines.append(f"  Status: {view.customer.status}")
        lines.append("")

    if view.transfers:
        lines.append(f"Recent Transfers ({len(view.transfers)}):")
        lines.extend(f"  {line}" for line in transfer_lines(view, limit=5))
        if len(view.transfers) > 5:
            lines.append(f"  ... and {len(view.transfers) - 5} more")
        lines.append("")

    if c.inconsistencies:
        lines.append(f"Data Issues ({len(c.inconsistencies)}):")
        lines.extend(f"  {line}" for line in issue_lines(view))
        lines.append("")

    lines.append(f"Generated: {now.isoformat(timespec='seconds')}")
    return "\n".join(lines)


def link_instructions(view: CorrelatedCustomerView) -> str:
    company, customer = view.company, view.customer
    if company is None or customer is None:
        raise ValueError("Link instructions need both a CRM company and a payments customer")
    return "\n".join([
        "Account Linking Instructions:",
        "",
        f"CRM Company: {company.name}",
        f"CRM ID: {company.id}",
        "",
        f"Payments Customer: {customer.display_name}",
        f"Payments ID: {customer.id}",
        "",
        "To link these accounts:",
        "1. Open the CRM company record",
        f'2. Set the "dwolla_id" property to: {customer.id}',
        "3. Save the record",
        "",
        "This will enable automatic data correlation in future searches.",
    ])


class QuickActionRegistry:
    """Ordered set of quick actions, filterable per view."""

    def __init__(self, settings: SourceSettings | None = None, *, defaults: bool = True) -> None:
        self.settings = settings or SourceSettings()
        self._actions: dict[str, QuickAction] = {}
        if defaults:
            self._register_defaults()

    def register(self, action: QuickAction) -> None:
        """Add an action, replacing any registered action with the same id."""
        self._actions[action.id] = action

    def get(self, action_id: str) -> QuickAction | None:
        return self._actions.get(action_id)

    def applicable(self, view: CorrelatedCustomerView) -> list[QuickAction]:
        return [a for a in self._actions.values() if a.is_available(view)]

    def execute(self, action_id: str, view: CorrelatedCustomerView) -> ActionResult:
        action = self._actions.get(action_id)
        if action is None:
            return ActionResult(success=False, error=f"Action not found: {action_id}")
        if not action.is_available(view):
            return ActionResult(success=False, error=f"Action not available: {action_id}")

        result = action.build(view)
        log.info("quick_action_executed", action_id=action_id, category=action.category)
        return result

    def crm_company_url(self, company_id: str) -> str:
        portal = self.settings.hubspot_portal_id or "0"
        return f"https://app.hubspot.com/contacts/{portal}/company/{company_id}"

    def payments_customer_url(self, customer_id: str) -> str:
        return f"{self.settings.dwolla_dashboard_url}/customers/{customer_id}"

    def _register_defaults(self) -> None:
        self.register(QuickAction(
            id="copy-customer-email",
            name="Copy Email",
            description="Copy customer email to clipboard",
            category="copy",
            variant="secondary",
            is_available=lambda v: bool(v.customer and v.customer.email),
            build=lambda v: ActionResult(
                True, "Email copied to clipboard", {"text": v.customer.email}
            ),
        ))
        self.register(QuickAction(
            id="copy-customer-summary",
            name="Copy Summary",
            description="Copy formatted customer summary",
            category="copy",
            variant="primary",
            is_available=lambda v: v.customer is not None or v.company is not None,
            build=lambda v: ActionResult(
                True, "Customer summary copied to clipboard", {"text": generate_customer_summary(v)}
            ),
        ))
        self.register(QuickAction(
            id="copy-payments-id",
            name="Copy Payments ID",
            description="Copy payments customer ID",
            category="copy",
            variant="secondary",
            is_available=lambda v: bool(v.customer and v.customer.id),
            build=lambda v: ActionResult(True, "Payments ID copied to clipboard", {"text": v.customer.id}),
        ))
        self.register(QuickAction(
            id="copy-crm-id",
            name="Copy CRM ID",
            description="Copy CRM company ID",
            category="copy",
            variant="secondary",
            is_available=lambda v: bool(v.company and v.company.id),
            build=lambda v: ActionResult(True, "CRM ID copied to clipboard", {"text": v.company.id}),
        ))
        self.register(QuickAction(
            id="open-crm",
            name="Open in CRM",
            description="Open company in the CRM dashboard",
            category="link",
            variant="secondary",
            is_available=lambda v: bool(v.company and v.company.id),
            build=lambda v: ActionResult(
                True, "Opened company in CRM", {"url": self.crm_company_url(v.company.id)}
            ),
        ))
        self.register(QuickAction(
            id="open-payments",
            name="Open in Payments",
            description="Open customer in the payments dashboard",
            category="link",
            variant="secondary",
            is_available=lambda v: bool(v.customer and v.customer.id),
            build=lambda v: ActionResult(
                True, "Opened customer in payments dashboard", {"url": self.payments_customer_url(v.customer.id)}
            ),
        ))
        self.register(QuickAction(
            id="verification-help",
            name="Verification Help",
            description="Open customer verification documentation",
            category="support",
            variant="warning",
            is_available=lambda v: v.customer is not None and v.customer.status == "unverified",
            build=lambda v: ActionResult(True, "Opened verification documentation", {"url": VERIFICATION_DOCS_URL}),
        ))
        self.register(QuickAction(
            id="suspension-help",
            name="Suspension Help",
            description="Open suspended customer documentation",
            category="support",
            variant="danger",
            is_available=lambda v: v.customer is not None and v.customer.status == "suspended",
            build=lambda v: ActionResult(True, "Opened suspension documentation", {"url": SUSPENSION_DOCS_URL}),
        ))
        self.register(QuickAction(
            id="copy-transfers",
            name="Copy Transfers",
            description="Copy recent transfer history",
            category="transfer",
            variant="secondary",
            is_available=lambda v: len(v.transfers) > 0,
            build=lambda v: ActionResult(
                True,
                f"Copied {len(v.transfers)} transfers",
                {
                    "text": "\n".join([f"Recent Transfers ({len(v.transfers)}):", *transfer_lines(v)]),
                    "count": len(v.transfers),
                },
            ),
        ))
        self.register(QuickAction(
            id="copy-issues",
            name="Copy Issues",
            description="Copy data inconsistency details",
            category="verification",
            variant="warning",
            is_available=lambda v: len(v.correlation.inconsistencies) > 0,
            build=lambda v: ActionResult(
                True,
                f"Copied {len(v.correlation.inconsistencies)} data issues",
                {
                    "text": "\n".join(
                        [f"Data Issues ({len(v.correlation.inconsistencies)}):", *issue_lines(v)]
                    ),
                    "count": len(v.correlation.inconsistencies),
                },
            ),
        ))
        self.register(QuickAction(
            id="suggest-link",
            name="Copy Link Instructions",
            description="Copy account linking instructions",
            category="link",
            variant="primary",
            is_available=lambda v: (
                not v.correlation.is_linked and v.company is not None and v.customer is not None
            ),
            build=lambda v: ActionResult(True, "Linking instructions copied", {"text": link_instructions(v)}),
        ))
