"""
Search, sort and paginate record collections.

Text search is a case-insensitive substring match over a fixed set of
fields per record type. Text columns sort case-insensitively; date columns
sort chronologically with missing dates last.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar

from ..dates import add_months
from .models import (
    LICENSE_STATUSES,
    POLICY_CATEGORIES,
    UPDATE_SEVERITIES,
    UPDATE_STATUSES,
    CompliancePolicy,
    License,
    RegulatoryUpdate,
)

T = TypeVar("T")

SORT_ORDERS = ("asc", "desc")

LICENSE_SORT_FIELDS = ("name", "expiry_date", "status", "jurisdiction")
POLICY_SORT_FIELDS = ("name", "effective_date", "category", "status")
UPDATE_SORT_FIELDS = ("title", "publication_date", "severity", "status")
DATE_SORT_FIELDS = {"expiry_date", "effective_date", "publication_date"}


@dataclass
class Page:
    items: list[Any]
    page: int
    per_page: int
    total_items: int
    total_pages: int

    def to_dict(self, serialize: Callable[[Any], Any] = lambda x: x.to_dict()) -> dict:
        return {
            "items": [serialize(item) for item in self.items],
            "page": self.page,
            "per_page": self.per_page,
            "total_items": self.total_items,
            "total_pages": self.total_pages,
        }


def paginate(items: Sequence[T], page: int = 1, per_page: int = 10) -> Page:
    """Return the 1-based ``page`` of ``items``. Pages past the end are empty."""
    if page < 1:
        raise ValueError("page must be >= 1")
    if per_page < 1:
        raise ValueError("per_page must be >= 1")
    start = (page - 1) * per_page
    return Page(
        items=list(items[start : start + per_page]),
        page=page,
        per_page=per_page,
        total_items=len(items),
        total_pages=math.ceil(len(items) / per_page),
    )


def _matches(search: str, *values: str) -> bool:
    if not search:
        return True
    needle = search.lower()
    return any(needle in (v or "").lower() for v in values)


def _check_option(name: str, value: str, allowed: Sequence[str]) -> None:
    if value not in allowed:
        raise ValueError(f"Invalid {name} {value!r}. Must be one of: {', '.join(allowed)}")


def _sorted(records: list[T], sort_by: str, sort_order: str) -> list[T]:
    _check_option("sort_order", sort_order, SORT_ORDERS)
    reverse = sort_order == "desc"

    if sort_by in DATE_SORT_FIELDS:
        # Missing dates always sort last, whichever the direction
        present = [r for r in records if getattr(r, sort_by) is not None]
        missing = [r for r in records if getattr(r, sort_by) is None]
        present.sort(key=lambda r: getattr(r, sort_by), reverse=reverse)
        return present + missing

    return sorted(records, key=lambda r: str(getattr(r, sort_by) or "").casefold(), reverse=reverse)


def search_licenses(
    licenses: Sequence[License],
    search: str = "",
    status: str | None = None,
    sort_by: str = "name",
    sort_order: str = "asc",
) -> list[License]:
    """Filter licenses by name/jurisdiction/number and status, then sort."""
    _check_option("sort_by", sort_by, LICENSE_SORT_FIELDS)
    if status is not None:
        _check_option("status", status, LICENSE_STATUSES)

    found = [
        lic
        for lic in licenses
        if _matches(search, lic.name, lic.jurisdiction, lic.license_number)
        and (status is None or lic.status == status)
    ]
    return _sorted(found, sort_by, sort_order)


def search_policies(
    policies: Sequence[CompliancePolicy],
    search: str = "",
    category: str | None = None,
    sort_by: str = "name",
    sort_order: str = "asc",
) -> list[CompliancePolicy]:
    _check_option("sort_by", sort_by, POLICY_SORT_FIELDS)
    if category is not None:
        _check_option("category", category, POLICY_CATEGORIES)

    found = [
        pol
        for pol in policies
        if _matches(search, pol.name, pol.description)
        and (category is None or pol.category == category)
    ]
    return _sorted(found, sort_by, sort_order)


def search_regulatory_updates(
    updates: Sequence[RegulatoryUpdate],
    search: str = "",
    severity: str | None = None,
    status: str | None = None,
    sort_by: str = "publication_date",
    sort_order: str = "desc",
) -> list[RegulatoryUpdate]:
    _check_option("sort_by", sort_by, UPDATE_SORT_FIELDS)
    if severity is not None:
        _check_option("severity", severity, UPDATE_SEVERITIES)
    if status is not None:
        _check_option("status", status, UPDATE_STATUSES)

    found = [
        upd
        for upd in updates
        if _matches(search, upd.title, upd.summary)
        and (severity is None or upd.severity == severity)
        and (status is None or upd.status == status)
    ]
    return _sorted(found, sort_by, sort_order)


def upcoming_renewals(
    licenses: Sequence[License],
    now: datetime,
    window_months: int = 3,
) -> list[License]:
    """Licenses whose renewal reminder falls after ``now`` and within the window."""
    horizon = add_months(now, window_months)
    due = [
        lic
        for lic in licenses
        if lic.next_renewal_reminder_date is not None
        and now < lic.next_renewal_reminder_date < horizon
    ]
    return sorted(due, key=lambda lic: lic.next_renewal_reminder_date)


def dashboard_metrics(
    licenses: Sequence[License],
    updates: Sequence[RegulatoryUpdate],
    now: datetime,
    window_months: int = 3,
) -> dict[str, Any]:
    renewals = upcoming_renewals(licenses, now, window_months)
    return {
        "active_licenses": sum(1 for lic in licenses if lic.status == "Active"),
        "pending_renewal_licenses": sum(1 for lic in licenses if lic.status == "Pending Renewal"),
        "expired_licenses": sum(1 for lic in licenses if lic.status == "Expired"),
        "upcoming_renewals": len(renewals),
        "next_renewal": renewals[0].to_dict() if renewals else None,
        "open_high_severity_updates": sum(
            1 for upd in updates if upd.severity == "High" and upd.status != "Implemented"
        ),
    }
