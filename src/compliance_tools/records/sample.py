"""Demo data for the compliance registry.

Generated from a seeded ``random.Random`` so the same seed always yields the
same records (dates are relative to ``now``).
"""

from __future__ import annotations

import random
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from ..dates import add_months
from .models import CompliancePolicy, Jurisdiction, License, RegulatoryUpdate

if TYPE_CHECKING:
    from .registry import ComplianceRegistry

JURISDICTIONS = [
    Jurisdiction("JUR001", "California", "US", "USD", False, "DFPI"),
    Jurisdiction("JUR002", "New York", "US", "USD", False, "DFS"),
    Jurisdiction("JUR003", "United Kingdom", "GB", "GBP", True, "FCA"),
    Jurisdiction("JUR004", "Ireland", "IE", "EUR", True, "CBI"),
    Jurisdiction("JUR005", "Brazil", "BR", "BRL", False, "BACEN"),
    Jurisdiction("JUR006", "Australia", "AU", "AUD", False, "ASIC"),
    Jurisdiction("JUR007", "Singapore", "SG", "SGD", False, "MAS"),
]

SAMPLE_LICENSES = 50
SAMPLE_POLICIES = 30
SAMPLE_UPDATES = 40


def _license(rng: random.Random, index: int, now: datetime) -> License:
    jurisdiction = JURISDICTIONS[index % len(JURISDICTIONS)]
    issue = add_months(now, -rng.randrange(24))
    expiry = add_months(issue, rng.randrange(36) + 12)
    if index % 5 == 0:
        status = "Expired"
    elif index % 7 == 0:
        status = "Pending Renewal"
    else:
        status = "Active"
    return License(
        name=f"License {index + 1} - {jurisdiction.name}",
        jurisdiction=jurisdiction.name,
        jurisdiction_id=jurisdiction.id,
        status=status,
        issue_date=issue,
        expiry_date=expiry,
        regulatory_body=jurisdiction.primary_regulator,
        license_number=f"L{rng.randrange(100000, 1000000)}",
        scope="General Money Transmission & Electronic Payments",
        renewal_frequency_months=12 + rng.randrange(24),
        notes="Standard license for payment operations.",
        contact_person="Compliance Officer",
        contact_email="compliance@example.com",
        renewal_cost_usd=float(rng.randrange(5000, 50000)),
        last_renewal_date=issue,
    )


def _policy(rng: random.Random, index: int, now: datetime) -> CompliancePolicy:
    category = ("AML", "KYC", "Data Privacy")[index % 3]
    effective = add_months(now, -rng.randrange(18))
    version = f"{rng.randrange(3) + 1}.0"
    return CompliancePolicy(
        name=f"Policy {index + 1} - {category}",
        description=(
            "Comprehensive policy outlining procedures to prevent money laundering activities."
        ),
        category=category,
        version=version,
        effective_date=effective,
        review_date=add_months(effective, 12 + rng.randrange(24)),
        applicable_jurisdictions=sorted(
            {rng.choice(JURISDICTIONS).id for _ in range(rng.randrange(3) + 1)}
        ),
        responsible_department="Compliance",
        status="Draft" if index % 10 == 0 else "Active",
        last_updated_by="Admin User",
        last_update_date=now,
    )


def _update(rng: random.Random, index: int, now: datetime) -> RegulatoryUpdate:
    topic = ("New Reporting", "Customer Due Diligence", "Sanctions Update")[index % 3]
    jurisdiction_ids = sorted(
        {rng.choice(JURISDICTIONS).id for _ in range(rng.randrange(2) + 1)}
    )
    return RegulatoryUpdate(
        title=f"Reg Update {index + 1}: {topic}",
        source="EU Parliament",
        publication_date=now - timedelta(days=rng.randrange(90)),
        summary=(
            "New directive introduces stricter requirements for customer due "
            "diligence and suspicious transaction reporting."
        ),
        full_text_url="https://example.com/new-directive-full-text",
        severity=("High", "Medium", "Low")[index % 3],
        status=rng.choice(("New", "Under Review", "Impact Assessed", "Implemented")),
        relevant_jurisdictions=jurisdiction_ids,
        assigned_to="Compliance Team",
        last_updated=now,
    )


def populate(registry: ComplianceRegistry, seed: int = 42, now: datetime | None = None) -> None:
    """Fill ``registry`` with jurisdictions, licenses, policies and updates."""
    rng = random.Random(seed)
    now = now or datetime.now(UTC)

    registry.jurisdictions = list(JURISDICTIONS)
    # Ids are assigned in list order, so the first record gets the lowest id
    for index in range(SAMPLE_LICENSES):
        lic = _license(rng, index, now)
        lic.id = registry.next_id("LIC")
        registry.licenses.append(lic)
    for index in range(SAMPLE_POLICIES):
        pol = _policy(rng, index, now)
        pol.id = registry.next_id("POL")
        registry.policies.append(pol)
    for index in range(SAMPLE_UPDATES):
        upd = _update(rng, index, now)
        upd.id = registry.next_id("REG")
        registry.regulatory_updates.append(upd)
