"""
Compliance record types: jurisdictions, licenses, policies, regulatory
updates and AI compliance-check results.

Licenses carry their documents and an audit trail, policies their documents,
and regulatory updates the action items raised while assessing them. These
nested records serialize inline with their parent.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import UTC, datetime, timedelta
from typing import Any

from ..dates import add_months, format_iso, parse_iso
from ..risk.levels import InvalidEnumError, RiskLevel

LICENSE_STATUSES = ("Active", "Expired", "Pending Renewal", "Revoked", "Suspended")
POLICY_CATEGORIES = (
    "AML",
    "KYC",
    "Sanctions",
    "Consumer Protection",
    "Data Privacy",
    "Operational Risk",
    "Other",
)
POLICY_STATUSES = ("Active", "Draft", "Under Review", "Retired")
UPDATE_SEVERITIES = ("High", "Medium", "Low")
UPDATE_STATUSES = ("New", "Under Review", "Impact Assessed", "Implemented")
CHECK_STATUSES = ("Completed", "Pending Review")
ACTION_ITEM_STATUSES = ("Open", "In Progress", "Completed", "Blocked")
LICENSE_DOCUMENT_TYPES = (
    "Application",
    "Certificate",
    "Renewal",
    "Amendment",
    "Correspondence",
    "Other",
)
POLICY_DOCUMENT_TYPES = ("Policy Text", "Guidance", "Training Material", "Change Log")


class RecordNotFoundError(LookupError):
    """Raised when a record id is not in the registry."""


class RecordValidationError(ValueError):
    """Raised when a record is missing required fields."""


def _check_choice(name: str, value: str, allowed: tuple[str, ...]) -> None:
    if value not in allowed:
        raise InvalidEnumError(name, value, list(allowed))


def _now() -> datetime:
    return datetime.now(UTC)


class _Record:
    """Shared dict conversion for the record dataclasses."""

    _date_fields: tuple[str, ...] = ()
    # List fields holding nested records, by field name
    _nested_fields: dict[str, type[_Record]] = {}

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, datetime):
                value = format_iso(value)
            elif isinstance(value, list):
                value = [v.to_dict() if isinstance(v, _Record) else v for v in value]
            out[f.name] = value
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        for name in cls._date_fields:
            if name in kwargs:
                kwargs[name] = parse_iso(kwargs[name])
        for name, record_cls in cls._nested_fields.items():
            if kwargs.get(name) is not None:
                kwargs[name] = [
                    v if isinstance(v, record_cls) else record_cls.from_dict(v)
                    for v in kwargs[name]
                ]
        return cls(**kwargs)


@dataclass
class Jurisdiction(_Record):
    id: str
    name: str
    country_code: str
    currency: str
    is_eea: bool
    primary_regulator: str


@dataclass
class LicenseDocument(_Record):
    _date_fields = ("upload_date",)

    name: str = ""
    url: str = ""
    type: str = "Other"
    version: str = "1.0"
    uploaded_by: str = ""
    upload_date: datetime = field(default_factory=_now)
    id: str = ""

    def __post_init__(self) -> None:
        _check_choice("license document type", self.type, LICENSE_DOCUMENT_TYPES)


@dataclass
class LicenseAuditEntry(_Record):
    """One line of a license's history ("Created", "Updated", "Status Changed", ...)."""

    _date_fields = ("timestamp",)

    action: str = ""
    changer_id: str = ""
    details: str = ""
    timestamp: datetime = field(default_factory=_now)
    id: str = ""


@dataclass
class PolicyDocument(_Record):
    _date_fields = ("upload_date",)

    name: str = ""
    url: str = ""
    type: str = "Policy Text"
    uploaded_by: str = ""
    upload_date: datetime = field(default_factory=_now)
    id: str = ""

    def __post_init__(self) -> None:
        _check_choice("policy document type", self.type, POLICY_DOCUMENT_TYPES)


@dataclass
class ActionItem(_Record):
    """Follow-up task raised while assessing a regulatory update."""

    _date_fields = ("due_date", "completion_date")

    description: str = ""
    assigned_to: str = ""
    due_date: datetime = field(default_factory=lambda: _now() + timedelta(days=7))
    status: str = "Open"
    completion_date: datetime | None = None
    id: str = ""

    def __post_init__(self) -> None:
        _check_choice("action item status", self.status, ACTION_ITEM_STATUSES)


@dataclass
class License(_Record):
    _date_fields = (
        "issue_date",
        "expiry_date",
        "last_renewal_date",
        "next_renewal_reminder_date",
    )
    _nested_fields = {"documents": LicenseDocument, "audit_trail": LicenseAuditEntry}

    name: str = ""
    jurisdiction: str = ""
    jurisdiction_id: str = ""
    status: str = "Active"
    issue_date: datetime | None = None
    expiry_date: datetime | None = None
    regulatory_body: str = ""
    license_number: str = ""
    scope: str = ""
    renewal_frequency_months: int = 12
    notes: str = ""
    contact_person: str = ""
    contact_email: str = ""
    renewal_cost_usd: float = 0.0
    last_renewal_date: datetime | None = None
    next_renewal_reminder_date: datetime | None = None
    associated_policies: list[str] = field(default_factory=list)
    documents: list[LicenseDocument] = field(default_factory=list)
    audit_trail: list[LicenseAuditEntry] = field(default_factory=list)
    id: str = ""

    def __post_init__(self) -> None:
        _check_choice("license status", self.status, LICENSE_STATUSES)
        if self.next_renewal_reminder_date is None and self.expiry_date is not None:
            self.next_renewal_reminder_date = add_months(self.expiry_date, -3)

    def validate(self) -> None:
        missing = [
            label
            for label, value in (
                ("name", self.name),
                ("jurisdiction_id", self.jurisdiction_id),
                ("issue_date", self.issue_date),
                ("expiry_date", self.expiry_date),
            )
            if not value
        ]
        if missing:
            raise RecordValidationError(
                f"Missing required license fields: {', '.join(missing)}"
            )
        if self.expiry_date < self.issue_date:
            raise RecordValidationError("expiry_date must not be before issue_date")


@dataclass
class CompliancePolicy(_Record):
    _date_fields = ("effective_date", "review_date", "last_update_date")
    _nested_fields = {"documents": PolicyDocument}

    name: str = ""
    description: str = ""
    category: str = "Other"
    version: str = "1.0"
    effective_date: datetime | None = None
    review_date: datetime | None = None
    applicable_jurisdictions: list[str] = field(default_factory=list)
    responsible_department: str = "Compliance"
    status: str = "Draft"
    last_updated_by: str = ""
    last_update_date: datetime | None = None
    related_licenses: list[str] = field(default_factory=list)
    documents: list[PolicyDocument] = field(default_factory=list)
    id: str = ""

    def __post_init__(self) -> None:
        _check_choice("policy category", self.category, POLICY_CATEGORIES)
        _check_choice("policy status", self.status, POLICY_STATUSES)

    def validate(self) -> None:
        if not self.name.strip():
            raise RecordValidationError("Missing required policy field: name")


@dataclass
class RegulatoryUpdate(_Record):
    _date_fields = ("publication_date", "last_updated")
    _nested_fields = {"action_items": ActionItem}

    title: str = ""
    source: str = ""
    publication_date: datetime | None = None
    summary: str = ""
    full_text_url: str = ""
    severity: str = "Medium"
    status: str = "New"
    relevant_jurisdictions: list[str] = field(default_factory=list)
    assigned_to: str = ""
    impact_assessment_notes: str = ""
    action_items: list[ActionItem] = field(default_factory=list)
    last_updated: datetime = field(default_factory=_now)
    id: str = ""

    def __post_init__(self) -> None:
        _check_choice("regulatory update severity", self.severity, UPDATE_SEVERITIES)
        _check_choice("regulatory update status", self.status, UPDATE_STATUSES)


@dataclass
class ComplianceCheckResult(_Record):
    _date_fields = ("check_date", "review_date")

    feature_description: str
    ai_report: str
    suggested_licenses: list[str] = field(default_factory=list)
    risk_level: RiskLevel | None = None
    status: str = "Pending Review"
    check_date: datetime = field(default_factory=_now)
    reviewed_by: str = ""
    review_date: datetime | None = None
    notes: str = ""
    associated_feature_id: str = ""
    id: str = ""

    def __post_init__(self) -> None:
        if self.risk_level is not None:
            self.risk_level = RiskLevel.parse(self.risk_level)
        _check_choice("compliance check status", self.status, CHECK_STATUSES)

    def to_dict(self) -> dict[str, Any]:
        out = super().to_dict()
        out["risk_level"] = self.risk_level.value if self.risk_level else None
        return out
