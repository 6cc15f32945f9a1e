"""Compliance records: licenses, policies, regulatory updates and check history."""

from .models import (
    ACTION_ITEM_STATUSES,
    CHECK_STATUSES,
    LICENSE_DOCUMENT_TYPES,
    LICENSE_STATUSES,
    POLICY_CATEGORIES,
    POLICY_DOCUMENT_TYPES,
    POLICY_STATUSES,
    UPDATE_SEVERITIES,
    UPDATE_STATUSES,
    ActionItem,
    ComplianceCheckResult,
    CompliancePolicy,
    Jurisdiction,
    License,
    LicenseAuditEntry,
    LicenseDocument,
    PolicyDocument,
    RecordNotFoundError,
    RecordValidationError,
    RegulatoryUpdate,
)
from .query import (
    Page,
    dashboard_metrics,
    paginate,
    search_licenses,
    search_policies,
    search_regulatory_updates,
    upcoming_renewals,
)
from .registry import ComplianceRegistry
from .sample import JURISDICTIONS

__all__ = [
    "ACTION_ITEM_STATUSES",
    "CHECK_STATUSES",
    "JURISDICTIONS",
    "LICENSE_DOCUMENT_TYPES",
    "LICENSE_STATUSES",
    "POLICY_CATEGORIES",
    "POLICY_DOCUMENT_TYPES",
    "POLICY_STATUSES",
    "UPDATE_SEVERITIES",
    "UPDATE_STATUSES",
    "ActionItem",
    "ComplianceCheckResult",
    "CompliancePolicy",
    "ComplianceRegistry",
    "Jurisdiction",
    "License",
    "LicenseAuditEntry",
    "LicenseDocument",
    "Page",
    "PolicyDocument",
    "RecordNotFoundError",
    "RecordValidationError",
    "RegulatoryUpdate",
    "dashboard_metrics",
    "paginate",
    "search_licenses",
    "search_policies",
    "search_regulatory_updates",
    "upcoming_renewals",
]
