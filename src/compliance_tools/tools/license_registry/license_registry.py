"""
License Registry - Search and maintain licenses, policies and regulatory updates.

Supports:
- License search/filter/sort with pagination, upsert and delete
- License documents and the per-license audit trail
- Renewal reminders (reminder date within the configured window)
- Compliance policy search, upsert, delete and documents
- Regulatory update search and triage (status, owner, impact notes)
- Action items raised against regulatory updates
- Dashboard metrics across the registry

All data lives in the in-memory ComplianceRegistry passed to register_tools.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastmcp import FastMCP

from compliance_tools.config import ComplianceToolsConfig, default_config
from compliance_tools.dates import parse_iso
from compliance_tools.records import (
    ActionItem,
    CompliancePolicy,
    ComplianceRegistry,
    License,
    LicenseDocument,
    PolicyDocument,
    RecordNotFoundError,
    RecordValidationError,
    dashboard_metrics,
    paginate,
    search_licenses,
    search_policies,
    search_regulatory_updates,
    upcoming_renewals,
)
from compliance_tools.risk import InvalidEnumError

# Fields of a License the upsert tool accepts from callers
LICENSE_INPUT_FIELDS = (
    "id",
    "name",
    "jurisdiction_id",
    "status",
    "issue_date",
    "expiry_date",
    "regulatory_body",
    "license_number",
    "scope",
    "renewal_frequency_months",
    "notes",
    "contact_person",
    "contact_email",
    "renewal_cost_usd",
    "last_renewal_date",
    "next_renewal_reminder_date",
    "associated_policies",
)

POLICY_INPUT_FIELDS = (
    "id",
    "name",
    "description",
    "category",
    "version",
    "effective_date",
    "review_date",
    "applicable_jurisdictions",
    "responsible_department",
    "status",
    "related_licenses",
)


def _pick(data: dict[str, Any], allowed: tuple[str, ...]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if k in allowed and v is not None}


def register_tools(
    mcp: FastMCP,
    registry: ComplianceRegistry | None = None,
    config: ComplianceToolsConfig | None = None,
) -> None:
    """Register license registry tools with the MCP server."""
    registry = registry if registry is not None else ComplianceRegistry()
    config = config or default_config

    def _page(records: list, page: int, per_page: int | None) -> dict[str, Any]:
        try:
            size = per_page if per_page is not None else config.page_size
            return paginate(records, page, size).to_dict()
        except ValueError as e:
            return {"error": str(e)}

    # --- License Tools ---

    @mcp.tool()
    def license_search(
        search: str = "",
        status: str | None = None,
        sort_by: str = "name",
        sort_order: str = "asc",
        page: int = 1,
        per_page: int | None = None,
    ) -> dict:
        """
        Search licenses by name, jurisdiction or license number.

        Args:
            search: Case-insensitive text to match (empty matches all)
            status: Optional status filter ("Active", "Expired", "Pending Renewal",
                "Revoked", "Suspended")
            sort_by: "name", "expiry_date", "status" or "jurisdiction" (default "name")
            sort_order: "asc" or "desc" (default "asc")
            page: 1-based page number
            per_page: Page size (defaults to the configured page size)

        Returns:
            Dict with items, page, per_page, total_items, total_pages or error

        Example:
            license_search(search="brazil", sort_by="expiry_date")
        """
        try:
            found = search_licenses(registry.licenses, search, status, sort_by, sort_order)
        except ValueError as e:
            return {"error": str(e)}
        return _page(found, page, per_page)

    @mcp.tool()
    def license_get(license_id: str) -> dict:
        """Fetch a single license by ID (e.g., "LIC-1000")."""
        try:
            return registry.get_license(license_id).to_dict()
        except RecordNotFoundError as e:
            return {"error": str(e)}

    @mcp.tool()
    def license_upsert(license: dict, changed_by: str = "Current User") -> dict:
        """
        Add a new license or replace an existing one.

        Omit "id" (or pass "") to add; pass an existing ID to replace.
        Required: name, jurisdiction_id, issue_date, expiry_date (ISO-8601).
        The jurisdiction name and regulator are filled in from jurisdiction_id.
        Documents and audit trail are kept from the stored license; each call
        adds an "Updated" audit entry, plus "Status Changed" when status moves.

        Args:
            license: License fields, e.g.
                {"name": "MTL Brazil", "jurisdiction_id": "JUR005",
                 "issue_date": "2025-01-01", "expiry_date": "2027-01-01"}
            changed_by: Recorded in the license audit trail

        Returns:
            Dict with the stored license or error
        """
        try:
            record = License.from_dict(_pick(license, LICENSE_INPUT_FIELDS))
            return registry.upsert_license(record, changed_by=changed_by).to_dict()
        except (RecordValidationError, RecordNotFoundError, InvalidEnumError) as e:
            return {"error": str(e)}
        except (TypeError, ValueError) as e:
            return {"error": f"Invalid license data: {e}"}

    @mcp.tool()
    def license_delete(license_id: str) -> dict:
        """Delete a license by ID."""
        try:
            removed = registry.delete_license(license_id)
        except RecordNotFoundError as e:
            return {"error": str(e)}
        return {"deleted": removed.id}

    @mcp.tool()
    def license_document_add(
        license_id: str,
        name: str,
        url: str = "",
        type: str = "Other",
        version: str = "1.0",
        uploaded_by: str = "Current User",
    ) -> dict:
        """
        Attach a document to a license and note the upload in its audit trail.

        Args:
            license_id: License ID (e.g., "LIC-1000")
            name: Document name (required)
            url: Where the document is stored
            type: "Application", "Certificate", "Renewal", "Amendment",
                "Correspondence" or "Other"
            version: Document version (default "1.0")
            uploaded_by: User recorded as uploader

        Returns:
            Dict with the stored document or error
        """
        try:
            document = LicenseDocument(name=name or "", url=url, type=type, version=version)
            stored = registry.add_license_document(license_id, document, uploaded_by=uploaded_by)
        except (RecordNotFoundError, RecordValidationError, InvalidEnumError) as e:
            return {"error": str(e)}
        return stored.to_dict()

    @mcp.tool()
    def license_audit_trail(license_id: str) -> dict:
        """List the audit trail of a license, oldest entry first."""
        try:
            license = registry.get_license(license_id)
        except RecordNotFoundError as e:
            return {"error": str(e)}
        return {
            "license_id": license.id,
            "count": len(license.audit_trail),
            "entries": [entry.to_dict() for entry in license.audit_trail],
        }

    @mcp.tool()
    def license_renewal_reminders(window_months: int | None = None) -> dict:
        """
        List licenses whose renewal reminder date falls within the coming window.

        Args:
            window_months: Look-ahead in months (defaults to configured window, 3)

        Returns:
            Dict with count and licenses, soonest reminder first
        """
        window = window_months if window_months is not None else config.renewal_window_months
        if window < 0:
            return {"error": "window_months must be >= 0"}
        due = upcoming_renewals(registry.licenses, datetime.now(UTC), window)
        return {
            "window_months": window,
            "count": len(due),
            "licenses": [lic.to_dict() for lic in due],
        }

    # --- Policy Tools ---

    @mcp.tool()
    def policy_search(
        search: str = "",
        category: str | None = None,
        sort_by: str = "name",
        sort_order: str = "asc",
        page: int = 1,
        per_page: int | None = None,
    ) -> dict:
        """
        Search compliance policies by name or description.

        Args:
            search: Case-insensitive text to match
            category: Optional category ("AML", "KYC", "Sanctions", "Consumer Protection",
                "Data Privacy", "Operational Risk", "Other")
            sort_by: "name", "effective_date", "category" or "status"
            sort_order: "asc" or "desc"
            page: 1-based page number
            per_page: Page size

        Returns:
            Dict with a page of policies or error
        """
        try:
            found = search_policies(registry.policies, search, category, sort_by, sort_order)
        except ValueError as e:
            return {"error": str(e)}
        return _page(found, page, per_page)

    @mcp.tool()
    def policy_upsert(policy: dict, updated_by: str = "Current User") -> dict:
        """
        Add a new compliance policy or replace an existing one.

        Args:
            policy: Policy fields; "name" is required. Omit "id" to add.
            updated_by: Recorded as last_updated_by

        Returns:
            Dict with the stored policy or error
        """
        try:
            record = CompliancePolicy.from_dict(_pick(policy, POLICY_INPUT_FIELDS))
            return registry.upsert_policy(record, updated_by=updated_by).to_dict()
        except (RecordValidationError, RecordNotFoundError, InvalidEnumError) as e:
            return {"error": str(e)}
        except (TypeError, ValueError) as e:
            return {"error": f"Invalid policy data: {e}"}

    @mcp.tool()
    def policy_delete(policy_id: str) -> dict:
        """Delete a compliance policy by ID."""
        try:
            removed = registry.delete_policy(policy_id)
        except RecordNotFoundError as e:
            return {"error": str(e)}
        return {"deleted": removed.id}

    @mcp.tool()
    def policy_document_add(
        policy_id: str,
        name: str,
        url: str = "",
        type: str = "Policy Text",
        uploaded_by: str = "Current User",
    ) -> dict:
        """
        Attach a document to a compliance policy.

        Args:
            policy_id: Policy ID (e.g., "POL-1010")
            name: Document name (required)
            url: Where the document is stored
            type: "Policy Text", "Guidance", "Training Material" or "Change Log"
            uploaded_by: User recorded as uploader

        Returns:
            Dict with the stored document or error
        """
        try:
            document = PolicyDocument(name=name or "", url=url, type=type)
            stored = registry.add_policy_document(policy_id, document, uploaded_by=uploaded_by)
        except (RecordNotFoundError, RecordValidationError, InvalidEnumError) as e:
            return {"error": str(e)}
        return stored.to_dict()

    # --- Regulatory Update Tools ---

    @mcp.tool()
    def regulatory_update_search(
        search: str = "",
        severity: str | None = None,
        status: str | None = None,
        sort_by: str = "publication_date",
        sort_order: str = "desc",
        page: int = 1,
        per_page: int | None = None,
    ) -> dict:
        """
        Search regulatory updates by title or summary.

        Args:
            search: Case-insensitive text to match
            severity: Optional filter ("High", "Medium", "Low")
            status: Optional filter ("New", "Under Review", "Impact Assessed", "Implemented")
            sort_by: "title", "publication_date", "severity" or "status"
                (default "publication_date")
            sort_order: "asc" or "desc" (default "desc", newest first)
            page: 1-based page number
            per_page: Page size

        Returns:
            Dict with a page of regulatory updates or error
        """
        try:
            found = search_regulatory_updates(
                registry.regulatory_updates, search, severity, status, sort_by, sort_order
            )
        except ValueError as e:
            return {"error": str(e)}
        return _page(found, page, per_page)

    @mcp.tool()
    def regulatory_update_triage(
        update_id: str,
        status: str | None = None,
        assigned_to: str | None = None,
        impact_assessment_notes: str | None = None,
    ) -> dict:
        """
        Record review progress on a regulatory update.

        Args:
            update_id: Regulatory update ID (e.g., "REG-1080")
            status: New status ("New", "Under Review", "Impact Assessed", "Implemented")
            assigned_to: Owner (user or department)
            impact_assessment_notes: Notes on how the update affects the business

        Returns:
            Dict with the updated record or error
        """
        if status is None and assigned_to is None and impact_assessment_notes is None:
            return {"error": "Provide at least one of status, assigned_to, impact_assessment_notes"}
        try:
            updated = registry.triage_regulatory_update(
                update_id,
                status=status,
                assigned_to=assigned_to,
                impact_assessment_notes=impact_assessment_notes,
            )
        except (RecordNotFoundError, RecordValidationError) as e:
            return {"error": str(e)}
        return updated.to_dict()

    @mcp.tool()
    def regulatory_update_action_item_add(
        update_id: str,
        description: str,
        assigned_to: str = "",
        due_date: str | None = None,
        status: str = "Open",
    ) -> dict:
        """
        Raise a follow-up action item on a regulatory update.

        Args:
            update_id: Regulatory update ID (e.g., "REG-1080")
            description: What needs to be done (required)
            assigned_to: Owner of the action
            due_date: ISO-8601 due date (defaults to one week from now)
            status: "Open", "In Progress", "Completed" or "Blocked"

        Returns:
            Dict with the stored action item or error
        """
        try:
            item = ActionItem(description=description or "", assigned_to=assigned_to, status=status)
            if due_date:
                item.due_date = parse_iso(due_date)
            stored = registry.add_action_item(update_id, item)
        except (RecordNotFoundError, RecordValidationError, InvalidEnumError) as e:
            return {"error": str(e)}
        except ValueError as e:
            return {"error": f"Invalid due_date: {e}"}
        return stored.to_dict()

    @mcp.tool()
    def regulatory_update_action_item_update(
        update_id: str,
        item_id: str,
        description: str | None = None,
        assigned_to: str | None = None,
        due_date: str | None = None,
        status: str | None = None,
        completion_date: str | None = None,
    ) -> dict:
        """
        Change an action item on a regulatory update.

        Setting status to "Completed" stamps the completion date unless one is
        given; any other status clears it.

        Args:
            update_id: Regulatory update ID
            item_id: Action item ID (e.g., "ACT-1200")
            description: New description
            assigned_to: New owner
            due_date: New ISO-8601 due date
            status: "Open", "In Progress", "Completed" or "Blocked"
            completion_date: ISO-8601 completion date

        Returns:
            Dict with the updated action item or error
        """
        try:
            updated = registry.update_action_item(
                update_id,
                item_id,
                description=description,
                assigned_to=assigned_to,
                due_date=parse_iso(due_date),
                status=status,
                completion_date=parse_iso(completion_date),
            )
        except (RecordNotFoundError, RecordValidationError, InvalidEnumError) as e:
            return {"error": str(e)}
        except ValueError as e:
            return {"error": f"Invalid date: {e}"}
        return updated.to_dict()

    @mcp.tool()
    def regulatory_update_action_item_remove(update_id: str, item_id: str) -> dict:
        """Remove an action item from a regulatory update."""
        try:
            removed = registry.remove_action_item(update_id, item_id)
        except RecordNotFoundError as e:
            return {"error": str(e)}
        return {"deleted": removed.id}

    # --- Dashboard ---

    @mcp.tool()
    def compliance_dashboard() -> dict:
        """
        Summarize the registry: license counts by status, upcoming renewals,
        open high-severity regulatory updates and risk assessment ratings.
        """
        metrics = dashboard_metrics(
            registry.licenses,
            registry.regulatory_updates,
            datetime.now(UTC),
            config.renewal_window_months,
        )
        ratings: dict[str, int] = {}
        for assessment in registry.risk_assessments:
            key = assessment.overall_risk_rating.value
            ratings[key] = ratings.get(key, 0) + 1
        metrics["risk_assessments_by_rating"] = ratings
        metrics["compliance_checks"] = len(registry.compliance_checks)
        return metrics
