"""
Tests for the license registry MCP tools.

Covers:
- license_search / license_get / license_upsert / license_delete
- license_renewal_reminders
- license documents and audit trail
- policy and regulatory update tools, including action items
- compliance_dashboard
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from compliance_tools.config import ComplianceToolsConfig
from compliance_tools.records import (
    JURISDICTIONS,
    ComplianceCheckResult,
    ComplianceRegistry,
    License,
    RegulatoryUpdate,
)
from compliance_tools.risk import RiskAssessment
from compliance_tools.tools.license_registry import register_tools


def _register(registry: ComplianceRegistry, config: ComplianceToolsConfig | None = None) -> dict:
    mcp = MagicMock()
    fns: dict = {}
    mcp.tool.return_value = lambda fn: fns.setdefault(fn.__name__, fn)
    register_tools(mcp, registry=registry, config=config)
    return fns


@pytest.fixture
def registry() -> ComplianceRegistry:
    return ComplianceRegistry(jurisdictions=JURISDICTIONS)


@pytest.fixture
def fns(registry) -> dict:
    return _register(registry, ComplianceToolsConfig(page_size=2))


def _license_payload(name: str, **overrides) -> dict:
    payload = {
        "name": name,
        "jurisdiction_id": "JUR001",
        "issue_date": "2024-01-01",
        "expiry_date": "2027-01-01",
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# Licenses
# ---------------------------------------------------------------------------


class TestLicenseUpsert:
    def test_add_fills_jurisdiction(self, fns):
        result = fns["license_upsert"](license=_license_payload("MTL Brazil", jurisdiction_id="JUR005"))
        assert result["id"].startswith("LIC-")
        assert result["jurisdiction"] == "Brazil"
        assert result["regulatory_body"] == "BACEN"
        assert result["expiry_date"].startswith("2027-01-01")

    def test_replace_existing(self, fns, registry):
        created = fns["license_upsert"](license=_license_payload("Old"))
        result = fns["license_upsert"](license=_license_payload("New", id=created["id"]))
        assert result["name"] == "New"
        assert len(registry.licenses) == 1

    def test_unknown_fields_ignored(self, fns):
        result = fns["license_upsert"](license=_license_payload("MTL", colour="blue"))
        assert "error" not in result
        assert "colour" not in result

    def test_missing_required_fields(self, fns):
        result = fns["license_upsert"](license={"name": "No dates", "jurisdiction_id": "JUR001"})
        assert "error" in result
        assert "expiry_date" in result["error"]

    def test_invalid_status(self, fns):
        result = fns["license_upsert"](license=_license_payload("MTL", status="Bogus"))
        assert "error" in result

    def test_bad_date(self, fns):
        result = fns["license_upsert"](license=_license_payload("MTL", issue_date="yesterday"))
        assert result["error"].startswith("Invalid license data")

    def test_unknown_jurisdiction(self, fns):
        result = fns["license_upsert"](license=_license_payload("MTL", jurisdiction_id="JUR999"))
        assert "not found" in result["error"]

    def test_replace_unknown_id(self, fns):
        result = fns["license_upsert"](license=_license_payload("MTL", id="LIC-404"))
        assert "not found" in result["error"]


class TestLicenseSearch:
    def test_paginated_and_sorted(self, fns):
        for name in ("Charlie", "alpha", "Bravo"):
            fns["license_upsert"](license=_license_payload(name))
        first = fns["license_search"]()
        assert [item["name"] for item in first["items"]] == ["alpha", "Bravo"]
        assert first["total_items"] == 3
        assert first["total_pages"] == 2

        second = fns["license_search"](page=2)
        assert [item["name"] for item in second["items"]] == ["Charlie"]

    def test_explicit_per_page(self, fns):
        fns["license_upsert"](license=_license_payload("A"))
        fns["license_upsert"](license=_license_payload("B"))
        assert fns["license_search"](per_page=10)["total_pages"] == 1

    def test_search_by_jurisdiction(self, fns):
        fns["license_upsert"](license=_license_payload("MTL", jurisdiction_id="JUR005"))
        fns["license_upsert"](license=_license_payload("EMI"))
        result = fns["license_search"](search="brazil")
        assert [item["name"] for item in result["items"]] == ["MTL"]

    def test_invalid_sort(self, fns):
        assert "error" in fns["license_search"](sort_by="cost")

    def test_invalid_page(self, fns):
        assert "error" in fns["license_search"](page=0)

    def test_zero_per_page_is_rejected(self, fns):
        fns["license_upsert"](license=_license_payload("A"))
        result = fns["license_search"](per_page=0)
        assert "error" in result
        assert "per_page" in result["error"]


class TestLicenseGetDelete:
    def test_get_and_delete(self, fns):
        created = fns["license_upsert"](license=_license_payload("MTL"))
        assert fns["license_get"](license_id=created["id"])["name"] == "MTL"
        assert fns["license_delete"](license_id=created["id"]) == {"deleted": created["id"]}
        assert "error" in fns["license_get"](license_id=created["id"])

    def test_delete_unknown(self, fns):
        assert "error" in fns["license_delete"](license_id="LIC-404")


class TestLicenseDocumentsAndAudit:
    def test_upsert_records_audit_trail(self, fns):
        created = fns["license_upsert"](license=_license_payload("MTL"), changed_by="Ana")
        assert [e["action"] for e in created["audit_trail"]] == ["Created"]
        assert created["audit_trail"][0]["changer_id"] == "Ana"

        updated = fns["license_upsert"](
            license=_license_payload("MTL", id=created["id"], status="Suspended"),
            changed_by="Ben",
        )
        assert [e["action"] for e in updated["audit_trail"]] == [
            "Created",
            "Updated",
            "Status Changed",
        ]
        assert updated["audit_trail"][-1]["details"] == "Status changed from Active to Suspended"

        trail = fns["license_audit_trail"](license_id=created["id"])
        assert trail["count"] == 3

    def test_caller_cannot_overwrite_audit_trail(self, fns):
        created = fns["license_upsert"](license=_license_payload("MTL"))
        payload = _license_payload("MTL", id=created["id"], audit_trail=[], documents=[])
        updated = fns["license_upsert"](license=payload)
        assert len(updated["audit_trail"]) == 2

    def test_document_add(self, fns, registry):
        created = fns["license_upsert"](license=_license_payload("MTL"))
        doc = fns["license_document_add"](
            license_id=created["id"],
            name="Certificate.pdf",
            url="https://docs.example.com/cert.pdf",
            type="Certificate",
            uploaded_by="Ana",
        )
        assert doc["id"].startswith("DOC-")
        assert doc["uploaded_by"] == "Ana"

        stored = registry.get_license(created["id"])
        assert [d.name for d in stored.documents] == ["Certificate.pdf"]
        assert stored.audit_trail[-1].action == "Document Uploaded"

        # a later replace keeps the document
        fns["license_upsert"](license=_license_payload("MTL v2", id=created["id"]))
        assert len(registry.get_license(created["id"]).documents) == 1

    def test_document_add_invalid_type(self, fns):
        created = fns["license_upsert"](license=_license_payload("MTL"))
        result = fns["license_document_add"](license_id=created["id"], name="x", type="Memo")
        assert "error" in result

    def test_document_add_requires_name(self, fns):
        created = fns["license_upsert"](license=_license_payload("MTL"))
        assert "error" in fns["license_document_add"](license_id=created["id"], name=" ")

    def test_document_add_unknown_license(self, fns):
        assert "error" in fns["license_document_add"](license_id="LIC-404", name="x")

    def test_audit_trail_unknown_license(self, fns):
        assert "error" in fns["license_audit_trail"](license_id="LIC-404")


class TestRenewalReminders:
    def test_window(self, fns, registry):
        now = datetime.now(UTC)
        soon = License(
            name="Soon",
            jurisdiction_id="JUR001",
            issue_date=now - timedelta(days=700),
            expiry_date=now + timedelta(days=60),
            next_renewal_reminder_date=now + timedelta(days=20),
        )
        later = License(
            name="Later",
            jurisdiction_id="JUR001",
            issue_date=now - timedelta(days=700),
            expiry_date=now + timedelta(days=400),
            next_renewal_reminder_date=now + timedelta(days=200),
        )
        registry.upsert_license(soon)
        registry.upsert_license(later)

        result = fns["license_renewal_reminders"]()
        assert result["window_months"] == 3
        assert [lic["name"] for lic in result["licenses"]] == ["Soon"]

        wider = fns["license_renewal_reminders"](window_months=12)
        assert [lic["name"] for lic in wider["licenses"]] == ["Soon", "Later"]

    def test_negative_window(self, fns):
        assert "error" in fns["license_renewal_reminders"](window_months=-1)


# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------


class TestPolicyTools:
    def test_upsert_records_editor(self, fns):
        result = fns["policy_upsert"](
            policy={"name": "AML Core", "category": "AML"}, updated_by="Jordan"
        )
        assert result["id"].startswith("POL-")
        assert result["last_updated_by"] == "Jordan"

    def test_upsert_requires_name(self, fns):
        assert "error" in fns["policy_upsert"](policy={"category": "AML"})

    def test_invalid_category(self, fns):
        assert "error" in fns["policy_upsert"](policy={"name": "X", "category": "Tax"})

    def test_search_by_category(self, fns):
        fns["policy_upsert"](policy={"name": "AML Core", "category": "AML"})
        fns["policy_upsert"](policy={"name": "KYC Standard", "category": "KYC"})
        result = fns["policy_search"](category="KYC")
        assert [item["name"] for item in result["items"]] == ["KYC Standard"]

    def test_delete(self, fns, registry):
        created = fns["policy_upsert"](policy={"name": "AML Core"})
        fns["policy_delete"](policy_id=created["id"])
        assert registry.policies == []
        assert "error" in fns["policy_delete"](policy_id=created["id"])

    def test_document_add(self, fns, registry):
        created = fns["policy_upsert"](policy={"name": "AML Core"})
        doc = fns["policy_document_add"](
            policy_id=created["id"], name="AML Policy v3.pdf", type="Guidance"
        )
        assert doc["type"] == "Guidance"
        assert doc["uploaded_by"] == "Current User"

        fns["policy_upsert"](policy={"id": created["id"], "name": "AML Core v2"})
        assert [d.name for d in registry.get_policy(created["id"]).documents] == [
            "AML Policy v3.pdf"
        ]

    def test_document_add_errors(self, fns):
        created = fns["policy_upsert"](policy={"name": "AML Core"})
        assert "error" in fns["policy_document_add"](policy_id="POL-404", name="x")
        assert "error" in fns["policy_document_add"](policy_id=created["id"], name="x", type="Memo")


# ---------------------------------------------------------------------------
# Regulatory updates
# ---------------------------------------------------------------------------


class TestRegulatoryUpdateTools:
    def test_search_newest_first(self, fns, registry):
        now = datetime.now(UTC)
        registry.add_regulatory_update(
            RegulatoryUpdate(title="Old rule", publication_date=now - timedelta(days=30))
        )
        registry.add_regulatory_update(
            RegulatoryUpdate(title="New rule", publication_date=now - timedelta(days=1))
        )
        result = fns["regulatory_update_search"]()
        assert [item["title"] for item in result["items"]] == ["New rule", "Old rule"]

    def test_search_invalid_severity(self, fns):
        assert "error" in fns["regulatory_update_search"](severity="Urgent")

    def test_triage(self, fns, registry):
        upd = registry.add_regulatory_update(RegulatoryUpdate(title="Travel rule"))
        result = fns["regulatory_update_triage"](
            update_id=upd.id, status="Under Review", assigned_to="Compliance"
        )
        assert result["status"] == "Under Review"
        assert result["assigned_to"] == "Compliance"

    def test_triage_requires_a_change(self, fns, registry):
        upd = registry.add_regulatory_update(RegulatoryUpdate(title="Travel rule"))
        assert "error" in fns["regulatory_update_triage"](update_id=upd.id)

    def test_triage_invalid_status(self, fns, registry):
        upd = registry.add_regulatory_update(RegulatoryUpdate(title="Travel rule"))
        assert "error" in fns["regulatory_update_triage"](update_id=upd.id, status="Done")

    def test_triage_unknown(self, fns):
        assert "error" in fns["regulatory_update_triage"](update_id="REG-404", status="New")


class TestActionItemTools:
    @pytest.fixture
    def update_id(self, registry) -> str:
        return registry.add_regulatory_update(RegulatoryUpdate(title="Travel rule")).id

    def test_add(self, fns, registry, update_id):
        item = fns["regulatory_update_action_item_add"](
            update_id=update_id,
            description="Update transfer screening",
            assigned_to="Payments Ops",
            due_date="2030-06-30",
        )
        assert item["id"].startswith("ACT-")
        assert item["status"] == "Open"
        assert item["due_date"].startswith("2030-06-30")
        assert item["completion_date"] is None
        assert len(registry.get_regulatory_update(update_id).action_items) == 1

    def test_add_default_due_date(self, fns, update_id):
        item = fns["regulatory_update_action_item_add"](update_id=update_id, description="Review")
        due = datetime.fromisoformat(item["due_date"])
        assert timedelta(days=6) < due - datetime.now(UTC) <= timedelta(days=7)

    def test_add_errors(self, fns, update_id):
        add = fns["regulatory_update_action_item_add"]
        assert "error" in add(update_id="REG-404", description="x")
        assert "error" in add(update_id=update_id, description="")
        assert "error" in add(update_id=update_id, description="x", status="Done")
        assert add(update_id=update_id, description="x", due_date="soon")["error"].startswith(
            "Invalid due_date"
        )

    def test_complete_and_reopen(self, fns, update_id):
        item = fns["regulatory_update_action_item_add"](update_id=update_id, description="Review")
        update = fns["regulatory_update_action_item_update"]

        done = update(update_id=update_id, item_id=item["id"], status="Completed")
        assert done["status"] == "Completed"
        assert done["completion_date"] is not None

        reopened = update(update_id=update_id, item_id=item["id"], status="In Progress")
        assert reopened["completion_date"] is None

    def test_update_fields(self, fns, update_id):
        item = fns["regulatory_update_action_item_add"](update_id=update_id, description="Review")
        result = fns["regulatory_update_action_item_update"](
            update_id=update_id,
            item_id=item["id"],
            assigned_to="Legal",
            status="Completed",
            completion_date="2030-01-15",
        )
        assert result["assigned_to"] == "Legal"
        assert result["description"] == "Review"
        assert result["completion_date"].startswith("2030-01-15")

    def test_update_errors(self, fns, update_id):
        item = fns["regulatory_update_action_item_add"](update_id=update_id, description="Review")
        update = fns["regulatory_update_action_item_update"]
        assert "error" in update(update_id=update_id, item_id="ACT-404", status="Open")
        assert "error" in update(update_id=update_id, item_id=item["id"], status="Done")
        assert "error" in update(update_id=update_id, item_id=item["id"], description=" ")
        assert "error" in update(update_id=update_id, item_id=item["id"], due_date="later")

    def test_remove(self, fns, registry, update_id):
        item = fns["regulatory_update_action_item_add"](update_id=update_id, description="Review")
        result = fns["regulatory_update_action_item_remove"](update_id=update_id, item_id=item["id"])
        assert result == {"deleted": item["id"]}
        assert registry.get_regulatory_update(update_id).action_items == []
        assert "error" in fns["regulatory_update_action_item_remove"](
            update_id=update_id, item_id=item["id"]
        )


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


class TestComplianceDashboard:
    def test_metrics(self, fns, registry):
        fns["license_upsert"](license=_license_payload("Active one"))
        fns["license_upsert"](license=_license_payload("Lapsed", status="Expired"))
        registry.add_regulatory_update(RegulatoryUpdate(title="Big", severity="High"))

        assessment = RiskAssessment(scope="Payments")
        assessment.add_item("Fines", "High", "High")
        assessment.rescore()
        registry.add_risk_assessment(assessment)
        registry.record_compliance_check(ComplianceCheckResult("Feature", "Report"))

        metrics = fns["compliance_dashboard"]()
        assert metrics["active_licenses"] == 1
        assert metrics["expired_licenses"] == 1
        assert metrics["open_high_severity_updates"] == 1
        assert metrics["risk_assessments_by_rating"] == {"Critical": 1}
        assert metrics["compliance_checks"] == 1

    def test_sample_registry(self):
        sample = ComplianceRegistry.with_sample_data(seed=7)
        metrics = _register(sample)["compliance_dashboard"]()
        total = (
            metrics["active_licenses"]
            + metrics["pending_renewal_licenses"]
            + metrics["expired_licenses"]
        )
        assert total == 50
