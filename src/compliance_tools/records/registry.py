"""
In-memory compliance registry.

Holds licenses, policies, regulatory updates, risk assessments and the
history of AI compliance checks for the lifetime of the process. New
records get a prefixed id and are placed first in their collection.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import replace
from datetime import UTC, datetime
from typing import TypeVar

from ..risk.assessment import RiskAssessment
from ..risk.levels import RiskLevel
from .models import (
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

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ComplianceRegistry:
    """Mutable store of compliance records, keyed by record id."""

    def __init__(self, jurisdictions: list[Jurisdiction] | None = None) -> None:
        self.jurisdictions: list[Jurisdiction] = list(jurisdictions or [])
        self.licenses: list[License] = []
        self.policies: list[CompliancePolicy] = []
        self.regulatory_updates: list[RegulatoryUpdate] = []
        self.risk_assessments: list[RiskAssessment] = []
        self.compliance_checks: list[ComplianceCheckResult] = []
        self._ids = itertools.count(1000)

    @classmethod
    def with_sample_data(cls, seed: int = 42, now: datetime | None = None) -> ComplianceRegistry:
        """Build a registry pre-populated with reproducible demo records."""
        from .sample import populate

        registry = cls()
        populate(registry, seed=seed, now=now)
        return registry

    def next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    # --- generic helpers ----------------------------------------------------

    @staticmethod
    def _find(collection: list[T], record_id: str, kind: str) -> int:
        for i, record in enumerate(collection):
            if record.id == record_id:
                return i
        raise RecordNotFoundError(f"{kind} {record_id!r} not found")

    def _upsert(self, collection: list[T], record: T, prefix: str, kind: str) -> T:
        if record.id:
            collection[self._find(collection, record.id, kind)] = record
            logger.info("Updated %s %s", kind, record.id)
            return record
        record.id = self.next_id(prefix)
        collection.insert(0, record)
        logger.info("Added %s %s", kind, record.id)
        return record

    def _delete(self, collection: list[T], record_id: str, kind: str) -> T:
        removed = collection.pop(self._find(collection, record_id, kind))
        logger.info("Deleted %s %s", kind, record_id)
        return removed

    # --- jurisdictions ------------------------------------------------------

    def get_jurisdiction(self, jurisdiction_id: str) -> Jurisdiction:
        return self.jurisdictions[self._find(self.jurisdictions, jurisdiction_id, "Jurisdiction")]

    # --- licenses -----------------------------------------------------------

    def get_license(self, license_id: str) -> License:
        return self.licenses[self._find(self.licenses, license_id, "License")]

    def _audit(self, license: License, action: str, changer_id: str, details: str) -> None:
        license.audit_trail.append(
            LicenseAuditEntry(
                id=self.next_id("AUD"), action=action, changer_id=changer_id, details=details
            )
        )

    def upsert_license(self, license: License, changed_by: str = "Current User") -> License:
        """Add or replace a license and record the change in its audit trail.

        A replaced license keeps the documents and audit trail of the stored
        one; those are only changed through the registry.
        """
        license.validate()
        if self.jurisdictions:
            jurisdiction = self.get_jurisdiction(license.jurisdiction_id)
            if not license.jurisdiction:
                license.jurisdiction = jurisdiction.name
            if not license.regulatory_body:
                license.regulatory_body = jurisdiction.primary_regulator

        if not license.id:
            license.documents = list(license.documents)
            license.audit_trail = []
            stored = self._upsert(self.licenses, license, "LIC", "License")
            self._audit(stored, "Created", changed_by, f"License {stored.name!r} created")
            return stored

        current = self.get_license(license.id)
        license.documents = list(current.documents)
        license.audit_trail = list(current.audit_trail)
        self._audit(license, "Updated", changed_by, "License details updated")
        if license.status != current.status:
            self._audit(
                license,
                "Status Changed",
                changed_by,
                f"Status changed from {current.status} to {license.status}",
            )
        return self._upsert(self.licenses, license, "LIC", "License")

    def delete_license(self, license_id: str) -> License:
        return self._delete(self.licenses, license_id, "License")

    def add_license_document(
        self,
        license_id: str,
        document: LicenseDocument,
        uploaded_by: str = "Current User",
    ) -> LicenseDocument:
        license = self.get_license(license_id)
        if not document.name.strip():
            raise RecordValidationError("Missing required document field: name")
        document.id = self.next_id("DOC")
        document.uploaded_by = uploaded_by
        document.upload_date = datetime.now(UTC)
        license.documents.append(document)
        self._audit(
            license,
            "Document Uploaded",
            uploaded_by,
            f"Uploaded {document.type} document {document.name!r} (v{document.version})",
        )
        logger.info("Added document %s to license %s", document.id, license_id)
        return document

    # --- policies -----------------------------------------------------------

    def get_policy(self, policy_id: str) -> CompliancePolicy:
        return self.policies[self._find(self.policies, policy_id, "Policy")]

    def upsert_policy(self, policy: CompliancePolicy, updated_by: str = "Current User") -> CompliancePolicy:
        policy.validate()
        if policy.id:
            policy.documents = list(self.get_policy(policy.id).documents)
        policy.last_updated_by = updated_by
        policy.last_update_date = datetime.now(UTC)
        return self._upsert(self.policies, policy, "POL", "Policy")

    def delete_policy(self, policy_id: str) -> CompliancePolicy:
        return self._delete(self.policies, policy_id, "Policy")

    def add_policy_document(
        self,
        policy_id: str,
        document: PolicyDocument,
        uploaded_by: str = "Current User",
    ) -> PolicyDocument:
        policy = self.get_policy(policy_id)
        if not document.name.strip():
            raise RecordValidationError("Missing required document field: name")
        document.id = self.next_id("DOC")
        document.uploaded_by = uploaded_by
        document.upload_date = datetime.now(UTC)
        policy.documents.append(document)
        logger.info("Added document %s to policy %s", document.id, policy_id)
        return document

    # --- regulatory updates -------------------------------------------------

    def get_regulatory_update(self, update_id: str) -> RegulatoryUpdate:
        return self.regulatory_updates[
            self._find(self.regulatory_updates, update_id, "Regulatory update")
        ]

    def add_regulatory_update(self, update: RegulatoryUpdate) -> RegulatoryUpdate:
        if not update.title.strip():
            raise RecordValidationError("Missing required regulatory update field: title")
        return self._upsert(self.regulatory_updates, update, "REG", "Regulatory update")

    def triage_regulatory_update(
        self,
        update_id: str,
        status: str | None = None,
        assigned_to: str | None = None,
        impact_assessment_notes: str | None = None,
    ) -> RegulatoryUpdate:
        """Move an update through review: status, owner and impact notes."""
        index = self._find(self.regulatory_updates, update_id, "Regulatory update")
        current = self.regulatory_updates[index]
        changes: dict = {"last_updated": datetime.now(UTC)}
        if status is not None:
            if status not in UPDATE_STATUSES:
                raise RecordValidationError(
                    f"Invalid status {status!r}. Must be one of: {', '.join(UPDATE_STATUSES)}"
                )
            changes["status"] = status
        if assigned_to is not None:
            changes["assigned_to"] = assigned_to
        if impact_assessment_notes is not None:
            changes["impact_assessment_notes"] = impact_assessment_notes
        updated = replace(current, **changes)
        self.regulatory_updates[index] = updated
        logger.info("Triaged regulatory update %s (status=%s)", update_id, updated.status)
        return updated

    def _action_item_index(self, update: RegulatoryUpdate, item_id: str) -> int:
        return self._find(update.action_items, item_id, f"Action item on {update.id}")

    def add_action_item(self, update_id: str, item: ActionItem) -> ActionItem:
        update = self.get_regulatory_update(update_id)
        if not item.description.strip():
            raise RecordValidationError("Missing required action item field: description")
        item.id = self.next_id("ACT")
        if item.status == "Completed" and item.completion_date is None:
            item.completion_date = datetime.now(UTC)
        update.action_items.append(item)
        update.last_updated = datetime.now(UTC)
        logger.info("Added action item %s to regulatory update %s", item.id, update_id)
        return item

    def update_action_item(
        self,
        update_id: str,
        item_id: str,
        description: str | None = None,
        assigned_to: str | None = None,
        due_date: datetime | None = None,
        status: str | None = None,
        completion_date: datetime | None = None,
    ) -> ActionItem:
        """Change fields of an action item.

        Completing an item stamps its completion date (unless one is given);
        moving it out of Completed clears the date.
        """
        update = self.get_regulatory_update(update_id)
        index = self._action_item_index(update, item_id)
        current = update.action_items[index]
        changes: dict = {}
        if description is not None:
            if not description.strip():
                raise RecordValidationError("Action item description must not be empty")
            changes["description"] = description
        if assigned_to is not None:
            changes["assigned_to"] = assigned_to
        if due_date is not None:
            changes["due_date"] = due_date
        if status is not None:
            changes["status"] = status
        if completion_date is not None:
            changes["completion_date"] = completion_date

        updated = replace(current, **changes)
        if updated.status == "Completed" and updated.completion_date is None:
            updated.completion_date = datetime.now(UTC)
        elif updated.status != "Completed":
            updated.completion_date = None
        update.action_items[index] = updated
        update.last_updated = datetime.now(UTC)
        logger.info("Updated action item %s (status=%s)", item_id, updated.status)
        return updated

    def remove_action_item(self, update_id: str, item_id: str) -> ActionItem:
        update = self.get_regulatory_update(update_id)
        removed = update.action_items.pop(self._action_item_index(update, item_id))
        update.last_updated = datetime.now(UTC)
        logger.info("Removed action item %s from regulatory update %s", item_id, update_id)
        return removed

    # --- risk assessments ---------------------------------------------------

    def get_risk_assessment(self, assessment_id: str) -> RiskAssessment:
        return self.risk_assessments[
            self._find(self.risk_assessments, assessment_id, "Risk assessment")
        ]

    def add_risk_assessment(self, assessment: RiskAssessment) -> RiskAssessment:
        return self._upsert(self.risk_assessments, assessment, "RA", "Risk assessment")

    def delete_risk_assessment(self, assessment_id: str) -> RiskAssessment:
        return self._delete(self.risk_assessments, assessment_id, "Risk assessment")

    # --- compliance checks --------------------------------------------------

    def record_compliance_check(self, result: ComplianceCheckResult) -> ComplianceCheckResult:
        result.id = self.next_id("CCR")
        self.compliance_checks.insert(0, result)
        logger.info("Recorded compliance check %s (status=%s)", result.id, result.status)
        return result

    def get_compliance_check(self, check_id: str) -> ComplianceCheckResult:
        return self.compliance_checks[
            self._find(self.compliance_checks, check_id, "Compliance check")
        ]

    def review_compliance_check(
        self,
        check_id: str,
        reviewed_by: str,
        notes: str = "",
        risk_level: str | None = None,
    ) -> ComplianceCheckResult:
        """Sign off a check: record the reviewer and mark it Completed.

        ``risk_level`` overrides the level parsed from the AI report.
        """
        if not reviewed_by or not reviewed_by.strip():
            raise RecordValidationError("Missing required review field: reviewed_by")
        check = self.get_compliance_check(check_id)
        level = RiskLevel.parse(risk_level) if risk_level is not None else check.risk_level
        check.reviewed_by = reviewed_by
        check.review_date = datetime.now(UTC)
        check.notes = notes
        check.risk_level = level
        check.status = "Completed"
        logger.info("Compliance check %s reviewed by %s", check_id, reviewed_by)
        return check
