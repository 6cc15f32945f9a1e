"""
Risk Scorer - Rate compliance risks by likelihood, impact and mitigation.

Scores individual risk entries (likelihood x impact -> inherent risk, one
level lower when mitigation controls exist -> residual risk) and manages
risk assessments in the registry, whose overall rating is the worst
residual risk across their items.
"""

from __future__ import annotations

import json
from typing import Any

from fastmcp import FastMCP

from compliance_tools.dates import format_iso
from compliance_tools.records import ComplianceRegistry, RecordNotFoundError
from compliance_tools.risk import (
    ASSESSMENT_STATUSES,
    EDITABLE_ITEM_FIELDS,
    AssessmentValidationError,
    Impact,
    Likelihood,
    RiskAssessment,
    RiskItem,
    inherent_score,
    parse_mitigation_controls,
    score_assessment,
    score_item,
)

# Risk scale definition
RISK_SCALE = {
    "Critical": "score 6-9: Likely and damaging, escalate immediately",
    "High": "score 4-5: Needs an owner and active controls",
    "Medium": "score 2-3: Monitor and review periodically",
    "Low": "score 1: Accept or handle through routine processes",
}

SCORING_NOTES = (
    "Likelihood and impact rank Low=1, Medium=2, High=3; inherent score is "
    "their product. Mitigation controls lower residual risk by one level "
    "(never below Low)."
)


def _parse_json_list(data: str | list | None) -> list | None:
    """Parse a JSON array (or pass a list through), returning None on failure."""
    if isinstance(data, list):
        return data
    if not data or not data.strip():
        return None
    try:
        parsed = json.loads(data)
        return parsed if isinstance(parsed, list) else None
    except (json.JSONDecodeError, TypeError):
        return None


def _item_result(item: RiskItem) -> dict[str, Any]:
    result = item.to_dict()
    result["inherent_score"] = inherent_score(item.likelihood, item.impact)
    return result


def register_tools(
    mcp: FastMCP,
    registry: ComplianceRegistry | None = None,
) -> None:
    """Register risk scoring tools with the MCP server."""
    registry = registry if registry is not None else ComplianceRegistry()

    def _get_assessment(assessment_id: str) -> RiskAssessment | dict[str, str]:
        try:
            return registry.get_risk_assessment(assessment_id)
        except RecordNotFoundError as e:
            return {"error": str(e)}

    @mcp.tool()
    def risk_score_item(
        likelihood: str,
        impact: str,
        mitigation_controls: list[str] | str | None = None,
    ) -> dict:
        """
        Score a single compliance risk.

        Args:
            likelihood: "Low", "Medium" or "High"
            impact: "Low", "Medium" or "High"
            mitigation_controls: Controls in place, as a list or a
                comma-separated string. Any control lowers residual risk one level.

        Returns:
            Dict with inherent_score (1-9), inherent_risk and residual_risk
            (Low/Medium/High/Critical), or error

        Example:
            risk_score_item("Medium", "High", ["Automated KYC checks"])
        """
        try:
            controls = parse_mitigation_controls(mitigation_controls)
            inherent, residual = score_item(likelihood, impact, bool(controls))
            score = inherent_score(likelihood, impact)
        except ValueError as e:
            return {"error": str(e)}

        return {
            "likelihood": Likelihood.parse(likelihood).value,
            "impact": Impact.parse(impact).value,
            "mitigation_controls": list(controls),
            "inherent_score": score,
            "inherent_risk": inherent.value,
            "residual_risk": residual.value,
            "risk_scale": RISK_SCALE,
        }

    @mcp.tool()
    def risk_score_assessment(risks: str | list) -> dict:
        """
        Score a list of risks and roll them up into one overall rating.

        Args:
            risks: JSON array (or list) of objects with "likelihood", "impact",
                and optional "description" and "mitigation_controls".
                Any inherent_risk/residual_risk values given are ignored and
                recomputed.

        Returns:
            Dict with scored items (in input order), overall_risk_rating
            (worst residual risk, Low when empty) and the risk scale.
        """
        entries = _parse_json_list(risks)
        if entries is None:
            return {"error": "risks must be a JSON array of risk objects"}

        items = []
        for i, entry in enumerate(entries):
            if not isinstance(entry, dict):
                return {"error": f"Risk #{i + 1} must be an object"}
            try:
                items.append(RiskItem.from_dict(entry))
            except ValueError as e:
                return {"error": f"Risk #{i + 1}: {e}"}

        return {
            "items": [_item_result(item) for item in items],
            "overall_risk_rating": score_assessment(items).value,
            "risk_scale": RISK_SCALE,
            "scoring": SCORING_NOTES,
        }

    # --- Assessment Tools ---

    @mcp.tool()
    def risk_assessment_create(
        scope: str,
        assessed_by: str = "Current User",
        mitigation_plan: str = "",
    ) -> dict:
        """
        Create an empty risk assessment.

        Args:
            scope: What is being assessed (e.g., "New Feature: Cross-border payments")
            assessed_by: Name of the assessor
            mitigation_plan: Overall mitigation plan text

        Returns:
            Dict with the new assessment (status Pending, review date in six months)
        """
        if not scope or not scope.strip():
            return {"error": "scope is required"}
        assessment = registry.add_risk_assessment(
            RiskAssessment(scope=scope, assessed_by=assessed_by, mitigation_plan=mitigation_plan)
        )
        return assessment.to_dict()

    @mcp.tool()
    def risk_assessment_add_item(
        assessment_id: str,
        description: str,
        likelihood: str = "Low",
        impact: str = "Low",
        mitigation_controls: list[str] | str | None = None,
    ) -> dict:
        """
        Add a risk item to an assessment. Its ratings are computed immediately.

        Args:
            assessment_id: Assessment ID (e.g., "RA-1000")
            description: What could go wrong
            likelihood: "Low", "Medium" or "High"
            impact: "Low", "Medium" or "High"
            mitigation_controls: Controls in place (list or comma-separated string)

        Returns:
            Dict with the scored item and the assessment's current overall rating
        """
        assessment = _get_assessment(assessment_id)
        if isinstance(assessment, dict):
            return assessment
        try:
            item = assessment.add_item(description, likelihood, impact, mitigation_controls)
        except ValueError as e:
            return {"error": str(e)}
        return {
            "assessment_id": assessment.id,
            "item": _item_result(item),
            "overall_risk_rating": assessment.rescore().value,
        }

    @mcp.tool()
    def risk_assessment_update_item(
        assessment_id: str,
        item_id: str,
        field: str,
        value: str | list[str],
    ) -> dict:
        """
        Change one field of a risk item and re-derive its ratings.

        Args:
            assessment_id: Assessment ID
            item_id: Risk item ID
            field: One of "description", "likelihood", "impact", "mitigation_controls"
            value: New value (controls as a list or comma-separated string)

        Returns:
            Dict with the updated item and the assessment's overall rating
        """
        assessment = _get_assessment(assessment_id)
        if isinstance(assessment, dict):
            return assessment
        if field not in EDITABLE_ITEM_FIELDS:
            return {
                "error": f"Unknown field {field!r}",
                "help": f"Editable fields: {', '.join(EDITABLE_ITEM_FIELDS)}",
            }
        try:
            item = assessment.update_item(item_id, field, value)
        except KeyError as e:
            return {"error": e.args[0]}
        except ValueError as e:
            return {"error": str(e)}
        return {
            "assessment_id": assessment.id,
            "item": _item_result(item),
            "overall_risk_rating": assessment.rescore().value,
        }

    @mcp.tool()
    def risk_assessment_remove_item(assessment_id: str, item_id: str) -> dict:
        """
        Remove a risk item from an assessment.

        Returns:
            Dict with the removed item ID and the assessment's overall rating
        """
        assessment = _get_assessment(assessment_id)
        if isinstance(assessment, dict):
            return assessment
        try:
            removed = assessment.remove_item(item_id)
        except KeyError as e:
            return {"error": e.args[0]}
        return {
            "assessment_id": assessment.id,
            "removed_item_id": removed.id,
            "overall_risk_rating": assessment.rescore().value,
        }

    @mcp.tool()
    def risk_assessment_submit(assessment_id: str, status: str | None = None) -> dict:
        """
        Validate an assessment, recompute its overall rating and optionally set status.

        The assessment needs a scope and at least one risk item.

        Args:
            assessment_id: Assessment ID
            status: Optional new status ("Completed", "Pending" or "Rejected")

        Returns:
            Dict with the final assessment, or error
        """
        assessment = _get_assessment(assessment_id)
        if isinstance(assessment, dict):
            return assessment
        if status is not None and status not in ASSESSMENT_STATUSES:
            return {"error": f"Invalid status. Must be one of: {', '.join(ASSESSMENT_STATUSES)}"}
        try:
            assessment.finalize()
        except AssessmentValidationError as e:
            return {"error": str(e)}
        if status is not None:
            assessment.status = status
        return assessment.to_dict()

    @mcp.tool()
    def risk_assessment_get(assessment_id: str) -> dict:
        """Fetch a risk assessment with all of its items."""
        assessment = _get_assessment(assessment_id)
        if isinstance(assessment, dict):
            return assessment
        return assessment.to_dict()

    @mcp.tool()
    def risk_assessment_list(status: str | None = None) -> dict:
        """
        List risk assessments, newest first.

        Args:
            status: Optional filter ("Completed", "Pending" or "Rejected")

        Returns:
            Dict with count and assessment summaries
        """
        if status is not None and status not in ASSESSMENT_STATUSES:
            return {"error": f"Invalid status. Must be one of: {', '.join(ASSESSMENT_STATUSES)}"}
        found = [a for a in registry.risk_assessments if status is None or a.status == status]
        return {
            "count": len(found),
            "assessments": [
                {
                    "id": a.id,
                    "scope": a.scope,
                    "status": a.status,
                    "risk_count": len(a.identified_risks),
                    "overall_risk_rating": a.overall_risk_rating.value,
                    "review_date": format_iso(a.review_date),
                }
                for a in found
            ],
        }

    @mcp.tool()
    def risk_assessment_delete(assessment_id: str) -> dict:
        """Delete a risk assessment."""
        try:
            removed = registry.delete_risk_assessment(assessment_id)
        except RecordNotFoundError as e:
            return {"error": str(e)}
        return {"deleted": removed.id}
