"""
Compliance Check - AI review of a proposed product feature.

Sends a structured reviewer prompt to a text-generation model (via LiteLLM)
and records the report, the licenses it suggests and the risk level it
states in the registry's check history. A reviewer can then sign off a
check with notes and an adjusted risk level.
"""

from __future__ import annotations

import logging
import os
import re
from typing import TYPE_CHECKING

import litellm
from fastmcp import FastMCP

from compliance_tools.config import ComplianceToolsConfig, default_config
from compliance_tools.records import (
    ComplianceCheckResult,
    ComplianceRegistry,
    RecordNotFoundError,
    RecordValidationError,
)
from compliance_tools.risk import InvalidEnumError, RiskLevel

if TYPE_CHECKING:
    from compliance_tools.credentials import CredentialStoreAdapter

logger = logging.getLogger(__name__)

MAX_FEATURE_DESCRIPTION = 5000

_SUGGESTED_LICENSES_RE = re.compile(
    r"(?:new licenses required:|potential new licenses:|licenses needed:)\s*([^\n\r]+)",
    re.IGNORECASE,
)
_LICENSE_SPLIT_RE = re.compile(r",|\sand\s", re.IGNORECASE)
_RISK_LEVEL_RE = re.compile(r"risk level\W*(low|medium|high|critical)\b", re.IGNORECASE)


def build_prompt(feature_description: str, licensing_context: str) -> str:
    """Compose the reviewer prompt for one feature description."""
    return f"""As a highly experienced financial compliance expert and regulatory lawyer, \
meticulously review the following new feature description and provide a comprehensive \
compliance assessment.

**New Feature Description:** "{feature_description}"

**Our Existing Licensing Context (summary):** {licensing_context}

**Your Task:**
1. **Identify Potential New Licenses:** Based on the feature, what new licenses or \
regulatory registrations might be required? Consider different jurisdictions. List them \
on one line starting with "Potential new licenses:".
2. **Key Compliance Areas:** Highlight the most critical compliance areas impacted by this \
feature (e.g., AML/KYC, consumer protection, data privacy, cross-border reporting, \
sanctions, capital requirements).
3. **Regulatory Challenges/Risks:** Describe specific regulatory challenges or risks this \
feature might introduce. State the overall rating on one line as \
"Risk level: Low|Medium|High|Critical".
4. **Mitigation Strategies:** Suggest high-level strategies or considerations to mitigate \
these risks and ensure compliance.
5. **Jurisdictional Nuances:** If applicable, point out significant differences or specific \
requirements in key potential jurisdictions.

Provide your response in a structured, professional report format, suitable for internal \
compliance review."""


def parse_suggested_licenses(report: str) -> list[str]:
    """Extract the license list from the report's "new licenses" line."""
    match = _SUGGESTED_LICENSES_RE.search(report or "")
    if not match:
        return []
    parts = _LICENSE_SPLIT_RE.split(match.group(1))
    return [p.strip().strip("*").strip() for p in parts if p.strip().strip("*").strip()]


def parse_risk_level(report: str) -> RiskLevel | None:
    """Return the first "Risk level: X" rating stated in the report, if any."""
    match = _RISK_LEVEL_RE.search(report or "")
    if not match:
        return None
    return RiskLevel.parse(match.group(1))


def register_tools(
    mcp: FastMCP,
    credentials: CredentialStoreAdapter | None = None,
    registry: ComplianceRegistry | None = None,
    config: ComplianceToolsConfig | None = None,
) -> None:
    """Register AI compliance check tools with the MCP server."""
    registry = registry if registry is not None else ComplianceRegistry()
    config = config or default_config

    def _get_api_key() -> str | None:
        """Get the model API key from credential manager or environment."""
        if credentials is not None:
            api_key = credentials.get("compliance_llm")
            if api_key is not None and not isinstance(api_key, str):
                api_key = None
            return api_key or None
        return os.getenv("COMPLIANCE_LLM_API_KEY") or None

    def _generate(prompt: str) -> str:
        kwargs = {
            "model": config.llm_model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": config.llm_temperature,
        }
        api_key = _get_api_key()
        if api_key:
            kwargs["api_key"] = api_key
        response = litellm.completion(**kwargs)
        return response.choices[0].message.content or ""

    @mcp.tool()
    def compliance_check(feature_description: str) -> dict:
        """
        Run an AI compliance review of a proposed product feature.

        The model is asked which new licenses the feature may need, which
        compliance areas it touches, its risks and mitigations, and any
        jurisdiction-specific requirements. The result is stored in the
        check history.

        Args:
            feature_description: Plain-language description of the feature
                (e.g., "Allow cross-border payments to Brazil")

        Returns:
            Dict with id, report, suggested_licenses, risk_level and status
            ("Completed" when the report states a risk level, otherwise
            "Pending Review"), or error
        """
        feature_description = (feature_description or "").strip()
        if not feature_description:
            return {"error": "feature_description is required"}
        if len(feature_description) > MAX_FEATURE_DESCRIPTION:
            return {
                "error": (
                    f"feature_description is too long "
                    f"(max {MAX_FEATURE_DESCRIPTION} characters)"
                )
            }

        prompt = build_prompt(feature_description, config.licensing_context)
        logger.debug("Requesting compliance review from %s", config.llm_model)
        try:
            report = _generate(prompt)
        except Exception as e:
            logger.warning("AI compliance check failed: %s", e)
            help_text = (
                "Check the model name (COMPLIANCE_LLM_MODEL) and API key "
                "(COMPLIANCE_LLM_API_KEY), then try again."
            )
            if credentials is not None:
                help_text = credentials.help_text("compliance_llm") or help_text
            return {"error": f"Compliance check failed: {e}", "help": help_text}

        if not report.strip():
            report = "No response generated."
        risk_level = parse_risk_level(report)
        result = registry.record_compliance_check(
            ComplianceCheckResult(
                feature_description=feature_description,
                ai_report=report,
                suggested_licenses=parse_suggested_licenses(report),
                risk_level=risk_level,
                status="Completed" if risk_level is not None else "Pending Review",
            )
        )
        return result.to_dict()

    @mcp.tool()
    def compliance_check_history(limit: int = 20) -> dict:
        """
        List previous AI compliance checks, newest first.

        Args:
            limit: Maximum number of checks to return (1-100, default 20)

        Returns:
            Dict with count and checks
        """
        limit = max(1, min(100, limit))
        checks = registry.compliance_checks[:limit]
        return {
            "count": len(checks),
            "total": len(registry.compliance_checks),
            "checks": [c.to_dict() for c in checks],
        }

    @mcp.tool()
    def compliance_check_review(
        check_id: str,
        reviewed_by: str,
        notes: str = "",
        risk_level: str | None = None,
    ) -> dict:
        """
        Record a compliance officer's review of an AI compliance check.

        Marks the check "Completed" and stamps the review date.

        Args:
            check_id: Compliance check ID (e.g., "CCR-1100")
            reviewed_by: Reviewer name (required)
            notes: Review notes
            risk_level: Optional override of the AI rating ("Low", "Medium",
                "High", "Critical")

        Returns:
            Dict with the reviewed check or error
        """
        try:
            check = registry.review_compliance_check(
                check_id, reviewed_by, notes=notes, risk_level=risk_level
            )
        except (RecordNotFoundError, RecordValidationError, InvalidEnumError) as e:
            return {"error": str(e)}
        return check.to_dict()
