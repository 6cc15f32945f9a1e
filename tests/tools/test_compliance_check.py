"""
Tests for the AI compliance check tool.

Covers:
- Report parsing (suggested licenses, risk level)
- compliance_check: model call, credentials, recording, error handling
- compliance_check_history
- compliance_check_review
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from compliance_tools.config import ComplianceToolsConfig
from compliance_tools.credentials import CREDENTIAL_SPECS, CredentialStoreAdapter
from compliance_tools.records import ComplianceCheckResult, ComplianceRegistry
from compliance_tools.risk import RiskLevel
from compliance_tools.tools.compliance_check import register_tools
from compliance_tools.tools.compliance_check.compliance_check import (
    MAX_FEATURE_DESCRIPTION,
    build_prompt,
    parse_risk_level,
    parse_suggested_licenses,
)

REPORT = """**Compliance Assessment: Cross-border payments to Brazil**

1. Potential new licenses: Brazil payment institution authorization, **UK EMI** and Singapore MPI
2. Key compliance areas: AML/KYC, cross-border reporting.
3. **Risk Level:** High
4. Mitigation: enhanced due diligence on Brazilian counterparties.
"""


def _completion(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


def _register(registry=None, credentials=None, config=None) -> dict:
    mcp = MagicMock()
    fns: dict = {}
    mcp.tool.return_value = lambda fn: fns.setdefault(fn.__name__, fn)
    register_tools(mcp, credentials=credentials, registry=registry, config=config)
    return fns


# ---------------------------------------------------------------------------
# Report parsing
# ---------------------------------------------------------------------------


class TestParseSuggestedLicenses:
    def test_comma_and_and_separated(self):
        assert parse_suggested_licenses(REPORT) == [
            "Brazil payment institution authorization",
            "UK EMI",
            "Singapore MPI",
        ]

    @pytest.mark.parametrize(
        "line",
        [
            "New licenses required: MTL Texas, MTL Florida",
            "LICENSES NEEDED: MTL Texas and MTL Florida",
        ],
    )
    def test_alternate_headings(self, line):
        assert parse_suggested_licenses(line) == ["MTL Texas", "MTL Florida"]

    def test_no_heading(self):
        assert parse_suggested_licenses("No licensing impact.") == []

    def test_empty_report(self):
        assert parse_suggested_licenses("") == []


class TestParseRiskLevel:
    def test_markdown_heading(self):
        assert parse_risk_level(REPORT) == RiskLevel.HIGH

    def test_plain_line(self):
        assert parse_risk_level("Overall risk level: critical") == RiskLevel.CRITICAL

    def test_first_rating_wins(self):
        assert parse_risk_level("Risk level: Low\nRisk level: High") == RiskLevel.LOW

    def test_missing(self):
        assert parse_risk_level("Risks are manageable.") is None


class TestBuildPrompt:
    def test_includes_feature_and_context(self):
        prompt = build_prompt("Crypto wallets", "We hold an FCA EMI license.")
        assert '"Crypto wallets"' in prompt
        assert "We hold an FCA EMI license." in prompt
        assert "Potential new licenses:" in prompt
        assert "Risk level:" in prompt


# ---------------------------------------------------------------------------
# compliance_check tool
# ---------------------------------------------------------------------------


class TestComplianceCheck:
    def setup_method(self):
        self.registry = ComplianceRegistry()
        self.config = ComplianceToolsConfig(llm_model="openai/gpt-4o-mini")

    def test_success_records_result(self, monkeypatch):
        monkeypatch.delenv("COMPLIANCE_LLM_API_KEY", raising=False)
        fns = _register(registry=self.registry, config=self.config)
        with patch("litellm.completion", return_value=_completion(REPORT)) as mock_completion:
            result = fns["compliance_check"](feature_description="  Payments to Brazil  ")

        assert result["status"] == "Completed"
        assert result["risk_level"] == "High"
        assert result["suggested_licenses"][1] == "UK EMI"
        assert result["feature_description"] == "Payments to Brazil"
        assert result["id"].startswith("CCR-")
        assert self.registry.compliance_checks[0].id == result["id"]

        kwargs = mock_completion.call_args.kwargs
        assert kwargs["model"] == "openai/gpt-4o-mini"
        assert "Payments to Brazil" in kwargs["messages"][0]["content"]
        assert "api_key" not in kwargs

    def test_no_risk_level_is_pending_review(self):
        fns = _register(registry=self.registry, config=self.config)
        with patch("litellm.completion", return_value=_completion("Looks fine overall.")):
            result = fns["compliance_check"](feature_description="Dark mode")
        assert result["status"] == "Pending Review"
        assert result["risk_level"] is None
        assert result["suggested_licenses"] == []

    def test_empty_response(self):
        fns = _register(registry=self.registry, config=self.config)
        with patch("litellm.completion", return_value=_completion(None)):
            result = fns["compliance_check"](feature_description="Dark mode")
        assert result["ai_report"] == "No response generated."
        assert result["status"] == "Pending Review"

    def test_api_key_from_env(self, monkeypatch):
        monkeypatch.setenv("COMPLIANCE_LLM_API_KEY", "env-key")
        fns = _register(registry=self.registry, config=self.config)
        with patch("litellm.completion", return_value=_completion(REPORT)) as mock_completion:
            fns["compliance_check"](feature_description="Payments")
        assert mock_completion.call_args.kwargs["api_key"] == "env-key"

    def test_api_key_from_credentials(self, monkeypatch):
        monkeypatch.setenv("COMPLIANCE_LLM_API_KEY", "env-key")
        credentials = CredentialStoreAdapter(
            CREDENTIAL_SPECS, values={"compliance_llm": "stored-key"}
        )
        fns = _register(registry=self.registry, credentials=credentials, config=self.config)
        with patch("litellm.completion", return_value=_completion(REPORT)) as mock_completion:
            fns["compliance_check"](feature_description="Payments")
        assert mock_completion.call_args.kwargs["api_key"] == "stored-key"

    def test_model_error_returns_error_and_records_nothing(self):
        fns = _register(registry=self.registry, config=self.config)
        with patch("litellm.completion", side_effect=RuntimeError("quota exceeded")):
            result = fns["compliance_check"](feature_description="Payments")
        assert "quota exceeded" in result["error"]
        assert "COMPLIANCE_LLM_API_KEY" in result["help"]
        assert self.registry.compliance_checks == []

    def test_model_error_help_from_credentials(self):
        credentials = CredentialStoreAdapter(CREDENTIAL_SPECS, values={"compliance_llm": "k"})
        fns = _register(registry=self.registry, credentials=credentials, config=self.config)
        with patch("litellm.completion", side_effect=RuntimeError("bad key")):
            result = fns["compliance_check"](feature_description="Payments")
        assert result["help"] == credentials.help_text("compliance_llm")
        assert "docs.litellm.ai" in result["help"]

    def test_empty_description(self):
        fns = _register(registry=self.registry, config=self.config)
        with patch("litellm.completion") as mock_completion:
            result = fns["compliance_check"](feature_description="   ")
        assert "error" in result
        mock_completion.assert_not_called()

    def test_description_too_long(self):
        fns = _register(registry=self.registry, config=self.config)
        with patch("litellm.completion") as mock_completion:
            result = fns["compliance_check"](
                feature_description="x" * (MAX_FEATURE_DESCRIPTION + 1)
            )
        assert "too long" in result["error"]
        mock_completion.assert_not_called()


class TestComplianceCheckHistory:
    def test_newest_first_with_limit(self):
        registry = ComplianceRegistry()
        fns = _register(registry=registry)
        with patch("litellm.completion", return_value=_completion(REPORT)):
            for feature in ("First", "Second", "Third"):
                fns["compliance_check"](feature_description=feature)

        history = fns["compliance_check_history"](limit=2)
        assert history["count"] == 2
        assert history["total"] == 3
        assert [c["feature_description"] for c in history["checks"]] == ["Third", "Second"]

    def test_limit_is_clamped(self):
        fns = _register(registry=ComplianceRegistry())
        assert fns["compliance_check_history"](limit=0)["count"] == 0
        assert fns["compliance_check_history"](limit=1000)["checks"] == []


class TestComplianceCheckReview:
    def setup_method(self):
        self.registry = ComplianceRegistry()
        self.fns = _register(registry=self.registry)
        self.check = self.registry.record_compliance_check(
            ComplianceCheckResult("Crypto on-ramp", "Looks fine overall.")
        )

    def test_review_completes_check(self):
        result = self.fns["compliance_check_review"](
            check_id=self.check.id, reviewed_by="Jordan", notes="Needs MiCA review"
        )
        assert result["status"] == "Completed"
        assert result["reviewed_by"] == "Jordan"
        assert result["notes"] == "Needs MiCA review"
        assert result["review_date"] is not None
        assert result["risk_level"] is None

    def test_review_overrides_risk_level(self):
        result = self.fns["compliance_check_review"](
            check_id=self.check.id, reviewed_by="Jordan", risk_level="critical"
        )
        assert result["risk_level"] == "Critical"
        assert self.registry.compliance_checks[0].risk_level is RiskLevel.CRITICAL

    def test_review_errors(self):
        review = self.fns["compliance_check_review"]
        assert "error" in review(check_id="CCR-404", reviewed_by="Jordan")
        assert "error" in review(check_id=self.check.id, reviewed_by="  ")
        assert "error" in review(check_id=self.check.id, reviewed_by="Jordan", risk_level="Severe")
        assert self.registry.compliance_checks[0].status == "Pending Review"
