"""
Risk items and risk assessments.

A RiskItem is immutable: its inherent and residual risk are derived in
``__post_init__`` and every edit goes through ``with_update``, which builds a
new item. The derived fields can therefore never be stale.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

from ..dates import add_months, format_iso, parse_iso
from .engine import score_assessment, score_item
from .levels import Impact, InvalidEnumError, Likelihood, RiskLevel

ASSESSMENT_STATUSES = ("Completed", "Pending", "Rejected")

# Fields a caller may edit on a RiskItem
EDITABLE_ITEM_FIELDS = ("description", "likelihood", "impact", "mitigation_controls")


class AssessmentValidationError(ValueError):
    """Raised when an assessment is not ready to be submitted."""


def parse_mitigation_controls(value: str | Iterable[str] | None) -> tuple[str, ...]:
    """Normalize controls given as a list or a comma-separated string.

    Raises:
        ValueError: value is neither a string nor an iterable of strings.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    elif isinstance(value, (bytes, dict)) or not isinstance(value, Iterable):
        raise ValueError(
            f"mitigation_controls must be a string or a list of strings, "
            f"got {type(value).__name__}"
        )
    controls = []
    for control in value:
        if not isinstance(control, str):
            raise ValueError(
                f"mitigation_controls entries must be strings, got {type(control).__name__}"
            )
        if control.strip():
            controls.append(control.strip())
    return tuple(controls)


def _new_item_id() -> str:
    return f"RISK-{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class RiskItem:
    description: str = ""
    likelihood: Likelihood = Likelihood.LOW
    impact: Impact = Impact.LOW
    mitigation_controls: tuple[str, ...] = ()
    id: str = field(default_factory=_new_item_id)
    inherent_risk: RiskLevel = field(init=False)
    residual_risk: RiskLevel = field(init=False)

    def __post_init__(self) -> None:
        likelihood = Likelihood.parse(self.likelihood)
        impact = Impact.parse(self.impact)
        controls = parse_mitigation_controls(self.mitigation_controls)
        inherent, residual = score_item(likelihood, impact, bool(controls))
        description = "" if self.description is None else str(self.description)
        object.__setattr__(self, "description", description)
        object.__setattr__(self, "likelihood", likelihood)
        object.__setattr__(self, "impact", impact)
        object.__setattr__(self, "mitigation_controls", controls)
        object.__setattr__(self, "inherent_risk", inherent)
        object.__setattr__(self, "residual_risk", residual)

    @property
    def has_mitigation(self) -> bool:
        return bool(self.mitigation_controls)

    def with_update(self, field_name: str, value: Any) -> RiskItem:
        """Return a copy with one field changed and risks re-derived."""
        if field_name == "description":
            return replace(self, description=value)
        if field_name == "likelihood":
            return replace(self, likelihood=Likelihood.parse(value))
        if field_name == "impact":
            return replace(self, impact=Impact.parse(value))
        if field_name == "mitigation_controls":
            return replace(self, mitigation_controls=parse_mitigation_controls(value))
        raise ValueError(
            f"Unknown risk item field {field_name!r}. "
            f"Editable fields: {', '.join(EDITABLE_ITEM_FIELDS)}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "likelihood": self.likelihood.value,
            "impact": self.impact.value,
            "mitigation_controls": list(self.mitigation_controls),
            "inherent_risk": self.inherent_risk.value,
            "residual_risk": self.residual_risk.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RiskItem:
        """Build an item from a dict. Stored derived ratings are ignored."""
        kwargs: dict[str, Any] = {
            "description": data.get("description") or "",
            "likelihood": data.get("likelihood", Likelihood.LOW),
            "impact": data.get("impact", Impact.LOW),
            "mitigation_controls": data.get("mitigation_controls"),
        }
        if data.get("id"):
            kwargs["id"] = str(data["id"])
        return cls(**kwargs)


@dataclass
class RiskAssessment:
    scope: str = ""
    assessed_by: str = ""
    mitigation_plan: str = ""
    status: str = "Pending"
    id: str = ""
    assessment_date: datetime = field(default_factory=lambda: datetime.now(UTC))
    review_date: datetime | None = None
    identified_risks: list[RiskItem] = field(default_factory=list)
    overall_risk_rating: RiskLevel = RiskLevel.LOW

    def __post_init__(self) -> None:
        if self.status not in ASSESSMENT_STATUSES:
            raise InvalidEnumError("assessment status", self.status, list(ASSESSMENT_STATUSES))
        if self.review_date is None:
            self.review_date = add_months(self.assessment_date, 6)

    # --- item editing -------------------------------------------------------

    def _index_of(self, item_id: str) -> int:
        for i, item in enumerate(self.identified_risks):
            if item.id == item_id:
                return i
        raise KeyError(f"Risk item {item_id!r} not found in assessment {self.id or '(new)'}")

    def get_item(self, item_id: str) -> RiskItem:
        return self.identified_risks[self._index_of(item_id)]

    def add_item(
        self,
        description: str = "",
        likelihood: Likelihood | str = Likelihood.LOW,
        impact: Impact | str = Impact.LOW,
        mitigation_controls: str | Iterable[str] | None = None,
    ) -> RiskItem:
        item = RiskItem(
            description=description,
            likelihood=likelihood,
            impact=impact,
            mitigation_controls=parse_mitigation_controls(mitigation_controls),
        )
        self.identified_risks.append(item)
        return item

    def update_item(self, item_id: str, field_name: str, value: Any) -> RiskItem:
        index = self._index_of(item_id)
        updated = self.identified_risks[index].with_update(field_name, value)
        self.identified_risks[index] = updated
        return updated

    def remove_item(self, item_id: str) -> RiskItem:
        return self.identified_risks.pop(self._index_of(item_id))

    # --- scoring ------------------------------------------------------------

    def rescore(self) -> RiskLevel:
        """Recompute the overall rating from the current items."""
        self.overall_risk_rating = score_assessment(self.identified_risks)
        return self.overall_risk_rating

    def validate_for_submission(self) -> None:
        if not self.scope.strip() or not self.identified_risks:
            raise AssessmentValidationError(
                "Please define the scope and at least one risk item for the assessment."
            )

    def finalize(self) -> RiskLevel:
        """Validate and rescore before the assessment is submitted."""
        self.validate_for_submission()
        return self.rescore()

    # --- serialization ------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "scope": self.scope,
            "assessed_by": self.assessed_by,
            "assessment_date": format_iso(self.assessment_date),
            "review_date": format_iso(self.review_date),
            "status": self.status,
            "mitigation_plan": self.mitigation_plan,
            "identified_risks": [item.to_dict() for item in self.identified_risks],
            "overall_risk_rating": self.overall_risk_rating.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RiskAssessment:
        assessment = cls(
            scope=data.get("scope") or "",
            assessed_by=data.get("assessed_by") or "",
            mitigation_plan=data.get("mitigation_plan") or "",
            status=data.get("status") or "Pending",
            id=data.get("id") or "",
            assessment_date=parse_iso(data.get("assessment_date")) or datetime.now(UTC),
            review_date=parse_iso(data.get("review_date")),
            identified_risks=[RiskItem.from_dict(r) for r in data.get("identified_risks") or []],
        )
        assessment.rescore()
        return assessment
