"""Risk scoring - likelihood x impact ratings for risk assessments."""

from .assessment import (
    ASSESSMENT_STATUSES,
    EDITABLE_ITEM_FIELDS,
    AssessmentValidationError,
    RiskAssessment,
    RiskItem,
    parse_mitigation_controls,
)
from .engine import inherent_score, max_risk, residual_risk, score_assessment, score_item
from .levels import Impact, InvalidEnumError, Likelihood, RiskLevel

__all__ = [
    "ASSESSMENT_STATUSES",
    "EDITABLE_ITEM_FIELDS",
    "AssessmentValidationError",
    "Impact",
    "InvalidEnumError",
    "Likelihood",
    "RiskAssessment",
    "RiskItem",
    "RiskLevel",
    "inherent_score",
    "max_risk",
    "parse_mitigation_controls",
    "residual_risk",
    "score_assessment",
    "score_item",
]
