"""
Risk scoring engine - likelihood x impact to inherent/residual risk.

Pure functions only: no state is kept between calls, so every function here
is safe to call from any thread or task.
"""

from __future__ import annotations

from collections.abc import Iterable

from .levels import DEMOTION, INPUT_RANK, Impact, Likelihood, RiskLevel


def inherent_score(likelihood: Likelihood | str, impact: Impact | str) -> int:
    """Return rank(likelihood) * rank(impact), an integer in [1, 9]."""
    likelihood = Likelihood.parse(likelihood)
    impact = Impact.parse(impact)
    return INPUT_RANK[likelihood.value] * INPUT_RANK[impact.value]


def _score_to_risk(score: int) -> RiskLevel:
    """Bucket an inherent score. Boundary values go to the higher bucket."""
    if score >= 6:
        return RiskLevel.CRITICAL
    if score >= 4:
        return RiskLevel.HIGH
    if score >= 2:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def residual_risk(inherent: RiskLevel | str, has_mitigation: bool) -> RiskLevel:
    """Demote ``inherent`` by one level when mitigation controls exist."""
    inherent = RiskLevel.parse(inherent)
    if not has_mitigation:
        return inherent
    return DEMOTION[inherent]


def score_item(
    likelihood: Likelihood | str,
    impact: Impact | str,
    has_mitigation: bool,
) -> tuple[RiskLevel, RiskLevel]:
    """
    Score a single risk entry.

    Args:
        likelihood: Low, Medium or High (member or name).
        impact: Low, Medium or High (member or name).
        has_mitigation: Whether the entry lists any mitigation controls.

    Returns:
        (inherent_risk, residual_risk)

    Raises:
        InvalidEnumError: likelihood or impact is not on the three-point scale.
    """
    inherent = _score_to_risk(inherent_score(likelihood, impact))
    return inherent, residual_risk(inherent, bool(has_mitigation))


def max_risk(levels: Iterable[RiskLevel | str]) -> RiskLevel:
    """Highest level in ``levels``; Low for an empty iterable."""
    worst = RiskLevel.LOW
    for level in levels:
        level = RiskLevel.parse(level)
        if level.rank > worst.rank:
            worst = level
    return worst


def score_assessment(items: Iterable) -> RiskLevel:
    """
    Roll scored items up into one overall rating.

    Each item must expose ``residual_risk`` (a RiskItem, or any object with
    that attribute). The result is the worst residual risk, or Low when there
    are no items.
    """
    return max_risk(item.residual_risk for item in items)
