"""Risk Scorer - Rate compliance risks by likelihood, impact and mitigation."""

from .risk_scorer import register_tools

__all__ = ["register_tools"]
