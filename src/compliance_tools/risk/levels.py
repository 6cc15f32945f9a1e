"""
Ordinal scales used by the risk scorer.

Likelihood and impact are three-point scales; inherent and residual risk use
a four-point scale. Members are ``str`` enums so they serialize as their
display names ("Low", "Critical", ...).
"""

from __future__ import annotations

from enum import Enum


class InvalidEnumError(ValueError):
    """Raised when a value is not a member of a closed ordinal scale."""

    def __init__(self, scale: str, value: object, allowed: list[str]):
        self.scale = scale
        self.value = value
        self.allowed = allowed
        super().__init__(f"Invalid {scale} {value!r}. Must be one of: {', '.join(allowed)}")


class _Ordinal(str, Enum):
    @classmethod
    def parse(cls, value: object):
        """Coerce a member or its name (case-insensitive) to a member."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if member.value.lower() == wanted:
                    return member
        raise InvalidEnumError(cls._scale_name(), value, [m.value for m in cls])

    @classmethod
    def _scale_name(cls) -> str:
        return cls.__name__.lower()


class Likelihood(_Ordinal):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Impact(_Ordinal):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class RiskLevel(_Ordinal):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @classmethod
    def _scale_name(cls) -> str:
        return "risk level"

    @property
    def rank(self) -> int:
        return RISK_LEVEL_RANK[self]


# Likelihood and impact share the 1-3 rank table
INPUT_RANK = {"Low": 1, "Medium": 2, "High": 3}

RISK_LEVEL_RANK = {
    RiskLevel.LOW: 1,
    RiskLevel.MEDIUM: 2,
    RiskLevel.HIGH: 3,
    RiskLevel.CRITICAL: 4,
}

# One level down when mitigation controls are present; Low is the floor
DEMOTION = {
    RiskLevel.CRITICAL: RiskLevel.HIGH,
    RiskLevel.HIGH: RiskLevel.MEDIUM,
    RiskLevel.MEDIUM: RiskLevel.LOW,
    RiskLevel.LOW: RiskLevel.LOW,
}
