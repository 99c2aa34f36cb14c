"""
Score result types.

Defines the explainable output of the ensemble scorer: a bounded score,
a risk level, the risk factors that produced it, and a confidence value.
"""

import math
import sys
from dataclasses import dataclass
from enum import Enum


class Severity(str, Enum):
    """Severity of a single risk factor."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RiskLevel(str, Enum):
    """Risk band derived from the score and the threshold table."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounding up.

    Overflowed products of large finite features saturate at the largest
    float instead of raising, so callers can still cap the result.
    """
    if math.isinf(value):
        value = math.copysign(sys.float_info.max, value)
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class RiskFactor:
    """One explainable contribution to a score."""

    type: str  # e.g. STATISTICAL_ANOMALY, PRIOR_EXCLUSION
    description: str
    severity: Severity
    contribution: int

    def __post_init__(self):
        if self.contribution < 0:
            raise ValueError("Risk factor contribution must be non-negative")

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "type": self.type,
            "description": self.description,
            "severity": self.severity.value,
            "contribution": self.contribution,
        }


@dataclass(frozen=True)
class ScoreResult:
    """Result of scoring a single entity."""

    score: int  # 0-100
    risk_level: RiskLevel
    factors: tuple[RiskFactor, ...]  # descending by contribution
    confidence: float  # 0-1

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "score": self.score,
            "risk_level": self.risk_level.value,
            "factors": [f.to_dict() for f in self.factors],
            "confidence": self.confidence,
        }

    def factor_types(self) -> list[str]:
        return [f.type for f in self.factors]
