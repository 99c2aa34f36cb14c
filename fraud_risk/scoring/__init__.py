"""Feature extraction and ensemble scoring."""

from .features import (
    ContractorFeatureExtractor,
    ContractorFeatures,
    EntityKind,
    HealthcareFeatureExtractor,
    HealthcareProviderFeatures,
    extract_batch,
    extract_features,
)
from .result import RiskFactor, RiskLevel, ScoreResult, Severity
from .ensemble import EnsembleScorer, score, score_award

__all__ = [
    "EntityKind",
    "ContractorFeatures",
    "HealthcareProviderFeatures",
    "ContractorFeatureExtractor",
    "HealthcareFeatureExtractor",
    "extract_features",
    "extract_batch",
    "RiskFactor",
    "RiskLevel",
    "ScoreResult",
    "Severity",
    "EnsembleScorer",
    "score",
    "score_award",
]
