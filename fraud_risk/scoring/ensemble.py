"""
Ensemble Scorer Module.

Combines three independently scored strategies into one bounded,
explainable fraud-risk score:

1. Anomaly detection: z-scores of the entity's features against the
   statistical profile of the training corpus
2. Pattern matching: features named by indicators learned from known
   fraud cases
3. Domain rules: fixed per-kind rule tables

Each strategy emits zero or more RiskFactors and the score is the clamped
sum of their contributions. Scoring is deterministic and side-effect
free; it reads the model but never mutates it.
"""

from dataclasses import replace
from typing import Any, Mapping, Optional, Union

from ..config import ScoringConfig, ThresholdTable
from ..models.artifact import ModelArtifact
from ..models.patterns import FraudPatterns
from ..models.profile import StatisticalProfile
from .features import (
    FEATURE_TYPES,
    ContractorFeatureExtractor,
    ContractorFeatures,
    EntityKind,
    FeatureVector,
    _as_records,
    _kind,
)
from .result import RiskFactor, RiskLevel, ScoreResult, Severity, round_half_up
from .rules import RULES

MAX_SCORE = 100
MAX_ANOMALY_CONTRIBUTION = 15

# Contribution per unit of pattern weight, per kind
PATTERN_MULTIPLIERS = {
    EntityKind.CONTRACTOR: 15,
    EntityKind.HEALTHCARE_PROVIDER: 20,
}

PATTERN_FACTOR_TYPES = {
    EntityKind.CONTRACTOR: "PATTERN_MATCH",
    EntityKind.HEALTHCARE_PROVIDER: "FRAUD_PATTERN_MATCH",
}


def coerce_features(
    kind: Union[EntityKind, str],
    features: Union[FeatureVector, Mapping[str, Any], None],
) -> FeatureVector:
    """Return the kind's feature record for ``features``.

    Open mappings are converted to the closed schema of the kind.

    Raises:
        ValueError: If ``features`` is a feature record of another kind.
    """
    kind = _kind(kind)
    feature_type = FEATURE_TYPES[kind]
    if features is None:
        return feature_type()
    if isinstance(features, feature_type):
        return features
    if isinstance(features, Mapping):
        return feature_type.from_dict(features)
    raise ValueError(
        f"Features of type {type(features).__name__} cannot be scored as {kind.value}"
    )


class EnsembleScorer:
    """
    Ensemble fraud-risk scorer.

    Holds an immutable view of the model (profile, patterns, thresholds,
    trained flag) and scores feature vectors against it. Instances carry
    no mutable state, so one scorer can serve many threads.
    """

    def __init__(
        self,
        profile: Optional[StatisticalProfile] = None,
        patterns: Optional[FraudPatterns] = None,
        thresholds: Optional[ThresholdTable] = None,
        trained: bool = False,
        config: Optional[ScoringConfig] = None,
    ):
        """
        Initialize the scorer.

        Args:
            profile: Feature statistics; empty disables anomaly detection.
            patterns: Learned fraud indicators.
            thresholds: Decision thresholds. Uses defaults if not provided.
            trained: Whether the model came out of a training run.
            config: Confidence and pattern-matching settings.
        """
        self.profile = profile or StatisticalProfile()
        self.patterns = patterns or FraudPatterns()
        self.thresholds = thresholds or ThresholdTable()
        self.trained = trained
        self.config = config or ScoringConfig()

    @classmethod
    def from_artifact(
        cls,
        artifact: Optional[ModelArtifact],
        config: Optional[ScoringConfig] = None,
    ) -> "EnsembleScorer":
        """Create a scorer for a model artifact (untrained default if None)."""
        artifact = artifact or ModelArtifact.untrained()
        return cls(
            profile=artifact.profile,
            patterns=artifact.patterns,
            thresholds=artifact.thresholds,
            trained=artifact.trained,
            config=config,
        )

    def score(
        self,
        kind: Union[EntityKind, str],
        features: Union[FeatureVector, Mapping[str, Any], None],
        strict: bool = False,
    ) -> ScoreResult:
        """
        Score one entity.

        Args:
            kind: Entity kind of the feature vector.
            features: Feature vector (record or open mapping).
            strict: Use the stricter per-record variant of volume rules.

        Returns:
            ScoreResult with factors sorted by contribution, descending.
        """
        kind = _kind(kind)
        features = coerce_features(kind, features)

        factors: list[RiskFactor] = []
        factors.extend(self.detect_anomalies(features))
        factors.extend(self.match_patterns(kind, features))
        factors.extend(self.apply_rules(kind, features, strict=strict))

        total = sum(f.contribution for f in factors)
        score = max(0, min(total, MAX_SCORE))

        return ScoreResult(
            score=score,
            risk_level=self.risk_level(score),
            # sorted() is stable: equal contributions keep strategy order
            factors=tuple(sorted(factors, key=lambda f: -f.contribution)),
            confidence=self.confidence(features),
        )

    def detect_anomalies(self, features: FeatureVector) -> list[RiskFactor]:
        """Flag features whose z-score exceeds the cutoff.

        Features missing from the profile are skipped, so an untrained
        (empty) profile contributes nothing.
        """
        anomalies = []
        cutoff = self.thresholds.z_score_cutoff

        for name, value in features.to_dict().items():
            stats = self.profile.get(name)
            if stats is None:
                continue

            z_score = stats.z_score(value)
            magnitude = abs(z_score)
            if magnitude > cutoff:
                anomalies.append(RiskFactor(
                    type="STATISTICAL_ANOMALY",
                    description=(
                        f"{name}: {value:.2f} is {z_score:.1f} std devs from mean"
                    ),
                    severity=Severity.HIGH if magnitude > 3 else Severity.MEDIUM,
                    contribution=min(round_half_up(magnitude * 5), MAX_ANOMALY_CONTRIBUTION),
                ))

        return anomalies

    def match_patterns(
        self, kind: EntityKind, features: FeatureVector
    ) -> list[RiskFactor]:
        """Flag learned indicators that name a positive feature."""
        matches = []
        if kind is EntityKind.CONTRACTOR:
            entries = self.patterns.top(self.config.contractor_pattern_top_n)
        else:
            entries = self.patterns.top()

        multiplier = PATTERN_MULTIPLIERS[kind]
        for entry in entries:
            value = features.get(entry.feature_key)
            if value is None or value <= 0:
                continue
            matches.append(RiskFactor(
                type=PATTERN_FACTOR_TYPES[kind],
                description=f"Matches known fraud indicator: {entry.indicator}",
                severity=Severity.HIGH if entry.weight > 0.3 else Severity.MEDIUM,
                contribution=round_half_up(entry.weight * multiplier),
            ))

        return matches

    def apply_rules(
        self, kind: EntityKind, features: FeatureVector, strict: bool = False
    ) -> list[RiskFactor]:
        return RULES[kind](features, self.thresholds, strict=strict)

    def risk_level(self, score: int) -> RiskLevel:
        if score >= self.thresholds.high_risk_min:
            return RiskLevel.HIGH
        if score >= self.thresholds.low_risk_max:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    def confidence(self, features: FeatureVector) -> float:
        """Base confidence scaled by how many features are present."""
        completeness = min(features.present_count / self.config.expected_feature_count, 1.0)
        base = (
            self.config.trained_confidence if self.trained
            else self.config.untrained_confidence
        )
        return round(base * completeness, 2)

    def __repr__(self) -> str:
        status = "trained" if self.trained else "untrained"
        return (
            f"EnsembleScorer({status}, profile_features={len(self.profile)}, "
            f"patterns={len(self.patterns)})"
        )


def score(
    kind: Union[EntityKind, str],
    features: Union[FeatureVector, Mapping[str, Any], None],
    artifact: Optional[ModelArtifact] = None,
    strict: bool = False,
    config: Optional[ScoringConfig] = None,
) -> ScoreResult:
    """Score one feature vector against a model artifact.

    Args:
        kind: "contractor" or "healthcare_provider".
        features: Feature vector of that kind.
        artifact: Model artifact; the untrained default when None.
        strict: Use the stricter per-record variant of volume rules.
        config: Confidence and pattern-matching settings.

    Returns:
        ScoreResult.
    """
    return EnsembleScorer.from_artifact(artifact, config).score(kind, features, strict=strict)


def score_award(
    award: Mapping[str, Any],
    history: Optional[Any] = None,
    artifact: Optional[ModelArtifact] = None,
    config: Optional[ScoringConfig] = None,
) -> ScoreResult:
    """Score a single contract award within its recipient's history.

    Entity-level features come from ``history`` plus the award itself;
    ``award_amount`` comes from the evaluated award only, so the
    absolute-amount escalators (very and extremely large awards) apply
    once per award. Without a history only the award amount is scored:
    ratios over a single award would describe the award, not the
    recipient.

    Args:
        award: One award record (amount, awarding agency, description,
            start date).
        history: The recipient's other award records (list of mappings
            or DataFrame).
        artifact: Model artifact; the untrained default when None.
        config: Confidence and pattern-matching settings.

    Returns:
        ScoreResult.
    """
    artifact = artifact or ModelArtifact.untrained()
    extractor = ContractorFeatureExtractor(artifact.thresholds.large_award_multiple)
    amount = extractor.extract([award]).award_amount

    others = _as_records(history)
    if others:
        features = replace(extractor.extract(others + [award]), award_amount=amount)
    else:
        features = ContractorFeatures(award_amount=amount)

    return EnsembleScorer.from_artifact(artifact, config).score(EntityKind.CONTRACTOR, features)
