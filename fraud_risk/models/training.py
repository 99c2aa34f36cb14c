"""Offline training for the fraud-risk model.

Training is a fixed-heuristic pipeline, not an optimizer:

1. Build the statistical profile from a corpus of feature vectors
2. Learn weighted indicators from labeled fraud cases
3. Bundle both with the threshold table into a ModelArtifact

Example:
    artifact = train(corpus, known_cases)
    save_artifact(artifact, "models/fraud-detector-trained.json")

    # Or the full pipeline with validation and saving
    artifact, report = train_model(corpus, known_cases, normal_vectors,
                                   output_path="models/fraud-detector-trained.json")
"""

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from ..config import ScoringConfig, ThresholdTable
from ..utils.logging import get_logger
from .artifact import MODEL_VERSION, ModelArtifact, save_artifact
from .patterns import MAX_PATTERNS, FraudCase, learn_patterns
from .profile import build_profile

logger = get_logger("fraud_risk.training")


@dataclass(frozen=True)
class TrainingSummary:
    """Counts describing one training run."""

    feature_count: int
    pattern_count: int
    corpus_size: int
    labeled_cases: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ValidationReport:
    """Scores of known fraud cases versus baseline entities."""

    true_positive_rate: float
    avg_fraud_score: float
    avg_normal_score: float
    fraud_score_range: Optional[tuple[int, int]]
    normal_score_range: Optional[tuple[int, int]]

    def to_dict(self) -> dict:
        return asdict(self)


def train(
    training_corpus: Iterable[Any],
    labeled_fraud_cases: Iterable[Union[FraudCase, Mapping[str, Any]]] = (),
    thresholds: Optional[ThresholdTable] = None,
    max_patterns: int = MAX_PATTERNS,
) -> ModelArtifact:
    """
    Train a model artifact.

    Training with no labeled cases is valid and yields an artifact with an
    empty pattern list that is still marked as trained.

    Args:
        training_corpus: Feature vectors of baseline entities.
        labeled_fraud_cases: Known fraud cases with indicators, category
            and outcome amount.
        thresholds: Threshold table to bundle. Uses defaults if not provided.
        max_patterns: Number of indicators to retain.

    Returns:
        Trained ModelArtifact (not yet saved, ``saved_at`` is None).
    """
    corpus = list(training_corpus)
    cases = [c if isinstance(c, FraudCase) else FraudCase.from_dict(c) for c in labeled_fraud_cases]

    with logger.timer("training", log_result=False):
        profile = build_profile(corpus)
        patterns = learn_patterns(cases, max_patterns=max_patterns)

    artifact = ModelArtifact(
        version=MODEL_VERSION,
        trained=True,
        profile=profile,
        patterns=patterns,
        thresholds=thresholds or ThresholdTable(),
    )

    summary = summarize_training(artifact, len(corpus), len(cases))
    logger.log_training_result(**summary.to_dict())
    return artifact


def summarize_training(
    artifact: ModelArtifact, corpus_size: int, labeled_cases: int
) -> TrainingSummary:
    return TrainingSummary(
        feature_count=len(artifact.profile),
        pattern_count=len(artifact.patterns),
        corpus_size=corpus_size,
        labeled_cases=labeled_cases,
    )


def features_from_indicators(indicators: Sequence[str]):
    """Synthesize a contractor feature vector from fraud indicator phrases.

    Used to score labeled cases, which carry indicators rather than raw
    award records.
    """
    from ..scoring.features import ContractorFeatures

    values = {
        "large_award_ratio": 0.0,
        "agency_concentration": 0.0,
        "sole_source_ratio": 0.0,
        "year_over_year_growth": 1.0,
        "high_risk_category_ratio": 0.0,
        "defense_ratio": 0.0,
    }

    for indicator in indicators:
        text = indicator.lower()
        if "rapid" in text or "growth" in text:
            values["year_over_year_growth"] = 2.5
        if "sole" in text or "source" in text:
            values["sole_source_ratio"] = 0.7
        if "concentration" in text or "single" in text:
            values["agency_concentration"] = 0.9
        if "large" in text or "overrun" in text:
            values["large_award_ratio"] = 0.5
        if "consult" in text or "it " in text or "software" in text:
            values["high_risk_category_ratio"] = 0.6

    return ContractorFeatures.from_dict(values)


def evaluate_artifact(
    artifact: ModelArtifact,
    fraud_cases: Iterable[Union[FraudCase, Mapping[str, Any]]],
    normal_vectors: Iterable[Any] = (),
    config: Optional[ScoringConfig] = None,
) -> ValidationReport:
    """
    Score known fraud cases and baseline contractors with an artifact.

    A fraud case counts as detected when it lands in the Medium or High
    band.

    Args:
        artifact: Model to evaluate.
        fraud_cases: Labeled cases; scored via their indicators.
        normal_vectors: Contractor feature vectors assumed legitimate.
        config: Scoring settings.

    Returns:
        ValidationReport.
    """
    from ..scoring.ensemble import EnsembleScorer
    from ..scoring.features import EntityKind
    from ..scoring.result import RiskLevel

    scorer = EnsembleScorer.from_artifact(artifact, config)
    cases = [c if isinstance(c, FraudCase) else FraudCase.from_dict(c) for c in fraud_cases]

    fraud_scores = []
    detected = 0
    for case in cases:
        result = scorer.score(EntityKind.CONTRACTOR, features_from_indicators(case.indicators))
        fraud_scores.append(result.score)
        if result.risk_level in (RiskLevel.MEDIUM, RiskLevel.HIGH):
            detected += 1

    normal_scores = [
        scorer.score(EntityKind.CONTRACTOR, vector).score for vector in normal_vectors
    ]

    return ValidationReport(
        true_positive_rate=detected / len(cases) if cases else 0.0,
        avg_fraud_score=sum(fraud_scores) / len(fraud_scores) if fraud_scores else 0.0,
        avg_normal_score=sum(normal_scores) / len(normal_scores) if normal_scores else 0.0,
        fraud_score_range=(min(fraud_scores), max(fraud_scores)) if fraud_scores else None,
        normal_score_range=(min(normal_scores), max(normal_scores)) if normal_scores else None,
    )


def train_model(
    training_corpus: Iterable[Any],
    labeled_fraud_cases: Iterable[Union[FraudCase, Mapping[str, Any]]] = (),
    normal_vectors: Iterable[Any] = (),
    output_path: Optional[Union[str, Path]] = None,
    thresholds: Optional[ThresholdTable] = None,
) -> tuple[ModelArtifact, dict]:
    """
    Full training pipeline: train, validate, and optionally save.

    Args:
        training_corpus: Feature vectors of baseline entities.
        labeled_fraud_cases: Known fraud cases.
        normal_vectors: Contractor vectors for the validation report.
        output_path: Where to save the artifact; not saved when None.
        thresholds: Threshold table to bundle.

    Returns:
        Tuple of (artifact, report). The report holds the training summary
        and the validation results. The artifact carries ``saved_at`` when
        it was saved.
    """
    corpus = list(training_corpus)
    cases = [c if isinstance(c, FraudCase) else FraudCase.from_dict(c) for c in labeled_fraud_cases]

    artifact = train(corpus, cases, thresholds=thresholds)
    validation = evaluate_artifact(artifact, cases, normal_vectors)
    logger.info(
        "Model validated",
        true_positive_rate=round(validation.true_positive_rate, 3),
        avg_fraud_score=round(validation.avg_fraud_score, 1),
        avg_normal_score=round(validation.avg_normal_score, 1),
    )

    if output_path is not None:
        artifact = save_artifact(artifact, output_path)

    report = {
        "trained_at": artifact.saved_at.isoformat() if artifact.saved_at else None,
        "model_stats": summarize_training(artifact, len(corpus), len(cases)).to_dict(),
        "validation": validation.to_dict(),
    }
    return artifact, report
