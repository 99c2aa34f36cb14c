"""Explainable fraud-risk scoring for government contractors and healthcare providers.

Usage:
    # Training (offline)
    from fraud_risk import train, save_artifact
    artifact = train(corpus, known_cases)
    save_artifact(artifact, "models/fraud-detector-trained.json")

    # Scoring
    from fraud_risk import ModelContext
    context = ModelContext("models/fraud-detector-trained.json")
    features = context.extract_features("contractor", awards)
    result = context.score("contractor", features)
"""

from .config import RiskEngineConfig, ThresholdTable, load_config
from .scoring import (
    EnsembleScorer,
    EntityKind,
    RiskFactor,
    RiskLevel,
    ScoreResult,
    Severity,
    extract_batch,
    extract_features,
    score,
    score_award,
)
from .models import (
    Absent,
    ArtifactError,
    Loaded,
    ModelArtifact,
    ModelContext,
    evaluate_artifact,
    load_artifact,
    save_artifact,
    train,
    train_model,
)

__version__ = "1.0.0"

__all__ = [
    # Configuration
    "RiskEngineConfig",
    "ThresholdTable",
    "load_config",
    # Features
    "EntityKind",
    "extract_features",
    "extract_batch",
    # Scoring
    "EnsembleScorer",
    "RiskFactor",
    "RiskLevel",
    "ScoreResult",
    "Severity",
    "score",
    "score_award",
    # Model lifecycle
    "ModelArtifact",
    "ModelContext",
    "ArtifactError",
    "Loaded",
    "Absent",
    "load_artifact",
    "save_artifact",
    # Training
    "train",
    "train_model",
    "evaluate_artifact",
]
