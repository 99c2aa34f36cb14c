"""Model state: statistical profile, learned patterns, artifact and training."""
from .profile import FeatureStats, StatisticalProfile, build_profile
from .patterns import FraudCase, FraudPatterns, PatternEntry, learn_patterns
from .artifact import (
    Absent,
    ArtifactError,
    Loaded,
    ModelArtifact,
    ModelContext,
    artifact_or_default,
    load_artifact,
    save_artifact,
)
from .training import (
    TrainingSummary,
    ValidationReport,
    evaluate_artifact,
    features_from_indicators,
    train,
    train_model,
)

__all__ = [
    # Statistical profile
    "FeatureStats",
    "StatisticalProfile",
    "build_profile",
    # Fraud patterns
    "FraudCase",
    "FraudPatterns",
    "PatternEntry",
    "learn_patterns",
    # Artifact lifecycle
    "ModelArtifact",
    "ModelContext",
    "ArtifactError",
    "Loaded",
    "Absent",
    "artifact_or_default",
    "load_artifact",
    "save_artifact",
    # Training
    "TrainingSummary",
    "ValidationReport",
    "train",
    "train_model",
    "evaluate_artifact",
    "features_from_indicators",
]
