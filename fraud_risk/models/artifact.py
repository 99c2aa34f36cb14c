"""
Model Artifact Module.

The model artifact bundles everything the scorer learns from training:
the statistical profile, the learned fraud patterns and the threshold
table, plus a version, a trained flag and the time it was saved. It is
the only persisted state of the engine, stored as a single JSON document.

Loading never raises: ``load_artifact`` returns ``Loaded(artifact)`` or
``Absent(reason)``, and callers fall back to the untrained default on
``Absent``. ``ModelContext`` owns the process-wide lifecycle: the artifact
is loaded at most once, on first use, and is immutable afterwards.
"""

import json
import os
import tempfile
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, ValidationError

from ..config import ScoringConfig, ThresholdTable
from ..utils.logging import configure_logging, get_logger
from .patterns import FraudPatterns
from .profile import StatisticalProfile

MODEL_VERSION = "1.0.0"

logger = get_logger("fraud_risk.models")


class ArtifactError(ValueError):
    """Raised when a model artifact document is malformed."""


class _ArtifactDocument(BaseModel):
    """Envelope of the persisted document; section contents are checked separately."""

    version: str = MODEL_VERSION
    trained: bool = False
    profile: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("profile", "featureStats")
    )
    patterns: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("patterns", "fraudPatterns")
    )
    thresholds: dict[str, Any] = Field(default_factory=dict)
    saved_at: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("saved_at", "savedAt")
    )


@dataclass(frozen=True)
class ModelArtifact:
    """Versioned bundle of profile, patterns and thresholds."""

    version: str = MODEL_VERSION
    trained: bool = False
    profile: StatisticalProfile = field(default_factory=StatisticalProfile)
    patterns: FraudPatterns = field(default_factory=FraudPatterns)
    thresholds: ThresholdTable = field(default_factory=ThresholdTable)
    saved_at: Optional[datetime] = None

    @classmethod
    def untrained(cls, thresholds: Optional[ThresholdTable] = None) -> "ModelArtifact":
        """Default artifact: empty profile and patterns, built-in thresholds."""
        return cls(thresholds=thresholds or ThresholdTable())

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "trained": self.trained,
            "profile": self.profile.to_dict(),
            "patterns": self.patterns.to_dict(),
            "thresholds": self.thresholds.to_mapping(),
            "saved_at": self.saved_at.isoformat() if self.saved_at else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ModelArtifact":
        """Build an artifact from a persisted document.

        Also accepts documents from earlier model versions
        (``featureStats``, ``fraudPatterns``, camelCase thresholds).

        Raises:
            ArtifactError: If the document or any section is malformed.
        """
        if not isinstance(data, Mapping):
            raise ArtifactError("Model artifact must be a JSON object")
        try:
            document = _ArtifactDocument.model_validate(dict(data))
            return cls(
                version=document.version,
                trained=document.trained,
                profile=StatisticalProfile.from_dict(document.profile),
                patterns=FraudPatterns.from_dict(document.patterns),
                thresholds=ThresholdTable.from_mapping(document.thresholds),
                saved_at=document.saved_at,
            )
        except ArtifactError:
            raise
        except (ValidationError, ValueError, TypeError, AttributeError) as e:
            raise ArtifactError(f"Invalid model artifact: {e}") from e

    def same_model(self, other: "ModelArtifact") -> bool:
        """Value equality ignoring ``saved_at``."""
        return (
            self.version == other.version
            and self.trained == other.trained
            and self.profile == other.profile
            and self.patterns == other.patterns
            and self.thresholds == other.thresholds
        )


@dataclass(frozen=True)
class Loaded:
    """A model artifact was read and validated."""
    artifact: ModelArtifact


@dataclass(frozen=True)
class Absent:
    """No usable artifact; ``reason`` says why."""
    reason: str


LoadResult = Union[Loaded, Absent]


def artifact_or_default(result: LoadResult) -> ModelArtifact:
    """The loaded artifact, or the untrained default when absent."""
    if isinstance(result, Loaded):
        return result.artifact
    return ModelArtifact.untrained()


def load_artifact(path: Union[str, Path]) -> LoadResult:
    """
    Read a model artifact from disk.

    Args:
        path: Path of the JSON document.

    Returns:
        Loaded(artifact) on success, Absent(reason) when the file is
        missing, unreadable or malformed.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.warning("Trained model not found, using default scoring", path=str(path))
        return Absent(f"model file not found: {path}")
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("Could not read model artifact", path=str(path), error=str(e))
        return Absent(f"unreadable model file {path}: {e}")

    try:
        artifact = ModelArtifact.from_dict(data)
    except ArtifactError as e:
        logger.warning("Malformed model artifact", path=str(path), error=str(e))
        return Absent(str(e))

    logger.info(
        "Model artifact loaded",
        path=str(path),
        version=artifact.version,
        trained=artifact.trained,
        profile_features=len(artifact.profile),
        patterns=len(artifact.patterns),
    )
    return Loaded(artifact)


def save_artifact(artifact: ModelArtifact, path: Union[str, Path]) -> ModelArtifact:
    """
    Write the full artifact to disk in a single atomic replace.

    The document is written to a temporary file next to ``path`` and then
    renamed over it, so readers see either the old or the new artifact.

    Args:
        artifact: Artifact to persist. It is not modified.
        path: Destination path.

    Returns:
        A copy of the artifact stamped with its ``saved_at`` time.

    Raises:
        OSError: If the file cannot be written; no partial file is left.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    stamped = replace(artifact, saved_at=datetime.now(timezone.utc))
    payload = json.dumps(stamped.to_dict(), indent=2)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    logger.info("Model saved", path=str(path), version=stamped.version)
    return stamped


class ModelContext:
    """
    Process-wide holder of the model used for scoring.

    The artifact is loaded lazily on first access and cached for the life
    of the context. Concurrent first accesses are serialized so the file is
    read at most once; later accesses return the cached, immutable value.
    There is no reload: a new artifact requires a new context.

    Example:
        context = ModelContext("models/fraud-detector-trained.json")
        result = context.score("contractor", features)
    """

    def __init__(
        self,
        model_path: Optional[Union[str, Path]] = None,
        scoring: Optional[ScoringConfig] = None,
        artifact: Optional[ModelArtifact] = None,
    ):
        """
        Args:
            model_path: Artifact to load on first use. Without a path (and
                without ``artifact``) the untrained default is used.
            scoring: Confidence and pattern-matching settings.
            artifact: Pre-built artifact to use instead of loading.
        """
        self.model_path = Path(model_path) if model_path else None
        self.scoring = scoring or ScoringConfig()
        self._lock = threading.Lock()
        self._load_result: Optional[LoadResult] = Loaded(artifact) if artifact else None
        self._scorer = None

    @classmethod
    def from_config(cls, config) -> "ModelContext":
        """Create a context from a RiskEngineConfig.

        Also applies the config's logging section to the engine loggers.
        """
        configure_logging(**config.logging.model_dump())
        return cls(model_path=config.paths.model_path, scoring=config.scoring)

    @property
    def load_result(self) -> LoadResult:
        """Outcome of the one-time load, performing it if needed."""
        if self._load_result is None:
            with self._lock:
                if self._load_result is None:
                    if self.model_path is None:
                        self._load_result = Absent("no model path configured")
                    else:
                        self._load_result = load_artifact(self.model_path)
        return self._load_result

    @property
    def artifact(self) -> ModelArtifact:
        return artifact_or_default(self.load_result)

    @property
    def is_loaded(self) -> bool:
        """Whether the one-time load has already happened."""
        return self._load_result is not None

    @property
    def scorer(self):
        """Ensemble scorer bound to the cached artifact."""
        if self._scorer is None:
            from ..scoring.ensemble import EnsembleScorer

            artifact = self.artifact
            with self._lock:
                if self._scorer is None:
                    self._scorer = EnsembleScorer.from_artifact(artifact, self.scoring)
        return self._scorer

    def extract_features(self, kind, raw_records):
        """Extract features using the artifact's large-award multiple."""
        from ..scoring.features import extract_features

        return extract_features(
            kind, raw_records, self.artifact.thresholds.large_award_multiple
        )

    def score(self, kind, features, strict: bool = False):
        return self.scorer.score(kind, features, strict=strict)

    def __repr__(self) -> str:
        state = "unloaded"
        if isinstance(self._load_result, Loaded):
            state = "trained" if self._load_result.artifact.trained else "loaded"
        elif isinstance(self._load_result, Absent):
            state = "default"
        return f"ModelContext(path={self.model_path}, state={state})"
