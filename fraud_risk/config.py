"""Configuration Management Module.

Provides typed configuration for the fraud-risk scoring engine with
support for YAML files, environment variable overrides, and validation.

Uses Pydantic v2 for robust configuration validation. The
``ThresholdTable`` defined here is the single place where decision
thresholds live; the scorer never hard-codes them.
"""

import os
from pathlib import Path
from typing import Any, Literal, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, model_validator

# camelCase keys used by artifacts from earlier model versions.
_LEGACY_THRESHOLD_KEYS = {
    "largeAwardMultiple": "large_award_multiple",
    "growthRateAnomaly": "growth_rate_anomaly",
    "agencyConcentration": "agency_concentration",
    "soleSourceRatio": "sole_source_ratio",
    "highComplexityRatio": "high_complexity_ratio",
    "pharmaPaymentHigh": "pharma_payment_high",
    "pharmaPaymentVeryHigh": "pharma_payment_very_high",
    "lowRiskMax": "low_risk_max",
    "mediumRiskMax": "medium_risk_max",
    "highRiskMin": "high_risk_min",
    "zScoreThreshold": "z_score_cutoff",
}

# Present in legacy artifacts but with no counterpart in this engine.
_IGNORED_THRESHOLD_KEYS = frozenset({"billingZScore", "isolationThreshold"})


class ThresholdTable(BaseModel):
    """Decision thresholds consumed by the ensemble scorer."""

    # Contractor thresholds
    large_award_multiple: float = Field(
        default=3.0, gt=0.0, description="Award > N x entity average counts as large"
    )
    large_award_ratio: float = Field(
        default=0.3, ge=0.0, le=1.0, description="Share of large awards flagged"
    )
    growth_rate_anomaly: float = Field(
        default=2.0, gt=0.0, description="Year-over-year growth ratio flagged"
    )
    agency_concentration: float = Field(
        default=0.8, ge=0.0, le=1.0, description="Share from single agency flagged"
    )
    sole_source_ratio: float = Field(
        default=0.5, ge=0.0, le=1.0, description="Share of sole-source awards flagged"
    )
    high_risk_category_ratio: float = Field(
        default=0.3, ge=0.0, le=1.0, description="Share in high-risk categories flagged"
    )
    defense_ratio: float = Field(
        default=0.7, ge=0.0, le=1.0, description="Share of defense awards flagged"
    )
    healthcare_ratio: float = Field(
        default=0.5, ge=0.0, le=1.0, description="Share of healthcare awards flagged"
    )
    very_large_award: float = Field(
        default=10_000_000, ge=0.0, description="Single award amount escalator (+10)"
    )
    extremely_large_award: float = Field(
        default=100_000_000, ge=0.0, description="Single award amount escalator (+20)"
    )

    # Healthcare thresholds
    high_complexity_ratio: float = Field(
        default=0.4, ge=0.0, le=1.0, description="Share of level >= 4 codes flagged"
    )
    pharma_payment_high: float = Field(
        default=50_000, ge=0.0, description="Third-party payments total flagged"
    )
    pharma_payment_very_high: float = Field(
        default=100_000, ge=0.0, description="Third-party payments total, high tier"
    )
    payment_concentration: float = Field(
        default=0.7, ge=0.0, le=1.0, description="Share from single payer flagged"
    )
    consulting_payment_ratio: float = Field(
        default=0.3, ge=0.0, le=1.0, description="Share of consulting payments flagged"
    )
    services_per_patient: float = Field(
        default=10.0, ge=0.0, description="Claims per distinct patient flagged"
    )
    services_per_patient_strict: float = Field(
        default=20.0, ge=0.0, description="Claims per patient, strict variant"
    )

    # Anomaly detection
    z_score_cutoff: float = Field(
        default=2.5, gt=0.0, description="|z| above which a feature is anomalous"
    )

    # Risk levels
    low_risk_max: int = Field(default=25, ge=0, le=100, description="Medium band start")
    medium_risk_max: int = Field(default=50, ge=0, le=100, description="Medium band end")
    high_risk_min: int = Field(default=50, ge=0, description="High band start")

    model_config = {"extra": "forbid", "frozen": True}

    @model_validator(mode="after")
    def validate_risk_bands(self) -> "ThresholdTable":
        """Ensure the High band is reachable and bands are ordered."""
        if self.high_risk_min > 100:
            raise ValueError("high_risk_min must be reachable by a score of 100")
        if self.low_risk_max > self.high_risk_min:
            raise ValueError("low_risk_max must not exceed high_risk_min")
        return self

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "ThresholdTable":
        """Build a table from a flat mapping, accepting legacy camelCase keys.

        Args:
            data: Flat threshold mapping, e.g. the ``thresholds`` section of
                a model artifact. ``None`` or an empty mapping gives defaults.

        Returns:
            Validated ThresholdTable.
        """
        if not data:
            return cls()
        normalized = {}
        for key, value in data.items():
            if key in _IGNORED_THRESHOLD_KEYS:
                continue
            normalized[_LEGACY_THRESHOLD_KEYS.get(key, key)] = value
        return cls.model_validate(normalized)

    def to_mapping(self) -> dict[str, float]:
        """Flat mapping for serialization."""
        return self.model_dump()


class PathsConfig(BaseModel):
    """Configuration for file paths."""

    model_dir: str = Field(default="models", description="Directory for model artifacts")
    model_file: str = Field(
        default="fraud-detector-trained.json", description="Model artifact file name"
    )

    @property
    def model_path(self) -> Path:
        """Full path of the model artifact."""
        return Path(self.model_dir) / self.model_file


class ScoringConfig(BaseModel):
    """Configuration for confidence and pattern-matching limits."""

    expected_feature_count: int = Field(
        default=10, ge=1, description="Feature count giving full data completeness"
    )
    trained_confidence: float = Field(
        default=0.85, ge=0.0, le=1.0, description="Base confidence with a trained model"
    )
    untrained_confidence: float = Field(
        default=0.70, ge=0.0, le=1.0, description="Base confidence without training"
    )
    max_patterns: int = Field(
        default=20, ge=1, description="Indicators retained by the pattern learner"
    )
    contractor_pattern_top_n: int = Field(
        default=5, ge=0, description="Learned indicators checked for contractors"
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    format: Literal["json", "text"] = Field(default="text", description="Log format")
    log_file: Optional[str] = Field(default=None, description="Log file path")


class RiskEngineConfig(BaseModel):
    """Main configuration for the risk-scoring engine."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    thresholds: ThresholdTable = Field(default_factory=ThresholdTable)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"extra": "forbid"}


def _apply_env_overrides(config: RiskEngineConfig) -> RiskEngineConfig:
    """Apply environment variable overrides to configuration.

    Supports the following environment variables:
    - FRAUD_MODEL_PATH
    - FRAUD_Z_SCORE_CUTOFF, FRAUD_LOW_RISK_MAX, FRAUD_HIGH_RISK_MIN
    - FRAUD_LOG_LEVEL, FRAUD_LOG_FORMAT, FRAUD_LOG_FILE
    """
    config_dict = config.model_dump()

    if os.getenv("FRAUD_MODEL_PATH"):
        model_path = Path(os.environ["FRAUD_MODEL_PATH"])
        config_dict["paths"]["model_dir"] = str(model_path.parent)
        config_dict["paths"]["model_file"] = model_path.name

    # Threshold overrides
    if os.getenv("FRAUD_Z_SCORE_CUTOFF"):
        config_dict["thresholds"]["z_score_cutoff"] = float(
            os.environ["FRAUD_Z_SCORE_CUTOFF"]
        )
    if os.getenv("FRAUD_LOW_RISK_MAX"):
        config_dict["thresholds"]["low_risk_max"] = int(os.environ["FRAUD_LOW_RISK_MAX"])
    if os.getenv("FRAUD_HIGH_RISK_MIN"):
        config_dict["thresholds"]["high_risk_min"] = int(
            os.environ["FRAUD_HIGH_RISK_MIN"]
        )

    # Logging overrides
    if os.getenv("FRAUD_LOG_LEVEL"):
        config_dict["logging"]["level"] = os.environ["FRAUD_LOG_LEVEL"]
    if os.getenv("FRAUD_LOG_FORMAT"):
        config_dict["logging"]["format"] = os.environ["FRAUD_LOG_FORMAT"]
    if os.getenv("FRAUD_LOG_FILE"):
        config_dict["logging"]["log_file"] = os.environ["FRAUD_LOG_FILE"]

    return RiskEngineConfig.model_validate(config_dict)


def load_config(config_path: Optional[str] = None) -> RiskEngineConfig:
    """Load configuration from YAML file with environment variable overrides.

    Args:
        config_path: Path to YAML config file. If None, tries
                    config/default.yaml and falls back to defaults.

    Returns:
        Validated RiskEngineConfig object.

    Raises:
        ValueError: If configuration is invalid.
    """
    config_dict: dict = {}

    path = Path(config_path) if config_path else Path("config/default.yaml")

    if path.exists():
        with open(path, "r") as f:
            config_dict = yaml.safe_load(f) or {}

    try:
        config = RiskEngineConfig.model_validate(config_dict)
    except Exception as e:
        raise ValueError(f"Invalid configuration: {e}") from e

    return _apply_env_overrides(config)


def save_config(config: RiskEngineConfig, config_path: str) -> None:
    """Save configuration to YAML file.

    Args:
        config: Configuration to save.
        config_path: Path to save YAML file.
    """
    path = Path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)


def get_default_config() -> RiskEngineConfig:
    """Get default configuration.

    Returns:
        RiskEngineConfig with default values.
    """
    return RiskEngineConfig()
