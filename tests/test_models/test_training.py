"""Unit tests for the offline training pipeline."""

import pytest

from fraud_risk.models.artifact import load_artifact
from fraud_risk.models.training import (
    evaluate_artifact,
    features_from_indicators,
    summarize_training,
    train,
    train_model,
)
from fraud_risk.config import ThresholdTable


class TestTrain:
    """Tests for train()."""

    def test_trained_artifact(self, contractor_corpus, known_cases):
        """Test training builds profile and patterns and sets the flag."""
        artifact = train(contractor_corpus, known_cases)

        assert artifact.trained is True
        assert artifact.saved_at is None
        assert "avg_award" in artifact.profile
        assert artifact.profile["award_count"].count == len(contractor_corpus)
        assert artifact.patterns.top(1)[0].indicator == "sole source ratio"

    def test_no_labeled_cases(self, contractor_corpus):
        """Test training without cases is valid with empty patterns."""
        artifact = train(contractor_corpus)

        assert artifact.trained is True
        assert len(artifact.patterns) == 0

    def test_custom_thresholds(self, contractor_corpus):
        """Test thresholds are bundled into the artifact."""
        thresholds = ThresholdTable(z_score_cutoff=3.0)
        assert train(contractor_corpus, thresholds=thresholds).thresholds == thresholds

    def test_mapping_cases(self, contractor_corpus):
        """Test labeled cases may be plain mappings."""
        artifact = train(contractor_corpus, [{"indicators": ["rapid growth"]}])
        assert artifact.patterns.top(1)[0].weight == 1.0

    def test_summary(self, contractor_corpus, known_cases):
        """Test the training summary counts."""
        artifact = train(contractor_corpus, known_cases)
        summary = summarize_training(artifact, len(contractor_corpus), len(known_cases))

        assert summary.corpus_size == 20
        assert summary.labeled_cases == 2
        assert summary.pattern_count == 3
        assert summary.feature_count == len(artifact.profile)


class TestFeaturesFromIndicators:
    """Tests for indicator-to-feature synthesis."""

    def test_known_indicators(self):
        """Test indicator phrases map to synthetic feature values."""
        features = features_from_indicators(
            ["Rapid growth", "sole source awards", "single agency", "cost overrun",
             "consulting contracts"]
        )

        assert features.year_over_year_growth == 2.5
        assert features.sole_source_ratio == 0.7
        assert features.agency_concentration == 0.9
        assert features.large_award_ratio == 0.5
        assert features.high_risk_category_ratio == 0.6

    def test_defaults(self):
        """Test no indicators gives a benign vector."""
        features = features_from_indicators([])

        assert features.year_over_year_growth == 1.0
        assert features.sole_source_ratio == 0.0


class TestEvaluation:
    """Tests for the validation report."""

    def test_report(self, trained_artifact, known_cases, contractor_corpus):
        """Test fraud cases outscore baseline contractors."""
        report = evaluate_artifact(trained_artifact, known_cases, contractor_corpus)

        assert report.true_positive_rate == 1.0
        assert report.avg_fraud_score > report.avg_normal_score
        assert report.fraud_score_range[0] >= 25
        assert report.normal_score_range[1] < 25

    def test_empty_inputs(self, trained_artifact):
        """Test an empty evaluation reports zeros."""
        report = evaluate_artifact(trained_artifact, [])

        assert report.true_positive_rate == 0.0
        assert report.fraud_score_range is None
        assert report.normal_score_range is None


class TestTrainModel:
    """Tests for the full training pipeline."""

    def test_pipeline_saves(self, contractor_corpus, known_cases, tmp_path):
        """Test train_model validates, saves and reports."""
        path = tmp_path / "fraud-detector-trained.json"
        artifact, report = train_model(
            contractor_corpus, known_cases, contractor_corpus, output_path=path
        )

        assert path.exists()
        assert artifact.saved_at is not None
        assert report["trained_at"] == artifact.saved_at.isoformat()
        assert report["model_stats"]["labeled_cases"] == 2
        assert 0.0 <= report["validation"]["true_positive_rate"] <= 1.0
        assert load_artifact(path).artifact.same_model(artifact)

    def test_pipeline_without_saving(self, contractor_corpus):
        """Test train_model without an output path."""
        artifact, report = train_model(contractor_corpus)

        assert artifact.saved_at is None
        assert report["trained_at"] is None
