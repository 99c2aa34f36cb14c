"""Unit tests for the synthetic data generator and built-in cases."""

import json

import pytest

from fraud_risk.data import (
    TrainingDataGenerator,
    default_fraud_cases,
    load_fraud_cases,
)
from fraud_risk.data.known_cases import HEALTHCARE_SETTLEMENTS
from fraud_risk.models.patterns import FraudCase, PatternEntry
from fraud_risk.scoring import extract_features, score
from fraud_risk.scoring.features import HealthcareProviderFeatures


class TestTrainingDataGenerator:
    """Tests for synthetic contractor and provider data."""

    def test_reproducible(self):
        """Test equal seeds give equal data."""
        first = TrainingDataGenerator(seed=42).generate_contractors(5, risky_ratio=0.2)
        second = TrainingDataGenerator(seed=42).generate_contractors(5, risky_ratio=0.2)
        assert first == second

    def test_contractor_records(self):
        """Test award records carry the expected fields."""
        history = TrainingDataGenerator(seed=1).generate_contractor()

        assert 4 <= len(history.awards) < 15
        for award in history.awards:
            assert award["Recipient Name"] == history.name
            assert award["Award Amount"] > 0
            assert set(award) >= {"Award Amount", "Awarding Agency", "Description", "Start Date"}

    def test_risky_ratio(self):
        """Test the requested share of risky contractors."""
        contractors = TrainingDataGenerator(seed=7).generate_contractors(10, risky_ratio=0.3)
        assert sum(c.is_risky for c in contractors) == 3

    def test_risky_contractor_scores_high(self):
        """Test injected contractor risk is visible to the scorer."""
        history = TrainingDataGenerator(seed=3).generate_contractor(risky=True)
        result = score("contractor", extract_features("contractor", history.awards))
        assert result.risk_level.value == "High"

    def test_provider_records(self):
        """Test providers produce claims, payments and a provider record."""
        activity = TrainingDataGenerator(seed=5).generate_provider()
        types = {r["record_type"] for r in activity.records}

        assert {"claim", "provider"} <= types
        features = extract_features("healthcare_provider", activity.records)
        assert features.claim_count > 0
        assert features.has_exclusion_history == 0.0

    def test_risky_provider_outscores_normal(self):
        """Test injected provider risk raises the score."""
        generator = TrainingDataGenerator(seed=11)
        normal = generator.generate_providers(5)
        risky = generator.generate_providers(3, risky_ratio=1.0)

        def provider_score(activity):
            return score(
                "healthcare_provider",
                extract_features("healthcare_provider", activity.records),
            ).score

        assert min(provider_score(p) for p in risky) > max(provider_score(p) for p in normal)

    def test_awards_dataframe(self):
        """Test award histories flatten into one row per award."""
        generator = TrainingDataGenerator(seed=9)
        contractors = generator.generate_contractors(3)
        frame = generator.awards_dataframe(contractors)

        assert len(frame) == sum(len(c.awards) for c in contractors)
        assert "is_risky" in frame.columns


class TestKnownCases:
    """Tests for the built-in labeled fraud cases."""

    def test_default_cases(self):
        """Test built-in cases parse with indicators and amounts."""
        cases = default_fraud_cases()

        assert len(cases) == 9
        assert all(case.indicators for case in cases)
        assert all(case.amount > 0 for case in cases)

    def test_healthcare_indicators_name_features(self):
        """Test every healthcare indicator normalizes to a provider feature."""
        keys = {
            PatternEntry(indicator, 1, 1.0).feature_key
            for record in HEALTHCARE_SETTLEMENTS
            for indicator in FraudCase.from_dict(record).indicators
        }

        assert "payment_concentration" in keys
        assert keys <= set(HealthcareProviderFeatures.feature_names())

    def test_load_grouped_file(self, tmp_path):
        """Test loading the grouped settlement file shape."""
        path = tmp_path / "cases.json"
        path.write_text(json.dumps({
            "healthcare_settlements": [{"indicators": ["upcoding"], "amount": 10}],
            "contractor_settlements": [{"indicators": ["sole source"], "amount": 20}],
        }))

        cases = load_fraud_cases(path)
        assert [c.indicators for c in cases] == [("upcoding",), ("sole source",)]

    def test_load_invalid_file(self, tmp_path):
        """Test a file of the wrong shape raises ValueError."""
        path = tmp_path / "cases.json"
        path.write_text(json.dumps("not a list"))

        with pytest.raises(ValueError):
            load_fraud_cases(path)
