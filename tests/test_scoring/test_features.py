"""Unit tests for contractor and healthcare feature extraction."""

import math

import pandas as pd
import pytest

from fraud_risk.scoring.features import (
    ContractorFeatureExtractor,
    ContractorFeatures,
    EntityKind,
    HealthcareFeatureExtractor,
    HealthcareProviderFeatures,
    code_complexity,
    extract_batch,
    extract_features,
    growth_rate,
)


class TestFeatureRecords:
    """Tests for the typed feature records."""

    def test_vocabulary_is_closed(self):
        """Test unknown names are dropped when building from a mapping."""
        features = ContractorFeatures.from_dict({"avg_award": 10, "not_a_feature": 5})
        assert features.to_dict() == {"avg_award": 10.0}

    def test_non_finite_values_dropped(self):
        """Test NaN and infinity leave the feature absent."""
        features = HealthcareProviderFeatures.from_dict({
            "total_billed": float("nan"),
            "avg_claim": float("inf"),
            "claim_count": 3,
        })
        assert features.to_dict() == {"claim_count": 3.0}

    def test_to_array_uses_nan_for_absent(self):
        """Test array conversion keeps vocabulary order."""
        features = ContractorFeatures(total_awarded=5.0)
        array = features.to_array()

        assert len(array) == len(ContractorFeatures.feature_names())
        assert array[0] == 5.0
        assert math.isnan(array[1])

    def test_get_unknown_feature(self):
        """Test get on a name outside the vocabulary returns the default."""
        features = ContractorFeatures(avg_award=1.0)
        assert features.get("services_per_patient") is None
        assert features.get("avg_award") == 1.0

    def test_empty_record(self):
        """Test empty record reports no present features."""
        features = HealthcareProviderFeatures()
        assert features.is_empty()
        assert len(features) == 0


class TestHelpers:
    """Tests for growth rate and code complexity helpers."""

    def test_growth_uses_two_most_recent_years(self):
        """Test only the last two calendar years are compared."""
        assert growth_rate({2021: 100.0, 2022: 50.0, 2023: 200.0}) == 4.0

    def test_growth_single_year(self):
        """Test a single year of history means no growth."""
        assert growth_rate({2023: 5.0}) == 1.0
        assert growth_rate({}) == 1.0

    def test_growth_zero_previous_year(self):
        """Test a zero prior-year total is treated as 1."""
        assert growth_rate({2022: 0.0, 2023: 500.0}) == 500.0

    @pytest.mark.parametrize("code,expected", [
        ("99215", 5),
        ("99214", 4),
        ("99203", 3),
        ("80053", 3),
        (99212, 2),
    ])
    def test_code_complexity(self, code, expected):
        """Test E&M levels and the default complexity."""
        assert code_complexity(code) == expected


class TestContractorFeatureExtractor:
    """Tests for contractor feature extraction."""

    def test_amount_features(self, sample_awards):
        """Test amount statistics of a small award list."""
        features = ContractorFeatureExtractor().extract(sample_awards)

        assert features.award_count == 4
        assert features.total_awarded == 800_000
        assert features.avg_award == 200_000
        assert features.max_award == 400_000
        assert features.min_award == 100_000
        assert features.award_std_dev == pytest.approx(122_474.487, rel=1e-6)
        assert features.concentration_index == pytest.approx(0.34375)
        assert features.large_award_ratio == 0.0

    def test_category_features(self, sample_awards):
        """Test agency and description ratios."""
        features = ContractorFeatureExtractor().extract(sample_awards)

        assert features.agency_concentration == 0.75
        assert features.defense_ratio == 0.75
        assert features.sole_source_ratio == 0.5
        assert features.high_risk_category_ratio == 0.5
        assert features.healthcare_ratio == 0.25

    def test_growth_feature(self, sample_awards):
        """Test year-over-year growth from award start dates."""
        features = ContractorFeatureExtractor().extract(sample_awards)
        assert features.year_over_year_growth == 3.0

    def test_award_amount_only_for_single_award(self, sample_awards):
        """Test award_amount is set for one-award vectors only."""
        extractor = ContractorFeatureExtractor()
        assert extractor.extract(sample_awards).award_amount is None
        assert extractor.extract(sample_awards[:1]).award_amount == 100_000

    def test_large_award_multiple(self):
        """Test the multiple controls which awards count as large."""
        awards = [{"amount": 1_000}] * 9 + [{"amount": 100_000}] * 4

        default = ContractorFeatureExtractor().extract(awards)
        strict = ContractorFeatureExtractor(large_award_multiple=5.0).extract(awards)

        assert default.large_award_ratio == pytest.approx(4 / 13)
        assert strict.large_award_ratio == 0.0

    def test_currency_strings(self):
        """Test currency-formatted amounts are parsed."""
        features = ContractorFeatureExtractor().extract([{"Award Amount": "$1,200.50"}])
        assert features.total_awarded == 1200.5

    def test_missing_amount_leaves_features_absent(self):
        """Test awards without amounts do not default to zero."""
        features = ContractorFeatureExtractor().extract([
            {"Awarding Agency": "Department of Energy", "Description": "Survey"},
        ])

        assert features.award_count == 1
        assert features.total_awarded is None
        assert features.avg_award is None
        assert features.agency_concentration == 1.0

    def test_partially_missing_amounts(self):
        """Test amount statistics use only parseable amounts."""
        features = ContractorFeatureExtractor().extract([
            {"amount": 300}, {"amount": "n/a"},
        ])
        assert features.award_count == 2
        assert features.total_awarded == 300

    def test_empty_awards(self):
        """Test no awards yields an empty vector."""
        assert ContractorFeatureExtractor().extract([]).is_empty()
        assert ContractorFeatureExtractor().extract(None).is_empty()

    def test_dataframe_input(self, sample_awards):
        """Test a DataFrame of awards is accepted."""
        from_list = ContractorFeatureExtractor().extract(sample_awards)
        from_frame = ContractorFeatureExtractor().extract(pd.DataFrame(sample_awards))
        assert from_frame == from_list


class TestHealthcareFeatureExtractor:
    """Tests for healthcare-provider feature extraction."""

    def test_billing_features(self, provider_records):
        """Test claim-derived features."""
        features = HealthcareFeatureExtractor().extract_records(provider_records)

        assert features.claim_count == 4
        assert features.total_billed == 500
        assert features.avg_claim == 125
        assert features.avg_code_complexity == 3.75
        assert features.high_complexity_ratio == 0.5
        assert features.services_per_patient == 2.0
        assert features.unique_service_types == 3

    def test_payment_features(self, provider_records):
        """Test third-party payment features."""
        features = HealthcareFeatureExtractor().extract_records(provider_records)

        assert features.total_third_party_payments == 50_000
        assert features.third_party_payment_count == 3
        assert features.unique_paying_companies == 2
        assert features.payment_concentration == pytest.approx(0.9)
        assert features.consulting_payment_ratio == pytest.approx(2 / 3)

    def test_exclusion_flags(self, provider_records):
        """Test provider and related-party exclusion flags."""
        features = HealthcareFeatureExtractor().extract_records(provider_records)

        assert features.has_exclusion_history == 0.0
        assert features.related_party_excluded == 1.0

    def test_self_exclusion_entry(self):
        """Test an exclusion entry without relationship marks the provider."""
        features = HealthcareFeatureExtractor().extract(exclusions=[{"name": "Dr. X"}])
        assert features.has_exclusion_history == 1.0
        assert features.related_party_excluded == 0.0

    def test_no_exclusion_data_leaves_flags_absent(self):
        """Test flags are absent without provider or exclusion records."""
        features = HealthcareFeatureExtractor().extract(
            claims=[{"code": "99213", "patient_id": "P1"}]
        )
        assert features.has_exclusion_history is None
        assert features.related_party_excluded is None

    def test_record_type_inference(self):
        """Test untagged records are classified by their fields."""
        features = HealthcareFeatureExtractor().extract_records([
            {"code": "99215", "patient_id": "P1"},
            {"company": "Acme Pharma", "amount": 100},
            {"excluded_previously": True},
            {"unrelated": "value"},
        ])

        assert features.claim_count == 1
        assert features.third_party_payment_count == 1
        assert features.has_exclusion_history == 1.0

    def test_empty_records(self):
        """Test no records yields an empty vector."""
        assert HealthcareFeatureExtractor().extract_records([]).is_empty()


class TestExtractFeatures:
    """Tests for the extract_features and extract_batch entry points."""

    def test_dispatch_by_kind(self, sample_awards, provider_records):
        """Test the kind selects the feature record type."""
        assert isinstance(extract_features("contractor", sample_awards), ContractorFeatures)
        assert isinstance(
            extract_features(EntityKind.HEALTHCARE_PROVIDER, provider_records),
            HealthcareProviderFeatures,
        )

    def test_unknown_kind(self):
        """Test an unknown kind raises ValueError."""
        with pytest.raises(ValueError, match="Unknown entity kind"):
            extract_features("hospital", [])

    def test_pure(self, sample_awards):
        """Test extraction does not depend on call history."""
        assert extract_features("contractor", sample_awards) == \
            extract_features("contractor", sample_awards)

    def test_batch_dataframe(self, sample_awards):
        """Test batch extraction returns one row per entity."""
        frame = extract_batch("contractor", [sample_awards, sample_awards[:1]])

        assert frame.shape == (2, len(ContractorFeatures.feature_names()))
        assert list(frame.columns) == ContractorFeatures.feature_names()
        assert pd.isna(frame.loc[0, "award_amount"])
        assert frame.loc[1, "award_amount"] == 100_000
