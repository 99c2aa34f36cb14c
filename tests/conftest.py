"""Pytest configuration and fixtures for fraud-risk tests."""

import pytest

from fraud_risk.models import FraudCase, train
from fraud_risk.scoring import ContractorFeatureExtractor

CIVILIAN_AGENCIES = [
    "General Services Administration",
    "Department of Energy",
    "Department of Transportation",
    "Department of the Interior",
]


def _ordinary_contractor(index: int) -> list[dict]:
    return [
        {
            "Award Amount": 40_000 + 1_000 * index + 500 * j,
            "Awarding Agency": CIVILIAN_AGENCIES[(index + j) % 4],
            "Description": "Construction services",
            "Start Date": f"{2022 + j % 2}-03-01",
        }
        for j in range(8)
    ]


@pytest.fixture
def ordinary_contractors() -> list[list[dict]]:
    """Award histories of 20 unremarkable contractors.

    Returns:
        List of award lists: 8 awards each, spread evenly over four
        civilian agencies and two years, amounts in the $40k-$63k range.
    """
    return [_ordinary_contractor(i) for i in range(20)]


@pytest.fixture
def contractor_corpus(ordinary_contractors) -> list:
    """Feature vectors of the ordinary contractors."""
    extractor = ContractorFeatureExtractor()
    return [extractor.extract(awards) for awards in ordinary_contractors]


@pytest.fixture
def known_cases() -> list[FraudCase]:
    """Small labeled set whose indicators name contractor features."""
    return [
        FraudCase.from_dict({
            "indicators": ["sole source ratio", "agency concentration"],
            "fraud_type": "overbilling",
            "industry": "defense",
            "amount": 5_000_000,
        }),
        FraudCase.from_dict({
            "indicators": ["sole source ratio", "rapid growth"],
            "fraud_type": ["false certifications"],
            "industry": "information technology",
            "amount": 1_000_000,
        }),
    ]


@pytest.fixture
def trained_artifact(contractor_corpus, known_cases):
    """Artifact trained on the ordinary contractors and known cases."""
    return train(contractor_corpus, known_cases)


@pytest.fixture
def scenario_a_awards() -> list[dict]:
    """Ten awards, one of them 40x the others, nine from one agency."""
    awards = [
        {
            "Award Amount": 50_000,
            "Awarding Agency": "Department of Energy",
            "Description": "Construction services",
            "Start Date": "2023-05-01",
        }
        for _ in range(9)
    ]
    awards.append({
        "Award Amount": 2_000_000,
        "Awarding Agency": "General Services Administration",
        "Description": "Construction services",
        "Start Date": "2023-07-01",
    })
    return awards


@pytest.fixture
def sample_awards() -> list[dict]:
    """Four awards with hand-checkable feature values."""
    return [
        {"Award Amount": 100_000, "Awarding Agency": "Department of Defense",
         "Description": "Sole source IT support", "Start Date": "2022-01-15"},
        {"Award Amount": 100_000, "Awarding Agency": "Department of Defense",
         "Description": "Facility maintenance", "Start Date": "2022-06-01"},
        {"Award Amount": 200_000, "Awarding Agency": "Department of Defense",
         "Description": "Sole source consulting", "Start Date": "2023-02-01"},
        {"Award Amount": 400_000, "Awarding Agency": "Department of Veterans Affairs",
         "Description": "Medical equipment", "Start Date": "2023-09-30"},
    ]


@pytest.fixture
def provider_records() -> list[dict]:
    """Claims, payments, provider and exclusion records of one provider."""
    return [
        {"record_type": "claim", "patient_id": "P1", "code": "99215",
         "amount": 200, "service_type": "office"},
        {"record_type": "claim", "patient_id": "P1", "code": "99214",
         "amount": 150, "service_type": "office"},
        {"record_type": "claim", "patient_id": "P1", "code": "99213",
         "amount": 100, "service_type": "telehealth"},
        {"record_type": "claim", "patient_id": "P2", "code": "80053",
         "amount": 50, "service_type": "laboratory"},
        {"record_type": "payment", "company": "Acme Pharma",
         "type": "Consulting Fee", "amount": 30_000},
        {"record_type": "payment", "company": "Acme Pharma",
         "type": "Food and Beverage", "amount": 15_000},
        {"record_type": "payment", "company": "Borealis Devices",
         "type": "Speaking Fee", "amount": 5_000},
        {"record_type": "provider", "npi": "1234567890", "excluded_previously": False},
        {"record_type": "exclusion", "relationship": "related"},
    ]
