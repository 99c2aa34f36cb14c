"""
Built-in labeled fraud cases.

A small seed set of resolved False Claims Act matters, summarized as
indicator phrases, fraud types, industry and settlement amount. Used to
train the pattern learner when no labeled case file is supplied.

Indicator phrases that normalize to a feature name (e.g. "sole source
ratio" -> ``sole_source_ratio``) let the learned patterns match features
directly.
"""

import json
from pathlib import Path
from typing import Union

from ..models.patterns import FraudCase

HEALTHCARE_SETTLEMENTS = [
    {
        "name": "Regional cardiology group",
        "fraud_type": ["upcoding", "kickbacks"],
        "industry": "healthcare",
        "amount": 12_500_000,
        "indicators": ["high complexity ratio", "consulting payment ratio",
                       "payment concentration"],
    },
    {
        "name": "Home health agency network",
        "fraud_type": ["billing for services not rendered"],
        "industry": "healthcare",
        "amount": 8_200_000,
        "indicators": ["services per patient", "related party excluded"],
    },
    {
        "name": "Clinical laboratory",
        "fraud_type": ["medically unnecessary testing", "kickbacks"],
        "industry": "healthcare",
        "amount": 26_000_000,
        "indicators": ["services per patient", "payment concentration"],
    },
    {
        "name": "Durable medical equipment supplier",
        "fraud_type": ["billing for services not rendered"],
        "industry": "healthcare",
        "amount": 4_700_000,
        "indicators": ["has exclusion history", "services per patient"],
    },
    {
        "name": "Pain management practice",
        "fraud_type": ["upcoding"],
        "industry": "healthcare",
        "amount": 3_100_000,
        "indicators": ["high complexity ratio", "consulting payment ratio"],
    },
]

CONTRACTOR_SETTLEMENTS = [
    {
        "name": "Defense logistics contractor",
        "fraud_type": ["overbilling", "defective pricing"],
        "industry": "defense",
        "amount": 45_000_000,
        "indicators": ["sole source ratio", "agency concentration", "cost overrun"],
    },
    {
        "name": "IT modernization vendor",
        "fraud_type": ["false certifications"],
        "industry": "information technology",
        "amount": 18_000_000,
        "indicators": ["high risk category ratio", "rapid growth", "sole source ratio"],
    },
    {
        "name": "Consulting services firm",
        "fraud_type": ["overbilling"],
        "industry": "professional services",
        "amount": 9_500_000,
        "indicators": ["high risk category ratio", "agency concentration"],
    },
    {
        "name": "Small business set-aside front",
        "fraud_type": ["small business fraud"],
        "industry": "construction",
        "amount": 6_300_000,
        "indicators": ["rapid growth", "large award ratio", "single agency"],
    },
]


def default_fraud_cases() -> list[FraudCase]:
    """All built-in cases, healthcare first."""
    return [FraudCase.from_dict(c) for c in HEALTHCARE_SETTLEMENTS + CONTRACTOR_SETTLEMENTS]


def load_fraud_cases(path: Union[str, Path]) -> list[FraudCase]:
    """
    Load labeled cases from a JSON file.

    The file holds either a list of cases or an object with
    ``healthcare_settlements`` and ``contractor_settlements`` lists.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the content is not valid JSON of the expected shape.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("healthcare_settlements", []) + data.get("contractor_settlements", [])
    if not isinstance(data, list):
        raise ValueError("Fraud case file must hold a list of cases")
    return [FraudCase.from_dict(c) for c in data if isinstance(c, dict)]
