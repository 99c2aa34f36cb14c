"""Synthetic Training Data Generator.

Generates contractor award histories and healthcare-provider billing and
payment records with realistic distributions, so the training pipeline
and tests can run without downloading public spending data.

A configurable fraction of entities is generated with risky patterns
(sole-source awards from a single agency with rapid growth, or upcoded
billing with heavy pharmaceutical payments).
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

import numpy as np
import pandas as pd
from faker import Faker

AGENCIES = [
    "Department of Defense",
    "Department of the Army",
    "Department of Health and Human Services",
    "Department of Veterans Affairs",
    "General Services Administration",
    "Department of Transportation",
    "Department of Energy",
    "Department of Homeland Security",
]

ORDINARY_DESCRIPTIONS = [
    "Construction of facility annex",
    "Janitorial and custodial services",
    "Office furniture procurement",
    "Road resurfacing and maintenance",
    "Laboratory equipment purchase",
    "Vehicle fleet leasing",
    "Printing and publishing services",
]

RISKY_DESCRIPTIONS = [
    "Sole source IT services support contract",
    "Sole source consulting and advisory services",
    "Emergency software maintenance - sole source",
    "Professional services sole source award",
]

EM_CODES = ["99211", "99212", "99213", "99214", "99215"]
OTHER_CODES = ["80053", "85025", "93000", "71046", "36415"]
SERVICE_TYPES = ["office", "outpatient", "telehealth", "home", "laboratory"]
PAYMENT_TYPES = ["Food and Beverage", "Travel and Lodging", "Education", "Consulting Fee",
                 "Compensation for services other than consulting, including serving as "
                 "faculty or as a speaker"]
PHARMA_COMPANIES = ["Acme Pharma", "Borealis Devices", "Cygnus Therapeutics",
                    "Delta Biologics", "Everline Medical"]


@dataclass
class ContractorHistory:
    """Award records of one synthetic contractor."""

    name: str
    awards: list[dict]
    is_risky: bool = False


@dataclass
class ProviderActivity:
    """Billing, payment and exclusion records of one synthetic provider."""

    npi: str
    name: str
    records: list[dict] = field(default_factory=list)
    is_risky: bool = False


class TrainingDataGenerator:
    """
    Generates synthetic contractor and provider records.

    Uses Faker for names and identifiers and a seeded numpy generator for
    amounts and counts, so equal seeds give equal data.
    """

    def __init__(self, seed: Optional[int] = None, locale: str = "en_US"):
        """
        Initialize the data generator.

        Args:
            seed: Random seed for reproducibility.
            locale: Faker locale for names and companies.
        """
        self.seed = seed
        self.faker = Faker(locale)
        if seed is not None:
            self.faker.seed_instance(seed)
        self.rng = np.random.default_rng(seed)
        self._award_counter = 0

    def _award_id(self) -> str:
        self._award_counter += 1
        return f"AWD-{self._award_counter:08d}"

    def _award(self, recipient: str, amount: float, agency: str,
               description: str, year: int) -> dict:
        start = date(year, int(self.rng.integers(1, 13)), int(self.rng.integers(1, 29)))
        return {
            "Award ID": self._award_id(),
            "Recipient Name": recipient,
            "Award Amount": round(float(amount), 2),
            "Description": description,
            "Start Date": start.isoformat(),
            "Awarding Agency": agency,
        }

    def generate_contractor(self, risky: bool = False, end_year: int = 2024) -> ContractorHistory:
        """Generate one contractor's award history."""
        name = self.faker.company()
        n_awards = int(self.rng.integers(4, 15))
        awards = []

        if risky:
            agency = AGENCIES[int(self.rng.integers(len(AGENCIES)))]
            base = float(self.rng.lognormal(mean=13.0, sigma=0.5))
            for i in range(n_awards):
                # Most recent year carries several times the prior year's volume
                year = end_year if i >= n_awards // 2 else end_year - 1
                scale = 4.0 if year == end_year else 1.0
                description = RISKY_DESCRIPTIONS[int(self.rng.integers(len(RISKY_DESCRIPTIONS)))]
                awards.append(self._award(name, base * scale * self.rng.uniform(0.8, 1.2),
                                          agency, description, year))
        else:
            for _ in range(n_awards):
                agency = AGENCIES[int(self.rng.integers(len(AGENCIES)))]
                description = ORDINARY_DESCRIPTIONS[
                    int(self.rng.integers(len(ORDINARY_DESCRIPTIONS)))
                ]
                year = int(self.rng.integers(end_year - 3, end_year + 1))
                amount = float(self.rng.lognormal(mean=12.5, sigma=0.8))
                awards.append(self._award(name, amount, agency, description, year))

        return ContractorHistory(name=name, awards=awards, is_risky=risky)

    def generate_contractors(self, count: int, risky_ratio: float = 0.0) -> list[ContractorHistory]:
        """
        Generate a list of contractor histories.

        Args:
            count: Number of contractors.
            risky_ratio: Fraction generated with risky patterns.

        Returns:
            List of ContractorHistory, risky ones last.
        """
        n_risky = int(round(count * risky_ratio))
        return (
            [self.generate_contractor() for _ in range(count - n_risky)]
            + [self.generate_contractor(risky=True) for _ in range(n_risky)]
        )

    def generate_provider(self, risky: bool = False) -> ProviderActivity:
        """Generate one provider's claims, payments and exclusion status."""
        npi = self.faker.numerify("##########")
        name = f"{self.faker.last_name()} {self.faker.random_element(['Clinic', 'Medical Group', 'Health'])}"
        n_patients = int(self.rng.integers(20, 80))
        records: list[dict] = []

        services_per_patient = 14 if risky else 3
        for patient in range(n_patients):
            for _ in range(int(self.rng.integers(1, services_per_patient + 1))):
                if risky and self.rng.random() < 0.8:
                    code = EM_CODES[int(self.rng.integers(3, 5))]
                elif self.rng.random() < 0.6:
                    code = EM_CODES[int(self.rng.integers(0, 4))]
                else:
                    code = OTHER_CODES[int(self.rng.integers(len(OTHER_CODES)))]
                records.append({
                    "record_type": "claim",
                    "patient_id": f"{npi}-P{patient:04d}",
                    "code": code,
                    "amount": round(float(self.rng.lognormal(mean=4.8, sigma=0.4)), 2),
                    "service_type": SERVICE_TYPES[int(self.rng.integers(len(SERVICE_TYPES)))],
                })

        n_payments = int(self.rng.integers(10, 30)) if risky else int(self.rng.integers(0, 6))
        for _ in range(n_payments):
            if risky:
                company = PHARMA_COMPANIES[0]
                payment_type = PAYMENT_TYPES[int(self.rng.integers(3, 5))]
                amount = float(self.rng.uniform(3_000, 12_000))
            else:
                company = PHARMA_COMPANIES[int(self.rng.integers(len(PHARMA_COMPANIES)))]
                payment_type = PAYMENT_TYPES[int(self.rng.integers(0, 3))]
                amount = float(self.rng.uniform(15, 400))
            records.append({
                "record_type": "payment",
                "company": company,
                "type": payment_type,
                "amount": round(amount, 2),
            })

        records.append({
            "record_type": "provider",
            "npi": npi,
            "excluded_previously": bool(risky and self.rng.random() < 0.5),
            "related_party_excluded": False,
        })

        return ProviderActivity(npi=npi, name=name, records=records, is_risky=risky)

    def generate_providers(self, count: int, risky_ratio: float = 0.0) -> list[ProviderActivity]:
        """Generate a list of provider activities, risky ones last."""
        n_risky = int(round(count * risky_ratio))
        return (
            [self.generate_provider() for _ in range(count - n_risky)]
            + [self.generate_provider(risky=True) for _ in range(n_risky)]
        )

    @staticmethod
    def awards_dataframe(contractors: list[ContractorHistory]) -> pd.DataFrame:
        """Flatten contractor histories into one award-per-row DataFrame."""
        rows = [
            {**award, "is_risky": history.is_risky}
            for history in contractors
            for award in history.awards
        ]
        return pd.DataFrame(rows)
