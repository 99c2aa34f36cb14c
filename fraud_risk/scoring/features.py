"""Feature extraction for fraud-risk scoring.

Turns the raw records of one logical entity into a single feature vector:

- contractor: a list of award records (amount, awarding agency,
  description, start date)
- healthcare_provider: billing claims, third-party (pharmaceutical or
  device) payments, and provider/exclusion-list entries

Features are computed from the entity's own records only, so extraction
is a pure function and can run in parallel across entities. Inputs that
are missing or unparseable leave the derived feature absent (``None``)
instead of defaulting it to zero, which keeps "no data" distinguishable
from a true zero.
"""

import math
import re
from collections import Counter
from dataclasses import dataclass, fields
from datetime import date
from enum import Enum
from typing import Any, ClassVar, Iterable, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd


class EntityKind(str, Enum):
    """Kinds of entity the engine can score."""
    CONTRACTOR = "contractor"
    HEALTHCARE_PROVIDER = "healthcare_provider"


# Description keywords for categories with historically higher fraud rates
HIGH_RISK_KEYWORDS = (
    "consulting", "advisory", "professional services",
    "it services", "software", "support", "emergency",
)

SOLE_SOURCE_MARKERS = ("sole source", "sole-source")

DEFENSE_KEYWORDS = ("defense", "army", "navy", "air force")

HEALTHCARE_KEYWORDS = ("health", "medical")

CONSULTING_PAYMENT_KEYWORDS = ("consulting", "speaking")

DEFAULT_CODE_COMPLEXITY = 3
HIGH_COMPLEXITY_LEVEL = 4

# E&M codes 99201-99205 (new patient) and 99211-99215 (established)
_EM_CODE_PATTERN = re.compile(r"992[01]([1-5])")

# Accepted field names per raw-record attribute, first match wins
AWARD_FIELDS = {
    "amount": ("award_amount", "Award Amount", "amount"),
    "agency": ("awarding_agency", "Awarding Agency", "agency"),
    "description": ("description", "Description"),
    "start_date": ("start_date", "Start Date", "date"),
}

CLAIM_FIELDS = {
    "amount": ("amount", "billed_amount", "allowed_amount"),
    "code": ("code", "procedure_code", "hcpcs_code"),
    "patient_id": ("patient_id", "beneficiary_id"),
    "service_type": ("service_type", "place_of_service"),
}

PAYMENT_FIELDS = {
    "amount": ("amount", "total_amount", "payment_amount"),
    "company": ("company", "paying_company", "manufacturer"),
    "type": ("type", "payment_type", "nature_of_payment"),
}


class _FeatureRecord:
    """Shared behaviour of the per-kind feature dataclasses."""

    kind: ClassVar[EntityKind]

    @classmethod
    def feature_names(cls) -> list[str]:
        """Closed feature vocabulary for this kind, in declaration order."""
        return [f.name for f in fields(cls)]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]):
        """Build from an open mapping, dropping unknown and non-finite values."""
        known = set(cls.feature_names())
        values = {}
        for name, value in data.items():
            if name not in known:
                continue
            number = _to_float(value)
            if number is not None:
                values[name] = number
        return cls(**values)

    def to_dict(self) -> dict[str, float]:
        """Present features only; absent features are omitted."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def to_array(self) -> np.ndarray:
        """Convert to a numpy array in vocabulary order, NaN where absent."""
        return np.array([
            np.nan if getattr(self, f.name) is None else float(getattr(self, f.name))
            for f in fields(self)
        ])

    def get(self, name: str, default: Optional[float] = None) -> Optional[float]:
        value = getattr(self, name, None) if name in self.feature_names() else None
        return default if value is None else value

    @property
    def present_count(self) -> int:
        """Number of features with a value."""
        return len(self.to_dict())

    def is_empty(self) -> bool:
        return self.present_count == 0

    def __len__(self) -> int:
        return self.present_count


@dataclass(frozen=True)
class ContractorFeatures(_FeatureRecord):
    """Features characterizing one contractor's award history."""

    kind: ClassVar[EntityKind] = EntityKind.CONTRACTOR

    # Amount statistics
    total_awarded: Optional[float] = None
    avg_award: Optional[float] = None
    award_count: Optional[float] = None
    max_award: Optional[float] = None
    min_award: Optional[float] = None
    award_std_dev: Optional[float] = None

    # Concentration
    concentration_index: Optional[float] = None  # Herfindahl over award shares
    agency_concentration: Optional[float] = None

    # Growth
    year_over_year_growth: Optional[float] = None

    # Category ratios
    sole_source_ratio: Optional[float] = None
    high_risk_category_ratio: Optional[float] = None
    defense_ratio: Optional[float] = None
    healthcare_ratio: Optional[float] = None
    large_award_ratio: Optional[float] = None

    # Set only when the vector describes a single award
    award_amount: Optional[float] = None


@dataclass(frozen=True)
class HealthcareProviderFeatures(_FeatureRecord):
    """Features characterizing one provider's billing and payment activity."""

    kind: ClassVar[EntityKind] = EntityKind.HEALTHCARE_PROVIDER

    # Billing patterns
    total_billed: Optional[float] = None
    avg_claim: Optional[float] = None
    claim_count: Optional[float] = None
    avg_code_complexity: Optional[float] = None
    high_complexity_ratio: Optional[float] = None
    unique_service_types: Optional[float] = None
    services_per_patient: Optional[float] = None

    # Third-party payments
    total_third_party_payments: Optional[float] = None
    third_party_payment_count: Optional[float] = None
    unique_paying_companies: Optional[float] = None
    payment_concentration: Optional[float] = None
    consulting_payment_ratio: Optional[float] = None

    # Exclusion history (0/1 flags)
    has_exclusion_history: Optional[float] = None
    related_party_excluded: Optional[float] = None


FeatureVector = Union[ContractorFeatures, HealthcareProviderFeatures]

FEATURE_TYPES: dict[EntityKind, type] = {
    EntityKind.CONTRACTOR: ContractorFeatures,
    EntityKind.HEALTHCARE_PROVIDER: HealthcareProviderFeatures,
}


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _field(record: Mapping[str, Any], names: Sequence[str]) -> Any:
    """Return the first present value among the accepted field names."""
    for name in names:
        value = record.get(name)
        if not _is_missing(value):
            return value
    return None


def _to_float(value: Any) -> Optional[float]:
    """Parse a numeric or currency string; None when missing or non-finite."""
    if _is_missing(value):
        return None
    if isinstance(value, str):
        value = value.strip().replace("$", "").replace(",", "")
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _to_text(value: Any) -> Optional[str]:
    if _is_missing(value):
        return None
    return str(value).strip().lower()


def _year_of(value: Any) -> Optional[int]:
    if _is_missing(value):
        return None
    if isinstance(value, (date, pd.Timestamp)):
        return value.year
    text = str(value).strip()
    if len(text) >= 4 and text[:4].isdigit():
        return int(text[:4])
    return None


def _ratio(matches: int, total: int) -> Optional[float]:
    return matches / total if total > 0 else None


def _as_records(raw_records: Any) -> list[Mapping[str, Any]]:
    if raw_records is None:
        return []
    if isinstance(raw_records, pd.DataFrame):
        return raw_records.to_dict("records")
    if isinstance(raw_records, Mapping):
        return [raw_records]
    return [r for r in raw_records if isinstance(r, (Mapping, pd.Series))]


def code_complexity(code: Any) -> int:
    """Complexity level (1-5) of a procedure code.

    E&M office-visit codes carry their level in the last digit; any other
    code gets the default medium complexity.
    """
    match = _EM_CODE_PATTERN.search(str(code))
    if match:
        return int(match.group(1))
    return DEFAULT_CODE_COMPLEXITY


def growth_rate(totals_by_year: Mapping[int, float]) -> float:
    """Ratio of the most recent year's total to the year before it.

    Only the two most recent calendar years are compared. With fewer than
    two years of history there is no detectable growth and 1.0 is returned.
    A zero prior-year total is treated as 1.
    """
    years = sorted(totals_by_year)
    if len(years) < 2:
        return 1.0
    last = totals_by_year[years[-1]]
    previous = totals_by_year[years[-2]] or 1.0
    return last / previous


class ContractorFeatureExtractor:
    """Extract contractor features from a list of award records."""

    def __init__(self, large_award_multiple: float = 3.0):
        """
        Args:
            large_award_multiple: An award counts as large when it exceeds
                this multiple of the contractor's own average award.
        """
        self.large_award_multiple = large_award_multiple

    def extract(self, awards: Iterable[Mapping[str, Any]]) -> ContractorFeatures:
        """Extract features for one contractor.

        Args:
            awards: The contractor's award records.

        Returns:
            ContractorFeatures; empty when there are no awards.
        """
        awards = _as_records(awards)
        if not awards:
            return ContractorFeatures()

        values: dict[str, float] = {"award_count": float(len(awards))}

        amounts = []
        totals_by_year: dict[int, float] = {}
        for award in awards:
            amount = _to_float(_field(award, AWARD_FIELDS["amount"]))
            if amount is None:
                continue
            amounts.append(amount)
            year = _year_of(_field(award, AWARD_FIELDS["start_date"]))
            if year is not None:
                totals_by_year[year] = totals_by_year.get(year, 0.0) + amount

        if amounts:
            values.update(self._amount_features(np.asarray(amounts, dtype=float)))
            if len(awards) == 1:
                values["award_amount"] = amounts[0]
        values["year_over_year_growth"] = growth_rate(totals_by_year)

        agencies = [_to_text(_field(a, AWARD_FIELDS["agency"])) for a in awards]
        descriptions = [_to_text(_field(a, AWARD_FIELDS["description"])) for a in awards]
        values.update(self._agency_features([a for a in agencies if a]))
        values.update(self._description_features([d for d in descriptions if d]))

        healthcare_ratio = self._healthcare_ratio(agencies, descriptions)
        if healthcare_ratio is not None:
            values["healthcare_ratio"] = healthcare_ratio

        return ContractorFeatures.from_dict(values)

    def _amount_features(self, amounts: np.ndarray) -> dict[str, float]:
        total = float(amounts.sum())
        average = total / len(amounts)
        features = {
            "total_awarded": total,
            "avg_award": average,
            "max_award": float(amounts.max()),
            "min_award": float(amounts.min()),
            "award_std_dev": float(amounts.std()),
            "large_award_ratio": float(
                np.count_nonzero(amounts > average * self.large_award_multiple)
            ) / len(amounts),
        }
        if total != 0:
            shares = amounts / total
            features["concentration_index"] = float(np.sum(shares * shares))
        return features

    @staticmethod
    def _agency_features(agencies: list[str]) -> dict[str, float]:
        if not agencies:
            return {}
        top_count = Counter(agencies).most_common(1)[0][1]
        defense = sum(1 for a in agencies if any(kw in a for kw in DEFENSE_KEYWORDS))
        return {
            "agency_concentration": top_count / len(agencies),
            "defense_ratio": defense / len(agencies),
        }

    @staticmethod
    def _description_features(descriptions: list[str]) -> dict[str, float]:
        if not descriptions:
            return {}
        sole_source = sum(
            1 for d in descriptions if any(m in d for m in SOLE_SOURCE_MARKERS)
        )
        high_risk = sum(
            1 for d in descriptions if any(kw in d for kw in HIGH_RISK_KEYWORDS)
        )
        return {
            "sole_source_ratio": sole_source / len(descriptions),
            "high_risk_category_ratio": high_risk / len(descriptions),
        }

    @staticmethod
    def _healthcare_ratio(
        agencies: list[Optional[str]], descriptions: list[Optional[str]]
    ) -> Optional[float]:
        known = 0
        matches = 0
        for agency, description in zip(agencies, descriptions):
            if agency is None and description is None:
                continue
            known += 1
            text = f"{agency or ''} {description or ''}"
            if any(kw in text for kw in HEALTHCARE_KEYWORDS):
                matches += 1
        return _ratio(matches, known)


class HealthcareFeatureExtractor:
    """Extract provider features from claims, payments and exclusion data."""

    RECORD_TYPES = ("claim", "payment", "provider", "exclusion")

    def extract(
        self,
        claims: Optional[Iterable[Mapping[str, Any]]] = None,
        payments: Optional[Iterable[Mapping[str, Any]]] = None,
        provider: Optional[Mapping[str, Any]] = None,
        exclusions: Optional[Iterable[Mapping[str, Any]]] = None,
    ) -> HealthcareProviderFeatures:
        """Extract features for one provider.

        Args:
            claims: Billing claims (amount, code, patient_id, service_type).
            payments: Third-party payments (amount, company, type).
            provider: Provider attributes, including prior exclusion flags.
            exclusions: Exclusion-list entries matched to this provider;
                ``relationship`` is "self" (default) or "related".

        Returns:
            HealthcareProviderFeatures; empty when no records are given.
        """
        claims = _as_records(claims)
        payments = _as_records(payments)
        exclusions = _as_records(exclusions)

        values: dict[str, float] = {}
        if claims:
            values.update(self._billing_features(claims))
        if payments:
            values.update(self._payment_features(payments))
        if provider is not None or exclusions:
            values.update(self._exclusion_features(provider or {}, exclusions))

        return HealthcareProviderFeatures.from_dict(values)

    def extract_records(self, records: Iterable[Mapping[str, Any]]) -> HealthcareProviderFeatures:
        """Extract from a flat list of records tagged with ``record_type``.

        Records without a recognised ``record_type`` are classified by
        their fields; records that match no type are ignored.
        """
        grouped: dict[str, list] = {t: [] for t in self.RECORD_TYPES}
        for record in _as_records(records):
            record_type = self._record_type(record)
            if record_type is not None:
                grouped[record_type].append(record)

        provider: Optional[dict] = None
        for entry in grouped["provider"]:
            provider = {**(provider or {}), **dict(entry)}

        return self.extract(
            claims=grouped["claim"],
            payments=grouped["payment"],
            provider=provider,
            exclusions=grouped["exclusion"],
        )

    def _record_type(self, record: Mapping[str, Any]) -> Optional[str]:
        declared = _to_text(record.get("record_type"))
        if declared in self.RECORD_TYPES:
            return declared
        if _field(record, CLAIM_FIELDS["code"]) is not None or \
                _field(record, CLAIM_FIELDS["patient_id"]) is not None:
            return "claim"
        if _field(record, PAYMENT_FIELDS["company"]) is not None:
            return "payment"
        if "excluded_previously" in record or "has_exclusion_history" in record \
                or "related_party_excluded" in record:
            return "provider"
        return None

    @staticmethod
    def _billing_features(claims: list[Mapping[str, Any]]) -> dict[str, float]:
        features: dict[str, float] = {"claim_count": float(len(claims))}

        amounts = [
            a for a in (_to_float(_field(c, CLAIM_FIELDS["amount"])) for c in claims)
            if a is not None
        ]
        if amounts:
            total = float(np.sum(amounts))
            features["total_billed"] = total
            features["avg_claim"] = total / len(amounts)

        levels = [
            code_complexity(code)
            for code in (_field(c, CLAIM_FIELDS["code"]) for c in claims)
            if code is not None
        ]
        if levels:
            features["avg_code_complexity"] = sum(levels) / len(levels)
            features["high_complexity_ratio"] = (
                sum(1 for level in levels if level >= HIGH_COMPLEXITY_LEVEL) / len(levels)
            )

        service_types = {
            s for s in (_to_text(_field(c, CLAIM_FIELDS["service_type"])) for c in claims)
            if s
        }
        if service_types:
            features["unique_service_types"] = float(len(service_types))

        patient_ids = [
            str(p) for p in (_field(c, CLAIM_FIELDS["patient_id"]) for c in claims)
            if p is not None
        ]
        if patient_ids:
            features["services_per_patient"] = len(patient_ids) / len(set(patient_ids))

        return features

    @staticmethod
    def _payment_features(payments: list[Mapping[str, Any]]) -> dict[str, float]:
        features: dict[str, float] = {"third_party_payment_count": float(len(payments))}

        total = 0.0
        has_amount = False
        by_company: dict[str, float] = {}
        for payment in payments:
            amount = _to_float(_field(payment, PAYMENT_FIELDS["amount"]))
            if amount is None:
                continue
            has_amount = True
            total += amount
            company = _to_text(_field(payment, PAYMENT_FIELDS["company"]))
            if company:
                by_company[company] = by_company.get(company, 0.0) + amount

        if has_amount:
            features["total_third_party_payments"] = total
            if total > 0 and by_company:
                features["payment_concentration"] = max(by_company.values()) / total

        companies = {
            c for c in (_to_text(_field(p, PAYMENT_FIELDS["company"])) for p in payments)
            if c
        }
        if companies:
            features["unique_paying_companies"] = float(len(companies))

        types = [t for t in (_to_text(_field(p, PAYMENT_FIELDS["type"])) for p in payments) if t]
        if types:
            consulting = sum(
                1 for t in types if any(kw in t for kw in CONSULTING_PAYMENT_KEYWORDS)
            )
            features["consulting_payment_ratio"] = consulting / len(types)

        return features

    @staticmethod
    def _exclusion_features(
        provider: Mapping[str, Any], exclusions: list[Mapping[str, Any]]
    ) -> dict[str, float]:
        excluded = bool(
            provider.get("excluded_previously") or provider.get("has_exclusion_history")
        )
        related = bool(provider.get("related_party_excluded"))

        for entry in exclusions:
            relationship = _to_text(entry.get("relationship")) or "self"
            if relationship == "self":
                excluded = True
            else:
                related = True

        return {
            "has_exclusion_history": 1.0 if excluded else 0.0,
            "related_party_excluded": 1.0 if related else 0.0,
        }


def _kind(kind: Union[EntityKind, str]) -> EntityKind:
    try:
        return EntityKind(kind)
    except ValueError:
        raise ValueError(
            f"Unknown entity kind: {kind!r}. "
            f"Expected one of {[k.value for k in EntityKind]}"
        ) from None


def extract_features(
    kind: Union[EntityKind, str],
    raw_records: Any,
    large_award_multiple: float = 3.0,
) -> FeatureVector:
    """Extract one feature vector from the raw records of one entity.

    Args:
        kind: "contractor" or "healthcare_provider".
        raw_records: Award records for a contractor; claim, payment,
            provider and exclusion records (tagged with ``record_type``)
            for a healthcare provider. A DataFrame is accepted as well.
        large_award_multiple: Multiple of the contractor's average award
            above which an award counts as large.

    Returns:
        The kind's feature record. Empty input yields an empty record.

    Raises:
        ValueError: If ``kind`` is not a known entity kind.
    """
    kind = _kind(kind)
    if kind is EntityKind.CONTRACTOR:
        return ContractorFeatureExtractor(large_award_multiple).extract(raw_records)
    return HealthcareFeatureExtractor().extract_records(raw_records)


def extract_batch(
    kind: Union[EntityKind, str],
    entities: Iterable[Any],
    large_award_multiple: float = 3.0,
) -> pd.DataFrame:
    """Extract feature vectors for many entities.

    Args:
        kind: Entity kind shared by all entities.
        entities: One raw-record collection per entity.

    Returns:
        DataFrame with one row per entity and one column per feature in
        the kind's vocabulary; absent features are NaN.
    """
    kind = _kind(kind)
    rows = [
        extract_features(kind, records, large_award_multiple).to_dict()
        for records in entities
    ]
    return pd.DataFrame(rows, columns=FEATURE_TYPES[kind].feature_names(), dtype=float)
