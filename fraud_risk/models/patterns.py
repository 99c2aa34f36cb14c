"""
Fraud Pattern Learner.

Mines weighted indicators from a small labeled set of known fraud cases
(for example False Claims Act settlements). Each case carries short
free-text indicator phrases describing why it was flagged, a fraud type,
an industry or category, and an outcome amount.

Indicator weights feed the pattern-matching strategy of the ensemble
scorer. The per-type and per-category aggregates are descriptive only.
"""

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

MAX_PATTERNS = 20
UNKNOWN_CATEGORY = "unknown"


@dataclass(frozen=True)
class FraudCase:
    """One labeled fraud case."""

    indicators: tuple[str, ...] = ()
    fraud_types: tuple[str, ...] = ()
    category: str = UNKNOWN_CATEGORY
    amount: float = 0.0
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FraudCase":
        """Build from a loosely structured record.

        ``fraud_type`` may be a string or a list; ``industry`` is accepted
        as an alias of ``category``. A missing or unparseable amount is 0.
        """
        fraud_types = data.get("fraud_type", data.get("fraud_types")) or ()
        if isinstance(fraud_types, str):
            fraud_types = (fraud_types,)
        return cls(
            indicators=_phrases(data.get("indicators")),
            fraud_types=_phrases(fraud_types),
            category=str(data.get("industry") or data.get("category") or UNKNOWN_CATEGORY),
            amount=_amount(data.get("amount")),
            name=data.get("name"),
        )


@dataclass(frozen=True)
class PatternEntry:
    """A ranked fraud indicator; ``weight`` is the share of cases citing it."""

    indicator: str
    count: int
    weight: float

    @property
    def feature_key(self) -> str:
        """Indicator phrase normalized to feature-name form."""
        return "_".join(self.indicator.lower().split())


@dataclass(frozen=True)
class CategoryAggregate:
    """Count and outcome amounts of cases in one fraud type or category."""

    count: int
    total_amount: float
    avg_amount: float


@dataclass(frozen=True)
class FraudPatterns:
    """Learned indicator ranking plus descriptive aggregates."""

    common_factors: tuple[PatternEntry, ...] = ()
    by_fraud_type: dict[str, CategoryAggregate] = field(default_factory=dict)
    by_category: dict[str, CategoryAggregate] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.common_factors)

    def top(self, n: Optional[int] = None) -> tuple[PatternEntry, ...]:
        return self.common_factors if n is None else self.common_factors[:n]

    def to_dict(self) -> dict:
        return {
            "common_factors": [asdict(entry) for entry in self.common_factors],
            "by_fraud_type": {k: asdict(v) for k, v in self.by_fraud_type.items()},
            "by_category": {k: asdict(v) for k, v in self.by_category.items()},
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "FraudPatterns":
        """Build from a serialized mapping, accepting legacy camelCase keys.

        Raises:
            ValueError: If entries are malformed.
        """
        if not data:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError("Patterns must be a mapping")
        factors = data.get("common_factors", data.get("commonFactors")) or []
        try:
            entries = tuple(
                PatternEntry(
                    indicator=str(entry["indicator"]),
                    count=int(entry["count"]),
                    weight=float(entry["weight"]),
                )
                for entry in factors
            )
            by_fraud_type = _aggregates(data.get("by_fraud_type", data.get("byFraudType")))
            by_category = _aggregates(data.get("by_category", data.get("byIndustry")))
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid fraud pattern entry: {e}") from e
        return cls(entries, by_fraud_type, by_category)


def _phrases(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        value = [value]
    return tuple(str(v).strip() for v in value if v is not None and str(v).strip())


def _amount(value: Any) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0


def _aggregates(data: Optional[Mapping[str, Any]]) -> dict[str, CategoryAggregate]:
    if not data:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError("Pattern aggregates must be a mapping")
    result = {}
    for name, agg in data.items():
        if not isinstance(agg, Mapping):
            raise ValueError(f"Aggregate for {name!r} must be a mapping")
        count = int(agg["count"])
        total = float(agg.get("total_amount", agg.get("totalAmount", 0.0)))
        avg = agg.get("avg_amount", agg.get("avgAmount"))
        result[str(name)] = CategoryAggregate(
            count=count,
            total_amount=total,
            avg_amount=float(avg) if avg is not None else (total / count if count else 0.0),
        )
    return result


def _summarize(tallies: dict[str, list[float]]) -> dict[str, CategoryAggregate]:
    return {
        name: CategoryAggregate(
            count=int(count),
            total_amount=total,
            avg_amount=total / count,
        )
        for name, (count, total) in tallies.items()
    }


def learn_patterns(
    cases: Iterable[Union[FraudCase, Mapping[str, Any]]],
    max_patterns: int = MAX_PATTERNS,
) -> FraudPatterns:
    """
    Learn weighted fraud indicators from labeled cases.

    An indicator is counted at most once per case, so its weight is the
    fraction of cases citing it. Entries are ranked by count, descending,
    with ties kept in first-seen order, and the top ``max_patterns`` are
    retained.

    Args:
        cases: Labeled fraud cases (FraudCase or mappings).
        max_patterns: Number of indicators to retain.

    Returns:
        FraudPatterns; empty when there are no cases.
    """
    cases: Sequence[FraudCase] = [
        c if isinstance(c, FraudCase) else FraudCase.from_dict(c) for c in cases
    ]
    if not cases:
        return FraudPatterns()

    indicator_counts: dict[str, int] = {}
    by_fraud_type: dict[str, list[float]] = {}
    by_category: dict[str, list[float]] = {}

    for case in cases:
        for indicator in dict.fromkeys(case.indicators):
            indicator_counts[indicator] = indicator_counts.get(indicator, 0) + 1

        for fraud_type in case.fraud_types:
            tally = by_fraud_type.setdefault(fraud_type, [0, 0.0])
            tally[0] += 1
            tally[1] += case.amount

        tally = by_category.setdefault(case.category, [0, 0.0])
        tally[0] += 1
        tally[1] += case.amount

    # sorted() is stable, so equal counts keep first-seen order
    ranked = sorted(indicator_counts.items(), key=lambda item: -item[1])[:max_patterns]
    total_cases = len(cases)

    return FraudPatterns(
        common_factors=tuple(
            PatternEntry(indicator=indicator, count=count, weight=count / total_cases)
            for indicator, count in ranked
        ),
        by_fraud_type=_summarize(by_fraud_type),
        by_category=_summarize(by_category),
    )
