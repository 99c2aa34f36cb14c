"""
Statistical Profile Builder.

Summarizes the distribution of every feature over a training corpus of
feature vectors. The profile is what the anomaly-detection strategy of
the ensemble scorer measures z-scores against.

Percentiles use nearest-rank selection on a stable ascending sort, with
no interpolation: the p-th percentile of ``n`` values is the element at
index ``min(floor(n * p), n - 1)``. The median is the 0.5 percentile
under the same rule.
"""

import math
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Iterator, Mapping, Optional

import numpy as np
import pandas as pd

PERCENTILES = {"p25": 0.25, "median": 0.50, "p75": 0.75, "p90": 0.90, "p95": 0.95}


@dataclass(frozen=True)
class FeatureStats:
    """Distribution summary of one feature."""

    mean: float
    std: float  # population standard deviation
    min: float
    max: float
    median: float
    p25: float
    p75: float
    p90: float
    p95: float
    count: int

    def z_score(self, value: float) -> float:
        """Standard deviations from the mean, with the std floored at 1."""
        return (value - self.mean) / max(self.std, 1.0)

    def to_dict(self) -> dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FeatureStats":
        """Build from a serialized summary.

        Raises:
            ValueError: If a field is missing or the summary is inconsistent.
        """
        try:
            stats = cls(
                mean=float(data["mean"]),
                std=float(data["std"]),
                min=float(data["min"]),
                max=float(data["max"]),
                median=float(data["median"]),
                p25=float(data["p25"]),
                p75=float(data["p75"]),
                p90=float(data["p90"]),
                p95=float(data["p95"]),
                count=int(data["count"]),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid feature statistics: {e}") from e
        if stats.count < 1:
            raise ValueError("Feature statistics must have count >= 1")
        if stats.std < 0 or not all(math.isfinite(v) for v in asdict(stats).values()):
            raise ValueError("Feature statistics must be finite with std >= 0")
        return stats


class StatisticalProfile:
    """Per-feature distribution summaries over a training corpus."""

    def __init__(self, stats: Optional[Mapping[str, FeatureStats]] = None):
        self._stats: dict[str, FeatureStats] = dict(stats or {})

    def __contains__(self, name: object) -> bool:
        return name in self._stats

    def __getitem__(self, name: str) -> FeatureStats:
        return self._stats[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._stats)

    def __len__(self) -> int:
        return len(self._stats)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StatisticalProfile):
            return NotImplemented
        return self._stats == other._stats

    def __repr__(self) -> str:
        return f"StatisticalProfile(features={len(self._stats)})"

    def get(self, name: str) -> Optional[FeatureStats]:
        return self._stats.get(name)

    def feature_names(self) -> list[str]:
        return list(self._stats)

    def to_dict(self) -> dict[str, dict[str, float]]:
        """Open mapping used at the serialization boundary."""
        return {name: stats.to_dict() for name, stats in self._stats.items()}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "StatisticalProfile":
        if not data:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError("Profile must be a mapping of feature name to statistics")
        return cls({str(name): FeatureStats.from_dict(stats) for name, stats in data.items()})


def _nearest_rank(sorted_values: np.ndarray, p: float) -> float:
    n = len(sorted_values)
    return float(sorted_values[min(int(math.floor(n * p)), n - 1)])


def summarize(values: np.ndarray) -> FeatureStats:
    """Summarize one feature's sample (must be non-empty)."""
    ordered = np.sort(values, kind="stable")
    n = len(ordered)
    mean = float(ordered.sum() / n)
    std = float(np.sqrt(np.sum((ordered - mean) ** 2) / n))
    quantiles = {key: _nearest_rank(ordered, p) for key, p in PERCENTILES.items()}
    return FeatureStats(
        mean=mean,
        std=std,
        min=float(ordered[0]),
        max=float(ordered[-1]),
        count=n,
        **quantiles,
    )


def _vector_values(vector: Any) -> Mapping[str, Any]:
    """Feature mapping of a corpus item.

    Accepts feature records, plain mappings, and training records in the
    ``{"features": {...}}`` shape.
    """
    if hasattr(vector, "to_dict") and not isinstance(vector, Mapping):
        return vector.to_dict()
    if isinstance(vector, Mapping):
        nested = vector.get("features")
        if isinstance(nested, Mapping):
            return nested
        return vector
    return {}


def build_profile(corpus: Iterable[Any]) -> StatisticalProfile:
    """
    Build a statistical profile from a training corpus.

    For each feature observed in at least one vector, only the vectors
    where it is present contribute to its sample; absent values are not
    treated as zero. Non-numeric and non-finite values are skipped.

    Args:
        corpus: Feature vectors (feature records or name -> value mappings).

    Returns:
        StatisticalProfile; empty for an empty corpus.
    """
    rows = []
    for vector in corpus:
        row = {}
        for name, value in _vector_values(vector).items():
            if isinstance(value, bool) or not isinstance(value, (int, float, np.number)):
                continue
            if math.isfinite(float(value)):
                row[str(name)] = float(value)
        rows.append(row)

    if not rows:
        return StatisticalProfile()

    frame = pd.DataFrame.from_records(rows)
    stats = {}
    for name in sorted(frame.columns):
        values = frame[name].dropna().to_numpy(dtype=float)
        if len(values):
            stats[name] = summarize(values)
    return StatisticalProfile(stats)
