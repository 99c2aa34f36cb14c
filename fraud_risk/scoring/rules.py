"""
Domain rule tables.

Fixed, non-learned rules per entity kind. Every comparison boundary comes
from the ThresholdTable; only the contribution formulas live here.
"""

from typing import Callable, Optional

from ..config import ThresholdTable
from .features import ContractorFeatures, EntityKind, HealthcareProviderFeatures
from .result import RiskFactor, Severity, round_half_up


def _percent(ratio: float) -> int:
    return round_half_up(ratio * 100)


def _exceeds(value: Optional[float], threshold: float) -> bool:
    return value is not None and value > threshold


def contractor_rules(
    features: ContractorFeatures,
    thresholds: ThresholdTable,
    strict: bool = False,
) -> list[RiskFactor]:
    """Apply contractor rules.

    The absolute-amount escalators only see ``award_amount``, which is
    present when the vector describes a single award, so they apply once
    per evaluated award.
    """
    factors = []
    t = thresholds

    if _exceeds(features.large_award_ratio, t.large_award_ratio):
        contribution = round_half_up(features.large_award_ratio * 30)
        factors.append(RiskFactor(
            type="LARGE_AWARD_CONCENTRATION",
            description=(
                f"{_percent(features.large_award_ratio)}% of awards "
                f"significantly above average"
            ),
            severity=Severity.HIGH if contribution > 15 else Severity.MEDIUM,
            contribution=contribution,
        ))

    if _exceeds(features.agency_concentration, t.agency_concentration):
        factors.append(RiskFactor(
            type="AGENCY_CONCENTRATION",
            description=f"{_percent(features.agency_concentration)}% from single agency",
            severity=Severity.LOW,
            contribution=10,
        ))

    if _exceeds(features.sole_source_ratio, t.sole_source_ratio):
        factors.append(RiskFactor(
            type="HIGH_SOLE_SOURCE",
            description=f"{_percent(features.sole_source_ratio)}% sole source contracts",
            severity=Severity.MEDIUM,
            contribution=round_half_up(features.sole_source_ratio * 25),
        ))

    if _exceeds(features.year_over_year_growth, t.growth_rate_anomaly):
        contribution = min(round_half_up((features.year_over_year_growth - 1) * 15), 25)
        factors.append(RiskFactor(
            type="RAPID_GROWTH",
            description=f"{_percent(features.year_over_year_growth)}% year-over-year growth",
            severity=Severity.HIGH if contribution > 15 else Severity.MEDIUM,
            contribution=contribution,
        ))

    if _exceeds(features.high_risk_category_ratio, t.high_risk_category_ratio):
        factors.append(RiskFactor(
            type="HIGH_RISK_CATEGORY",
            description=(
                f"{_percent(features.high_risk_category_ratio)}% in high-risk "
                f"categories (consulting, IT, etc.)"
            ),
            severity=Severity.MEDIUM,
            contribution=round_half_up(features.high_risk_category_ratio * 20),
        ))

    if _exceeds(features.defense_ratio, t.defense_ratio):
        factors.append(RiskFactor(
            type="DEFENSE_CONCENTRATION",
            description="Primarily defense contracts (historically higher fraud rates)",
            severity=Severity.LOW,
            contribution=5,
        ))

    if _exceeds(features.healthcare_ratio, t.healthcare_ratio):
        factors.append(RiskFactor(
            type="HEALTHCARE_CONCENTRATION",
            description="Significant healthcare contracts (subject to FCA)",
            severity=Severity.MEDIUM,
            contribution=10,
        ))

    if _exceeds(features.award_amount, t.very_large_award):
        factors.append(RiskFactor(
            type="VERY_LARGE_AWARD",
            description=f"Award exceeds ${t.very_large_award:,.0f} - warrants additional scrutiny",
            severity=Severity.MEDIUM,
            contribution=10,
        ))

    if _exceeds(features.award_amount, t.extremely_large_award):
        factors.append(RiskFactor(
            type="EXTREMELY_LARGE_AWARD",
            description=(
                f"Award exceeds ${t.extremely_large_award:,.0f} - "
                f"high value target for investigation"
            ),
            severity=Severity.HIGH,
            contribution=20,
        ))

    return factors


def healthcare_rules(
    features: HealthcareProviderFeatures,
    thresholds: ThresholdTable,
    strict: bool = False,
) -> list[RiskFactor]:
    """Apply healthcare-provider rules.

    With ``strict`` the services-per-patient check uses the stricter
    threshold.
    """
    factors = []
    t = thresholds

    if _exceeds(features.high_complexity_ratio, t.high_complexity_ratio):
        contribution = max(round_half_up((features.high_complexity_ratio - 0.2) * 40), 0)
        factors.append(RiskFactor(
            type="HIGH_COMPLEXITY_BILLING",
            description=f"{_percent(features.high_complexity_ratio)}% high complexity codes",
            severity=Severity.HIGH if contribution > 15 else Severity.MEDIUM,
            contribution=contribution,
        ))

    if _exceeds(features.total_third_party_payments, t.pharma_payment_high):
        very_high = features.total_third_party_payments > t.pharma_payment_very_high
        factors.append(RiskFactor(
            type="HIGH_PHARMA_PAYMENTS",
            description=(
                f"${features.total_third_party_payments:,.0f} in "
                f"pharmaceutical/device payments"
            ),
            severity=Severity.HIGH if very_high else Severity.MEDIUM,
            contribution=25 if very_high else 15,
        ))

    if _exceeds(features.payment_concentration, t.payment_concentration):
        factors.append(RiskFactor(
            type="PHARMA_CONCENTRATION",
            description=(
                f"{_percent(features.payment_concentration)}% of payments "
                f"from single company"
            ),
            severity=Severity.MEDIUM,
            contribution=10,
        ))

    if _exceeds(features.consulting_payment_ratio, t.consulting_payment_ratio):
        factors.append(RiskFactor(
            type="CONSULTING_PAYMENTS",
            description=(
                f"{_percent(features.consulting_payment_ratio)}% of payments "
                f"for consulting or speaking"
            ),
            severity=Severity.MEDIUM,
            contribution=10,
        ))

    if features.has_exclusion_history:
        factors.append(RiskFactor(
            type="PRIOR_EXCLUSION",
            description="Provider has prior exclusion history",
            severity=Severity.HIGH,
            contribution=30,
        ))

    if features.related_party_excluded:
        factors.append(RiskFactor(
            type="RELATED_PARTY_EXCLUDED",
            description="Related party has been excluded",
            severity=Severity.HIGH,
            contribution=20,
        ))

    volume_threshold = t.services_per_patient_strict if strict else t.services_per_patient
    if _exceeds(features.services_per_patient, volume_threshold):
        factors.append(RiskFactor(
            type="HIGH_SERVICE_VOLUME",
            description=(
                f"{features.services_per_patient:.1f} services per patient "
                f"(above {volume_threshold:g})"
            ),
            severity=Severity.MEDIUM,
            contribution=15,
        ))

    return factors


RULES: dict[EntityKind, Callable[..., list[RiskFactor]]] = {
    EntityKind.CONTRACTOR: contractor_rules,
    EntityKind.HEALTHCARE_PROVIDER: healthcare_rules,
}
