"""Synthetic data generation and built-in labeled fraud cases."""
from .generator import ContractorHistory, ProviderActivity, TrainingDataGenerator
from .known_cases import default_fraud_cases, load_fraud_cases

__all__ = [
    "TrainingDataGenerator",
    "ContractorHistory",
    "ProviderActivity",
    "default_fraud_cases",
    "load_fraud_cases",
]
