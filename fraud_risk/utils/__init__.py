"""Utility modules for fraud-risk scoring."""

from .logging import configure_logging, get_logger, RiskLogger

__all__ = ["configure_logging", "get_logger", "RiskLogger"]
