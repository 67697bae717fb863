"""
insight/base.py

Abstract base class for rule-based insight engines.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from app.services.kpi_service import KPIResult


@dataclass(frozen=True)
class InsightResult:
    """
    Output of an insight engine.

    ``report`` holds three newline-separated paragraphs: trend, anomaly,
    and recommendation.
    """

    trend: str
    anomaly: str
    recommendation: str
    anomalies: tuple[str, ...] = ()

    @property
    def report(self) -> str:
        return "\n".join((self.trend, self.anomaly, self.recommendation))


class BaseInsightEngine(ABC):
    """
    Contract for insight engine implementations.

    Subclasses receive a completed :class:`KPIResult` and must return an
    :class:`InsightResult`.

    No I/O, no logging, no randomness and no side effects are permitted
    inside :meth:`analyze`: the same KPI result must always produce the
    same text.
    """

    @abstractmethod
    def analyze(self, kpi_result: KPIResult) -> InsightResult:
        """
        Build the three-paragraph report for *kpi_result*.
        """
