"""
kpi/base.py

Formula interface the KPI service calls once per reporting period.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class BaseKPIFormula(ABC):
    """
    Turns one period's summed quantities into unrounded metric values.

    Implementations stay pure: rounding, deltas and logging belong to
    :class:`app.services.kpi_service.KPIService`.
    """

    @abstractmethod
    def calculate(self, inputs: dict[str, Any]) -> dict[str, Any]:
        """
        Map ``sum_*`` inputs (see ``BaseAggregates``) to ``{metric_key: value}``.

        A value is ``None`` when its denominator is zero or missing.
        """
