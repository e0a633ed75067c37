"""
Demand model: per-period discretized, truncated demand distributions.

The recursion only ever sees a :class:`PeriodPmf` per period, a finite
support with probabilities summing to one. The extractor additionally
needs the continuous-approximation distribution itself (for critical
fractiles and the L(y) expectation), which :meth:`DemandModel.distribution`
and :meth:`DemandModel.aggregate` expose as frozen ``scipy.stats``
distributions.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

import numpy as np
from scipy import stats

from cashsdp.logging import getLogger
from cashsdp.typing import Float1D

__all__ = ["DemandModel", "PeriodPmf"]

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PeriodPmf:
    """Finite demand support of one period and its probabilities."""

    values: Float1D
    probabilities: Float1D

    def __len__(self) -> int:
        return int(self.values.size)

    def mean(self) -> float:
        return float(self.values @ self.probabilities)


class DemandModel:
    """
    Independent per-period demand, Poisson or normal.

    Parameters
    ----------
    mean_demand : sequence of float
        Mean demand of periods 1..T.
    distribution : {"poisson", "normal"}
        Family of every period's demand.
    cv : float, default 0.25
        Coefficient of variation for normal demand.
    truncation_quantile : float, default 0.9999
        Support runs from the ``1 - q`` to the ``q`` quantile.
    step_size : float, default 1
        Spacing of the discretized support.

    Examples
    --------
    >>> dm = DemandModel([15, 15, 15])
    >>> pmf = dm.pmf(1)
    >>> round(float(pmf.probabilities.sum()), 12)
    1.0
    """

    def __init__(
        self,
        mean_demand: Sequence[float],
        distribution: str = "poisson",
        *,
        cv: float = 0.25,
        truncation_quantile: float = 0.9999,
        step_size: float = 1.0,
    ) -> None:
        self.mean_demand = tuple(float(d) for d in mean_demand)
        self.kind = distribution.lower()
        if self.kind not in ("poisson", "normal"):
            raise ValueError(f"Unknown demand distribution '{distribution}'")
        self.cv = float(cv)
        self.truncation_quantile = float(truncation_quantile)
        self.step_size = float(step_size)
        self._pmfs: dict[int, PeriodPmf] = {}

    @property
    def n_periods(self) -> int:
        return len(self.mean_demand)

    def distribution(self, period: int) -> Any:
        """Frozen scipy distribution of the demand of ``period`` (1-based)."""
        return self.aggregate([period])

    def aggregate(self, periods: Iterable[int]) -> Any:
        """
        Distribution of the total demand over several periods.

        Period demands are independent, so Poisson means add and normal
        means and variances add.
        """
        means = [self.mean_demand[t - 1] for t in periods]
        total = sum(means)
        if self.kind == "poisson":
            return stats.poisson(total)
        sd = math.sqrt(sum((self.cv * m) ** 2 for m in means))
        return stats.norm(loc=total, scale=sd)

    def pmf(self, period: int) -> PeriodPmf:
        """Discretized, truncated pmf of ``period`` (memoised)."""
        if period not in self._pmfs:
            self._pmfs[period] = self._build_pmf(period)
        return self._pmfs[period]

    def pmfs(self) -> list[PeriodPmf]:
        return [self.pmf(t) for t in range(1, self.n_periods + 1)]

    def _build_pmf(self, period: int) -> PeriodPmf:
        dist = self.distribution(period)
        q = self.truncation_quantile
        step = self.step_size

        lower = max(0.0, math.floor(float(dist.ppf(1.0 - q))))
        upper = max(lower, math.floor(float(dist.ppf(q))))
        n_values = int(round((upper - lower) / step)) + 1
        values = lower + step * np.arange(n_values, dtype=np.float64)

        probs = dist.cdf(values + 0.5 * step) - dist.cdf(values - 0.5 * step)
        probs = np.asarray(probs, dtype=np.float64)
        probs /= probs.sum()

        log.debug(
            f"  Period {period} demand pmf: support [{values[0]:g}, {values[-1]:g}] "
            f"({values.size} points), mean={float(values @ probs):.3f}"
        )
        return PeriodPmf(values=values, probabilities=probs)

    def __repr__(self) -> str:
        return (
            f"DemandModel({self.kind}, T={self.n_periods}, "
            f"q={self.truncation_quantile}, step={self.step_size})"
        )
