# src/keynescope/curves.py
"""
Curve sampling for plots.

The generator evaluates the regime-appropriate demand (Keynesian cross) or IS
function (IS-LM) over an evenly spaced range of output values. It draws the
whole curve, not only the fixed point, and knows nothing about how the range
was chosen; :func:`chart_upper_bound` derives the usual range from the two
equilibria being compared.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, NamedTuple

import numpy as np

from keynescope.equilibrium import Equilibrium, solve
from keynescope.typing import Float1D

if TYPE_CHECKING:
    from keynescope.params import ParameterSet

__all__ = [
    "CurvePoint",
    "CurveSeries",
    "ChartData",
    "sample",
    "sample_reference",
    "chart_upper_bound",
    "chart_data",
]


class CurvePoint(NamedTuple):
    x: float
    y: float


@dataclass(slots=True, frozen=True)
class CurveSeries:
    """
    Ordered, finite sequence of curve samples.

    ``x`` and ``y`` are read-only arrays of equal length.
    """

    x: Float1D
    y: Float1D

    def __len__(self) -> int:
        return int(self.x.shape[0])

    def __iter__(self) -> Iterator[CurvePoint]:
        for x, y in zip(self.x.tolist(), self.y.tolist()):
            yield CurvePoint(x, y)

    def __getitem__(self, k: int) -> CurvePoint:
        return CurvePoint(float(self.x[k]), float(self.y[k]))


def _frozen(arr: Float1D) -> Float1D:
    arr.flags.writeable = False
    return arr


def _grid(lower: float, upper: float, count: int) -> Float1D:
    if count < 2:
        raise ValueError(f"count must be >= 2, got {count}")
    if not (math.isfinite(lower) and math.isfinite(upper)):
        raise ValueError(f"bounds must be finite, got [{lower}, {upper}]")
    if upper < lower:
        raise ValueError(f"upper bound {upper} is below lower bound {lower}")
    # linspace places both endpoints exactly
    return np.linspace(lower, upper, count, dtype=np.float64)


def sample(
    params: ParameterSet,
    lower: float,
    upper: float,
    count: int,
) -> CurveSeries:
    """
    Sample the demand / IS function of *params* on ``[lower, upper]``.

    Parameters
    ----------
    params : ParameterSet
        Parameter snapshot; its variant supplies the function.
    lower, upper : float
        Inclusive range of output values.
    count : int
        Number of samples (>= 2). The first sample is at *lower* and the
        last at *upper*.

    Returns
    -------
    CurveSeries
        ``count`` points.

    Raises
    ------
    ValueError
        If ``count < 2``, a bound is not finite or ``upper < lower``.
    """
    x = _grid(lower, upper, count)
    y = np.asarray(params.variant.curve(params, x), dtype=np.float64)
    return CurveSeries(x=_frozen(x), y=_frozen(y))


def sample_reference(
    params: ParameterSet,
    lower: float,
    upper: float,
    count: int,
) -> CurveSeries:
    """
    Sample the reference line: the 45-degree line (cross) or LM (IS-LM).
    """
    x = _grid(lower, upper, count)
    y = np.asarray(params.variant.reference(params, x), dtype=np.float64)
    return CurveSeries(x=_frozen(x), y=_frozen(y))


def chart_upper_bound(
    current: Equilibrium,
    baseline: Equilibrium | None = None,
    *,
    factor: float = 1.5,
    cap: float = 100_000.0,
) -> float:
    """
    Upper end of the plotted output range.

        bound = factor · max(Y_current, Y_baseline or 0)

    A bound that is not finite (singularity) or not positive is replaced by
    *cap*, as is any bound above *cap*.
    """
    y_base = baseline.output if baseline is not None else 0.0
    bound = factor * max(current.output, y_base)
    if not math.isfinite(bound) or bound <= 0.0 or bound > cap:
        return cap
    return bound


@dataclass(slots=True, frozen=True)
class ChartData:
    """
    Everything a plot renderer needs for one comparison.

    The baseline series, when present, shares the x range of the current
    series so the two curves overlay directly.
    """

    curve: CurveSeries
    reference: CurveSeries
    equilibrium: Equilibrium
    baseline_curve: CurveSeries | None = None
    baseline_reference: CurveSeries | None = None
    baseline_equilibrium: Equilibrium | None = None

    @property
    def upper_bound(self) -> float:
        return float(self.curve.x[-1])


def chart_data(
    current: ParameterSet,
    baseline: ParameterSet | None = None,
    *,
    count: int = 100,
    factor: float = 1.5,
    cap: float = 100_000.0,
    lower: float = 0.0,
) -> ChartData:
    """
    Solve and sample *current* (and *baseline*) on a common range.

    Parameters
    ----------
    current : ParameterSet
        Snapshot after the change.
    baseline : ParameterSet, optional
        Snapshot before the change.
    count : int
        Samples per curve.
    factor, cap : float
        Passed to :func:`chart_upper_bound`.
    lower : float
        Lower end of the output range.
    """
    eq = solve(current)
    base_eq = solve(baseline) if baseline is not None else None
    upper = max(chart_upper_bound(eq, base_eq, factor=factor, cap=cap), lower)

    if baseline is None:
        return ChartData(
            curve=sample(current, lower, upper, count),
            reference=sample_reference(current, lower, upper, count),
            equilibrium=eq,
        )
    return ChartData(
        curve=sample(current, lower, upper, count),
        reference=sample_reference(current, lower, upper, count),
        equilibrium=eq,
        baseline_curve=sample(baseline, lower, upper, count),
        baseline_reference=sample_reference(baseline, lower, upper, count),
        baseline_equilibrium=base_eq,
    )
