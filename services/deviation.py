"""Deviation of an actual metric from its configured target."""

from __future__ import annotations

from typing import NamedTuple


class MetricEvaluation(NamedTuple):
    deviation: float
    in_range: bool


def deviation(actual: float, target: float) -> float:
    """Signed percentage deviation rounded to two decimals, 0 for a zero target."""
    if target == 0:
        return 0.0
    return round(((actual - target) / target) * 100, 2)


def in_tolerance(actual: float, target: float, tolerance_percentage: float) -> bool:
    # A zero target only accepts an exact zero reading.
    if target == 0:
        return actual == 0
    return abs((actual - target) / target) * 100 <= tolerance_percentage


def evaluate(actual: float, target: float, tolerance_percentage: float) -> MetricEvaluation:
    return MetricEvaluation(
        deviation=deviation(actual, target),
        in_range=in_tolerance(actual, target, tolerance_percentage),
    )
