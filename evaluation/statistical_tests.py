"""
Statistical Tests for Algorithm Comparison
==========================================

This module implements the pairwise significance testing step:

1. Welch's t-test: Two-sample comparison of per-repetition metric values
   without assuming equal variances
2. Effect Size (Cohen's d): Magnitude of differences
3. Pairwise Matrices: Every ordered algorithm pair (diagonal included)
   per dataset and metric
4. Multiple Testing Correction: Bonferroni and FDR

These tests answer: "Is one algorithm's mean really higher, or is it noise?"
"""

import math
from dataclasses import dataclass, replace
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Any
import logging

import numpy as np
from scipy import stats

from config import (
    METRIC_NAMES, SIGNIFICANCE_LEVEL,
    UNDEFINED_METRIC_POLICY, P_VALUE_CORRECTION,
)
from .metrics import apply_undefined_policy
from .cross_validation import MetricDistribution

logger = logging.getLogger(__name__)

MIN_SAMPLES = 2


class InsufficientSampleSize(ValueError):
    """Raised when a distribution has fewer than two usable values."""

    def __init__(self, n_a: int, n_b: int, metric: Optional[str] = None):
        self.n_a = n_a
        self.n_b = n_b
        self.metric = metric
        where = f" for {metric}" if metric else ""
        super().__init__(
            f"Insufficient samples for t-test{where}: n_a={n_a}, n_b={n_b} "
            f"(need at least {MIN_SAMPLES} defined values each)"
        )


class InconsistentDistributionLength(ValueError):
    """Raised when two distributions have different repetition counts."""
    pass


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class PairwiseTestResult:
    """Welch's t-test of A vs B. Positive t means A's mean is higher."""
    t_statistic: float
    p_value: float
    mean_a: float = math.nan
    mean_b: float = math.nan
    n_a: int = 0
    n_b: int = 0
    effect_size: float = math.nan
    error: Optional[str] = None

    @classmethod
    def failed(cls, reason: str, n_a: int = 0, n_b: int = 0) -> "PairwiseTestResult":
        """Cell that could not be tested; kept in tables with its reason."""
        return cls(t_statistic=math.nan, p_value=math.nan, n_a=n_a, n_b=n_b, error=reason)

    @property
    def is_valid(self) -> bool:
        return self.error is None

    @property
    def mean_difference(self) -> float:
        return self.mean_a - self.mean_b

    def as_pair(self) -> Tuple[float, float]:
        return self.t_statistic, self.p_value

    def swapped(self) -> "PairwiseTestResult":
        """The same test read as B vs A."""
        return replace(
            self,
            t_statistic=-self.t_statistic,
            mean_a=self.mean_b,
            mean_b=self.mean_a,
            n_a=self.n_b,
            n_b=self.n_a,
            effect_size=-self.effect_size,
        )

    def significance_marker(self) -> str:
        """Return significance marker (* p<0.05, ** p<0.01, *** p<0.001)."""
        if not self.is_valid:
            return ""
        if self.p_value < 0.001:
            return "***"
        elif self.p_value < 0.01:
            return "**"
        elif self.p_value < 0.05:
            return "*"
        else:
            return ""

    def format(self, precision: int = 4) -> str:
        """Render as text. Only used at the reporting boundary."""
        if not self.is_valid:
            return f"n/a ({self.error})"
        p = self.p_value
        p_text = f"{p:.3e}" if 0 < p < 10 ** -precision else f"{p:.{precision}f}"
        return f"t={self.t_statistic:.{precision}f}, p={p_text}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "t_statistic": self.t_statistic,
            "p_value": self.p_value,
            "mean_a": self.mean_a,
            "mean_b": self.mean_b,
            "mean_difference": self.mean_difference,
            "n_a": self.n_a,
            "n_b": self.n_b,
            "effect_size": self.effect_size,
            "error": self.error,
        }


class PairwiseMatrix:
    """
    Square matrix of pairwise test results for one dataset and metric.

    Indexed by algorithm name on both axes; cell (A, B) holds "A vs B".
    """

    def __init__(
        self,
        dataset_name: str,
        metric: str,
        algorithms: Sequence[str],
        cells: Mapping[Tuple[str, str], PairwiseTestResult],
        correction: str = "none"
    ):
        self.dataset_name = dataset_name
        self.metric = metric
        self.algorithms = tuple(algorithms)
        self.correction = correction
        self._cells = dict(cells)

        missing = [
            (a, b) for a in self.algorithms for b in self.algorithms
            if (a, b) not in self._cells
        ]
        if missing:
            raise ValueError(f"Pairwise matrix for {dataset_name}/{metric} is missing cells: {missing}")

    def get(self, algorithm_a: str, algorithm_b: str) -> PairwiseTestResult:
        try:
            return self._cells[(algorithm_a, algorithm_b)]
        except KeyError:
            raise KeyError(
                f"No result for {algorithm_a!r} vs {algorithm_b!r} "
                f"in {self.dataset_name}/{self.metric}"
            ) from None

    def __getitem__(self, key: Tuple[str, str]) -> PairwiseTestResult:
        return self.get(*key)

    def __len__(self) -> int:
        return len(self.algorithms)

    def items(self):
        for a in self.algorithms:
            for b in self.algorithms:
                yield (a, b), self._cells[(a, b)]

    def row(self, algorithm: str) -> Dict[str, PairwiseTestResult]:
        return {b: self.get(algorithm, b) for b in self.algorithms}

    def invalid_cells(self) -> List[Tuple[str, str]]:
        return [key for key, result in self.items() if not result.is_valid]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dataset": self.dataset_name,
            "metric": self.metric,
            "correction": self.correction,
            "algorithms": list(self.algorithms),
            "cells": {
                a: {b: self.get(a, b).to_dict() for b in self.algorithms}
                for a in self.algorithms
            },
        }


# =============================================================================
# WELCH'S T-TEST
# =============================================================================

def is_constant(values: np.ndarray) -> bool:
    """True when every value in the sample is identical."""
    return len(values) > 0 and float(np.ptp(values)) == 0.0


def _compare_constants(value_a: float, value_b: float) -> Tuple[float, float]:
    """Test result for two zero-variance samples, decided by value."""
    if math.isclose(value_a, value_b, rel_tol=1e-9, abs_tol=1e-12):
        return 0.0, 1.0
    return math.copysign(math.inf, value_a - value_b), 0.0


def welch_ttest(values_a: np.ndarray, values_b: np.ndarray) -> Tuple[float, float]:
    """
    Welch's unequal-variance t-test.

    Args:
        values_a: Sample A (no NaN)
        values_b: Sample B (no NaN)

    Returns:
        Tuple of (t_statistic, p_value); t > 0 when mean(A) > mean(B)
    """
    values_a = np.asarray(values_a, dtype=float)
    values_b = np.asarray(values_b, dtype=float)

    # Constant by value: np.var of a constant sample may not be exactly 0
    if is_constant(values_a) and is_constant(values_b):
        return _compare_constants(float(values_a[0]), float(values_b[0]))

    result = stats.ttest_ind(values_a, values_b, equal_var=False)
    return float(result.statistic), float(result.pvalue)


def cohens_d(group_a: np.ndarray, group_b: np.ndarray) -> float:
    """
    Compute Cohen's d effect size.

    Args:
        group_a: Values from group A
        group_b: Values from group B

    Returns:
        Cohen's d (positive if A > B)
    """
    group_a = np.asarray(group_a, dtype=float)
    group_b = np.asarray(group_b, dtype=float)

    if is_constant(group_a) and is_constant(group_b):
        d, _ = _compare_constants(float(group_a[0]), float(group_b[0]))
        return d

    mean_a = np.mean(group_a)
    mean_b = np.mean(group_b)

    # Pooled standard deviation
    n_a = len(group_a)
    n_b = len(group_b)

    var_a = np.var(group_a, ddof=1)
    var_b = np.var(group_b, ddof=1)

    pooled_std = np.sqrt(((n_a - 1) * var_a + (n_b - 1) * var_b) / (n_a + n_b - 2))

    difference = float(mean_a - mean_b)
    if pooled_std == 0:
        if math.isclose(difference, 0.0, abs_tol=1e-12):
            return 0.0
        return math.copysign(math.inf, difference)

    return difference / float(pooled_std)


def interpret_effect_size(d: float) -> str:
    """
    Interpret Cohen's d effect size.

    Follows standard conventions:
    - |d| < 0.2: negligible
    - 0.2 ≤ |d| < 0.5: small
    - 0.5 ≤ |d| < 0.8: medium
    - |d| ≥ 0.8: large
    """
    abs_d = abs(d)
    direction = "higher" if d > 0 else "lower"

    if abs_d < 0.2:
        return f"Negligible effect ({direction})"
    elif abs_d < 0.5:
        return f"Small effect ({direction})"
    elif abs_d < 0.8:
        return f"Medium effect ({direction})"
    else:
        return f"Large effect ({direction})"


def pairwise_test(
    dist_a: Sequence[float],
    dist_b: Sequence[float],
    undefined_policy: str = UNDEFINED_METRIC_POLICY,
    metric: Optional[str] = None
) -> PairwiseTestResult:
    """
    Compare two per-repetition samples of one metric.

    Args:
        dist_a: Metric values of algorithm A, one per repetition (may hold NaN)
        dist_b: Metric values of algorithm B, one per repetition (may hold NaN)
        undefined_policy: How NaN values are resolved ("exclude" or "zero")
        metric: Metric name, for error messages

    Returns:
        PairwiseTestResult for "A vs B"

    Raises:
        InconsistentDistributionLength: If the repetition counts differ
        InsufficientSampleSize: If fewer than two usable values remain on a side
    """
    if len(dist_a) != len(dist_b):
        raise InconsistentDistributionLength(
            f"Distributions have different repetition counts: {len(dist_a)} vs {len(dist_b)}"
            + (f" ({metric})" if metric else "")
        )

    values_a = apply_undefined_policy(dist_a, undefined_policy)
    values_b = apply_undefined_policy(dist_b, undefined_policy)

    if len(values_a) < MIN_SAMPLES or len(values_b) < MIN_SAMPLES:
        raise InsufficientSampleSize(len(values_a), len(values_b), metric)

    t_statistic, p_value = welch_ttest(values_a, values_b)

    return PairwiseTestResult(
        t_statistic=t_statistic,
        p_value=p_value,
        mean_a=float(np.mean(values_a)),
        mean_b=float(np.mean(values_b)),
        n_a=len(values_a),
        n_b=len(values_b),
        effect_size=cohens_d(values_a, values_b),
    )


# =============================================================================
# MULTIPLE TESTING CORRECTION
# =============================================================================

def bonferroni_correction(p_values: List[float], alpha: float = SIGNIFICANCE_LEVEL) -> Tuple[List[float], List[bool]]:
    """
    Apply Bonferroni correction for multiple testing.

    Args:
        p_values: List of p-values
        alpha: Significance level

    Returns:
        Tuple of (adjusted_p_values, is_significant)
    """
    n_tests = len(p_values)
    if n_tests == 0:
        return [], []

    adjusted_p = [min(p * n_tests, 1.0) for p in p_values]
    is_significant = [p < alpha for p in adjusted_p]

    return adjusted_p, is_significant


def fdr_correction(p_values: List[float], alpha: float = SIGNIFICANCE_LEVEL) -> Tuple[List[float], List[bool]]:
    """
    Apply Benjamini-Hochberg FDR correction.

    Args:
        p_values: List of p-values
        alpha: Target FDR

    Returns:
        Tuple of (adjusted_p_values, is_significant)
    """
    n_tests = len(p_values)
    if n_tests == 0:
        return [], []

    # Sort p-values
    sorted_indices = np.argsort(p_values)
    sorted_p = np.array(p_values, dtype=float)[sorted_indices]

    # Scale by n / rank in sorted order
    ranks = np.arange(1, n_tests + 1)
    scaled = sorted_p * n_tests / ranks

    # Make monotonic (cumulative minimum from right)
    scaled = np.minimum.accumulate(scaled[::-1])[::-1]
    scaled = np.minimum(scaled, 1.0)

    adjusted_p = np.empty(n_tests)
    adjusted_p[sorted_indices] = scaled

    is_significant = (adjusted_p < alpha).tolist()

    return adjusted_p.tolist(), is_significant


def apply_correction(matrix: PairwiseMatrix, method: str = P_VALUE_CORRECTION) -> PairwiseMatrix:
    """
    Adjust the p-values of a pairwise matrix for multiple testing.

    Each unordered off-diagonal pair counts as one test; the adjusted
    p-value is written to both (A, B) and (B, A). Diagonal and invalid
    cells are left untouched.
    """
    if method == "none":
        return matrix
    if method not in ("bonferroni", "fdr"):
        raise ValueError(f"Unknown correction: {method!r}. Use 'none', 'bonferroni' or 'fdr'")

    pairs = [
        (a, b)
        for i, a in enumerate(matrix.algorithms)
        for b in matrix.algorithms[i + 1:]
        if matrix.get(a, b).is_valid
    ]
    p_values = [matrix.get(a, b).p_value for a, b in pairs]

    if method == "bonferroni":
        adjusted, _ = bonferroni_correction(p_values)
    else:
        adjusted, _ = fdr_correction(p_values)

    cells = dict(matrix.items())
    for (a, b), p_adj in zip(pairs, adjusted):
        cells[(a, b)] = replace(cells[(a, b)], p_value=float(p_adj))
        cells[(b, a)] = replace(cells[(b, a)], p_value=float(p_adj))

    return PairwiseMatrix(
        dataset_name=matrix.dataset_name,
        metric=matrix.metric,
        algorithms=matrix.algorithms,
        cells=cells,
        correction=method
    )


# =============================================================================
# MATRIX BUILDERS
# =============================================================================

def build_pairwise_matrix(
    distributions: Mapping[str, MetricDistribution],
    metric: str,
    dataset_name: Optional[str] = None,
    undefined_policy: str = UNDEFINED_METRIC_POLICY,
    correction: str = P_VALUE_CORRECTION
) -> PairwiseMatrix:
    """
    Test every ordered pair of algorithms (diagonal included) on one metric.

    Args:
        distributions: Dict mapping algorithm name to its MetricDistribution
        metric: Metric name (e.g. "F1")
        dataset_name: Dataset the distributions belong to
        undefined_policy: How NaN values are resolved
        correction: Multiple-testing correction ("none", "bonferroni", "fdr")

    Returns:
        PairwiseMatrix; untestable cells carry an error marker
    """
    if metric not in METRIC_NAMES:
        raise ValueError(f"Unknown metric: {metric}. Available: {list(METRIC_NAMES)}")

    names = list(distributions.keys())
    if dataset_name is None:
        dataset_name = next(iter(distributions.values())).dataset_name if names else ""

    cells = {}
    for i, name_a in enumerate(names):
        for name_b in names[i:]:
            values_a = distributions[name_a].values(metric)
            values_b = distributions[name_b].values(metric)
            try:
                result = pairwise_test(values_a, values_b, undefined_policy, metric)
            except InsufficientSampleSize as e:
                logger.warning(f"{dataset_name}/{metric}: {name_a} vs {name_b} not tested: {e}")
                result = PairwiseTestResult.failed(
                    "insufficient samples", n_a=e.n_a, n_b=e.n_b
                )
            cells[(name_a, name_b)] = result
            if name_b != name_a:
                cells[(name_b, name_a)] = result.swapped()

    matrix = PairwiseMatrix(
        dataset_name=dataset_name,
        metric=metric,
        algorithms=names,
        cells=cells
    )
    return apply_correction(matrix, correction)


def build_pairwise_matrices(
    distributions: Mapping[str, MetricDistribution],
    dataset_name: Optional[str] = None,
    metrics: Sequence[str] = METRIC_NAMES,
    undefined_policy: str = UNDEFINED_METRIC_POLICY,
    correction: str = P_VALUE_CORRECTION
) -> Dict[str, PairwiseMatrix]:
    """Build one pairwise matrix per metric for a dataset."""
    return {
        metric: build_pairwise_matrix(
            distributions, metric, dataset_name, undefined_policy, correction
        )
        for metric in metrics
    }
