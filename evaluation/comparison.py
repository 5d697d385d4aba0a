"""
Comparison Driver
=================

Runs the full comparison over datasets x algorithms:

1. Repeated cross-validation for every (dataset, algorithm) pair
2. Pairwise Welch t-tests per dataset and metric
3. Win tallies per dataset and metric

Aggregations are independent and run in a thread pool. A dataset's
matrices and tallies are built as soon as all of its aggregations have
finished, without waiting for other datasets. Results are collected into
mappings keyed by name, so completion order never affects the output.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from config import (
    RANDOM_SEED, DEFAULT_CV_FOLDS, DEFAULT_CV_REPETITIONS, DEFAULT_MAX_WORKERS,
    SIGNIFICANCE_LEVEL, METRIC_NAMES, UNDEFINED_METRIC_POLICY, P_VALUE_CORRECTION,
    UNDEFINED_METRIC_POLICIES, P_VALUE_CORRECTIONS,
)
from data.dataset import Dataset
from classifiers.base import Algorithm
from .cross_validation import (
    AlgorithmEvaluationFailure,
    MetricDistribution,
    RepeatedCrossValidationEvaluator,
)
from .statistical_tests import PairwiseMatrix, build_pairwise_matrices
from .win_tally import WinTally

logger = logging.getLogger(__name__)


# =============================================================================
# RESULTS
# =============================================================================

@dataclass
class ComparisonResults:
    """
    All outputs of a comparison run, queryable by dataset, algorithm and metric.
    """
    dataset_names: List[str]
    algorithm_names: List[str]
    metrics: List[str]
    settings: Dict[str, Any] = field(default_factory=dict)
    distributions: Dict[Tuple[str, str], MetricDistribution] = field(default_factory=dict)
    matrices: Dict[Tuple[str, str], PairwiseMatrix] = field(default_factory=dict)
    tallies: Dict[Tuple[str, str], WinTally] = field(default_factory=dict)
    failures: Dict[Tuple[str, str], AlgorithmEvaluationFailure] = field(default_factory=dict)

    def distribution(self, dataset: str, algorithm: str) -> MetricDistribution:
        try:
            return self.distributions[(dataset, algorithm)]
        except KeyError:
            if (dataset, algorithm) in self.failures:
                raise KeyError(
                    f"No distribution for {algorithm!r} on {dataset!r}: "
                    f"{self.failures[(dataset, algorithm)]}"
                ) from None
            raise

    def matrix(self, dataset: str, metric: str) -> PairwiseMatrix:
        return self.matrices[(dataset, metric)]

    def wins(self, dataset: str, metric: str) -> WinTally:
        return self.tallies[(dataset, metric)]

    def succeeded_algorithms(self, dataset: str) -> List[str]:
        return [
            name for name in self.algorithm_names
            if (dataset, name) in self.distributions
        ]

    def failed_algorithms(self, dataset: str) -> List[str]:
        return [
            name for name in self.algorithm_names
            if (dataset, name) in self.failures
        ]

    def mean_metrics(self, dataset: str) -> Dict[str, Dict[str, float]]:
        """Mean of every metric per algorithm on a dataset."""
        return {
            name: {
                metric: self.distributions[(dataset, name)].mean(metric)
                for metric in self.metrics
            }
            for name in self.succeeded_algorithms(dataset)
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "settings": self.settings,
            "datasets": list(self.dataset_names),
            "algorithms": list(self.algorithm_names),
            "metrics": list(self.metrics),
            "results": {
                dataset: {
                    "distributions": {
                        name: self.distributions[(dataset, name)].to_dict()
                        for name in self.succeeded_algorithms(dataset)
                    },
                    "failures": {
                        name: self.failures[(dataset, name)].to_dict()
                        for name in self.failed_algorithms(dataset)
                    },
                    "pairwise": {
                        metric: self.matrices[(dataset, metric)].to_dict()
                        for metric in self.metrics
                        if (dataset, metric) in self.matrices
                    },
                    "wins": {
                        metric: self.tallies[(dataset, metric)].to_dict()
                        for metric in self.metrics
                        if (dataset, metric) in self.tallies
                    },
                }
                for dataset in self.dataset_names
            },
        }


# =============================================================================
# DRIVER
# =============================================================================

class ComparisonDriver:
    """
    Compares algorithms across datasets with repeated CV and pairwise tests.

    Usage:
        driver = ComparisonDriver(get_algorithms(), n_folds=10, n_repetitions=10)
        results = driver.run(datasets)
        results.wins("diabetes", "F1").ranking()
    """

    def __init__(
        self,
        algorithms: Sequence[Algorithm],
        n_folds: int = DEFAULT_CV_FOLDS,
        n_repetitions: int = DEFAULT_CV_REPETITIONS,
        threshold: float = SIGNIFICANCE_LEVEL,
        undefined_policy: str = UNDEFINED_METRIC_POLICY,
        correction: str = P_VALUE_CORRECTION,
        metrics: Sequence[str] = METRIC_NAMES,
        max_workers: int = DEFAULT_MAX_WORKERS,
        random_state: Optional[int] = RANDOM_SEED,
        fail_fast: bool = False
    ):
        """
        Initialize driver.

        Args:
            algorithms: Named algorithms to compare
            n_folds: Folds per cross-validation repetition
            n_repetitions: Independent cross-validation repetitions
            threshold: Significance level for wins
            undefined_policy: "exclude" or "zero" for undefined metric values
            correction: "none", "bonferroni" or "fdr"
            metrics: Metrics to test and tally
            max_workers: Thread pool size; 1 runs everything inline
            random_state: Base seed for fold partitions
            fail_fast: Re-raise the first algorithm failure instead of recording it
        """
        names = [a.name for a in algorithms]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate algorithm names: {duplicates}")
        if not algorithms:
            raise ValueError("At least one algorithm is required")
        if undefined_policy not in UNDEFINED_METRIC_POLICIES:
            raise ValueError(f"Unknown undefined-metric policy: {undefined_policy!r}")
        if correction not in P_VALUE_CORRECTIONS:
            raise ValueError(f"Unknown correction: {correction!r}")
        unknown_metrics = [m for m in metrics if m not in METRIC_NAMES]
        if unknown_metrics:
            raise ValueError(f"Unknown metrics: {unknown_metrics}. Available: {list(METRIC_NAMES)}")
        if not 0 < threshold <= 1:
            raise ValueError(f"threshold must be in (0, 1], got {threshold}")
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")

        self.algorithms = list(algorithms)
        self.threshold = threshold
        self.undefined_policy = undefined_policy
        self.correction = correction
        self.metrics = list(metrics)
        self.max_workers = max_workers
        self.fail_fast = fail_fast
        self.evaluator = RepeatedCrossValidationEvaluator(
            n_folds=n_folds,
            n_repetitions=n_repetitions,
            random_state=random_state
        )

    def settings(self) -> Dict[str, Any]:
        return {
            "n_folds": self.evaluator.n_folds,
            "n_repetitions": self.evaluator.n_repetitions,
            "random_state": self.evaluator.random_state,
            "threshold": self.threshold,
            "undefined_policy": self.undefined_policy,
            "correction": self.correction,
            "algorithms": {a.name: a.get_params() for a in self.algorithms},
        }

    def run(self, datasets: Sequence[Dataset]) -> ComparisonResults:
        """
        Run the comparison over every dataset and algorithm.

        Args:
            datasets: Datasets to evaluate on

        Returns:
            ComparisonResults

        Raises:
            AlgorithmEvaluationFailure: Only when fail_fast is set
        """
        dataset_names = [d.name for d in datasets]
        duplicates = sorted({n for n in dataset_names if dataset_names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate dataset names: {duplicates}")
        too_small = [d.name for d in datasets if len(d) < self.evaluator.n_folds]
        if too_small:
            raise ValueError(
                f"Datasets with fewer samples than {self.evaluator.n_folds} folds: {too_small}"
            )

        results = ComparisonResults(
            dataset_names=dataset_names,
            algorithm_names=[a.name for a in self.algorithms],
            metrics=list(self.metrics),
            settings=self.settings()
        )
        logger.info(f"Comparing {len(self.algorithms)} algorithms on {len(datasets)} datasets "
                    f"({self.evaluator.n_repetitions}x{self.evaluator.n_folds}-fold CV, "
                    f"{self.max_workers} workers)")

        tasks = [(dataset, algorithm) for dataset in datasets for algorithm in self.algorithms]
        pending = {d.name: len(self.algorithms) for d in datasets}

        if self.max_workers == 1:
            for dataset, algorithm in tasks:
                self._record(
                    results, dataset, algorithm,
                    lambda: self._aggregate(dataset, algorithm), pending
                )
            return results

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(self._aggregate, dataset, algorithm): (dataset, algorithm)
                for dataset, algorithm in tasks
            }
            try:
                for future in as_completed(futures):
                    dataset, algorithm = futures[future]
                    self._record(results, dataset, algorithm, future.result, pending)
            except AlgorithmEvaluationFailure:
                for future in futures:
                    future.cancel()
                raise

        return results

    def _aggregate(self, dataset: Dataset, algorithm: Algorithm) -> MetricDistribution:
        return self.evaluator.evaluate(dataset, algorithm)

    def _record(self, results, dataset, algorithm, produce, pending) -> None:
        """Store one aggregation outcome; finish the dataset when it was the last."""
        try:
            results.distributions[(dataset.name, algorithm.name)] = produce()
        except AlgorithmEvaluationFailure as e:
            logger.error(f"Aggregation aborted: {e}")
            if self.fail_fast:
                raise
            results.failures[(dataset.name, algorithm.name)] = e

        pending[dataset.name] -= 1
        if pending[dataset.name] == 0:
            self._finish_dataset(results, dataset.name)

    def _finish_dataset(self, results: ComparisonResults, dataset_name: str) -> None:
        distributions = {
            name: results.distributions[(dataset_name, name)]
            for name in results.succeeded_algorithms(dataset_name)
        }
        if not distributions:
            logger.error(f"No algorithm completed on {dataset_name}; skipping significance tests")
            return

        matrices = build_pairwise_matrices(
            distributions,
            dataset_name=dataset_name,
            metrics=self.metrics,
            undefined_policy=self.undefined_policy,
            correction=self.correction
        )
        for metric, matrix in matrices.items():
            results.matrices[(dataset_name, metric)] = matrix
            results.tallies[(dataset_name, metric)] = WinTally.from_matrix(matrix, self.threshold)

        logger.info(f"Finished {dataset_name}: " + "; ".join(
            f"{metric} leaders={results.tallies[(dataset_name, metric)].leaders()}"
            for metric in self.metrics
        ))


def run_comparison(
    datasets: Sequence[Dataset],
    algorithms: Sequence[Algorithm],
    **kwargs
) -> ComparisonResults:
    """Convenience wrapper around ComparisonDriver(algorithms, **kwargs).run(datasets)."""
    return ComparisonDriver(algorithms, **kwargs).run(datasets)
