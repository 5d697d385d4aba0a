"""
Repeated Cross-Validation Framework
===================================

This module implements repeated stratified k-fold cross-validation for
comparing classification algorithms.

Features:
1. Stratified splits maintaining class balance
2. Fold confusion matrices pooled into one matrix per repetition
3. One MetricSet per repetition, giving a sample distribution per metric
4. Reproducible, independent partitions per repetition

A single k-fold run only yields one point estimate per metric. Repeating the
whole k-fold procedure R times with independent partitions yields R values,
which is what the pairwise t-tests in statistical_tests.py consume.
"""

import math
from dataclasses import dataclass
from typing import Dict, Any, Tuple, Optional, Iterator
import logging

import numpy as np

from config import (
    RANDOM_SEED, DEFAULT_CV_FOLDS, DEFAULT_CV_REPETITIONS,
    METRIC_NAMES, UNDEFINED_METRIC_POLICY,
)
from data.dataset import Dataset
from classifiers.base import Algorithm
from .metrics import (
    ConfusionMatrix, MetricSet, compute_metrics,
    sum_confusion_matrices, apply_undefined_policy,
)

logger = logging.getLogger(__name__)


class AlgorithmEvaluationFailure(RuntimeError):
    """
    Raised when an algorithm fails on one fold of one repetition.

    The whole (dataset, algorithm) aggregation is aborted; a shorter
    distribution is never returned in its place.
    """

    def __init__(
        self,
        dataset_name: str,
        algorithm_name: str,
        repetition: int,
        fold: int,
        reason: str
    ):
        self.dataset_name = dataset_name
        self.algorithm_name = algorithm_name
        self.repetition = repetition
        self.fold = fold
        self.reason = reason
        super().__init__(
            f"Algorithm {algorithm_name!r} failed on dataset {dataset_name!r} "
            f"at repetition {repetition}, fold {fold}: {reason}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dataset": self.dataset_name,
            "algorithm": self.algorithm_name,
            "repetition": self.repetition,
            "fold": self.fold,
            "reason": self.reason,
        }


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class RepetitionResult:
    """Pooled results from one full k-fold run."""
    repetition: int  # 1-based
    confusion_matrix: ConfusionMatrix
    metrics: MetricSet


@dataclass(frozen=True)
class MetricDistribution:
    """Ordered per-repetition metrics for one (dataset, algorithm) pair."""
    dataset_name: str
    algorithm_name: str
    n_folds: int
    repetitions: Tuple[RepetitionResult, ...]

    def __len__(self) -> int:
        return len(self.repetitions)

    def values(self, metric: str) -> np.ndarray:
        """Raw per-repetition values for a metric, NaN included."""
        return np.array([r.metrics.get(metric) for r in self.repetitions], dtype=float)

    def valid_values(self, metric: str, policy: str = UNDEFINED_METRIC_POLICY) -> np.ndarray:
        return apply_undefined_policy(self.values(metric), policy)

    def undefined_count(self, metric: str) -> int:
        return int(np.sum(np.isnan(self.values(metric))))

    def mean(self, metric: str) -> float:
        defined = self.valid_values(metric, "exclude")
        return float(np.mean(defined)) if len(defined) else math.nan

    def std(self, metric: str) -> float:
        defined = self.valid_values(metric, "exclude")
        if len(defined) > 1:
            return float(np.std(defined, ddof=1))
        return 0.0 if len(defined) == 1 else math.nan

    def summary(self) -> Dict[str, Dict[str, float]]:
        return {
            metric: {
                "mean": self.mean(metric),
                "std": self.std(metric),
                "undefined": self.undefined_count(metric),
            }
            for metric in METRIC_NAMES
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "dataset": self.dataset_name,
            "algorithm": self.algorithm_name,
            "n_folds": self.n_folds,
            "n_repetitions": len(self.repetitions),
            "summary": self.summary(),
            "per_repetition": [
                {
                    "repetition": r.repetition,
                    "confusion_matrix": r.confusion_matrix.to_dict(),
                    "metrics": r.metrics.to_dict(),
                }
                for r in self.repetitions
            ],
        }

    def summary_string(self) -> str:
        """Generate summary string with mean ± std."""
        lines = [
            f"{self.algorithm_name} on {self.dataset_name} "
            f"({len(self.repetitions)}x{self.n_folds}-fold CV):"
        ]
        for metric in METRIC_NAMES:
            undefined = self.undefined_count(metric)
            suffix = f" ({undefined} undefined)" if undefined else ""
            lines.append(
                f"  {metric:10s}: {self.mean(metric):.4f} ± {self.std(metric):.4f}{suffix}"
            )
        return "\n".join(lines)


# =============================================================================
# STRATIFIED K-FOLD SPLITTER
# =============================================================================

class StratifiedKFoldSplitter:
    """
    Stratified K-Fold cross-validator.

    Provides train/test indices for K-fold cross-validation,
    ensuring each fold maintains the original class distribution.
    Fold sizes differ by at most one sample.
    """

    def __init__(self, n_splits: int = DEFAULT_CV_FOLDS, shuffle: bool = True,
                 random_state: Optional[int] = RANDOM_SEED):
        """
        Initialize splitter.

        Args:
            n_splits: Number of folds
            shuffle: Whether to shuffle before splitting
            random_state: Random seed for reproducibility
        """
        if n_splits < 2:
            raise ValueError(f"n_splits must be at least 2, got {n_splits}")
        self.n_splits = n_splits
        self.shuffle = shuffle
        self.random_state = random_state

    def split(self, y: np.ndarray) -> Iterator[Tuple[np.ndarray, np.ndarray]]:
        """
        Generate indices to split data into train and test sets.

        Args:
            y: Target labels

        Yields:
            Tuple of (train_indices, test_indices) for each fold
        """
        y = np.asarray(y)
        n_samples = len(y)
        if n_samples < self.n_splits:
            raise ValueError(
                f"Cannot split {n_samples} samples into {self.n_splits} folds"
            )
        indices = np.arange(n_samples)

        if self.shuffle:
            rng = np.random.RandomState(self.random_state)
            rng.shuffle(indices)

        # Class-grouped order dealt round-robin: stratified and near-equal folds
        ordered = np.concatenate([indices[y[indices] == c] for c in np.unique(y)])
        folds = [ordered[start::self.n_splits] for start in range(self.n_splits)]

        for fold_idx in range(self.n_splits):
            test_indices = np.sort(folds[fold_idx])
            train_indices = np.sort(np.concatenate([
                folds[i] for i in range(self.n_splits) if i != fold_idx
            ]))
            yield train_indices, test_indices


def repetition_seed(random_state: Optional[int], repetition: int) -> Optional[int]:
    """Seed for one repetition's partition; None keeps it unseeded."""
    if random_state is None:
        return None
    return random_state + repetition


# =============================================================================
# REPEATED CROSS-VALIDATION EVALUATOR
# =============================================================================

class RepeatedCrossValidationEvaluator:
    """
    Repeated k-fold evaluator for one algorithm on one dataset.

    Every algorithm evaluated with the same random_state sees the same
    partitions for a given dataset and repetition.
    """

    def __init__(
        self,
        n_folds: int = DEFAULT_CV_FOLDS,
        n_repetitions: int = DEFAULT_CV_REPETITIONS,
        random_state: Optional[int] = RANDOM_SEED
    ):
        """
        Initialize evaluator.

        Args:
            n_folds: Number of CV folds per repetition
            n_repetitions: Number of independent k-fold runs
            random_state: Base random seed for reproducibility
        """
        if n_folds < 2:
            raise ValueError(f"folds must be at least 2, got {n_folds}")
        if n_repetitions < 1:
            raise ValueError(f"repetitions must be at least 1, got {n_repetitions}")
        self.n_folds = n_folds
        self.n_repetitions = n_repetitions
        self.random_state = random_state

    def evaluate(self, dataset: Dataset, algorithm: Algorithm) -> MetricDistribution:
        """
        Run repeated cross-validation.

        Args:
            dataset: Labeled dataset
            algorithm: Algorithm to evaluate

        Returns:
            MetricDistribution with one MetricSet per repetition

        Raises:
            AlgorithmEvaluationFailure: If the algorithm fails on any fold
        """
        if len(dataset) < self.n_folds:
            raise ValueError(
                f"Dataset {dataset.name!r} has {len(dataset)} samples, "
                f"fewer than {self.n_folds} folds"
            )

        logger.info(f"Starting {self.n_repetitions}x{self.n_folds}-fold CV: "
                    f"{algorithm.name} on {dataset.name}")

        results = []
        for repetition in range(1, self.n_repetitions + 1):
            result = self._run_repetition(dataset, algorithm, repetition)
            results.append(result)
            logger.debug(f"  Repetition {repetition}/{self.n_repetitions} "
                         f"[{algorithm.name} / {dataset.name}]: " +
                         ", ".join(f"{k}={v:.4f}" for k, v in result.metrics.to_dict().items()))

        distribution = MetricDistribution(
            dataset_name=dataset.name,
            algorithm_name=algorithm.name,
            n_folds=self.n_folds,
            repetitions=tuple(results)
        )
        logger.info(f"Cross-validation complete:\n{distribution.summary_string()}")
        return distribution

    def _run_repetition(
        self,
        dataset: Dataset,
        algorithm: Algorithm,
        repetition: int
    ) -> RepetitionResult:
        splitter = StratifiedKFoldSplitter(
            n_splits=self.n_folds,
            shuffle=True,
            random_state=repetition_seed(self.random_state, repetition)
        )

        fold_matrices = []
        for fold_idx, (train_idx, test_idx) in enumerate(splitter.split(dataset.labels), start=1):
            cm = self._evaluate_fold(
                dataset, algorithm, repetition, fold_idx,
                dataset.subset(train_idx), dataset.subset(test_idx)
            )
            fold_matrices.append(cm)

        pooled = sum_confusion_matrices(fold_matrices)
        return RepetitionResult(
            repetition=repetition,
            confusion_matrix=pooled,
            metrics=compute_metrics(pooled)
        )

    def _evaluate_fold(
        self,
        dataset: Dataset,
        algorithm: Algorithm,
        repetition: int,
        fold: int,
        train: Dataset,
        test: Dataset
    ) -> ConfusionMatrix:
        try:
            cm = algorithm.evaluate(train, test)
        except Exception as e:
            logger.error(f"{algorithm.name} failed on {dataset.name} "
                         f"(repetition {repetition}, fold {fold}): {e}")
            raise AlgorithmEvaluationFailure(
                dataset.name, algorithm.name, repetition, fold,
                reason=f"{type(e).__name__}: {e}"
            ) from e

        if not isinstance(cm, ConfusionMatrix):
            raise AlgorithmEvaluationFailure(
                dataset.name, algorithm.name, repetition, fold,
                reason=f"expected ConfusionMatrix, got {type(cm).__name__}"
            )

        if cm.total != len(test):
            logger.warning(f"{algorithm.name} on {dataset.name} (repetition {repetition}, "
                           f"fold {fold}): confusion matrix counts {cm.total} samples, "
                           f"test fold has {len(test)}")
        return cm


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def aggregate(
    dataset: Dataset,
    algorithm: Algorithm,
    folds: int = DEFAULT_CV_FOLDS,
    repetitions: int = DEFAULT_CV_REPETITIONS,
    random_state: Optional[int] = RANDOM_SEED
) -> MetricDistribution:
    """
    Repeated k-fold evaluation of one algorithm on one dataset.

    Args:
        dataset: Labeled dataset
        algorithm: Algorithm to evaluate
        folds: Number of folds per repetition
        repetitions: Number of independent k-fold runs
        random_state: Base random seed

    Returns:
        MetricDistribution with exactly `repetitions` entries
    """
    evaluator = RepeatedCrossValidationEvaluator(
        n_folds=folds,
        n_repetitions=repetitions,
        random_state=random_state
    )
    return evaluator.evaluate(dataset, algorithm)
