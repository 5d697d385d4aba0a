"""
Classification Metrics from Confusion Matrices
==============================================

This module turns the four counts of a binary confusion matrix into the
standard classification metrics:

1. CLASSIFICATION METRICS:
   - Accuracy: (TP + TN) / all samples
   - Precision: TP / predicted positives
   - Recall: TP / actual positives
   - F1 Score: Harmonic mean of precision and recall

2. UNDEFINED METRICS:
   A zero denominator makes a metric undefined. Instead of raising, the
   metric is reported as NaN so that every caller decides the same way how
   undefined values enter a distribution (see UNDEFINED_METRIC_POLICY in
   config.py).

3. CELL ORDERING:
   Raw confusion tables are positional. The mapping from a raw table to
   named TP/TN/FP/FN cells happens in exactly one place,
   ConfusionMatrix.from_labels(), and everything downstream reads the
   cells by name.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, Sequence

import numpy as np
from sklearn.metrics import confusion_matrix

from config import METRIC_NAMES, POSITIVE_CLASS


UNDEFINED = float("nan")


@dataclass(frozen=True)
class ConfusionMatrix:
    """Named counts of a binary classifier's predictions versus ground truth."""
    tp: int
    tn: int
    fp: int
    fn: int

    def __post_init__(self):
        for cell in ("tp", "tn", "fp", "fn"):
            value = getattr(self, cell)
            if value < 0:
                raise ValueError(f"Confusion matrix cell {cell.upper()} must be >= 0, got {value}")
            if not float(value).is_integer():
                raise ValueError(f"Confusion matrix cell {cell.upper()} must be a whole count, got {value}")
            object.__setattr__(self, cell, int(value))

    @classmethod
    def from_labels(
        cls,
        y_true: Sequence[int],
        y_pred: Sequence[int],
        positive_label: int = POSITIVE_CLASS
    ) -> "ConfusionMatrix":
        """
        Build a confusion matrix from true and predicted binary labels.

        sklearn orders the table by the `labels` argument; with
        labels=[negative, positive] the flattened table is (TN, FP, FN, TP).
        """
        negative_label = 1 - positive_label
        table = confusion_matrix(
            np.asarray(y_true),
            np.asarray(y_pred),
            labels=[negative_label, positive_label]
        )
        tn, fp, fn, tp = table.ravel()
        return cls(tp=int(tp), tn=int(tn), fp=int(fp), fn=int(fn))

    @classmethod
    def empty(cls) -> "ConfusionMatrix":
        return cls(tp=0, tn=0, fp=0, fn=0)

    @property
    def total(self) -> int:
        return self.tp + self.tn + self.fp + self.fn

    @property
    def is_degenerate(self) -> bool:
        """True when there are no actual positives and no actual negatives."""
        return (self.tp + self.fn) == 0 and (self.tn + self.fp) == 0

    def __add__(self, other: "ConfusionMatrix") -> "ConfusionMatrix":
        if not isinstance(other, ConfusionMatrix):
            return NotImplemented
        return ConfusionMatrix(
            tp=self.tp + other.tp,
            tn=self.tn + other.tn,
            fp=self.fp + other.fp,
            fn=self.fn + other.fn
        )

    def to_dict(self) -> Dict[str, int]:
        return {"tp": self.tp, "tn": self.tn, "fp": self.fp, "fn": self.fn}


@dataclass(frozen=True)
class MetricSet:
    """Container for classification metrics. NaN marks an undefined metric."""
    accuracy: float
    precision: float
    recall: float
    f1: float

    _FIELDS = {
        "Accuracy": "accuracy",
        "Precision": "precision",
        "Recall": "recall",
        "F1": "f1",
    }

    def get(self, metric: str) -> float:
        """Look up a metric by its canonical name (e.g. "F1")."""
        try:
            return getattr(self, self._FIELDS[metric])
        except KeyError:
            raise KeyError(f"Unknown metric: {metric}. Available: {list(METRIC_NAMES)}") from None

    def is_defined(self, metric: str) -> bool:
        return not math.isnan(self.get(metric))

    def to_dict(self) -> Dict[str, float]:
        return {name: self.get(name) for name in METRIC_NAMES}


def _safe_ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return UNDEFINED
    return numerator / denominator


def compute_metrics(cm: ConfusionMatrix) -> MetricSet:
    """
    Compute Accuracy, Precision, Recall and F1 from confusion-matrix counts.

    Args:
        cm: Confusion matrix counts

    Returns:
        MetricSet where any metric with a zero denominator is NaN
    """
    accuracy = _safe_ratio(cm.tp + cm.tn, cm.total)
    precision = _safe_ratio(cm.tp, cm.tp + cm.fp)
    recall = _safe_ratio(cm.tp, cm.tp + cm.fn)

    # 2PR/(P+R) reduced to counts, so equal F1 values are equal floats
    if math.isnan(precision) or math.isnan(recall) or cm.tp == 0:
        f1 = UNDEFINED
    else:
        f1 = (2 * cm.tp) / (2 * cm.tp + cm.fp + cm.fn)

    return MetricSet(accuracy=accuracy, precision=precision, recall=recall, f1=f1)


def sum_confusion_matrices(matrices: Iterable[ConfusionMatrix]) -> ConfusionMatrix:
    """Cell-wise sum, used to pool the folds of one repetition."""
    total = ConfusionMatrix.empty()
    for cm in matrices:
        total = total + cm
    return total


def apply_undefined_policy(values: Sequence[float], policy: str = "exclude") -> np.ndarray:
    """
    Resolve NaN (undefined) metric values before statistical testing.

    Args:
        values: Metric values, possibly containing NaN
        policy: "exclude" drops NaN values, "zero" replaces them with 0.0

    Returns:
        Array without NaN values
    """
    values = np.asarray(values, dtype=float)
    if policy == "exclude":
        return values[~np.isnan(values)]
    if policy == "zero":
        return np.nan_to_num(values, nan=0.0)
    raise ValueError(f"Unknown undefined-metric policy: {policy!r}. Use 'exclude' or 'zero'")
