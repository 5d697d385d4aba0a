"""
Algorithm Interface

Abstract base class for the classification algorithms under comparison.
The comparison engine treats algorithms as black boxes: given a training
subset and a test subset, an algorithm returns the confusion matrix of its
predictions on the test subset.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from data.dataset import Dataset


class Algorithm(ABC):
    """
    Abstract base class for all compared algorithms.

    Each configuration variant (e.g. a reduced-iteration network next to a
    fully trained one) is its own named instance.
    """

    def __init__(self, name: str, description: str = ""):
        if not name:
            raise ValueError("Algorithm name must be non-empty")
        self.name = name
        self.description = description

    @abstractmethod
    def evaluate(self, train: Dataset, test: Dataset) -> "ConfusionMatrix":
        """
        Train on `train` and return the confusion matrix of predictions on `test`.

        Args:
            train: Training subset
            test: Held-out subset

        Returns:
            evaluation.metrics.ConfusionMatrix for the test subset
        """
        pass

    def get_params(self) -> Dict[str, Any]:
        """Configuration of this variant, for reports."""
        return {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
