"""
scikit-learn Algorithm Adapters
===============================

Wraps scikit-learn estimators as comparable algorithms:

1. MajorityClass: DummyClassifier, the trivial baseline
2. LogisticRegression: Linear model on standardized features
3. KNN: k-nearest neighbours on standardized features
4. NaiveBayes: Gaussian naive Bayes
5. DecisionTree: Single CART tree
6. RandomForest: Bagged trees
7. SVM: RBF-kernel support vector machine
8. MLP / MLP (fast): Multi-layer perceptron, full and reduced-iteration

Any model that beats MajorityClass on a metric is doing something
non-trivial on that dataset.
"""

import logging
import warnings
from typing import Any, Dict, List, Optional

from sklearn.base import BaseEstimator, clone
from sklearn.dummy import DummyClassifier
from sklearn.ensemble import RandomForestClassifier
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import LogisticRegression
from sklearn.naive_bayes import GaussianNB
from sklearn.neighbors import KNeighborsClassifier
from sklearn.neural_network import MLPClassifier
from sklearn.pipeline import make_pipeline
from sklearn.preprocessing import StandardScaler
from sklearn.svm import SVC
from sklearn.tree import DecisionTreeClassifier

from config import RANDOM_SEED
from data.dataset import Dataset
from evaluation.metrics import ConfusionMatrix
from .base import Algorithm

logger = logging.getLogger(__name__)


class SklearnAlgorithm(Algorithm):
    """
    Algorithm backed by a scikit-learn estimator.

    The estimator is a prototype: each evaluate() call fits a fresh clone,
    so concurrent folds never share fitted state.
    """

    def __init__(
        self,
        name: str,
        estimator: BaseEstimator,
        description: str = "",
        suppress_convergence_warnings: bool = False
    ):
        super().__init__(name, description)
        self.estimator = estimator
        self.suppress_convergence_warnings = suppress_convergence_warnings

    def evaluate(self, train: Dataset, test: Dataset) -> ConfusionMatrix:
        model = clone(self.estimator)
        with warnings.catch_warnings():
            if self.suppress_convergence_warnings:
                warnings.simplefilter("ignore", category=ConvergenceWarning)
            model.fit(train.features, train.labels)
        predictions = model.predict(test.features)
        return ConfusionMatrix.from_labels(test.labels, predictions)

    def get_params(self) -> Dict[str, Any]:
        return {
            key: repr(value)
            for key, value in self.estimator.get_params(deep=False).items()
        }


# =============================================================================
# ALGORITHM REGISTRY
# =============================================================================

def get_all_algorithms(random_state: Optional[int] = RANDOM_SEED) -> Dict[str, Algorithm]:
    """Get dictionary of all available algorithms keyed by name."""
    algorithms = [
        SklearnAlgorithm(
            "majority_class",
            DummyClassifier(strategy="most_frequent"),
            "Always predicts the most frequent training class"
        ),
        SklearnAlgorithm(
            "logistic_regression",
            make_pipeline(StandardScaler(), LogisticRegression(max_iter=1000)),
            "L2-regularized logistic regression"
        ),
        SklearnAlgorithm(
            "knn",
            make_pipeline(StandardScaler(), KNeighborsClassifier(n_neighbors=5)),
            "5-nearest neighbours"
        ),
        SklearnAlgorithm(
            "naive_bayes",
            GaussianNB(),
            "Gaussian naive Bayes"
        ),
        SklearnAlgorithm(
            "decision_tree",
            DecisionTreeClassifier(random_state=random_state),
            "CART decision tree"
        ),
        SklearnAlgorithm(
            "random_forest",
            RandomForestClassifier(n_estimators=100, random_state=random_state),
            "Random forest, 100 trees"
        ),
        SklearnAlgorithm(
            "svm",
            make_pipeline(StandardScaler(), SVC(kernel="rbf", random_state=random_state)),
            "RBF-kernel support vector machine"
        ),
        SklearnAlgorithm(
            "mlp",
            make_pipeline(
                StandardScaler(),
                MLPClassifier(hidden_layer_sizes=(64, 32), max_iter=500, random_state=random_state)
            ),
            "Multi-layer perceptron, full training"
        ),
        SklearnAlgorithm(
            "mlp_fast",
            make_pipeline(
                StandardScaler(),
                MLPClassifier(hidden_layer_sizes=(64, 32), max_iter=50, random_state=random_state)
            ),
            "Multi-layer perceptron, reduced training iterations",
            suppress_convergence_warnings=True
        ),
    ]
    return {algorithm.name: algorithm for algorithm in algorithms}


def get_algorithm(name: str, random_state: Optional[int] = RANDOM_SEED) -> Algorithm:
    """Get a specific algorithm by name."""
    algorithms = get_all_algorithms(random_state)
    if name not in algorithms:
        raise ValueError(f"Unknown algorithm: {name}. Available: {list(algorithms.keys())}")
    return algorithms[name]


def get_algorithms(
    names: Optional[List[str]] = None,
    random_state: Optional[int] = RANDOM_SEED
) -> List[Algorithm]:
    """Get algorithms by name, preserving order; all of them when names is None."""
    if names is None:
        return list(get_all_algorithms(random_state).values())
    return [get_algorithm(name, random_state) for name in names]
