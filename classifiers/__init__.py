"""
Classifiers Module
==================

Algorithms under comparison.

Every algorithm exposes a stable name and an evaluate(train, test)
operation returning a confusion matrix; the comparison engine never
looks inside.
"""

from .base import Algorithm
from .sklearn_algorithms import (
    SklearnAlgorithm,
    get_all_algorithms,
    get_algorithm,
    get_algorithms,
)

__all__ = [
    'Algorithm',
    'SklearnAlgorithm',
    'get_all_algorithms',
    'get_algorithm',
    'get_algorithms',
]
