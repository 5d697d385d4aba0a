"""
Data Module
===========

Dataset ingestion for the algorithm comparison.

SUPPORTED SOURCES:
1. CSV directory (one dataset per file, designated target column)
2. Synthetic demo datasets (sklearn make_classification)

Every source yields immutable Dataset objects with 0/1 labels.
"""

from .dataset import Dataset
from .base_loader import BaseDatasetLoader, LoaderFactory
from .csv_loader import CSVDatasetLoader, binarize_target
from .synthetic_loader import SyntheticDatasetLoader, DEMO_DATASETS

__all__ = [
    'Dataset',
    'BaseDatasetLoader',
    'LoaderFactory',
    'CSVDatasetLoader',
    'binarize_target',
    'SyntheticDatasetLoader',
    'DEMO_DATASETS',
]
