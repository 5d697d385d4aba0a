"""
Synthetic Dataset Loader

Generates demo datasets with sklearn.datasets.make_classification, so the
comparison can be run without any data on disk.
"""

import logging
from typing import Any, Dict, List, Optional

from sklearn.datasets import make_classification

from config import RANDOM_SEED
from .base_loader import BaseDatasetLoader, LoaderFactory
from .dataset import Dataset

logger = logging.getLogger(__name__)


DEMO_DATASETS: Dict[str, Dict[str, Any]] = {
    "easy_separable": {
        "n_samples": 300, "n_features": 8, "n_informative": 5,
        "class_sep": 2.0, "weights": None,
    },
    "noisy_overlap": {
        "n_samples": 300, "n_features": 12, "n_informative": 4,
        "class_sep": 0.6, "flip_y": 0.1, "weights": None,
    },
    "imbalanced": {
        "n_samples": 400, "n_features": 10, "n_informative": 6,
        "class_sep": 1.0, "weights": [0.85, 0.15],
    },
}


class SyntheticDatasetLoader(BaseDatasetLoader):
    """Loader producing the configured synthetic datasets."""

    def __init__(
        self,
        specs: Optional[Dict[str, Dict[str, Any]]] = None,
        random_state: Optional[int] = RANDOM_SEED
    ):
        self.specs = dict(specs or DEMO_DATASETS)
        self.random_state = random_state

    def list_datasets(self) -> List[str]:
        return list(self.specs.keys())

    def load(self, name: str) -> Dataset:
        if name not in self.specs:
            raise FileNotFoundError(
                f"Unknown synthetic dataset: {name}. Available: {self.list_datasets()}"
            )
        params = dict(self.specs[name])
        X, y = make_classification(random_state=self.random_state, **params)

        dataset = Dataset(
            name=name,
            features=X,
            labels=y,
            feature_names=tuple(f"x{i}" for i in range(X.shape[1])),
            metadata={"source": "synthetic", "params": params}
        )
        logger.info(f"Generated {name}: {dataset.describe()}")
        return dataset


LoaderFactory.register_loader("synthetic", SyntheticDatasetLoader)
