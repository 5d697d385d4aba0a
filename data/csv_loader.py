"""
CSV Dataset Loader

Loads every *.csv file in a directory as one dataset. The dataset name is
the file stem. Preparation is kept to what the classifiers need:

- rows with missing values are dropped
- non-numeric feature columns are one-hot encoded
- the target column is reduced to 0/1
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

import numpy as np
import pandas as pd

from config import DATA_DIR
from .base_loader import BaseDatasetLoader, LoaderFactory
from .dataset import Dataset

logger = logging.getLogger(__name__)


def binarize_target(target: pd.Series, positive_label: Optional[str] = None) -> np.ndarray:
    """
    Reduce a target column to 0/1 labels.

    Args:
        target: Raw target values
        positive_label: Value treated as the positive class; everything else
            is negative. When omitted the column must have exactly two distinct
            values and the larger one (in sort order) is positive.

    Returns:
        Integer array of 0/1 labels
    """
    if positive_label is not None:
        as_text = target.astype(str)
        positive = str(positive_label)
        if not (as_text == positive).any():
            raise ValueError(
                f"Positive label {positive_label!r} not found in target column {target.name!r}"
            )
        return (as_text == positive).astype(int).to_numpy()

    values = sorted(target.unique().tolist())
    if len(values) != 2:
        raise ValueError(
            f"Target column {target.name!r} has {len(values)} distinct values {values[:10]}; "
            f"pass positive_label to reduce it to binary"
        )
    return (target == values[1]).astype(int).to_numpy()


class CSVDatasetLoader(BaseDatasetLoader):
    """
    Loader for a directory of CSV files sharing a target-column convention.

    Usage:
        loader = CSVDatasetLoader("data/datasets", target_column="class")
        datasets = loader.load_all()
    """

    def __init__(
        self,
        data_dir: Union[str, Path] = DATA_DIR,
        target_column: Optional[str] = None,
        positive_label: Optional[str] = None
    ):
        """
        Initialize loader.

        Args:
            data_dir: Directory containing *.csv files
            target_column: Name of the label column (default: last column)
            positive_label: Target value mapped to the positive class
        """
        self.data_dir = Path(data_dir)
        self.target_column = target_column
        self.positive_label = positive_label

        if not self.data_dir.is_dir():
            raise FileNotFoundError(f"Dataset directory not found: {self.data_dir}")

    def list_datasets(self) -> List[str]:
        return sorted(path.stem for path in self.data_dir.glob("*.csv"))

    def load(self, name: str) -> Dataset:
        path = self.data_dir / f"{name}.csv"
        if not path.exists():
            raise FileNotFoundError(f"Dataset {name!r} not found at {path}")

        frame = pd.read_csv(path)
        return self.from_frame(name, frame, source=str(path))

    def from_frame(self, name: str, frame: pd.DataFrame, source: str = "") -> Dataset:
        """Build a Dataset from an in-memory DataFrame."""
        target_column = self.target_column or frame.columns[-1]
        if target_column not in frame.columns:
            raise ValueError(
                f"Dataset {name!r} has no target column {target_column!r}. "
                f"Columns: {list(frame.columns)}"
            )

        n_rows = len(frame)
        frame = frame.dropna()
        if len(frame) < n_rows:
            logger.warning(f"{name}: dropped {n_rows - len(frame)} rows with missing values")

        feature_frame = frame.drop(columns=[target_column])
        if feature_frame.shape[1] == 0:
            raise ValueError(f"Dataset {name!r} has no feature columns")
        feature_frame = pd.get_dummies(feature_frame, dtype=float)

        labels = binarize_target(frame[target_column], self.positive_label)

        dataset = Dataset(
            name=name,
            features=feature_frame.to_numpy(dtype=float),
            labels=labels,
            feature_names=tuple(str(c) for c in feature_frame.columns),
            metadata={"source": source, "target_column": str(target_column)}
        )
        logger.info(f"Loaded {name}: {dataset.describe()}")
        return dataset


LoaderFactory.register_loader("csv", CSVDatasetLoader)
