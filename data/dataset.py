"""
Dataset Container

Immutable labeled tabular sample set used by the comparison engine.
The engine only needs a stable row count, per-row binary labels, and a
way to carve out train/test subsets by index.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np


@dataclass(frozen=True, eq=False)
class Dataset:
    """
    A named binary classification dataset.

    Attributes:
        name: Stable identifier used as a key in all result tables
        features: 2-D array (n_samples, n_features)
        labels: 1-D array of 0/1 labels, 1 = positive class
        feature_names: Column names matching features
        metadata: Free-form information from the loader (source path, etc.)
    """
    name: str
    features: np.ndarray
    labels: np.ndarray
    feature_names: Tuple[str, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        features = np.array(self.features, dtype=float)
        raw_labels = np.asarray(self.labels, dtype=float)
        if not np.all(np.isfinite(raw_labels)) or np.any(raw_labels != np.round(raw_labels)):
            raise ValueError(f"Dataset {self.name!r}: labels must be integers")
        labels = raw_labels.astype(int)

        if features.ndim != 2:
            raise ValueError(f"Dataset {self.name!r}: features must be 2-D, got shape {features.shape}")
        if labels.ndim != 1:
            raise ValueError(f"Dataset {self.name!r}: labels must be 1-D, got shape {labels.shape}")
        if len(features) != len(labels):
            raise ValueError(
                f"Dataset {self.name!r}: {len(features)} feature rows but {len(labels)} labels"
            )
        unexpected = set(np.unique(labels).tolist()) - {0, 1}
        if unexpected:
            raise ValueError(f"Dataset {self.name!r}: labels must be binary 0/1, found {sorted(unexpected)}")

        # Freeze the arrays so subsets and algorithms cannot mutate shared data
        features.setflags(write=False)
        labels.setflags(write=False)
        object.__setattr__(self, "features", features)
        object.__setattr__(self, "labels", labels)
        object.__setattr__(self, "feature_names", tuple(self.feature_names))

    def __len__(self) -> int:
        return len(self.labels)

    @property
    def n_features(self) -> int:
        return self.features.shape[1]

    def subset(self, indices: Sequence[int], name: Optional[str] = None) -> "Dataset":
        """Return a new Dataset holding only the given rows."""
        indices = np.asarray(indices, dtype=int)
        return Dataset(
            name=name or self.name,
            features=self.features[indices],
            labels=self.labels[indices],
            feature_names=self.feature_names,
            metadata=self.metadata,
        )

    def class_counts(self) -> Dict[int, int]:
        return {
            0: int(np.sum(self.labels == 0)),
            1: int(np.sum(self.labels == 1)),
        }

    def describe(self) -> Dict[str, Any]:
        counts = self.class_counts()
        return {
            "name": self.name,
            "n_samples": len(self),
            "n_features": self.n_features,
            "n_positive": counts[1],
            "n_negative": counts[0],
        }
