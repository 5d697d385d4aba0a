"""
Base Loader Interface

Abstract base class defining the interface for dataset loaders.
Loaders turn some external source (CSV files, generated samples) into
immutable Dataset objects with a binary target.
"""

from abc import ABC, abstractmethod
from typing import List

from .dataset import Dataset


class BaseDatasetLoader(ABC):
    """
    Abstract base class for dataset loaders.

    This interface allows the comparison to run on different dataset
    sources without knowing where the samples come from.
    """

    @abstractmethod
    def list_datasets(self) -> List[str]:
        """
        Return list of available dataset names.

        Returns:
            List of dataset name strings
        """
        pass

    @abstractmethod
    def load(self, name: str) -> Dataset:
        """
        Load one dataset.

        Args:
            name: Dataset name as returned by list_datasets()

        Returns:
            Dataset with binary labels

        Raises:
            FileNotFoundError: If the dataset is not found
        """
        pass

    def load_all(self) -> List[Dataset]:
        """Load every available dataset, in list_datasets() order."""
        return [self.load(name) for name in self.list_datasets()]


class LoaderFactory:
    """
    Factory for creating appropriate data loaders.

    This allows the CLI to select a loader by source type.
    """

    _loaders = {}

    @classmethod
    def register_loader(cls, source_name: str, loader_class: type):
        """
        Register a loader class for a source type.

        Args:
            source_name: Name of the source (e.g., "csv")
            loader_class: Class implementing BaseDatasetLoader
        """
        cls._loaders[source_name.lower()] = loader_class

    @classmethod
    def get_loader(cls, source_name: str, **kwargs) -> BaseDatasetLoader:
        """
        Get a loader instance for the specified source type.

        Args:
            source_name: Name of the source
            **kwargs: Arguments to pass to loader constructor

        Returns:
            Loader instance

        Raises:
            ValueError: If source_name is not registered
        """
        source_key = source_name.lower()
        if source_key not in cls._loaders:
            raise ValueError(
                f"Unknown dataset source: {source_name}. "
                f"Available: {list(cls._loaders.keys())}"
            )

        loader_class = cls._loaders[source_key]
        return loader_class(**kwargs)

    @classmethod
    def list_sources(cls) -> List[str]:
        """
        List all registered source types.

        Returns:
            List of source names
        """
        return list(cls._loaders.keys())
