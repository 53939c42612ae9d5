# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Base Adapter Interface

Defines the abstract base class that all model loaders must implement.
"""

from abc import ABC, abstractmethod

from .raw import RawGraph


class BaseAdapter(ABC):
    """
    Abstract base class for model loaders.

    An adapter reads a topology file and a weights file and returns the
    raw graph the runtime builder consumes.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of this adapter (e.g., 'pnnx')."""
        pass

    @abstractmethod
    def load(self, param_path: str, bin_path: str) -> RawGraph:
        """
        Load a model description.

        Args:
            param_path: Path to the topology description.
            bin_path: Path to the weights archive.

        Returns:
            RawGraph with operators in declaration order.

        Raises:
            GraphLoadError: If either file cannot be read or parsed.
        """
        pass
