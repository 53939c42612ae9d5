# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Layer Interface

A layer is the computation unit bound to an operator at build time.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, TYPE_CHECKING

import numpy as np

from ..core.types import Status, StatusCode

if TYPE_CHECKING:
    from ..core.operator import Operator


class Layer(ABC):
    """
    Base class for computation units.

    ``forward`` receives the operator's input tensors flattened in operand
    declaration order (all samples of operand 0, then operand 1, ...) and
    the operator's pre-allocated output buffers, one per sample. It writes
    results into ``outputs`` in place and reports failures through the
    returned Status instead of raising.
    """

    def __init__(self, layer_name: str):
        self.layer_name = layer_name

    @classmethod
    def from_operator(cls, op: "Operator") -> "Layer":
        """Create a layer from an operator's parameters and weights."""
        return cls(op.name)

    @abstractmethod
    def forward(
        self, inputs: List[np.ndarray], outputs: List[np.ndarray]
    ) -> Status:
        """Run the layer on ``inputs``, writing into ``outputs``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name='{self.layer_name}')"


def check_unary(inputs: List[np.ndarray], outputs: List[np.ndarray]) -> Status:
    """Validate a one-output-per-input layer call."""
    if not inputs:
        return Status.Error(StatusCode.FailedInputEmpty, "input tensors are empty")
    if not outputs:
        return Status.Error(StatusCode.FailedOutputEmpty, "output tensors are empty")
    if len(inputs) != len(outputs):
        return Status.Error(
            StatusCode.FailedInputOutputSizeMismatch,
            f"{len(inputs)} inputs for {len(outputs)} outputs",
        )
    return Status.Ok()
