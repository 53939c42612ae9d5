# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Activation Layers

Element-wise activations:
- ReLU: max(0, x)
- Sigmoid: 1 / (1 + exp(-x))
- SiLU: x * sigmoid(x)
"""

from __future__ import annotations

from typing import List

import numpy as np

from ...core.types import Status, StatusCode
from ..layer import Layer, check_unary
from ..registry import LayerRegistry


class UnaryLayer(Layer):
    """One output buffer per input buffer, same shape, computed in place."""

    def _kernel(self, x: np.ndarray, out: np.ndarray) -> None:
        raise NotImplementedError

    def forward(self, inputs: List[np.ndarray], outputs: List[np.ndarray]) -> Status:
        status = check_unary(inputs, outputs)
        if not status:
            return status

        for x, out in zip(inputs, outputs):
            if x.shape != out.shape:
                return Status.Error(
                    StatusCode.FailedShapeMismatch,
                    f"{self.layer_name}: input {x.shape} vs output {out.shape}",
                )
            self._kernel(x, out)
        return Status.Ok()


@LayerRegistry.register("nn.ReLU", aliases=["F.relu"])
class ReLU(UnaryLayer):
    """Y = max(0, X)"""

    def _kernel(self, x: np.ndarray, out: np.ndarray) -> None:
        np.maximum(x, 0.0, out=out)


@LayerRegistry.register("nn.Sigmoid", aliases=["F.sigmoid"])
class Sigmoid(UnaryLayer):
    """Y = 1 / (1 + exp(-X))"""

    def _kernel(self, x: np.ndarray, out: np.ndarray) -> None:
        np.negative(x, out=out)
        np.exp(out, out=out)
        out += 1.0
        np.reciprocal(out, out=out)


@LayerRegistry.register("nn.SiLU", aliases=["F.silu"])
class SiLU(UnaryLayer):
    """Y = X * sigmoid(X)"""

    def _kernel(self, x: np.ndarray, out: np.ndarray) -> None:
        out[...] = x / (1.0 + np.exp(-x))
