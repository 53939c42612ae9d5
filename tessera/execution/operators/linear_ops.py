# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Linear Layer

Y = W @ x + b over per-sample ``(1, F, 1)`` tensors.

Parameters: ``in_features`` (int), ``out_features`` (int), ``bias`` (bool)
Attributes: ``weight`` of shape ``(out, in)``, ``bias`` of shape ``(out,)``
"""

from __future__ import annotations

from typing import List, Optional

import numpy as np

from ...core import Operator, ParameterType
from ...core.types import Status, StatusCode
from ...errors import LayerCreationError
from ..layer import Layer, check_unary
from ..registry import LayerRegistry


@LayerRegistry.register("nn.Linear")
class Linear(Layer):
    def __init__(
        self,
        layer_name: str,
        weight: np.ndarray,
        bias: Optional[np.ndarray] = None,
    ):
        super().__init__(layer_name)
        self.weight = weight
        self.bias = bias

    @property
    def in_features(self) -> int:
        return self.weight.shape[1]

    @property
    def out_features(self) -> int:
        return self.weight.shape[0]

    @classmethod
    def from_operator(cls, op: Operator) -> "Linear":
        for key in ("in_features", "out_features"):
            if not op.has_param(key, ParameterType.Int):
                raise LayerCreationError(
                    f"missing int parameter '{key}'", op_type=op.type, op_name=op.name
                )
        in_features = op.get_param("in_features")
        out_features = op.get_param("out_features")
        use_bias = bool(op.get_param("bias", False))

        weight_attr = op.get_attr("weight")
        if weight_attr is None:
            raise LayerCreationError(
                "missing 'weight' attribute", op_type=op.type, op_name=op.name
            )
        weight = weight_attr.to_numpy()
        if weight.shape != (out_features, in_features):
            raise LayerCreationError(
                f"weight shape {weight.shape} does not match "
                f"({out_features}, {in_features})",
                op_type=op.type,
                op_name=op.name,
            )

        bias = None
        if use_bias:
            bias_attr = op.get_attr("bias")
            if bias_attr is None:
                raise LayerCreationError(
                    "missing 'bias' attribute", op_type=op.type, op_name=op.name
                )
            bias = bias_attr.to_numpy().reshape(-1)
            if bias.shape != (out_features,):
                raise LayerCreationError(
                    f"bias shape {bias.shape} does not match ({out_features},)",
                    op_type=op.type,
                    op_name=op.name,
                )
        return cls(op.name, weight, bias)

    def forward(self, inputs: List[np.ndarray], outputs: List[np.ndarray]) -> Status:
        status = check_unary(inputs, outputs)
        if not status:
            return status

        for x, out in zip(inputs, outputs):
            if x.size != self.in_features:
                return Status.Error(
                    StatusCode.FailedShapeMismatch,
                    f"{self.layer_name}: expected {self.in_features} features, "
                    f"got {x.size}",
                )
            if out.size != self.out_features:
                return Status.Error(
                    StatusCode.FailedShapeMismatch,
                    f"{self.layer_name}: output holds {out.size} features, "
                    f"expected {self.out_features}",
                )
            y = self.weight @ x.reshape(-1)
            if self.bias is not None:
                y += self.bias
            out[...] = y.reshape(out.shape)
        return Status.Ok()
