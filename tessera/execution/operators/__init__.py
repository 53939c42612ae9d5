# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Built-in Layers

Importing this package registers every built-in layer:
- activation_ops: nn.ReLU, nn.Sigmoid, nn.SiLU
- linear_ops: nn.Linear
- expression_ops: pnnx.Expression
"""

from . import activation_ops
from . import linear_ops
from . import expression_ops

__all__ = [
    "activation_ops",
    "linear_ops",
    "expression_ops",
]
