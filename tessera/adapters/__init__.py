# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Tessera Model Adapters

Loaders that turn model files into a RawGraph.
"""

from .base import BaseAdapter
from .pnnx_adapter import PNNXAdapter, parse_parameter, parse_shape
from .raw import RawAttribute, RawGraph, RawOperand, RawOperator, RawParameter

__all__ = [
    "BaseAdapter",
    "PNNXAdapter",
    "parse_parameter",
    "parse_shape",
    "RawAttribute",
    "RawGraph",
    "RawOperand",
    "RawOperator",
    "RawParameter",
]
