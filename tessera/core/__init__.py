# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""Tessera Core Module"""

from .types import (
    DataType,
    StatusCode,
    Status,
    Shape,
    ParameterType,
    Parameter,
    allocate_samples,
    dtype_size,
    dtype_to_string,
    dtype_from_suffix,
)
from .operand import Operand, Attribute
from .operator import Operator

__all__ = [
    "DataType",
    "StatusCode",
    "Status",
    "Shape",
    "ParameterType",
    "Parameter",
    "allocate_samples",
    "dtype_size",
    "dtype_to_string",
    "dtype_from_suffix",
    "Operand",
    "Attribute",
    "Operator",
]
