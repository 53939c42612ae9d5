# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Tessera Core Types

Data types, shapes, layer status codes and the operator parameter
variant shared by the loader, builder and scheduler.
"""

from enum import Enum, IntEnum, auto
from dataclasses import dataclass, field
from typing import Any, Union

import numpy as np


class DataType(IntEnum):
    """Tensor element types, numbered by their model-file type code."""

    Unknown = 0
    Float32 = 1
    Float64 = 2
    Float16 = 3
    Int32 = 4
    Int64 = 5
    Int16 = 6
    Int8 = 7
    UInt8 = 8
    Bool = 9


_DTYPE_SUFFIXES = {
    "f32": DataType.Float32,
    "f64": DataType.Float64,
    "f16": DataType.Float16,
    "i32": DataType.Int32,
    "i64": DataType.Int64,
    "i16": DataType.Int16,
    "i8": DataType.Int8,
    "u8": DataType.UInt8,
    "bool": DataType.Bool,
}


def dtype_size(dtype: DataType) -> int:
    """Get the size in bytes for a data type."""
    sizes = {
        DataType.Float32: 4,
        DataType.Float16: 2,
        DataType.Float64: 8,
        DataType.Int8: 1,
        DataType.Int16: 2,
        DataType.Int32: 4,
        DataType.Int64: 8,
        DataType.UInt8: 1,
        DataType.Bool: 1,
    }
    return sizes.get(dtype, 0)


def dtype_to_string(dtype: DataType) -> str:
    """Get string representation of data type."""
    return dtype.name.lower()


def dtype_from_suffix(suffix: str) -> DataType:
    """Map a model-file dtype suffix (``f32``, ``i64``...) to a DataType."""
    return _DTYPE_SUFFIXES.get(suffix, DataType.Unknown)


class StatusCode(Enum):
    """Result codes returned by layer forward calls."""

    Ok = auto()
    FailedInputEmpty = auto()
    FailedOutputEmpty = auto()
    FailedInputOutputSizeMismatch = auto()
    FailedShapeMismatch = auto()
    FailedWeightParameterError = auto()
    FailedBiasParameterError = auto()
    FailedOperationUnknown = auto()


@dataclass
class Status:
    """Status class for layer forward results."""

    code: StatusCode = StatusCode.Ok
    message: str = ""

    def ok(self) -> bool:
        return self.code == StatusCode.Ok

    @classmethod
    def Ok(cls) -> "Status":
        return cls()

    @classmethod
    def Error(cls, code: StatusCode, message: str) -> "Status":
        return cls(code=code, message=message)

    def __bool__(self) -> bool:
        return self.ok()


@dataclass
class Shape:
    """Declared tensor dimensions. Index 0 is the batch size."""

    dims: list[int] = field(default_factory=list)

    def rank(self) -> int:
        """Get number of dimensions."""
        return len(self.dims)

    @property
    def batch(self) -> int:
        return self.dims[0]

    def numel(self) -> int:
        """Get total number of elements."""
        if not self.dims:
            return 0
        result = 1
        for d in self.dims:
            if d < 0:
                return -1  # Dynamic dimension
            result *= d
        return result

    def is_dynamic(self) -> bool:
        """Check if shape has dynamic dimensions."""
        return any(d < 0 for d in self.dims)

    def sample_shape(self) -> tuple[int, int, int]:
        """
        Shape of one per-sample buffer.

        Rank-4 ``[N, C, H, W]`` gives ``(C, H, W)``; rank-2 ``[N, F]``
        gives ``(1, F, 1)``.
        """
        if self.rank() == 4:
            return (self.dims[1], self.dims[2], self.dims[3])
        if self.rank() == 2:
            return (1, self.dims[1], 1)
        raise ValueError(f"No per-sample layout for rank {self.rank()}")

    def __getitem__(self, idx: int) -> int:
        return self.dims[idx]

    def __len__(self) -> int:
        return len(self.dims)

    def __iter__(self):
        return iter(self.dims)

    def __repr__(self) -> str:
        return f"Shape({self.dims})"


def allocate_samples(shape: Shape) -> list[np.ndarray]:
    """Allocate ``shape.batch`` zeroed float32 per-sample buffers."""
    sample = shape.sample_shape()
    return [np.zeros(sample, dtype=np.float32) for _ in range(shape.batch)]


class ParameterType(IntEnum):
    """Operator parameter kinds, numbered by their model-file type code."""

    Unknown = 0
    Bool = 1
    Int = 2
    Float = 3
    String = 4
    IntArray = 5
    FloatArray = 6
    StringArray = 7


ParameterValue = Union[None, bool, int, float, str, list[int], list[float], list[str]]


@dataclass(frozen=True)
class Parameter:
    """
    Operator configuration value: a closed tagged variant over the eight
    ParameterType kinds.

    The constructor normalizes ``value`` to the Python type of ``kind``
    (``Unknown`` always carries ``None``).
    """

    kind: ParameterType = ParameterType.Unknown
    value: ParameterValue = None

    def __post_init__(self):
        object.__setattr__(self, "kind", ParameterType(self.kind))
        object.__setattr__(self, "value", _coerce(self.kind, self.value))

    @classmethod
    def from_code(cls, code: int, value: Any) -> "Parameter":
        """
        Build a parameter from a raw type code.

        Raises:
            ValueError: If the code is outside 0..7.
        """
        try:
            kind = ParameterType(code)
        except ValueError as err:
            raise ValueError(f"Unknown parameter type code: {code}") from err
        return cls(kind, value)

    def is_array(self) -> bool:
        return self.kind in (
            ParameterType.IntArray,
            ParameterType.FloatArray,
            ParameterType.StringArray,
        )


def _coerce(kind: ParameterType, value: Any) -> ParameterValue:
    if kind == ParameterType.Unknown:
        return None
    if kind == ParameterType.Bool:
        return bool(value)
    if kind == ParameterType.Int:
        return int(value)
    if kind == ParameterType.Float:
        return float(value)
    if kind == ParameterType.String:
        return str(value)
    if kind == ParameterType.IntArray:
        return [int(v) for v in value]
    if kind == ParameterType.FloatArray:
        return [float(v) for v in value]
    return [str(v) for v in value]
