# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Operands and weight attributes.
"""

from dataclasses import dataclass, field

import numpy as np

from .types import DataType, Shape, dtype_size, dtype_to_string


@dataclass
class Operand:
    """
    Named tensor data flowing along one graph edge.

    Holds the declared shape and one float32 buffer per batch sample.
    Rank-4 samples are ``(C, H, W)``; rank-2 samples are ``(1, F, 1)``.
    """

    name: str = ""
    shape: Shape = field(default_factory=Shape)
    dtype: DataType = DataType.Float32
    datas: list[np.ndarray] = field(default_factory=list, repr=False)

    @property
    def batch(self) -> int:
        return self.shape.batch

    def is_allocated(self) -> bool:
        return bool(self.datas)

    def size_bytes(self) -> int:
        """Calculate the size in bytes of the declared shape."""
        elements = self.shape.numel()
        if elements < 0:
            return 0  # Dynamic shape
        return elements * dtype_size(self.dtype)

    def __repr__(self) -> str:
        return (
            f"Operand(name='{self.name}', shape={self.shape}, "
            f"dtype={dtype_to_string(self.dtype)}, buffers={len(self.datas)})"
        )


@dataclass
class Attribute:
    """Weight tensor owned by an operator: dtype, shape and raw bytes."""

    dtype: DataType = DataType.Float32
    shape: list[int] = field(default_factory=list)
    weight_data: bytes = field(default=b"", repr=False)

    def numel(self) -> int:
        result = 1
        for d in self.shape:
            result *= d
        return result

    def to_numpy(self) -> np.ndarray:
        """
        View the raw bytes as a float32 array of the declared shape.

        Raises:
            ValueError: If the byte count does not match the shape.
        """
        expected = self.numel() * dtype_size(self.dtype)
        if len(self.weight_data) != expected:
            raise ValueError(
                f"Attribute holds {len(self.weight_data)} bytes, "
                f"shape {self.shape} needs {expected}"
            )
        arr = np.frombuffer(self.weight_data, dtype="<f4")
        return arr.reshape(self.shape).astype(np.float32)
