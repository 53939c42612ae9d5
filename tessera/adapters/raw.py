# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Raw Graph

The loader-level view of a model: operators, operands, weight attributes
and parameters exactly as declared in the model files, with raw type
codes still unresolved. The builder turns this into runtime operators.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class RawParameter:
    """Parameter as declared: a type code (0..7) and a Python value."""

    type: int = 0
    value: Any = None


@dataclass
class RawAttribute:
    """Weight tensor as declared: dtype code, shape and raw bytes."""

    type: int = 1
    shape: list[int] = field(default_factory=list)
    data: bytes = field(default=b"", repr=False)


@dataclass(eq=False)
class RawOperand:
    """
    A tensor edge. ``producer`` is the operator listing it as an output,
    ``consumers`` the operators listing it as an input.
    """

    name: str = ""
    type: int = 1
    shape: list[int] = field(default_factory=list)
    producer: Optional["RawOperator"] = field(default=None, repr=False)
    consumers: list["RawOperator"] = field(default_factory=list, repr=False)


@dataclass(eq=False)
class RawOperator:
    """An operator line of the model description."""

    type: str = ""
    name: str = ""
    inputs: list[Optional[RawOperand]] = field(default_factory=list)
    outputs: list[Optional[RawOperand]] = field(default_factory=list)
    attrs: dict[str, RawAttribute] = field(default_factory=dict)
    params: dict[str, RawParameter] = field(default_factory=dict)

    def add_input(self, operand: RawOperand) -> None:
        """Consume ``operand`` and register this operator as a consumer."""
        self.inputs.append(operand)
        operand.consumers.append(self)

    def add_output(self, operand: RawOperand) -> None:
        """Produce ``operand`` and register this operator as its producer."""
        self.outputs.append(operand)
        operand.producer = self


@dataclass
class RawGraph:
    """Operators in declaration order plus every operand they reference."""

    ops: list[Optional[RawOperator]] = field(default_factory=list)
    operands: list[RawOperand] = field(default_factory=list)

    def new_operator(self, op_type: str, name: str) -> RawOperator:
        op = RawOperator(type=op_type, name=name)
        self.ops.append(op)
        return op

    def new_operand(
        self, name: str, shape: Optional[list[int]] = None, type_code: int = 1
    ) -> RawOperand:
        operand = RawOperand(name=name, type=type_code, shape=list(shape or []))
        self.operands.append(operand)
        return operand

    def get_operand(self, name: str) -> Optional[RawOperand]:
        for operand in self.operands:
            if operand.name == name:
                return operand
        return None

    def connect(
        self,
        producer: RawOperator,
        consumers: list[RawOperator],
        shape: list[int],
        name: Optional[str] = None,
        type_code: int = 1,
    ) -> RawOperand:
        """Create an operand produced by ``producer`` and fed to ``consumers``."""
        operand = self.new_operand(name or f"{producer.name}_out", shape, type_code)
        producer.add_output(operand)
        for consumer in consumers:
            consumer.add_input(operand)
        return operand
