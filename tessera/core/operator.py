# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Operator

A single computation node of the runtime graph.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, TYPE_CHECKING

from .operand import Attribute, Operand
from .types import Parameter, ParameterType

if TYPE_CHECKING:
    from ..execution.layer import Layer


@dataclass
class Operator:
    """
    A node of the runtime graph.

    Operators live in the graph's arena and are addressed by ``id``.
    ``input_operands`` is keyed by producer name, ``input_operands_seq``
    keeps declaration order for layer argument binding, and ``consumers``
    maps consumer name to arena id.
    """

    name: str = ""
    type: str = ""
    id: int = -1
    input_operands: dict[str, Operand] = field(default_factory=dict)
    input_operands_seq: list[Operand] = field(default_factory=list)
    output_operand: Optional[Operand] = None
    output_names: list[str] = field(default_factory=list)
    consumers: dict[str, int] = field(default_factory=dict)
    attributes: dict[str, Attribute] = field(default_factory=dict)
    params: dict[str, Parameter] = field(default_factory=dict)
    layer: Optional["Layer"] = field(default=None, repr=False)

    def num_inputs(self) -> int:
        """Number of distinct producers this operator waits on."""
        return len(self.input_operands)

    def add_input(self, producer: str, operand: Operand) -> Operand:
        """
        Register an input operand fed by ``producer``.

        A producer that feeds the same operator twice keeps a single
        keyed operand; the sequence still records both uses.
        """
        operand = self.input_operands.setdefault(producer, operand)
        self.input_operands_seq.append(operand)
        return operand

    def is_op(self, op_type: str) -> bool:
        """Check if this is a specific operation type."""
        return self.type == op_type

    def get_param(self, key: str, default: Any = None) -> Any:
        """Get a parameter's value."""
        param = self.params.get(key)
        if param is None:
            return default
        return param.value

    def has_param(self, key: str, kind: Optional[ParameterType] = None) -> bool:
        """Check if a parameter exists, optionally of a given kind."""
        param = self.params.get(key)
        if param is None:
            return False
        return kind is None or param.kind == kind

    def get_attr(self, key: str) -> Optional[Attribute]:
        """Get a weight attribute."""
        return self.attributes.get(key)

    def __repr__(self) -> str:
        return f"Operator(type='{self.type}', name='{self.name}', id={self.id})"
