# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Expression Layer

Evaluates element-wise expressions over several input operands, e.g.
``add(@0,mul(@1,@2))``. ``@i`` names the i-th input operand; supported
functions are add, sub, mul and div, each taking two arguments.

Inputs arrive flattened by operand, so sample ``j`` of operand ``i`` is
``inputs[i * batch + j]`` where ``batch == len(outputs)``.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, List, Tuple, Union

import numpy as np

from ...core import Operator, ParameterType
from ...core.types import Status, StatusCode
from ...errors import LayerCreationError
from ..layer import Layer
from ..registry import LayerRegistry

_TOKEN_RE = re.compile(r"\s*(@\d+|[A-Za-z_]+|[(),])")

BINARY_FUNCTIONS: Dict[str, Callable[[np.ndarray, np.ndarray], np.ndarray]] = {
    "add": np.add,
    "sub": np.subtract,
    "mul": np.multiply,
    "div": np.divide,
}

# An operand index, or (function name, left, right)
ExprNode = Union[int, Tuple[str, "ExprNode", "ExprNode"]]


def tokenize(expr: str) -> List[str]:
    """Split an expression into tokens, rejecting unknown characters."""
    tokens = []
    pos = 0
    expr = expr.rstrip()
    while pos < len(expr):
        match = _TOKEN_RE.match(expr, pos)
        if match is None:
            raise ValueError(f"Unexpected character at {pos} in {expr!r}")
        tokens.append(match.group(1))
        pos = match.end()
    return tokens


def parse_expression(expr: str) -> ExprNode:
    """
    Parse an expression string into a tree.

    Raises:
        ValueError: On syntax errors or unknown functions.
    """
    tokens = tokenize(expr)
    if not tokens:
        raise ValueError("Empty expression")
    node, pos = _parse(tokens, 0)
    if pos != len(tokens):
        raise ValueError(f"Trailing tokens in {expr!r}: {tokens[pos:]}")
    return node


def _parse(tokens: List[str], pos: int) -> Tuple[ExprNode, int]:
    if pos >= len(tokens):
        raise ValueError("Unexpected end of expression")
    token = tokens[pos]
    if token.startswith("@"):
        return int(token[1:]), pos + 1
    if token not in BINARY_FUNCTIONS:
        raise ValueError(f"Unknown function {token!r}")

    pos = _expect(tokens, pos + 1, "(")
    left, pos = _parse(tokens, pos)
    pos = _expect(tokens, pos, ",")
    right, pos = _parse(tokens, pos)
    pos = _expect(tokens, pos, ")")
    return (token, left, right), pos


def _expect(tokens: List[str], pos: int, token: str) -> int:
    if pos >= len(tokens) or tokens[pos] != token:
        found = tokens[pos] if pos < len(tokens) else "end of expression"
        raise ValueError(f"Expected {token!r}, found {found!r}")
    return pos + 1


def max_operand_index(node: ExprNode) -> int:
    if isinstance(node, int):
        return node
    _, left, right = node
    return max(max_operand_index(left), max_operand_index(right))


def evaluate(node: ExprNode, operands: List[np.ndarray]) -> np.ndarray:
    if isinstance(node, int):
        return operands[node]
    name, left, right = node
    return BINARY_FUNCTIONS[name](evaluate(left, operands), evaluate(right, operands))


@LayerRegistry.register("pnnx.Expression")
class Expression(Layer):
    def __init__(self, layer_name: str, expr: str):
        super().__init__(layer_name)
        self.expr = expr
        self.tree = parse_expression(expr)
        self.num_operands = max_operand_index(self.tree) + 1

    @classmethod
    def from_operator(cls, op: Operator) -> "Expression":
        if not op.has_param("expr", ParameterType.String):
            raise LayerCreationError(
                "missing string parameter 'expr'", op_type=op.type, op_name=op.name
            )
        return cls(op.name, op.get_param("expr"))

    def forward(self, inputs: List[np.ndarray], outputs: List[np.ndarray]) -> Status:
        if not inputs:
            return Status.Error(StatusCode.FailedInputEmpty, "input tensors are empty")
        if not outputs:
            return Status.Error(StatusCode.FailedOutputEmpty, "output tensors are empty")

        batch = len(outputs)
        if len(inputs) % batch or len(inputs) // batch < self.num_operands:
            return Status.Error(
                StatusCode.FailedInputOutputSizeMismatch,
                f"{self.layer_name}: {len(inputs)} inputs cannot feed "
                f"{self.num_operands} operands of batch {batch}",
            )

        for j, out in enumerate(outputs):
            operands = [inputs[i * batch + j] for i in range(self.num_operands)]
            if any(x.shape != out.shape for x in operands):
                return Status.Error(
                    StatusCode.FailedShapeMismatch,
                    f"{self.layer_name}: operand shapes differ from output {out.shape}",
                )
            np.copyto(out, evaluate(self.tree, operands))
        return Status.Ok()
