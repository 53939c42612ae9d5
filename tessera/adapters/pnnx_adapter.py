# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
PNNX Adapter

Reads the PNNX model format into a RawGraph:

- ``*.param``: text topology. First line is the magic number, second
  line holds operator and operand counts, then one operator per line::

      type name n_in n_out in0 .. out0 .. key=value ..

  ``@name=(shape)dtype`` declares a weight stored in the bin archive,
  ``#operand=(shape)dtype`` declares an operand's shape, ``$key=...``
  maps input names (ignored here); anything else is a parameter.
- ``*.bin``: zip archive, one ``<operator>.<attribute>`` entry per weight.
"""

from __future__ import annotations

import re
import zipfile
from pathlib import Path
from typing import Any

from .base import BaseAdapter
from .raw import RawAttribute, RawGraph, RawOperand, RawOperator, RawParameter
from ..core.types import DataType, ParameterType, dtype_from_suffix, dtype_size
from ..errors import GraphLoadError
from ..observability import get_logger

PNNX_MAGIC = 7767517

_SHAPE_RE = re.compile(r"^\((.*)\)([a-z0-9]+)$")
_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?$")


def parse_shape(text: str) -> tuple[list[int], int]:
    """
    Parse ``(1,3,224,224)f32`` into dims and a dtype code.

    Unknown dimensions (``?``) become ``-1``.

    Raises:
        ValueError: If the text is not a shape declaration.
    """
    match = _SHAPE_RE.match(text)
    if match is None:
        raise ValueError(f"Malformed shape declaration: {text!r}")
    dims_text, suffix = match.groups()
    dims = []
    for item in dims_text.split(","):
        item = item.strip()
        if not item:
            continue
        dims.append(-1 if item == "?" else int(item))
    return dims, int(dtype_from_suffix(suffix))


def parse_parameter(text: str) -> RawParameter:
    """Infer a parameter's type code from its textual value."""
    if text == "None":
        return RawParameter(int(ParameterType.Unknown), None)
    if text in ("True", "False"):
        return RawParameter(int(ParameterType.Bool), text == "True")

    if text[:1] in ("(", "[") and text[-1:] in (")", "]"):
        items = [item.strip() for item in text[1:-1].split(",") if item.strip()]
        if not all(_FLOAT_RE.match(item) for item in items):
            values = [item.strip("'\"") for item in items]
            return RawParameter(int(ParameterType.StringArray), values)
        if all(_INT_RE.match(item) for item in items):
            return RawParameter(int(ParameterType.IntArray), [int(i) for i in items])
        return RawParameter(int(ParameterType.FloatArray), [float(i) for i in items])

    if _INT_RE.match(text):
        return RawParameter(int(ParameterType.Int), int(text))
    if _FLOAT_RE.match(text):
        return RawParameter(int(ParameterType.Float), float(text))
    return RawParameter(int(ParameterType.String), text)


class PNNXAdapter(BaseAdapter):
    """
    Loader for PNNX ``.param`` / ``.bin`` model pairs.

    Example:
        adapter = PNNXAdapter()
        raw = adapter.load("resnet18.pnnx.param", "resnet18.pnnx.bin")
    """

    @property
    def name(self) -> str:
        return "pnnx"

    def load(self, param_path: str, bin_path: str) -> RawGraph:
        logger = get_logger()
        try:
            text = Path(param_path).read_text(encoding="utf-8")
        except OSError as err:
            raise GraphLoadError(
                f"cannot read param file: {err}", param_path=param_path
            ) from err

        graph = self.parse_param(text, param_path=param_path)

        try:
            with zipfile.ZipFile(bin_path) as archive:
                self._read_weights(graph, archive, bin_path)
        except (OSError, zipfile.BadZipFile) as err:
            raise GraphLoadError(
                f"cannot read bin archive: {err}", bin_path=bin_path
            ) from err

        logger.debug(
            "Model files loaded",
            component="adapter",
            operators=len(graph.ops),
            operands=len(graph.operands),
        )
        return graph

    def parse_param(self, text: str, param_path: str = "") -> RawGraph:
        """
        Parse param file contents. Weight attributes are declared with
        their shapes but carry no bytes until ``_read_weights`` runs.
        """
        lines = [
            (number, line.strip())
            for number, line in enumerate(text.splitlines(), 1)
            if line.strip()
        ]
        if len(lines) < 2:
            raise GraphLoadError("param file is truncated", param_path=param_path)

        magic_line, magic = lines[0]
        if magic != str(PNNX_MAGIC):
            raise GraphLoadError(
                f"bad magic number {magic!r}", param_path=param_path, line=magic_line
            )

        counts_line, counts = lines[1]
        try:
            op_count, _operand_count = (int(v) for v in counts.split())
        except ValueError as err:
            raise GraphLoadError(
                "malformed operator/operand count line",
                param_path=param_path,
                line=counts_line,
            ) from err

        graph = RawGraph()
        operands: dict[str, RawOperand] = {}

        for number, line in lines[2:]:
            try:
                self._parse_operator(line, graph, operands)
            except (ValueError, IndexError) as err:
                raise GraphLoadError(str(err), param_path=param_path, line=number) from err

        if len(graph.ops) != op_count:
            raise GraphLoadError(
                f"declared {op_count} operators, found {len(graph.ops)}",
                param_path=param_path,
            )
        return graph

    def _parse_operator(
        self, line: str, graph: RawGraph, operands: dict[str, RawOperand]
    ) -> None:
        tokens = line.split()
        if len(tokens) < 4:
            raise ValueError(f"Malformed operator line: {line!r}")

        op_type, name = tokens[0], tokens[1]
        num_inputs, num_outputs = int(tokens[2]), int(tokens[3])
        if num_inputs < 0 or num_outputs < 0:
            raise ValueError(f"Negative operand count on operator {name!r}")
        names_end = 4 + num_inputs + num_outputs
        if len(tokens) < names_end:
            raise ValueError(f"Operator {name!r} lists too few operands")

        op = graph.new_operator(op_type, name)

        for operand_name in tokens[4 : 4 + num_inputs]:
            op.add_input(self._operand(graph, operands, operand_name))
        for operand_name in tokens[4 + num_inputs : names_end]:
            op.add_output(self._operand(graph, operands, operand_name))

        for item in tokens[names_end:]:
            key, sep, value = item.partition("=")
            if not sep or not key:
                raise ValueError(f"Malformed key=value item {item!r}")
            if key.startswith("@"):
                shape, type_code = parse_shape(value)
                op.attrs[key[1:]] = RawAttribute(type=type_code, shape=shape)
            elif key.startswith("#"):
                operand = operands.get(key[1:])
                if operand is None:
                    raise ValueError(f"Shape declared for unknown operand {key[1:]!r}")
                operand.shape, operand.type = parse_shape(value)
            elif key.startswith("$"):
                continue
            else:
                op.params[key] = parse_parameter(value)

    @staticmethod
    def _operand(
        graph: RawGraph, operands: dict[str, RawOperand], name: str
    ) -> RawOperand:
        operand = operands.get(name)
        if operand is None:
            operand = graph.new_operand(name, type_code=int(DataType.Unknown))
            operands[name] = operand
        return operand

    @staticmethod
    def _read_weights(
        graph: RawGraph, archive: zipfile.ZipFile, bin_path: str
    ) -> None:
        entries = set(archive.namelist())
        for op in graph.ops:
            for attr_name, attr in op.attrs.items():
                entry = f"{op.name}.{attr_name}"
                if entry not in entries:
                    raise GraphLoadError(
                        f"missing weight entry {entry!r}", bin_path=bin_path
                    )
                data = archive.read(entry)
                # Unknown dtypes have size 0 and are left to the builder
                expected = _numel(attr.shape) * dtype_size(DataType(attr.type))
                if expected and len(data) != expected:
                    raise GraphLoadError(
                        f"weight {entry!r} holds {len(data)} bytes, expected {expected}",
                        bin_path=bin_path,
                    )
                attr.data = data


def _numel(shape: list[Any]) -> int:
    result = 1
    for d in shape:
        result *= d
    return result
