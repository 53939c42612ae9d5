# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Graph Builder

Converts a RawGraph into the runtime operator arena:
1. One Operator per raw operator (``None`` entries are logged and skipped)
2. Input operands keyed by producer name, in declaration order
3. Weight attributes and typed parameters
4. Consumer edges, wired from each operator's recorded consumer names
"""

from __future__ import annotations

from typing import Dict, List

from ..adapters.raw import RawAttribute, RawGraph, RawOperator, RawParameter
from ..core import Attribute, DataType, Operand, Operator, Parameter, Shape
from ..errors import ValidationError, format_dtype_mismatch
from ..observability import get_logger


def build_operators(raw_graph: RawGraph) -> List[Operator]:
    """
    Build the operator arena for ``raw_graph``.

    Operator ids are their positions in the returned list.

    Raises:
        ValidationError: On non-float32 operands or attributes, unknown
            parameter type codes, or inputs without a producer.
    """
    logger = get_logger()
    operators: List[Operator] = []

    for index, raw_op in enumerate(raw_graph.ops):
        if raw_op is None:
            logger.error("Skipping empty operator entry", component="builder", index=index)
            continue

        op = Operator(name=raw_op.name, type=raw_op.type, id=len(operators))
        _init_inputs(raw_op, op)
        _init_outputs(raw_op, op)
        _init_attributes(raw_op.attrs, op)
        _init_params(raw_op.params, op)
        operators.append(op)

    wire_consumers(operators)
    logger.debug(
        "Operators built",
        component="builder",
        operators=len(operators),
        edges=sum(len(op.consumers) for op in operators),
    )
    return operators


def wire_consumers(operators: List[Operator]) -> None:
    """
    Give each operator a consumer entry for every other operator named in
    its ``output_names``. Unknown names and self references are ignored.
    """
    index: Dict[str, int] = {}
    for op in operators:
        index.setdefault(op.name, op.id)

    for op in operators:
        op.consumers.clear()
        for consumer_name in op.output_names:
            consumer_id = index.get(consumer_name)
            if consumer_id is None or consumer_id == op.id:
                continue
            op.consumers.setdefault(consumer_name, consumer_id)


def _init_inputs(raw_op: RawOperator, op: Operator) -> None:
    for raw_input in raw_op.inputs:
        if raw_input is None:
            continue
        producer = raw_input.producer
        if producer is None:
            raise ValidationError(
                f"Input operand '{raw_input.name}' of '{raw_op.name}' has no producer",
                parameter=raw_input.name,
            )
        _check_float32(raw_input.type, f"{raw_op.name}:{raw_input.name}")
        operand = Operand(
            name=producer.name,
            shape=Shape(list(raw_input.shape)),
            dtype=DataType.Float32,
        )
        op.add_input(producer.name, operand)


def _init_outputs(raw_op: RawOperator, op: Operator) -> None:
    for raw_output in raw_op.outputs:
        if raw_output is None:
            continue
        op.output_names.extend(consumer.name for consumer in raw_output.consumers)


def _init_attributes(attrs: Dict[str, RawAttribute], op: Operator) -> None:
    for name, raw_attr in attrs.items():
        _check_float32(raw_attr.type, f"{op.name}.{name}")
        op.attributes[name] = Attribute(
            dtype=DataType.Float32,
            shape=list(raw_attr.shape),
            weight_data=raw_attr.data,
        )


def _init_params(params: Dict[str, RawParameter], op: Operator) -> None:
    for name, raw_param in params.items():
        try:
            op.params[name] = Parameter.from_code(raw_param.type, raw_param.value)
        except (TypeError, ValueError) as err:
            raise ValidationError(
                f"Parameter '{name}' of '{op.name}': {err}",
                parameter=name,
                expected="type code 0..7 with a matching value",
                received=f"{raw_param.type}: {raw_param.value!r}",
            ) from err


def _check_float32(type_code: int, tensor_name: str) -> None:
    if type_code != DataType.Float32:
        try:
            received = DataType(type_code).name.lower()
        except ValueError:
            received = f"code {type_code}"
        raise format_dtype_mismatch("float32", received, tensor_name)
