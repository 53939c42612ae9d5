# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Shape Resolver

Validates declared operand shapes and materializes per-sample buffers.

Both passes run at build time:
- resolve_input_tensors: every operator's input operands
- resolve_output_tensors: every operator's single output operand

Per-sample buffers are ``(C, H, W)`` for rank-4 shapes and ``(1, F, 1)``
for rank-2 shapes; an operand always holds exactly ``batch`` of them.
"""

from __future__ import annotations

from typing import Optional, Sequence

from ..adapters.raw import RawOperator
from ..core import DataType, Operand, Operator, Shape, allocate_samples
from ..errors import ValidationError, format_dtype_mismatch, format_shape_mismatch
from ..observability import get_logger

SUPPORTED_RANKS = (2, 4)


def check_declared_shape(shape: Shape, tensor_name: str) -> None:
    """
    Reject shapes the runtime cannot materialize.

    Raises:
        ValidationError: On ranks other than 2 or 4, or dynamic dimensions.
    """
    if shape.rank() not in SUPPORTED_RANKS:
        raise ValidationError(
            f"Unsupported rank {shape.rank()} for '{tensor_name}'",
            parameter=tensor_name,
            expected="rank 2 or 4",
            received=str(shape.dims),
        )
    if shape.batch < 0:
        raise ValidationError(
            f"Dynamic batch size is not supported for '{tensor_name}'",
            parameter=tensor_name,
            received=str(shape.dims),
        )
    if shape.is_dynamic():
        raise ValidationError(
            f"Dynamic dimensions are not supported for '{tensor_name}'",
            parameter=tensor_name,
            received=str(shape.dims),
        )


def check_buffers(operand: Operand, tensor_name: str) -> None:
    """
    Check an operand's existing buffers against its declared shape.

    Raises:
        ValidationError: On a wrong buffer count or per-sample shape.
    """
    batch = operand.shape.batch
    if len(operand.datas) != batch:
        raise ValidationError(
            f"Operand '{tensor_name}' holds {len(operand.datas)} buffers "
            f"for batch size {batch}",
            parameter=tensor_name,
            expected=str(batch),
            received=str(len(operand.datas)),
        )
    expected = operand.shape.sample_shape()
    for data in operand.datas:
        if tuple(data.shape) != expected:
            raise format_shape_mismatch(expected, tuple(data.shape), tensor_name)


def resolve_input_tensors(operators: Sequence[Operator]) -> None:
    """
    Validate or allocate every operator's input operand buffers.

    Raises:
        ValidationError: On non-float32 dtypes, unsupported ranks, dynamic
            batches, or existing buffers that disagree with the shape.
    """
    if not operators:
        get_logger().error("No operators to resolve input shapes for", component="shape")
        return

    for op in operators:
        for producer, operand in op.input_operands.items():
            tensor_name = f"{op.name}<-{producer}"
            if operand.dtype != DataType.Float32:
                raise format_dtype_mismatch(
                    "float32", operand.dtype.name.lower(), tensor_name
                )
            check_declared_shape(operand.shape, tensor_name)

            if operand.datas:
                check_buffers(operand, tensor_name)
            else:
                operand.datas = allocate_samples(operand.shape)


def resolve_output_tensors(
    raw_ops: Sequence[Optional[RawOperator]], operators: Sequence[Operator]
) -> None:
    """
    Validate or allocate the output operand of every operator.

    ``raw_ops`` and ``operators`` are matched by position.

    Raises:
        ValidationError: On mismatched or empty operator lists, operators
            declaring more than one output, or existing output operands
            that disagree with the declared shape.
    """
    if not raw_ops or not operators:
        raise ValidationError("Operator lists for output shapes are empty")
    if len(raw_ops) != len(operators):
        raise ValidationError(
            "Raw and runtime operator counts differ",
            expected=str(len(raw_ops)),
            received=str(len(operators)),
        )

    for raw_op, op in zip(raw_ops, operators):
        outputs = raw_op.outputs
        if len(outputs) > 1:
            raise ValidationError(
                f"Operator '{op.name}' declares {len(outputs)} outputs; "
                "only one output per operator is supported",
                parameter=op.name,
            )
        if not outputs:
            continue
        raw_operand = outputs[0]
        if raw_operand is None:
            raise ValidationError(f"Output operand of '{op.name}' is empty")

        tensor_name = f"{op.name}->{raw_operand.name}"
        if raw_operand.type != DataType.Float32:
            raise format_dtype_mismatch("float32", f"code {raw_operand.type}", tensor_name)
        shape = Shape(list(raw_operand.shape))
        check_declared_shape(shape, tensor_name)

        output = op.output_operand
        if output is None:
            op.output_operand = Operand(
                name=f"{raw_operand.name}_output",
                shape=shape,
                dtype=DataType.Float32,
                datas=allocate_samples(shape),
            )
            continue

        if output.dtype != DataType.Float32:
            raise format_dtype_mismatch("float32", output.dtype.name.lower(), tensor_name)
        if output.shape.dims != shape.dims:
            raise format_shape_mismatch(
                tuple(shape.dims), tuple(output.shape.dims), tensor_name
            )
        check_buffers(output, tensor_name)

