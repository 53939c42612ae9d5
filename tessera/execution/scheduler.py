# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Dataflow Scheduler

Runs one forward pass over a built operator arena without a precomputed
topological order:

1. Seed a FIFO queue with the input operator
2. Pop an operator; the output operator ends the pass
3. The input operator forwards the caller's tensors to its consumers
4. Any other operator runs its layer once every producer has delivered,
   then forwards its output buffers to its consumers
5. A consumer is enqueued exactly once, when its last producer delivers

The graph must be acyclic. A cycle, or a consumer that can never become
ready, keeps the queue spinning forever.
"""

from __future__ import annotations

import time
from collections import deque
from typing import Deque, Dict, List, Optional, Sequence

import numpy as np

from ..core import Operator
from ..errors import GraphStateError, KernelError, ValidationError, format_shape_mismatch
from ..observability import get_logger
from .context import ExecutionContext


class DataflowScheduler:
    """
    Readiness-gated executor over an operator arena.

    Example:
        scheduler = DataflowScheduler(operators, inputs_by_name, outputs_by_name)
        ctx = ExecutionContext(len(operators))
        outputs = scheduler.run("pnnx_input_0", "pnnx_output_0", tensors, ctx)
    """

    def __init__(
        self,
        operators: Sequence[Operator],
        input_operators: Dict[str, int],
        output_operators: Dict[str, int],
    ):
        self.operators = operators
        self.input_operators = input_operators
        self.output_operators = output_operators
        self._logger = get_logger()

    def run(
        self,
        input_name: str,
        output_name: str,
        inputs: List[np.ndarray],
        context: Optional[ExecutionContext] = None,
        debug: bool = False,
    ) -> List[np.ndarray]:
        """
        Execute the graph once.

        Args:
            input_name: Name of the input marker operator.
            output_name: Name of the output marker operator.
            inputs: One tensor per batch sample for the input operator.
            context: Scheduling state for this pass; a fresh one is used
                when omitted.
            debug: Time every layer call.

        Returns:
            Copies of the tensors delivered to the output operator.

        Raises:
            ValidationError: Unknown marker names, tensor count or shape
                mismatches, or more than one path into the output.
            KernelError: A layer returned a failure status.
        """
        if input_name not in self.input_operators:
            raise ValidationError(
                f"Can not find the input node: {input_name}",
                parameter="input_name",
                expected=str(sorted(self.input_operators)),
                received=input_name,
            )
        if output_name not in self.output_operators:
            raise ValidationError(
                f"Can not find the output node: {output_name}",
                parameter="output_name",
                expected=str(sorted(self.output_operators)),
                received=output_name,
            )
        if context is None:
            context = ExecutionContext(len(self.operators))

        input_op = self.operators[self.input_operators[input_name]]
        output_op = self.operators[self.output_operators[output_name]]

        queue: Deque[Operator] = deque([input_op])
        context.mark_queued(input_op)

        while queue:
            current = queue.popleft()
            context.mark_queued(current, False)

            if current is output_op:
                if debug:
                    self._logger.info("Model inference end", component="scheduler")
                break

            if current is input_op:
                self._propagate(current, inputs, queue, context)
                continue

            if not context.is_ready(current):
                context.requeues[current.id] += 1
                queue.append(current)
                context.mark_queued(current)
                continue

            outputs = self._dispatch(current, context, debug)
            self._propagate(current, outputs, queue, context)

        context.reset()

        if len(output_op.input_operands) != 1:
            raise ValidationError(
                f"Output node '{output_op.name}' is reached by "
                f"{len(output_op.input_operands)} paths; only one is supported",
                parameter=output_op.name,
            )
        (result,) = output_op.input_operands.values()
        return [data.copy() for data in result.datas]

    def _dispatch(
        self, op: Operator, context: ExecutionContext, debug: bool
    ) -> List[np.ndarray]:
        layer_inputs = [
            data for operand in op.input_operands_seq for data in operand.datas
        ]
        if not layer_inputs:
            raise ValidationError(f"Operator '{op.name}' has no input tensors")
        if op.output_operand is None or op.layer is None:
            raise GraphStateError(f"Operator '{op.name}' is not built")

        layer_outputs = op.output_operand.datas
        start = time.perf_counter()
        status = op.layer.forward(layer_inputs, layer_outputs)
        elapsed_ms = (time.perf_counter() - start) * 1000
        context.record_dispatch(op, elapsed_ms)

        if debug:
            self._logger.info(
                "Layer forward",
                component="scheduler",
                operator=op.name,
                duration_ms=elapsed_ms,
            )
        if not status:
            raise KernelError(
                status.message or f"{op.layer.layer_name} returned {status.code.name}",
                layer_name=op.layer.layer_name,
                op_name=op.name,
                status_code=status.code.name,
            )
        return layer_outputs

    def _propagate(
        self,
        producer: Operator,
        tensors: List[np.ndarray],
        queue: Deque[Operator],
        context: ExecutionContext,
    ) -> None:
        for consumer_id in producer.consumers.values():
            consumer = self.operators[consumer_id]
            operand = consumer.input_operands.get(producer.name)
            if operand is None:
                continue

            copy_tensors(tensors, operand.datas, f"{producer.name}->{consumer.name}")
            ready = context.deliver(consumer)
            if ready and not context.is_queued(consumer):
                queue.append(consumer)
                context.mark_queued(consumer)


def copy_tensors(
    src: Sequence[np.ndarray], dest: Sequence[np.ndarray], edge: str = "tensor"
) -> None:
    """
    Copy ``src`` element-wise into the existing ``dest`` buffers.

    Raises:
        ValidationError: If the counts or per-sample shapes differ.
    """
    if len(src) != len(dest):
        raise ValidationError(
            f"Tensor count mismatch on edge {edge}",
            parameter=edge,
            expected=str(len(dest)),
            received=str(len(src)),
        )
    for source, target in zip(src, dest):
        source = np.asarray(source)
        if source.shape != target.shape:
            raise format_shape_mismatch(target.shape, source.shape, edge)
        np.copyto(target, source)
