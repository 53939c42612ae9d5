# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Execution Context

Per-forward scheduling state. The built graph stays read-only between
passes; each forward call gets a fresh context holding the readiness
counters and bookkeeping for that pass.
"""

from __future__ import annotations

from typing import Dict, List

from ..core import Operator
from ..errors import ValidationError


class ExecutionContext:
    """
    Readiness counters and statistics for one forward pass.

    Counters are indexed by operator arena id:
    - meet_num: producers that delivered data this pass
    - dispatches: layer invocations
    - deferrals: deliveries that left the operator not yet ready
    - requeues: dequeues of a not-ready operator pushed back to the tail

    Example:
        ctx = ExecutionContext(len(operators))
        ready = ctx.deliver(consumer)
        ...
        ctx.reset()
    """

    def __init__(self, num_operators: int):
        self.num_operators = num_operators
        self.meet_num: List[int] = [0] * num_operators
        self.dispatches: List[int] = [0] * num_operators
        self.deferrals: List[int] = [0] * num_operators
        self.requeues: List[int] = [0] * num_operators
        self.timings: Dict[str, float] = {}  # operator name -> ms
        self._queued: List[bool] = [False] * num_operators

    def is_ready(self, op: Operator) -> bool:
        """
        Check whether every producer of ``op`` has delivered.

        Raises:
            ValidationError: If more deliveries arrived than ``op`` has
                input operands.
        """
        meets = self.meet_num[op.id]
        if meets > op.num_inputs():
            raise ValidationError(
                f"Operator '{op.name}' received {meets} deliveries "
                f"for {op.num_inputs()} inputs",
                parameter=op.name,
            )
        return meets == op.num_inputs()

    def deliver(self, op: Operator) -> bool:
        """Record one producer delivery to ``op`` and return its readiness."""
        self.meet_num[op.id] += 1
        ready = self.is_ready(op)
        if not ready:
            self.deferrals[op.id] += 1
        return ready

    def is_queued(self, op: Operator) -> bool:
        return self._queued[op.id]

    def mark_queued(self, op: Operator, queued: bool = True) -> None:
        self._queued[op.id] = queued

    def record_dispatch(self, op: Operator, elapsed_ms: float) -> None:
        self.dispatches[op.id] += 1
        self.timings[op.name] = elapsed_ms

    def reset(self) -> None:
        """Return every readiness counter to zero; statistics are kept."""
        self.meet_num = [0] * self.num_operators
        self._queued = [False] * self.num_operators

    @property
    def total_dispatches(self) -> int:
        return sum(self.dispatches)

    def __repr__(self) -> str:
        return (
            f"ExecutionContext(operators={self.num_operators}, "
            f"dispatches={self.total_dispatches}, "
            f"pending={sum(1 for m in self.meet_num if m)})"
        )
