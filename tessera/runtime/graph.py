# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Runtime Graph - load, build and run a model.

Lifecycle:
    NeedInit  --init()-->  NeedBuild  --build()-->  Complete

- init(): load the model files and build the operator arena
- build(): bind layers, resolve shapes, allocate every buffer
- forward(): one readiness-gated pass from input to output

Example:
    from tessera import RuntimeGraph

    graph = RuntimeGraph("resnet18.pnnx.param", "resnet18.pnnx.bin")
    graph.build("pnnx_input_0", "pnnx_output_0")
    outputs = graph.forward([np.ones((3, 224, 224), dtype=np.float32)])
"""

from __future__ import annotations

import time
from enum import IntEnum
from typing import Dict, List, Optional

import numpy as np

from ..adapters import BaseAdapter, PNNXAdapter, RawGraph
from ..config import RuntimeConfig
from ..core import Operator
from ..errors import GraphLoadError, GraphStateError
from ..execution import (
    DataflowScheduler,
    ExecutionContext,
    LayerRegistry,
    build_operators,
    resolve_input_tensors,
    resolve_output_tensors,
)
from ..observability import get_logger


class GraphState(IntEnum):
    """Build progress of a RuntimeGraph; comparable by order."""

    NeedInit = -2
    NeedBuild = -1
    Complete = 0


class RuntimeGraph:
    """
    An executable computation graph built from a model file pair.

    Args:
        param_path: Topology description path.
        bin_path: Weights archive path.
        adapter: Model loader; PNNXAdapter when omitted.
        config: Runtime configuration; RuntimeConfig() when omitted.
    """

    def __init__(
        self,
        param_path: str,
        bin_path: str,
        adapter: Optional[BaseAdapter] = None,
        config: Optional[RuntimeConfig] = None,
    ):
        self._param_path = param_path
        self._bin_path = bin_path
        self.adapter = adapter or PNNXAdapter()
        self.config = config or RuntimeConfig()
        self.config.validate()

        self._state = GraphState.NeedInit
        self._raw_graph: Optional[RawGraph] = None
        self._operators: List[Operator] = []
        self._input_operators: Dict[str, int] = {}
        self._output_operators: Dict[str, int] = {}
        self._input_name = ""
        self._output_name = ""
        self._scheduler: Optional[DataflowScheduler] = None
        self._logger = get_logger()

    @property
    def param_path(self) -> str:
        return self._param_path

    @param_path.setter
    def param_path(self, param_path: str) -> None:
        self._param_path = param_path

    @property
    def bin_path(self) -> str:
        return self._bin_path

    @bin_path.setter
    def bin_path(self, bin_path: str) -> None:
        self._bin_path = bin_path

    @property
    def state(self) -> GraphState:
        return self._state

    @property
    def operators(self) -> List[Operator]:
        return self._operators

    @property
    def input_operators(self) -> Dict[str, Operator]:
        return {name: self._operators[i] for name, i in self._input_operators.items()}

    @property
    def output_operators(self) -> Dict[str, Operator]:
        return {name: self._operators[i] for name, i in self._output_operators.items()}

    def get_operator(self, name: str) -> Optional[Operator]:
        """Get an operator by name."""
        for op in self._operators:
            if op.name == name:
                return op
        return None

    def init(self) -> bool:
        """
        Load the model files and build the operator arena.

        Returns:
            True once the graph is ready for build().

        Raises:
            GraphLoadError: Empty paths, unreadable files, or no operators.
            ValidationError: Unsupported dtypes or parameter type codes.
        """
        if not self._param_path or not self._bin_path:
            raise GraphLoadError(
                "the bin path or param path is empty",
                param_path=self._param_path,
                bin_path=self._bin_path,
            )

        raw_graph = self.adapter.load(self._param_path, self._bin_path)
        if not raw_graph.ops:
            raise GraphLoadError(
                "the model declares no operators",
                param_path=self._param_path,
                bin_path=self._bin_path,
            )

        self._raw_graph = raw_graph
        self._operators = build_operators(raw_graph)
        self._state = GraphState.NeedBuild
        self._logger.info(
            "Graph initialized",
            component="graph",
            adapter=self.adapter.name,
            operators=len(self._operators),
        )
        return True

    def build(self, input_name: str, output_name: str) -> None:
        """
        Bind layers and allocate every operand buffer.

        Runs init() first when the graph has not been initialized.

        Raises:
            GraphStateError: If there are no operators to build.
            UnsupportedOperationError: An operator type has no layer.
            LayerCreationError: A layer could not be created.
            ValidationError: Shape or dtype validation failed.
        """
        # Registers the built-in layers
        from ..execution import operators  # noqa: F401

        if self._state == GraphState.NeedInit:
            self.init()

        if not self._operators:
            raise GraphStateError(
                "graph operators are empty, the model may not be initialized",
                state=self._state.name,
            )

        self._input_operators.clear()
        self._output_operators.clear()
        for op in self._operators:
            if op.type == self.config.input_marker:
                self._input_operators[op.name] = op.id
            elif op.type == self.config.output_marker:
                self._output_operators[op.name] = op.id
            else:
                op.layer = LayerRegistry.create_layer(op)

        resolve_input_tensors(self._operators)
        resolve_output_tensors(self._raw_graph.ops, self._operators)

        self._input_name = input_name
        self._output_name = output_name
        self._scheduler = DataflowScheduler(
            self._operators, self._input_operators, self._output_operators
        )
        self._state = GraphState.Complete
        self._logger.info(
            "Graph built",
            component="graph",
            operators=len(self._operators),
            inputs=list(self._input_operators),
            outputs=list(self._output_operators),
        )

    def forward(
        self, inputs: List[np.ndarray], debug: Optional[bool] = None
    ) -> List[np.ndarray]:
        """
        Run one forward pass.

        Args:
            inputs: One tensor per batch sample for the input operator.
            debug: Time every layer and log a summary; defaults to
                ``config.debug``.

        Returns:
            Output tensors, one per batch sample.

        Raises:
            GraphStateError: If build() has not completed.
        """
        if self._state < GraphState.Complete:
            raise GraphStateError("graph needs to be built", state=self._state.name)
        if debug is None:
            debug = self.config.debug

        context = ExecutionContext(len(self._operators))
        start = time.perf_counter()
        outputs = self._scheduler.run(
            self._input_name, self._output_name, inputs, context, debug
        )
        if debug:
            total_ms = (time.perf_counter() - start) * 1000
            self._logger.forward_summary(context.timings, total_ms)
        return outputs

    def summary(self) -> str:
        """Get a summary of the graph state."""
        counts: Dict[str, int] = {}
        for op in self._operators:
            counts[op.type] = counts.get(op.type, 0) + 1

        lines = [
            "RuntimeGraph Summary",
            f"  Param: {self._param_path}",
            f"  Bin: {self._bin_path}",
            f"  State: {self._state.name}",
            f"  Operators: {len(self._operators)}",
            f"  Input: {self._input_name or '-'}",
            f"  Output: {self._output_name or '-'}",
            "  Operations:",
        ]
        for op_type, count in counts.items():
            lines.append(f"    {op_type}: {count}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"RuntimeGraph(param='{self._param_path}', "
            f"state={self._state.name}, operators={len(self._operators)})"
        )
