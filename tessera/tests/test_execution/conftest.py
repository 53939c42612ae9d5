# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Fixtures for scheduler and runtime graph tests.
"""

import io

import numpy as np
import pytest

from tessera.adapters import BaseAdapter, RawGraph
from tessera.core import Status, StatusCode
from tessera.execution import Layer, LayerRegistry
from tessera.execution import operators  # noqa: F401
from tessera.observability import TesseraLogger


class StaticAdapter(BaseAdapter):
    """Adapter returning a prebuilt RawGraph."""

    name = "static"

    def __init__(self, raw_graph: RawGraph):
        self.raw_graph = raw_graph
        self.calls = 0

    def load(self, param_path, bin_path):
        self.calls += 1
        return self.raw_graph


class RecordingLayer(Layer):
    """Sums its inputs sample-wise and records every call."""

    calls = []

    def forward(self, inputs, outputs):
        RecordingLayer.calls.append((self.layer_name, [x.copy() for x in inputs]))
        batch = len(outputs)
        for j, out in enumerate(outputs):
            out[...] = sum(inputs[i] for i in range(j, len(inputs), batch))
        return Status.Ok()


class FailingLayer(Layer):
    def forward(self, inputs, outputs):
        return Status.Error(StatusCode.FailedShapeMismatch, "")


@pytest.fixture(autouse=True)
def quiet_logger():
    TesseraLogger.reset()
    buffer = io.StringIO()
    TesseraLogger.get().set_output(buffer)
    yield buffer
    TesseraLogger.reset()


@pytest.fixture
def recording_layer():
    """Register test.Record and test.Fail for the duration of a test."""
    RecordingLayer.calls = []
    LayerRegistry.register("test.Record")(RecordingLayer)
    LayerRegistry.register("test.Fail")(FailingLayer)
    yield RecordingLayer
    LayerRegistry.unregister("test.Record")
    LayerRegistry.unregister("test.Fail")


@pytest.fixture
def static_adapter():
    return StaticAdapter


@pytest.fixture
def chain():
    """Factory: pnnx_input_0 -> <layer_type> -> pnnx_output_0."""

    def _chain(shape=(1, 3, 4, 4), layer_type="nn.ReLU"):
        graph = RawGraph()
        inp = graph.new_operator("pnnx.Input", "pnnx_input_0")
        layer = graph.new_operator(layer_type, "layer")
        out = graph.new_operator("pnnx.Output", "pnnx_output_0")
        graph.connect(inp, [layer], list(shape), name="0")
        graph.connect(layer, [out], list(shape), name="1")
        return graph

    return _chain


@pytest.fixture
def merge():
    """
    Factory: two branches joined by one merge operator.

        pnnx_input_0 -> a -> merge -> pnnx_output_0
                     -> b ->
    """

    def _merge(shape=(2, 4), branch_type="nn.ReLU", merge_type="test.Record"):
        graph = RawGraph()
        inp = graph.new_operator("pnnx.Input", "pnnx_input_0")
        a = graph.new_operator(branch_type, "a")
        b = graph.new_operator(branch_type, "b")
        merge_op = graph.new_operator(merge_type, "merge")
        out = graph.new_operator("pnnx.Output", "pnnx_output_0")
        graph.connect(inp, [a, b], list(shape), name="0")
        graph.connect(a, [merge_op], list(shape), name="1")
        graph.connect(b, [merge_op], list(shape), name="2")
        graph.connect(merge_op, [out], list(shape), name="3")
        return graph

    return _merge


def samples(shape, value=1.0):
    """Per-sample input tensors for a declared shape."""
    dims = list(shape)
    sample = (dims[1], dims[2], dims[3]) if len(dims) == 4 else (1, dims[1], 1)
    return [np.full(sample, value, dtype=np.float32) for _ in range(dims[0])]


@pytest.fixture
def make_inputs():
    return samples
