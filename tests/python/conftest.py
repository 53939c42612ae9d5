# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Pytest configuration for Tessera Python tests.
"""

import io
import sys
import zipfile
from pathlib import Path

import numpy as np
import pytest

# Add the project root to sys.path so we can import tessera
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from tessera.adapters import RawGraph  # noqa: E402
from tessera.observability import TesseraLogger  # noqa: E402

# Skip test modules that require optional dependencies not installed
collect_ignore = []

try:
    import hypothesis  # noqa: F401
except ImportError:
    collect_ignore.append("test_property_based.py")


def make_chain_graph(shape=(1, 3, 4, 4), layer_type="nn.ReLU") -> RawGraph:
    """pnnx_input_0 -> relu -> pnnx_output_0"""
    graph = RawGraph()
    inp = graph.new_operator("pnnx.Input", "pnnx_input_0")
    layer = graph.new_operator(layer_type, "relu")
    out = graph.new_operator("pnnx.Output", "pnnx_output_0")
    graph.connect(inp, [layer], list(shape), name="0")
    graph.connect(layer, [out], list(shape), name="1")
    return graph


def _write_model(directory: Path, lines, weights=None, name="model"):
    param_path = directory / f"{name}.pnnx.param"
    bin_path = directory / f"{name}.pnnx.bin"
    header = ["7767517", f"{len(lines)} {len(lines) + 1}"]
    param_path.write_text("\n".join(header + list(lines)) + "\n", encoding="utf-8")

    with zipfile.ZipFile(bin_path, "w") as archive:
        for entry, array in (weights or {}).items():
            archive.writestr(entry, np.asarray(array, dtype="<f4").tobytes())
    return str(param_path), str(bin_path)


RELU_CHAIN_LINES = [
    "pnnx.Input pnnx_input_0 0 1 0 #0=(1,3,4,4)f32",
    "nn.ReLU relu 1 1 0 1 #0=(1,3,4,4)f32 #1=(1,3,4,4)f32",
    "pnnx.Output pnnx_output_0 1 0 1 #1=(1,3,4,4)f32",
]

LINEAR_LINES = [
    "pnnx.Input pnnx_input_0 0 1 0 #0=(2,4)f32",
    "nn.Linear fc 1 1 0 1 bias=True in_features=4 out_features=3 "
    "@bias=(3)f32 @weight=(3,4)f32 #0=(2,4)f32 #1=(2,3)f32",
    "pnnx.Output pnnx_output_0 1 0 1 #1=(2,3)f32",
]


@pytest.fixture(autouse=True)
def quiet_logger():
    """Route log output to a buffer and restore the singleton afterwards."""
    TesseraLogger.reset()
    buffer = io.StringIO()
    TesseraLogger.get().set_output(buffer)
    yield buffer
    TesseraLogger.reset()


@pytest.fixture
def chain_graph():
    return make_chain_graph()


@pytest.fixture
def make_chain():
    """Factory: input -> layer -> output RawGraph of a given shape."""
    return make_chain_graph


@pytest.fixture
def write_model(tmp_path):
    """Factory: write a PNNX param/bin pair and return the two paths."""

    def _write(lines, weights=None, name="model"):
        return _write_model(tmp_path, lines, weights, name)

    return _write


@pytest.fixture
def relu_model(write_model):
    return write_model(RELU_CHAIN_LINES)


@pytest.fixture
def linear_lines():
    return list(LINEAR_LINES)


@pytest.fixture
def linear_model(write_model):
    """fc: 4 -> 3 with weight arange(12) and bias of ones."""
    weight = np.arange(12, dtype=np.float32).reshape(3, 4)
    bias = np.ones(3, dtype=np.float32)
    return write_model(LINEAR_LINES, {"fc.weight": weight, "fc.bias": bias})
