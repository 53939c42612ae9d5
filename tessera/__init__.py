# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Tessera: dataflow inference runtime for PNNX models.

Loads a topology/weights file pair, builds an operator graph with
validated, pre-allocated tensor buffers, and runs forward passes with a
readiness-counted scheduler.

Example:
    import numpy as np
    import tessera

    graph = tessera.RuntimeGraph("model.pnnx.param", "model.pnnx.bin")
    graph.build("pnnx_input_0", "pnnx_output_0")
    outputs = graph.forward([np.ones((3, 4, 4), dtype=np.float32)])
"""

__version__ = "0.1.0"

from .core import (
    DataType,
    StatusCode,
    Status,
    Shape,
    ParameterType,
    Parameter,
    Operand,
    Attribute,
    Operator,
)

from .adapters import BaseAdapter, PNNXAdapter, RawGraph

from .execution import Layer, LayerRegistry, ExecutionContext

from .runtime import GraphState, RuntimeGraph

from .config import RuntimeConfig

# Observability
from .observability import set_verbosity, Verbosity

# Errors
from .errors import (
    TesseraError,
    GraphLoadError,
    GraphStateError,
    ValidationError,
    UnsupportedOperationError,
    LayerCreationError,
    KernelError,
    ConfigurationError,
)

__all__ = [
    # Core types
    "DataType",
    "StatusCode",
    "Status",
    "Shape",
    "ParameterType",
    "Parameter",
    "Operand",
    "Attribute",
    "Operator",
    # Adapters
    "BaseAdapter",
    "PNNXAdapter",
    "RawGraph",
    # Execution
    "Layer",
    "LayerRegistry",
    "ExecutionContext",
    # Runtime
    "GraphState",
    "RuntimeGraph",
    "RuntimeConfig",
    # Observability
    "set_verbosity",
    "Verbosity",
    # Errors
    "TesseraError",
    "GraphLoadError",
    "GraphStateError",
    "ValidationError",
    "UnsupportedOperationError",
    "LayerCreationError",
    "KernelError",
    "ConfigurationError",
    # Version
    "__version__",
]
