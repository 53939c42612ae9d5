# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Tessera Execution Engine

Components:
- build_operators: RawGraph -> operator arena with wired consumer edges
- resolve_input_tensors / resolve_output_tensors: shape validation and
  buffer allocation
- Layer / LayerRegistry: computation units keyed by operator type
- ExecutionContext: per-forward readiness counters
- DataflowScheduler: readiness-gated forward pass
"""

from .builder import build_operators, wire_consumers
from .shape_resolver import resolve_input_tensors, resolve_output_tensors
from .layer import Layer
from .registry import LayerRegistry
from .context import ExecutionContext
from .scheduler import DataflowScheduler, copy_tensors

__all__ = [
    "build_operators",
    "wire_consumers",
    "resolve_input_tensors",
    "resolve_output_tensors",
    "Layer",
    "LayerRegistry",
    "ExecutionContext",
    "DataflowScheduler",
    "copy_tensors",
]
