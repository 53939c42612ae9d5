# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Tessera Runtime

RuntimeGraph ties the loader, builder, shape resolver, layer registry and
scheduler together behind the init/build/forward lifecycle.
"""

from .graph import GraphState, RuntimeGraph

__all__ = [
    "GraphState",
    "RuntimeGraph",
]
