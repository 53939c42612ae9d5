# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Layer Registry

Maps operator type tags to layer creators.
Uses a decorator-based registration pattern for extensibility.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from ..errors import LayerCreationError, UnsupportedOperationError

if TYPE_CHECKING:
    from ..core.operator import Operator
    from .layer import Layer


# Signature: (op: Operator) -> Layer
LayerCreator = Callable[["Operator"], "Layer"]


class LayerRegistry:
    """
    Registry of layer creators keyed by operator type.

    Decorate either a Layer subclass (its ``from_operator`` becomes the
    creator) or a plain creator function.

    Example:
        @LayerRegistry.register("nn.ReLU", aliases=["F.relu"])
        class ReLU(UnaryLayer):
            ...

        layer = LayerRegistry.create_layer(op)
    """

    _registry: Dict[str, LayerCreator] = {}
    _metadata: Dict[str, Dict[str, Any]] = {}

    @classmethod
    def register(
        cls,
        op_type: str,
        aliases: Optional[List[str]] = None,
    ) -> Callable[[Any], Any]:
        """
        Decorator to register a layer for an operator type.

        Args:
            op_type: Operator type tag (e.g., "nn.ReLU").
            aliases: Alternative type tags for the same layer.
        """

        def decorator(target: Any) -> Any:
            creator = target.from_operator if isinstance(target, type) else target
            meta = {"creator": getattr(target, "__name__", repr(target))}
            for name in [op_type] + list(aliases or []):
                cls._registry[name] = creator
                cls._metadata[name] = meta
            return target

        return decorator

    @classmethod
    def create_layer(cls, op: "Operator") -> "Layer":
        """
        Create and return the layer for ``op``.

        Raises:
            UnsupportedOperationError: If ``op.type`` is not registered.
            LayerCreationError: If the creator fails or returns nothing.
        """
        if op.type not in cls._registry:
            raise UnsupportedOperationError(
                op.type, op_name=op.name, supported_ops=cls.list_operators()
            )
        creator = cls._registry[op.type]
        try:
            layer = creator(op)
        except LayerCreationError:
            raise
        except (KeyError, TypeError, ValueError) as err:
            raise LayerCreationError(str(err), op_type=op.type, op_name=op.name) from err
        if layer is None:
            raise LayerCreationError(
                "creator returned no layer", op_type=op.type, op_name=op.name
            )
        return layer

    @classmethod
    def is_supported(cls, op_type: str) -> bool:
        """Check if an operator type is registered."""
        return op_type in cls._registry

    @classmethod
    def list_operators(cls) -> List[str]:
        """List all registered operator types."""
        return sorted(cls._registry.keys())

    @classmethod
    def unregister(cls, op_type: str) -> None:
        """Remove a registration (for testing)."""
        cls._registry.pop(op_type, None)
        cls._metadata.pop(op_type, None)

    @classmethod
    def count(cls) -> int:
        """Get number of registered operator types."""
        return len(cls._registry)

    @classmethod
    def get_unsupported_ops(cls, op_types: List[str]) -> List[str]:
        """Return the operator types that have no registered layer."""
        return [op for op in op_types if not cls.is_supported(op)]
