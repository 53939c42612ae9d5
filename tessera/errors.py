# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Tessera Error Hierarchy

Every failure that aborts a load, build or forward call is raised as a
TesseraError subclass carrying:
- A human-readable message
- Suggestions to fix the problem
- Context information for debugging

Error Categories:
- TesseraError: Base class for all Tessera errors
- GraphLoadError: Model files missing, unreadable or malformed
- GraphStateError: Lifecycle violations (forward before build)
- ValidationError: Shape, dtype, rank and type-code violations
- UnsupportedOperationError: No layer registered for an operator type
- LayerCreationError: A registered layer creator failed
- KernelError: A layer returned a non-success status
- ConfigurationError: Invalid configuration values
"""

from typing import Optional


class TesseraError(Exception):
    """
    Base class for all Tessera errors.

    Attributes:
        message: Human-readable error message
        suggestions: List of suggestions to fix the error
        context: Optional context dictionary for debugging
    """

    def __init__(
        self,
        message: str,
        suggestions: Optional[list[str]] = None,
        context: Optional[dict] = None,
    ):
        self.message = message
        self.suggestions = suggestions or []
        self.context = context or {}

        full_message = self._format_message()
        super().__init__(full_message)

    def _format_message(self) -> str:
        """Format the error message with suggestions."""
        lines = [self.message]

        if self.suggestions:
            lines.append("")
            lines.append("Suggestions:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"  {i}. {suggestion}")

        if self.context:
            lines.append("")
            lines.append("Context:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        return "\n".join(lines)


class GraphLoadError(TesseraError):
    """
    Error while loading a model description.

    Raised when:
    - The param or bin path is empty
    - A file cannot be read or is malformed
    - The loaded graph has no operators
    """

    def __init__(
        self,
        message: str,
        param_path: Optional[str] = None,
        bin_path: Optional[str] = None,
        line: Optional[int] = None,
    ):
        context = {}
        if param_path:
            context["param_path"] = param_path
        if bin_path:
            context["bin_path"] = bin_path
        if line is not None:
            context["line"] = line

        suggestions = [
            "Check that both the param and bin paths point to existing files",
            "Re-export the model with a compatible exporter",
        ]

        super().__init__(
            message=f"Graph load failed: {message}",
            suggestions=suggestions,
            context=context,
        )


class GraphStateError(TesseraError):
    """
    Lifecycle violation on a RuntimeGraph.

    Raised when forward() runs before build() has completed, or when
    build() finds no operators to bind.
    """

    def __init__(
        self,
        message: str,
        state: Optional[str] = None,
    ):
        context = {}
        if state:
            context["state"] = state

        suggestions = [
            "Call init() and build(input_name, output_name) before forward()",
        ]

        super().__init__(
            message=f"Graph state error: {message}",
            suggestions=suggestions,
            context=context,
        )


class ValidationError(TesseraError):
    """
    Graph or tensor validation error.

    Raised when:
    - Data types other than float32 are declared
    - Ranks other than 2 or 4 are declared
    - Batch sizes are dynamic
    - Buffers do not match their declared shapes
    - Type codes are not recognized
    """

    def __init__(
        self,
        message: str,
        parameter: Optional[str] = None,
        expected: Optional[str] = None,
        received: Optional[str] = None,
    ):
        context = {}
        if parameter:
            context["parameter"] = parameter
        if expected:
            context["expected"] = expected
        if received:
            context["received"] = received

        suggestions = [
            "Check the declared shapes and data types in the param file",
            "Only static batch sizes and float32 tensors are supported",
        ]

        super().__init__(
            message=f"Validation failed: {message}",
            suggestions=suggestions,
            context=context,
        )


class UnsupportedOperationError(TesseraError):
    """
    No layer is registered for an operator type.
    """

    def __init__(
        self,
        op_type: str,
        op_name: Optional[str] = None,
        supported_ops: Optional[list[str]] = None,
    ):
        self.op_type = op_type
        self.supported_ops = supported_ops or []

        context = {"operation": op_type}
        if op_name:
            context["node_name"] = op_name

        suggestions = [
            f"Register a layer for '{op_type}' with LayerRegistry.register",
        ]

        if supported_ops:
            similar = self._find_similar_ops(op_type, supported_ops)
            if similar:
                suggestions.insert(0, f"Try using: {', '.join(similar)}")

        super().__init__(
            message=f"Operation '{op_type}' is not supported",
            suggestions=suggestions,
            context=context,
        )

    @staticmethod
    def _find_similar_ops(op_type: str, supported_ops: list[str]) -> list[str]:
        """Find similar supported operations."""
        op_lower = op_type.lower()
        suffix = op_lower.rsplit(".", 1)[-1]
        similar = []
        for op in supported_ops:
            if suffix and suffix in op.lower():
                similar.append(op)
        return similar[:3]


class LayerCreationError(TesseraError):
    """
    A registered layer creator could not build a layer for an operator.

    Usually caused by missing or malformed parameters and weights.
    """

    def __init__(
        self,
        message: str,
        op_type: Optional[str] = None,
        op_name: Optional[str] = None,
    ):
        context = {}
        if op_type:
            context["operation"] = op_type
        if op_name:
            context["node_name"] = op_name

        suggestions = [
            "Check the operator's parameters and weight attributes",
        ]

        super().__init__(
            message=f"Layer creation failed: {message}",
            suggestions=suggestions,
            context=context,
        )


class KernelError(TesseraError):
    """
    A layer's forward call returned a failure status.
    """

    def __init__(
        self,
        message: str,
        layer_name: Optional[str] = None,
        op_name: Optional[str] = None,
        status_code: Optional[str] = None,
    ):
        context = {}
        if layer_name:
            context["layer"] = layer_name
        if op_name:
            context["node_name"] = op_name
        if status_code:
            context["status"] = status_code

        suggestions = [
            "Check that input shapes are valid for this layer",
            "Verify the operator's weights match its parameters",
        ]

        super().__init__(
            message=f"Layer forward failed: {message}",
            suggestions=suggestions,
            context=context,
        )


class ConfigurationError(TesseraError):
    """
    Configuration or setup error.
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[str] = None,
    ):
        context = {}
        if config_key:
            context["config_key"] = config_key
        if config_value:
            context["config_value"] = str(config_value)

        suggestions = [
            "Check configuration parameters",
            "Check the TESSERA_* environment variables",
        ]

        super().__init__(
            message=f"Configuration error: {message}",
            suggestions=suggestions,
            context=context,
        )


def format_shape_mismatch(
    expected_shape: tuple,
    actual_shape: tuple,
    tensor_name: Optional[str] = None,
) -> ValidationError:
    """Create a ValidationError for shape mismatch."""
    msg = f"Shape mismatch: expected {expected_shape}, got {actual_shape}"
    return ValidationError(
        message=msg,
        parameter=tensor_name or "tensor",
        expected=str(expected_shape),
        received=str(actual_shape),
    )


def format_dtype_mismatch(
    expected_dtype: str,
    actual_dtype: str,
    tensor_name: Optional[str] = None,
) -> ValidationError:
    """Create a ValidationError for dtype mismatch."""
    msg = f"Dtype mismatch: expected {expected_dtype}, got {actual_dtype}"
    return ValidationError(
        message=msg,
        parameter=tensor_name or "tensor",
        expected=expected_dtype,
        received=actual_dtype,
    )
