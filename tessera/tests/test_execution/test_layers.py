# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Unit tests for the built-in layers and the layer registry.

Tests each layer against a NumPy reference computation.
"""

import numpy as np
import pytest

from tessera.core import Attribute, Operator, Parameter, ParameterType, Status, StatusCode
from tessera.errors import LayerCreationError, UnsupportedOperationError
from tessera.execution import Layer, LayerRegistry
from tessera.execution.operators.activation_ops import ReLU, SiLU, Sigmoid
from tessera.execution.operators.expression_ops import (
    Expression,
    evaluate,
    max_operand_index,
    parse_expression,
    tokenize,
)
from tessera.execution.operators.linear_ops import Linear


def _buffers(*arrays):
    return [np.asarray(a, dtype=np.float32) for a in arrays]


def _linear_op(weight, bias=None, in_features=None, out_features=None):
    op = Operator(name="fc", type="nn.Linear")
    rows, cols = weight.shape
    op.params["in_features"] = Parameter(ParameterType.Int, in_features or cols)
    op.params["out_features"] = Parameter(ParameterType.Int, out_features or rows)
    op.params["bias"] = Parameter(ParameterType.Bool, bias is not None)
    op.attributes["weight"] = Attribute(shape=list(weight.shape), weight_data=weight.tobytes())
    if bias is not None:
        op.attributes["bias"] = Attribute(shape=list(bias.shape), weight_data=bias.tobytes())
    return op


class TestActivations:
    def test_relu(self):
        x = np.array([[[-2.0, -0.5, 0.0, 3.0]]], dtype=np.float32)
        out = [np.zeros_like(x)]
        assert ReLU("relu").forward([x], out)
        np.testing.assert_array_equal(out[0], np.maximum(x, 0))

    def test_sigmoid(self):
        x = np.linspace(-4, 4, 8, dtype=np.float32).reshape(1, 8, 1)
        out = [np.zeros_like(x)]
        assert Sigmoid("sig").forward([x], out)
        np.testing.assert_allclose(out[0], 1 / (1 + np.exp(-x)), rtol=1e-5)

    def test_silu(self):
        x = np.linspace(-4, 4, 8, dtype=np.float32).reshape(1, 8, 1)
        out = [np.zeros_like(x)]
        assert SiLU("silu").forward([x], out)
        np.testing.assert_allclose(out[0], x / (1 + np.exp(-x)), rtol=1e-5)

    def test_batch(self):
        inputs = _buffers(np.full((1, 2, 1), -1.0), np.full((1, 2, 1), 2.0))
        outputs = [np.zeros((1, 2, 1), dtype=np.float32) for _ in range(2)]
        assert ReLU("relu").forward(inputs, outputs)
        assert outputs[0].sum() == 0
        assert outputs[1].sum() == 4

    def test_empty_inputs(self):
        status = ReLU("relu").forward([], [np.zeros((1, 1, 1), dtype=np.float32)])
        assert status.code == StatusCode.FailedInputEmpty

    def test_empty_outputs(self):
        status = ReLU("relu").forward(_buffers(np.zeros((1, 1, 1))), [])
        assert status.code == StatusCode.FailedOutputEmpty

    def test_count_mismatch(self):
        status = ReLU("relu").forward(
            _buffers(np.zeros((1, 1, 1)), np.zeros((1, 1, 1))),
            [np.zeros((1, 1, 1), dtype=np.float32)],
        )
        assert status.code == StatusCode.FailedInputOutputSizeMismatch

    def test_shape_mismatch(self):
        status = Sigmoid("sig").forward(
            _buffers(np.zeros((1, 2, 1))), [np.zeros((1, 3, 1), dtype=np.float32)]
        )
        assert status.code == StatusCode.FailedShapeMismatch


class TestLinear:
    def test_forward(self):
        weight = np.arange(6, dtype=np.float32).reshape(2, 3)
        bias = np.array([0.5, -0.5], dtype=np.float32)
        layer = LayerRegistry.create_layer(_linear_op(weight, bias))
        x = np.array([1.0, 2.0, 3.0], dtype=np.float32).reshape(1, 3, 1)
        out = [np.zeros((1, 2, 1), dtype=np.float32)]

        assert layer.forward([x], out)

        expected = (weight @ x.reshape(-1) + bias).reshape(1, 2, 1)
        np.testing.assert_allclose(out[0], expected)
        assert (layer.in_features, layer.out_features) == (3, 2)

    def test_no_bias(self):
        weight = np.eye(2, dtype=np.float32)
        layer = Linear.from_operator(_linear_op(weight))
        assert layer.bias is None

    def test_missing_param(self):
        op = _linear_op(np.eye(2, dtype=np.float32))
        del op.params["out_features"]
        with pytest.raises(LayerCreationError, match="out_features"):
            Linear.from_operator(op)

    def test_missing_weight(self):
        op = _linear_op(np.eye(2, dtype=np.float32))
        del op.attributes["weight"]
        with pytest.raises(LayerCreationError, match="missing 'weight'"):
            Linear.from_operator(op)

    def test_missing_bias_attribute(self):
        op = _linear_op(np.eye(2, dtype=np.float32))
        op.params["bias"] = Parameter(ParameterType.Bool, True)
        with pytest.raises(LayerCreationError, match="missing 'bias'"):
            Linear.from_operator(op)

    def test_weight_shape_mismatch(self):
        op = _linear_op(np.eye(2, dtype=np.float32), in_features=3)
        with pytest.raises(LayerCreationError, match="does not match"):
            Linear.from_operator(op)

    def test_truncated_weight_bytes(self):
        op = _linear_op(np.eye(2, dtype=np.float32))
        op.attributes["weight"].weight_data = b"\x00" * 4
        with pytest.raises(LayerCreationError):
            LayerRegistry.create_layer(op)

    def test_feature_mismatch(self):
        layer = Linear("fc", np.eye(2, dtype=np.float32))
        status = layer.forward(
            _buffers(np.zeros((1, 3, 1))), [np.zeros((1, 2, 1), dtype=np.float32)]
        )
        assert status.code == StatusCode.FailedShapeMismatch


class TestExpressionParsing:
    def test_tokenize(self):
        assert tokenize("add(@0, @1)") == ["add", "(", "@0", ",", "@1", ")"]

    def test_parse_nested(self):
        tree = parse_expression("add(@0,mul(@1,@2))")
        assert tree == ("add", 0, ("mul", 1, 2))
        assert max_operand_index(tree) == 2

    def test_evaluate(self):
        a, b, c = (np.full(3, v, dtype=np.float32) for v in (1.0, 2.0, 3.0))
        result = evaluate(parse_expression("sub(mul(@1,@2),@0)"), [a, b, c])
        np.testing.assert_array_equal(result, np.full(3, 5.0))

    @pytest.mark.parametrize(
        "expr", ["", "pow(@0,@1)", "add(@0)", "add(@0,@1", "add(@0,@1))", "@0 + @1"]
    )
    def test_invalid(self, expr):
        with pytest.raises(ValueError):
            parse_expression(expr)


class TestExpressionLayer:
    def _op(self, expr):
        op = Operator(name="expr", type="pnnx.Expression")
        op.params["expr"] = Parameter(ParameterType.String, expr)
        return op

    def test_batch_indexing(self):
        layer = LayerRegistry.create_layer(self._op("div(@0,@1)"))
        # batch 2: [a0, a1, b0, b1]
        inputs = _buffers(
            np.full((1, 2, 1), 6.0),
            np.full((1, 2, 1), 8.0),
            np.full((1, 2, 1), 2.0),
            np.full((1, 2, 1), 4.0),
        )
        outputs = [np.zeros((1, 2, 1), dtype=np.float32) for _ in range(2)]

        assert layer.forward(inputs, outputs)

        np.testing.assert_array_equal(outputs[0], np.full((1, 2, 1), 3.0))
        np.testing.assert_array_equal(outputs[1], np.full((1, 2, 1), 2.0))

    def test_same_operand_twice(self):
        layer = Expression("sq", "mul(@0,@0)")
        outputs = [np.zeros((1, 2, 1), dtype=np.float32)]
        assert layer.forward(_buffers(np.full((1, 2, 1), 3.0)), outputs)
        assert outputs[0].sum() == 18.0

    def test_missing_expr(self):
        op = Operator(name="expr", type="pnnx.Expression")
        with pytest.raises(LayerCreationError, match="'expr'"):
            LayerRegistry.create_layer(op)

    def test_bad_expr_wrapped(self):
        with pytest.raises(LayerCreationError, match="Unknown function"):
            LayerRegistry.create_layer(self._op("pow(@0,@1)"))

    def test_too_few_inputs(self):
        layer = Expression("e", "add(@0,@1)")
        status = layer.forward(
            _buffers(np.zeros((1, 2, 1))), [np.zeros((1, 2, 1), dtype=np.float32)]
        )
        assert status.code == StatusCode.FailedInputOutputSizeMismatch

    def test_operand_shape_mismatch(self):
        layer = Expression("e", "add(@0,@1)")
        status = layer.forward(
            _buffers(np.zeros((1, 2, 1)), np.zeros((1, 3, 1))),
            [np.zeros((1, 2, 1), dtype=np.float32)],
        )
        assert status.code == StatusCode.FailedShapeMismatch


class _Identity(Layer):
    def forward(self, inputs, outputs):
        for x, out in zip(inputs, outputs):
            out[...] = x
        return Status.Ok()


class TestLayerRegistry:
    @pytest.fixture(autouse=True)
    def cleanup(self):
        yield
        for op_type in ("test.Identity", "test.Alias", "test.Func", "test.Nothing", "test.Raise"):
            LayerRegistry.unregister(op_type)

    def test_builtins_registered(self):
        for op_type in ("nn.ReLU", "F.relu", "nn.Sigmoid", "F.sigmoid", "nn.SiLU",
                        "F.silu", "nn.Linear", "pnnx.Expression"):
            assert LayerRegistry.is_supported(op_type)

    def test_register_class_with_alias(self):
        LayerRegistry.register("test.Identity", aliases=["test.Alias"])(_Identity)
        layer = LayerRegistry.create_layer(Operator(name="id", type="test.Alias"))
        assert isinstance(layer, _Identity)
        assert layer.layer_name == "id"

    def test_register_function(self):
        @LayerRegistry.register("test.Func")
        def create(op):
            return _Identity(op.name.upper())

        layer = LayerRegistry.create_layer(Operator(name="f", type="test.Func"))
        assert layer.layer_name == "F"

    def test_creator_returns_none(self):
        LayerRegistry.register("test.Nothing")(lambda op: None)
        with pytest.raises(LayerCreationError, match="no layer"):
            LayerRegistry.create_layer(Operator(name="n", type="test.Nothing"))

    def test_creator_key_error_wrapped(self):
        def create(op):
            raise KeyError("weight")

        LayerRegistry.register("test.Raise")(create)
        with pytest.raises(LayerCreationError) as exc_info:
            LayerRegistry.create_layer(Operator(name="r", type="test.Raise"))
        assert exc_info.value.context["node_name"] == "r"

    def test_unsupported(self):
        with pytest.raises(UnsupportedOperationError) as exc_info:
            LayerRegistry.create_layer(Operator(name="c", type="nn.Conv2d"))
        assert exc_info.value.context["node_name"] == "c"

    def test_unregister_and_count(self):
        before = LayerRegistry.count()
        LayerRegistry.register("test.Identity")(_Identity)
        assert LayerRegistry.count() == before + 1
        LayerRegistry.unregister("test.Identity")
        assert not LayerRegistry.is_supported("test.Identity")

    def test_unsupported_ops(self):
        assert LayerRegistry.get_unsupported_ops(["nn.ReLU", "nn.Conv2d"]) == ["nn.Conv2d"]

    def test_list_sorted(self):
        ops = LayerRegistry.list_operators()
        assert ops == sorted(ops)
