import numpy as np
import pytest

from nanikanizer.node import ConstantNode, ExpressionNode, VariableNode


def test_expression_node_is_abstract():
    with pytest.raises(TypeError):
        ExpressionNode()


def test_constant_node_holds_value():
    node = ConstantNode([1.0, 2.0, 3.0])
    assert node.output.tolist() == [1.0, 2.0, 3.0]
    assert node.is_branch() is False
    assert list(node.children()) == []


def test_constant_node_forward_leaves_output_unchanged():
    node = ConstantNode([4.0, 5.0])
    node.forward()
    node.backward()
    assert node.output.tolist() == [4.0, 5.0]


def test_constant_node_scalar_becomes_one_element():
    node = ConstantNode(2.5)
    assert node.output.shape == (1,)
    assert node.output[0] == 2.5


def test_variable_node_copies_input():
    source = np.array([1.0, 2.0])
    node = VariableNode(source)
    source[0] = 100.0
    assert node.output[0] == 1.0


def test_variable_node_default_is_empty():
    node = VariableNode()
    assert node.output.size == 0
    assert node.is_branch() is False


def test_variable_node_keeps_float32():
    node = VariableNode(np.ones(3, dtype=np.float32))
    assert node.output.dtype == np.float32


def test_prepare_grads_matches_output_size():
    node = VariableNode([1.0, 2.0, 3.0])
    assert node.output_grad.size == 0
    node.prepare_grads()
    assert node.output_grad.size == node.output.size
    assert not node.output_grad.any()


def test_zero_grads_clears_values_and_keeps_size():
    node = VariableNode([1.0, 2.0])
    node.prepare_grads()
    node.output_grad += np.array([3.0, 4.0])
    node.zero_grads()
    assert node.output_grad.size == 2
    assert not node.output_grad.any()


def test_prepare_grads_keeps_existing_gradient_of_right_size():
    node = VariableNode([1.0, 2.0])
    node.prepare_grads()
    node.output_grad += np.array([7.0, 8.0])
    node.prepare_grads()
    assert node.output_grad.tolist() == [7.0, 8.0]