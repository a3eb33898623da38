import numpy as np
import pytest

from nanikanizer.evaluator import Evaluator
from nanikanizer.expression import (
    BinaryOperatorNode,
    Expression,
    UnaryOperatorNode,
    add,
    divide,
    multiply,
    negate,
    subtract,
)
from nanikanizer.node import ConstantNode
from nanikanizer.variable import Variable


def test_negate():
    x = Variable([2.0])
    y = -x.expr()
    ev = Evaluator(y)
    result = ev.forward()
    assert result.size == 1
    assert result[0] == pytest.approx(-2.0)
    ev.backward()
    assert x.grad.size == 1
    assert x.grad[0] == pytest.approx(-1.0)


def test_add():
    x1 = Variable([1.0])
    x2 = Variable([2.0])
    ev = Evaluator(x1.expr() + x2.expr())
    result = ev.forward()
    assert result.size == 1
    assert result[0] == pytest.approx(3.0)
    ev.backward()
    assert x1.grad[0] == pytest.approx(1.0)
    assert x2.grad[0] == pytest.approx(1.0)


def test_subtract():
    x1 = Variable([1.0])
    x2 = Variable([2.0])
    ev = Evaluator(x1.expr() - x2.expr())
    result = ev.forward()
    assert result[0] == pytest.approx(-1.0)
    ev.backward()
    assert x1.grad[0] == pytest.approx(1.0)
    assert x2.grad[0] == pytest.approx(-1.0)


def test_multiply():
    x1 = Variable([2.0])
    x2 = Variable([3.0])
    ev = Evaluator(x1.expr() * x2.expr())
    result = ev.forward()
    assert result[0] == pytest.approx(6.0)
    ev.backward()
    assert x1.grad[0] == pytest.approx(3.0)
    assert x2.grad[0] == pytest.approx(2.0)


def test_divide():
    x1 = Variable([2.0])
    x2 = Variable([3.0])
    ev = Evaluator(x1.expr() / x2.expr())
    result = ev.forward()
    assert result[0] == pytest.approx(2.0 / 3.0)
    ev.backward()
    assert x1.grad[0] == pytest.approx(1.0 / 3.0)
    assert x2.grad[0] == pytest.approx(-2.0 / 9.0)


def test_module_functions_match_operators():
    x1 = Variable([2.0])
    x2 = Variable([3.0])
    pairs = [
        (add(x1.expr(), x2.expr()), x1.expr() + x2.expr()),
        (subtract(x1.expr(), x2.expr()), x1.expr() - x2.expr()),
        (multiply(x1.expr(), x2.expr()), x1.expr() * x2.expr()),
        (divide(x1.expr(), x2.expr()), x1.expr() / x2.expr()),
        (negate(x1.expr()), -x1.expr()),
    ]
    for left, right in pairs:
        assert Evaluator(left).forward()[0] == pytest.approx(Evaluator(right).forward()[0])


def test_scalar_on_the_left():
    x = Variable([2.0])
    ev = Evaluator(1.0 - x.expr())
    assert ev.forward()[0] == pytest.approx(-1.0)
    ev.backward()
    assert x.grad[0] == pytest.approx(-1.0)


def test_scalar_division_on_the_left():
    x = Variable([2.0])
    ev = Evaluator(3.0 / x.expr())
    assert ev.forward()[0] == pytest.approx(1.5)
    ev.backward()
    assert x.grad[0] == pytest.approx(-0.75)


def test_smaller_operand_is_repeated_and_gradient_folded():
    a = Variable([1.0])
    b = Variable([1.0, 2.0, 3.0])
    ev = Evaluator(a.expr() + b.expr())
    np.testing.assert_allclose(ev.forward(), [2.0, 3.0, 4.0])
    ev.backward([1.0, 1.0, 1.0])
    np.testing.assert_allclose(a.grad, [3.0])
    np.testing.assert_allclose(b.grad, [1.0, 1.0, 1.0])


def test_block_repeated_on_the_right():
    a = Variable([1.0, 2.0, 3.0, 4.0])
    b = Variable([10.0, 20.0])
    ev = Evaluator(a.expr() * b.expr())
    np.testing.assert_allclose(ev.forward(), [10.0, 40.0, 30.0, 80.0])
    ev.backward([1.0, 1.0, 1.0, 1.0])
    np.testing.assert_allclose(a.grad, [10.0, 20.0, 10.0, 20.0])
    np.testing.assert_allclose(b.grad, [4.0, 6.0])


def test_incompatible_sizes_raise():
    a = Variable([1.0, 2.0])
    b = Variable([1.0, 2.0, 3.0])
    ev = Evaluator(a.expr() + b.expr())
    with pytest.raises(ValueError):
        ev.forward()


def test_default_expression_is_zero():
    assert Expression().output.tolist() == [0.0]


def test_expression_from_values_is_constant():
    e = Expression([1.0, 2.0])
    assert isinstance(e.root, ConstantNode)
    assert e.output.tolist() == [1.0, 2.0]


def test_equality_is_node_identity():
    x = Variable([1.0])
    assert (x.expr() == x.expr()) is True
    assert (Expression([1.0]) == Expression([1.0])) is False
    assert len({x.expr(), x.expr(), Expression([1.0])}) == 2


def test_unary_plus_returns_same_expression():
    e = Expression([1.0])
    assert (+e) is e


def test_operator_nodes_report_children():
    a = Expression([1.0])
    b = Expression([2.0])
    node = (a + b).root
    assert isinstance(node, BinaryOperatorNode)
    assert node.is_branch() is True
    assert list(node.children()) == [a.root, b.root]
    neg = (-a).root
    assert isinstance(neg, UnaryOperatorNode)
    assert list(neg.children()) == [a.root]