import math

import pytest

from nanikanizer.evaluator import Evaluator
from nanikanizer.functions import (
    absolute,
    cross_entropy,
    norm,
    norm_sq,
    relu,
    sigmoid,
    sqrt,
    square,
    tanh,
)
from nanikanizer.variable import Variable


def _run(fn, values, grad=None, **kwargs):
    x = Variable(values)
    ev = Evaluator(fn(x.expr(), **kwargs))
    result = ev.forward().copy()
    ev.backward(grad)
    return result, x.grad.copy()


def test_sigmoid():
    result, grad = _run(sigmoid, [0.0])
    assert result.size == 1
    assert result[0] == pytest.approx(0.5)
    assert grad.size == 1
    assert grad[0] == pytest.approx(0.25)


def test_tanh():
    result, grad = _run(tanh, [math.atanh(0.5)])
    assert result.size == 1
    assert result[0] == pytest.approx(0.5)
    assert grad[0] == pytest.approx(0.75)


def test_relu():
    result, grad = _run(relu, [-1.0, 1.0], [1.0, 1.0])
    assert result.tolist() == pytest.approx([0.0, 1.0])
    assert grad.tolist() == pytest.approx([0.0, 1.0])


def test_abs():
    result, grad = _run(absolute, [2.0, -3.0], [1.0, 1.0])
    assert result.tolist() == pytest.approx([2.0, 3.0])
    assert grad.tolist() == pytest.approx([1.0, -1.0])


def test_square():
    result, grad = _run(square, [3.0])
    assert result[0] == pytest.approx(9.0)
    assert grad[0] == pytest.approx(6.0)


def test_sqrt():
    result, grad = _run(sqrt, [9.0])
    assert result[0] == pytest.approx(3.0)
    assert grad[0] == pytest.approx(1.0 / 6.0)


def test_norm():
    result, grad = _run(norm, [2.0, 3.0])
    assert result.size == 1
    assert result[0] == pytest.approx(math.sqrt(13.0))
    assert grad.tolist() == pytest.approx([2.0 / math.sqrt(13.0), 3.0 / math.sqrt(13.0)])


def test_norm_sq():
    result, grad = _run(norm_sq, [2.0, 3.0])
    assert result.size == 1
    assert result[0] == pytest.approx(13.0)
    assert grad.tolist() == pytest.approx([4.0, 6.0])


def test_norm_sq_by_block():
    result, _ = _run(norm_sq, [2.0, 3.0, 2.0, 3.0], [1.0, 1.0], block_size=2)
    assert result.tolist() == pytest.approx([13.0, 13.0])


def test_cross_entropy_of_zero_is_zero():
    result, grad = _run(cross_entropy, [0.0])
    assert result[0] == pytest.approx(0.0)
    assert grad[0] == pytest.approx(1.0)


def test_cross_entropy_is_symmetric():
    pos, pos_grad = _run(cross_entropy, [0.5])
    neg, neg_grad = _run(cross_entropy, [-0.5])
    assert pos[0] == pytest.approx(neg[0])
    assert pos[0] > 0.0
    assert pos_grad[0] == pytest.approx(-neg_grad[0])


def test_cross_entropy_is_clamped():
    big, big_grad = _run(cross_entropy, [5.0])
    edge, edge_grad = _run(cross_entropy, [0.999])
    assert big[0] == pytest.approx(edge[0])
    assert big_grad[0] == pytest.approx(edge_grad[0])


def test_cross_entropy_sums_elements():
    both, _ = _run(cross_entropy, [0.3, -0.2])
    first, _ = _run(cross_entropy, [0.3])
    second, _ = _run(cross_entropy, [-0.2])
    assert both.size == 1
    assert both[0] == pytest.approx(first[0] + second[0])