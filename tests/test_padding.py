import pytest

from nanikanizer.evaluator import Evaluator
from nanikanizer.padding import padding_2d, padding_2d_sides
from nanikanizer.variable import Variable


def test_padding():
    x = Variable([1.0, 2.0, 3.0, 4.0, 5.0, 6.0])
    ev = Evaluator(padding_2d(x.expr(), 2, 3, 1, 2, 1))

    result = ev.forward()
    assert result.size == 30
    expected = [0.0] * 30
    expected[11:14] = [1.0, 2.0, 3.0]
    expected[16:19] = [4.0, 5.0, 6.0]
    assert result == pytest.approx(expected)

    ev.backward([1.0] * 30)
    assert x.grad.size == 6
    assert x.grad == pytest.approx([1.0] * 6)


def test_padding_value_fills_border():
    x = Variable([1.0])
    ev = Evaluator(padding_2d(x.expr(), 1, 1, 1, 1, 1, 7.0))
    assert ev.forward() == pytest.approx([7.0, 7.0, 7.0, 7.0, 1.0, 7.0, 7.0, 7.0, 7.0])


def test_padding_sides():
    x = Variable([1.0, 2.0])
    ev = Evaluator(padding_2d_sides(x.expr(), 1, 2, 1, 0, 1, 1, 0, -1.0))

    assert ev.forward() == pytest.approx([-1.0, 1.0, 2.0, -1.0, -1.0, -1.0])

    ev.backward([1.0, 2.0, 3.0, 4.0, 5.0, 6.0])
    assert x.grad == pytest.approx([2.0, 3.0])


def test_padding_batch_with_depth():
    x = Variable([1.0, 2.0, 3.0, 4.0])
    ev = Evaluator(padding_2d_sides(x.expr(), 1, 1, 2, 0, 1, 0, 0))
    assert ev.forward() == pytest.approx([0.0, 0.0, 1.0, 2.0, 0.0, 0.0, 3.0, 4.0])


def test_padding_rejects_negative():
    with pytest.raises(ValueError):
        padding_2d(Variable([1.0]).expr(), 1, 1, 1, -1, 0)


def test_padding_rejects_zero_dimension():
    with pytest.raises(ValueError):
        padding_2d(Variable([1.0]).expr(), 0, 1, 1, 1, 1)


def test_padding_rejects_partial_image():
    ev = Evaluator(padding_2d(Variable([1.0] * 5).expr(), 2, 3, 1, 1, 1))
    with pytest.raises(ValueError):
        ev.forward()