import numpy as np
import pytest

from nanikanizer.dropout import TrainFlag, dropout
from nanikanizer.evaluator import Evaluator
from nanikanizer.variable import Variable


def _inputs(size=200):
    return np.arange(1.0, size + 1.0)


def test_training_output_keeps_or_zeroes_each_element():
    values = _inputs()
    x = Variable(values)
    result = Evaluator(dropout(x.expr(), 0.5, TrainFlag(True))).forward()
    assert result.size == values.size
    assert np.all((result == 0.0) | (result == values))
    assert 0 < np.count_nonzero(result) < values.size


def test_training_gradient_follows_mask():
    values = _inputs()
    x = Variable(values)
    ev = Evaluator(dropout(x.expr(), 0.5, TrainFlag(True)))
    result = ev.forward().copy()
    ev.backward(np.ones(values.size))
    assert x.grad.tolist() == (result != 0.0).astype(float).tolist()


def test_ratio_zero_keeps_everything_while_training():
    values = _inputs()
    x = Variable(values)
    result = Evaluator(dropout(x.expr(), 0.0, TrainFlag(True))).forward()
    assert result.tolist() == values.tolist()


def test_ratio_one_drops_everything_while_training():
    x = Variable(_inputs())
    result = Evaluator(dropout(x.expr(), 1.0, TrainFlag(True))).forward()
    assert np.count_nonzero(result) == 0


def test_evaluation_scales_by_ratio():
    values = _inputs(10)
    x = Variable(values)
    ev = Evaluator(dropout(x.expr(), 0.25, TrainFlag(False)))
    assert ev.forward() == pytest.approx(values * 0.25)
    ev.backward(np.ones(10))
    assert x.grad == pytest.approx(np.full(10, 0.25))


def test_flag_is_shared_with_existing_node():
    values = _inputs()
    flag = TrainFlag(True)
    x = Variable(values)
    ev = Evaluator(dropout(x.expr(), 0.5, flag))
    trained = ev.forward().copy()
    assert np.count_nonzero(trained) < values.size
    flag.value = False
    assert ev.forward() == pytest.approx(values * 0.5)


def test_kept_fraction_is_close_to_one_minus_ratio():
    x = Variable(np.ones(20000))
    result = Evaluator(dropout(x.expr(), 0.3, TrainFlag(True))).forward()
    assert abs(np.count_nonzero(result) / result.size - 0.7) < 0.05


def test_missing_flag_is_rejected():
    x = Variable([1.0])
    with pytest.raises(TypeError):
        dropout(x.expr(), 0.5, None)


def test_train_flag_defaults_to_training():
    flag = TrainFlag()
    assert flag.value is True
    values = _inputs()
    x = Variable(values)
    result = Evaluator(dropout(x.expr(), 0.5, flag)).forward()
    assert np.count_nonzero(result) < values.size
    assert (TrainFlag(False).value, bool(flag)) == (False, True)