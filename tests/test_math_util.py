import numpy as np
import pytest

from nanikanizer.math_util import clamp, lerp, norm_sq, relu, sigmoid, square


@pytest.mark.parametrize("a, b", [(0.0, 1.0), (-2.5, 7.0), (3.0, 3.0)])
def test_lerp_endpoints(a, b):
    assert lerp(a, b, 0.0) == pytest.approx(a)
    assert lerp(a, b, 1.0) == pytest.approx(b)


def test_lerp_is_between_endpoints():
    value = lerp(-1.0, 5.0, 0.3)
    assert -1.0 < value < 5.0


def test_clamp_below_returns_lower_bound():
    assert clamp(-10.0, -0.999, 0.999) == -0.999


def test_clamp_above_returns_upper_bound():
    assert clamp(10.0, -0.999, 0.999) == 0.999


def test_clamp_inside_returns_value():
    assert clamp(0.25, -0.999, 0.999) == 0.25


def test_square_scalar():
    assert square(3.0) == pytest.approx(9.0)


def test_square_array_elementwise():
    values = np.array([2.0, -3.0])
    result = square(values)
    np.testing.assert_allclose(result, values * values)


def test_norm_sq():
    assert norm_sq([2.0, 3.0]) == pytest.approx(13.0)


def test_norm_sq_empty_is_zero():
    assert norm_sq([]) == 0.0


def test_relu_values():
    assert relu(-1.0) == pytest.approx(0.0)
    assert relu(1.0) == pytest.approx(1.0)


def test_sigmoid_at_zero():
    assert sigmoid(0.0) == pytest.approx(0.5)


@pytest.mark.parametrize("x", [0.1, 1.0, 4.0])
def test_sigmoid_symmetry(x):
    assert sigmoid(x) + sigmoid(-x) == pytest.approx(1.0)