import numpy as np
import pytest

from chainnet.core.activations import (
    Elu,
    Linear,
    Relu,
    Sigmoid,
    activation_gradient_matrix,
    get_activator,
)


def test_sigmoid_values_and_gradient():
    sigmoid = Sigmoid()
    assert np.isclose(sigmoid.activation(0.0), 0.5)
    assert sigmoid.activation(10.0) > 0.99
    assert np.isclose(sigmoid.activation_gradient(0.0), 0.25)


def test_leaky_relu_gradient_at_zero_is_one():
    relu = Relu(leaky_gradient=0.1)
    x = np.array([-2.0, 0.0, 3.0])
    assert np.allclose(relu.activation(x), [-0.2, 0.0, 3.0])
    assert np.allclose(relu.activation_gradient(x), [0.1, 1.0, 1.0])


def test_elu_branches():
    elu = Elu()
    x = np.array([-1.0, 0.0, 2.0])
    assert np.allclose(elu.activation(x), [np.exp(-1.0) - 1.0, 0.0, 2.0])
    assert np.allclose(elu.activation_gradient(x), [np.exp(-1.0), 1.0, 1.0])


@pytest.mark.parametrize("activator", [Sigmoid(), Relu(0.01), Elu(), Linear()])
def test_gradient_matches_finite_difference(activator):
    x = np.array([-1.3, -0.2, 0.4, 1.7])
    eps = 1e-6
    numeric = (activator.activation(x + eps) - activator.activation(x - eps)) / (2 * eps)
    assert np.allclose(activator.activation_gradient(x), numeric, atol=1e-5)


def test_activation_gradient_matrix_is_diagonal():
    weighted = np.array([-1.0, 0.5, 2.0], dtype=np.float32)
    matrix = activation_gradient_matrix(Relu(0.5), weighted)
    assert matrix.shape == (3, 3)
    assert matrix.dtype == np.float32
    assert np.allclose(matrix, np.diag([0.5, 1.0, 1.0]))


def test_get_activator_resolves_names_and_options():
    relu = get_activator("relu", leaky_gradient=0.2)
    assert isinstance(relu, Relu)
    assert relu.leaky_gradient == 0.2
    with pytest.raises(KeyError, match="Available activators"):
        get_activator("tanh")
