import numpy as np
import pytest

from chainnet.core.activations import Linear, Sigmoid
from chainnet.core.network import SimpleNetwork, chain
from chainnet.core.operations import Exp, Normalize, Softmax, TaxicabNormalize
from chainnet.training.losses import squared_error
from chainnet.training.optimizers import Adam
from chainnet.training.trainer import get_loss, train


def _numeric_input_gradient(op, x, weights, eps=1e-6):
    grad = np.zeros_like(x)
    for j in range(x.shape[0]):
        step = np.zeros_like(x)
        step[j] = eps
        grad[j] = (weights @ op.evaluate(x + step) - weights @ op.evaluate(x - step)) / (2 * eps)
    return grad


def test_exp_gradient_scales_with_loss_gradient():
    x = np.array([3.0])
    out, cached = Exp().evaluate_training(x, Sigmoid())
    assert np.isclose(out[0], np.exp(3.0))
    _, grad = Exp().get_gradient(cached, np.array([1.0]))
    assert np.isclose(grad[0], np.exp(3.0))
    _, grad = Exp().get_gradient(cached, np.array([5.0]))
    assert np.isclose(grad[0], 5.0 * np.exp(3.0))


def test_softmax_of_one_two_three():
    softmaxed = Softmax().evaluate(np.array([1.0, 2.0, 3.0]), Linear())
    assert np.allclose(softmaxed, [0.090031, 0.244728, 0.665241], atol=1e-4)
    assert np.isclose(softmaxed.sum(), 1.0)
    assert np.all(softmaxed >= 0)
    unit = Normalize().evaluate(softmaxed)
    assert abs(np.linalg.norm(unit) - 1.0) < 0.001


def test_chain_of_exp_and_taxicab_equals_softmax():
    x = np.array([0.5, -1.0, 2.0])
    composed = chain(Exp(), TaxicabNormalize()).evaluate(x, Linear())
    assert np.allclose(composed, Softmax().evaluate(x))


@pytest.mark.parametrize("op", [Exp(), Normalize(), TaxicabNormalize(), Softmax()])
def test_operation_gradients_match_finite_difference(op):
    x = np.array([0.7, 1.3, 2.1])
    weights = np.array([0.4, -1.2, 0.9])
    _, cached = op.evaluate_training(x)
    gradient, analytic = op.get_gradient(cached, weights)
    assert gradient == ()
    assert np.allclose(analytic, _numeric_input_gradient(op, x, weights), atol=1e-5)


def test_network_chained_with_softmax_trains():
    rng = np.random.default_rng(11)
    network = SimpleNetwork.random(2, 2, 4, 1, rng, dtype=np.float64)
    model = chain(network, Softmax())
    data = [
        (np.array([0.0, 0.0]), np.array([1.0, 0.0])),
        (np.array([1.0, 1.0]), np.array([0.0, 1.0])),
    ]
    activator = Sigmoid()
    optimizer = Adam(model.zero_gradient(), learning_rate=0.005)
    before = get_loss(data, model, activator, squared_error)
    for _ in range(10):
        train(data, model, activator, squared_error, optimizer)
    assert get_loss(data, model, activator, squared_error) < before
