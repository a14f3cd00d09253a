import numpy as np
import pytest

from chainnet.core.activations import Elu, Relu, Sigmoid
from chainnet.core.network import SimpleNetwork
from chainnet.training.losses import squared_error
from chainnet.training.optimizers import Adam
from chainnet.training.trainer import get_loss, train

XOR = [
    (np.array([0.0, 0.0]), np.array([0.0])),
    (np.array([1.0, 0.0]), np.array([1.0])),
    (np.array([0.0, 1.0]), np.array([1.0])),
    (np.array([1.0, 1.0]), np.array([0.0])),
]


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_xor_loss_improves_with_default_adam(seed):
    network = SimpleNetwork.random(2, 1, 5, 1, np.random.default_rng(seed), dtype=np.float64)
    activator = Sigmoid()
    optimizer = Adam(network.zero_gradient())

    first_loss = get_loss(XOR, network, activator, squared_error)
    for _ in range(10):
        train(XOR, network, activator, squared_error, optimizer)
    last_loss = get_loss(XOR, network, activator, squared_error)

    assert last_loss < first_loss


@pytest.mark.parametrize("activator", [Relu(leaky_gradient=0.01), Elu()])
def test_long_run_does_not_regress(activator):
    network = SimpleNetwork.random(2, 1, 5, 1, np.random.default_rng(7), dtype=np.float32)
    optimizer = Adam(network.zero_gradient())
    first_loss = get_loss(XOR, network, activator, squared_error)
    for _ in range(200):
        train(XOR, network, activator, squared_error, optimizer)
    assert get_loss(XOR, network, activator, squared_error) <= first_loss


def test_parameters_keep_their_dtype_through_training():
    network = SimpleNetwork.random(2, 1, 3, 0, np.random.default_rng(5), dtype=np.float32)
    optimizer = Adam(network.zero_gradient())
    for _ in range(3):
        train(XOR, network, Sigmoid(), squared_error, optimizer)
    for layer in network.layers:
        assert layer.weight.dtype == np.float32
        assert layer.bias.dtype == np.float32


def test_same_seed_same_training_trajectory():
    losses = []
    for _ in range(2):
        network = SimpleNetwork.random(2, 1, 4, 2, np.random.default_rng(42), dtype=np.float64)
        optimizer = Adam(network.zero_gradient(), learning_rate=0.01)
        losses.append([train(XOR, network, Sigmoid(), squared_error, optimizer) for _ in range(5)])
    assert losses[0] == losses[1]
