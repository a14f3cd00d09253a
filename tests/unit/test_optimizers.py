import numpy as np
import pytest

from chainnet.core import valueset
from chainnet.core.network import SimpleNetwork
from chainnet.training.optimizers import SGD, Adam, build_optimizer


def _gradient():
    network = SimpleNetwork.random(2, 1, 3, 1, np.random.default_rng(0), dtype=np.float64)
    rng = np.random.default_rng(1)
    return network.zero_gradient().unary_operation(lambda x: rng.uniform(-1, 1, size=np.shape(x)))


def test_first_adam_step_follows_negative_gradient_sign():
    gradient = _gradient()
    optimizer = Adam(valueset.zeros_like(gradient))
    step = optimizer.transform(gradient)
    signs = []
    valueset.binary_inspection(step, gradient, lambda s, g: signs.append(np.sign(s) == -np.sign(g)))
    assert all(signs)
    # on step one the bias-corrected ratio is g / |g|, so every entry moves by the learning rate
    magnitudes = []
    valueset.unary_inspection(step, lambda s: magnitudes.append(abs(s)))
    assert np.allclose(magnitudes, 0.001)


def test_adam_defaults_and_accumulated_powers():
    optimizer = Adam(np.zeros(3))
    assert (optimizer.learning_rate, optimizer.momentum_mixer, optimizer.velocity_mixer) == (
        0.001,
        0.9,
        0.999,
    )
    assert optimizer.accumulated_momentum == 0.9
    optimizer.transform(np.array([1.0, -1.0, 0.5]))
    optimizer.transform(np.array([1.0, -1.0, 0.5]))
    assert optimizer.accumulated_momentum == pytest.approx(0.9**3)
    assert optimizer.accumulated_velocity == pytest.approx(0.999**3)
    assert optimizer.steps == 2


def test_adam_matches_reference_update():
    optimizer = Adam(np.zeros(2), learning_rate=0.1, momentum_mixer=0.5, velocity_mixer=0.75)
    g1, g2 = np.array([2.0, -1.0]), np.array([1.0, 3.0])
    optimizer.transform(g1)
    step = optimizer.transform(g2)

    m = 0.5 * (0.5 * g1) + 0.5 * g2
    v = 0.75 * (0.25 * g1**2) + 0.25 * g2**2
    m_hat = m / (1 - 0.5**2)
    v_hat = v / (1 - 0.75**2)
    assert np.allclose(step, -0.1 * m_hat / np.sqrt(v_hat))


def test_zero_gradient_gives_zero_step():
    optimizer = Adam(np.zeros(2, dtype=np.float32))
    step = optimizer.transform(np.zeros(2, dtype=np.float32))
    assert step.dtype == np.float32
    assert np.all(np.isfinite(step))
    assert np.allclose(step, 0.0)


def test_invalid_hyperparameters_rejected():
    with pytest.raises(ValueError):
        Adam(np.zeros(1), learning_rate=0.0)
    with pytest.raises(ValueError):
        Adam(np.zeros(1), momentum_mixer=1.0)


def test_sgd_and_builder():
    sgd = build_optimizer("sgd", np.zeros(2), lr=0.5)
    assert isinstance(sgd, SGD)
    assert np.allclose(sgd.transform(np.array([1.0, -2.0])), [-0.5, 1.0])
    assert isinstance(build_optimizer("ADAM", np.zeros(2)), Adam)
    with pytest.raises(ValueError):
        build_optimizer("rmsprop", np.zeros(2))
