import numpy
import pytest

import model
import weighting
from mpc_errors import ConfigurationError

system = model.LinearSystem(numpy.eye(3), numpy.ones((3, 2)), numpy.ones((1, 3)))


def test_per_channel_bounds_are_repeated():
    lower, upper = weighting.expand_bounds([-1, -2], [1, 2], 2, 3, 'Input')
    assert lower.tolist() == [-1, -2] * 3
    assert upper.tolist() == [1, 2] * 3


def test_full_horizon_bounds_are_kept():
    lower, upper = weighting.expand_bounds(numpy.arange(6), numpy.arange(6) + 1, 2, 3, 'Input')
    assert lower.tolist() == list(range(6))


@pytest.mark.parametrize('lower, upper', [
    ([-1, -1, -1], [1, 1, 1]),
    ([-1], [1, 1]),
    ([2, 0], [1, 1]),
])
def test_invalid_bounds(lower, upper):
    with pytest.raises(ConfigurationError):
        weighting.expand_bounds(lower, upper, 2, 3, 'Input')


def test_horizon_weights_are_block_diagonal():
    scheme = weighting.Weighted(1, numpy.diag([1, 2]), numpy.eye(3))
    W_u, W_x = scheme.horizon_weights(4)

    assert W_u.shape == (8, 8)
    assert W_x.shape == (12, 12)
    assert W_u.diagonal().tolist() == [1, 2] * 4


def test_scheme_flags():
    assert not weighting.Uniform(1, 1).bounded_inputs
    assert weighting.UniformBounded(1, 1, [0, 0], [1, 1]).bounded_inputs
    assert not weighting.WeightedBounded(1, numpy.eye(2), numpy.eye(3), [0, 0], [1, 1]).bounded_states

    scheme = weighting.WeightedStateBounded(
        1, numpy.eye(2), numpy.eye(3), [0, 0], [1, 1], numpy.zeros(3), numpy.ones(3)
    )
    assert scheme.bounded_inputs and scheme.bounded_states
    scheme.check_dimensions(system, 4)
