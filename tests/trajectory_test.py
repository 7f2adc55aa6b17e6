import numpy
import pytest

import trajectory
from mpc_errors import SizeError


def test_extract_channels():
    # Two channels over three steps, stacked step by step
    stacked = numpy.array([1., 10., 2., 20., 3., 30.])

    channels = trajectory.extract(stacked, 3, 2)

    assert channels == [[1., 2., 3.], [10., 20., 30.]]


def test_stack_is_inverse_of_extract():
    stacked = numpy.random.rand(12)
    assert numpy.array_equal(trajectory.stack(trajectory.extract(stacked, 4, 3)), stacked)


def test_extract_wrong_length():
    with pytest.raises(SizeError):
        trajectory.extract(numpy.zeros(5), 3, 2)
