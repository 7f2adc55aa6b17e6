import numpy
import scipy.sparse
import pytest

from matrix_algebra import matrix_power, insert_block, stack_vertically
from mpc_errors import DimensionError, SizeError

M = numpy.array([[1., 0.1], [0., 1.]])


def test_matrix_power_zero_is_identity():
    assert numpy.array_equal(matrix_power(M, 0), numpy.eye(2))
    assert numpy.array_equal(matrix_power(scipy.sparse.csc_matrix(M), 0).toarray(), numpy.eye(2))


def test_matrix_power_dense_and_sparse_agree():
    expected = numpy.linalg.matrix_power(M, 5)
    assert matrix_power(M, 5) == pytest.approx(expected)

    sparse_result = matrix_power(scipy.sparse.csc_matrix(M), 5)
    assert scipy.sparse.issparse(sparse_result)
    assert sparse_result.toarray() == pytest.approx(expected)


def test_matrix_power_rejects_non_square():
    with pytest.raises(DimensionError):
        matrix_power(numpy.ones((2, 3)), 2)

    with pytest.raises(ValueError):
        matrix_power(M, -1)


def test_insert_block():
    target = scipy.sparse.lil_matrix((4, 5))
    block = scipy.sparse.csc_matrix([[1., 0.], [0., 2.]])

    insert_block(target, block, 2, 3)

    expected = numpy.zeros((4, 5))
    expected[2, 3] = 1
    expected[3, 4] = 2
    assert numpy.array_equal(target.toarray(), expected)


def test_insert_block_dense_target():
    target = numpy.zeros((3, 3))
    insert_block(target, numpy.array([[5., 6.]]), 1, 1)
    assert target[1].tolist() == [0., 5., 6.]


def test_insert_block_too_large_leaves_target_unmodified():
    target = scipy.sparse.lil_matrix((3, 3))
    target[0, 0] = 7.
    before = target.toarray()

    for row, col in [(2, 0), (0, 2), (2, 2), (-1, 0)]:
        with pytest.raises(SizeError):
            insert_block(target, numpy.ones((2, 2)), row, col)

    assert numpy.array_equal(target.toarray(), before)


def test_stack_vertically():
    upper = scipy.sparse.csc_matrix(numpy.eye(2))
    lower = numpy.array([[3., 4.]])

    stacked = stack_vertically(upper, lower)

    assert stacked.shape == (3, 2)
    assert stacked.toarray().tolist() == [[1., 0.], [0., 1.], [3., 4.]]


def test_stack_vertically_column_mismatch():
    with pytest.raises(DimensionError):
        stack_vertically(numpy.eye(2), numpy.eye(3))
