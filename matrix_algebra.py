import numpy
import scipy.sparse

from mpc_errors import DimensionError, SizeError


def matrix_power(M, p):
    """Raises a square matrix to a non-negative integer power
    by repeated multiplication

    Parameters
    ----------
    M : {ndarray, scipy.sparse.spmatrix}
        Square matrix

    p : int
        The power. :math:`M^0` is the identity

    Returns
    -------
    Mp : {ndarray, scipy.sparse.csc_matrix}
        :math:`M^p`, sparse if `M` is sparse
    """
    if p < 0:
        raise ValueError(f'Power must be non-negative, got {p}')

    n, m = M.shape
    if n != m:
        raise DimensionError(f'Only square matrices can be raised to a power, got {M.shape}')

    if scipy.sparse.issparse(M):
        M = scipy.sparse.csc_matrix(M)
        result = scipy.sparse.identity(n, format='csc')
    else:
        M = numpy.asarray(M)
        result = numpy.eye(n)

    for _ in range(p):
        result = result @ M

    return result


def insert_block(target, block, row, col):
    """Copies the non-zero entries of `block` into `target` with the
    top left corner of the block at (`row`, `col`).

    The size is checked before anything is written,
    so `target` is left untouched if the block does not fit.

    Parameters
    ----------
    target : {scipy.sparse.lil_matrix, ndarray}
        Matrix that is written into in place

    block : {scipy.sparse.spmatrix, ndarray}
        The block to insert

    row, col : int
        Offset of the block in `target`
    """
    n_rows, n_cols = target.shape
    b_rows, b_cols = block.shape
    if row < 0 or col < 0 or row + b_rows > n_rows or col + b_cols > n_cols:
        raise SizeError(
            f'Block of shape {block.shape} at ({row}, {col}) does not fit in a {target.shape} matrix'
        )

    block = scipy.sparse.coo_matrix(block)
    if block.nnz == 0:
        return

    target[block.row + row, block.col + col] = block.data


def stack_vertically(upper, lower):
    """Returns the sparse matrix :math:`[upper; lower]`

    Parameters
    ----------
    upper, lower : {scipy.sparse.spmatrix, ndarray}
        Matrices with the same number of columns

    Returns
    -------
    stacked : scipy.sparse.csc_matrix
    """
    if upper.shape[1] != lower.shape[1]:
        raise DimensionError(
            f'Cannot stack a matrix with {lower.shape[1]} columns'
            f' below one with {upper.shape[1]} columns'
        )

    return scipy.sparse.vstack([upper, lower], format='csc')
