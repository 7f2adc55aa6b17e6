import numpy

from mpc_errors import SizeError


def extract(stacked, N, width):
    """Splits a stacked vector :math:`[v_1; v_2; \\ldots; v_N]` into
    one sequence per channel

    Parameters
    ----------
    stacked : array-like
        Vector of length `N width`

    N : int
        Number of steps

    width : int
        Number of channels per step

    Returns
    -------
    channels : list of list of float
        `width` lists of length `N`; `channels[i][k]` is channel `i` at step `k`
    """
    stacked = numpy.asarray(stacked, dtype=float).ravel()
    if stacked.size != N * width:
        raise SizeError(f'Expected a vector of length {N * width}, got {stacked.size}')

    return stacked.reshape(N, width).T.tolist()


def stack(channels):
    """Inverse of :func:`extract`"""
    return numpy.asarray(channels, dtype=float).T.ravel()
