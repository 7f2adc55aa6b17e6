"""Weighting and constraint choices for the MPC cost.

Exactly one scheme is handed to :class:`controller.MPC`, which selects
the matching QP assembly once at construction.
"""
import numpy
import scipy.sparse

from mpc_errors import ConfigurationError


def _as_sparse(m):
    if scipy.sparse.issparse(m):
        return scipy.sparse.csc_matrix(m, dtype=float)
    return scipy.sparse.csc_matrix(numpy.atleast_2d(numpy.asarray(m, dtype=float)))


def expand_bounds(lower, upper, width, N, name):
    """Returns the lower and upper bounds over the whole horizon.

    Bounds may be given per channel (length `width`), in which case they
    are repeated for every step, or for the whole horizon (length `N width`).

    Parameters
    ----------
    lower, upper : array-like
        Bound vectors

    width : int
        Number of channels in a single step

    N : int
        Prediction horizon

    name : str
        Name used in error messages

    Returns
    -------
    lower, upper : ndarray
        Arrays of length `N width`
    """
    lower = numpy.asarray(lower, dtype=float).ravel()
    upper = numpy.asarray(upper, dtype=float).ravel()

    if lower.size != upper.size:
        raise ConfigurationError(
            f'{name} lower and upper bounds differ in length: {lower.size} and {upper.size}'
        )

    if lower.size == width:
        lower, upper = numpy.tile(lower, N), numpy.tile(upper, N)
    elif lower.size != N * width:
        raise ConfigurationError(
            f'{name} bounds must have length {width} or {N * width}, got {lower.size}'
        )

    if numpy.any(lower > upper):
        raise ConfigurationError(f'{name} lower bounds exceed upper bounds')

    return lower, upper


class WeightingScheme:
    """Base class for the cost weighting and constraint variants"""
    bounded_inputs = False
    bounded_states = False

    def check_dimensions(self, linear_system, N):
        raise NotImplementedError


class Uniform(WeightingScheme):
    r"""Scalar weighting without constraints

    .. math::
        \min_U Q \|Y - Y_d\|^2 + R \|U\|^2

    Parameters
    ----------
    Q, R : float
        Output tracking and input effort weights
    """
    def __init__(self, Q, R):
        self.Q = float(Q)
        self.R = float(R)

    def check_dimensions(self, linear_system, N):
        if self.Q < 0 or self.R < 0:
            raise ConfigurationError(f'Weights must be non-negative, got Q={self.Q}, R={self.R}')


class UniformBounded(Uniform):
    """Scalar weighting with box bounds on the inputs

    Parameters
    ----------
    Q, R : float
        Output tracking and input effort weights

    u_lower, u_upper : array-like
        Input bounds, per input or over the whole horizon
    """
    bounded_inputs = True

    def __init__(self, Q, R, u_lower, u_upper):
        super().__init__(Q, R)
        self.u_lower = u_lower
        self.u_upper = u_upper

    def check_dimensions(self, linear_system, N):
        super().check_dimensions(linear_system, N)
        self.check_bounds_dimensions(linear_system, N)

    def check_bounds_dimensions(self, linear_system, N):
        return expand_bounds(self.u_lower, self.u_upper, linear_system.Ni, N, 'Input')


class Weighted(WeightingScheme):
    r"""Matrix weighting of inputs and states without constraints

    .. math::
        \min_U W_y \|Y - Y_d\|^2 + \|W_u U\|^2 + \|W_x X\|^2

    where :math:`W_u` and :math:`W_x` repeat `w_u` and `w_x` along
    the block diagonal for every step in the horizon.

    Parameters
    ----------
    W_y : float
        Output tracking weight

    w_u : array-like
        (Ni x Ni) input weight for a single step

    w_x : array-like
        (Nx x Nx) state weight for a single step
    """
    def __init__(self, W_y, w_u, w_x):
        self.W_y = float(W_y)
        self.w_u = _as_sparse(w_u)
        self.w_x = _as_sparse(w_x)

    def check_dimensions(self, linear_system, N):
        self.check_weight_dimensions(linear_system)

    def check_weight_dimensions(self, linear_system):
        if self.W_y < 0:
            raise ConfigurationError(f'W_y must be non-negative, got {self.W_y}')

        Ni, Nx = linear_system.Ni, linear_system.Nx
        if self.w_u.shape != (Ni, Ni):
            raise ConfigurationError(f'w_u must be {(Ni, Ni)}, got {self.w_u.shape}')

        if self.w_x.shape != (Nx, Nx):
            raise ConfigurationError(f'w_x must be {(Nx, Nx)}, got {self.w_x.shape}')

    def horizon_weights(self, N):
        """Returns the block diagonal :math:`W_u` and :math:`W_x`"""
        W_u = scipy.sparse.kron(scipy.sparse.eye(N), self.w_u, format='csc')
        W_x = scipy.sparse.kron(scipy.sparse.eye(N), self.w_x, format='csc')
        return W_u, W_x


class WeightedBounded(Weighted):
    """Matrix weighting with box bounds on the inputs

    Parameters
    ----------
    W_y : float
        Output tracking weight

    w_u, w_x : array-like
        Input and state weights for a single step

    u_lower, u_upper : array-like
        Input bounds, per input or over the whole horizon
    """
    bounded_inputs = True

    def __init__(self, W_y, w_u, w_x, u_lower, u_upper):
        super().__init__(W_y, w_u, w_x)
        self.u_lower = u_lower
        self.u_upper = u_upper

    def check_dimensions(self, linear_system, N):
        super().check_dimensions(linear_system, N)
        self.check_bounds_dimensions(linear_system, N)

    def check_bounds_dimensions(self, linear_system, N):
        return expand_bounds(self.u_lower, self.u_upper, linear_system.Ni, N, 'Input')


class WeightedStateBounded(WeightedBounded):
    """Matrix weighting with box bounds on the inputs and the predicted states

    Parameters
    ----------
    W_y : float
        Output tracking weight

    w_u, w_x : array-like
        Input and state weights for a single step

    u_lower, u_upper : array-like
        Input bounds, per input or over the whole horizon

    x_lower, x_upper : array-like
        State bounds, per state or over the whole horizon
    """
    bounded_states = True

    def __init__(self, W_y, w_u, w_x, u_lower, u_upper, x_lower, x_upper):
        super().__init__(W_y, w_u, w_x, u_lower, u_upper)
        self.x_lower = x_lower
        self.x_upper = x_upper

    def check_dimensions(self, linear_system, N):
        super().check_dimensions(linear_system, N)
        self.check_state_bounds_dimensions(linear_system, N)

    def check_state_bounds_dimensions(self, linear_system, N):
        return expand_bounds(self.x_lower, self.x_upper, linear_system.Nx, N, 'State')
