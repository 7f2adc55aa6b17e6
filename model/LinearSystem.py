import numpy
import scipy.sparse
import scipy.signal

from mpc_errors import DimensionError


class LinearSystem:
    """Structured data for a discrete state space linear model

    .. math:
        x_{k+1} &= A x_k + B u_k\\
        y_k &= C x_k + D u_k

    The matrices are stored as sparse matrices and are never changed
    after construction.

    Parameters
    ----------
    A, B, C, D : array-like
        2D arrays or sparse matrices of the state space model.
        `D` may be `None`, in which case it is taken as zero

    dt : float, optional
        The sampling interval, if known

    Attributes
    -----------
    A, B, C, D : scipy.sparse.csc_matrix
        The state space matrices

    dt : float
        The sampling interval

    Nx, Ni, No : int
        Number of states, inputs and outputs
    """
    def __init__(self, A, B, C, D=None, dt=None):
        A, B, C = [self._as_sparse(m) for m in [A, B, C]]
        if D is None:
            D = scipy.sparse.csc_matrix((C.shape[0], B.shape[1]))
        else:
            D = self._as_sparse(D)

        self._A = A
        self._B = B
        self._C = C
        self._D = D
        self._dt = dt

        self._Nx = self._A.shape[0]
        self._Ni = self._B.shape[1]
        self._No = self._C.shape[0]

        self.check_matrix_dimensions()

    @staticmethod
    def _as_sparse(m):
        if scipy.sparse.issparse(m):
            return scipy.sparse.csc_matrix(m, dtype=float)
        return scipy.sparse.csc_matrix(numpy.atleast_2d(numpy.asarray(m, dtype=float)))

    A = property(lambda self: self._A)
    B = property(lambda self: self._B)
    C = property(lambda self: self._C)
    D = property(lambda self: self._D)
    dt = property(lambda self: self._dt)
    Nx = property(lambda self: self._Nx)
    Ni = property(lambda self: self._Ni)
    No = property(lambda self: self._No)

    def check_matrix_dimensions(self):
        """Raises a :class:`DimensionError` if the matrices do not
        describe a single consistent system"""
        if self.A.shape[0] != self.A.shape[1]:
            raise DimensionError(f'A must be square, got {self.A.shape}')

        if self.B.shape[0] != self.Nx:
            raise DimensionError(f'B must have {self.Nx} rows, got {self.B.shape[0]}')

        if self.C.shape[1] != self.Nx:
            raise DimensionError(f'C must have {self.Nx} columns, got {self.C.shape[1]}')

        if self.D.shape != (self.No, self.Ni):
            raise DimensionError(f'D must be {(self.No, self.Ni)}, got {self.D.shape}')

    @staticmethod
    def from_continuous(A, B, C, D, dt):
        """Discretise a continuous linear model with a zero-order hold

        .. math::
            \\dot{x} = A x + B u \\
            y = C x + D u

        Parameters
        ----------
        A, B, C, D : array-like
            Continuous state space matrices. `D` may be `None`

        dt : float
            The sampling interval

        Returns
        -------
        linear_system : model.LinearSystem
            The discrete system
        """
        A, B, C = [numpy.atleast_2d(numpy.asarray(m, dtype=float)) for m in [A, B, C]]
        if D is None:
            D = numpy.zeros((C.shape[0], B.shape[1]))
        D = numpy.atleast_2d(numpy.asarray(D, dtype=float))

        Ad, Bd, Cd, Dd, _ = scipy.signal.cont2discrete((A, B, C, D), dt)
        return LinearSystem(Ad, Bd, Cd, Dd, dt=dt)

    def simulate(self, x0, U):
        """Steps the model from `x0` with the stacked inputs `U`

        Parameters
        ----------
        x0 : array-like
            Initial state

        U : array-like
            The inputs :math:`[u_0, u_1, \\ldots]` stacked into a single vector

        Returns
        -------
        xs, ys : ndarray
            Arrays of shape (N + 1, Nx) and (N, No).
            `xs[0]` is `x0`, `ys[k]` is the output at step k
        """
        x = numpy.asarray(x0, dtype=float)
        us = numpy.asarray(U, dtype=float).reshape(-1, self.Ni)

        xs = [x]
        ys = []
        for u in us:
            ys.append(self.C @ x + self.D @ u)
            x = self.A @ x + self.B @ u
            xs.append(x)

        return numpy.array(xs), numpy.array(ys).reshape(-1, self.No)
