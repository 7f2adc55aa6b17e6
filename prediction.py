import numpy
import scipy.sparse

import model
from matrix_algebra import matrix_power, insert_block
from mpc_errors import ConfigurationError, SizeError


class PredictionMatrices:
    r"""Prediction matrices of a linear system over a horizon of N steps.

    With :math:`X = [x_1; \ldots; x_N]`, :math:`U = [u_0; \ldots; u_{N-1}]`
    and :math:`Y = [y_1; \ldots; y_N]`:

    .. math::
        X &= A_{mpc} U + B_{mpc} x_0 \\
        Y &= C_{mpc} X

    where :math:`A_{mpc}` is block lower triangular with blocks
    :math:`A^{i-j} B`, :math:`B_{mpc} = [A; A^2; \ldots; A^N]`
    and :math:`C_{mpc}` is block diagonal in :math:`C`.
    The initial state is not part of :math:`X`.

    Parameters
    ----------
    linear_system : model.LinearSystem
        The system model

    N : int
        Prediction horizon

    Attributes
    -----------
    A_mpc : scipy.sparse.csc_matrix
        (N Nx x N Ni) matrix mapping the inputs to the states

    B_mpc : scipy.sparse.csc_matrix
        (N Nx x Nx) matrix mapping the initial state to the states

    C_mpc : scipy.sparse.csc_matrix
        (N No x N Nx) matrix mapping the states to the outputs

    C_A, C_B : scipy.sparse.csc_matrix
        The products :math:`C_{mpc} A_{mpc}` and :math:`C_{mpc} B_{mpc}`
    """
    def __init__(self, linear_system: model.LinearSystem, N):
        if int(N) != N or N < 1:
            raise ConfigurationError(f'Horizon must be a positive integer, got {N}')

        self.linear_system = linear_system
        self.N = int(N)

        self.A_mpc, self.B_mpc, self.C_mpc = self._build()
        self.C_A = scipy.sparse.csc_matrix(self.C_mpc @ self.A_mpc)
        self.C_B = scipy.sparse.csc_matrix(self.C_mpc @ self.B_mpc)

    def _build(self):
        N = self.N
        A, B, C = self.linear_system.A, self.linear_system.B, self.linear_system.C
        Nx, Ni, No = self.linear_system.Nx, self.linear_system.Ni, self.linear_system.No

        A_mpc = scipy.sparse.lil_matrix((N * Nx, N * Ni))
        B_mpc = scipy.sparse.lil_matrix((N * Nx, Nx))
        C_mpc = scipy.sparse.lil_matrix((N * No, N * Nx))

        # A^k B only depends on i - j, so each power is inserted along a block diagonal
        for k in range(N):
            A_k_B = matrix_power(A, k) @ B
            for j in range(N - k):
                insert_block(A_mpc, A_k_B, (j + k) * Nx, j * Ni)

            insert_block(B_mpc, matrix_power(A, k + 1), k * Nx, 0)
            insert_block(C_mpc, C, k * No, k * Nx)

        return [scipy.sparse.csc_matrix(m) for m in (A_mpc, B_mpc, C_mpc)]

    def calculate_X(self, U, x0):
        """Predicted states :math:`X = A_{mpc} U + B_{mpc} x_0`"""
        U = self._check_length(U, self.N * self.linear_system.Ni, 'U')
        x0 = self._check_length(x0, self.linear_system.Nx, 'x0')
        return self.A_mpc @ U + self.B_mpc @ x0

    def calculate_Y(self, U, x0):
        """Predicted outputs :math:`Y = C_{mpc} X`"""
        return self.C_mpc @ self.calculate_X(U, x0)

    @staticmethod
    def _check_length(v, n, name):
        v = numpy.asarray(v, dtype=float).ravel()
        if v.size != n:
            raise SizeError(f'{name} must have length {n}, got {v.size}')
        return v
