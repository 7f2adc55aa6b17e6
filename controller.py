import enum

import numpy
import scipy.sparse

import model
import trajectory
from matrix_algebra import stack_vertically
from mpc_errors import ConfigurationError, UsageError
from prediction import PredictionMatrices
from qp import QPProblem, OSQPSolver
from weighting import WeightingScheme, Weighted


class SolverState(enum.Enum):
    CONSTRUCTED = 'constructed'
    INITIALIZED = 'initialized'
    SOLVED = 'solved'


class MPC:
    r"""A linear reference tracking MPC formulated as a QP over the stacked inputs.

        .. math::
            \underset{U}{\min}
            \quad
            & W_y \| Y - Y_d \|^2 + \| W_u U \|^2 + \| W_x X \|^2 \\
            X &= A_{mpc} U + B_{mpc} x_0 \\
            Y &= C_{mpc} X \\
            u_{\min} \le &u_k \le u_{\max} \\
            x_{\min} \le &x_k \le x_{\max}

        The scalar weighting (:class:`weighting.Uniform`) is the special case
        :math:`W_y = Q`, :math:`W_u = \sqrt{R} I`, :math:`W_x = 0`.
        Substituting the predictions gives the QP

        .. math::
            \underset{U}{\min} \quad \frac{1}{2} U^T H U + g^T U

        where :math:`H` only depends on the model and weights and is built once,
        while :math:`g` (and the state bounds) depend on :math:`Y_d` and :math:`x_0`
        and are recalculated on :meth:`update_solver`.

        The stacked states :math:`X` hold :math:`x_1, \ldots, x_N`;
        the initial state is not included.

        Parameters
        ----------
        linear_system : model.LinearSystem
            Internal model for the controller

        N : int
            The prediction horizon

        Y_d : array-like
            Stacked reference outputs of length `N No`

        x0 : array-like
            Initial state

        weighting : weighting.WeightingScheme
            Cost weighting and constraints

        solver_time_limit : float, optional
            Maximum solve time in seconds, 0 for no limit

        solver_settings : dict, optional
            Settings passed on to OSQP

        Attributes
        -----------
        model : model.LinearSystem
            Internal model for the controller

        N : int
            The prediction horizon

        prediction : prediction.PredictionMatrices
            The prediction matrices

        Y_d, x0 : ndarray
            Current reference and initial state

        qp_problem : qp.QPProblem
            The QP, available after :meth:`initialize_solver`

        state : SolverState
            Where the controller is in its lifecycle
    """
    def __init__(self, linear_system: model.LinearSystem, N, Y_d, x0,
                 weighting: WeightingScheme, solver_time_limit=0., solver_settings=None):
        if not isinstance(weighting, WeightingScheme):
            raise ConfigurationError(f'Expected a WeightingScheme, got {type(weighting).__name__}')
        if int(N) != N or N < 1:
            raise ConfigurationError(f'Horizon must be a positive integer, got {N}')
        if solver_time_limit < 0:
            raise ConfigurationError(f'Solver time limit must be non-negative, got {solver_time_limit}')

        self.model = linear_system
        self.N = int(N)
        self.weighting = weighting
        self.solver_time_limit = solver_time_limit
        self.solver_settings = solver_settings

        self.model.check_matrix_dimensions()
        self.weighting.check_dimensions(self.model, self.N)
        self.Y_d = self._check_reference(Y_d)
        self.x0 = self._check_initial_state(x0)

        self.u_lower = self.u_upper = None
        self.x_lower = self.x_upper = None
        if self.weighting.bounded_inputs:
            self.u_lower, self.u_upper = self.weighting.check_bounds_dimensions(self.model, self.N)
        if self.weighting.bounded_states:
            self.x_lower, self.x_upper = self.weighting.check_state_bounds_dimensions(self.model, self.N)

        self.prediction = PredictionMatrices(self.model, self.N)

        if isinstance(self.weighting, Weighted):
            self._setup_cost = self._setup_weighted_cost
        else:
            self._setup_cost = self._setup_uniform_cost

        self.n_U = self.N * self.model.Ni

        self.qp_problem = None
        self._solver = None
        self.state = SolverState.CONSTRUCTED

    def _check_reference(self, Y_d):
        Y_d = numpy.asarray(Y_d, dtype=float).ravel()
        if Y_d.size != self.N * self.model.No:
            raise ConfigurationError(f'Y_d must have length {self.N * self.model.No}, got {Y_d.size}')
        return Y_d

    def _check_initial_state(self, x0):
        x0 = numpy.asarray(x0, dtype=float).ravel()
        if x0.size != self.model.Nx:
            raise ConfigurationError(f'x0 must have length {self.model.Nx}, got {x0.size}')
        return x0

    # Cost
    def _setup_uniform_cost(self):
        Q, R = self.weighting.Q, self.weighting.R
        C_A, C_B = self.prediction.C_A, self.prediction.C_B

        Q_C_A_T = Q * C_A.T
        H = 2 * (Q_C_A_T @ C_A + R * scipy.sparse.identity(self.n_U))

        # g = G_x0 x0 - G_Yd Y_d
        self._G_Yd = scipy.sparse.csc_matrix(2 * Q_C_A_T)
        self._G_x0 = scipy.sparse.csc_matrix(2 * Q_C_A_T @ C_B)
        return scipy.sparse.csc_matrix(H)

    def _setup_weighted_cost(self):
        W_y = self.weighting.W_y
        W_u, W_x = self.weighting.horizon_weights(self.N)
        C_A, C_B = self.prediction.C_A, self.prediction.C_B

        W_x_A = W_x @ self.prediction.A_mpc
        W_x_B = W_x @ self.prediction.B_mpc
        W_y_C_A_T = W_y * C_A.T

        H = 2 * (W_y_C_A_T @ C_A + W_u.T @ W_u + W_x_A.T @ W_x_A)

        self._G_Yd = scipy.sparse.csc_matrix(2 * W_y_C_A_T)
        self._G_x0 = scipy.sparse.csc_matrix(2 * (W_y_C_A_T @ C_B + W_x_A.T @ W_x_B))
        return scipy.sparse.csc_matrix(H)

    def _gradient(self):
        return self._G_x0 @ self.x0 - self._G_Yd @ self.Y_d

    # Constraints
    def _constraint_matrix(self):
        if self.weighting.bounded_states:
            return stack_vertically(scipy.sparse.identity(self.n_U, format='csc'), self.prediction.A_mpc)
        if self.weighting.bounded_inputs:
            return scipy.sparse.identity(self.n_U, format='csc')
        return None

    def _constraint_bounds(self):
        if self.weighting.bounded_states:
            offset = self.prediction.B_mpc @ self.x0
            lower = numpy.hstack([self.u_lower, self.x_lower - offset])
            upper = numpy.hstack([self.u_upper, self.x_upper - offset])
            return lower, upper
        if self.weighting.bounded_inputs:
            return self.u_lower, self.u_upper
        return None, None

    # Solver lifecycle
    def initialize_solver(self):
        """Builds the QP and sets up the solver workspace.
        Can only be called once"""
        if self.state is not SolverState.CONSTRUCTED:
            raise UsageError('The solver has already been initialized')

        H = self._setup_cost()
        lower, upper = self._constraint_bounds()
        self.qp_problem = QPProblem(H, self._gradient(), self._constraint_matrix(), lower, upper)
        self._solver = OSQPSolver(self.qp_problem, self.solver_time_limit, self.solver_settings)
        self.state = SolverState.INITIALIZED

    def update_solver(self, Y_d, x0):
        """Replaces the reference and initial state.
        Only the gradient and the state bounds are recalculated

        Parameters
        ----------
        Y_d : array-like
            Stacked reference outputs of length `N No`

        x0 : array-like
            Initial state
        """
        self._require_initialized('update_solver')
        Y_d = self._check_reference(Y_d)
        x0 = self._check_initial_state(x0)

        self.Y_d = Y_d
        self.x0 = x0

        if self.weighting.bounded_states:
            lower, upper = self._constraint_bounds()
            self._solver.update(q=self._gradient(), lower=lower, upper=upper)
        else:
            self._solver.update(q=self._gradient())
        self.state = SolverState.INITIALIZED

    def set_reference(self, Y_d):
        """Replaces the reference, keeping the current initial state"""
        self.Y_d = self._check_reference(Y_d)
        if self._solver is not None:
            self._solver.update(q=self._gradient())
            self.state = SolverState.INITIALIZED

    def solve(self):
        """Solves the QP for the current reference and initial state

        Returns
        -------
        U : ndarray
            The optimal stacked inputs of length `N Ni`
        """
        self._require_initialized('solve')
        U = self._solver.solve()
        self.state = SolverState.SOLVED
        return U

    def is_feasible(self):
        """`True` unless the last call to :meth:`solve` reported a primal
        infeasible problem. Before the first solve, including before
        :meth:`initialize_solver`, the controller counts as feasible"""
        return self._solver is None or self._solver.is_feasible()

    def _require_initialized(self, name):
        if self.state is SolverState.CONSTRUCTED:
            raise UsageError(f'initialize_solver must be called before {name}')

    # Trajectories
    def calculate_X(self, U):
        """Predicted states :math:`x_1, \\ldots, x_N` for the inputs `U`"""
        return self.prediction.calculate_X(U, self.x0)

    def calculate_Y(self, U):
        """Predicted outputs :math:`y_1, \\ldots, y_N` for the inputs `U`"""
        return self.prediction.calculate_Y(U, self.x0)

    def extract_U(self, U):
        return trajectory.extract(U, self.N, self.model.Ni)

    def extract_X(self, X):
        return trajectory.extract(X, self.N, self.model.Nx)

    def extract_Y(self, Y):
        return trajectory.extract(Y, self.N, self.model.No)

    def first_input(self, U):
        """The input to apply at the current step"""
        return numpy.asarray(U, dtype=float)[:self.model.Ni]
