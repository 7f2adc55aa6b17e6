import warnings

import numpy
import scipy.sparse
import osqp

from mpc_errors import InfeasibleError, SolverError


global_solver_settings = {
    'verbose': False,
    'alpha': 1.0,
    'adaptive_rho': True,
    'eps_abs': 1e-6,
    'eps_rel': 1e-6,
    'max_iter': 20000,
}

# Statuses that still carry a usable iterate
_ACCEPTED_STATUSES = {
    'solved',
    'solved inaccurate',
    'maximum iterations reached',
    'run time limit reached',
}


class QPProblem:
    r"""Quadratic program in the form

    .. math::
        \underset{x}{\min} \quad & \frac{1}{2} x^T P x + q^T x \\
        A_{eq} x + b_{eq} &= 0 \\
        l \le &A_{ieq} x \le u

    Parameters
    ----------
    P : scipy.sparse.spmatrix
        (n x n) symmetric positive semi-definite cost matrix

    q : ndarray
        Gradient of length n

    A_ieq : scipy.sparse.spmatrix, optional
        (m x n) inequality constraint matrix

    lower, upper : ndarray, optional
        Inequality bounds of length m

    A_eq : scipy.sparse.spmatrix, optional
        Equality constraint matrix

    b_eq : ndarray, optional
        Equality constraint vector
    """
    def __init__(self, P, q, A_ieq=None, lower=None, upper=None, A_eq=None, b_eq=None):
        self.P = scipy.sparse.csc_matrix(P)
        self.q = numpy.asarray(q, dtype=float)
        if A_ieq is None:
            A_ieq = scipy.sparse.csc_matrix((0, self.n))
            lower = numpy.zeros(0)
            upper = numpy.zeros(0)
        if A_eq is None:
            A_eq = scipy.sparse.csc_matrix((0, self.n))
            b_eq = numpy.zeros(0)

        self.A_ieq = scipy.sparse.csc_matrix(A_ieq)
        self.lower = numpy.asarray(lower, dtype=float)
        self.upper = numpy.asarray(upper, dtype=float)
        self.A_eq = scipy.sparse.csc_matrix(A_eq)
        self.b_eq = numpy.asarray(b_eq, dtype=float)

    @property
    def n(self):
        return self.P.shape[0]

    @property
    def m(self):
        return self.A_eq.shape[0] + self.A_ieq.shape[0]

    def constraint_matrix(self):
        """Equality rows stacked above the inequality rows"""
        return scipy.sparse.vstack([self.A_eq, self.A_ieq], format='csc')

    def bounds(self):
        """Returns the lower and upper bounds matching :meth:`constraint_matrix`"""
        lower = numpy.hstack([-self.b_eq, self.lower])
        upper = numpy.hstack([-self.b_eq, self.upper])
        return lower, upper


class OSQPSolver:
    """Wraps an OSQP workspace for a :class:`QPProblem`.

    The cost and constraint matrices are passed to OSQP once in :meth:`setup`;
    afterwards only the gradient and bounds are changed with :meth:`update`.

    Parameters
    ----------
    qp_problem : QPProblem
        The problem to solve

    time_limit : float, optional
        Maximum solve time in seconds, 0 for no limit

    settings : dict, optional
        OSQP settings, merged over :data:`global_solver_settings`
    """
    def __init__(self, qp_problem, time_limit=0., settings=None):
        self.qp_problem = qp_problem
        self.settings = dict(global_solver_settings)
        if settings is not None:
            self.settings.update(settings)
        if time_limit > 0:
            self.settings['time_limit'] = time_limit

        self.prob = osqp.OSQP()
        self.status = None
        self.setup()

    def setup(self):
        qp = self.qp_problem
        P = scipy.sparse.triu(qp.P, format='csc')
        lower, upper = qp.bounds()
        self.prob.setup(P, qp.q, qp.constraint_matrix(), lower, upper, **self.settings)

    def update(self, q=None, lower=None, upper=None):
        """Pushes a new gradient and/or new inequality bounds to the solver"""
        qp = self.qp_problem
        if q is not None:
            qp.q = numpy.asarray(q, dtype=float)
            self.prob.update(q=qp.q)

        if lower is not None or upper is not None:
            if lower is not None:
                qp.lower = numpy.asarray(lower, dtype=float)
            if upper is not None:
                qp.upper = numpy.asarray(upper, dtype=float)
            if qp.m > 0:
                l, u = qp.bounds()
                self.prob.update(l=l, u=u)

    def solve(self):
        """Solves the QP

        Returns
        -------
        x : ndarray
            The solution, or the best iterate if the solver stopped early
        """
        res = self.prob.solve(raise_error=False)
        self.status = res.info.status

        if self.status.startswith('primal infeasible'):
            raise InfeasibleError(f'OSQP reports the problem is infeasible! Status: {self.status}')

        if self.status not in _ACCEPTED_STATUSES:
            raise SolverError(f'OSQP did not solve the problem! Status: {self.status}')

        if self.status != 'solved':
            warnings.warn(f'OSQP stopped early, using best iterate. Status: {self.status}', RuntimeWarning)

        return numpy.array(res.x)

    def is_feasible(self):
        """`True` unless the last solve ended primal infeasible.
        A solver that has not solved yet counts as feasible"""
        return self.status is None or not self.status.startswith('primal infeasible')
