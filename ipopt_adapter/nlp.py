#  ___________________________________________________________________________
#
#  Pyomo: Python Optimization Modeling Objects
#  Copyright (c) 2008-2025
#  National Technology and Engineering Solutions of Sandia, LLC
#  Under the terms of Contract DE-NA0003525 with National Technology and
#  Engineering Solutions of Sandia, LLC, the U.S. Government retains certain
#  rights in this software.
#  This software is distributed under the 3-clause BSD License.
#  ___________________________________________________________________________

import logging

from ipopt_adapter.dependencies import numpy as np, scipy
from ipopt_adapter.exceptions import NlpContractViolation
from ipopt_adapter.interface import BaseNlpInterface

logger = logging.getLogger(__name__)


def _vector(values, size, name, default=0.0):
    if values is None:
        return np.full(size, default, dtype=np.float64)
    vec = np.array(values, dtype=np.float64).ravel()
    if size is not None and vec.size != size:
        raise NlpContractViolation(
            '%s has %d entries; expected %d' % (name, vec.size, size)
        )
    return vec


def _fill(name, out, values):
    values = np.asarray(values, dtype=np.float64).ravel()
    if values.shape != out.shape:
        raise NlpContractViolation(
            '%s returned %d values; expected %d' % (name, values.size, out.size)
        )
    out[:] = values


class NlpModel(BaseNlpInterface):
    """An NLP that owns its optimization vector.

    The model stores the primal values, the bound multipliers and the
    constraint multipliers. They are served as the starting point of a
    solve, overwritten by the primals the engine extracts while it
    iterates, and replaced by the final iterate when the engine accepts a
    solution. A second solve therefore starts from the previous solution,
    which is what a warm start needs.

    Subclasses implement the evaluation methods of
    :py:class:`BaseNlpInterface` and may use :py:meth:`_memoize` to reuse
    evaluations while the primals do not change.

    Parameters
    ----------
    x_lb, x_ub: array_like
        Variable bounds (use +/-inf for free variables)
    g_lb, g_ub: array_like
        Constraint bounds
    x_init: array_like, optional
        Initial primals. Defaults to 0 projected onto the bounds.
    """

    def __init__(self, x_lb, x_ub, g_lb=(), g_ub=(), x_init=None):
        self._primals_lb = _vector(x_lb, None, 'x_lb')
        n = self._primals_lb.size
        self._primals_ub = _vector(x_ub, n, 'x_ub')
        self._constraints_lb = _vector(g_lb, None, 'g_lb')
        m = self._constraints_lb.size
        self._constraints_ub = _vector(g_ub, m, 'g_ub')

        if x_init is None:
            self._primals = np.clip(np.zeros(n), self._primals_lb, self._primals_ub)
        else:
            self._primals = _vector(x_init, n, 'x_init')
        self._duals_primals_lb = np.zeros(n)
        self._duals_primals_ub = np.zeros(n)
        self._duals = np.zeros(m)

        self._primals_extracted = False
        self._has_solution = False
        self._cache = {}

    def n_primals(self):
        return self._primals_lb.size

    def n_constraints(self):
        return self._constraints_lb.size

    def primals_lb(self):
        return self._primals_lb

    def primals_ub(self):
        return self._primals_ub

    def constraints_lb(self):
        return self._constraints_lb

    def constraints_ub(self):
        return self._constraints_ub

    def get_primals(self):
        return self._primals.copy()

    def set_primals(self, primals):
        self._primals[:] = _vector(primals, self.n_primals(), 'primals')
        self._invalidate()

    def get_duals(self):
        return self._duals.copy()

    def set_duals(self, duals):
        self._duals[:] = _vector(duals, self.n_constraints(), 'duals')

    def get_duals_primals_lb(self):
        return self._duals_primals_lb.copy()

    def get_duals_primals_ub(self):
        return self._duals_primals_ub.copy()

    def set_duals_primals_lb(self, duals):
        self._duals_primals_lb[:] = _vector(duals, self.n_primals(), 'z_lb')

    def set_duals_primals_ub(self, duals):
        self._duals_primals_ub[:] = _vector(duals, self.n_primals(), 'z_ub')

    @property
    def has_solution(self):
        """True once an engine has handed back a final iterate"""
        return self._has_solution

    def _invalidate(self):
        self._primals_extracted = False
        self._cache.clear()

    def _memoize(self, key, func):
        """Return ``func(primals)``, evaluated at most once per point"""
        try:
            return self._cache[key]
        except KeyError:
            value = self._cache[key] = func(self._primals)
            return value

    def update_problem(self):
        """Hook called whenever the primals change. Does nothing by default"""
        pass

    def get_bounds(self, x_lb, x_ub, g_lb, g_ub):
        x_lb[:] = self.primals_lb()
        x_ub[:] = self.primals_ub()
        g_lb[:] = self.constraints_lb()
        g_ub[:] = self.constraints_ub()

    def get_starting_point(self, x=None, z_lb=None, z_ub=None, lam=None):
        if x is not None:
            x[:] = self._primals
        if z_lb is not None:
            z_lb[:] = self._duals_primals_lb
        if z_ub is not None:
            z_ub[:] = self._duals_primals_ub
        if lam is not None:
            lam[:] = self._duals

    def extract(self, x, new_x):
        if new_x or not self._primals_extracted:
            self._primals[:] = x
            self._cache.clear()
            self._primals_extracted = True
            self.update_problem()

    def accept_solution(self, x, z_lb, z_ub, lam):
        if not np.array_equal(self._primals, x):
            self._primals[:] = x
            self._invalidate()
        self._duals_primals_lb[:] = z_lb
        self._duals_primals_ub[:] = z_ub
        self._duals[:] = lam
        self._has_solution = True


class CallbackNlp(NlpModel):
    """An NLP assembled from Python callables

    Parameters
    ----------
    objective: callable
        ``objective(x) -> float``
    gradient: callable
        ``gradient(x) -> array of length n``
    x_lb, x_ub: array_like
        Variable bounds
    constraints: callable, optional
        ``constraints(x) -> array of length m``
    jacobian: callable, optional
        ``jacobian(x) -> (m, n)`` numpy array or scipy.sparse matrix
    g_lb, g_ub: array_like
        Constraint bounds
    hessian: callable, optional
        ``hessian(x, lam, obj_factor) -> (n, n)`` numpy array or
        scipy.sparse matrix holding the Lagrangian Hessian. Only the
        entries on or below the diagonal are read. Without it the engine
        must approximate the Hessian (``hessian_approximation =
        'limited-memory'``).
    jacobian_structure: tuple of arrays, optional
        (rows, cols) of the structurally nonzero Jacobian entries.
        Defaults to every entry.
    hessian_structure: tuple of arrays, optional
        (rows, cols) with rows >= cols. Defaults to the whole lower
        triangle.
    x_init: array_like, optional
        Initial primals
    """

    def __init__(
        self,
        objective,
        gradient,
        x_lb,
        x_ub,
        constraints=None,
        jacobian=None,
        g_lb=(),
        g_ub=(),
        hessian=None,
        jacobian_structure=None,
        hessian_structure=None,
        x_init=None,
    ):
        super().__init__(x_lb, x_ub, g_lb, g_ub, x_init=x_init)
        n = self.n_primals()
        m = self.n_constraints()
        if m and (constraints is None or jacobian is None):
            raise ValueError(
                'CallbackNlp with %d constraint bounds needs both the '
                'constraints and the jacobian callbacks' % (m,)
            )
        self._objective = objective
        self._gradient = gradient
        self._constraints = constraints
        self._jacobian = jacobian
        self._hessian = hessian

        if jacobian_structure is None:
            rows, cols = np.nonzero(np.ones((m, n)))
        else:
            rows, cols = jacobian_structure
        self._jac_rows = np.asarray(rows, dtype=np.int32)
        self._jac_cols = np.asarray(cols, dtype=np.int32)

        if hessian is None:
            logger.warning(
                'CallbackNlp was built without a hessian callback; the engine '
                'must be configured with hessian_approximation="limited-memory"'
            )
            rows = cols = ()
        elif hessian_structure is None:
            rows, cols = np.tril_indices(n)
        else:
            rows, cols = hessian_structure
        self._hess_rows = np.asarray(rows, dtype=np.int32)
        self._hess_cols = np.asarray(cols, dtype=np.int32)
        if np.any(self._hess_rows < self._hess_cols):
            raise ValueError('hessian_structure may only contain entries with row >= col')

    @staticmethod
    def _entries(matrix, rows, cols):
        if not len(rows):
            return np.zeros(0)
        if scipy.sparse.issparse(matrix):
            return np.asarray(matrix.tocsr()[rows, cols]).ravel()
        return np.asarray(matrix, dtype=np.float64)[rows, cols]

    def nnz_jacobian(self):
        return self._jac_rows.size

    def nnz_hessian_lag(self):
        return self._hess_rows.size

    def evaluate_objective(self):
        return self._memoize('f', self._objective)

    def evaluate_grad_objective(self, out):
        _fill('gradient', out, self._memoize('grad_f', self._gradient))

    def evaluate_constraints(self, out):
        if not self.n_constraints():
            return
        _fill('constraints', out, self._memoize('g', self._constraints))

    def get_jacobian_structure(self, irow, jcol):
        irow[:] = self._jac_rows
        jcol[:] = self._jac_cols

    def evaluate_jacobian(self, out):
        if not self.nnz_jacobian():
            return
        values = self._memoize(
            'jac_g',
            lambda x: self._entries(self._jacobian(x), self._jac_rows, self._jac_cols),
        )
        _fill('jacobian', out, values)

    def get_hessian_structure(self, irow, jcol):
        irow[:] = self._hess_rows
        jcol[:] = self._hess_cols

    def evaluate_hessian_lag(self, obj_factor, lam, out):
        if not self.nnz_hessian_lag():
            return
        hess = self._hessian(self._primals, lam, obj_factor)
        _fill('hessian', out, self._entries(hess, self._hess_rows, self._hess_cols))
