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
import math
import operator
from contextlib import ExitStack

from ipopt_adapter.dependencies import numpy as np
from ipopt_adapter.exceptions import (
    NlpContractViolation,
    WarmStartConfigurationError,
)
from ipopt_adapter.interface import NlpDimensions
from ipopt_adapter.tnlp import TNLP, IndexStyle, Phase
from ipopt_adapter.vector_view import borrow, borrow_index

logger = logging.getLogger(__name__)


class NlpAdapter(TNLP):
    """Serve a :py:class:`~ipopt_adapter.interface.BaseNlpInterface` to an
    Ipopt-style engine.

    The adapter keeps no problem data of its own. Each callback wraps the
    engine's buffers in borrowed views, forwards them to the NLP and
    releases the views before returning. The only thing remembered
    between callbacks is the set of dimensions reported by
    :py:meth:`get_nlp_info`, against which every later callback of the
    solve is checked.

    Parameters
    ----------
    nlp: BaseNlpInterface
        The problem being solved
    check_finite: bool
        If True (the default), NaN or Inf in any value handed to the engine
        raises NlpContractViolation instead of being passed on
    """

    def __init__(self, nlp, check_finite=True):
        self._nlp = nlp
        self.check_finite = check_finite
        self._dimensions = None
        self._required_dimensions = None

    @property
    def nlp(self):
        return self._nlp

    @property
    def dimensions(self):
        """The dimensions reported by the most recent get_nlp_info call"""
        return self._dimensions

    def require_dimensions(self, dimensions):
        """Make get_nlp_info refuse any dimensions other than ``dimensions``.

        Used for warm starts, where the engine reuses structures sized for
        the previous solve. Passing None lifts the requirement.
        """
        self._required_dimensions = dimensions

    def _dims(self):
        if self._dimensions is None:
            raise NlpContractViolation(
                'get_nlp_info must be called before any other callback'
            )
        return self._dimensions

    @staticmethod
    def _check_size(name, got, expected):
        if got != expected:
            raise NlpContractViolation(
                "The engine passed %s=%s, but the NLP reported %s=%s"
                % (name, got, name, expected)
            )

    def _check_finite(self, callback, values):
        if self.check_finite and not np.all(np.isfinite(values)):
            raise NlpContractViolation(
                '%s produced non-finite values: %s' % (callback, values)
            )

    @staticmethod
    def _check_pattern(name, irow, jcol, n_rows, n_cols, lower_triangular=False):
        if len(irow) == 0:
            return
        if irow.min() < 0 or irow.max() >= n_rows:
            raise NlpContractViolation(
                '%s structure has row indices outside [0, %d)' % (name, n_rows)
            )
        if jcol.min() < 0 or jcol.max() >= n_cols:
            raise NlpContractViolation(
                '%s structure has column indices outside [0, %d)' % (name, n_cols)
            )
        if lower_triangular and np.any(irow < jcol):
            raise NlpContractViolation(
                '%s structure must only list entries with row >= col' % (name,)
            )

    def get_nlp_info(self):
        logger.debug('entering get_nlp_info()')
        try:
            dims = NlpDimensions(*(operator.index(v) for v in self._nlp.dimensions()))
        except TypeError as e:
            raise NlpContractViolation(
                'NLP dimensions must be integers: %s' % (e,)
            ) from e
        for field, value in zip(dims._fields, dims):
            if value < 0:
                raise NlpContractViolation(
                    'NLP dimension %s must be non-negative (got %d)' % (field, value)
                )
        if self._required_dimensions is not None and dims != self._required_dimensions:
            raise WarmStartConfigurationError(
                'The NLP dimensions changed from %s to %s; a warm start must '
                'keep the dimensions of the previous solve'
                % (tuple(self._required_dimensions), tuple(dims))
            )
        self._dimensions = dims
        logger.debug(
            '... number of decision variables = %d, number of constraints = %d, '
            'nonzeros in jacobian = %d, nonzeros in hessian = %d',
            *dims
        )
        return dims.n, dims.m, dims.nnz_jac, dims.nnz_hess, IndexStyle.C_STYLE

    def get_bounds_info(self, n, x_l, x_u, m, g_l, g_u):
        logger.debug('entering get_bounds_info()')
        dims = self._dims()
        self._check_size('n', n, dims.n)
        self._check_size('m', m, dims.m)
        with borrow(x_l, n, name='x_l') as x_lb, borrow(
            x_u, n, name='x_u'
        ) as x_ub, borrow(g_l, m, name='g_l') as g_lb, borrow(
            g_u, m, name='g_u'
        ) as g_ub:
            self._nlp.get_bounds(x_lb, x_ub, g_lb, g_ub)
        return True

    def get_starting_point(
        self, n, init_x, x, init_z, z_L, z_U, m, init_lambda, lambda_
    ):
        logger.debug(
            'entering get_starting_point(init_x=%s, init_z=%s, init_lambda=%s)',
            init_x,
            init_z,
            init_lambda,
        )
        dims = self._dims()
        self._check_size('n', n, dims.n)
        self._check_size('m', m, dims.m)
        with ExitStack() as views:
            x0 = z_lb0 = z_ub0 = lam0 = None
            # unflagged buffers may hold values the engine wants to keep,
            # so they are not even wrapped
            if init_x:
                x0 = views.enter_context(borrow(x, n, name='x'))
            if init_z:
                z_lb0 = views.enter_context(borrow(z_L, n, name='z_L'))
                z_ub0 = views.enter_context(borrow(z_U, n, name='z_U'))
            if init_lambda:
                lam0 = views.enter_context(borrow(lambda_, m, name='lambda'))
            self._nlp.get_starting_point(x=x0, z_lb=z_lb0, z_ub=z_ub0, lam=lam0)
            for vec in (x0, z_lb0, z_ub0, lam0):
                if vec is not None:
                    self._check_finite('get_starting_point', vec)
        return True

    def eval_f(self, n, x, new_x):
        logger.debug('entering eval_f()')
        self._check_size('n', n, self._dims().n)
        with borrow(x, n, writeable=False, name='x') as x_vec:
            self._nlp.extract(x_vec, new_x)
            obj_value = float(self._nlp.evaluate_objective())
        if self.check_finite and not math.isfinite(obj_value):
            raise NlpContractViolation(
                'eval_f produced a non-finite objective: %s' % (obj_value,)
            )
        return obj_value

    def eval_grad_f(self, n, x, new_x, grad_f):
        logger.debug('entering eval_grad_f()')
        self._check_size('n', n, self._dims().n)
        with borrow(x, n, writeable=False, name='x') as x_vec, borrow(
            grad_f, n, name='grad_f'
        ) as grad:
            self._nlp.extract(x_vec, new_x)
            self._nlp.evaluate_grad_objective(grad)
            self._check_finite('eval_grad_f', grad)
        return True

    def eval_g(self, n, x, new_x, m, g):
        logger.debug('entering eval_g()')
        dims = self._dims()
        self._check_size('n', n, dims.n)
        self._check_size('m', m, dims.m)
        with borrow(x, n, writeable=False, name='x') as x_vec, borrow(
            g, m, name='g'
        ) as g_vec:
            self._nlp.extract(x_vec, new_x)
            self._nlp.evaluate_constraints(g_vec)
            self._check_finite('eval_g', g_vec)
        return True

    def eval_jac_g(self, n, x, new_x, m, nele_jac, phase, irow, jcol, values):
        dims = self._dims()
        self._check_size('n', n, dims.n)
        self._check_size('m', m, dims.m)
        self._check_size('nele_jac', nele_jac, dims.nnz_jac)
        if phase is Phase.STRUCTURE:
            logger.debug('entering eval_jac_g(), structure')
            if Phase.of(values) is not Phase.STRUCTURE:
                raise NlpContractViolation(
                    'A Jacobian structure request must not carry a values buffer'
                )
            with borrow_index(irow, nele_jac, name='iRow') as rows, borrow_index(
                jcol, nele_jac, name='jCol'
            ) as cols:
                self._nlp.get_jacobian_structure(rows, cols)
                self._check_pattern('Jacobian', rows, cols, m, n)
        elif phase is Phase.VALUES:
            logger.debug('entering eval_jac_g(), values')
            with borrow(x, n, writeable=False, name='x') as x_vec, borrow(
                values, nele_jac, name='values'
            ) as vals:
                self._nlp.extract(x_vec, new_x)
                self._nlp.evaluate_jacobian(vals)
                self._check_finite('eval_jac_g', vals)
        else:
            raise ValueError('Unknown phase %r' % (phase,))
        return True

    def eval_h(
        self,
        n,
        x,
        new_x,
        obj_factor,
        m,
        lambda_,
        new_lambda,
        nele_hess,
        phase,
        irow,
        jcol,
        values,
    ):
        dims = self._dims()
        self._check_size('n', n, dims.n)
        self._check_size('m', m, dims.m)
        self._check_size('nele_hess', nele_hess, dims.nnz_hess)
        if phase is Phase.STRUCTURE:
            logger.debug('entering eval_h(), structure')
            if Phase.of(values) is not Phase.STRUCTURE:
                raise NlpContractViolation(
                    'A Hessian structure request must not carry a values buffer'
                )
            # symmetric: only the lower left triangle is reported
            with borrow_index(irow, nele_hess, name='iRow') as rows, borrow_index(
                jcol, nele_hess, name='jCol'
            ) as cols:
                self._nlp.get_hessian_structure(rows, cols)
                self._check_pattern(
                    'Hessian', rows, cols, n, n, lower_triangular=True
                )
        elif phase is Phase.VALUES:
            logger.debug('entering eval_h(), values (new_lambda=%s)', new_lambda)
            with borrow(x, n, writeable=False, name='x') as x_vec, borrow(
                lambda_, m, writeable=False, name='lambda'
            ) as lam, borrow(values, nele_hess, name='values') as vals:
                self._nlp.extract(x_vec, new_x)
                self._nlp.evaluate_hessian_lag(obj_factor, lam, vals)
                self._check_finite('eval_h', vals)
        else:
            raise ValueError('Unknown phase %r' % (phase,))
        return True

    def finalize_solution(self, status, n, x, z_L, z_U, m, g, lambda_, obj_value):
        logger.debug(
            'entering finalize_solution(status=%s, obj_value=%s)', status, obj_value
        )
        dims = self._dims()
        self._check_size('n', n, dims.n)
        self._check_size('m', m, dims.m)
        with borrow(x, n, writeable=False, name='x') as x_vec, borrow(
            z_L, n, writeable=False, name='z_L'
        ) as z_lb, borrow(z_U, n, writeable=False, name='z_U') as z_ub, borrow(
            lambda_, m, writeable=False, name='lambda'
        ) as lam:
            self._nlp.accept_solution(x_vec, z_lb, z_ub, lam)

    def intermediate_callback(
        self,
        alg_mod,
        iter_count,
        obj_value,
        inf_pr,
        inf_du,
        mu,
        d_norm,
        regularization_size,
        alpha_du,
        alpha_pr,
        ls_trials,
    ):
        logger.debug(
            'iteration %d: objective %g, inf_pr %g, inf_du %g, mu %g',
            iter_count,
            obj_value,
            inf_pr,
            inf_du,
            mu,
        )
        return True
