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

"""An NlpEngine backed by cyipopt, the Python bindings to Ipopt.

cyipopt exposes Ipopt through a problem object with one method per
callback. :py:class:`CyIpoptEngine` translates that protocol back into the
TNLP callbacks: it owns the buffers Ipopt would hand to a TNLP, requests
sparsity structures by passing no values target, and works out ``new_x``
and ``new_lambda`` by comparing each point with the previous one.

"""

import logging

from ipopt_adapter.dependencies import numpy as np, cyipopt, cyipopt_available
from ipopt_adapter.engine import (
    ApplicationReturnStatus,
    NlpEngine,
    SolveStatistics,
    solver_return_for,
)
from ipopt_adapter.exceptions import NlpEvaluationError
from ipopt_adapter.tnlp import IndexStyle, Phase

logger = logging.getLogger(__name__)


def _evaluation_failed(exc):
    # Newer cyipopt releases let a callback report a failed evaluation,
    # which Ipopt answers by cutting the step back
    error_type = getattr(cyipopt, 'CyIpoptEvaluationError', None)
    if error_type is None:
        raise exc
    raise error_type(str(exc)) from exc


def _array(values):
    return np.ascontiguousarray(values, dtype=np.float64)


class _TrialProblem(object):
    """A one variable problem used to validate options without touching
    the TNLP
    """

    def objective(self, x):
        return 0.0

    def gradient(self, x):
        return np.zeros(1)

    def constraints(self, x):
        return np.zeros(0)

    def jacobian(self, x):
        return np.zeros(0)


class _CyIpoptProblem(object):
    def __init__(self, tnlp, n, m, nnz_jac, nnz_hess, statistics):
        self._tnlp = tnlp
        self._n = n
        self._m = m
        self._nnz_jac = nnz_jac
        self._nnz_hess = nnz_hess
        self._statistics = statistics

        self._grad_f = np.zeros(n)
        self._g = np.zeros(m)
        self._jac_values = np.zeros(nnz_jac)
        self._hess_values = np.zeros(nnz_hess)

        self._last_x = None
        self._last_lambda = None

    def _is_new(self, last, value):
        return last is None or not np.array_equal(last, value)

    def _new_x(self, x):
        if self._is_new(self._last_x, x):
            self._last_x = x.copy()
            return True
        return False

    def _new_lambda(self, lam):
        if self._is_new(self._last_lambda, lam):
            self._last_lambda = lam.copy()
            return True
        return False

    def objective(self, x):
        x = _array(x)
        try:
            return self._tnlp.eval_f(self._n, x, self._new_x(x))
        except NlpEvaluationError as e:
            _evaluation_failed(e)

    def gradient(self, x):
        x = _array(x)
        try:
            self._tnlp.eval_grad_f(self._n, x, self._new_x(x), self._grad_f)
        except NlpEvaluationError as e:
            _evaluation_failed(e)
        return self._grad_f

    def constraints(self, x):
        x = _array(x)
        try:
            self._tnlp.eval_g(self._n, x, self._new_x(x), self._m, self._g)
        except NlpEvaluationError as e:
            _evaluation_failed(e)
        return self._g

    def jacobianstructure(self):
        irow = np.zeros(self._nnz_jac, dtype=np.int32)
        jcol = np.zeros(self._nnz_jac, dtype=np.int32)
        values = None
        self._tnlp.eval_jac_g(
            self._n,
            None,
            False,
            self._m,
            self._nnz_jac,
            Phase.of(values),
            irow,
            jcol,
            values,
        )
        return irow, jcol

    def jacobian(self, x):
        x = _array(x)
        values = self._jac_values
        try:
            self._tnlp.eval_jac_g(
                self._n,
                x,
                self._new_x(x),
                self._m,
                self._nnz_jac,
                Phase.of(values),
                None,
                None,
                values,
            )
        except NlpEvaluationError as e:
            _evaluation_failed(e)
        return values

    def hessianstructure(self):
        irow = np.zeros(self._nnz_hess, dtype=np.int32)
        jcol = np.zeros(self._nnz_hess, dtype=np.int32)
        values = None
        self._tnlp.eval_h(
            self._n,
            None,
            False,
            1.0,
            self._m,
            None,
            False,
            self._nnz_hess,
            Phase.of(values),
            irow,
            jcol,
            values,
        )
        return irow, jcol

    def hessian(self, x, lagrange, obj_factor):
        x = _array(x)
        lagrange = _array(lagrange)
        values = self._hess_values
        try:
            self._tnlp.eval_h(
                self._n,
                x,
                self._new_x(x),
                float(obj_factor),
                self._m,
                lagrange,
                self._new_lambda(lagrange),
                self._nnz_hess,
                Phase.of(values),
                None,
                None,
                values,
            )
        except NlpEvaluationError as e:
            _evaluation_failed(e)
        return values

    def intermediate(
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
        self._statistics.iteration_count = iter_count
        return self._tnlp.intermediate_callback(
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
        )


class CyIpoptEngine(NlpEngine):
    """Ipopt, driven through cyipopt"""

    def available(self):
        if not cyipopt_available:
            return self.Availability.NotFound
        return self.Availability.Available

    def _add_options(self, problem):
        """Add every option to ``problem``; return the first rejected
        (key, value) pair, or None
        """
        for key, val in self.options.items():
            try:
                problem.add_option(key, val)
            except TypeError:
                return key, val
        return None

    def initialize(self):
        # Ipopt only validates options against an application object, so
        # they are replayed against a throwaway problem
        trial = cyipopt.Problem(
            n=1,
            m=0,
            problem_obj=_TrialProblem(),
            lb=np.full(1, -np.inf),
            ub=np.full(1, np.inf),
            cl=np.zeros(0),
            cu=np.zeros(0),
        )
        try:
            rejected = self._add_options(trial)
        finally:
            trial.close()
        if rejected is not None:
            logger.error('Ipopt rejected the option %s = %r', *rejected)
            return ApplicationReturnStatus.Invalid_Option
        return ApplicationReturnStatus.Solve_Succeeded

    def optimize_tnlp(self, tnlp):
        self._statistics = statistics = SolveStatistics()

        n, m, nnz_jac, nnz_hess, index_style = tnlp.get_nlp_info()
        if index_style != IndexStyle.C_STYLE:
            raise ValueError('cyipopt only supports C_STYLE (0-based) indexing')

        x_l = np.zeros(n)
        x_u = np.zeros(n)
        g_l = np.zeros(m)
        g_u = np.zeros(m)
        tnlp.get_bounds_info(n, x_l, x_u, m, g_l, g_u)

        # Ipopt only asks for multipliers when warm starting
        warm_start = self.options.get_value('warm_start_init_point', 'no') == 'yes'
        x0 = np.zeros(n)
        z_L = np.zeros(n)
        z_U = np.zeros(n)
        lam = np.zeros(m)
        tnlp.get_starting_point(n, True, x0, warm_start, z_L, z_U, m, warm_start, lam)

        problem = cyipopt.Problem(
            n=n,
            m=m,
            problem_obj=_CyIpoptProblem(tnlp, n, m, nnz_jac, nnz_hess, statistics),
            lb=x_l,
            ub=x_u,
            cl=g_l,
            cu=g_u,
        )
        try:
            rejected = self._add_options(problem)
            if rejected is not None:
                logger.error('Ipopt rejected the option %s = %r', *rejected)
                return ApplicationReturnStatus.Invalid_Option
            if warm_start:
                _, info = problem.solve(x0, lagrange=lam, zl=z_L, zu=z_U)
            else:
                _, info = problem.solve(x0)
        finally:
            problem.close()

        status = ApplicationReturnStatus.from_code(info['status'])
        statistics.final_objective = float(info['obj_val'])
        logger.debug('cyipopt returned %s: %s', status.name, info.get('status_msg'))
        tnlp.finalize_solution(
            solver_return_for(status),
            n,
            _array(info['x']),
            _array(info['mult_x_L']),
            _array(info['mult_x_U']),
            m,
            _array(info['g']),
            _array(info['mult_g']),
            statistics.final_objective,
        )
        return status
