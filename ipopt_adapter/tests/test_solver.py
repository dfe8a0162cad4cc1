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
from io import StringIO

import pyomo.common.unittest as unittest
from pyomo.common.log import LoggingIntercept

from ipopt_adapter.dependencies import numpy as np, numpy_available
from ipopt_adapter.engine import ApplicationReturnStatus
from ipopt_adapter.exceptions import (
    IpoptInitializationError,
    WarmStartConfigurationError,
)

if numpy_available:
    from ipopt_adapter.cyipopt_engine import CyIpoptEngine
    from ipopt_adapter.solver import IpoptSolver, SolverState
    from ipopt_adapter.tests.problems import (
        LinearEqualityProblem,
        QuadraticProblem,
        ScriptedEngine,
    )

_warm_start_options = {
    'warm_start_init_point': 'yes',
    'warm_start_bound_push': 1e-9,
    'warm_start_bound_frac': 1e-9,
    'warm_start_slack_bound_frac': 1e-9,
    'warm_start_slack_bound_push': 1e-9,
    'warm_start_mult_bound_push': 1e-9,
    'mu_init': 1e-9,
    'derivative_test': 'none',
}


@unittest.skipUnless(numpy_available, 'numpy is not available')
class TestIpoptSolver(unittest.TestCase):
    def setUp(self):
        self.nlp = QuadraticProblem()
        self.engine = ScriptedEngine(solution=[1e-3])
        self.solver = IpoptSolver(self.nlp, self.engine)

    def test_default_engine(self):
        solver = IpoptSolver(QuadraticProblem())
        self.assertIsInstance(solver.engine, CyIpoptEngine)
        self.assertIs(solver.state, SolverState.CONFIGURED)
        self.assertIsNone(solver.status)

    def test_configure(self):
        solver = IpoptSolver(
            self.nlp, self.engine, max_iter=10, options={'mu_init': 0.1}
        )
        self.assertEqual(solver.config.max_iter, 10)
        self.assertEqual(self.engine.options.get_value('max_iter'), 10)
        self.assertEqual(self.engine.options.get_value('mu_init'), 0.1)
        self.assertEqual(self.engine.options.get_value('linear_solver'), 'mumps')
        # the class-level defaults are not modified
        self.assertEqual(IpoptSolver.CONFIG.max_iter, 200)

        solver.configure(check_finite=False)
        self.assertFalse(solver.adapter.check_finite)
        self.assertEqual(self.engine.options.get_value('max_iter'), 200)
        self.assertNotIn('mu_init', self.engine.options)

    def test_solve_succeeded(self):
        OUT = StringIO()
        with LoggingIntercept(OUT, 'ipopt_adapter', logging.INFO):
            self.assertTrue(self.solver.solve())
        self.assertIs(self.solver.state, SolverState.SUCCEEDED)
        self.assertIs(self.solver.status, ApplicationReturnStatus.Solve_Succeeded)
        self.assertEqual(self.engine.log, ['initialize', 'optimize_tnlp'])
        self.assertEqual(self.nlp.n_accept, 1)
        self.assertEqual(self.nlp.solution[0], 1e-3)
        self.assertEqual(self.solver.statistics.iteration_count, 7)
        self.assertEqual(
            OUT.getvalue(),
            'Initialized successfully -- starting NLP.\n'
            'The problem solved in 7 iterations!\n'
            'The final value of the objective function is 1e-06.\n',
        )

    def test_options_reach_initialize(self):
        self.solver.configure(tol=1e-6)
        self.solver.solve()
        self.assertEqual(self.engine.options_at_initialize['tol'], 1e-6)
        self.assertEqual(self.engine.starting_point_request, (True, False, False))
        self.assertEqual(self.nlp.starting_point_calls, [(True, False, False, False)])

    def test_solve_acceptable(self):
        self.engine.status = ApplicationReturnStatus.Solved_To_Acceptable_Level
        self.assertTrue(self.solver.solve())
        self.assertIs(self.solver.state, SolverState.ACCEPTABLE_LEVEL)
        self.assertIs(
            self.solver.status, ApplicationReturnStatus.Solved_To_Acceptable_Level
        )

    def test_solve_failed(self):
        self.engine.status = ApplicationReturnStatus.Maximum_Iterations_Exceeded
        OUT = StringIO()
        with LoggingIntercept(OUT, 'ipopt_adapter'):
            self.assertFalse(self.solver.solve())
        self.assertIs(self.solver.state, SolverState.FAILED)
        self.assertEqual(
            OUT.getvalue(), 'Ipopt return value: -1 (Maximum_Iterations_Exceeded)\n'
        )
        # the final iterate is still handed back
        self.assertEqual(self.nlp.n_accept, 1)

    def test_infeasible(self):
        engine = ScriptedEngine(
            status=ApplicationReturnStatus.Infeasible_Problem_Detected
        )
        solver = IpoptSolver(LinearEqualityProblem(), engine)
        OUT = StringIO()
        with LoggingIntercept(OUT, 'ipopt_adapter'):
            self.assertFalse(solver.solve())
        self.assertIn('Infeasible_Problem_Detected', OUT.getvalue())

    def test_initialization_failure(self):
        self.engine.init_status = ApplicationReturnStatus.Invalid_Option
        with self.assertRaisesRegex(
            IpoptInitializationError, r'NLP initialization failed \(Invalid_Option\)'
        ):
            self.solver.solve()
        self.assertIs(self.solver.state, SolverState.FAILED)
        self.assertEqual(self.engine.log, ['initialize'])
        self.assertEqual(self.nlp.starting_point_calls, [])
        self.assertEqual(self.nlp.n_extract, 0)
        self.assertIsNone(self.solver.status)

    def test_initialization_raises(self):
        def initialize():
            raise TypeError('unknown option type')

        self.engine.initialize = initialize
        with self.assertRaisesRegex(
            IpoptInitializationError,
            'NLP initialization failed: unknown option type',
        ) as cm:
            self.solver.solve()
        self.assertIsInstance(cm.exception.__cause__, TypeError)
        self.assertIs(self.solver.state, SolverState.FAILED)
        self.assertEqual(self.nlp.starting_point_calls, [])
        self.assertEqual(self.nlp.n_extract, 0)

    def test_engine_not_available(self):
        engine = ScriptedEngine(available=False)
        solver = IpoptSolver(self.nlp, engine)
        self.assertFalse(solver.available())
        with self.assertRaisesRegex(
            IpoptInitializationError, r'ScriptedEngine is not available \(NotFound\)'
        ):
            solver.solve()
        self.assertEqual(engine.log, [])

    def test_not_reentrant(self):
        self.engine.on_optimize = self.solver.solve
        with self.assertRaisesRegex(RuntimeError, 'is not re-entrant'):
            self.solver.solve()
        self.assertIs(self.solver.state, SolverState.FAILED)

    def test_configure_while_optimizing(self):
        self.engine.on_optimize = self.solver.configure
        with self.assertRaisesRegex(RuntimeError, 'while it is optimizing'):
            self.solver.solve()

    def test_report_timing(self):
        self.solver.configure(report_timing=True)
        OUT = StringIO()
        with LoggingIntercept(OUT, 'ipopt_adapter', logging.INFO):
            self.solver.solve()
        self.assertIn('Timing statistics', OUT.getvalue())
        self.assertIn('initialize', OUT.getvalue())
        self.assertIn('optimize', OUT.getvalue())

    def test_solve_again_without_warm_start(self):
        self.assertTrue(self.solver.solve())
        self.assertTrue(self.solver.solve())
        self.assertEqual(self.nlp.n_accept, 2)
        self.assertEqual(self.engine.starting_point_request, (True, False, False))


@unittest.skipUnless(numpy_available, 'numpy is not available')
class TestWarmStart(unittest.TestCase):
    def setUp(self):
        self.nlp = QuadraticProblem()
        self.engine = ScriptedEngine(solution=[1e-3])
        self.solver = IpoptSolver(self.nlp, self.engine)

    def test_requires_previous_solve(self):
        with self.assertRaisesRegex(
            WarmStartConfigurationError,
            r'requires a completed solve \(current state: CONFIGURED\)',
        ):
            self.solver.prepare_warm_start(10)

    def test_options(self):
        self.solver.solve()
        self.solver.prepare_warm_start(12)
        self.assertIs(self.solver.state, SolverState.WARM_START_CONFIGURED)
        options = dict(self.engine.options.items())
        for key, val in _warm_start_options.items():
            self.assertEqual(options[key], val)
        self.assertEqual(options['max_iter'], 12)
        self.assertIs(type(options['max_iter']), int)

    def test_barrier_restart(self):
        self.solver.solve()
        self.solver.prepare_warm_start(5, mu_init=1e-4)
        self.assertEqual(self.engine.options.get_value('mu_init'), 1e-4)
        self.solver.solve()
        self.assertEqual(self.engine.options_at_initialize['mu_init'], 1e-4)

    def test_overrides_derivative_test(self):
        self.solver.configure(derivative_test='first-order')
        self.solver.solve()
        self.solver.prepare_warm_start(3)
        self.assertEqual(self.engine.options.get_value('derivative_test'), 'none')

    def test_warm_solve_starts_from_last_solution(self):
        self.solver.solve()
        self.nlp.z_lb[:] = 0.25
        self.solver.prepare_warm_start(5)
        self.engine.solution = None
        self.assertTrue(self.solver.solve())
        self.assertEqual(self.engine.starting_point_request, (True, True, True))
        self.assertEqual(self.nlp.starting_point_calls[-1], (True, True, True, True))
        self.assertEqual(list(self.engine.starting_point), [1e-3])
        self.assertEqual(self.engine.options_at_initialize['max_iter'], 5)
        self.assertIs(self.solver.state, SolverState.SUCCEEDED)

    def test_after_failed_solve(self):
        self.engine.status = ApplicationReturnStatus.Maximum_Iterations_Exceeded
        self.assertFalse(self.solver.solve())
        self.solver.prepare_warm_start(50)
        self.assertIs(self.solver.state, SolverState.WARM_START_CONFIGURED)

    def test_after_initialization_failure(self):
        self.engine.init_status = ApplicationReturnStatus.Invalid_Option
        with self.assertRaises(IpoptInitializationError):
            self.solver.solve()
        with self.assertRaisesRegex(
            WarmStartConfigurationError, 'did not report any problem dimensions'
        ):
            self.solver.prepare_warm_start(10)

    def test_changed_dimensions(self):
        self.solver.solve()
        self.nlp.nnz_hessian_lag = lambda: 0
        with self.assertRaisesRegex(
            WarmStartConfigurationError,
            r'changed from \(1, 0, 0, 1\) to \(1, 0, 0, 0\)',
        ):
            self.solver.prepare_warm_start(10)
        self.assertIs(self.solver.state, SolverState.SUCCEEDED)

    def test_dimensions_change_before_warm_solve(self):
        self.solver.solve()
        self.solver.prepare_warm_start(10)
        self.nlp.nnz_hessian_lag = lambda: 0
        with self.assertRaises(WarmStartConfigurationError):
            self.solver.solve()
        self.assertIs(self.solver.state, SolverState.FAILED)
        self.assertEqual(self.nlp.n_accept, 1)

    def test_configure_discards_warm_start(self):
        self.solver.solve()
        self.solver.prepare_warm_start(10)
        self.solver.configure()
        self.assertIs(self.solver.state, SolverState.CONFIGURED)
        self.assertNotIn('warm_start_init_point', self.engine.options)
        self.assertEqual(self.engine.options.get_value('max_iter'), 200)

        # the dimension lock is lifted with the warm start
        self.nlp.nnz_hessian_lag = lambda: 0
        self.engine.solution = None
        self.assertTrue(self.solver.solve())


if __name__ == '__main__':
    unittest.main()
