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

import pyomo.common.unittest as unittest

from ipopt_adapter.dependencies import (
    numpy as np,
    numpy_available,
    cyipopt_available,
)
from ipopt_adapter.engine import ApplicationReturnStatus
from ipopt_adapter.exceptions import IpoptInitializationError

if numpy_available:
    from ipopt_adapter.cyipopt_engine import CyIpoptEngine
    from ipopt_adapter.nlp import CallbackNlp
    from ipopt_adapter.solver import IpoptSolver, SolverState
    from ipopt_adapter.tests.problems import (
        HS071_OBJECTIVE,
        HS071_SOLUTION,
        LinearEqualityProblem,
        QuadraticProblem,
        hs071_callbacks,
    )

_quiet = dict(print_level=0, options={'sb': 'yes'})


@unittest.skipUnless(numpy_available, 'numpy is not available')
class TestCyIpoptAvailability(unittest.TestCase):
    @unittest.skipIf(cyipopt_available, 'cyipopt is available')
    def test_unavailable(self):
        solver = IpoptSolver(QuadraticProblem())
        self.assertFalse(solver.available())
        with self.assertRaisesRegex(
            IpoptInitializationError, r'CyIpoptEngine is not available \(NotFound\)'
        ):
            solver.solve()


@unittest.pytest.mark.solver('cyipopt')
@unittest.skipUnless(cyipopt_available, 'cyipopt is not available')
class TestCyIpoptEngine(unittest.TestCase):
    def test_quadratic(self):
        nlp = QuadraticProblem()
        solver = IpoptSolver(nlp, **_quiet)
        self.assertTrue(solver.solve())
        self.assertIs(solver.state, SolverState.SUCCEEDED)
        self.assertIs(solver.status, ApplicationReturnStatus.Solve_Succeeded)
        self.assertEqual(nlp.n_accept, 1)
        self.assertAlmostEqual(nlp.solution[0], 0.0, places=6)
        self.assertAlmostEqual(solver.statistics.final_objective, 0.0, places=10)
        self.assertGreater(solver.statistics.iteration_count, 0)

    def test_linear_equality(self):
        nlp = LinearEqualityProblem()
        solver = IpoptSolver(nlp, **_quiet)
        self.assertTrue(solver.solve())
        self.assertAlmostEqual(nlp.x.sum(), 1.0, places=6)
        self.assertTrue(np.all(nlp.x >= -1e-8))
        self.assertAlmostEqual(solver.statistics.final_objective, 1.0, places=6)
        self.assertAlmostEqual(nlp.lam[0], -1.0, places=4)

    def test_hs071(self):
        nlp = CallbackNlp(**hs071_callbacks())
        solver = IpoptSolver(nlp, **_quiet)
        self.assertTrue(solver.solve())
        self.assertTrue(nlp.has_solution)
        self.assertStructuredAlmostEqual(
            list(nlp.get_primals()), HS071_SOLUTION, places=5
        )
        self.assertAlmostEqual(
            solver.statistics.final_objective, HS071_OBJECTIVE, places=5
        )

    def test_hs071_limited_memory(self):
        kwds = hs071_callbacks()
        del kwds['hessian']
        nlp = CallbackNlp(**kwds)
        solver = IpoptSolver(
            nlp, hessian_approximation='limited-memory', max_iter=500, **_quiet
        )
        self.assertTrue(solver.solve())
        self.assertStructuredAlmostEqual(
            list(nlp.get_primals()), HS071_SOLUTION, places=4
        )

    def test_warm_start(self):
        nlp = CallbackNlp(**hs071_callbacks())
        solver = IpoptSolver(nlp, **_quiet)
        self.assertTrue(solver.solve())
        cold_iterations = solver.statistics.iteration_count

        solver.prepare_warm_start(10)
        self.assertTrue(solver.solve())
        self.assertLessEqual(solver.statistics.iteration_count, 10)
        self.assertGreater(cold_iterations, 0)
        self.assertStructuredAlmostEqual(
            list(nlp.get_primals()), HS071_SOLUTION, places=5
        )

    def test_warm_start_from_solution(self):
        nlp = QuadraticProblem()
        solver = IpoptSolver(nlp, **_quiet)
        self.assertTrue(solver.solve())
        solver.prepare_warm_start(1)
        self.assertTrue(solver.solve())
        self.assertLessEqual(solver.statistics.iteration_count, 1)
        self.assertAlmostEqual(nlp.solution[0], 0.0, places=6)
        self.assertEqual(nlp.starting_point_calls[-1], (True, True, True, True))

    def test_iteration_limit(self):
        nlp = CallbackNlp(**hs071_callbacks())
        solver = IpoptSolver(nlp, max_iter=2, **_quiet)
        self.assertFalse(solver.solve())
        self.assertIs(solver.state, SolverState.FAILED)
        self.assertIs(
            solver.status, ApplicationReturnStatus.Maximum_Iterations_Exceeded
        )
        self.assertTrue(nlp.has_solution)

    def test_invalid_linear_solver(self):
        nlp = QuadraticProblem()
        solver = IpoptSolver(nlp, linear_solver='not_a_solver', **_quiet)
        with self.assertRaisesRegex(IpoptInitializationError, 'Invalid_Option'):
            solver.solve()
        self.assertEqual(nlp.starting_point_calls, [])
        self.assertEqual(nlp.n_extract, 0)

    def test_engine_initialize(self):
        engine = CyIpoptEngine()
        self.assertTrue(engine.available())
        engine.options.set_integer_value('print_level', 0)
        self.assertIs(engine.initialize(), ApplicationReturnStatus.Solve_Succeeded)
        engine.options.set_string_value('mu_strategy', 'no_such_strategy')
        self.assertIs(engine.initialize(), ApplicationReturnStatus.Invalid_Option)


if __name__ == '__main__':
    unittest.main()
