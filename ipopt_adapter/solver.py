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

import enum
import logging

from pyomo.common.timing import HierarchicalTimer

from ipopt_adapter.adapter import NlpAdapter
from ipopt_adapter.config import IpoptConfig, set_solver_options
from ipopt_adapter.cyipopt_engine import CyIpoptEngine
from ipopt_adapter.engine import ApplicationReturnStatus
from ipopt_adapter.exceptions import (
    IpoptInitializationError,
    WarmStartConfigurationError,
)

logger = logging.getLogger(__name__)


class SolverState(enum.Enum):
    CONFIGURED = 0
    INITIALIZING = 1
    OPTIMIZING = 2
    SUCCEEDED = 3
    ACCEPTABLE_LEVEL = 4
    FAILED = 5
    WARM_START_CONFIGURED = 6


_terminal_states = {
    SolverState.SUCCEEDED,
    SolverState.ACCEPTABLE_LEVEL,
    SolverState.FAILED,
}

# Everything Ipopt needs to stay close to the supplied iterate
_warm_start_push = (
    'warm_start_bound_push',
    'warm_start_bound_frac',
    'warm_start_slack_bound_frac',
    'warm_start_slack_bound_push',
    'warm_start_mult_bound_push',
)


class IpoptSolver(object):
    """Solve an NLP with an Ipopt-style engine

    The solver owns one engine and one :py:class:`NlpAdapter` around the
    NLP for its whole lifetime. :py:meth:`solve` initializes the engine
    and runs a blocking optimization in which the engine drives the
    adapter callbacks. :py:meth:`prepare_warm_start` arranges for the
    next solve to start from the iterate the NLP retained.

    Parameters
    ----------
    nlp: ipopt_adapter.interface.BaseNlpInterface
        The problem to solve
    engine: ipopt_adapter.engine.NlpEngine, optional
        Defaults to a :py:class:`CyIpoptEngine`
    **kwds
        Values for :py:class:`IpoptConfig`
    """

    CONFIG = IpoptConfig()

    def __init__(self, nlp, engine=None, **kwds):
        self._nlp = nlp
        if engine is None:
            engine = CyIpoptEngine()
        self._engine = engine
        self._adapter = NlpAdapter(nlp)
        self._status = None
        self._last_dimensions = None
        self._state = None
        self.config = None
        self.configure(**kwds)

    @property
    def nlp(self):
        return self._nlp

    @property
    def engine(self):
        return self._engine

    @property
    def adapter(self):
        return self._adapter

    @property
    def state(self):
        return self._state

    @property
    def status(self):
        """The ApplicationReturnStatus of the last solve (None before the
        first one)
        """
        return self._status

    @property
    def statistics(self):
        return self._engine.statistics

    def available(self):
        return self._engine.available()

    def configure(self, config=None, **kwds):
        """Load settings into the engine options and return to CONFIGURED

        This discards any warm start preparation.
        """
        if self._state is SolverState.OPTIMIZING:
            raise RuntimeError('Cannot configure the solver while it is optimizing')
        base = self.CONFIG if config is None else config
        self.config = base(kwds)
        self._adapter.check_finite = self.config.check_finite
        self._adapter.require_dimensions(None)
        set_solver_options(self.config, self._engine.options)
        self._state = SolverState.CONFIGURED
        return self.config

    def solve(self, timer=None):
        """Initialize the engine and optimize

        Returns
        -------
        success: bool
            True if the engine succeeded or stopped at an acceptable
            point. The distinction is available from :py:attr:`status`.

        Raises
        ------
        IpoptInitializationError
            If the engine is unavailable or rejects its configuration. No
            NLP callback has been invoked in that case.
        """
        if self._state in (SolverState.INITIALIZING, SolverState.OPTIMIZING):
            raise RuntimeError('IpoptSolver.solve() is not re-entrant')
        if timer is None:
            timer = HierarchicalTimer()

        self._state = SolverState.INITIALIZING
        avail = self._engine.available()
        if not avail:
            self._state = SolverState.FAILED
            raise IpoptInitializationError(
                'NLP initialization failed: engine %s is not available (%s)'
                % (type(self._engine).__name__, avail)
            )
        timer.start('initialize')
        try:
            status = self._engine.initialize()
        except Exception as e:
            self._state = SolverState.FAILED
            raise IpoptInitializationError(
                'NLP initialization failed: %s' % (e,)
            ) from e
        finally:
            timer.stop('initialize')
        if status != ApplicationReturnStatus.Solve_Succeeded:
            self._state = SolverState.FAILED
            raise IpoptInitializationError(
                'NLP initialization failed (%s)' % (_status_name(status),)
            )
        logger.info('Initialized successfully -- starting NLP.')

        self._state = SolverState.OPTIMIZING
        timer.start('optimize')
        try:
            self._status = self._engine.optimize_tnlp(self._adapter)
        except Exception:
            self._state = SolverState.FAILED
            raise
        finally:
            timer.stop('optimize')
        self._last_dimensions = self._adapter.dimensions

        if self.config.report_timing:
            logger.info('Timing statistics\n%s', timer)

        if self._status == ApplicationReturnStatus.Solve_Succeeded:
            self._state = SolverState.SUCCEEDED
        elif self._status == ApplicationReturnStatus.Solved_To_Acceptable_Level:
            self._state = SolverState.ACCEPTABLE_LEVEL
        else:
            self._state = SolverState.FAILED
            logger.warning(
                'Ipopt return value: %s (%s)',
                int(self._status),
                _status_name(self._status),
            )
            return False

        stats = self._engine.statistics
        if stats is not None:
            logger.info('The problem solved in %s iterations!', stats.iteration_count)
            logger.info(
                'The final value of the objective function is %s.',
                stats.final_objective,
            )
        return True

    def prepare_warm_start(self, max_iterations, mu_init=1e-9):
        """Make the next solve start from the iterate retained by the NLP

        Enables the engine's warm start, pushes the starting point and
        multipliers as little as possible away from the bounds, caps the
        next solve at ``max_iterations`` iterations and switches off the
        derivative test. The barrier parameter restarts at ``mu_init``.
        The NLP must keep the dimensions of the previous solve.

        Raises
        ------
        WarmStartConfigurationError
            If there was no previous solve, or the NLP dimensions changed
        """
        if self._state not in _terminal_states:
            raise WarmStartConfigurationError(
                'A warm start requires a completed solve (current state: %s)'
                % (self._state.name,)
            )
        if self._last_dimensions is None:
            raise WarmStartConfigurationError(
                'The previous solve did not report any problem dimensions'
            )
        dims = self._nlp.dimensions()
        if tuple(dims) != tuple(self._last_dimensions):
            raise WarmStartConfigurationError(
                'The NLP dimensions changed from %s to %s; a warm start must '
                'keep the dimensions of the previous solve'
                % (tuple(self._last_dimensions), tuple(dims))
            )

        options = self._engine.options
        options.set_string_value('warm_start_init_point', 'yes')
        for key in _warm_start_push:
            options.set_numeric_value(key, 1e-9)
        options.set_integer_value('max_iter', max_iterations)
        options.set_numeric_value('mu_init', mu_init)
        options.set_string_value('derivative_test', 'none')

        self._adapter.require_dimensions(self._last_dimensions)
        self._state = SolverState.WARM_START_CONFIGURED


def _status_name(status):
    try:
        return ApplicationReturnStatus(status).name
    except ValueError:
        return str(status)
