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

"""Serve nonlinear programs to Ipopt-style interior point engines.

An NLP implements :py:class:`BaseNlpInterface`. :py:class:`IpoptSolver`
wraps it in an :py:class:`NlpAdapter`, which answers the engine's TNLP
callbacks through zero-copy views of the engine's buffers, and drives
initialization, optimization and warm starts.
"""

from ipopt_adapter.version import version, version_info, __version__
from ipopt_adapter.exceptions import (
    NlpEvaluationError,
    NlpContractViolation,
    IpoptInitializationError,
    WarmStartConfigurationError,
)
from ipopt_adapter.vector_view import VectorView, borrow, borrow_index
from ipopt_adapter.interface import BaseNlpInterface, NlpDimensions
from ipopt_adapter.tnlp import TNLP, IndexStyle, Phase
from ipopt_adapter.engine import (
    ApplicationReturnStatus,
    NlpEngine,
    OptionsList,
    SolverReturn,
    SolveStatistics,
)
from ipopt_adapter.adapter import NlpAdapter
from ipopt_adapter.nlp import NlpModel, CallbackNlp
from ipopt_adapter.config import IpoptConfig, load_config, set_solver_options
from ipopt_adapter.cyipopt_engine import CyIpoptEngine
from ipopt_adapter.solver import IpoptSolver, SolverState
