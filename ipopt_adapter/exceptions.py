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

from pyomo.common.errors import PyomoException


class NlpEvaluationError(PyomoException, ArithmeticError):
    """An exception to be raised by NLP evaluation backends in the event
    of a failed function evaluation. This should be caught by engine
    interfaces and translated to the engine-specific evaluation error API
    (so that, e.g., the line search can backtrack).

    """

    pass


class NlpContractViolation(PyomoException, ValueError):
    """Raised when an NLP breaks the data contract it reported to the
    engine: buffer lengths that do not match the reported dimensions,
    dimensions that change during a solve, or non-finite outputs.

    """

    pass


class IpoptInitializationError(PyomoException, RuntimeError):
    """Raised when the engine rejects its configuration or fails its
    internal setup. This is not retried: it indicates a configuration or
    installation defect rather than a numerical difficulty.

    """

    default_message = 'NLP initialization failed'


class WarmStartConfigurationError(PyomoException, ValueError):
    """Raised when a warm start is requested that the engine cannot honor,
    e.g., before any solve or after the problem dimensions changed.

    """

    pass
