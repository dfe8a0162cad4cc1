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

"""The engine side of the protocol: what the lifecycle controller needs
from an Ipopt-style application object.

"""

import enum
from abc import ABCMeta, abstractmethod


class ApplicationReturnStatus(enum.IntEnum):
    """Return codes of the engine's initialize and optimize entry points"""

    Solve_Succeeded = 0
    Solved_To_Acceptable_Level = 1
    Infeasible_Problem_Detected = 2
    Search_Direction_Becomes_Too_Small = 3
    Diverging_Iterates = 4
    User_Requested_Stop = 5
    Feasible_Point_Found = 6

    Maximum_Iterations_Exceeded = -1
    Restoration_Failed = -2
    Error_In_Step_Computation = -3
    Maximum_CpuTime_Exceeded = -4
    Maximum_WallTime_Exceeded = -5

    Not_Enough_Degrees_Of_Freedom = -10
    Invalid_Problem_Definition = -11
    Invalid_Option = -12
    Invalid_Number_Detected = -13

    Unrecoverable_Exception = -100
    NonIpopt_Exception_Thrown = -101
    Insufficient_Memory = -102
    Internal_Error = -199

    @classmethod
    def from_code(cls, code):
        try:
            return cls(int(code))
        except ValueError:
            return cls.Internal_Error


class SolverReturn(enum.Enum):
    """Termination reason handed to TNLP.finalize_solution"""

    SUCCESS = 0
    MAXITER_EXCEEDED = 1
    CPUTIME_EXCEEDED = 2
    WALLTIME_EXCEEDED = 3
    STOP_AT_TINY_STEP = 4
    STOP_AT_ACCEPTABLE_POINT = 5
    LOCAL_INFEASIBILITY = 6
    USER_REQUESTED_STOP = 7
    FEASIBLE_POINT_FOUND = 8
    DIVERGING_ITERATES = 9
    RESTORATION_FAILURE = 10
    ERROR_IN_STEP_COMPUTATION = 11
    INVALID_NUMBER_DETECTED = 12
    TOO_FEW_DEGREES_OF_FREEDOM = 13
    INVALID_OPTION = 14
    OUT_OF_MEMORY = 15
    INTERNAL_ERROR = 16
    UNASSIGNED = 17


_solver_return_map = {
    ApplicationReturnStatus.Solve_Succeeded: SolverReturn.SUCCESS,
    ApplicationReturnStatus.Solved_To_Acceptable_Level: (
        SolverReturn.STOP_AT_ACCEPTABLE_POINT
    ),
    ApplicationReturnStatus.Infeasible_Problem_Detected: (
        SolverReturn.LOCAL_INFEASIBILITY
    ),
    ApplicationReturnStatus.Search_Direction_Becomes_Too_Small: (
        SolverReturn.STOP_AT_TINY_STEP
    ),
    ApplicationReturnStatus.Diverging_Iterates: SolverReturn.DIVERGING_ITERATES,
    ApplicationReturnStatus.User_Requested_Stop: SolverReturn.USER_REQUESTED_STOP,
    ApplicationReturnStatus.Feasible_Point_Found: SolverReturn.FEASIBLE_POINT_FOUND,
    ApplicationReturnStatus.Maximum_Iterations_Exceeded: (
        SolverReturn.MAXITER_EXCEEDED
    ),
    ApplicationReturnStatus.Restoration_Failed: SolverReturn.RESTORATION_FAILURE,
    ApplicationReturnStatus.Error_In_Step_Computation: (
        SolverReturn.ERROR_IN_STEP_COMPUTATION
    ),
    ApplicationReturnStatus.Maximum_CpuTime_Exceeded: SolverReturn.CPUTIME_EXCEEDED,
    ApplicationReturnStatus.Maximum_WallTime_Exceeded: (
        SolverReturn.WALLTIME_EXCEEDED
    ),
    ApplicationReturnStatus.Not_Enough_Degrees_Of_Freedom: (
        SolverReturn.TOO_FEW_DEGREES_OF_FREEDOM
    ),
    ApplicationReturnStatus.Invalid_Option: SolverReturn.INVALID_OPTION,
    ApplicationReturnStatus.Invalid_Number_Detected: (
        SolverReturn.INVALID_NUMBER_DETECTED
    ),
    ApplicationReturnStatus.Insufficient_Memory: SolverReturn.OUT_OF_MEMORY,
}


def solver_return_for(status):
    """Map an application status to the reason reported to the TNLP"""
    return _solver_return_map.get(status, SolverReturn.INTERNAL_ERROR)


class OptionsList(object):
    """Typed engine options, applied by :py:meth:`NlpEngine.initialize`

    Every setter returns True if the value was stored. Setters called
    with ``clobber=False`` leave an already present option untouched.
    """

    def __init__(self):
        self._options = {}

    def _set(self, key, value, clobber):
        if not clobber and key in self._options:
            return False
        self._options[key] = value
        return True

    def set_numeric_value(self, key, value, clobber=True):
        return self._set(key, float(value), clobber)

    def set_integer_value(self, key, value, clobber=True):
        if int(value) != value:
            raise ValueError(
                "Option '%s' expects an integer value (got %r)" % (key, value)
            )
        return self._set(key, int(value), clobber)

    def set_string_value(self, key, value, clobber=True):
        return self._set(key, str(value), clobber)

    def set_string_value_if_unset(self, key, value):
        return self.set_string_value(key, value, clobber=False)

    def set_value(self, key, value, clobber=True):
        """Store an untyped (pass-through) option"""
        if isinstance(value, bool):
            return self.set_string_value(key, 'yes' if value else 'no', clobber)
        if isinstance(value, int):
            return self.set_integer_value(key, value, clobber)
        if isinstance(value, float):
            return self.set_numeric_value(key, value, clobber)
        if isinstance(value, str):
            return self.set_string_value(key, value, clobber)
        raise TypeError(
            "Option '%s' has unsupported type %s" % (key, type(value).__name__)
        )

    def get_value(self, key, default=None):
        return self._options.get(key, default)

    def unset(self, key):
        self._options.pop(key, None)

    def clear(self):
        self._options.clear()

    def items(self):
        return self._options.items()

    def __contains__(self, key):
        return key in self._options

    def __iter__(self):
        return iter(self._options)

    def __len__(self):
        return len(self._options)


class SolveStatistics(object):
    def __init__(self, iteration_count=0, final_objective=None):
        self.iteration_count = iteration_count
        self.final_objective = final_objective

    def __repr__(self):
        return 'SolveStatistics(iteration_count=%r, final_objective=%r)' % (
            self.iteration_count,
            self.final_objective,
        )


class NlpEngine(object, metaclass=ABCMeta):
    class Availability(enum.IntEnum):
        Available = 1
        NotFound = 0
        NeedsCompiledExtension = -3

        def __bool__(self):
            return self._value_ > 0

        def __format__(self, format_spec):
            return format(self.name, format_spec)

        def __str__(self):
            return self.name

    def __init__(self):
        self._options = OptionsList()
        self._statistics = None

    @property
    def options(self):
        return self._options

    @property
    def statistics(self):
        """The :py:class:`SolveStatistics` of the last optimize call (None
        before the first one)
        """
        return self._statistics

    @abstractmethod
    def available(self):
        """
        Returns
        -------
        available: NlpEngine.Availability
        """
        pass

    @abstractmethod
    def initialize(self):
        """Validate and apply :py:attr:`options`.

        Must not call back into any TNLP.

        Returns
        -------
        status: ApplicationReturnStatus
            Solve_Succeeded if the engine is ready to optimize
        """
        pass

    @abstractmethod
    def optimize_tnlp(self, tnlp):
        """Run the optimization, driving every callback of ``tnlp``. Blocks
        until the engine terminates; ``tnlp.finalize_solution`` is called
        exactly once before returning.

        Returns
        -------
        status: ApplicationReturnStatus
        """
        pass
