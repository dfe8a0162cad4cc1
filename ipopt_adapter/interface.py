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

from abc import ABCMeta, abstractmethod
from collections import namedtuple


NlpDimensions = namedtuple('NlpDimensions', ['n', 'm', 'nnz_jac', 'nnz_hess'])
NlpDimensions.__doc__ = """Sizes an NLP reports to the engine for one solve

n: number of primal variables
m: number of constraints
nnz_jac: structural nonzeros of the constraint Jacobian
nnz_hess: structural nonzeros of the lower triangle of the Lagrangian Hessian
"""


class BaseNlpInterface(object, metaclass=ABCMeta):
    """The capabilities the adapter needs from an NLP.

    All output arguments are borrowed numpy views of engine-owned
    storage. Implementations fill them in place and must not keep a
    reference to them once the method returns.

    Evaluation methods act on the primal values most recently handed to
    :py:meth:`extract`.
    """

    @abstractmethod
    def n_primals(self):
        pass

    @abstractmethod
    def n_constraints(self):
        pass

    @abstractmethod
    def nnz_jacobian(self):
        pass

    @abstractmethod
    def nnz_hessian_lag(self):
        """Nonzeros in the lower triangle of the Lagrangian Hessian"""
        pass

    def dimensions(self):
        return NlpDimensions(
            n=self.n_primals(),
            m=self.n_constraints(),
            nnz_jac=self.nnz_jacobian(),
            nnz_hess=self.nnz_hessian_lag(),
        )

    @abstractmethod
    def get_bounds(self, x_lb, x_ub, g_lb, g_ub):
        """Fill the variable bounds (length n) and the constraint bounds
        (length m). Equality constraints use equal lower and upper bounds.
        """
        pass

    @abstractmethod
    def get_starting_point(self, x=None, z_lb=None, z_ub=None, lam=None):
        """Fill the initial primals, bound multipliers and constraint
        multipliers. Arguments that are None were not requested by the
        engine and must be left alone.
        """
        pass

    @abstractmethod
    def extract(self, x, new_x):
        """Make ``x`` the point subsequent evaluations refer to.

        Parameters
        ----------
        x: numpy.ndarray
            Read-only primal values
        new_x: bool
            False if ``x`` equals the point of the previous call, in which
            case cached results may be reused
        """
        pass

    @abstractmethod
    def evaluate_objective(self):
        pass

    @abstractmethod
    def evaluate_grad_objective(self, out):
        pass

    @abstractmethod
    def evaluate_constraints(self, out):
        pass

    @abstractmethod
    def get_jacobian_structure(self, irow, jcol):
        """Fill the 0-based row and column indices of the Jacobian
        nonzeros. The order defines the order of
        :py:meth:`evaluate_jacobian`.
        """
        pass

    @abstractmethod
    def evaluate_jacobian(self, out):
        pass

    @abstractmethod
    def get_hessian_structure(self, irow, jcol):
        """Fill the 0-based row and column indices of the nonzeros in the
        lower triangle (row >= col) of the Lagrangian Hessian.
        """
        pass

    @abstractmethod
    def evaluate_hessian_lag(self, obj_factor, lam, out):
        """Fill the values of
        ``obj_factor * hess(f) + sum_i lam[i] * hess(g_i)``
        in the order of :py:meth:`get_hessian_structure`.
        """
        pass

    @abstractmethod
    def accept_solution(self, x, z_lb, z_ub, lam):
        """Retain the final iterate. The arguments are borrowed and must be
        copied.
        """
        pass
