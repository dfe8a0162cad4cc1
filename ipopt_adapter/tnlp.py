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

"""The callback protocol an Ipopt-style engine drives.

Every method is invoked by the engine, on the thread that called the
engine's optimize entry point, with engine-owned buffers that are only
valid for the duration of the call. Methods return True on success; an
engine treats False as a failed evaluation.

"""

import ctypes
import enum
from abc import ABCMeta, abstractmethod


class IndexStyle(enum.IntEnum):
    C_STYLE = 0
    FORTRAN_STYLE = 1


class Phase(enum.Enum):
    """Which half of a two-phase sparse callback is requested

    STRUCTURE: fill the row/column indices of the nonzeros
    VALUES: fill the numerical values, in the order of the structure
    """

    STRUCTURE = 0
    VALUES = 1

    @classmethod
    def of(cls, values):
        """The phase an engine requests by passing (or omitting) the
        values target. Raw bindings pass a NULL pointer for "absent".
        """
        if values is None or (isinstance(values, ctypes._Pointer) and not values):
            return cls.STRUCTURE
        return cls.VALUES


class TNLP(object, metaclass=ABCMeta):
    @abstractmethod
    def get_nlp_info(self):
        """
        Returns
        -------
        info: tuple
            (n, m, nnz_jac_g, nnz_h_lag, index_style)
        """
        pass

    @abstractmethod
    def get_bounds_info(self, n, x_l, x_u, m, g_l, g_u):
        pass

    @abstractmethod
    def get_starting_point(
        self, n, init_x, x, init_z, z_L, z_U, m, init_lambda, lambda_
    ):
        pass

    @abstractmethod
    def eval_f(self, n, x, new_x):
        """
        Returns
        -------
        obj_value: float
        """
        pass

    @abstractmethod
    def eval_grad_f(self, n, x, new_x, grad_f):
        pass

    @abstractmethod
    def eval_g(self, n, x, new_x, m, g):
        pass

    @abstractmethod
    def eval_jac_g(self, n, x, new_x, m, nele_jac, phase, irow, jcol, values):
        pass

    @abstractmethod
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
        pass

    @abstractmethod
    def finalize_solution(self, status, n, x, z_L, z_U, m, g, lambda_, obj_value):
        pass

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
        """Called once per iteration. Returning False asks the engine to
        stop.
        """
        return True
