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

"""Zero-copy views of engine-owned buffers.

The engine hands every callback raw storage that it owns (numpy arrays,
objects exporting the buffer protocol, or ctypes pointers). A
:py:class:`VectorView` presents that storage as a 1-D numpy array of an
exact length without copying it, so that values written through the view
are seen by the engine as soon as the callback returns.

Views are borrowed: they are only valid inside the ``with`` block that
created them and must not be stored by the NLP.

"""

import ctypes

from ipopt_adapter.dependencies import numpy as np
from ipopt_adapter.exceptions import NlpContractViolation

# Ipopt::Number and Ipopt::Index
NUMBER = np.float64
INDEX = np.int32


def _as_ndarray(buffer, size, dtype):
    if isinstance(buffer, np.ndarray):
        return buffer
    if isinstance(buffer, ctypes._Pointer):
        return np.ctypeslib.as_array(buffer, shape=(size,))
    return np.frombuffer(buffer, dtype=dtype)


class VectorView(object):
    """A borrowed view of ``size`` entries of ``buffer``

    Parameters
    ----------
    buffer: numpy.ndarray, buffer-protocol object, or ctypes pointer
        The engine-owned storage
    size: int
        The dimension the engine declared for this buffer
    dtype: numpy.dtype
        NUMBER for values, INDEX for sparsity patterns
    writeable: bool
        If False, the view refuses writes (the engine's ``const`` arrays)
    name: str
        Used in error messages
    """

    def __init__(self, buffer, size, dtype=NUMBER, writeable=True, name='vector'):
        self._name = name
        if buffer is None:
            raise NlpContractViolation(
                'No buffer was provided for %s (expected %d entries)' % (name, size)
            )
        array = _as_ndarray(buffer, size, dtype)
        if array.ndim != 1 or not array.flags.c_contiguous:
            raise NlpContractViolation(
                '%s must be a contiguous 1-D buffer' % (name,)
            )
        if array.dtype != dtype:
            raise NlpContractViolation(
                '%s has dtype %s; expected %s' % (name, array.dtype, np.dtype(dtype))
            )
        if array.size != size:
            raise NlpContractViolation(
                '%s has %d entries; expected %d' % (name, array.size, size)
            )
        if writeable and not array.flags.writeable:
            raise NlpContractViolation('%s is read-only' % (name,))
        # A view (not a copy) so that the flags below do not leak back to
        # the engine's array
        self._array = array.view()
        self._array.flags.writeable = writeable

    @property
    def array(self):
        if self._array is None:
            raise ValueError(
                'The view of %s was released and may no longer be used' % (self._name,)
            )
        return self._array

    @property
    def released(self):
        return self._array is None

    def release(self):
        if self._array is not None:
            # arrays kept by the NLP may no longer write into engine storage
            self._array.flags.writeable = False
        self._array = None

    def __enter__(self):
        return self.array

    def __exit__(self, et, ev, tb):
        self.release()

    def __len__(self):
        return len(self.array)


def borrow(buffer, size, writeable=True, name='vector'):
    """Return a :py:class:`VectorView` of a floating point buffer"""
    return VectorView(buffer, size, dtype=NUMBER, writeable=writeable, name=name)


def borrow_index(buffer, size, name='index'):
    """Return a writeable :py:class:`VectorView` of an index buffer"""
    return VectorView(buffer, size, dtype=INDEX, writeable=True, name=name)
