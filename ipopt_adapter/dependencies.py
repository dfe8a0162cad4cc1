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

from pyomo.common.dependencies import attempt_import, scipy, scipy_available

numpy, numpy_available = attempt_import(
    'numpy',
    'ipopt_adapter requires the dependency "numpy"',
    minimum_version='1.13.0',
    defer_import=False,
)

# cyipopt needs a compiled Ipopt library, so it stays optional and is
# only resolved the first time the engine touches it
cyipopt, cyipopt_available = attempt_import(
    'cyipopt',
    'The cyipopt engine requires the optional dependency "cyipopt" '
    '(Python bindings to the Ipopt NLP solver)',
)

if not numpy_available:
    numpy.log_import_warning('ipopt_adapter')

if not scipy_available:
    scipy.log_import_warning(
        'ipopt_adapter',
        'CallbackNlp requires the dependency "scipy.sparse"',
    )
