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

import json
import os

from pyomo.common.config import (
    ConfigDict,
    ConfigValue,
    In,
    NonNegativeFloat,
    NonNegativeInt,
    PositiveFloat,
)
from pyomo.common.dependencies import yaml, yaml_available, yaml_load_args

YesNo = In(['yes', 'no'])


class IpoptConfig(ConfigDict):
    """
    Attributes
    ----------
    tol: float - sent to engine
        Desired convergence tolerance (relative)
    constr_viol_tol: float - sent to engine
        Desired threshold for the constraint violation (absolute)
    max_iter: int - sent to engine
        Maximum number of iterations
    linear_scaling_on_demand: str - sent to engine
        Only scale the linear system if the solution quality is poor
    hessian_approximation: str - sent to engine
        'exact' uses eval_h; 'limited-memory' never calls it
    nlp_scaling_method: str - sent to engine
        Scaling applied to the NLP
    print_level: int - sent to engine
        Verbosity of the engine's console output (0-12)
    print_user_options: str - sent to engine
        Print all options set by the user
    derivative_test: str - sent to engine
        Finite difference check of the derivative callbacks
    derivative_test_tol: float - sent to engine
    derivative_test_perturbation: float - sent to engine
    point_perturbation_radius: float - sent to engine
        Radius of the random perturbation of the point the derivative
        test is performed at
    linear_system_scaling: str - sent to engine
    linear_solver: str - sent to engine
        Validated by the engine, not by the config
    options: dict - sent to engine
        Additional engine options, passed through unchanged. These take
        precedence over the settings above.
    check_finite: bool - wrapper
        Raise NlpContractViolation for non-finite callback outputs
    report_timing: bool - wrapper
        If True, then timing information is logged at the end of the solve
    """

    def __init__(
        self,
        description=None,
        doc=None,
        implicit=False,
        implicit_domain=None,
        visibility=0,
    ):
        super().__init__(
            description=description,
            doc=doc,
            implicit=implicit,
            implicit_domain=implicit_domain,
            visibility=visibility,
        )

        self.tol: float = self.declare(
            'tol', ConfigValue(domain=PositiveFloat, default=1e-8)
        )
        self.constr_viol_tol: float = self.declare(
            'constr_viol_tol', ConfigValue(domain=PositiveFloat, default=1e-4)
        )
        self.max_iter: int = self.declare(
            'max_iter', ConfigValue(domain=NonNegativeInt, default=200)
        )
        self.linear_scaling_on_demand: str = self.declare(
            'linear_scaling_on_demand', ConfigValue(domain=YesNo, default='yes')
        )
        self.hessian_approximation: str = self.declare(
            'hessian_approximation',
            ConfigValue(domain=In(['exact', 'limited-memory']), default='exact'),
        )
        self.nlp_scaling_method: str = self.declare(
            'nlp_scaling_method',
            ConfigValue(
                domain=In(
                    ['none', 'user-scaling', 'gradient-based', 'equilibration-based']
                ),
                default='gradient-based',
            ),
        )
        self.print_level: int = self.declare(
            'print_level', ConfigValue(domain=In(range(13)), default=5)
        )
        self.print_user_options: str = self.declare(
            'print_user_options', ConfigValue(domain=YesNo, default='no')
        )
        self.derivative_test: str = self.declare(
            'derivative_test',
            ConfigValue(
                domain=In(
                    ['none', 'first-order', 'second-order', 'only-second-order']
                ),
                default='none',
            ),
        )
        self.derivative_test_tol: float = self.declare(
            'derivative_test_tol', ConfigValue(domain=PositiveFloat, default=1e-4)
        )
        self.derivative_test_perturbation: float = self.declare(
            'derivative_test_perturbation',
            ConfigValue(domain=PositiveFloat, default=1e-8),
        )
        self.point_perturbation_radius: float = self.declare(
            'point_perturbation_radius',
            ConfigValue(domain=NonNegativeFloat, default=10.0),
        )
        self.linear_system_scaling: str = self.declare(
            'linear_system_scaling', ConfigValue(domain=str, default='none')
        )
        self.linear_solver: str = self.declare(
            'linear_solver', ConfigValue(domain=str, default='mumps')
        )
        self.options: ConfigDict = self.declare(
            'options',
            ConfigDict(
                implicit=True,
                description='Options passed unchanged to the engine',
            ),
        )
        self.check_finite: bool = self.declare(
            'check_finite', ConfigValue(domain=bool, default=True)
        )
        self.report_timing: bool = self.declare(
            'report_timing', ConfigValue(domain=bool, default=False)
        )


_numeric_options = (
    'tol',
    'constr_viol_tol',
    'derivative_test_tol',
    'derivative_test_perturbation',
    'point_perturbation_radius',
)
_integer_options = ('max_iter', 'print_level')
_string_options = (
    'linear_scaling_on_demand',
    'hessian_approximation',
    'nlp_scaling_method',
    'print_user_options',
    'derivative_test',
    'linear_system_scaling',
    'linear_solver',
)


def set_solver_options(config, options):
    """Load ``config`` into an engine OptionsList

    The pass-through options are stored first; the declared settings are
    then only stored for options that are still unset.
    """
    options.clear()
    for key, val in config.options.items():
        options.set_value(key, val)
    for key in _numeric_options:
        options.set_numeric_value(key, config[key], clobber=False)
    for key in _integer_options:
        options.set_integer_value(key, config[key], clobber=False)
    for key in _string_options:
        options.set_string_value_if_unset(key, config[key])
    return options


def load_config(filename, config=None):
    """Read solver settings from a JSON or YAML file

    The file holds a mapping of IpoptConfig entries, either at the top
    level or under a single ``ipopt`` section.
    """
    if config is None:
        config = IpoptConfig()
    ext = os.path.splitext(filename)[1].lower()
    with open(filename) as FILE:
        if ext in ('.yml', '.yaml'):
            if not yaml_available:
                raise RuntimeError(
                    "Reading '%s' requires the optional dependency pyyaml"
                    % (filename,)
                )
            data = yaml.load(FILE, **yaml_load_args)
        elif ext == '.json':
            data = json.load(FILE)
        else:
            raise ValueError(
                "Unrecognized settings file format '%s' (expected .json, "
                ".yml or .yaml)" % (ext,)
            )
    if data is None:
        data = {}
    if set(data) == {'ipopt'}:
        data = data['ipopt']
    config.set_value(data)
    return config
