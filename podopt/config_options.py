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

import logging
from pyomo.common.config import (
    ConfigBlock,
    ConfigValue,
    In,
    PositiveFloat,
    NonNegativeInt,
)
from pyomo.contrib.gdpopt.util import _DoNothing, a_logger

from podopt.errors import ConfigurationError

_disc_var_pick_modes = ('all', 'min_vertex_cover', 'weighted_min_vertex_cover')


def _greater_than_one(val):
    """Domain validator for factors that must be strictly larger than 1."""
    val = float(val)
    if not val > 1:
        raise ConfigurationError("Expected a value larger than 1, got %s" % (val,))
    return val


def _get_POD_config():
    """Set up the configurations for PODopt.

    Returns
    -------
    CONFIG : ConfigBlock
        The specific configurations for PODopt
    """
    CONFIG = ConfigBlock('PODopt')

    _add_common_configs(CONFIG)
    _add_discretization_configs(CONFIG)
    _add_subsolver_configs(CONFIG)
    _add_tolerance_configs(CONFIG)
    return CONFIG


def _add_common_configs(CONFIG):
    CONFIG.declare(
        'iteration_limit',
        ConfigValue(
            default=99,
            domain=NonNegativeInt,
            description='Iteration limit',
            doc='Number of maximum outer iterations of the bounding loop.',
        ),
    )
    CONFIG.declare(
        'time_limit',
        ConfigValue(
            default=600,
            domain=PositiveFloat,
            description='Time limit (seconds, default=600)',
            doc='Seconds allowed until terminated. Note that the time limit can '
            'only be enforced between subsolver invocations; the remaining '
            'time is passed to every subsolver as its own time limit.',
        ),
    )
    CONFIG.declare(
        'call_after_bounding_solve',
        ConfigValue(
            default=_DoNothing(),
            domain=None,
            description='Function to be executed after every bounding problem',
            doc='Callback hook after a solution of the bounding (relaxation) problem.',
        ),
    )
    CONFIG.declare(
        'call_after_local_solve',
        ConfigValue(
            default=_DoNothing(),
            domain=None,
            description='Function to be executed after every local solve',
            doc='Callback hook after a solution of the local (NLP) subproblem.',
        ),
    )
    CONFIG.declare(
        'tee',
        ConfigValue(
            default=False, description='Stream output to terminal.', domain=bool
        ),
    )
    CONFIG.declare(
        'logger',
        ConfigValue(
            default='podopt',
            description='The logger object or name to use for reporting.',
            domain=a_logger,
        ),
    )
    CONFIG.declare(
        'logging_level',
        ConfigValue(
            default=logging.INFO,
            domain=NonNegativeInt,
            description='The logging level for PODopt.'
            'CRITICAL = 50, ERROR = 40, WARNING = 30, INFO = 20, DEBUG = 10, NOTSET = 0',
        ),
    )
    CONFIG.declare(
        'solution_pool',
        ConfigValue(
            default=False,
            description='Collect the solution pool of the bounding MIP solver.',
            doc='Only used when the MIP subsolver can report a solution pool.',
            domain=bool,
        ),
    )
    CONFIG.declare(
        'bound_stop',
        ConfigValue(
            default=False,
            description='Stop the bounding solve once its bound closes the gap.',
            domain=bool,
        ),
    )


def _add_discretization_configs(CONFIG):
    """Adds the partitioning-related configurations.

    Parameters
    ----------
    CONFIG : ConfigBlock
        The specific configurations for PODopt.
    """
    CONFIG.declare(
        'disc_var_pick',
        ConfigValue(
            default='all',
            domain=In(_disc_var_pick_modes),
            description='Discretization variable selection',
            doc='How the variables to partition are chosen: every variable in '
            'a nonlinear term (all), a minimum vertex cover of the term '
            'interaction graph (min_vertex_cover), or a minimum vertex cover '
            'weighted by the distance of the bound solution to the nearest '
            'breakpoint, recomputed every iteration (weighted_min_vertex_cover).',
        ),
    )
    CONFIG.declare(
        'partition_scaling_factor',
        ConfigValue(
            default=10.0,
            domain=_greater_than_one,
            description='Partition scaling factor',
            doc='The active interval is split around the bound solution with a '
            'radius of (interval width) / (partition scaling factor). Must be '
            'larger than 1.',
        ),
    )
    CONFIG.declare(
        'disc_abs_width_tol',
        ConfigValue(
            default=1e-4,
            domain=PositiveFloat,
            description='Smallest partition interval width that is still refined.',
        ),
    )
    CONFIG.declare(
        'disc_consecutive_forbid',
        ConfigValue(
            default=0,
            domain=NonNegativeInt,
            description='Consecutive repeat limit',
            doc='A variable whose bound solution value has not changed during '
            'this many consecutive iterations is not refined again. '
            '0 disables the check.',
        ),
    )
    CONFIG.declare(
        'disc_rel_width_tol',
        ConfigValue(
            default=1e-6,
            domain=PositiveFloat,
            description='Tolerance used to decide that a bound solution value repeated.',
        ),
    )


def _add_subsolver_configs(CONFIG):
    """Adds the subsolver-related configurations.

    Parameters
    ----------
    CONFIG : ConfigBlock
        The specific configurations for PODopt.
    """
    CONFIG.declare(
        'mip_solver',
        ConfigValue(
            default='appsi_highs',
            domain=str,
            description='MIP subsolver name',
            doc='Which MIP subsolver is going to be used for the bounding '
            'problems and the vertex cover selection.',
        ),
    )
    CONFIG.declare(
        'mip_solver_args',
        ConfigBlock(
            implicit=True,
            description='MIP subsolver options',
            doc='Which MIP subsolver options to be passed to the solver while '
            'solving the bounding problems.',
        ),
    )
    CONFIG.declare(
        'nlp_solver',
        ConfigValue(
            default='ipopt',
            domain=str,
            description='NLP subsolver name',
            doc='Which NLP subsolver is going to be used for the local solves.',
        ),
    )
    CONFIG.declare(
        'nlp_solver_args',
        ConfigBlock(
            implicit=True,
            description='NLP subsolver options',
            doc='Which NLP subsolver options to be passed to the solver while '
            'solving the local subproblems.',
        ),
    )
    CONFIG.declare(
        'mip_solver_tee',
        ConfigValue(
            default=False,
            description='Stream the output of MIP solver to terminal.',
            domain=bool,
        ),
    )
    CONFIG.declare(
        'nlp_solver_tee',
        ConfigValue(
            default=False,
            description='Stream the output of nlp solver to terminal.',
            domain=bool,
        ),
    )


def _add_tolerance_configs(CONFIG):
    """Adds the tolerance-related configurations.

    Parameters
    ----------
    CONFIG : ConfigBlock
        The specific configurations for PODopt.
    """
    CONFIG.declare(
        'relative_gap',
        ConfigValue(
            default=1e-4,
            domain=PositiveFloat,
            description='Relative optimality gap',
            doc='The algorithm stops when '
            ':math:`|Incumbent - Bound| / (tolerance + |Incumbent|) <= relative gap`',
        ),
    )
    CONFIG.declare(
        'tolerance',
        ConfigValue(
            default=1e-6,
            domain=PositiveFloat,
            description='Numerical tolerance',
            doc='Tolerance used for partition lookups, integrality, variable '
            'bounds and constraint satisfaction.',
        ),
    )
