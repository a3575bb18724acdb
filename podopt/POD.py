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

"""Implementation of the PODopt solver.

PODopt (Piecewise cOnvex relaxation with aDaptive partitioning) is the
core of a global optimization solver for nonconvex mixed-integer
nonlinear programs.  It alternates between

- solving a MILP representable piecewise convex relaxation of the
  model to get a bound,
- solving the original model locally inside the partition cell of the
  bound solution to get an incumbent,
- refining the partitions of a selected set of variables around the
  bound solution,

until the relative gap between incumbent and bound closes or a time or
iteration limit is reached.

The model front-end and the relaxation generator are supplied by the
caller through :py:class:`podopt.model_data.ModelData` and
:py:class:`podopt.relaxation.RelaxationBuilder`.
"""

from pyomo.common.config import document_kwargs_from_configdict
from pyomo.opt import SolverFactory

from podopt import __version__
from podopt.algorithm import _PODAlgorithm
from podopt.config_options import _get_POD_config


@SolverFactory.register(
    'podopt', doc='PODopt: adaptive multivariate partitioning for nonconvex MINLP'
)
class PODSolver(object):
    """
    Adaptive multivariate partitioning solver for nonconvex Mixed-Integer
    Nonlinear Programming (MINLP) problems with bilinear, multilinear,
    monomial, integer-product and trigonometric terms.
    """

    CONFIG = _get_POD_config()

    def available(self, exception_flag=True):
        """Check if solver is available."""
        return True

    def license_is_valid(self):
        return True

    def version(self):
        """Return a 3-tuple describing the solver version."""
        return __version__

    @document_kwargs_from_configdict(CONFIG)
    def solve(self, model_data, relaxation_builder, local_solver=None, **kwds):
        """Solve the model.

        Args:
            model_data (ModelData): the variables, constraints, objective
                and nonlinear terms of the model
            relaxation_builder (RelaxationBuilder): builds the piecewise
                relaxation on the current partitions
            local_solver (LocalSolver): searches for feasible solutions
                inside a partition cell

        """
        return _PODAlgorithm().solve(
            model_data, relaxation_builder, local_solver, **kwds
        )

    #
    # Support 'with' statements.
    #
    def __enter__(self):
        return self

    def __exit__(self, t, v, traceback):
        pass
