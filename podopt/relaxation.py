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

"""Contract between PODopt and the piecewise relaxation generator.

The convex under- and over-estimators of every term kind are owned by
the relaxation generator.  PODopt only asks it to build a MILP
representable relaxation from the current partitions and to report
which Pyomo variables hold the full variable vector.
"""


class RelaxationBuilder(object):
    """Interface of a piecewise convex relaxation generator.

    Implementations must set ``term.convexified = True`` on every term
    of the registry whose relaxation they generated during
    :py:meth:`build`.
    """

    def build(self, model_data, partitions, disc_vars):
        """Return a Pyomo model of the relaxation.

        Parameters
        ----------
        model_data : ModelData
            The original model and its term registry.
        partitions : PartitionStore
            Current partitions; only ``disc_vars`` are partitioned more
            finely than their bounds.
        disc_vars : list of int
            The current discretization variable set.
        """
        raise NotImplementedError(
            "%s does not implement build()" % type(self).__name__
        )

    def variables(self, relaxation):
        """Pyomo variables of ``relaxation`` aligned with the full vector."""
        raise NotImplementedError(
            "%s does not implement variables()" % type(self).__name__
        )

    def branching_variables(self, relaxation):
        """Variables the MIP subsolver should branch on first."""
        return []
