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

"""Per-variable partitions (discretizations) and their refinement.

A partition is a strictly increasing list of breakpoints whose first
and last entries are the tightened bounds of the variable.  Interval
``j`` of a partition spans ``[bp[j], bp[j+1]]``.  Partitions are only
ever refined by inserting breakpoints.
"""

import bisect
import logging
import math

logger = logging.getLogger('podopt')


class PartitionStore(object):
    """Owns the partition of every discretized variable.

    Parameters
    ----------
    tolerance : float
        Numerical tolerance used when locating values in intervals.
    scaling_factor : float
        During refinement the active interval is split around the
        reference value with a radius of ``width / scaling_factor``.
    abs_width_tol : float
        Intervals narrower than this are never split again.
    """

    def __init__(self, tolerance=1e-6, scaling_factor=10.0, abs_width_tol=1e-4):
        if scaling_factor <= 1:
            raise ValueError("The partition scaling factor must be larger than 1.")
        self.tolerance = tolerance
        self.scaling_factor = scaling_factor
        self.abs_width_tol = abs_width_tol
        self._breakpoints = {}

    def __contains__(self, var):
        return var in self._breakpoints

    def __getitem__(self, var):
        return tuple(self._breakpoints[var])

    def __iter__(self):
        return iter(sorted(self._breakpoints))

    def initialize(self, var, lower, upper):
        """Start the partition of ``var`` as the single interval [lower, upper]."""
        if not lower < upper:
            raise ValueError(
                "Cannot partition variable %s over the degenerate domain [%s, %s]"
                % (var, lower, upper)
            )
        self._breakpoints[var] = [float(lower), float(upper)]

    def set_breakpoints(self, var, breakpoints):
        points = [float(p) for p in breakpoints]
        if len(points) < 2:
            raise ValueError("A partition needs at least two breakpoints.")
        if any(b <= a for a, b in zip(points, points[1:])):
            raise ValueError(
                "Breakpoints of variable %s are not strictly increasing: %s"
                % (var, points)
            )
        self._breakpoints[var] = points

    def num_intervals(self, var):
        return len(self._breakpoints[var]) - 1

    def to_bounds(self, var):
        """The (lower, upper) bounds implied by the partition of ``var``."""
        bp = self._breakpoints[var]
        return bp[0], bp[-1]

    def interval_bounds(self, var, j):
        bp = self._breakpoints[var]
        return bp[j], bp[j + 1]

    def active_interval(self, var, x):
        """Return the first interval that contains ``x`` within tolerance.

        If no interval matches, interval 0 is returned and a warning is
        logged.
        """
        bp = self._breakpoints[var]
        tol = self.tolerance
        for j in range(len(bp) - 1):
            if bp[j] - tol <= x <= bp[j + 1] + tol:
                return j
        logger.warning(
            "Active partition not found for variable %s at value %s. "
            "Returning default partition 0." % (var, x)
        )
        return 0

    def refinement_candidates(self, var, x, active=None):
        """Intervals of ``var`` that survive a refinement around ``x``.

        Parameters
        ----------
        var : int
            The variable index.
        x : float
            The reference value.
        active : int, optional
            The active interval; located with :py:meth:`active_interval`
            when not given.

        Returns
        -------
        list of int
            Contiguous interval indices, in increasing order.
        """
        if active is None:
            active = self.active_interval(var, x)
        count = self.num_intervals(var)
        if count == 1:
            return [0]
        if active == 0:
            return [0, 1]
        if active == count - 1:
            return [count - 2, count - 1]
        lower, upper = self.interval_bounds(var, active)
        to_lower = abs(x - lower)
        to_upper = abs(x - upper)
        if math.isclose(to_lower, to_upper, rel_tol=0, abs_tol=self.tolerance):
            return [active - 1, active, active + 1]
        elif to_lower < to_upper:
            return [active - 1, active]
        else:
            return [active, active + 1]

    def deactivated_intervals(self, var, x):
        """The complement of :py:meth:`refinement_candidates`."""
        keep = set(self.refinement_candidates(var, x))
        return {j for j in range(self.num_intervals(var)) if j not in keep}

    def distance_to_breakpoint(self, var, x):
        """Distance from ``x`` to the nearest breakpoint of its active interval."""
        lower, upper = self.interval_bounds(var, self.active_interval(var, x))
        return min(abs(x - lower), abs(x - upper))

    def refine(self, reference_solution, variables):
        """Split the active interval of each variable around the reference.

        New breakpoints are inserted at ``x - r`` and ``x + r`` with
        ``r = width / scaling_factor``, clamped to the active interval.
        Breakpoints closer than the tolerance to an existing breakpoint
        are not inserted, so the cell around ``x`` together with its
        neighbours are the survivors of the next iteration.

        Parameters
        ----------
        reference_solution : list of float
            Full solution vector used as the refinement reference.
        variables : iterable of int
            The variables to refine.  Others are left untouched.

        Returns
        -------
        dict
            Map from variable to the list of inserted breakpoints.
        """
        inserted = {}
        for var in variables:
            if var not in self._breakpoints:
                continue
            x = reference_solution[var]
            bp = self._breakpoints[var]
            j = self.active_interval(var, x)
            lower, upper = bp[j], bp[j + 1]
            width = upper - lower
            if width < self.abs_width_tol:
                logger.debug(
                    "Interval %d of variable %s is below the width tolerance; "
                    "not refined." % (j, var)
                )
                continue
            x = min(max(x, lower), upper)
            radius = width / self.scaling_factor
            new_points = []
            for point in (x - radius, x + radius):
                if lower + self.tolerance < point < upper - self.tolerance:
                    new_points.append(point)
            for point in new_points:
                bisect.insort(bp, point)
            if new_points:
                inserted[var] = new_points
        return inserted

    def display(self, var=None, log=logger):
        for v in [var] if var is not None else self:
            log.info("VAR %s: %s" % (v, ' | '.join('%g' % p for p in self[v])))
