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

"""Incumbent, bound and optimality gap bookkeeping."""

import logging
import math

from pyomo.core import minimize, maximize

logger = logging.getLogger('podopt')


class IncumbentTracker(object):
    """Tracks the best feasible solution, the best bound and their gap.

    Parameters
    ----------
    sense : minimize or maximize
        The sense of the original objective.
    relative_gap : float
        Target relative gap; also fixes the rounding precision used to
        detect a zero gap.
    tolerance : float
        Numerical tolerance added to the gap denominator.
    """

    def __init__(self, sense=minimize, relative_gap=1e-4, tolerance=1e-6):
        if sense not in (minimize, maximize):
            raise ValueError("Unrecognized objective sense: %s" % (sense,))
        self.sense = sense
        self.relative_gap = relative_gap
        self.tolerance = tolerance
        if sense == minimize:
            self.best_obj = math.inf
            self.best_bound = -math.inf
        else:
            self.best_obj = -math.inf
            self.best_bound = math.inf
        self.best_sol = None
        self.best_rel_gap = math.inf
        self.best_abs_gap = math.inf
        self.feasible_solution_found = False
        self.obj_log = []
        self.bound_log = []

    def _better(self, a, b):
        return a < b if self.sense == minimize else a > b

    def update_incumbent(self, objval, sol):
        """Record a feasible objective and keep it if strictly better.

        Returns
        -------
        bool
            True if the incumbent was replaced.
        """
        self.obj_log.append(objval)
        if self._better(objval, self.best_obj):
            self.best_obj = objval
            self.best_sol = list(sol)
            self.feasible_solution_found = True
            return True
        return False

    def update_bound(self, bound):
        """Record a relaxation bound and keep it if it tightens the best bound."""
        if bound is None or math.isnan(bound):
            return False
        self.bound_log.append(bound)
        if self.sense == minimize:
            improved = bound > self.best_bound
        else:
            improved = bound < self.best_bound
        if improved:
            self.best_bound = bound
        return improved

    def update_gap(self):
        """Recompute the relative and absolute optimality gap.

        The relative gap is ``|obj - bound| / (tol + |obj|)``.  It is
        forced to zero when both the absolute gap and the objective
        round to zero at the precision of the relative gap target.
        """
        if not math.isfinite(self.best_obj):
            self.best_rel_gap = math.inf
            self.best_abs_gap = math.inf
            return
        self.best_abs_gap = abs(self.best_obj - self.best_bound)
        digits = int(round(abs(math.log10(self.relative_gap))))
        if math.isclose(
            round(self.best_abs_gap, digits), 0.0, abs_tol=self.tolerance
        ) and math.isclose(round(self.best_obj, digits), 0.0, abs_tol=self.tolerance):
            self.best_rel_gap = 0.0
            return
        self.best_rel_gap = self.best_abs_gap / (self.tolerance + abs(self.best_obj))

    def converged(self):
        return self.best_rel_gap <= self.relative_gap

    def bound_stop_value(self):
        """Bound at which a bounding solve can stop early, or None."""
        if not math.isfinite(self.best_obj):
            return None
        if self.sense == minimize:
            return (1 - self.relative_gap + self.tolerance) * self.best_obj
        return (1 + self.relative_gap - self.tolerance) * self.best_obj

    @property
    def lower_bound(self):
        return self.best_bound if self.sense == minimize else self.best_obj

    @property
    def upper_bound(self):
        return self.best_obj if self.sense == minimize else self.best_bound
