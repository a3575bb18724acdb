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

"""Relaxation solution pool kept across iterations.

Every bounding solve may return several near-optimal relaxation
solutions.  They are recorded here together with the partition cell
they sit in.  Once the partitions are refined, cells that are discarded
can no longer be represented by the relaxation, so solutions anchored
there are marked dead and are never revived.
"""

import enum
import logging
import math

from pyomo.common.errors import DeveloperError
from pyomo.core import minimize

logger = logging.getLogger('podopt')


class PoolStatus(enum.Enum):
    ALIVE = 'alive'
    DEAD = 'dead'


class PoolEntry(object):
    """One relaxation solution in the pool.

    Attributes
    ----------
    solution : list of float
        Full variable vector.
    objective : float
        Relaxation objective value.
    active_partitions : dict
        Map from tracked variable to the index of its active interval.
    iteration : int
        Iteration in which the entry was collected.
    ub_start : bool
        Whether the entry has been used as an upper-bound restart point.
    """

    __slots__ = ('solution', 'objective', 'active_partitions', 'iteration',
                 'ub_start', '_status')

    def __init__(self, solution, objective, active_partitions=None, iteration=0,
                 ub_start=False):
        self.solution = list(solution)
        self.objective = objective
        self.active_partitions = dict(active_partitions or {})
        self.iteration = iteration
        self.ub_start = ub_start
        self._status = PoolStatus.ALIVE

    @property
    def status(self):
        return self._status

    @status.setter
    def status(self, val):
        if self._status is PoolStatus.DEAD and val is not PoolStatus.DEAD:
            raise DeveloperError("A dead solution pool entry cannot be revived.")
        self._status = PoolStatus(val)

    @property
    def alive(self):
        return self._status is PoolStatus.ALIVE

    def mark_dead(self):
        self._status = PoolStatus.DEAD

    def __repr__(self):
        return "PoolEntry(iter=%s, obj=%s, %s)" % (
            self.iteration, self.objective, self._status.value
        )


class SolutionPool(object):
    """The cross-iteration pool of relaxation solutions."""

    def __init__(self):
        self.entries = []
        self.tracked_vars = []

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def alive(self):
        return [e for e in self.entries if e.alive]

    @staticmethod
    def tracked_variables(partitions, variables):
        """Variables whose partition has been refined at least once."""
        return [v for v in variables if v in partitions and partitions.num_intervals(v) > 1]

    @staticmethod
    def new_entries(solutions, objectives, partitions, variables, iteration):
        """Build pool entries for the solutions collected in one iteration."""
        tracked = SolutionPool.tracked_variables(partitions, variables)
        return [
            PoolEntry(
                sol,
                obj,
                {v: partitions.active_interval(v, sol[v]) for v in tracked},
                iteration,
            )
            for sol, obj in zip(solutions, objectives)
        ]

    def merge(self, new_entries, partitions, reference_solution, variables):
        """Merge the entries of the current iteration into the pool.

        Parameters
        ----------
        new_entries : list of PoolEntry
            Entries collected in this iteration.
        partitions : PartitionStore
            The partitions after this iteration's refinement.
        reference_solution : list of float
            The best-bound solution the partitions were refined around.
        variables : list of int
            The current discretization variable set.
        """
        tracked = self.tracked_variables(partitions, variables)
        deactivated = {
            v: partitions.deactivated_intervals(v, reference_solution[v])
            for v in tracked
        }

        new_entries = list(new_entries)
        for entry in self.entries + new_entries:
            entry.active_partitions = {
                v: partitions.active_interval(v, entry.solution[v]) for v in tracked
            }
            if not entry.alive:
                continue
            for v in tracked:
                if entry.active_partitions[v] in deactivated[v]:
                    entry.mark_dead()
                    break

        self.entries.extend(new_entries)
        self.tracked_vars = sorted(set(self.tracked_vars).union(tracked))
        self.log_summary()

    def best_alive(self, sense=minimize, mark_ub_start=True):
        """Return the best alive entry not yet used for a restart."""
        candidates = [e for e in self.entries if e.alive and not e.ub_start]
        if not candidates:
            return None
        if sense == minimize:
            best = min(
                candidates,
                key=lambda e: e.objective if math.isfinite(e.objective) else math.inf,
            )
        else:
            best = max(
                candidates,
                key=lambda e: e.objective if math.isfinite(e.objective) else -math.inf,
            )
        if mark_ub_start:
            best.ub_start = True
        return best

    def log_summary(self, log=logger):
        log.debug("POOL size = %d / %d" % (len(self.alive()), len(self.entries)))
        for i, entry in enumerate(self.entries):
            if entry.alive:
                log.debug(
                    "ITER %s | SOL %d | POOL solution obj = %s"
                    % (entry.iteration, i, entry.objective)
                )
