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

"""Local (NLP) solves used to find feasible solutions."""

import dataclasses
import math
from typing import List, Optional

from pyomo.core import Objective, value
from pyomo.opt import TerminationCondition as tc

from podopt.model_data import dataclass_kwargs
from podopt.oracles import variable_values

_local_optimal_conditions = {tc.optimal, tc.locallyOptimal, tc.feasible}


@dataclasses.dataclass(**dataclass_kwargs)
class LocalSolveResult:
    """Outcome of one local solve.

    Infeasible or failed solves are reported with ``feasible=False``.
    """

    feasible: bool
    objective: Optional[float] = None
    solution: Optional[List[float]] = None
    termination_condition: tc = tc.unknown


class LocalSolver(object):
    """Interface of the local search oracle.

    ``solve`` receives tightened variable bounds, a warm start and a
    time limit and returns a :py:class:`LocalSolveResult`.
    Infeasibility is never signalled by raising.  PODopt attaches the
    configured NLP adapter when ``adapter`` is empty and turns ``tee``
    on when ``nlp_solver_tee`` is set.
    """

    adapter = None
    tee = False

    def solve(self, lower, upper, warm_start, time_limit):
        raise NotImplementedError(
            "%s does not implement solve()" % type(self).__name__
        )


class PyomoLocalSolver(LocalSolver):
    """Local solves on a Pyomo model of the original problem.

    Parameters
    ----------
    model : Block
        The original (nonconvex) Pyomo model.
    variables : list of Var
        The model variables, in the order of the original vector.
    adapter : OracleAdapter, optional
        The NLP subsolver adapter.  PODopt attaches the configured one
        when this is left empty.
    tee : bool
        Stream the subsolver output.
    """

    def __init__(self, model, variables, adapter=None, tee=False):
        self.model = model
        self.variables = list(variables)
        self.adapter = adapter
        self.tee = tee

    def solve(self, lower, upper, warm_start, time_limit):
        saved = [(v.lb, v.ub, v.fixed) for v in self.variables]
        try:
            for v, lb, ub, x0 in zip(self.variables, lower, upper, warm_start):
                if v.fixed:
                    continue
                if lb == ub:
                    v.fix(lb, skip_validation=True)
                    continue
                v.setlb(None if math.isinf(lb) else lb)
                v.setub(None if math.isinf(ub) else ub)
                if x0 is not None and not math.isnan(x0):
                    v.set_value(min(max(x0, lb), ub), skip_validation=True)
            self.adapter.set_time_limit(time_limit)
            results = self.adapter.solve(self.model, tee=self.tee)
            term_cond = results.solver.termination_condition
            if term_cond not in _local_optimal_conditions:
                return LocalSolveResult(feasible=False, termination_condition=term_cond)
            solution = variable_values(self.variables)
            if any(math.isnan(x) for x in solution):
                return LocalSolveResult(feasible=False, termination_condition=term_cond)
            objective = next(
                self.model.component_data_objects(Objective, active=True)
            )
            return LocalSolveResult(
                feasible=True,
                objective=value(objective.expr),
                solution=solution,
                termination_condition=term_cond,
            )
        finally:
            for v, (lb, ub, fixed) in zip(self.variables, saved):
                if not fixed:
                    v.unfix()
                v.setlb(lb)
                v.setub(ub)
