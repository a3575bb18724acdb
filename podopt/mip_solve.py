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

"""Bounding (relaxation) solves."""

import math

from pyomo.common.collections import Bunch
from pyomo.core import Objective, minimize, value
from pyomo.opt import TerminationCondition as tc

from podopt.oracles import variable_values

_solution_conditions = {tc.optimal, tc.feasible, tc.maxTimeLimit,
                        tc.maxIterations, tc.maxEvaluations}


def _active_objective(model):
    objs = list(model.component_data_objects(Objective, active=True, descend_into=True))
    if len(objs) != 1:
        raise ValueError(
            "The relaxation must have exactly one active objective, found %d."
            % len(objs)
        )
    return objs[0]


def solve_bounding_problem(relaxation, builder, adapter, config, sense, time_limit):
    """Solve the relaxation and extract its bound and solution(s).

    Parameters
    ----------
    relaxation : Block
        The model produced by the relaxation builder.
    builder : RelaxationBuilder
        Reports which variables hold the full vector.
    adapter : OracleAdapter
        The MIP subsolver adapter.
    config : ConfigBlock
        The specific configurations for PODopt.
    sense : minimize or maximize
        Sense of the original objective.
    time_limit : float
        Remaining time for this solve.

    Returns
    -------
    Bunch
        ``termination_condition``, ``bound`` (None if unknown),
        ``solution`` (None if none was found), and ``pool``: a list of
        ``(values, objective)`` pairs.
    """
    adapter.set_time_limit(time_limit)
    results = adapter.solve(relaxation, tee=config.mip_solver_tee)
    term_cond = results.solver.termination_condition
    result = Bunch(termination_condition=term_cond, bound=None, solution=None, pool=[])
    if term_cond not in _solution_conditions:
        return result

    variables = builder.variables(relaxation)
    solution = variable_values(variables)
    if not any(math.isnan(x) for x in solution):
        result.solution = solution

    if term_cond is tc.optimal and result.solution is not None:
        result.bound = value(_active_objective(relaxation).expr)
    else:
        # the relaxation was not solved to optimality; use the subsolver bound
        bound = (
            results.problem.lower_bound
            if sense == minimize
            else results.problem.upper_bound
        )
        if bound is not None and math.isfinite(bound):
            result.bound = bound

    if result.solution is not None:
        if config.solution_pool and adapter.supports_solution_pool:
            result.pool = [
                (member.values, member.objective)
                for member in adapter.collect_solution_pool(relaxation, variables)
            ]
        else:
            result.pool = [
                (result.solution, value(_active_objective(relaxation).expr))
            ]
    return result
