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

"""Selection of the variables to discretize.

The selected set must touch every arc of the interaction graph so that
every nonlinear coupling is captured by at least one partitioned
variable.  The smallest such set is a minimum vertex cover, which is
computed with the configured MILP subsolver.
"""

import logging
import math

from pyomo.core import (
    Binary,
    ConcreteModel,
    ConstraintList,
    Objective,
    Var,
    minimize,
    value,
)
from pyomo.opt import TerminationCondition as tc

from podopt.interaction_graph import build_interaction_graph

logger = logging.getLogger('podopt')

_vertex_cover_time_limit = 60.0


def cover_weights(distance, candidates, tolerance=1e-6):
    """Weights for the weighted vertex cover.

    Each candidate gets ``1 / distance``.  Candidates whose distance is
    zero (within tolerance) are sitting on a breakpoint and receive the
    largest weight among the non-zero distances, or 1.0 when there is
    none.
    """
    nonzero = [
        abs(distance[i])
        for i in candidates
        if i in distance and abs(distance[i]) > tolerance
    ]
    heavy = 1.0 / min(nonzero) if nonzero else 1.0
    weights = {}
    for i in candidates:
        d = abs(distance.get(i, 0.0))
        weights[i] = heavy if d <= tolerance else 1.0 / d
        logger.debug("VAR %s WEIGHT -> %s ||| DISTANCE -> %s" % (i, weights[i], d))
    return weights


def min_vertex_cover(graph, adapter, weights=None, tee=False, time_limit=None):
    """Solve the (weighted) minimum vertex cover of ``graph``.

    Parameters
    ----------
    graph : networkx.Graph
        The interaction graph.  Self-loops force their node into the cover.
    adapter : OracleAdapter
        MILP subsolver adapter.
    weights : dict, optional
        Node weights; nodes without a weight count as 1.
    time_limit : float, optional
        Remaining time budget; the cover never gets more than 60 seconds.

    Returns
    -------
    list of int
        The selected nodes in increasing order.
    """
    nodes = sorted(graph.nodes)
    if not nodes:
        return []
    weights = weights or {}

    m = ConcreteModel(name='min_vertex_cover')
    m.x = Var(nodes, domain=Binary)
    m.cover = ConstraintList()
    for u, v in sorted(tuple(sorted(arc)) for arc in graph.edges):
        m.cover.add(m.x[u] + m.x[v] >= 1)
    m.objective = Objective(
        expr=sum(weights.get(i, 1.0) * m.x[i] for i in nodes), sense=minimize
    )

    # Do not waste time proving optimality of the cover.
    if time_limit is None:
        time_limit = _vertex_cover_time_limit
    adapter.set_time_limit(min(time_limit, _vertex_cover_time_limit))
    results = adapter.solve(m, tee=tee)
    term_cond = results.solver.termination_condition
    if term_cond not in {tc.optimal, tc.feasible, tc.maxTimeLimit} or any(
        m.x[i].value is None for i in nodes
    ):
        logger.warning(
            "Minimum vertex cover returned %s without a solution; "
            "selecting every graph node." % term_cond
        )
        return nodes
    return [i for i in nodes if value(m.x[i]) > 0.5]


def select_discretization_variables(
    mode,
    model_data,
    adapter=None,
    distance=None,
    tolerance=1e-6,
    tee=False,
    time_limit=None,
):
    """Pick the discretization variable set.

    Parameters
    ----------
    mode : str
        ``'all'``, ``'min_vertex_cover'`` or ``'weighted_min_vertex_cover'``.
    model_data : ModelData
        Supplies the terms, the integer variables and the tightened bounds.
    adapter : OracleAdapter
        MILP subsolver used for the vertex cover modes.  Do not share
        it with the bounding solves; their branching priorities and
        bound-stop value would carry over to the cover.
    distance : dict, optional
        Per-variable distance metric for the weighted mode.
    time_limit : float, optional
        Remaining time budget of the solve.

    Returns
    -------
    list of int
        Selected variables whose tightened domain is not degenerate.
    """
    terms = model_data.terms
    if mode == 'all':
        selected = terms.candidate_variables()
    elif mode in ('min_vertex_cover', 'weighted_min_vertex_cover'):
        graph = build_interaction_graph(terms, model_data.integer_variables())
        weights = None
        if mode == 'weighted_min_vertex_cover':
            if distance is None:
                raise ValueError(
                    "The weighted vertex cover needs a distance for every "
                    "candidate variable."
                )
            weights = cover_weights(distance, terms.candidate_variables(), tolerance)
        selected = min_vertex_cover(
            graph, adapter, weights, tee=tee, time_limit=time_limit
        )
    else:
        raise ValueError("Unknown discretization variable selection mode '%s'" % mode)

    disc_vars = []
    for i in selected:
        rec = model_data.variables[i]
        if math.isfinite(rec.width) and rec.width >= tolerance:
            disc_vars.append(i)
        else:
            logger.debug(
                "Variable %s has a degenerate or unbounded domain and is not "
                "discretized." % rec.name
            )
    logger.debug("UPDATED DISC-VAR COUNT = %d : %s" % (len(disc_vars), disc_vars))
    return disc_vars
