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

"""Interaction graph of the variables coupled by nonlinear terms."""

from itertools import combinations

from pyomo.common.dependencies import networkx as nx
from pyomo.common.errors import DeveloperError

from podopt.terms import TermKind


def _all_pairs(operands):
    distinct = sorted(set(operands))
    if len(distinct) == 1:
        return [(distinct[0], distinct[0])]
    return list(combinations(distinct, 2))


def _self_loop(operands):
    return [(operands[0], operands[0])]


def _coupling_unit(operands):
    distinct = sorted(set(operands))
    if len(distinct) == 1:
        return [(distinct[0], distinct[0])]
    return [tuple(distinct)]


def _no_arcs(operands):
    return []


_arc_rules = {
    TermKind.BILINEAR: _all_pairs,
    TermKind.MULTILINEAR: _all_pairs,
    TermKind.INTPROD: _all_pairs,
    TermKind.MONOMIAL: _self_loop,
    TermKind.SIN: _self_loop,
    TermKind.COS: _self_loop,
    TermKind.INTLIN: _coupling_unit,
    TermKind.BINLIN: _no_arcs,
    TermKind.BININT: _no_arcs,
    TermKind.BINPROD: _no_arcs,
}


def term_arcs(term, num_original_vars=None):
    """Return the arcs contributed by one term.

    Operands that are lifted variables (index at or beyond
    ``num_original_vars``) are not part of the graph.
    """
    try:
        rule = _arc_rules[term.kind]
    except KeyError:
        raise DeveloperError(
            "Unexpected nonlinear term kind %s when building the "
            "interaction graph." % (term.kind,)
        ) from None
    operands = [
        i for i in term.operands
        if num_original_vars is None or i < num_original_vars
    ]
    if not operands:
        return []
    return rule(operands)


def build_interaction_graph(terms, integer_vars=()):
    """Build the variable interaction graph of a term registry.

    Parameters
    ----------
    terms : TermRegistry
        The registered nonlinear terms.
    integer_vars : iterable of int
        Declared integer variables.  Those that appear in no
        discretizable term get a self-loop so that the cover keeps them.

    Returns
    -------
    networkx.Graph
        Undirected graph; self-loops encode unary terms.
    """
    graph = nx.Graph()
    graph.add_nodes_from(terms.candidate_variables())
    for term in terms:
        for arc in term_arcs(term, terms.num_original_vars):
            graph.add_edge(*arc)
    for i in integer_vars:
        if i not in graph:
            graph.add_edge(i, i)
    return graph
