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

"""Nonlinear term registry and lifted-value resolution.

Every nonlinear subexpression recognized by the front-end is registered
as a :py:class:`Term` that owns exactly one auxiliary ("lifted")
variable.  The registry knows how to evaluate each term kind and in
which order the terms must be replayed so that terms built on top of
other lifted variables see resolved values.
"""

import enum
import logging
import math

from pyomo.common.dependencies import networkx as nx
from pyomo.common.errors import DeveloperError

from podopt.errors import TermResolutionError, UnresolvedTermError
from podopt.model_data import VarType

logger = logging.getLogger('podopt')


class TermKind(enum.Enum):
    """The closed vocabulary of nonlinear terms handled by PODopt"""

    BILINEAR = 'bilinear'
    MULTILINEAR = 'multilinear'
    MONOMIAL = 'monomial'
    INTLIN = 'intlin'
    INTPROD = 'intprod'
    SIN = 'sin'
    COS = 'cos'
    BINLIN = 'binlin'
    BININT = 'binint'
    BINPROD = 'binprod'

    @property
    def is_trig(self):
        return self in (TermKind.SIN, TermKind.COS)

    @property
    def is_binary_kind(self):
        """Binary products are reformulated exactly and never discretized"""
        return self in (TermKind.BINLIN, TermKind.BININT, TermKind.BINPROD)


def _eval_product(term, values):
    result = 1.0
    for i in term.operands:
        result *= values[i]
    return result


def _eval_sin(term, values):
    return math.sin(values[term.operands[0]])


def _eval_cos(term, values):
    return math.cos(values[term.operands[0]])


_term_evaluators = {
    TermKind.BILINEAR: _eval_product,
    TermKind.MULTILINEAR: _eval_product,
    TermKind.MONOMIAL: _eval_product,
    TermKind.INTLIN: _eval_product,
    TermKind.INTPROD: _eval_product,
    TermKind.SIN: _eval_sin,
    TermKind.COS: _eval_cos,
    TermKind.BINLIN: _eval_product,
    TermKind.BININT: _eval_product,
    TermKind.BINPROD: _eval_product,
}

# (minimum, maximum) number of operands per kind; None means unbounded
_operand_counts = {
    TermKind.BILINEAR: (2, 2),
    TermKind.MULTILINEAR: (2, None),
    TermKind.MONOMIAL: (2, None),
    TermKind.INTLIN: (2, 2),
    TermKind.INTPROD: (2, None),
    TermKind.SIN: (1, 1),
    TermKind.COS: (1, 1),
    TermKind.BINLIN: (2, 2),
    TermKind.BININT: (2, 2),
    TermKind.BINPROD: (2, None),
}


def _as_term_kind(kind):
    if isinstance(kind, TermKind):
        return kind
    try:
        return TermKind(kind)
    except ValueError:
        raise ValueError("Unrecognized nonlinear term kind '%s'" % (kind,)) from None


class Term(object):
    """A registered nonlinear term.

    The kind, operands and lifted index are fixed at construction.  The
    ``convexified`` flag is set by the relaxation builder every time it
    generates the relaxation of this term.
    """

    __slots__ = ('_kind', '_operands', '_lifted_index', 'convexified')

    def __init__(self, kind, operands, lifted_index):
        kind = _as_term_kind(kind)
        operands = tuple(int(i) for i in operands)
        lo, hi = _operand_counts[kind]
        if len(operands) < lo or (hi is not None and len(operands) > hi):
            raise ValueError(
                "A %s term takes %s operand(s), got %d"
                % (kind.name, lo if lo == hi else 'at least %d' % lo, len(operands))
            )
        if kind is TermKind.MONOMIAL and len(set(operands)) != 1:
            raise ValueError(
                "A MONOMIAL term must repeat a single variable, got operands %s"
                % (operands,)
            )
        if lifted_index in operands:
            raise ValueError(
                "Lifted variable %d cannot be an operand of its own term"
                % lifted_index
            )
        self._kind = kind
        self._operands = operands
        self._lifted_index = int(lifted_index)
        self.convexified = False

    @property
    def kind(self):
        return self._kind

    @property
    def operands(self):
        return self._operands

    @property
    def lifted_index(self):
        return self._lifted_index

    def evaluate(self, values):
        try:
            evaluator = _term_evaluators[self._kind]
        except KeyError:
            raise DeveloperError(
                "No evaluator is defined for term kind %s" % (self._kind,)
            ) from None
        return evaluator(self, values)

    def __repr__(self):
        return "Term(%s, %s -> %d)" % (
            self._kind.name,
            list(self._operands),
            self._lifted_index,
        )


def resolve_lifted_var_type(var_types, operator):
    """Tell what the domain of a lifted variable is.

    Parameters
    ----------
    var_types : list of VarType
        The domains of the operands.
    operator : str
        Either ``'+'`` (sum-type combination) or ``'*'`` (product-type
        combination).

    Returns
    -------
    VarType
    """
    all_discrete = all(t.is_discrete for t in var_types)
    if operator == '+':
        if len(var_types) == 1 and all_discrete:
            return var_types[0]
        if var_types and all_discrete:
            return VarType.INTEGER
    elif operator == '*':
        if var_types and all(t is VarType.BINARY for t in var_types):
            return VarType.BINARY
        if var_types and all_discrete:
            return VarType.INTEGER
    return VarType.CONTINUOUS


class TermRegistry(object):
    """Registry of the nonlinear terms of one model.

    Parameters
    ----------
    num_original_vars : int
        Number of variables in the original model.  Lifted variables
        are numbered from here on.
    """

    def __init__(self, num_original_vars):
        self.num_original_vars = num_original_vars
        self._terms = []
        self._owner = {}
        self._sequence = None

    def __len__(self):
        return len(self._terms)

    def __iter__(self):
        return iter(self._terms)

    def add_term(self, kind, operands, lifted_index):
        """Register a new nonlinear term and return it."""
        if lifted_index < self.num_original_vars:
            raise ValueError(
                "Lifted index %d collides with the original variables (0..%d)"
                % (lifted_index, self.num_original_vars - 1)
            )
        if lifted_index in self._owner:
            raise ValueError(
                "Lifted variable %d is already owned by %r"
                % (lifted_index, self._owner[lifted_index])
            )
        term = Term(kind, operands, lifted_index)
        self._terms.append(term)
        self._owner[lifted_index] = term
        self._sequence = None
        return term

    def owner(self, lifted_index):
        return self._owner.get(lifted_index)

    @property
    def num_total_vars(self):
        highest = self.num_original_vars - 1
        for term in self._terms:
            highest = max(highest, term.lifted_index, *term.operands)
        return highest + 1

    def term_sequence(self):
        """Return the terms in an order where every term comes after the
        terms whose lifted variables it consumes.

        The order is computed once and cached until a new term is added.
        """
        if self._sequence is None:
            graph = nx.DiGraph()
            graph.add_nodes_from(t.lifted_index for t in self._terms)
            for term in self._terms:
                for i in term.operands:
                    if i in self._owner:
                        graph.add_edge(i, term.lifted_index)
            try:
                order = list(nx.lexicographical_topological_sort(graph))
            except nx.NetworkXUnfeasible:
                raise TermResolutionError(
                    "Nonlinear terms have a cyclic dependency through their "
                    "lifted variables."
                ) from None
            self._sequence = [self._owner[i] for i in order]
        return self._sequence

    def resolve_lifted_values(self, original_assignment):
        """Extend an original-variable assignment with every lifted value.

        Parameters
        ----------
        original_assignment : list of float
            Values of the original variables.

        Returns
        -------
        list of float
            The full variable vector (original followed by lifted).
        """
        if len(original_assignment) != self.num_original_vars:
            raise ValueError(
                "Expected %d original values, got %d"
                % (self.num_original_vars, len(original_assignment))
            )
        num_total = self.num_total_vars
        for idx in range(self.num_original_vars, num_total):
            if idx not in self._owner:
                raise UnresolvedTermError(
                    "Found lifted variable %d with no owning term during "
                    "value resolution." % idx
                )
        values = list(original_assignment)
        values.extend([math.nan] * (num_total - self.num_original_vars))
        for term in self.term_sequence():
            values[term.lifted_index] = term.evaluate(values)
        return values

    def infer_lifted_types(self, original_types):
        """Return the domain of every variable in the full vector."""
        types = list(original_types)
        types.extend([VarType.CONTINUOUS] * (self.num_total_vars - len(types)))
        for term in self.term_sequence():
            if term.kind.is_trig:
                continue
            types[term.lifted_index] = resolve_lifted_var_type(
                [types[i] for i in term.operands], '*'
            )
        return types

    def candidate_variables(self):
        """Original variables that participate in discretizable terms."""
        candidates = set()
        for term in self._terms:
            if term.kind.is_binary_kind:
                continue
            candidates.update(
                i for i in term.operands if i < self.num_original_vars
            )
        return sorted(candidates)

    def check_convexified(self, log=logger):
        """Warn about terms whose relaxation was not generated.

        When every term has been convexified, the flags are reset so
        that the next relaxation build can be checked again.
        """
        for term in self._terms:
            if not term.convexified:
                log.warning(
                    "Detected %r that is not convexified; the bounding "
                    "model solver may report an error due to this." % (term,)
                )
                return False
        for term in self._terms:
            term.convexified = False
        return True
