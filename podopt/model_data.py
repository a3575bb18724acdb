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

"""Data records handed to PODopt by the model front-end.

The front-end is responsible for parsing a model, classifying its
nonlinear terms and providing evaluators for the original constraints
and objective.  PODopt only ever works with the flat records defined
here, indexed by position in the original variable vector.
"""

import dataclasses
import enum
import math
import sys

from pyomo.core import minimize, maximize

if sys.version_info >= (3, 10):
    dataclass_kwargs = dict(kw_only=True)
else:
    dataclass_kwargs = dict()


class VarType(enum.Enum):
    """Domain category of an original or lifted variable"""

    CONTINUOUS = 0
    BINARY = 1
    INTEGER = 2

    @property
    def is_discrete(self):
        return self is not VarType.CONTINUOUS


@dataclasses.dataclass(**dataclass_kwargs)
class VariableRecord:
    """
    Represents one original variable of the model.

    Attributes
    ----------
    name : str
        The name of the variable.
    domain : VarType
        Continuous, binary or integer.
    lb, ub : float
        The original bounds of the variable.
    lb_tight, ub_tight : float
        The tightened bounds.  They default to the original bounds and
        are the bounds every PODopt component works with.
    """

    name: str = None
    domain: VarType = VarType.CONTINUOUS
    lb: float = -math.inf
    ub: float = math.inf
    lb_tight: float = None
    ub_tight: float = None

    def __post_init__(self):
        if self.domain is VarType.BINARY:
            self.lb = max(self.lb, 0.0)
            self.ub = min(self.ub, 1.0)
        if self.lb_tight is None:
            self.lb_tight = self.lb
        if self.ub_tight is None:
            self.ub_tight = self.ub
        if self.lb_tight > self.ub_tight:
            raise ValueError(
                "Variable '%s' has crossing bounds [%s, %s]"
                % (self.name, self.lb_tight, self.ub_tight)
            )

    @property
    def width(self):
        return self.ub_tight - self.lb_tight


@dataclasses.dataclass(**dataclass_kwargs)
class ConstraintRecord:
    """
    Represents one original constraint ``lower <= body(x) <= upper``.

    Either bound may be None.  The constraint is an equality when both
    bounds are present and equal.
    """

    name: str = None
    body: object = None
    lower: float = None
    upper: float = None

    @property
    def is_equality(self):
        return (
            self.lower is not None
            and self.upper is not None
            and self.lower == self.upper
        )

    def evaluate(self, x):
        return self.body(x)


class ModelData(object):
    """Container for everything the front-end supplies about a model.

    Parameters
    ----------
    variables : list of VariableRecord
        The original variables, in vector order.
    constraints : list of ConstraintRecord
        The original constraints.
    objective : callable
        Evaluates the original objective on an original-variable vector.
    sense : minimize or maximize
        The sense of the original objective.
    terms : TermRegistry
        The nonlinear terms recognized by the front-end.
    """

    def __init__(self, variables, constraints=(), objective=None,
                 sense=minimize, terms=None):
        if sense not in (minimize, maximize):
            raise ValueError("Unrecognized objective sense: %s" % (sense,))
        self.variables = list(variables)
        self.constraints = list(constraints)
        self.objective = objective
        self.sense = sense
        self.terms = terms

    @property
    def num_original_vars(self):
        return len(self.variables)

    def var_types(self):
        return [v.domain for v in self.variables]

    def integer_variables(self):
        return [
            i for i, v in enumerate(self.variables) if v.domain is VarType.INTEGER
        ]

    def tight_bounds(self):
        return (
            [v.lb_tight for v in self.variables],
            [v.ub_tight for v in self.variables],
        )

    def evaluate_objective(self, x):
        if self.objective is None:
            raise ValueError("No objective evaluator was supplied for this model.")
        return self.objective(x[: self.num_original_vars])


def variable_records_from_pyomo(var_list):
    """Build VariableRecord objects from a list of Pyomo variables.

    Unbounded directions are reported as +/- infinity.
    """
    records = []
    for v in var_list:
        if v.is_binary():
            domain = VarType.BINARY
        elif v.is_integer():
            domain = VarType.INTEGER
        else:
            domain = VarType.CONTINUOUS
        records.append(
            VariableRecord(
                name=v.name,
                domain=domain,
                lb=-math.inf if v.lb is None else v.lb,
                ub=math.inf if v.ub is None else v.ub,
            )
        )
    return records
