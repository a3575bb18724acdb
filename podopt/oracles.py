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

"""Adapters around the MILP and NLP subsolvers used by PODopt.

Each supported Pyomo solver gets one adapter class that knows how to
pass a time limit, whether a solution pool can be read back, and how
to set branching priorities or a bound-stop criterion.  The rest of
PODopt only talks to these capabilities and never looks at solver
names.
"""

import logging
import math

from pyomo.common.collections import Bunch
from pyomo.contrib.gdpopt.util import SuppressInfeasibleWarning
from pyomo.core import value
from pyomo.environ import SolverFactory

from podopt.errors import ConfigurationError

logger = logging.getLogger('podopt')


class OracleAdapter(object):
    """Base adapter for a Pyomo solver interface.

    Subclasses declare the solver name, the problem class they are
    meant for and override the capability hooks they support.
    """

    solver_name = None
    problem_types = ('mip',)
    supports_solution_pool = False
    supports_branch_priority = False
    persistent = False

    def __init__(self, solver_name=None, options=None):
        if solver_name is not None:
            self.solver_name = solver_name
        self.options = dict(options or {})
        self.time_limit = None
        self.bound_stop = None
        self._opt = None

    @property
    def opt(self):
        if self._opt is None:
            self._opt = SolverFactory(self.solver_name)
        return self._opt

    def available(self):
        return bool(self.opt.available(exception_flag=False))

    def set_time_limit(self, seconds):
        """Set a soft time limit for the next solve.  None clears it."""
        if seconds is None or math.isinf(seconds):
            self.time_limit = None
        else:
            self.time_limit = max(int(math.ceil(seconds)), 1)

    def set_bound_stop(self, bound):
        self.bound_stop = None
        logger.debug(
            "Subsolver %s does not support a bound-stop criterion." % self.solver_name
        )

    def set_branch_priority(self, model, variables):
        if variables:
            logger.debug(
                "Subsolver %s does not support branching priorities."
                % self.solver_name
            )

    def _apply_time_limit(self, opt, seconds):
        raise NotImplementedError(
            "%s does not implement _apply_time_limit" % type(self).__name__
        )

    def _apply_options(self, opt):
        for key, val in self.options.items():
            opt.options[key] = val
        if self.time_limit is not None:
            self._apply_time_limit(opt, self.time_limit)

    def solve(self, model, tee=False):
        """Solve ``model`` and load the solution into it when one exists.

        Returns
        -------
        SolverResults
        """
        opt = self.opt
        self._apply_options(opt)
        if self.persistent:
            # persistent interfaces only load values when a solution exists
            opt.set_instance(model)
            self._before_persistent_solve(model)
            with SuppressInfeasibleWarning():
                return opt.solve(model, tee=tee, **self._solve_kwds())
        with SuppressInfeasibleWarning():
            results = opt.solve(
                model, tee=tee, load_solutions=False, **self._solve_kwds()
            )
        if len(results.solution) > 0:
            model.solutions.load_from(results)
        return results

    def _before_persistent_solve(self, model):
        pass

    def _solve_kwds(self):
        return {}

    def collect_solution_pool(self, model, variables):
        """Read back the solution pool of the last solve.

        Returns
        -------
        list of Bunch
            One ``Bunch(objective=..., values=[...])`` per pool member.
        """
        return []


class GurobiAdapter(OracleAdapter):
    solver_name = 'gurobi'

    def _apply_time_limit(self, opt, seconds):
        opt.options['timelimit'] = seconds

    def set_bound_stop(self, bound):
        self.bound_stop = bound

    def _apply_options(self, opt):
        super()._apply_options(opt)
        if self.bound_stop is not None:
            opt.options['BestBdStop'] = self.bound_stop


class GurobiPersistentAdapter(GurobiAdapter):
    solver_name = 'gurobi_persistent'
    persistent = True
    supports_solution_pool = True
    supports_branch_priority = True

    def __init__(self, solver_name=None, options=None):
        super().__init__(solver_name, options)
        self._priority_vars = []

    def set_branch_priority(self, model, variables):
        self._priority_vars = list(variables)

    def _before_persistent_solve(self, model):
        for v in self._priority_vars:
            self.opt.set_var_attr(v, 'BranchPriority', 1)

    def collect_solution_pool(self, model, variables):
        from pyomo.solvers.plugins.solvers.gurobi_direct import gurobipy

        opt = self.opt
        solver_model = opt._solver_model
        var_map = opt._pyomo_var_to_solver_var_map
        pool = []
        for i in range(solver_model.SolCount):
            solver_model.setParam(gurobipy.GRB.Param.SolutionNumber, i)
            pool.append(
                Bunch(
                    objective=solver_model.PoolObjVal,
                    values=[var_map[v].Xn for v in variables],
                )
            )
        return pool


class CplexAdapter(OracleAdapter):
    solver_name = 'cplex'

    def _apply_time_limit(self, opt, seconds):
        opt.options['timelimit'] = seconds


class CplexPersistentAdapter(CplexAdapter):
    solver_name = 'cplex_persistent'
    persistent = True
    supports_solution_pool = True

    def collect_solution_pool(self, model, variables):
        opt = self.opt
        solver_model = opt._solver_model
        var_map = opt._pyomo_var_to_solver_var_map
        pool = []
        for i in range(solver_model.solution.pool.get_num()):
            pool.append(
                Bunch(
                    objective=solver_model.solution.pool.get_objective_value(i),
                    values=[
                        solver_model.solution.pool.get_values(i, var_map[v])
                        for v in variables
                    ],
                )
            )
        return pool


class CbcAdapter(OracleAdapter):
    solver_name = 'cbc'

    def _apply_time_limit(self, opt, seconds):
        opt.options['sec'] = seconds


class GlpkAdapter(OracleAdapter):
    solver_name = 'glpk'

    def _apply_time_limit(self, opt, seconds):
        opt.options['tmlim'] = seconds


class _AppsiAdapter(OracleAdapter):
    """Solvers registered through the legacy interface of appsi."""

    def _apply_options(self, opt):
        for key, val in self.options.items():
            opt.options[key] = val

    def _solve_kwds(self):
        # the legacy appsi interface resets its config from ``timelimit``
        return {'timelimit': self.time_limit}


class HighsAdapter(_AppsiAdapter):
    solver_name = 'appsi_highs'


class AppsiIpoptAdapter(_AppsiAdapter):
    solver_name = 'appsi_ipopt'
    problem_types = ('nlp',)


class IpoptAdapter(OracleAdapter):
    solver_name = 'ipopt'
    problem_types = ('nlp',)

    def _apply_time_limit(self, opt, seconds):
        opt.options['max_cpu_time'] = float(seconds)


_supported_oracles = {
    'gurobi': GurobiAdapter,
    'gurobi_persistent': GurobiPersistentAdapter,
    'cplex': CplexAdapter,
    'cplex_persistent': CplexPersistentAdapter,
    'cbc': CbcAdapter,
    'glpk': GlpkAdapter,
    'appsi_highs': HighsAdapter,
    'ipopt': IpoptAdapter,
    'appsi_ipopt': AppsiIpoptAdapter,
}


def register_oracle_adapter(solver_name, adapter_class):
    """Make an additional subsolver available to PODopt."""
    _supported_oracles[solver_name] = adapter_class


def supported_oracles(problem_type=None):
    return sorted(
        name
        for name, cls in _supported_oracles.items()
        if problem_type is None or problem_type in cls.problem_types
    )


def get_oracle_adapter(solver_name, problem_type='mip', options=None):
    """Return a new adapter for ``solver_name``.

    Raises
    ------
    ConfigurationError
        If the solver is unknown, cannot handle ``problem_type`` or the
        options are not a mapping.
    """
    try:
        cls = _supported_oracles[solver_name]
    except KeyError:
        raise ConfigurationError(
            "Unsupported %s subsolver '%s'. Supported subsolvers: %s"
            % (problem_type.upper(), solver_name,
               ', '.join(supported_oracles(problem_type)))
        ) from None
    if problem_type not in cls.problem_types:
        raise ConfigurationError(
            "Subsolver '%s' cannot be used to solve %s problems."
            % (solver_name, problem_type.upper())
        )
    if options is not None and not hasattr(options, 'items'):
        raise ConfigurationError(
            "Options for subsolver '%s' must be a mapping, got %s"
            % (solver_name, type(options).__name__)
        )
    return cls(solver_name, dict(options.items()) if options is not None else None)


def variable_values(variables):
    """Current values of a list of Pyomo variables (None becomes nan)."""
    return [
        math.nan if v.value is None else value(v) for v in variables
    ]
