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

from podopt.version import version_info as __version__

from podopt.errors import ConfigurationError, TermResolutionError, UnresolvedTermError
from podopt.model_data import (
    VarType,
    VariableRecord,
    ConstraintRecord,
    ModelData,
    variable_records_from_pyomo,
)
from podopt.terms import TermKind, Term, TermRegistry, resolve_lifted_var_type
from podopt.partition import PartitionStore
from podopt.interaction_graph import build_interaction_graph
from podopt.variable_selection import min_vertex_cover, select_discretization_variables
from podopt.solution_pool import PoolStatus, PoolEntry, SolutionPool
from podopt.feasibility import fix_domains, is_feasible, round_solution
from podopt.incumbent import IncumbentTracker
from podopt.oracles import OracleAdapter, get_oracle_adapter, register_oracle_adapter
from podopt.relaxation import RelaxationBuilder
from podopt.nlp_solve import LocalSolver, LocalSolveResult, PyomoLocalSolver
from podopt.POD import PODSolver
