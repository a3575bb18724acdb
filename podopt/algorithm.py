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

"""Outer bounding loop of PODopt.

Every iteration builds a piecewise relaxation on the current partitions,
solves it with the MIP subsolver to get a bound, runs a local solve
restricted to the partition cell of the bound solution to look for a
better incumbent, and finally refines the partitions around the bound
solution.
"""

import collections
import math
from io import StringIO

from pyomo.common.collections import Bunch
from pyomo.contrib.gdpopt.util import (
    get_main_elapsed_time,
    lower_logger_level_to,
    time_code,
)
from pyomo.opt import SolverResults, TerminationCondition as tc

from podopt import __version__
from podopt.config_options import _get_POD_config
from podopt.feasibility import fix_domains, is_feasible, round_solution
from podopt.incumbent import IncumbentTracker
from podopt.mip_solve import solve_bounding_problem
from podopt.oracles import get_oracle_adapter
from podopt.partition import PartitionStore
from podopt.solution_pool import SolutionPool
from podopt.terms import TermRegistry
from podopt.variable_selection import select_discretization_variables

_infeasible_conditions = {tc.infeasible, tc.infeasibleOrUnbounded}


class _PODAlgorithm(object):
    CONFIG = _get_POD_config()

    def __init__(self, **kwds):
        self.config = self.CONFIG(kwds.pop('options', {}), preserve_implicit=True)
        self.config.set_value(kwds)

        self.model_data = None
        self.relaxation_builder = None
        self.local_solver = None
        self.mip_adapter = None
        self.cover_adapter = None
        self.nlp_adapter = None

        self.partitions = None
        self.pool = SolutionPool()
        self.incumbent = None
        self.best_full_sol = None
        self.full_var_types = None
        self.disc_vars = []
        self.bound_sol = None
        self.bound_sol_history = None

        self.results = SolverResults()
        self.timing = Bunch()
        self.iteration = 0
        self.should_terminate = False
        self.best_solution_found_time = None

        self.log_formatter = (
            '{:>9}   {:>15}   {:>11.5f}   {:>11.5f}   {:>8.2%}   {:>7.2f}  {}'
        )

    def __enter__(self):
        return self

    def __exit__(self, t, v, traceback):
        pass

    def available(self, exception_flag=True):
        """Solver is always available. Though subsolvers may not be, they will
        raise an error when the time comes.
        """
        return True

    def license_is_valid(self):
        return True

    def version(self):
        """Return a 3-tuple describing the solver version."""
        return __version__

    def _log_solver_intro_message(self, config):
        config.logger.info(
            "Starting PODopt version %s" % ".".join(map(str, self.version()))
        )
        os = StringIO()
        config.display(ostream=os)
        config.logger.info(os.getvalue())
        config.logger.info(
            """
            If you use this software, you may cite the following:
            Nagarajan, H; Lu, M; Wang, S; Bent, R; Sundar, K.
            An adaptive, multivariate partitioning algorithm for global
            optimization of nonconvex programs.
            Journal of Global Optimization, 2019.
            """.strip()
        )

    def _log_header(self, logger):
        logger.info(
            '================================================================='
            '============================'
        )
        logger.info(
            '{:^9} | {:^15} | {:^11} | {:^11} | {:^8} | {:^7}\n'.format(
                'Iteration',
                'Subproblem Type',
                'Lower Bound',
                'Upper Bound',
                ' Gap ',
                'Time(s)',
            )
        )

    def _log_current_state(self, logger, subproblem_type, improved=False):
        star = "*" if improved else ""
        logger.info(
            self.log_formatter.format(
                self.iteration,
                subproblem_type,
                self.incumbent.lower_bound,
                self.incumbent.upper_bound,
                self.incumbent.best_rel_gap,
                get_main_elapsed_time(self.timing),
                star,
            )
        )

    def solve(self, model_data, relaxation_builder, local_solver=None, **kwds):
        """Solve the model.

        Parameters
        ----------
        model_data : ModelData
            Variables, constraints, objective and nonlinear terms of the
            original model.
        relaxation_builder : RelaxationBuilder
            Builds the piecewise relaxation on the current partitions.
        local_solver : LocalSolver, optional
            Searches for feasible solutions inside a partition cell.
            Without one, only rounded bound solutions can become
            incumbents.

        Returns
        -------
        results : SolverResults
            Results from solving the model by PODopt.
        """
        config = self.config = self.config(
            kwds.pop('options', {}), preserve_implicit=True
        )
        config.set_value(kwds)

        self.mip_adapter = get_oracle_adapter(
            config.mip_solver, 'mip', config.mip_solver_args
        )
        # the vertex cover gets its own adapter so that no bounding state
        # (branching priorities, bound stop) leaks into it
        self.cover_adapter = get_oracle_adapter(
            config.mip_solver, 'mip', config.mip_solver_args
        )
        self.nlp_adapter = get_oracle_adapter(
            config.nlp_solver, 'nlp', config.nlp_solver_args
        )

        with lower_logger_level_to(
            config.logger, config.logging_level, config.tee
        ):
            self._log_solver_intro_message(config)
            try:
                with time_code(self.timing, 'total', is_main_timer=True):
                    self._set_up_solve_data(
                        model_data, relaxation_builder, local_solver, config
                    )
                    with time_code(self.timing, 'initialization'):
                        self.PODopt_initialization(config)
                    with time_code(self.timing, 'main loop'):
                        self.PODopt_iteration_loop(config)
            finally:
                self.update_result()
                self._log_termination_message(config.logger)
        return self.results

    def _set_up_solve_data(self, model_data, relaxation_builder, local_solver, config):
        if model_data.terms is None:
            model_data.terms = TermRegistry(model_data.num_original_vars)
        self.model_data = model_data
        self.relaxation_builder = relaxation_builder
        self.local_solver = local_solver
        if local_solver is not None:
            if local_solver.adapter is None:
                local_solver.adapter = self.nlp_adapter
            if config.nlp_solver_tee:
                local_solver.tee = True

        self.partitions = PartitionStore(
            tolerance=config.tolerance,
            scaling_factor=config.partition_scaling_factor,
            abs_width_tol=config.disc_abs_width_tol,
        )
        self.pool = SolutionPool()
        self.incumbent = IncumbentTracker(
            model_data.sense, config.relative_gap, config.tolerance
        )
        self.best_full_sol = None
        self.full_var_types = model_data.terms.infer_lifted_types(
            model_data.var_types()
        )
        self.bound_sol = None
        self.bound_sol_history = collections.deque(
            maxlen=max(config.disc_consecutive_forbid, 1)
        )
        self.iteration = 0
        self.should_terminate = False
        self.best_solution_found_time = None

        res = self.results
        res.problem.name = getattr(model_data, 'name', None)
        res.problem.sense = model_data.sense
        res.problem.number_of_variables = model_data.num_original_vars
        res.problem.number_of_constraints = len(model_data.constraints)
        res.solver.name = 'PODopt'
        res.solver.termination_condition = None
        config.logger.info(
            "Original model has %s constraints and %s variables "
            "(%s of them integer) with %s nonlinear terms."
            % (
                len(model_data.constraints),
                model_data.num_original_vars,
                len(model_data.integer_variables()),
                len(model_data.terms),
            )
        )

    def PODopt_initialization(self, config):
        """Partition the candidate variables over their tightened bounds and
        pick the first discretization variable set."""
        for i in self.model_data.terms.candidate_variables():
            rec = self.model_data.variables[i]
            if math.isfinite(rec.width) and rec.width >= config.tolerance:
                self.partitions.initialize(i, rec.lb_tight, rec.ub_tight)
            else:
                config.logger.debug(
                    "Candidate variable %s has no finite domain to partition."
                    % rec.name
                )
        self.update_discretization_variables(config)

    def update_discretization_variables(self, config):
        """Select the variables partitioned by the next relaxation.

        The plain modes select once.  The weighted vertex cover is
        recomputed every iteration from the distance of the last bound
        solution to its nearest breakpoint.
        """
        mode = config.disc_var_pick
        distance = None
        if mode == 'weighted_min_vertex_cover':
            if self.bound_sol is None:
                if self.disc_vars:
                    return
                # nothing to weigh with before the first bound solution
                mode = 'min_vertex_cover'
            else:
                distance = {
                    i: self.partitions.distance_to_breakpoint(i, self.bound_sol[i])
                    for i in self.partitions
                }
        elif self.disc_vars:
            return

        self.disc_vars = select_discretization_variables(
            mode,
            self.model_data,
            adapter=self.cover_adapter,
            distance=distance,
            tolerance=config.tolerance,
            tee=config.mip_solver_tee,
            time_limit=self.remaining_time(config),
        )
        for i in self.disc_vars:
            if i not in self.partitions:
                rec = self.model_data.variables[i]
                self.partitions.initialize(i, rec.lb_tight, rec.ub_tight)

    def remaining_time(self, config):
        return config.time_limit - get_main_elapsed_time(self.timing)

    def PODopt_iteration_loop(self, config):
        """Main loop of PODopt."""
        logger = config.logger
        self._log_header(logger)
        while not self.algorithm_should_terminate(config):
            self.iteration += 1

            with time_code(self.timing, 'bounding'):
                bounding = self.solve_bounding_problem(config)
            if self.should_terminate:
                break
            if self.algorithm_should_terminate(config):
                break

            with time_code(self.timing, 'local'):
                self.solve_local_problem(config)
            if self.algorithm_should_terminate(config):
                break

            with time_code(self.timing, 'partitioning'):
                self.refine_partitions(config, bounding)

    def solve_bounding_problem(self, config):
        """Build and solve the relaxation on the current partitions.

        Returns
        -------
        Bunch
            The outcome of :py:func:`solve_bounding_problem`.
        """
        logger = config.logger
        self.update_discretization_variables(config)
        remaining = self.remaining_time(config)
        if remaining <= 0:
            return None

        terms = self.model_data.terms
        relaxation = self.relaxation_builder.build(
            self.model_data, self.partitions, self.disc_vars
        )
        terms.check_convexified(logger)

        if self.mip_adapter.supports_branch_priority:
            self.mip_adapter.set_branch_priority(
                relaxation, self.relaxation_builder.branching_variables(relaxation)
            )
        if self.best_full_sol is not None:
            # warm start from the lifted incumbent
            for v, val in zip(
                self.relaxation_builder.variables(relaxation), self.best_full_sol
            ):
                v.set_value(val, skip_validation=True)
        if config.bound_stop:
            self.mip_adapter.set_bound_stop(self.incumbent.bound_stop_value())

        bounding = solve_bounding_problem(
            relaxation,
            self.relaxation_builder,
            self.mip_adapter,
            config,
            self.model_data.sense,
            remaining,
        )
        term_cond = bounding.termination_condition
        if term_cond in _infeasible_conditions:
            logger.info('Bounding problem is infeasible. The model is infeasible.')
            self.results.solver.termination_condition = tc.infeasible
            self.should_terminate = True
            return bounding
        if bounding.solution is None:
            logger.warning(
                'Bounding problem returned %s without a solution.' % term_cond
            )
            self.results.solver.termination_condition = (
                tc.maxTimeLimit if term_cond is tc.maxTimeLimit else tc.noSolution
            )
            self.should_terminate = True
            return bounding

        self.incumbent.update_bound(bounding.bound)
        self.bound_sol = bounding.solution
        self.bound_sol_history.append(bounding.solution)

        # the bound solution itself may be feasible once rounded
        n = self.model_data.num_original_vars
        candidate = round_solution(bounding.solution[:n], self.model_data.var_types())
        improved = False
        if self.model_data.objective is not None and is_feasible(
            candidate, self.model_data, config.tolerance
        ):
            improved = self._update_incumbent(
                self.model_data.evaluate_objective(candidate), candidate, config
            )
        self.incumbent.update_gap()
        self._log_current_state(logger, 'bounding MIP', improved)
        config.call_after_bounding_solve(relaxation, bounding)
        return bounding

    def solve_local_problem(self, config):
        """Local solve inside the partition cell of the bound solution.

        When it does not produce a new incumbent, the best unused
        alive solution of the pool is tried as an alternative start.
        """
        if self.local_solver is None:
            return False
        improved = self._local_solve_from(self.bound_sol, config)
        if not improved and config.solution_pool:
            entry = self.pool.best_alive(self.model_data.sense)
            if entry is not None:
                config.logger.debug("Restarting local solve from %r" % (entry,))
                improved = self._local_solve_from(entry.solution, config)
        self.incumbent.update_gap()
        self._log_current_state(config.logger, 'local NLP', improved)
        return improved

    def _local_solve_from(self, reference, config):
        remaining = self.remaining_time(config)
        if remaining <= 0:
            return False
        model_data = self.model_data
        n = model_data.num_original_vars
        lower, upper = fix_domains(
            reference, model_data, self.partitions, self.disc_vars
        )
        result = self.local_solver.solve(lower, upper, reference[:n], remaining)
        config.call_after_local_solve(result)
        if not result.feasible:
            config.logger.debug(
                "Local solve terminated with %s." % result.termination_condition
            )
            return False
        candidate = round_solution(result.solution[:n], model_data.var_types())
        if not is_feasible(candidate, model_data, config.tolerance):
            config.logger.debug("Local solution is not feasible after rounding.")
            return False
        if model_data.objective is not None:
            objval = model_data.evaluate_objective(candidate)
        else:
            objval = result.objective
        return self._update_incumbent(objval, candidate, config)

    def _update_incumbent(self, objval, candidate, config):
        improved = self.incumbent.update_incumbent(objval, candidate)
        if improved:
            self.best_full_sol = round_solution(
                self.model_data.terms.resolve_lifted_values(candidate),
                self.full_var_types,
            )
            self.best_solution_found_time = get_main_elapsed_time(self.timing)
            config.logger.debug("Incumbent updated to %s" % objval)
        return improved

    def solution_stalled(self, var, config):
        """Whether the bound solution value of ``var`` has not moved during
        the last ``disc_consecutive_forbid`` iterations."""
        limit = config.disc_consecutive_forbid
        if limit == 0 or len(self.bound_sol_history) < limit:
            return False
        current = self.bound_sol_history[-1][var]
        return all(
            math.isclose(sol[var], current, rel_tol=0, abs_tol=config.disc_rel_width_tol)
            for sol in self.bound_sol_history
        )

    def refine_partitions(self, config, bounding):
        """Refine around the bound solution and update the solution pool."""
        variables = [
            i for i in self.disc_vars if not self.solution_stalled(i, config)
        ]
        inserted = self.partitions.refine(self.bound_sol, variables)
        config.logger.debug(
            "Refined %d of %d discretization variables."
            % (len(inserted), len(self.disc_vars))
        )
        if bounding is None or not bounding.pool:
            return
        new_entries = SolutionPool.new_entries(
            [sol for sol, _ in bounding.pool],
            [obj for _, obj in bounding.pool],
            self.partitions,
            self.disc_vars,
            self.iteration,
        )
        self.pool.merge(new_entries, self.partitions, self.bound_sol, self.disc_vars)

    def algorithm_should_terminate(self, config):
        """Checks if the algorithm should terminate at the given point.

        Sets ``self.results.solver.termination_condition`` to optimal,
        maxIterations or maxTimeLimit accordingly.

        Returns
        -------
        bool
            True if the algorithm should terminate, False otherwise.
        """
        if self.should_terminate:
            return True
        return (
            self.bounds_converged(config)
            or self.reached_iteration_limit(config)
            or self.reached_time_limit(config)
        )

    def bounds_converged(self, config):
        if self.incumbent.feasible_solution_found and self.incumbent.converged():
            config.logger.info(
                'PODopt exiting on bound convergence. '
                'Relative gap : {} <= relative tolerance: {} \n'.format(
                    self.incumbent.best_rel_gap, config.relative_gap
                )
            )
            self.results.solver.termination_condition = tc.optimal
            return True
        return False

    def reached_iteration_limit(self, config):
        if self.iteration >= config.iteration_limit:
            config.logger.info(
                'PODopt unable to converge bounds '
                'after {} iterations.'.format(self.iteration)
            )
            self.results.solver.termination_condition = tc.maxIterations
            return True
        return False

    def reached_time_limit(self, config):
        if get_main_elapsed_time(self.timing) >= config.time_limit:
            config.logger.info(
                'PODopt unable to converge bounds '
                'before time limit of {} seconds. '
                'Elapsed: {} seconds'.format(
                    config.time_limit, get_main_elapsed_time(self.timing)
                )
            )
            self.results.solver.termination_condition = tc.maxTimeLimit
            return True
        return False

    def _log_termination_message(self, logger):
        logger.info(
            '\nSolved in {} iterations and {:.5f} seconds\n'
            'Optimal objective value {:.10f}\n'
            'Relative optimality gap {:.5%}'.format(
                self.iteration,
                self.timing.get('total', 0.0),
                self.incumbent.best_obj if self.incumbent is not None else math.nan,
                self.incumbent.best_rel_gap if self.incumbent is not None else math.inf,
            )
        )

    def update_result(self):
        results = self.results
        incumbent = self.incumbent
        if incumbent is not None:
            results.problem.lower_bound = incumbent.lower_bound
            results.problem.upper_bound = incumbent.upper_bound
            results.solver.best_solution = incumbent.best_sol
            results.solver.best_full_solution = self.best_full_sol
            results.solver.relative_gap = incumbent.best_rel_gap
            results.solver.absolute_gap = incumbent.best_abs_gap
        results.solver.iterations = self.iteration
        results.solver.timing = self.timing
        results.solver.user_time = self.timing.get('total')
        results.solver.wallclock_time = self.timing.get('total')
        results.solver.best_solution_found_time = self.best_solution_found_time
        results.solver.discretization_variables = list(self.disc_vars)
        return results
