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

"""Rounding, feasibility validation and domain fixing of candidate solutions."""

import logging

from podopt.model_data import VarType

logger = logging.getLogger('podopt')


def round_value(val, domain):
    if domain is VarType.BINARY:
        return 1.0 if val >= 0.5 else 0.0
    elif domain is VarType.INTEGER:
        return float(round(val))
    return val


def round_solution(solution, var_types):
    """Round the discrete entries of ``solution``.

    Only the first ``len(var_types)`` entries are touched; any lifted
    values beyond them are copied unchanged.
    """
    rounded = list(solution)
    for i, domain in enumerate(var_types):
        rounded[i] = round_value(rounded[i], domain)
    return rounded


def is_feasible(candidate, model_data, tolerance=1e-6):
    """Check a candidate solution against the original model.

    The candidate must have one value per original variable, respect
    the integrality of discrete variables and the tightened bounds, and
    satisfy every original constraint, all within ``tolerance``.  The
    check stops at the first violation.

    Returns
    -------
    bool
    """
    if len(candidate) != model_data.num_original_vars:
        logger.debug(
            "Candidate solution length mismatch: %d values for %d variables."
            % (len(candidate), model_data.num_original_vars)
        )
        return False

    for val, var in zip(candidate, model_data.variables):
        if var.domain is VarType.BINARY:
            if not (abs(val - 1.0) <= tolerance or abs(val) <= tolerance):
                return False
        elif var.domain is VarType.INTEGER:
            if abs(val - round(val)) > tolerance:
                return False
        if val < var.lb_tight - tolerance or val > var.ub_tight + tolerance:
            return False

    for con in model_data.constraints:
        body = con.evaluate(candidate)
        if con.is_equality:
            if abs(body - con.lower) > tolerance:
                logger.debug(
                    "Violation on CONSTR %s :: EVAL %s != RHS %s"
                    % (con.name, body, con.lower)
                )
                return False
            continue
        if con.lower is not None and body < con.lower - tolerance:
            logger.debug(
                "Violation on CONSTR %s :: EVAL %s !>= RHS %s"
                % (con.name, body, con.lower)
            )
            return False
        if con.upper is not None and body > con.upper + tolerance:
            logger.debug(
                "Violation on CONSTR %s :: EVAL %s !<= RHS %s"
                % (con.name, body, con.upper)
            )
            return False
    return True


def fix_domains(reference, model_data, partitions, disc_vars):
    """Bounds for the local solve derived from a reference solution.

    Discretized continuous variables are restricted to the partition
    interval containing their reference value.  Binary and integer
    variables are fixed to their rounded reference value.  All other
    variables keep their tightened bounds.

    Returns
    -------
    tuple of list
        The ``(lower, upper)`` bounds of the original variables.
    """
    n = model_data.num_original_vars
    if len(reference) < n:
        raise ValueError(
            "Reference solution has %d values but the model has %d variables."
            % (len(reference), n)
        )
    lower, upper = model_data.tight_bounds()
    disc_vars = set(disc_vars)
    for i, var in enumerate(model_data.variables):
        if var.domain is VarType.CONTINUOUS:
            if i in disc_vars and i in partitions:
                j = partitions.active_interval(i, reference[i])
                assert j < partitions.num_intervals(i)
                lower[i], upper[i] = partitions.interval_bounds(i, j)
        else:
            lower[i] = upper[i] = round_value(reference[i], var.domain)
    return lower, upper

