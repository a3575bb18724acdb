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

import pytest


def pytest_runtest_setup(item):
    """
    Restrict the run to the tests marked with the subsolver requested
    through ``--solver``.  Without the flag every test runs; tests whose
    subsolver is not installed skip themselves.
    """
    solveroption = item.config.getoption("--solver")
    if not solveroption:
        return
    solvernames = [mark.args[0] for mark in item.iter_markers(name="solver")]
    if solveroption not in solvernames:
        pytest.skip("SKIPPED: Test not marked {!r}".format(solveroption))


def pytest_addoption(parser):
    parser.addoption(
        "--solver",
        action="store",
        metavar="SOLVER",
        help="Run tests matching the requested SOLVER.",
    )


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "solver(name): mark test to run the named subsolver"
    )
