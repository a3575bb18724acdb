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

"""Exceptions raised by the PODopt solver."""

from pyomo.common.errors import PyomoException


class ConfigurationError(PyomoException, ValueError):
    """
    Raised when a subsolver name is not supported or the solver options
    are malformed.  These errors are fatal and are never retried.
    """


class TermResolutionError(PyomoException, RuntimeError):
    """
    Raised when the lifted variables cannot be resolved from the
    registered nonlinear terms (a lifted index owned by no term, or a
    cyclic term dependency).  This indicates a defect in the model
    front-end.
    """


UnresolvedTermError = TermResolutionError
