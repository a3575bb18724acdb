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

"""
Script to generate the installer for podopt.
"""

import os
from setuptools import setup, find_packages


def import_podopt_module(*path):
    _module_globals = dict(globals())
    _module_globals['__name__'] = None
    _source = os.path.join(os.path.dirname(__file__), *path)
    with open(_source) as _FILE:
        exec(_FILE.read(), _module_globals)
    return _module_globals


def get_version():
    # Source podopt/version.py to get the version number
    return import_podopt_module('podopt', 'version.py')['version']


setup_kwargs = dict(
    name='podopt',
    version=get_version(),
    description='Adaptive multivariate partitioning for global optimization '
    'of nonconvex MINLPs on top of Pyomo',
    license='BSD-3-Clause',
    python_requires='>=3.9',
    install_requires=['pyomo>=6.7', 'networkx'],
    extras_require={
        'tests': ['coverage', 'parameterized', 'pytest', 'pytest-parallel'],
        'solvers': [
            'highspy',  # appsi_highs bounding and vertex cover solves
        ],
    },
    packages=find_packages(exclude=("scripts",)),
)

setup(**setup_kwargs)
