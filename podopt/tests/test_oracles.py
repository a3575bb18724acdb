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

import math

import pyomo.common.unittest as unittest
from pyomo.common.collections import Bunch
from pyomo.common.errors import PyomoException
from pyomo.core import ConcreteModel, Var

from podopt.errors import ConfigurationError
from podopt.oracles import (
    CbcAdapter,
    GlpkAdapter,
    GurobiAdapter,
    HighsAdapter,
    IpoptAdapter,
    OracleAdapter,
    _supported_oracles,
    get_oracle_adapter,
    register_oracle_adapter,
    supported_oracles,
    variable_values,
)


def _fake_opt():
    return Bunch(options={})


class TestOracleRegistry(unittest.TestCase):
    def test_unsupported_solver(self):
        with self.assertRaisesRegex(
            ConfigurationError, "Unsupported MIP subsolver 'nosuchsolver'"
        ) as cm:
            get_oracle_adapter('nosuchsolver')
        self.assertIn('appsi_highs', str(cm.exception))
        self.assertIsInstance(cm.exception, PyomoException)
        self.assertIsInstance(cm.exception, ValueError)

    def test_wrong_problem_type(self):
        with self.assertRaisesRegex(
            ConfigurationError, "'ipopt' cannot be used to solve MIP"
        ):
            get_oracle_adapter('ipopt', 'mip')

    def test_malformed_options(self):
        with self.assertRaisesRegex(ConfigurationError, "must be a mapping"):
            get_oracle_adapter('cbc', 'mip', ['sec', 10])

    def test_adapter_classes(self):
        adapter = get_oracle_adapter('glpk', options={'mipgap': 0.01})
        self.assertIsInstance(adapter, GlpkAdapter)
        self.assertEqual(adapter.options, {'mipgap': 0.01})
        self.assertIsInstance(get_oracle_adapter('ipopt', 'nlp'), IpoptAdapter)
        self.assertTrue(get_oracle_adapter('gurobi_persistent').supports_solution_pool)
        self.assertFalse(get_oracle_adapter('gurobi').supports_solution_pool)

    def test_supported_oracles(self):
        self.assertEqual(supported_oracles('nlp'), ['appsi_ipopt', 'ipopt'])
        self.assertIn('cplex_persistent', supported_oracles('mip'))

    def test_register(self):
        class MyAdapter(OracleAdapter):
            solver_name = 'my_mip'

        register_oracle_adapter('my_mip', MyAdapter)
        self.addCleanup(_supported_oracles.pop, 'my_mip')
        self.assertIsInstance(get_oracle_adapter('my_mip'), MyAdapter)


class TestOracleAdapter(unittest.TestCase):
    def test_time_limit(self):
        adapter = CbcAdapter()
        adapter.set_time_limit(12.2)
        self.assertEqual(adapter.time_limit, 13)
        adapter.set_time_limit(0.3)
        self.assertEqual(adapter.time_limit, 1)
        adapter.set_time_limit(math.inf)
        self.assertIsNone(adapter.time_limit)

    def test_time_limit_options(self):
        for cls, key, val in (
            (CbcAdapter, 'sec', 5),
            (GlpkAdapter, 'tmlim', 5),
            (GurobiAdapter, 'timelimit', 5),
            (IpoptAdapter, 'max_cpu_time', 5.0),
        ):
            adapter = cls(options={'threads': 1})
            adapter.set_time_limit(4.5)
            opt = _fake_opt()
            adapter._apply_options(opt)
            self.assertEqual(opt.options, {'threads': 1, key: val})

    def test_appsi_time_limit(self):
        adapter = HighsAdapter(options={'mip_rel_gap': 0.0})
        adapter.set_time_limit(30)
        opt = _fake_opt()
        adapter._apply_options(opt)
        self.assertEqual(opt.options, {'mip_rel_gap': 0.0})
        self.assertEqual(adapter._solve_kwds(), {'timelimit': 30})

    def test_bound_stop(self):
        adapter = GurobiAdapter()
        adapter.set_bound_stop(42.0)
        opt = _fake_opt()
        adapter._apply_options(opt)
        self.assertEqual(opt.options, {'BestBdStop': 42.0})

        # unsupported: silently ignored
        adapter = CbcAdapter()
        adapter.set_bound_stop(42.0)
        self.assertIsNone(adapter.bound_stop)

    def test_variable_values(self):
        m = ConcreteModel()
        m.x = Var(initialize=2.5)
        m.y = Var()
        vals = variable_values([m.x, m.y])
        self.assertEqual(vals[0], 2.5)
        self.assertTrue(math.isnan(vals[1]))


if __name__ == '__main__':
    unittest.main()
