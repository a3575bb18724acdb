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
from pyomo.core import Binary, ConcreteModel, Integers, Var

from podopt.feasibility import fix_domains, is_feasible, round_solution
from podopt.model_data import (
    ConstraintRecord,
    ModelData,
    VariableRecord,
    VarType,
    variable_records_from_pyomo,
)
from podopt.partition import PartitionStore

B, I, C = VarType.BINARY, VarType.INTEGER, VarType.CONTINUOUS


class TestModelData(unittest.TestCase):
    def test_variable_record_defaults(self):
        rec = VariableRecord(name='x', lb=-1, ub=3)
        self.assertEqual((rec.lb_tight, rec.ub_tight), (-1, 3))
        self.assertEqual(rec.width, 4)
        unbounded = VariableRecord(name='y')
        self.assertEqual(unbounded.width, math.inf)

    def test_binary_bounds(self):
        rec = VariableRecord(name='b', domain=B, lb=-5, ub=5)
        self.assertEqual((rec.lb_tight, rec.ub_tight), (0.0, 1.0))

    def test_crossing_bounds(self):
        with self.assertRaisesRegex(ValueError, "crossing bounds"):
            VariableRecord(name='x', lb=0, ub=4, lb_tight=3, ub_tight=2)

    def test_model_data(self):
        md = ModelData(
            [
                VariableRecord(name='x', lb=0, ub=1),
                VariableRecord(name='z', domain=I, lb=0, ub=9),
            ],
            objective=lambda x: x[0] - x[1],
        )
        self.assertEqual(md.num_original_vars, 2)
        self.assertEqual(md.var_types(), [C, I])
        self.assertEqual(md.integer_variables(), [1])
        self.assertEqual(md.tight_bounds(), ([0, 0], [1, 9]))
        # lifted values beyond the original vector are ignored
        self.assertEqual(md.evaluate_objective([1.0, 3.0, 99.0]), -2.0)
        with self.assertRaisesRegex(ValueError, "Unrecognized objective sense"):
            ModelData([], sense='minimize')
        with self.assertRaisesRegex(ValueError, "No objective evaluator"):
            ModelData([]).evaluate_objective([])

    def test_records_from_pyomo(self):
        m = ConcreteModel()
        m.x = Var(bounds=(-2, None))
        m.b = Var(domain=Binary)
        m.z = Var(domain=Integers, bounds=(0, 4))
        recs = variable_records_from_pyomo([m.x, m.b, m.z])
        self.assertEqual([r.name for r in recs], ['x', 'b', 'z'])
        self.assertEqual([r.domain for r in recs], [C, B, I])
        self.assertEqual((recs[0].lb, recs[0].ub), (-2, math.inf))
        self.assertEqual((recs[1].lb, recs[1].ub), (0, 1))


class TestRounding(unittest.TestCase):
    def test_round_solution(self):
        types = [B, B, I, C]
        rounded = round_solution([0.7, 0.49, 2.4, 1.3, 8.0], types)
        self.assertEqual(rounded, [1.0, 0.0, 2.0, 1.3, 8.0])
        self.assertEqual(round_solution(rounded, types), rounded)


class TestIsFeasible(unittest.TestCase):
    def setUp(self):
        self.md = ModelData(
            [
                VariableRecord(name='x', lb=0, ub=1),
                VariableRecord(name='b', domain=B),
                VariableRecord(name='z', domain=I, lb=0, ub=5),
            ],
            constraints=[
                ConstraintRecord(name='c1', body=lambda x: x[0] + x[2], upper=3),
                ConstraintRecord(name='c2', body=lambda x: x[0] * x[2], lower=0.5),
                ConstraintRecord(
                    name='c3', body=lambda x: x[1] + x[2], lower=3, upper=3
                ),
            ],
        )

    def test_feasible(self):
        self.assertTrue(is_feasible([0.5, 1.0, 2.0], self.md))
        self.assertTrue(is_feasible([0.5, 1.0 + 1e-7, 2.0 - 1e-7], self.md))

    def test_binary_not_integral(self):
        self.assertFalse(is_feasible([0.5, 0.7, 2.0], self.md))

    def test_integer_not_integral(self):
        self.assertFalse(is_feasible([0.5, 1.0, 2.4], self.md))

    def test_bounds(self):
        self.assertFalse(is_feasible([1.5, 1.0, 2.0], self.md))
        self.assertTrue(is_feasible([1.0 + 1e-7, 1.0, 2.0], self.md))
        self.assertFalse(is_feasible([-0.1, 1.0, 2.0], self.md))

    def test_constraints(self):
        # c1 violated
        self.assertFalse(is_feasible([1.0, 0.0, 3.0], self.md))
        # c2 violated
        self.assertFalse(is_feasible([0.2, 1.0, 2.0], self.md))
        # c3 violated
        self.assertFalse(is_feasible([0.5, 0.0, 2.0], self.md))

    def test_length_mismatch(self):
        self.assertFalse(is_feasible([0.5, 1.0], self.md))
        self.assertFalse(is_feasible([0.5, 1.0, 2.0, 1.0], self.md))


class TestFixDomains(unittest.TestCase):
    def setUp(self):
        self.md = ModelData(
            [
                VariableRecord(name='x0', lb=0, ub=10),
                VariableRecord(name='b', domain=B),
                VariableRecord(name='z', domain=I, lb=0, ub=5),
                VariableRecord(name='x3', lb=-1, ub=1, lb_tight=-0.5),
            ]
        )
        self.store = PartitionStore()
        self.store.set_breakpoints(0, [0, 5, 10])
        self.store.initialize(3, -0.5, 1)

    def test_fix_domains(self):
        lower, upper = fix_domains(
            [7.0, 0.8, 2.6, 0.3, 42.0], self.md, self.store, [0]
        )
        self.assertEqual(lower, [5.0, 1.0, 3.0, -0.5])
        self.assertEqual(upper, [10.0, 1.0, 3.0, 1])

    def test_short_reference(self):
        with self.assertRaisesRegex(ValueError, "Reference solution has 2 values"):
            fix_domains([1.0, 0.0], self.md, self.store, [0])


if __name__ == '__main__':
    unittest.main()
