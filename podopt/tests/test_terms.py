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
from pyomo.common.log import LoggingIntercept

from podopt.errors import TermResolutionError, UnresolvedTermError
from podopt.model_data import VarType
from podopt.terms import Term, TermKind, TermRegistry, resolve_lifted_var_type


class TestTermRegistry(unittest.TestCase):
    def test_resolve_bilinear(self):
        reg = TermRegistry(2)
        reg.add_term(TermKind.BILINEAR, (0, 1), 2)
        self.assertEqual(reg.resolve_lifted_values([2.0, 3.0]), [2.0, 3.0, 6.0])

    def test_resolve_nested_terms(self):
        # x3 = x0 * x1 ; x4 = x3 * x2 ; x5 = sin(x0)
        reg = TermRegistry(3)
        reg.add_term(TermKind.MULTILINEAR, (3, 2), 4)
        reg.add_term(TermKind.BILINEAR, (0, 1), 3)
        reg.add_term('sin', (0,), 5)
        values = reg.resolve_lifted_values([1.5, 2.0, -1.0])
        self.assertEqual(values[:5], [1.5, 2.0, -1.0, 3.0, -3.0])
        self.assertAlmostEqual(values[5], math.sin(1.5))

    def test_resolve_is_pure(self):
        reg = TermRegistry(1)
        reg.add_term(TermKind.MONOMIAL, (0, 0), 1)
        orig = [4.0]
        self.assertEqual(reg.resolve_lifted_values(orig), [4.0, 16.0])
        self.assertEqual(orig, [4.0])
        self.assertEqual(reg.resolve_lifted_values(orig), [4.0, 16.0])

    def test_resolve_length_mismatch(self):
        reg = TermRegistry(2)
        reg.add_term(TermKind.BILINEAR, (0, 1), 2)
        with self.assertRaisesRegex(ValueError, "Expected 2 original values"):
            reg.resolve_lifted_values([1.0])

    def test_unresolved_lifted_variable(self):
        reg = TermRegistry(2)
        # index 2 is skipped, so it is owned by no term
        reg.add_term(TermKind.BILINEAR, (0, 1), 3)
        with self.assertRaisesRegex(UnresolvedTermError, "lifted variable 2"):
            reg.resolve_lifted_values([1.0, 1.0])

    def test_cyclic_dependency(self):
        reg = TermRegistry(1)
        reg.add_term(TermKind.BILINEAR, (0, 2), 1)
        reg.add_term(TermKind.BILINEAR, (0, 1), 2)
        with self.assertRaisesRegex(TermResolutionError, "cyclic"):
            reg.term_sequence()

    def test_duplicate_lifted_index(self):
        reg = TermRegistry(2)
        reg.add_term(TermKind.BILINEAR, (0, 1), 2)
        with self.assertRaisesRegex(ValueError, "already owned"):
            reg.add_term(TermKind.MONOMIAL, (0, 0), 2)
        with self.assertRaisesRegex(ValueError, "collides"):
            reg.add_term(TermKind.MONOMIAL, (0, 0), 1)

    def test_unknown_kind(self):
        reg = TermRegistry(2)
        with self.assertRaisesRegex(ValueError, "Unrecognized nonlinear term kind"):
            reg.add_term('exp', (0,), 2)

    def test_operand_counts(self):
        with self.assertRaisesRegex(ValueError, "A BILINEAR term takes 2"):
            Term(TermKind.BILINEAR, (0, 1, 2), 3)
        with self.assertRaisesRegex(ValueError, "must repeat a single variable"):
            Term(TermKind.MONOMIAL, (0, 1), 3)
        with self.assertRaisesRegex(ValueError, "own term"):
            Term(TermKind.BILINEAR, (0, 3), 3)

    def test_kind_is_immutable(self):
        term = Term(TermKind.SIN, (0,), 1)
        with self.assertRaises(AttributeError):
            term.kind = TermKind.COS
        self.assertTrue(term.kind.is_trig)

    def test_candidate_variables(self):
        reg = TermRegistry(4)
        reg.add_term(TermKind.BILINEAR, (0, 1), 4)
        reg.add_term(TermKind.BINLIN, (2, 3), 5)
        reg.add_term(TermKind.MULTILINEAR, (4, 3), 6)
        self.assertEqual(reg.candidate_variables(), [0, 1, 3])

    def test_infer_lifted_types(self):
        reg = TermRegistry(3)
        reg.add_term(TermKind.BINPROD, (0, 1), 3)
        reg.add_term(TermKind.BININT, (0, 2), 4)
        reg.add_term(TermKind.BINLIN, (0, 4), 5)
        types = reg.infer_lifted_types(
            [VarType.BINARY, VarType.BINARY, VarType.INTEGER]
        )
        self.assertEqual(
            types[3:], [VarType.BINARY, VarType.INTEGER, VarType.INTEGER]
        )

    def test_check_convexified(self):
        reg = TermRegistry(2)
        t1 = reg.add_term(TermKind.BILINEAR, (0, 1), 2)
        t2 = reg.add_term(TermKind.MONOMIAL, (0, 0), 3)
        t1.convexified = True
        with LoggingIntercept(module='podopt') as LOG:
            self.assertFalse(reg.check_convexified())
        self.assertIn("MONOMIAL", LOG.getvalue())
        self.assertTrue(t1.convexified)

        t2.convexified = True
        with LoggingIntercept(module='podopt') as LOG:
            self.assertTrue(reg.check_convexified())
        self.assertEqual(LOG.getvalue(), "")
        self.assertFalse(t1.convexified)
        self.assertFalse(t2.convexified)


class TestLiftedVarType(unittest.TestCase):
    def test_sum(self):
        B, I, C = VarType.BINARY, VarType.INTEGER, VarType.CONTINUOUS
        self.assertIs(resolve_lifted_var_type([B], '+'), B)
        self.assertIs(resolve_lifted_var_type([I], '+'), I)
        self.assertIs(resolve_lifted_var_type([B, B], '+'), I)
        self.assertIs(resolve_lifted_var_type([B, I], '+'), I)
        self.assertIs(resolve_lifted_var_type([B, C], '+'), C)

    def test_product(self):
        B, I, C = VarType.BINARY, VarType.INTEGER, VarType.CONTINUOUS
        self.assertIs(resolve_lifted_var_type([B, B, B], '*'), B)
        self.assertIs(resolve_lifted_var_type([B, I], '*'), I)
        self.assertIs(resolve_lifted_var_type([C, I], '*'), C)
        self.assertIs(resolve_lifted_var_type([B, B], '^'), C)


if __name__ == '__main__':
    unittest.main()
