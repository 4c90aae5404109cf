#!/usr/bin/env python3

import unittest
import sys
import pickle
import math

import numpy as np

from testutils import DiffTestCase
from . import extended as ext
from .extended import ExtendedDualNumber, Tensor
from . import dualnumber as dn
from .dualnumber import DualNumber


class TestExtendedDualNumber(DiffTestCase):
    def basis(self, *values, n0=None):
        n = len(values)
        return [ExtendedDualNumber.basis(v, n, i, n0=n0)
                for i, v in enumerate(values)]

    def assertThird(self, f, expected, places=7):
        r"""Compare all stored third derivatives with a callable."""
        n, n0 = f.n, f.n0
        for i in range(n0):
            for j in range(n):
                for k in range(n):
                    self.assertAlmostEqual(
                        f.third_entry(i, j, k), expected(i, j, k),
                        places=places, msg="entry (%d, %d, %d)" % (i, j, k)
                    )
                    self.assertAlmostEqual(f.third[i, j, k], expected(i, j, k),
                                           places=places)

    def test_exp_product(self):
        x, y = self.basis(1.0, 2.0)
        f = ext.exp(x * y)
        e2 = math.exp(2.0)
        # Derivatives of exp(x*y) at (1, 2).
        third = {
            (0, 0, 0): 8*e2,          # y^3 e
            (0, 0, 1): 8*e2,          # (2y + x y^2) e
            (0, 1, 1): 4*e2,          # (2x + x^2 y) e
            (1, 1, 1): e2,            # x^3 e
        }
        self.assertAlmostEqual(f.value, e2)
        self.assertListAlmostEqual(f.gradient, [2*e2, e2])
        self.assertArrayAlmostEqual(f.hessian, [[4*e2, 3*e2], [3*e2, e2]])
        self.assertThird(f, lambda i, j, k: third[tuple(sorted((i, j, k)))],
                         places=6)

    def test_polynomial(self):
        x, y = self.basis(1.5, 2.0)
        f = ext.sqr(x) * y**3
        # f = x^2 y^3
        a, b = 1.5, 2.0
        third = {
            (0, 0, 0): 0.0,
            (0, 0, 1): 6*b**2,
            (0, 1, 1): 12*a*b,
            (1, 1, 1): 6*a**2,
        }
        self.assertAlmostEqual(f.value, a**2 * b**3)
        self.assertThird(f, lambda i, j, k: third[tuple(sorted((i, j, k)))])

    def test_reduced(self):
        x, y, z = self.basis(0.5, 1.5, 2.5, n0=1)
        f = ext.sin(x) * ext.log(y) / z
        self.assertEqual(f.n0, 1)
        self.assertEqual(f.third.shape, (1, 3, 3))
        a, b, c = 0.5, 1.5, 2.5
        full = ext.sin(ExtendedDualNumber.basis(a, 3, 0)) \
            * ext.log(ExtendedDualNumber.basis(b, 3, 1)) \
            / ExtendedDualNumber.basis(c, 3, 2)
        self.assertEqual(full.n0, 3)
        self.assertThird(f, full.third_entry)
        # d^3/dx dz dz of sin(x) log(y) / z
        self.assertAlmostEqual(f.third_entry(0, 2, 2),
                               2 * math.cos(a) * math.log(b) / c**3)
        with self.assertRaises(IndexError):
            f.third_entry(1, 1, 2)

    def test_division_third(self):
        x, y = self.basis(3.0, 2.0)
        f = x / y
        # f = x/y: f_xyy = 2/y^3, f_yyy = -6x/y^4
        self.assertAlmostEqual(f.third_entry(0, 1, 1), 2/8)
        self.assertAlmostEqual(f.third_entry(1, 1, 1), -18/16)
        self.assertAlmostEqual(f.third_entry(0, 0, 1), 0.0)
        g = 2.0 / x
        self.assertAlmostEqual(g.third_entry(0, 0, 0), -12/81)

    def test_power(self):
        x, y = self.basis(2.0, 3.0)
        f = x**y
        ln = math.log(2.0)
        # x^y at (2, 3)
        self.assertAlmostEqual(f.third_entry(0, 0, 0), 6.0)
        self.assertAlmostEqual(f.third_entry(0, 0, 1),
                               (5 + 6*ln) * 2.0)
        self.assertAlmostEqual(f.third_entry(0, 1, 1),
                               2*ln*4 + ln**2 * 3 * 4)
        self.assertAlmostEqual(f.third_entry(1, 1, 1), ln**3 * 8)

    def test_sqrt_and_cos(self):
        x, = self.basis(2.0)
        f = ext.sqrt(x)
        self.assertAlmostEqual(f.third_entry(0, 0, 0), 3/8 * 2**-2.5)
        g = ext.cos(x)
        self.assertAlmostEqual(g.third_entry(0, 0, 0), math.sin(2.0))

    def test_agrees_with_dual_numbers(self):
        x, y = self.basis(0.4, 1.1)
        f = ext.exp(x) * ext.sin(y) - x / (1 + y**2)
        u = DualNumber.basis(0.4, 2, 0)
        v = DualNumber.basis(1.1, 2, 1)
        g = dn.exp(u) * dn.sin(v) - u / (1 + v**2)
        self.assertAlmostEqual(f.value, g.value)
        self.assertListAlmostEqual(f.gradient, g.gradient)
        self.assertArrayAlmostEqual(f.hessian, g.hessian)

    def test_constants(self):
        x, y = self.basis(1.0, 2.0)
        c = ExtendedDualNumber.constant(3.0)
        self.assertEqual(c.n0, 0)
        self.assertIsNone(c.third)
        f = c * x * y
        self.assertEqual(f.n0, 2)
        self.assertAlmostEqual(f.third_entry(0, 0, 1), 0.0)
        self.assertIs(ExtendedDualNumber.constant(0), ExtendedDualNumber.ZERO)

    def test_missing_value(self):
        with self.assertRaises(TypeError):
            ExtendedDualNumber.basis(None, 2, 0)
        with self.assertRaises(TypeError):
            ExtendedDualNumber(None, [1.0, 2.0])
        with self.assertRaises(TypeError):
            ExtendedDualNumber.from_arrays(None, [1.0], [1.0], [1.0])

    def test_mismatch(self):
        x, = self.basis(1.0)
        a = ExtendedDualNumber.basis(1.0, 2, 0, n0=1)
        b = ExtendedDualNumber.basis(1.0, 2, 1, n0=2)
        with self.assertRaises(ValueError):
            a + b
        with self.assertRaises(ValueError):
            x * a
        with self.assertRaises(ValueError):
            ExtendedDualNumber.basis(1.0, 2, 0, n0=3)

    def test_from_arrays(self):
        f = ExtendedDualNumber.from_arrays(
            1.0, [1.0, 2.0], [1.0, 2.0, 3.0], [1.0, 2.0, 3.0], n0=1
        )
        self.assertEqual(f.third_entry(0, 1, 0), 2.0)
        self.assertEqual(f.third_entry(1, 0, 1), 3.0)
        self.assertListAlmostEqual(f.to_third_array(), [1.0, 2.0, 3.0])
        with self.assertRaises(ValueError):
            ExtendedDualNumber.from_arrays(
                1.0, [1.0, 2.0], [1.0, 2.0, 3.0], [1.0, 2.0, 3.0, 4.0, 5.0]
            )
        with self.assertRaises(ValueError):
            ExtendedDualNumber.from_arrays(1.0, [1.0, 2.0], None, [1.0])

    def test_tensor(self):
        t = Tensor(np.zeros((1, 2, 2)))
        self.assertEqual(t.shape, (1, 2, 2))
        self.assertIsInstance(t[0, 1, 1], float)
        self.assertEqual(t[0].shape, (2, 2))
        with self.assertRaises(ValueError):
            Tensor(np.zeros((2, 2)))

    def test_pickle(self):
        x, y = self.basis(1.0, 2.0)
        f = ext.exp(x * y)
        f.third
        g = pickle.loads(pickle.dumps(f))
        self.assertEqual(g.n0, 2)
        self.assertArrayAlmostEqual(g.third.to_array(), f.third.to_array())


def run_tests():
    suite = unittest.TestLoader().loadTestsFromModule(sys.modules[__name__])
    return len(unittest.TextTestRunner(verbosity=2).run(suite).failures)


if __name__ == '__main__':
    unittest.main()
