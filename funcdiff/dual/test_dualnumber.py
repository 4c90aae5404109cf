#!/usr/bin/env python3

import unittest
import sys
import pickle
import math

import numpy as np

from testutils import DiffTestCase
from . import dualnumber as dn
from .dualnumber import DualNumber


def _finite_differences(func, x, h=1e-4):
    r"""Gradient and Hessian of a function of a numpy vector."""
    n = len(x)
    E = np.eye(n) * h
    grad = np.array([(func(x + E[i]) - func(x - E[i])) / (2*h)
                     for i in range(n)])
    hess = np.zeros((n, n))
    for i in range(n):
        for j in range(n):
            hess[i, j] = (func(x + E[i] + E[j]) - func(x + E[i] - E[j])
                          - func(x - E[i] + E[j]) + func(x - E[i] - E[j]))
            hess[i, j] /= 4*h*h
    return grad, hess


class TestDualNumber(DiffTestCase):
    def basis(self, *values):
        n = len(values)
        return [DualNumber.basis(v, n, i) for i, v in enumerate(values)]

    def test_basis(self):
        x = DualNumber.basis(2.0, 3, 1)
        self.assertEqual(x.value, 2.0)
        self.assertEqual(x.n, 3)
        self.assertListAlmostEqual(x.gradient, [0.0, 1.0, 0.0])
        self.assertArrayAlmostEqual(x.hessian, np.zeros((3, 3)))
        with self.assertRaises(IndexError):
            DualNumber.basis(1.0, 2, 2)

    def test_exp_product(self):
        x, y = self.basis(1.0, 2.0)
        f = dn.exp(x * y)
        e2 = math.exp(2.0)
        self.assertAlmostEqual(f.value, e2)
        self.assertListAlmostEqual(f.gradient, [2*e2, e2])
        self.assertArrayAlmostEqual(f.hessian, [[4*e2, 3*e2], [3*e2, e2]])

    def test_against_finite_differences(self):
        def formula(m, a, b):
            x, y = a, b
            return m.sqrt(x*x + y) * m.sin(x / y) - m.log(y) * m.cos(x) \
                + m.pow(x, y) + 3.0 / (1.0 + x*x)
        class _np(object):
            sqrt, sin, cos, log = np.sqrt, np.sin, np.cos, np.log
            pow = staticmethod(np.power)
        point = np.array([0.7, 1.9])
        x, y = self.basis(*point)
        f = formula(dn, x, y)
        grad, hess = _finite_differences(
            lambda p: formula(_np, p[0], p[1]), point
        )
        self.assertAlmostEqual(f.value, formula(_np, *point))
        self.assertListAlmostEqual(f.gradient, grad, delta=1e-6)
        self.assertArrayAlmostEqual(f.hessian, hess, delta=1e-5)

    def test_arithmetic_with_numbers(self):
        x, = self.basis(3.0)
        cases = [
            (x + 2, 5.0, 1.0, 0.0),
            (2 + x, 5.0, 1.0, 0.0),
            (x - 2, 1.0, 1.0, 0.0),
            (2 - x, -1.0, -1.0, 0.0),
            (2 * x, 6.0, 2.0, 0.0),
            (x / 2, 1.5, 0.5, 0.0),
            (6 / x, 2.0, -6/9, 12/27),
            (x**2, 9.0, 6.0, 2.0),
            (2**x, 8.0, 8*math.log(2), 8*math.log(2)**2),
            (-x, -3.0, -1.0, 0.0),
            (dn.sqr(x), 9.0, 6.0, 2.0),
            (dn.sqrt(x), math.sqrt(3), 0.5/math.sqrt(3),
             -0.25*3**-1.5),
        ]
        for f, value, d1, d2 in cases:
            self.assertAlmostEqual(f.value, value)
            self.assertAlmostEqual(f.gradient_entry(0), d1)
            self.assertAlmostEqual(f.hessian_entry(0, 0), d2)

    def test_numpy_scalars(self):
        x, = self.basis(3.0)
        f = np.float64(2.0) * x
        self.assertIsInstance(f, DualNumber)
        self.assertEqual(f.gradient_entry(0), 2.0)

    def test_constants(self):
        x, y = self.basis(1.0, 2.0)
        c = DualNumber.constant(5.0)
        self.assertEqual(c.n, 0)
        self.assertIsNone(c.gradient)
        self.assertIs(DualNumber.constant(0.0), DualNumber.ZERO)
        f = x * c + y
        self.assertEqual(f.n, 2)
        self.assertListAlmostEqual(f.gradient, [5.0, 1.0])
        self.assertEqual(c.gradient_entry(1), 0.0)
        self.assertEqual(c.hessian_entry(0, 1), 0.0)
        self.assertEqual((c * c).value, 25.0)
        self.assertIsNone((c * c).gradient)

    def test_inconsistent_sizes(self):
        x = DualNumber.basis(1.0, 2, 0)
        y = DualNumber.basis(1.0, 3, 0)
        with self.assertRaises(ValueError):
            x + y

    def test_construction(self):
        f = DualNumber(1.0, [1.0, 2.0], [[1.0, 3.0], [3.0, 4.0]])
        self.assertListAlmostEqual(f.to_hessian_array(), [1.0, 3.0, 4.0])
        self.assertEqual(f.hessian_entry(1, 0), 3.0)
        with self.assertRaises(ValueError):
            DualNumber(1.0, [1.0, 2.0], [[1.0, 3.0], [2.0, 4.0]])
        with self.assertRaises(ValueError):
            DualNumber(1.0, [1.0, 2.0], [[1.0]])
        with self.assertRaises(ValueError):
            DualNumber(1.0, None, [[1.0]])
        nan = float('nan')
        f = DualNumber(1.0, [1.0, 2.0], [[1.0, nan], [nan, 4.0]])
        self.assertIsNan(f.hessian_entry(0, 1))

    def test_missing_value(self):
        with self.assertRaises(TypeError):
            DualNumber(None, [1.0])
        with self.assertRaises(TypeError):
            DualNumber.basis(None, 2, 0)
        with self.assertRaises(TypeError):
            DualNumber.from_arrays(None, [1.0])
        with self.assertRaises(TypeError):
            DualNumber.constant(None)
        with self.assertRaises(TypeError):
            DualNumber("1.0")

    def test_packed_arrays(self):
        f = DualNumber.from_arrays(2.0, [1.0, 2.0, 3.0],
                                   [1.0, 2.0, 3.0, 4.0, 5.0, 6.0])
        self.assertArrayAlmostEqual(
            f.hessian, [[1.0, 2.0, 3.0], [2.0, 4.0, 5.0], [3.0, 5.0, 6.0]]
        )
        g = DualNumber(f.value, f.gradient, f.hessian)
        self.assertListAlmostEqual(g.to_hessian_array(), f.to_hessian_array())
        with self.assertRaises(ValueError):
            DualNumber.from_arrays(2.0, [1.0, 2.0], [1.0, 2.0])

    def test_readonly(self):
        x, y = self.basis(1.0, 2.0)
        f = x * y
        with self.assertRaises(ValueError):
            f.gradient[0] = 1.0
        with self.assertRaises(ValueError):
            f.hessian[0, 0] = 1.0
        arr = f.to_gradient_array()
        arr[0] = 10.0
        self.assertEqual(f.gradient_entry(0), 2.0)

    def test_ieee(self):
        x, = self.basis(-1.0)
        f = dn.log(x)
        self.assertIsNan(f.value)
        z, = self.basis(0.0)
        f = 1.0 / z
        self.assertEqual(f.value, np.inf)

    def test_zero_factors_skipped(self):
        z, = self.basis(0.0)
        f = dn.sqrt(z)
        self.assertEqual(f.gradient_entry(0), np.inf)
        g = 0.0 * f
        self.assertEqual(g.gradient_entry(0), 0.0)
        self.assertEqual(g.hessian_entry(0, 0), 0.0)

    def test_division(self):
        x, y = self.basis(3.0, 2.0)
        f = x / y
        self.assertAlmostEqual(f.value, 1.5)
        self.assertListAlmostEqual(f.gradient, [0.5, -0.75])
        self.assertArrayAlmostEqual(f.hessian, [[0.0, -0.25], [-0.25, 0.75]])

    def test_power(self):
        x, y = self.basis(2.0, 3.0)
        f = x**y
        ln2 = math.log(2)
        self.assertAlmostEqual(f.value, 8.0)
        self.assertListAlmostEqual(f.gradient, [12.0, 8*ln2])
        self.assertArrayAlmostEqual(
            f.hessian, [[12.0, 4.0*(1 + 3*ln2)], [4.0*(1 + 3*ln2), 8*ln2**2]]
        )

    def test_min_max(self):
        x, y = self.basis(1.0, 2.0)
        self.assertIs(dn.min_(x, y), x)
        self.assertIs(dn.max_(x, y), y)
        z = DualNumber.basis(1.0, 2, 1)
        self.assertIs(dn.min_(x, z), z)
        self.assertIs(dn.max_(x, z), z)
        c = dn.min_(0.5, x)
        self.assertEqual(c.value, 0.5)
        self.assertIsNone(c.gradient)
        self.assertIs(dn.max_(0.5, x), x)
        self.assertIs(dn.min_(x, 3.0), x)
        with self.assertRaises(TypeError):
            dn.max_(x, None)

    def test_pickle(self):
        x, y = self.basis(1.0, 2.0)
        f = dn.exp(x * y)
        f.hessian
        g = pickle.loads(pickle.dumps(f))
        self.assertEqual(g.value, f.value)
        self.assertArrayAlmostEqual(g.hessian, f.hessian)
        with self.assertRaises(ValueError):
            g.gradient[0] = 1.0


def run_tests():
    suite = unittest.TestLoader().loadTestsFromModule(sys.modules[__name__])
    return len(unittest.TextTestRunner(verbosity=2).run(suite).failures)


if __name__ == '__main__':
    unittest.main()
