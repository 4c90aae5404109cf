#!/usr/bin/env python3

import unittest
import sys
import io
from contextlib import redirect_stdout

from testutils import DiffTestCase
from ..exprs.elementary import Variable, exp, sin, sqrt, log
from . import dualnumber as dn
from .derivtest import DualNumberDerivativeTest
from .dualnumber import DualNumber


class TestDerivativeTest(DiffTestCase):
    def setUp(self):
        self.x = Variable("x")
        self.y = Variable("y")

    def test_symbolic(self):
        x, y = self.x, self.y
        f = exp(x * y) + sin(x) * sqrt(y) - log(x + y)
        checker = DualNumberDerivativeTest(f, x, y, verbose=False)
        self.assertEqual(checker.test({x: 1.0, y: 2.0}), [])

    def test_compute(self):
        x, y = self.x, self.y
        checker = DualNumberDerivativeTest(x * x * y, x, y, verbose=False)
        d = checker.compute({x: 2.0, y: 3.0})
        self.assertEqual(d.value, 12.0)
        self.assertListAlmostEqual(d.gradient, [12.0, 4.0])
        self.assertArrayAlmostEqual(d.hessian, [[6.0, 4.0], [4.0, 0.0]])
        d = checker.compute_delta({x: 2.0, y: 3.0}, 1, 1.0)
        self.assertEqual(d.value, 16.0)
        with self.assertRaises(IndexError):
            checker.compute_delta({x: 2.0, y: 3.0}, 2, 1.0)

    def test_callable(self):
        x, y = self.x, self.y
        checker = DualNumberDerivativeTest(
            lambda t: dn.sin(t[x]) * t[y] / (1.0 + dn.sqr(t[y])), x, y,
            verbose=False
        )
        self.assertEqual(checker.test({x: 0.3, y: 0.8}), [])

    def test_zero_coordinate(self):
        x, y = self.x, self.y
        checker = DualNumberDerivativeTest(exp(x) * y, x, y, verbose=False)
        self.assertEqual(checker.test({x: 0.0, y: 1.0}), [])

    def test_detects_errors(self):
        x = self.x
        def wrong(t):
            value = t[x].value
            # The derivative of x^2 is 2x, not 3x.
            return DualNumber(value**2, [3.0 * value], [[2.0]])
        checker = DualNumberDerivativeTest(wrong, x, verbose=False)
        errors = checker.test({x: 1.5})
        self.assertEqual([e.kind for e in errors], ['gradient', 'hessian'])
        self.assertEqual(errors[0].indices, (0,))
        self.assertAlmostEqual(errors[0].exact, 4.5)
        self.assertAlmostEqual(errors[0].approx, 3.0, places=5)
        self.assertEqual(errors[1].indices, (0, 0))
        self.assertAlmostEqual(errors[1].approx, 3.0, places=4)

    def test_tolerance(self):
        x = self.x
        def wrong(t):
            value = t[x].value
            return DualNumber(value**2, [2.0 * value + 1e-3], [[2.0]])
        checker = DualNumberDerivativeTest(wrong, x, verbose=False)
        self.assertEqual(len(checker.test({x: 1.0})), 1)
        checker = DualNumberDerivativeTest(wrong, x, verbose=False,
                                           tolerance=1e-2)
        self.assertEqual(checker.test({x: 1.0}), [])

    def test_report(self):
        x, y = self.x, self.y
        checker = DualNumberDerivativeTest(x * y, x, y, show_all=True,
                                           show_names=True)
        out = io.StringIO()
        with redirect_stdout(out):
            checker.test({x: 1.0, y: 2.0})
        text = out.getvalue()
        self.assertIn("Gradient", text)
        self.assertIn("Hessian", text)
        self.assertIn("x", text)
        self.assertIn("found 0 error(s)", text)
        self.assertNotIn("\n*", text)


def run_tests():
    suite = unittest.TestLoader().loadTestsFromModule(sys.modules[__name__])
    return len(unittest.TextTestRunner(verbosity=2).run(suite).failures)


if __name__ == '__main__':
    unittest.main()
