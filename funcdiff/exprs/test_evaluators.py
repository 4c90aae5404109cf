#!/usr/bin/env python3

import unittest
import sys

import numpy as np
from mpmath import mp

from testutils import DiffTestCase
from ..config import Settings
from .elementary import Variable, exp, sqr, sin
from .evaluators import (Evaluator, CompactEvaluator, PartialEvaluator,
                         evaluate, evaluate_compact, partial_evaluate)
from .function import Function
from .point import Point


class _Counting(Function):
    r"""Wraps a function and counts how often its value is computed."""
    def __init__(self, f):
        super(_Counting, self).__init__()
        self.f = f
        self.calls = 0

    def _sub_functions(self):
        return [("f", self.f)]

    def _compute_value(self, evaluator):
        self.calls += 1
        return evaluator.evaluate(self.f)

    def _compute_derivative(self, variable):
        return self.f.derivative(variable)

    def _expr_str(self):
        return "counting(%s)" % (self.f,)


class TestEvaluators(DiffTestCase):
    def setUp(self):
        self.x = Variable("x")
        self.y = Variable("y")

    def test_shared_nodes_computed_once(self):
        x = self.x
        shared = _Counting(sqr(x))
        f = shared * shared + sin(shared)
        self.assertAlmostEqual(f.value({x: 2.0}), 16.0 + np.sin(4.0))
        self.assertEqual(shared.calls, 1)

    def test_compact_recomputes(self):
        x = self.x
        shared = _Counting(sqr(x))
        f = shared * shared + sin(shared)
        self.assertAlmostEqual(f.compact_value({x: 2.0}),
                               16.0 + np.sin(4.0))
        self.assertEqual(shared.calls, 3)

    def test_evaluate_many(self):
        x, y = self.x, self.y
        shared = _Counting(x * y)
        f, g = exp(shared), shared + 1
        values = evaluate(Point({x: 1.0, y: 2.0}), f, g)
        self.assertAlmostEqual(values[0], np.exp(2.0))
        self.assertAlmostEqual(values[1], 3.0)
        self.assertEqual(shared.calls, 1)
        values = evaluate_compact({x: 1.0, y: 2.0}, f, g)
        self.assertEqual(shared.calls, 3)

    def test_modes(self):
        ev = Evaluator({self.x: 1.0}, use_mp=False)
        self.assertIs(ev.ctx, np)
        self.assertFalse(ev.use_mp)
        self.assertIsInstance(ev.variable_value(self.x), np.float64)
        ev = CompactEvaluator({self.x: 1.0}, use_mp=True)
        self.assertIs(ev.ctx, mp)
        self.assertIsInstance(ev.variable_value(self.x), mp.mpf)

    def test_default_mode(self):
        x = self.x
        previous = Settings.use_mp
        try:
            Settings.use_mp = True
            self.assertIsInstance(exp(x).value({x: 1.0}), mp.mpf)
        finally:
            Settings.use_mp = previous
        self.assertIsInstance(exp(x).value({x: 1.0}), float)

    def test_mp_precision(self):
        x = self.x
        with mp.workdps(50):
            third = mp.mpf(1) / 3
        previous = Settings.mp_dps
        try:
            Settings.mp_dps = 50
            value = (x * 3).value({x: third}, use_mp=True)
        finally:
            Settings.mp_dps = previous
        with mp.workdps(50):
            self.assertTrue(mp.almosteq(value, 1, rel_eps=mp.mpf(10)**-45))

    def test_partial_evaluator(self):
        x, y = self.x, self.y
        ev = PartialEvaluator({x: 2.0})
        self.assertTrue(ev.substitution(x).is_constant)
        self.assertIsNone(ev.substitution(y))
        subs = ev.substitutions
        subs.clear()
        self.assertEqual(len(ev.substitutions), 1)
        f = sqr(x) * y
        self.assertIs(ev.evaluate(f), ev(f))
        g = partial_evaluate(Point({x: 2.0}), f)
        self.assertAlmostEqual(g.value({y: 0.5}), 2.0)


def run_tests():
    suite = unittest.TestLoader().loadTestsFromModule(sys.modules[__name__])
    return len(unittest.TextTestRunner(verbosity=2).run(suite).failures)


if __name__ == '__main__':
    unittest.main()
