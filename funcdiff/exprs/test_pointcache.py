#!/usr/bin/env python3

import unittest
import sys
import pickle
import threading

from testutils import DiffTestCase
from ..config import Settings
from .elementary import Variable
from .point import Point
from .pointcache import PointCache


class TestPointCache(DiffTestCase):
    def setUp(self):
        self.x = Variable("x")

    def point(self, value):
        return Point({self.x: value})

    def test_lookup(self):
        cache = PointCache(3)
        cache.add(self.point(1.0), "a")
        self.assertEqual(cache.get(self.point(1.0)), "a")
        self.assertIsNone(cache.get(self.point(2.0)))
        self.assertEqual(cache.get(self.point(2.0), "b"), "b")
        self.assertTrue(self.point(1.0) in cache)

    def test_eviction(self):
        cache = PointCache(2)
        cache.add(self.point(1.0), 1)
        cache.add(self.point(2.0), 2)
        # Mark the first point as most recently used.
        cache.get(self.point(1.0))
        cache.add(self.point(3.0), 3)
        self.assertEqual(len(cache), 2)
        self.assertTrue(self.point(1.0) in cache)
        self.assertFalse(self.point(2.0) in cache)
        self.assertTrue(self.point(3.0) in cache)

    def test_disabled(self):
        cache = PointCache(0)
        cache.add(self.point(1.0), 1)
        self.assertEqual(len(cache), 0)
        calls = []
        def compute(p):
            calls.append(p)
            return 5
        self.assertEqual(cache.get_or_compute(self.point(1.0), compute), 5)
        self.assertEqual(cache.get_or_compute(self.point(1.0), compute), 5)
        self.assertEqual(len(calls), 2)

    def test_invalid_capacity(self):
        with self.assertRaises(ValueError):
            PointCache(-1)

    def test_default_capacity(self):
        self.assertEqual(PointCache().capacity, Settings.point_cache_size)

    def test_get_or_compute(self):
        cache = PointCache(5)
        calls = []
        def compute(p):
            calls.append(p)
            return p[self.x] * 2
        self.assertEqual(cache.get_or_compute(self.point(2.0), compute), 4.0)
        self.assertEqual(cache.get_or_compute(self.point(2.0), compute), 4.0)
        self.assertEqual(len(calls), 1)

    def test_clear(self):
        cache = PointCache(5)
        cache.add(self.point(1.0), 1)
        cache.clear()
        self.assertEqual(len(cache), 0)

    def test_pickle(self):
        cache = PointCache(5)
        cache.add(1, "a")
        copy = pickle.loads(pickle.dumps(cache))
        self.assertEqual(copy.get(1), "a")
        copy.add(2, "b")
        self.assertEqual(len(copy), 2)

    def test_threads(self):
        cache = PointCache(10)
        def worker(offset):
            for i in range(200):
                cache.get_or_compute(i % 20 + offset, lambda p: p)
        threads = [threading.Thread(target=worker, args=(k,))
                   for k in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(len(cache), 10)


def run_tests():
    suite = unittest.TestLoader().loadTestsFromModule(sys.modules[__name__])
    return len(unittest.TextTestRunner(verbosity=2).run(suite).failures)


if __name__ == '__main__':
    unittest.main()
