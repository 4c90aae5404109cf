#!/usr/bin/env python3

import unittest
import sys
import os.path as op
import shutil
import tempfile

from testutils import DiffTestCase
from .config import Settings, load_config


_KEYS = ("point_cache_size", "use_mp", "mp_dps", "derivative_test_tolerance",
         "derivative_test_perturbation")


class TestConfig(DiffTestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.saved = dict((k, getattr(Settings, k)) for k in _KEYS)

    def tearDown(self):
        for key, value in self.saved.items():
            setattr(Settings, key, value)
        shutil.rmtree(self.tmpdir)

    def write(self, name, content):
        fname = op.join(self.tmpdir, name)
        with open(fname, "w") as f:
            f.write(content)
        return fname

    def test_missing_file(self):
        self.assertEqual(load_config(op.join(self.tmpdir, "none.cfg")), [])
        self.assertEqual(Settings.point_cache_size,
                         self.saved["point_cache_size"])

    def test_load(self):
        fname = self.write("funcdiff.cfg", "[funcdiff]\n"
                           "point_cache_size = 7\n"
                           "use_mp = yes\n"
                           "mp_dps = 40\n"
                           "derivative_test_tolerance = 1e-3\n")
        self.assertEqual(load_config(fname), [fname])
        self.assertEqual(Settings.point_cache_size, 7)
        self.assertIs(Settings.use_mp, True)
        self.assertEqual(Settings.mp_dps, 40)
        self.assertEqual(Settings.derivative_test_tolerance, 1e-3)

    def test_mine_overrides(self):
        fname = self.write("funcdiff.cfg", "[funcdiff]\nmp_dps = 40\n")
        self.write("funcdiff.mine.cfg", "[funcdiff]\nmp_dps = 60\n")
        self.assertEqual(len(load_config(fname)), 2)
        self.assertEqual(Settings.mp_dps, 60)

    def test_invalid(self):
        fname = self.write("a.cfg", "[funcdiff]\nunknown = 1\n")
        with self.assertRaises(ValueError):
            load_config(fname)
        fname = self.write("b.cfg", "[funcdiff]\npoint_cache_size = -1\n")
        with self.assertRaises(ValueError):
            load_config(fname)


def run_tests():
    suite = unittest.TestLoader().loadTestsFromModule(sys.modules[__name__])
    return len(unittest.TextTestRunner(verbosity=2).run(suite).failures)


if __name__ == '__main__':
    unittest.main()
