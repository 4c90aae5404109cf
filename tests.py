#!/usr/bin/env python3

import unittest
import os
import sys
import logging

import os.path as op
sys.path.insert(0, op.dirname(op.realpath(__file__)))

from testutils import TestSettings


def run_tests():
    failfast = '-f' in sys.argv or '--failfast' in sys.argv
    buffering = '-b' in sys.argv or '--buffer' in sys.argv
    timing = '-t' in sys.argv or '--timing' in sys.argv
    runSlow = '-s' in sys.argv or '--run-slow-tests' in sys.argv
    if '-v' in sys.argv or '--verbose' in sys.argv:
        logging.basicConfig(level=logging.DEBUG)
    TestSettings.failfast = failfast
    TestSettings.buffering = buffering
    TestSettings.timing = timing
    TestSettings.skipslow = not runSlow
    start_dir = op.join(op.dirname(op.realpath(__file__)), "funcdiff")
    suite = unittest.TestLoader().discover(
        start_dir, pattern="test_*.py",
        top_level_dir=op.dirname(op.realpath(__file__)),
    )
    result = unittest.TextTestRunner(
        verbosity=2, failfast=failfast, buffer=buffering
    ).run(suite)
    return len(result.failures) + len(result.errors)


if __name__ == '__main__':
    sys.exit(1 if run_tests() else 0)
