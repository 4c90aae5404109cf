r"""@package testutils

Utilities to add more features to `unittest` classes.

This module provides a custom subclass of `unittest.TestCase`, namely
DiffTestCase, which obeys the global configuration settings in TestSettings.
The latter can be configured by the script invoking the test run.

This module also introduces a new decorator slowtest, which, when applied,
leads to the test being skipped on normal runs. The script starting the test
must set `TestSettings.skipslow` to `False` for the slow tests to be run.
"""

import sys
import functools
import unittest
import time

import numpy as np


__all__ = [
    "DiffTestCase",
    "TestSettings",
    "slowtest",
]


def slowtest(func):
    """Decorator for skipping a test if TestSettings.skipslow is true."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        if TestSettings.skipslow:
            raise unittest.SkipTest("skipping slow tests")
        return func(*args, **kwargs)
    return wrapper


def _outcome_counts(result):
    r"""Numbers of errors, failures and skips recorded so far in `result`.

    Result objects of other runners (e.g. pytest) do not necessarily keep
    these lists. All counts are zero for them.
    """
    if result is None:
        return (0, 0, 0)
    return tuple(len(getattr(result, name, ()))
                 for name in ("errors", "failures", "skipped"))


class DiffTestCase(unittest.TestCase):
    """Tweaked baseclass for unit tests.

    By deriving from this class, you:
        * Get timed individual tests (needs `verbosity=2`) if
          TestSettings.timing is true.
        * Can implement a hook (failureHook()) that is called after a test has
          failed (or errored). It is called before tearDown(), allowing you
          to, for example, collect generated files for inspection before they
          are deleted.
        * Get assertions for comparing lists and arrays of values.

    Runners whose result objects do not record errors and failures (such as
    pytest) still run all tests, but never call failureHook().
    """
    __result = None
    __countsBefore = (0, 0, 0)

    @classmethod
    def setUpClass(cls):
        if cls is not DiffTestCase:
            if cls.setUp is not DiffTestCase.setUp:
                setUp = cls.setUp
                @functools.wraps(setUp)
                def setUpWrapper(self, *args, **kwargs):
                    DiffTestCase.setUp(self)
                    return setUp(self, *args, **kwargs)
                cls.setUp = setUpWrapper
            if cls.tearDown is not DiffTestCase.tearDown:
                tearDown = cls.tearDown
                @functools.wraps(tearDown)
                def tearDownWrapper(self, *args, **kwargs):
                    DiffTestCase.tearDown(self)
                    return tearDown(self, *args, **kwargs)
                cls.tearDown = tearDownWrapper

    def __newOutcomes(self):
        r"""Errors, failures and skips added since this test started."""
        current = _outcome_counts(self.__result)
        return tuple(c - p for c, p in zip(current, self.__countsBefore))

    def __lastTestOK(self):
        r"""Return whether the current test had no error or failure so far."""
        errors, failures, _ = self.__newOutcomes()
        return not errors and not failures

    def __shouldPrintTiming(self):
        r"""Return whether timing information should be printed."""
        if not TestSettings.timing:
            return False
        errors, failures, skipped = self.__newOutcomes()
        if errors or failures or skipped:
            return False
        if self.__result is None:
            return True
        return (not getattr(self.__result, 'dots', True)
                and getattr(self.__result, 'showAll', False))

    def run(self, result=None):
        self.__result = result
        self.__countsBefore = _outcome_counts(result)
        return unittest.TestCase.run(self, result)

    def setUp(self):
        self.startTime = time.time()
        self.__tornDown = False

    def tearDown(self):
        if self.__tornDown: return
        self.__tornDown = True
        if not self.__lastTestOK():
            self.failureHook(self.__result)
        if self.__shouldPrintTiming():
            duration = time.time() - self.startTime
            print("(%.4f seconds) ... " % (duration), file=sys.stderr, end='')

    def failureHook(self, result):
        r"""Custom function called just after a fail/error occurred.

        Subclasses may implement this function to e.g. collect result data
        before tearDown() gets called.
        """
        pass

    def assertIsType(self, obj, cls):
        r"""Assert that an object is exactly of a certain type."""
        self.assertIs(type(obj), cls)

    def assertIsNan(self, value):
        r"""Assert that a number is `nan`."""
        if value == value:
            raise self.failureException("%r is not nan" % (value,))

    def assertListAlmostEqual(self, a, b, places=None, delta=None):
        r"""Assert that two iterables contain (almost) the same values."""
        if places is not None and delta is not None:
            raise TypeError("Cannot use delta and places at the same time")
        if places is None and delta is None:
            places = 7
        a, b = list(a), list(b)
        if len(a) != len(b):
            raise self.failureException(
                "Lists have different lengths (%d != %d)" % (len(a), len(b))
            )
        fails = []
        for i in range(len(a)):
            if a[i] == b[i]:
                continue
            if delta is not None:
                if abs(a[i]-b[i]) > delta:
                    fails.append(i)
            else:
                if round(abs(a[i]-b[i]), places) != 0:
                    fails.append(i)
        if fails:
            msg = "%d elements differ.\n" % len(fails)
            maxN = 9
            if len(fails) <= maxN:
                msg += "Differing elements:\n"
            else:
                msg += "First few differing elements:\n"
            msg += "\n".join([
                "  [{i}] {a} != {b}    (difference: {d})".format(
                    i=i, a=a[i], b=b[i], d=(b[i]-a[i])
                )
                for i in fails[:maxN]
            ])
            raise self.failureException(msg)

    def assertArrayAlmostEqual(self, a, b, places=None, delta=None):
        r"""Like assertListAlmostEqual(), but for arrays of any shape."""
        a, b = np.asarray(a, dtype=float), np.asarray(b, dtype=float)
        if a.shape != b.shape:
            raise self.failureException(
                "Arrays have different shapes (%s != %s)" % (a.shape, b.shape)
            )
        self.assertListAlmostEqual(a.ravel(), b.ravel(), places=places,
                                   delta=delta)


class TestSettings(object):
    """Global settings for tests."""
    ## Stop test run on first fail/error.
    failfast = False
    ## Whether output is buffered.\ Just information, cannot be used to toggle output buffering.
    buffering = False
    ## Whether the timing for each test case should be printed.
    timing = False
    ## Control whether tests marked as slowtest should be skipped.
    skipslow = True
