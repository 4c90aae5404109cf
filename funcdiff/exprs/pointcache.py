r"""@package funcdiff.exprs.pointcache

Bounded cache of values computed at points.

A PointCache stores the most recently used values keyed by point.Point. Once
its capacity is reached, adding a new point evicts the least recently used
one. A capacity of zero disables the cache altogether.

All methods are safe to be called from multiple threads.
"""

from collections import OrderedDict
import logging
import threading

from ..config import Settings


__all__ = [
    "PointCache",
]


logger = logging.getLogger(__name__)


class PointCache(object):
    r"""Least recently used cache mapping points to values."""

    def __init__(self, capacity=None):
        r"""Create an empty cache.

        @param capacity
            Maximum number of points to store. By default,
            `config.Settings.point_cache_size` is used.
        """
        if capacity is None:
            capacity = Settings.point_cache_size
        if capacity < 0:
            raise ValueError("Cache capacity must not be negative.")
        self._capacity = capacity
        self._values = OrderedDict()
        self._lock = threading.Lock()

    @property
    def capacity(self):
        r"""Maximum number of stored points."""
        return self._capacity

    def get(self, point, default=None):
        r"""Stored value for `point` or `default` if not present.

        A successful lookup marks the point as most recently used.
        """
        with self._lock:
            try:
                value = self._values[point]
            except KeyError:
                return default
            self._values.move_to_end(point)
            return value

    def add(self, point, value):
        r"""Store `value` for `point`, evicting the oldest entry if full."""
        if self._capacity == 0:
            return
        with self._lock:
            if point in self._values:
                self._values.move_to_end(point)
                self._values[point] = value
                return
            while len(self._values) >= self._capacity:
                evicted, _ = self._values.popitem(last=False)
                logger.debug("Evicting point from cache: %s", evicted)
            self._values[point] = value

    def get_or_compute(self, point, compute):
        r"""Return the stored value or compute, store and return it.

        The lock is not held while `compute(point)` runs, so two threads may
        occasionally compute the same value. Both results are equal and the
        later one is stored.
        """
        sentinel = _missing
        value = self.get(point, sentinel)
        if value is sentinel:
            value = compute(point)
            self.add(point, value)
        return value

    def clear(self):
        r"""Remove all stored values."""
        with self._lock:
            self._values.clear()

    def __contains__(self, point):
        with self._lock:
            return point in self._values

    def __len__(self):
        with self._lock:
            return len(self._values)

    def __getstate__(self):
        with self._lock:
            state = self.__dict__.copy()
            state['_values'] = OrderedDict(self._values)
        del state['_lock']
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        self._lock = threading.Lock()

    def __repr__(self):
        return "<PointCache(%d/%d)>" % (len(self), self._capacity)


_missing = object()
