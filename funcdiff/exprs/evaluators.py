r"""@package funcdiff.exprs.evaluators

Evaluators compute values (or reduced expressions) of function.Function
graphs at a given point.

An evaluator lives for exactly one evaluation call. The default Evaluator
remembers the value of each node it has computed, so that a sub-expression
shared by many parents in the expression graph is computed only once. The
CompactEvaluator does not store anything, which saves memory for graphs with
little sharing at the cost of recomputation.

The PartialEvaluator maps each node to a *reduced* node in which some
variables have been replaced by constants (or other expressions). It
memoizes these too, such that every distinct sub-expression is reduced to a
single new node, even if referenced from many places in the original graph.

Values are computed either with numpy floating point scalars or with
`mpmath` arbitrary precision numbers. In floating point mode the usual IEEE
semantics apply, i.e. invalid operations result in `nan` or `inf` instead of
exceptions.
"""

from abc import ABCMeta, abstractmethod
from contextlib import contextmanager

import numpy as np
from mpmath import mp

from ..config import Settings
from .point import Point, as_point, check_variable


__all__ = [
    "Evaluator",
    "CompactEvaluator",
    "PartialEvaluator",
    "evaluate",
    "evaluate_compact",
    "partial_evaluate",
]


class _EvaluatorBase(object, metaclass=ABCMeta):
    r"""Base class for all numeric evaluator classes.

    Sub classes only need to implement evaluate(). The nodes of the
    expression graph use the attributes #ctx, #converter and #nan to compute
    their values independently of the evaluation mode.
    """
    def __init__(self, point, use_mp=None):
        r"""Base class init for evaluators.

        @param point
            The point.Point (or anything point.as_point() accepts) to
            evaluate at.
        @param use_mp
            Whether to compute using `mpmath` (if `True`) or floating point
            operations. By default, `Settings.use_mp` is used.
        """
        if use_mp is None:
            use_mp = Settings.use_mp
        self._point = as_point(point)
        ## Boolean indicating if computation should use `mpmath`.
        self.use_mp = use_mp
        ## Either `mpmath.mp` or `numpy`, depending on `use_mp`.
        self.ctx = mp if use_mp else np
        ## Converts scalars to `mp.mpf` or `numpy.float64`.
        self.converter = mp.mpf if use_mp else np.float64
        ## Value used for undefined results (e.g. a step function at zero).
        self.nan = mp.nan if use_mp else np.nan

    @property
    def point(self):
        r"""The point.Point this evaluator computes values at."""
        return self._point

    def variable_value(self, variable):
        r"""Value of `variable` converted to the current evaluation mode."""
        return self.converter(self._point[variable])

    @contextmanager
    def context(self):
        r"""Context manager to wrap a complete evaluation in.

        Configures the `mpmath` precision or silences numpy floating point
        warnings, respectively.
        """
        if self.use_mp:
            with mp.workdps(Settings.mp_dps):
                yield self
        else:
            with np.errstate(all='ignore'):
                yield self

    def __call__(self, function):
        return self.evaluate(function)

    @abstractmethod
    def evaluate(self, function):
        r"""Compute the value of `function` at the point of this evaluator."""
        pass


class Evaluator(_EvaluatorBase):
    r"""Evaluator caching the value of every node it computes."""
    def __init__(self, point, use_mp=None):
        super(Evaluator, self).__init__(point, use_mp=use_mp)
        self._values = dict()

    def evaluate(self, function):
        try:
            return self._values[function]
        except KeyError:
            pass
        value = function._compute_value(self)
        self._values[function] = value
        return value


class CompactEvaluator(_EvaluatorBase):
    r"""Evaluator that does not store any values."""
    def evaluate(self, function):
        return function._compute_value(self)


class PartialEvaluator(object):
    r"""Reduce expression graphs by substituting some of their variables.

    Each variable may be replaced by a number or by another
    function.Function. The reduced node of each distinct node of the graph is
    created once and reused afterwards.
    """
    def __init__(self, substitutions):
        r"""Create a partial evaluator.

        @param substitutions
            A point.Point or a mapping ``{variable: replacement}``, where each
            replacement may be a number or a function.Function.
        """
        from .elementary import as_function
        if isinstance(substitutions, Point):
            substitutions = substitutions.to_dict()
        self._substitutions = dict()
        for variable, replacement in dict(substitutions).items():
            check_variable(variable)
            self._substitutions[variable] = as_function(replacement)
        self._values = dict()

    @property
    def substitutions(self):
        r"""Copy of the mapping from variables to their replacement functions."""
        return dict(self._substitutions)

    def substitution(self, variable):
        r"""Replacement function of `variable` or `None` if not replaced."""
        return self._substitutions.get(variable)

    def __call__(self, function):
        return self.evaluate(function)

    def evaluate(self, function):
        r"""Return the reduced version of `function`."""
        try:
            return self._values[function]
        except KeyError:
            pass
        value = function._compute_partial_value(self)
        self._values[function] = value
        return value


def _evaluate_all(evaluator, functions):
    with evaluator.context():
        return [_to_result(evaluator, evaluator.evaluate(f)) for f in functions]


def _to_result(evaluator, value):
    r"""Convert numpy scalars to plain floats."""
    if evaluator.use_mp:
        return value
    return float(value)


def evaluate(point, *functions, use_mp=None):
    r"""Evaluate all `functions` at `point` sharing one Evaluator.

    @return List of the values in the order of `functions`.
    """
    return _evaluate_all(Evaluator(point, use_mp=use_mp), functions)


def evaluate_compact(point, *functions, use_mp=None):
    r"""Like evaluate(), but without storing interim values."""
    return _evaluate_all(CompactEvaluator(point, use_mp=use_mp), functions)


def partial_evaluate(point, function):
    r"""Substitute the variables assigned in `point` in `function`."""
    return PartialEvaluator(point).evaluate(function)
