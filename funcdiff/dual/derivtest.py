r"""@package funcdiff.dual.derivtest

Finite difference checks of first and second derivatives.

The DualNumberDerivativeTest compares the exact gradient and Hessian of a
function with approximations by a fourth order central finite difference
stencil. This is useful to find errors in hand written derivatives (e.g. in
a bridge.DualNumberFunction sub class) and in custom function nodes.

@b Examples

\code
    x, y = Variable("x"), Variable("y")
    test = DualNumberDerivativeTest(exp(x * y), x, y)
    errors = test.test({x: 1.0, y: 2.0})
    assert not errors
\endcode
"""

from collections import namedtuple

import numpy as np

from ..config import Settings
from ..exprs.function import Function
from ..exprs.point import VariableCollection, as_point
from .bridge import DualNumberFunction
from .dualnumber import DualNumber


__all__ = [
    "DerivativeMismatch",
    "DualNumberDerivativeTest",
]


## Offsets of the finite difference stencil in units of the perturbation.
STENCIL_OFFSETS = (-2, -1, 1, 2)

## Weights of the fourth order central difference for the first derivative.
STENCIL_WEIGHTS = (1.0/12.0, -2.0/3.0, 2.0/3.0, -1.0/12.0)


## Result of a failed comparison.
##
## `kind` is either ``'gradient'`` or ``'hessian'`` and `indices` a tuple of
## one or two variable indices, respectively.
DerivativeMismatch = namedtuple(
    "DerivativeMismatch", "kind indices exact approx relative_error"
)


class DualNumberDerivativeTest(object):
    r"""Compare exact derivatives with finite differences."""

    def __init__(self, function, *variables, tolerance=None,
                 perturbation=None, show_all=False, show_names=False,
                 verbose=True):
        r"""Create a derivative test.

        @param function
            A function.Function or a callable taking a
            bridge.DualNumberTransform and returning a dual number. The
            latter is wrapped using bridge.DualNumberFunction.create().
        @param *variables
            The variables to differentiate w.r.t.
        @param tolerance
            Relative errors at or above this value are reported. Default is
            `config.Settings.derivative_test_tolerance`.
        @param perturbation
            Relative size of the finite difference step. Default is
            `config.Settings.derivative_test_perturbation`.
        @param show_all
            Whether to print all comparisons instead of only the failed ones.
        @param show_names
            Whether to print variable names instead of indices.
        @param verbose
            Whether to print a report at all.
        """
        if not isinstance(function, Function):
            function = DualNumberFunction.create(function, *variables)
        self.function = function
        self.variables = VariableCollection(variables)
        if tolerance is None:
            tolerance = Settings.derivative_test_tolerance
        if perturbation is None:
            perturbation = Settings.derivative_test_perturbation
        self.tolerance = tolerance
        self.perturbation = perturbation
        self.show_all = show_all
        self.show_names = show_names
        self.verbose = verbose

    def compute(self, *point):
        r"""Exact value, gradient and Hessian as dualnumber.DualNumber."""
        point = as_point(*point)
        n = len(self.variables)
        f = self.function
        grad = np.zeros(n)
        hess = []
        for i, vi in enumerate(self.variables):
            df = f.derivative(vi)
            grad[i] = df.value(point, use_mp=False)
            for vj in self.variables[i:]:
                hess.append(df.derivative(vj).value(point, use_mp=False))
        return DualNumber.from_arrays(f.value(point, use_mp=False), grad,
                                      hess)

    def compute_delta(self, point, index, delta):
        r"""Like compute(), but with the `index`-th variable shifted by `delta`."""
        if not 0 <= index < len(self.variables):
            raise IndexError("Variable index %s out of range." % index)
        point = as_point(point)
        variable = self.variables[index]
        return self.compute(point.replace([(variable, point[variable] + delta)]))

    def _step(self, value):
        if value != 0.0:
            return self.perturbation * abs(value)
        # Unknown scale, so use an absolute step.
        return self.perturbation

    def _approximate(self, point, index, delta, extract):
        approx = 0.0
        for offset, weight in zip(STENCIL_OFFSETS, STENCIL_WEIGHTS):
            approx += weight * extract(
                self.compute_delta(point, index, offset * delta)
            )
        return approx / delta

    def _compare(self, kind, indices, exact, approx, mismatches):
        error = abs(approx - exact) / max(1.0, abs(approx))
        failed = not error < self.tolerance
        if failed:
            mismatches.append(
                DerivativeMismatch(kind, indices, exact, approx, error)
            )
        if self.verbose and (failed or self.show_all):
            print("%s %-8s [%s] = %21.14e ~ %21.14e [%10.3e]" % (
                "*" if failed else " ", kind.capitalize(),
                ",".join(self._format_index(i) for i in indices),
                exact, approx, error
            ))

    def _format_index(self, index):
        if self.show_names:
            name = self.variables[index].name
            if name is not None:
                return "%-12s" % name
            return "%12d" % index
        return "%4d" % index

    def test(self, *point):
        r"""Run the derivative checks at `point`.

        The full Hessian is tested, i.e. including both `(i, j)` and `(j, i)`,
        since the finite differences of the two may differ.

        @return List of DerivativeMismatch objects of the failed comparisons.
            An empty list indicates success.
        """
        point = as_point(*point)
        if self.verbose:
            print("Evaluating unperturbed function")
        y = self.compute(point)
        n = len(self.variables)
        deltas = [self._step(point[v]) for v in self.variables]
        mismatches = []
        if self.verbose:
            print("Starting derivative checker for first derivatives")
        for i in range(n):
            approx = self._approximate(point, i, deltas[i],
                                       lambda d: d.value)
            self._compare('gradient', (i,), y.gradient_entry(i), approx,
                          mismatches)
        if self.verbose:
            print("Starting derivative checker for second derivatives")
        for i in range(n):
            for j in range(n):
                approx = self._approximate(point, i, deltas[i],
                                           lambda d: d.gradient_entry(j))
                self._compare('hessian', (i, j), y.hessian_entry(i, j),
                              approx, mismatches)
        if self.verbose:
            print("Derivative checker found %d error(s)." % len(mismatches))
        return mismatches
