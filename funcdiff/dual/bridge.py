r"""@package funcdiff.dual.bridge

Functions computed by dual numbers.

Some functions are easier (or much faster) to compute as a whole by
evaluating a formula on dual numbers than by building an expression graph of
them, e.g. functions involving loops or numerical algorithms. A
DualNumberFunction is an ordinary function.Function node whose value and
first two derivatives are computed this way. It can be combined with all
other functions.

The dual number computed at a point is cached, since the value, the gradient
components and the Hessian components are usually requested one after
another at the same point. Third or higher derivatives are not available.

@b Examples

\code
    x, y = Variable("x"), Variable("y")
    f = DualNumberFunction.create(
        lambda t: dualnumber.exp(t[x] * t[y]), x, y
    )
    g = f + sqr(x)
    g.derivative(x, y).value({x: 1.0, y: 2.0})
\endcode
"""

from abc import abstractmethod
import logging

from ..exprs.common import (VariableNotAssignedError,
                            UnsupportedDerivativeOrderError)
from ..exprs.elementary import ZERO
from ..exprs.function import Function
from ..exprs.point import Point, VariableCollection, as_point
from ..exprs.pointcache import PointCache
from .dualnumber import DualNumber, is_scalar


__all__ = [
    "DualNumberTransform",
    "DualNumberFunction",
]


logger = logging.getLogger(__name__)


class DualNumberTransform(object):
    r"""Maps each variable of a DualNumberFunction to its dual number.

    The dual number of the `i`-th variable has the value of the variable at
    the current point and the `i`-th unit vector as gradient.
    """
    def __init__(self, duals, variables):
        self._duals = dict(duals)
        self._variables = variables

    @property
    def variables(self):
        r"""The point.VariableCollection of the function."""
        return self._variables

    def __getitem__(self, variable):
        r"""Dual number of `variable`.

        @b Raises
            common.VariableNotAssignedError if the function does not depend
            on `variable`.
        """
        try:
            return self._duals[variable]
        except KeyError:
            raise VariableNotAssignedError(variable) from None

    def __contains__(self, variable):
        return variable in self._duals

    def __len__(self):
        return len(self._duals)


class DualNumberFunction(Function):
    r"""Function computed by evaluating a formula on dual numbers.

    Sub classes implement compute_dual_value(). Alternatively, wrap a plain
    callable using create().
    """
    def __init__(self, variables):
        r"""Init function.

        @param variables
            The variables the function depends on. The `i`-th variable
            corresponds to the `i`-th gradient component. Repeated variables
            are used once.
        """
        super(DualNumberFunction, self).__init__()
        self._variables = VariableCollection(variables)
        self._values = PointCache()

    @classmethod
    def create(cls, function, *variables):
        r"""Create a DualNumberFunction from a callable.

        @param function
            Callable taking a DualNumberTransform and returning a
            dualnumber.DualNumber (or a plain number for constants).
        @param *variables
            The variables the function depends on.
        """
        return _CallableDualNumberFunction(function, variables)

    @property
    def variables(self):
        r"""The point.VariableCollection of this function."""
        return self._variables

    @abstractmethod
    def compute_dual_value(self, transform):
        r"""Compute the dual number using the given DualNumberTransform."""
        pass

    def dual_value(self, *point):
        r"""Dual number of this function at `point`.

        The result is cached for the assignments of this function's variables,
        i.e. values of other variables in `point` do not matter.
        """
        point = as_point(*point)
        key = Point([(v, point[v]) for v in self._variables])
        return self._values.get_or_compute(key, self._compute_dual_value)

    def _compute_dual_value(self, point):
        n = len(self._variables)
        logger.debug("Computing dual number of %s at: %s", self, point)
        transform = DualNumberTransform(
            [(v, DualNumber.basis(float(point[v]), n, i))
             for i, v in enumerate(self._variables)],
            self._variables,
        )
        result = self.compute_dual_value(transform)
        if is_scalar(result):
            result = DualNumber.constant(result)
        if not isinstance(result, DualNumber):
            raise TypeError("Expected a dual number, got: %r" % (result,))
        if result.n not in (0, n):
            raise ValueError("Dual number has %d derivatives, expected %d."
                             % (result.n, n))
        return result

    def clear_cache(self):
        r"""Remove all cached dual numbers."""
        self._values.clear()

    def _sub_functions(self):
        return [("x%d" % i, v) for i, v in enumerate(self._variables)]

    def _compute_value(self, evaluator):
        return evaluator.converter(self.dual_value(evaluator.point).value)

    def _compute_derivative(self, variable):
        if variable not in self._variables:
            return ZERO
        return DualGradientComponent(self, self._variables.index_of(variable))

    def second_derivative(self, index, variable):
        r"""Derivative of the `index`-th gradient component w.r.t. `variable`."""
        if variable not in self._variables:
            return ZERO
        return DualHessianComponent(self, index,
                                    self._variables.index_of(variable))

    def _args_str(self):
        return ", ".join(str(v) for v in self._variables)

    def _expr_str(self):
        return "%s(%s)" % (type(self).__name__, self._args_str())


class _CallableDualNumberFunction(DualNumberFunction):
    def __init__(self, function, variables):
        super(_CallableDualNumberFunction, self).__init__(variables)
        self._function = function

    def compute_dual_value(self, transform):
        return self._function(transform)

    def _expr_str(self):
        name = getattr(self._function, '__name__', 'dual')
        return "%s(%s)" % (name, self._args_str())


class DualGradientComponent(Function):
    r"""First derivative of a DualNumberFunction w.r.t. one variable."""
    def __init__(self, parent, index):
        super(DualGradientComponent, self).__init__()
        self._parent = parent
        self._index = index

    def _sub_functions(self):
        return [("parent", self._parent)]

    def _compute_value(self, evaluator):
        dual = self._parent.dual_value(evaluator.point)
        return evaluator.converter(dual.gradient_entry(self._index))

    def _compute_derivative(self, variable):
        return self._parent.second_derivative(self._index, variable)

    def _expr_str(self):
        return "d%s/d%s" % (self._parent, self._parent.variables[self._index])


class DualHessianComponent(Function):
    r"""Second derivative of a DualNumberFunction."""
    def __init__(self, parent, index1, index2):
        super(DualHessianComponent, self).__init__()
        self._parent = parent
        self._index1 = index1
        self._index2 = index2

    def _sub_functions(self):
        return [("parent", self._parent)]

    def _compute_value(self, evaluator):
        dual = self._parent.dual_value(evaluator.point)
        return evaluator.converter(
            dual.hessian_entry(self._index1, self._index2)
        )

    def _compute_derivative(self, variable):
        raise UnsupportedDerivativeOrderError(
            "Can't compute third order derivatives of functions computed "
            "using dual numbers."
        )

    def _expr_str(self):
        variables = self._parent.variables
        return "d^2%s/d%sd%s" % (self._parent, variables[self._index1],
                                 variables[self._index2])
