r"""@package funcdiff.exprs.function

Base class for nodes of symbolic expression graphs.

A Function is an immutable node of a directed acyclic graph. Leaves are
constants and variables (see elementary.Constant and elementary.Variable),
inner nodes are operations on their child nodes. Sub-expressions may be shared
between many parents, in which case evaluation via an evaluators.Evaluator
computes them only once.

Derivatives are themselves Function objects. They are computed on first
request and stored in the node, such that requesting the same derivative
again returns the *identical* object. As a consequence, mixed derivatives
like `f.derivative(x).derivative(y)` and `f.derivative(y).derivative(x)`
share most of their sub-graphs.

Functions are combined using the usual Python operators or the constructor
functions in elementary, e.g.

\code
    x, y = Variable("x"), Variable("y")
    f = exp(x * y) + 2 * sin(x)
    f.value({x: 1.0, y: 2.0})
    f.derivative(x, y).value({x: 1.0, y: 2.0})
\endcode

Comparing a function to a number with ``==``, ``<=`` or ``>=`` creates
FunctionEqualityConstraint or FunctionConstraint objects, which can be
passed to an optimizer. Comparing two functions with ``==`` tests for object
identity.
"""

from abc import ABCMeta, abstractmethod
import numbers
import os
import os.path as op
import threading

import numpy as np
from mpmath import mp
import sympy as sp

from ..pickle_helpers import prepare_dict, restore_dict
from .evaluators import (Evaluator, CompactEvaluator, PartialEvaluator,
                         _to_result)
from .point import as_point, check_variable, Point


__all__ = [
    "Function",
    "SubstitutedFunction",
    "FunctionConstraint",
    "FunctionEqualityConstraint",
    "save_to_file",
    "load_from_file",
]


# Held while a derivative is computed for the first time. Re-entrant since
# computing a derivative usually requires derivatives of the child nodes.
_derivative_lock = threading.RLock()


def save_to_file(filename, data, overwrite=False, verbose=True,
                 showname='data', mkpath=True):
    r"""Save an object to disk.

    This uses `numpy.save()` to store an object in a file. Use
    load_from_file() to restore the data afterwards.

    @param filename
        The file name to store the data in. An extension ``'.npy'`` will be
        added if not already there.
    @param overwrite
        Whether to overwrite an existing file with the same name. If `False`
        (default) and such a file exists, a `RuntimeError` is raised.
    @param verbose
        Whether to print when the file was written. Default is `True`.
    @param showname
        Name to print in the confirmation message in case `verbose==True`.
    @param mkpath
        Whether to create missing parent directories.

    @b Notes

    The data will be put into a 1-element list to avoid creating 0-dimensional
    numpy arrays.
    """
    filename = op.expanduser(filename)
    if not filename.endswith('.npy'):
        filename += '.npy'
    if mkpath:
        dirname = op.dirname(filename)
        if dirname:
            os.makedirs(op.normpath(dirname), exist_ok=True)
    if op.exists(filename) and not overwrite:
        raise RuntimeError("File already exists.")
    data_array = np.empty(1, dtype=object)
    data_array[0] = data
    np.save(filename, data_array)
    if verbose:
        print("%s saved to: %s" % (showname, filename))


def load_from_file(filename):
    r"""Load an object from disk.

    If the object had been stored using save_to_file(), the result should be a
    perfect copy of the object.

    This assumes the object is the only element of a list stored in the file,
    which will be the case if the file was created using save_to_file(). If
    the data is not a single-element list, it is returned as is.
    """
    filename = op.expanduser(filename)
    result = np.load(filename, allow_pickle=True)
    if result.shape == (1,):
        return result[0]
    # Not a single value. Return as is.
    return result


def is_number(value):
    r"""Whether `value` is a real number usable as constant."""
    return isinstance(value, (numbers.Real, mp.mpf))


def _parse_derivative_args(args):
    r"""Convert the arguments of Function.derivative() to a variable list."""
    if not args:
        raise TypeError("At least one variable is required.")
    if len(args) == 2 and isinstance(args[1], numbers.Integral):
        variable, order = args
        if order < 0:
            raise ValueError("Derivative order must not be negative.")
        variables = [variable] * order
    else:
        variables = list(args)
    for variable in variables:
        check_variable(variable)
    return variables


class Function(object, metaclass=ABCMeta):
    r"""Node of a symbolic expression graph.

    Sub classes need to implement:
        * _compute_value() computing the value from an evaluator
        * _compute_derivative() returning the (symbolic) first derivative
        * _expr_str() returning a string representation

    Nodes with child nodes should override _sub_functions() and
    _compute_partial_value(), and _to_sympy() where a symbolic counterpart
    exists.
    """

    # Make numpy scalars defer to our reflected operators.
    __array_ufunc__ = None

    def __init__(self):
        # Maps variables to first derivatives. Only non-zero ones are stored.
        self._derivatives = None

    @property
    def is_zero(self):
        r"""Whether this function is the constant zero."""
        return False

    @property
    def is_constant(self):
        r"""Whether this function is an elementary.Constant."""
        return False

    def value(self, *point, use_mp=None):
        r"""Compute the value of this function at a point.

        @param *point
            The point to evaluate at. Accepts everything point.as_point()
            does, e.g. a point.Point, a dictionary mapping variables to
            values or `(variable, value)` pairs.
        @param use_mp
            Whether to evaluate using `mpmath` instead of floating point
            arithmetic. Default is `config.Settings.use_mp`.

        @b Raises
            common.VariableNotAssignedError if the function depends on a
            variable not assigned in `point`.
        """
        evaluator = Evaluator(as_point(*point), use_mp=use_mp)
        with evaluator.context():
            return _to_result(evaluator, evaluator.evaluate(self))

    def compact_value(self, *point, use_mp=None):
        r"""Like value(), but without storing interim values.

        Use this for large graphs with few shared sub-expressions, where the
        memory used for storing the values would be wasted.
        """
        evaluator = CompactEvaluator(as_point(*point), use_mp=use_mp)
        with evaluator.context():
            return _to_result(evaluator, evaluator.evaluate(self))

    def __call__(self, *point, use_mp=None):
        return self.value(*point, use_mp=use_mp)

    @abstractmethod
    def _compute_value(self, evaluator):
        r"""Compute the value using the given evaluators.Evaluator.

        The values of child nodes must be obtained via
        ``evaluator.evaluate(child)`` and numerical functions taken from
        ``evaluator.ctx``.
        """
        pass

    def derivative(self, *args):
        r"""Return a (higher) derivative of this function.

        Call as ``f.derivative(x)`` for the first derivative w.r.t. `x`,
        ``f.derivative(x, n)`` for the `n`-th derivative w.r.t. `x`, or
        ``f.derivative(x, y, z)`` for the mixed derivative w.r.t. `x`, then
        `y` and finally `z`. An order of zero returns this function itself.

        Repeated requests return the identical object.

        @b Raises
            `ValueError` for negative orders and `TypeError` for arguments
            that are not variables.
        """
        result = self
        for variable in _parse_derivative_args(args):
            result = result._derivative(variable)
        return result

    def _derivative(self, variable):
        derivatives = self._derivatives
        if derivatives is not None:
            result = derivatives.get(variable)
            if result is not None:
                return result
        with _derivative_lock:
            if self._derivatives is None:
                self._derivatives = dict()
            result = self._derivatives.get(variable)
            if result is None:
                result = self._compute_derivative(variable)
                if not result.is_zero:
                    self._derivatives[variable] = result
            return result

    @abstractmethod
    def _compute_derivative(self, variable):
        r"""Return the first derivative w.r.t. `variable` as new Function."""
        pass

    def partial_value(self, *point):
        r"""Replace the variables assigned in `point` by constants.

        The result is a new function in the remaining variables. Nodes not
        depending on any of the assigned variables are reused as they are.
        """
        evaluator = PartialEvaluator(as_point(*point))
        return evaluator.evaluate(self)

    def substitute(self, substitutions):
        r"""Replace variables by other functions.

        @param substitutions
            Mapping (or iterable of pairs) from variables to functions or
            numbers.
        """
        evaluator = PartialEvaluator(substitutions)
        return evaluator.evaluate(self)

    def _compute_partial_value(self, evaluator):
        r"""Return the reduced version of this node.

        Nodes without a structural rule are wrapped into a
        SubstitutedFunction. Structural nodes override this to rebuild
        themselves from their reduced children.
        """
        if not evaluator.substitutions:
            return self
        return SubstitutedFunction(self, evaluator.substitutions)

    def _sub_functions(self):
        r"""List of `(name, function)` pairs of the child nodes."""
        return []

    def _rebuild(self, evaluator, factory, *children):
        r"""Helper for _compute_partial_value() of structural nodes.

        Returns this node itself if no child changed and otherwise the result
        of calling `factory` with the reduced children.
        """
        reduced = [evaluator.evaluate(c) for c in children]
        if all(r is c for r, c in zip(reduced, children)):
            return self
        return factory(*reduced)

    def traverse_tree(self, include_root=False, unique=False, parents=None):
        r"""Generator that walks through a complete expression graph.

        In each iteration, the returned values represent the current node's
        parents (as a list from root to immediate parent), its key under which
        it is stored in its parent, and the node itself.

        Args:
            include_root: Whether to include the root as first item. Default
                is `False`.
            unique: Whether to visit shared sub-expressions only once.
                Default is `False`, i.e. the graph is walked as a tree.
            parents: Optional list of parents of the root. Normally only used
                internally for the recursion.

        @b Examples
        \code
            for parents, name, f in root.traverse_tree():
                print("-"*len(parents), name)
        \endcode
        """
        visited = set([self]) if unique else None
        if parents is None:
            parents = []
        if include_root:
            yield parents, "", self
        yield from self._traverse(parents + [self], visited)

    def _traverse(self, parents, visited):
        for name, function in self._sub_functions():
            if visited is not None:
                if function in visited:
                    continue
                visited.add(function)
            yield parents, name, function
            yield from function._traverse(parents + [function], visited)

    def print_tree(self, root_name='root', unique=False):
        r"""Print the whole expression graph as a tree.

        Args:
            root_name: Key name to print for the root node.
            unique: Whether to print shared sub-expressions only once.
        """
        def _p(function, name, parents=()):
            print("%s%s <%s>" % (". " * len(parents), name, function._label()))
        _p(self, root_name)
        for parents, name, function in self.traverse_tree(unique=unique):
            _p(function, name, parents)

    def _label(self):
        r"""Short description of this node used in print_tree()."""
        return type(self).__name__

    def nodes(self):
        r"""Generate all distinct nodes of this graph, including this one."""
        visited = set([self])
        stack = [self]
        while stack:
            function = stack.pop()
            yield function
            for _, child in function._sub_functions():
                if child not in visited:
                    visited.add(child)
                    stack.append(child)

    def to_sympy(self, symbols=None):
        r"""Convert this function to a SymPy expression.

        @param symbols
            Optional mapping from variables to SymPy symbols. Variables not
            contained get new symbols named after the variable.
        """
        return SympyConverter(symbols).convert(self)

    def _to_sympy(self, converter):
        r"""Return the SymPy expression of this node.

        Children must be converted using ``converter.convert(child)``.
        """
        raise NotImplementedError(
            "Function %s cannot be converted to SymPy." % type(self).__name__
        )

    def save(self, filename, overwrite=False, verbose=True):
        r"""Save the function (including all computed derivatives) to disk.

        Args:
            filename: The file name to store the data in. An extension
                ``'.npy'`` will be added if not already there.
            overwrite: Whether to overwrite an existing file with the same
                name. If `False` (default) and such a file exists, a
                `RuntimeError` is raised.
            verbose: Whether to print when the file was written. Default is
                `True`.
        """
        save_to_file(
            filename, self, overwrite=overwrite, verbose=verbose,
            showname="function [%s]" % type(self).__name__
        )

    @classmethod
    def load(cls, filename):
        r"""Static function to load a function object from disk."""
        return load_from_file(filename)

    def __getstate__(self):
        r"""Return a picklable state object representing the whole graph.

        Some care is taken to ensure even `mpmath` constants successfully
        pickle/unpickle.
        """
        return prepare_dict(self.__dict__)

    def __setstate__(self, state):
        r"""Restore a complete node from the given unpickled state."""
        self.__dict__.update(restore_dict(state))

    @abstractmethod
    def _expr_str(self):
        r"""String representing the expression.

        Binary operations should wrap themselves in parentheses and use
        `str()` of their children.
        """
        pass

    def __str__(self):
        return self._expr_str()

    def __repr__(self):
        return "<%s(%s)>" % (type(self).__name__, self._expr_str())

    def __add__(self, other):
        if not _is_operand(other):
            return NotImplemented
        return _elementary.add(self, other)

    def __radd__(self, other):
        if not _is_operand(other):
            return NotImplemented
        return _elementary.add(other, self)

    def __sub__(self, other):
        if not _is_operand(other):
            return NotImplemented
        return _elementary.subtract(self, other)

    def __rsub__(self, other):
        if not _is_operand(other):
            return NotImplemented
        return _elementary.subtract(other, self)

    def __mul__(self, other):
        if not _is_operand(other):
            return NotImplemented
        return _elementary.multiply(self, other)

    def __rmul__(self, other):
        if not _is_operand(other):
            return NotImplemented
        return _elementary.multiply(other, self)

    def __truediv__(self, other):
        if not _is_operand(other):
            return NotImplemented
        return _elementary.divide(self, other)

    def __rtruediv__(self, other):
        if not _is_operand(other):
            return NotImplemented
        return _elementary.divide(other, self)

    def __pow__(self, other):
        if not _is_operand(other):
            return NotImplemented
        return _elementary.pow(self, other)

    def __rpow__(self, other):
        if not _is_operand(other):
            return NotImplemented
        return _elementary.pow(other, self)

    def __neg__(self):
        return _elementary.negate(self)

    def __pos__(self):
        return self

    def __abs__(self):
        return _elementary.abs_(self)

    def __eq__(self, other):
        r"""Create an equality constraint when compared to a number.

        Comparison with anything else falls back to object identity, which
        keeps functions usable as dictionary keys.
        """
        if is_number(other):
            return FunctionEqualityConstraint(self, other)
        return NotImplemented

    def __ne__(self, other):
        if is_number(other):
            raise TypeError("Functions cannot be constrained to be unequal "
                            "to a number.")
        return NotImplemented

    __hash__ = object.__hash__

    def __le__(self, other):
        if isinstance(other, Function):
            return FunctionConstraint(self - other, -np.inf, 0.0)
        if is_number(other):
            return FunctionConstraint(self, -np.inf, other)
        return NotImplemented

    def __ge__(self, other):
        if isinstance(other, Function):
            return FunctionConstraint(other - self, -np.inf, 0.0)
        if is_number(other):
            return FunctionConstraint(self, other, np.inf)
        return NotImplemented


def _is_operand(value):
    return isinstance(value, Function) or is_number(value)


class SympyConverter(object):
    r"""Converts expression graphs to SymPy, converting each node once."""
    def __init__(self, symbols=None):
        self._symbols = dict(symbols or ())
        self._results = dict()

    def symbol(self, variable):
        r"""SymPy symbol representing `variable`."""
        try:
            return self._symbols[variable]
        except KeyError:
            pass
        symbol = sp.Symbol(variable.name or "x_%d" % len(self._symbols))
        self._symbols[variable] = symbol
        return symbol

    def convert(self, function):
        try:
            return self._results[function]
        except KeyError:
            pass
        result = function._to_sympy(self)
        self._results[function] = result
        return result


class SubstitutedFunction(Function):
    r"""Function with some variables replaced by other functions.

    This wraps nodes that cannot rebuild themselves from reduced children,
    e.g. functions evaluated via dual numbers. The value is computed by
    evaluating the replacement functions first and then the wrapped function
    at the resulting point. Derivatives follow from the chain rule.
    """
    def __init__(self, function, substitutions):
        r"""Wrap `function` replacing variables as given in `substitutions`.

        @param function
            The wrapped Function.
        @param substitutions
            Dictionary mapping variables to their replacement functions.
        """
        super(SubstitutedFunction, self).__init__()
        self._function = function
        self._substitutions = dict(substitutions)

    @property
    def function(self):
        r"""The wrapped function."""
        return self._function

    @property
    def substitutions(self):
        r"""Copy of the mapping from variables to their replacements."""
        return dict(self._substitutions)

    def _sub_functions(self):
        subs = [("function", self._function)]
        for variable, replacement in self._substitutions.items():
            subs.append(("%s" % variable, replacement))
        return subs

    def _compute_value(self, evaluator):
        values = evaluator.point.to_dict()
        for variable, replacement in self._substitutions.items():
            values[variable] = evaluator.evaluate(replacement)
        inner = type(evaluator)(Point(values), use_mp=evaluator.use_mp)
        return inner.evaluate(self._function)

    def _compute_derivative(self, variable):
        substitutions = self._substitutions
        # Shared by all terms so that common sub-expressions of the
        # derivatives are reduced only once.
        reducer = PartialEvaluator(substitutions)
        terms = []
        for replaced, replacement in substitutions.items():
            inner = replacement.derivative(variable)
            if inner.is_zero:
                continue
            outer = reducer.evaluate(self._function.derivative(replaced))
            terms.append(outer * inner)
        if variable not in substitutions:
            terms.append(
                reducer.evaluate(self._function.derivative(variable))
            )
        return _elementary.sum_(terms)

    def _expr_str(self):
        return "%s with %s" % (self._function, ", ".join(
            "%s = %s" % (v, f) for v, f in self._substitutions.items()
        ))


class FunctionConstraint(object):
    r"""Constraint ``min_value <= function <= max_value``."""
    def __init__(self, function, min_value, max_value):
        if not isinstance(function, Function):
            raise TypeError("Constraints require a Function.")
        self._function = function
        self._min_value = min_value
        self._max_value = max_value

    @property
    def function(self):
        return self._function

    @property
    def min_value(self):
        return self._min_value

    @property
    def max_value(self):
        return self._max_value

    def is_satisfied(self, *point):
        r"""Whether the function's value at `point` lies within the bounds."""
        value = self._function.value(*point)
        return self._min_value <= value <= self._max_value

    def __repr__(self):
        return "<FunctionConstraint(%r <= %s <= %r)>" % (
            self._min_value, self._function, self._max_value
        )


class FunctionEqualityConstraint(object):
    r"""Constraint ``function == value``."""
    def __init__(self, function, value):
        if not isinstance(function, Function):
            raise TypeError("Constraints require a Function.")
        self._function = function
        self._value = value

    @property
    def function(self):
        return self._function

    @property
    def value(self):
        return self._value

    def is_satisfied(self, *point, tol=0.0):
        r"""Whether the function's value at `point` equals the target value.

        @param tol
            Absolute tolerance. Default is `0.0`, i.e. exact equality.
        """
        return abs(self._function.value(*point) - self._value) <= tol

    def __bool__(self):
        raise TypeError("The truth value of a constraint is ambiguous. Use "
                        "`is` to test functions for identity.")

    def __repr__(self):
        return "<FunctionEqualityConstraint(%s == %r)>" % (
            self._function, self._value
        )


# Imported last since the operation nodes derive from Function.
from . import elementary as _elementary  # noqa: E402
