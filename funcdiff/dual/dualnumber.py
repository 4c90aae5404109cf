r"""@package funcdiff.dual.dualnumber

Forward mode automatic differentiation up to second order.

A DualNumber carries the value, gradient and Hessian of some function at a
fixed point w.r.t. `n` variables. Applying an operation to dual numbers
propagates all of these using the chain rule, so that evaluating a formula
on dual numbers representing the variables (see DualNumber.basis()) yields
the exact first and second derivatives of the formula.

Any operation `h(x) = g(f(x))` with a scalar function `g` of one argument
is done by DualNumber.unary(), which only needs the value and the first two
derivatives of `g` at `f(x)`. Similarly, operations of two arguments are
done by DualNumber.binary(). All elementary operations defined here are
single calls of one of these.

The Hessian is stored as packed upper triangle (see indexing.hessian_index())
and only expanded to a full matrix when requested. All arrays are read-only.

Computation follows IEEE floating point semantics, e.g. `log()` of a
negative number results in `nan` instead of raising an exception.

@b Examples

\code
    x = DualNumber.basis(1.0, 2, 0)
    y = DualNumber.basis(2.0, 2, 1)
    f = exp(x * y)
    f.value, f.gradient, f.hessian
\endcode
"""

import functools
import numbers

import numpy as np

from .indexing import (hessian_size, hessian_pairs, hessian_index_matrix,
                       hessian_index)


__all__ = [
    "DualNumber",
    "exp",
    "log",
    "sqr",
    "sqrt",
    "pow",
    "sin",
    "cos",
    "min_",
    "max_",
]


def _readonly(array):
    array.flags.writeable = False
    return array


def _ieee(func):
    r"""Decorator silencing numpy floating point warnings in `func`."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        with np.errstate(all='ignore'):
            return func(*args, **kwargs)
    return wrapper


def is_scalar(value):
    r"""Whether `value` is a plain real number."""
    return isinstance(value, numbers.Real)


def scalar_value(value):
    r"""Return the function value `value` as `np.float64`.

    @b Raises
        `TypeError` if `value` is not a real number, e.g. `None`.
    """
    if not is_scalar(value):
        raise TypeError("Dual number values must be real numbers, got: %r"
                        % (value,))
    return np.float64(value)


def check_symmetric(matrix):
    r"""Raise a `ValueError` if the square `matrix` is not symmetric.

    Entries are compared exactly. Pairs of `nan` values count as equal, as do
    pairs of infinities of the same sign.
    """
    nans = np.isnan(matrix)
    if not np.all((matrix == matrix.T) | (nans & nans.T)):
        raise ValueError("The Hessian must be symmetric.")


def gradient_and_hessian(gradient, hessian):
    r"""Validate a gradient and full Hessian and pack the latter.

    @return Tuple `(gradient, packed_hessian)` of new read-only arrays, where
        each may be `None`.
    """
    grad = hess = None
    if gradient is not None:
        grad = np.array(gradient, dtype=float)
        if grad.ndim != 1:
            raise ValueError("The gradient must be one dimensional.")
    if hessian is not None:
        if grad is None:
            raise ValueError("The gradient must be specified if the Hessian "
                             "is specified.")
        n = len(grad)
        full = np.array(hessian, dtype=float)
        if full.shape != (n, n):
            raise ValueError("Inconsistent number of derivatives.")
        check_symmetric(full)
        iu, ju = hessian_pairs(n)
        hess = full[iu, ju]
    return (None if grad is None else _readonly(grad),
            None if hess is None else _readonly(hess))


def packed_arrays(gradient_array, hessian_array):
    r"""Validate and copy a gradient and packed Hessian array."""
    grad = hess = None
    if gradient_array is not None:
        grad = np.array(gradient_array, dtype=float)
        if grad.ndim != 1:
            raise ValueError("The gradient must be one dimensional.")
    if hessian_array is not None:
        if grad is None:
            raise ValueError("The gradient must be specified if the Hessian "
                             "is specified.")
        hess = np.array(hessian_array, dtype=float)
        if hess.shape != (hessian_size(len(grad)),):
            raise ValueError("Inconsistent number of derivatives.")
    return (None if grad is None else _readonly(grad),
            None if hess is None else _readonly(hess))


def common_size(f1, f2):
    r"""Number of variables of two operands, where constants have none."""
    if f1._grad is not None and f2._grad is not None and f1.n != f2.n:
        raise ValueError("Inconsistent number of derivatives.")
    return max(f1.n, f2.n)


def unary_derivatives(f, g1, g11):
    r"""Gradient and packed Hessian of `g(f)`.

    Terms with a vanishing factor `g1` or `g11` are skipped, so that e.g.
    infinite derivatives of `f` do not turn into `nan` when multiplied by
    zero.
    """
    fg = f._grad
    if fg is None:
        return None, None
    n = len(fg)
    grad = g1 * fg if g1 != 0 else np.zeros(n)
    hess = None
    if f._hess is not None or g11 != 0:
        hess = np.zeros(hessian_size(n))
        if g1 != 0 and f._hess is not None:
            hess += g1 * f._hess
        if g11 != 0:
            iu, ju = hessian_pairs(n)
            hess += g11 * fg[iu] * fg[ju]
    return grad, hess


def binary_derivatives(f1, f2, g1, g2, g11, g12, g22):
    r"""Gradient and packed Hessian of `g(f1, f2)`."""
    fg1, fg2 = f1._grad, f2._grad
    if fg1 is None and fg2 is None:
        return None, None
    n = common_size(f1, f2)
    grad = np.zeros(n)
    if g1 != 0 and fg1 is not None:
        grad += g1 * fg1
    if g2 != 0 and fg2 is not None:
        grad += g2 * fg2
    hess = None
    if (f1._hess is not None or f2._hess is not None
            or g11 != 0 or g12 != 0 or g22 != 0):
        hess = np.zeros(hessian_size(n))
        iu, ju = hessian_pairs(n)
        if g1 != 0 and f1._hess is not None:
            hess += g1 * f1._hess
        if g2 != 0 and f2._hess is not None:
            hess += g2 * f2._hess
        if g11 != 0 and fg1 is not None:
            hess += g11 * fg1[iu] * fg1[ju]
        if g22 != 0 and fg2 is not None:
            hess += g22 * fg2[iu] * fg2[ju]
        if g12 != 0 and fg1 is not None and fg2 is not None:
            hess += g12 * (fg1[iu] * fg2[ju] + fg2[iu] * fg1[ju])
    return grad, hess


class DerivativeArrays(object):
    r"""Accessors shared by the dual number classes.

    Sub classes store the value as `numpy.float64` in `_value`, the gradient
    in `_grad` and the packed Hessian in `_hess`, where the arrays are
    read-only or `None`.
    """

    # Make numpy scalars defer to our reflected operators.
    __array_ufunc__ = None

    @property
    def value(self):
        r"""The function value as `float`."""
        return float(self._value)

    @property
    def n(self):
        r"""Number of variables (zero for constants)."""
        return 0 if self._grad is None else len(self._grad)

    @property
    def gradient(self):
        r"""Read-only gradient array or `None`."""
        return self._grad

    @property
    def hessian(self):
        r"""Read-only full symmetric Hessian matrix or `None`."""
        if self._hess is None:
            return None
        if self._full_hessian is None:
            self._full_hessian = _readonly(
                self._hess[hessian_index_matrix(self.n)]
            )
        return self._full_hessian

    def gradient_entry(self, i):
        r"""First derivative w.r.t. variable `i` (zero for constants)."""
        if self._grad is None:
            return 0.0
        return float(self._grad[i])

    def hessian_entry(self, i, j):
        r"""Second derivative w.r.t. variables `i` and `j` (zero if absent)."""
        if self._hess is None:
            if self._grad is not None:
                hessian_index(self.n, i, j)
            return 0.0
        return float(self._hess[hessian_index(self.n, i, j)])

    def to_gradient_array(self):
        r"""Copy of the gradient array or `None`."""
        return None if self._grad is None else self._grad.copy()

    def to_hessian_array(self):
        r"""Copy of the packed Hessian array or `None`."""
        return None if self._hess is None else self._hess.copy()

    def __getstate__(self):
        state = self.__dict__.copy()
        for key in state:
            if key.startswith('_full_'):
                state[key] = None
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        for key in ('_grad', '_hess', '_third'):
            if self.__dict__.get(key) is not None:
                self.__dict__[key] = _readonly(self.__dict__[key].copy())


class DualNumber(DerivativeArrays):
    r"""Value, gradient and Hessian of a function at a point.

    A dual number without gradient represents a constant, which can be
    combined with dual numbers of any size.
    """

    ## Shared instance of the constant zero (set below).
    ZERO = None

    def __init__(self, value, gradient=None, hessian=None):
        r"""Create a dual number.

        @param value
            The function value.
        @param gradient
            Optional sequence of the `n` first derivatives.
        @param hessian
            Optional symmetric `n x n` matrix of the second derivatives.
            Requires `gradient` to be given.

        @b Raises
            `TypeError` if `value` is not a real number.
            `ValueError` if the sizes are inconsistent, the Hessian is given
            without a gradient or is not symmetric.
        """
        self._value = scalar_value(value)
        self._grad, self._hess = gradient_and_hessian(gradient, hessian)
        self._full_hessian = None

    @classmethod
    def from_arrays(cls, value, gradient_array=None, hessian_array=None):
        r"""Create a dual number from a gradient and packed Hessian array.

        The Hessian array must be laid out as described in
        indexing.hessian_index(). The arrays are copied.
        """
        grad, hess = packed_arrays(gradient_array, hessian_array)
        return cls._create(value, grad, hess)

    @classmethod
    def _create(cls, value, grad, hess):
        r"""Create a dual number taking ownership of the given arrays."""
        obj = cls.__new__(cls)
        obj._value = scalar_value(value)
        obj._grad = None if grad is None else _readonly(grad)
        obj._hess = None if hess is None else _readonly(hess)
        obj._full_hessian = None
        return obj

    @classmethod
    def constant(cls, value):
        r"""Dual number of a constant, reusing ZERO for zero values."""
        if value == 0:
            return cls.ZERO
        return cls(value)

    @classmethod
    def basis(cls, value, n, i):
        r"""Dual number of the `i`-th of `n` variables having `value`.

        The gradient is the `i`-th unit vector and the Hessian is zero.
        """
        if not 0 <= i < n:
            raise IndexError("Variable index %s out of range for n = %s."
                             % (i, n))
        grad = np.zeros(n)
        grad[i] = 1.0
        return cls._create(value, grad, np.zeros(hessian_size(n)))

    @classmethod
    @_ieee
    def unary(cls, f, g, g1, g11):
        r"""Perform the operation `h(x) = g(f(x))`.

        @param f
            The inner dual number.
        @param g
            Value `g(f(x))`.
        @param g1
            First derivative `g'(f(x))`.
        @param g11
            Second derivative `g''(f(x))`.
        """
        grad, hess = unary_derivatives(f, g1, g11)
        return cls._create(g, grad, hess)

    @classmethod
    @_ieee
    def binary(cls, f1, f2, g, g1, g2, g11, g12, g22):
        r"""Perform the operation `h(x) = g(f1(x), f2(x))`.

        The arguments `g1`, `g2` are the partial derivatives of `g` w.r.t.
        its first and second argument, and `g11`, `g12`, `g22` the second
        partial derivatives, all taken at `(f1(x), f2(x))`.

        @b Raises
            `ValueError` if both operands have gradients of different size.
        """
        grad, hess = binary_derivatives(f1, f2, g1, g2, g11, g12, g22)
        return cls._create(g, grad, hess)

    def __add__(self, other):
        if isinstance(other, DualNumber):
            return self.binary(self, other, self._value + other._value,
                               1.0, 1.0, 0.0, 0.0, 0.0)
        if is_scalar(other):
            return self.unary(self, self._value + other, 1.0, 0.0)
        return NotImplemented

    def __radd__(self, other):
        if is_scalar(other):
            return self.unary(self, other + self._value, 1.0, 0.0)
        return NotImplemented

    def __sub__(self, other):
        if isinstance(other, DualNumber):
            return self.binary(self, other, self._value - other._value,
                               1.0, -1.0, 0.0, 0.0, 0.0)
        if is_scalar(other):
            return self.unary(self, self._value - other, 1.0, 0.0)
        return NotImplemented

    def __rsub__(self, other):
        if is_scalar(other):
            return self.unary(self, other - self._value, -1.0, 0.0)
        return NotImplemented

    def __neg__(self):
        return self.unary(self, -self._value, -1.0, 0.0)

    def __pos__(self):
        return self

    def __mul__(self, other):
        if isinstance(other, DualNumber):
            return self.binary(self, other, self._value * other._value,
                               other._value, self._value, 0.0, 1.0, 0.0)
        if is_scalar(other):
            return self.unary(self, self._value * other, other, 0.0)
        return NotImplemented

    def __rmul__(self, other):
        if is_scalar(other):
            return self.unary(self, other * self._value, other, 0.0)
        return NotImplemented

    @_ieee
    def __truediv__(self, other):
        if isinstance(other, DualNumber):
            f2 = other._value
            g = self._value / f2
            g1 = 1.0 / f2
            g2 = -g / f2
            g12 = -g1 / f2
            g22 = -2.0 * g2 / f2
            return self.binary(self, other, g, g1, g2, 0.0, g12, g22)
        if is_scalar(other):
            other = np.float64(other)
            return self.unary(self, self._value / other, 1.0 / other, 0.0)
        return NotImplemented

    @_ieee
    def __rtruediv__(self, other):
        if is_scalar(other):
            f = self._value
            g = np.float64(other) / f
            g1 = -g / f
            g11 = -2.0 * g1 / f
            return self.unary(self, g, g1, g11)
        return NotImplemented

    def __pow__(self, other):
        if isinstance(other, DualNumber) or is_scalar(other):
            return pow(self, other)
        return NotImplemented

    def __rpow__(self, other):
        if is_scalar(other):
            return pow(other, self)
        return NotImplemented

    def __repr__(self):
        return "<DualNumber(%r, n=%d)>" % (self.value, self.n)


DualNumber.ZERO = DualNumber(0.0)


def _as_dual(f):
    if isinstance(f, DualNumber):
        return f
    if is_scalar(f):
        return DualNumber.constant(f)
    raise TypeError("Expected a dual number, got: %r" % (f,))


@_ieee
def exp(f):
    f = _as_dual(f)
    g = np.exp(f._value)
    return DualNumber.unary(f, g, g, g)


@_ieee
def log(f):
    f = _as_dual(f)
    g1 = 1.0 / f._value
    return DualNumber.unary(f, np.log(f._value), g1, -g1 / f._value)


@_ieee
def sqr(f):
    f = _as_dual(f)
    return DualNumber.unary(f, f._value * f._value, 2.0 * f._value, 2.0)


@_ieee
def sqrt(f):
    f = _as_dual(f)
    g = np.sqrt(f._value)
    g1 = 0.5 / g
    return DualNumber.unary(f, g, g1, -0.5 * g1 / f._value)


@_ieee
def pow(f1, f2):
    r"""Power of dual numbers and/or plain numbers."""
    # pylint: disable=redefined-builtin
    if isinstance(f1, DualNumber) and isinstance(f2, DualNumber):
        x, y = f1._value, f2._value
        g = np.power(x, y)
        c1 = np.power(x, y - 1.0)
        g1 = y * c1
        g11 = y * (y - 1.0) * np.power(x, y - 2.0)
        c2 = np.log(x)
        g2 = c2 * g
        g22 = c2 * g2
        g12 = c1 * (1.0 + c2 * y)
        return DualNumber.binary(f1, f2, g, g1, g2, g11, g12, g22)
    if isinstance(f1, DualNumber):
        a = np.float64(f2)
        x = f1._value
        g = np.power(x, a)
        g1 = a * np.power(x, a - 1.0)
        g11 = a * (a - 1.0) * np.power(x, a - 2.0)
        return DualNumber.unary(f1, g, g1, g11)
    if isinstance(f2, DualNumber):
        a = np.float64(f1)
        g = np.power(a, f2._value)
        c = np.log(a)
        g1 = c * g
        return DualNumber.unary(f2, g, g1, c * g1)
    return DualNumber(np.power(np.float64(f1), np.float64(f2)))


@_ieee
def sin(f):
    f = _as_dual(f)
    g = np.sin(f._value)
    return DualNumber.unary(f, g, np.cos(f._value), -g)


@_ieee
def cos(f):
    f = _as_dual(f)
    g = np.cos(f._value)
    return DualNumber.unary(f, g, -np.sin(f._value), -g)


def min_(f, g):
    r"""The operand with the smaller value (the second one on ties)."""
    f, g = _as_dual(f), _as_dual(g)
    return f if f.value < g.value else g


def max_(f, g):
    r"""The operand with the larger value (the second one on ties)."""
    f, g = _as_dual(f), _as_dual(g)
    return f if f.value > g.value else g
