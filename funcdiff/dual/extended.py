r"""@package funcdiff.dual.extended

Forward mode automatic differentiation up to third order.

An ExtendedDualNumber carries, in addition to the value, gradient and
Hessian of a DualNumber, the third derivatives of a function. Since the
number of third derivatives grows cubically with the number of variables
`n`, only those involving at least one of the first `n0` variables are
computed. Use this when third derivatives are needed w.r.t. a few
parameters only, e.g. for sensitivities of a Hessian w.r.t. these
parameters.

The third derivatives are stored packed, see
indexing.third_reduced_index(), and expanded to a Tensor of shape
`(n0, n, n)` on request.

As for dual numbers, operations are implemented by the chain rule in
ExtendedDualNumber.unary() and ExtendedDualNumber.binary(), which now also
need the third derivatives of the outer function.
"""

from functools import lru_cache

import numpy as np

from .dualnumber import (DerivativeArrays, gradient_and_hessian, packed_arrays,
                         unary_derivatives, binary_derivatives, is_scalar,
                         scalar_value,
                         _readonly, _ieee)
from .indexing import (hessian_size, hessian_index_matrix,
                       third_reduced_size, third_reduced_index, third_triples)


__all__ = [
    "Tensor",
    "ExtendedDualNumber",
    "exp",
    "log",
    "sqr",
    "sqrt",
    "pow",
    "sin",
    "cos",
]


class Tensor(object):
    r"""Read-only three dimensional array of third derivatives."""
    def __init__(self, entries):
        entries = np.array(entries, dtype=float)
        if entries.ndim != 3:
            raise ValueError("Tensors must be three dimensional.")
        self._entries = _readonly(entries)

    @property
    def shape(self):
        return self._entries.shape

    def __getitem__(self, key):
        result = self._entries[key]
        if np.ndim(result) == 0:
            return float(result)
        return result

    def to_array(self):
        r"""Copy of the entries as `numpy` array."""
        return self._entries.copy()

    def __repr__(self):
        return "<Tensor(shape=%s)>" % (self.shape,)


@lru_cache(maxsize=64)
def _third_indices(n, n0):
    r"""Index arrays needed for the third order chain rule.

    Returns `I, J, K, L1, L2, L3`, where for each stored entry `(i, j, k)`,
    `L1`, `L2`, `L3` are the packed Hessian positions of `(i, j)`, `(i, k)`
    and `(j, k)`, respectively.
    """
    I, J, K = third_triples(n, n0)
    M = hessian_index_matrix(n)
    return I, J, K, _readonly(M[I, J]), _readonly(M[I, K]), _readonly(M[J, K])


def _mixed_terms(grad, hess, idx):
    r"""Symmetrized products of a gradient and a Hessian for all entries."""
    I, J, K, L1, L2, L3 = idx
    return grad[I] * hess[L3] + grad[J] * hess[L2] + grad[K] * hess[L1]


def _check_n0(n, n0):
    if n0 < 0 or n0 > n:
        raise ValueError("Invalid number of fully computed third "
                         "derivatives: n0 = %s for n = %s." % (n0, n))


class ExtendedDualNumber(DerivativeArrays):
    r"""Value, gradient, Hessian and (partial) third derivatives."""

    ## Shared instance of the constant zero (set below).
    ZERO = None

    def __init__(self, value, gradient=None, hessian=None, n0=None):
        r"""Create an extended dual number without third derivatives.

        @param value
            The function value.
        @param gradient
            Optional sequence of the `n` first derivatives.
        @param hessian
            Optional symmetric `n x n` matrix of the second derivatives.
        @param n0
            Number of leading variables for which third derivatives are
            computed in subsequent operations. Default is `n`.
        """
        self._value = scalar_value(value)
        self._grad, self._hess = gradient_and_hessian(gradient, hessian)
        self._n0 = self._init_n0(n0)
        self._third = None
        self._full_hessian = None
        self._full_third = None

    def _init_n0(self, n0):
        if self._grad is None:
            return 0
        n = len(self._grad)
        if n0 is None:
            return n
        _check_n0(n, n0)
        return n0

    @classmethod
    def from_arrays(cls, value, gradient_array=None, hessian_array=None,
                    third_array=None, n0=None):
        r"""Create an extended dual number from packed arrays.

        @param third_array
            Packed third derivatives with the layout of
            indexing.third_reduced_index(). Requires the gradient and Hessian
            arrays to be given.

        @b Raises
            `ValueError` for inconsistent sizes or missing lower order
            derivatives.
        """
        grad, hess = packed_arrays(gradient_array, hessian_array)
        obj = cls._create(value, grad, hess, None, 0)
        obj._n0 = obj._init_n0(n0)
        if third_array is not None:
            if grad is None or hess is None:
                raise ValueError("The gradient and the Hessian must be "
                                 "specified if the third derivatives are "
                                 "specified.")
            third = np.array(third_array, dtype=float)
            if third.shape != (third_reduced_size(obj.n, obj._n0),):
                raise ValueError("Inconsistent number of derivatives.")
            obj._third = _readonly(third)
        return obj

    @classmethod
    def _create(cls, value, grad, hess, third, n0):
        obj = cls.__new__(cls)
        obj._value = scalar_value(value)
        obj._grad = None if grad is None else _readonly(grad)
        obj._hess = None if hess is None else _readonly(hess)
        obj._third = None if third is None else _readonly(third)
        obj._n0 = n0
        obj._full_hessian = None
        obj._full_third = None
        return obj

    @classmethod
    def constant(cls, value):
        r"""Extended dual number of a constant, reusing ZERO for zero."""
        if value == 0:
            return cls.ZERO
        return cls(value)

    @classmethod
    def basis(cls, value, n, i, n0=None):
        r"""Extended dual number of the `i`-th of `n` variables.

        @param n0
            Number of leading variables with third derivatives. Default is
            `n`.
        """
        if not 0 <= i < n:
            raise IndexError("Variable index %s out of range for n = %s."
                             % (i, n))
        if n0 is None:
            n0 = n
        _check_n0(n, n0)
        grad = np.zeros(n)
        grad[i] = 1.0
        return cls._create(value, grad, np.zeros(hessian_size(n)), None, n0)

    @property
    def n0(self):
        r"""Number of leading variables covered by the third derivatives."""
        return self._n0

    @property
    def third(self):
        r"""Tensor of shape `(n0, n, n)` of the third derivatives or `None`."""
        if self._third is None:
            return None
        if self._full_third is None:
            n, n0 = self.n, self._n0
            I, J, K = third_triples(n, n0)
            t = self._third
            a = np.zeros((n0, n, n))
            a[I, J, K] = t
            a[I, K, J] = t
            m = J < n0
            a[J[m], I[m], K[m]] = t[m]
            a[J[m], K[m], I[m]] = t[m]
            m = K < n0
            a[K[m], I[m], J[m]] = t[m]
            a[K[m], J[m], I[m]] = t[m]
            self._full_third = Tensor(a)
        return self._full_third

    def third_entry(self, i, j, k):
        r"""Third derivative w.r.t. variables `i`, `j` and `k`.

        The smallest of the indices must be below #n0.
        """
        index = third_reduced_index(self.n, self._n0, i, j, k)
        if self._third is None:
            return 0.0
        return float(self._third[index])

    def to_third_array(self):
        r"""Copy of the packed third derivatives array or `None`."""
        return None if self._third is None else self._third.copy()

    @classmethod
    @_ieee
    def unary(cls, f, g, g1, g11, g111):
        r"""Perform the operation `h(x) = g(f(x))`.

        @param f
            The inner extended dual number.
        @param g
            Value `g(f(x))`.
        @param g1
            First derivative `g'(f(x))`.
        @param g11
            Second derivative `g''(f(x))`.
        @param g111
            Third derivative `g'''(f(x))`.
        """
        grad, hess = unary_derivatives(f, g1, g11)
        fg = f._grad
        third = None
        if fg is not None and (f._hess is not None or g111 != 0):
            n, n0 = f.n, f._n0
            if hess is None:
                hess = np.zeros(hessian_size(n))
            idx = _third_indices(n, n0)
            I, J, K = idx[:3]
            third = np.zeros(len(I))
            if g1 != 0 and f._third is not None:
                third += g1 * f._third
            if g11 != 0 and f._hess is not None:
                third += g11 * _mixed_terms(fg, f._hess, idx)
            if g111 != 0:
                third += g111 * fg[I] * fg[J] * fg[K]
        return cls._create(g, grad, hess, third, f._n0)

    @classmethod
    @_ieee
    def binary(cls, f1, f2, g, g1, g2, g11, g12, g22, g111, g112, g122,
               g222):
        r"""Perform the operation `h(x) = g(f1(x), f2(x))`.

        The arguments following `g` are the partial derivatives of `g` up to
        third order, e.g. `g112` is the derivative w.r.t. the first argument
        twice and w.r.t. the second once.

        @b Raises
            `ValueError` if both operands have derivatives and disagree in
            `n` or `n0`.
        """
        fg1, fg2 = f1._grad, f2._grad
        if (fg1 is not None and fg2 is not None
                and (f1.n != f2.n or f1._n0 != f2._n0)):
            raise ValueError("Inconsistent number of derivatives.")
        grad, hess = binary_derivatives(f1, f2, g1, g2, g11, g12, g22)
        if grad is None:
            return cls._create(g, None, None, None, 0)
        n = len(grad)
        n0 = max(f1._n0, f2._n0)
        third_terms = (g111, g112, g122, g222)
        if hess is None and any(c != 0 for c in third_terms):
            hess = np.zeros(hessian_size(n))
        third = None
        if (f1._hess is not None or f2._hess is not None
                or any(c != 0 for c in third_terms)):
            idx = _third_indices(n, n0)
            I, J, K = idx[:3]
            third = np.zeros(len(I))
            h1, h2 = f1._hess, f2._hess
            if g1 != 0 and f1._third is not None:
                third += g1 * f1._third
            if g2 != 0 and f2._third is not None:
                third += g2 * f2._third
            if g11 != 0 and h1 is not None:
                third += g11 * _mixed_terms(fg1, h1, idx)
            if g22 != 0 and h2 is not None:
                third += g22 * _mixed_terms(fg2, h2, idx)
            if g12 != 0 and fg1 is not None and h2 is not None:
                third += g12 * _mixed_terms(fg1, h2, idx)
            if g12 != 0 and fg2 is not None and h1 is not None:
                third += g12 * _mixed_terms(fg2, h1, idx)
            if g111 != 0 and fg1 is not None:
                third += g111 * fg1[I] * fg1[J] * fg1[K]
            if g222 != 0 and fg2 is not None:
                third += g222 * fg2[I] * fg2[J] * fg2[K]
            if g112 != 0 and fg1 is not None and fg2 is not None:
                third += g112 * (fg1[I] * fg1[J] * fg2[K]
                                 + fg1[I] * fg2[J] * fg1[K]
                                 + fg2[I] * fg1[J] * fg1[K])
            if g122 != 0 and fg1 is not None and fg2 is not None:
                third += g122 * (fg2[I] * fg2[J] * fg1[K]
                                 + fg2[I] * fg1[J] * fg2[K]
                                 + fg1[I] * fg2[J] * fg2[K])
        return cls._create(g, grad, hess, third, n0)

    def __add__(self, other):
        if isinstance(other, ExtendedDualNumber):
            return self.binary(self, other, self._value + other._value,
                               1.0, 1.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
        if is_scalar(other):
            return self.unary(self, self._value + other, 1.0, 0.0, 0.0)
        return NotImplemented

    def __radd__(self, other):
        if is_scalar(other):
            return self.unary(self, other + self._value, 1.0, 0.0, 0.0)
        return NotImplemented

    def __sub__(self, other):
        if isinstance(other, ExtendedDualNumber):
            return self.binary(self, other, self._value - other._value,
                               1.0, -1.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
        if is_scalar(other):
            return self.unary(self, self._value - other, 1.0, 0.0, 0.0)
        return NotImplemented

    def __rsub__(self, other):
        if is_scalar(other):
            return self.unary(self, other - self._value, -1.0, 0.0, 0.0)
        return NotImplemented

    def __neg__(self):
        return self.unary(self, -self._value, -1.0, 0.0, 0.0)

    def __pos__(self):
        return self

    def __mul__(self, other):
        if isinstance(other, ExtendedDualNumber):
            return self.binary(self, other, self._value * other._value,
                               other._value, self._value, 0.0, 1.0, 0.0,
                               0.0, 0.0, 0.0, 0.0)
        if is_scalar(other):
            return self.unary(self, self._value * other, other, 0.0, 0.0)
        return NotImplemented

    def __rmul__(self, other):
        if is_scalar(other):
            return self.unary(self, other * self._value, other, 0.0, 0.0)
        return NotImplemented

    @_ieee
    def __truediv__(self, other):
        if isinstance(other, ExtendedDualNumber):
            f1, f2 = self._value, other._value
            g = f1 / f2
            g1 = 1.0 / f2
            g2 = -g / f2
            g12 = -g1 / f2
            g22 = -2.0 * g2 / f2
            f2_cubed = f2 * f2 * f2
            g122 = 2.0 / f2_cubed
            g222 = -6.0 * f1 / (f2_cubed * f2)
            return self.binary(self, other, g, g1, g2, 0.0, g12, g22,
                               0.0, 0.0, g122, g222)
        if is_scalar(other):
            other = np.float64(other)
            return self.unary(self, self._value / other, 1.0 / other, 0.0,
                              0.0)
        return NotImplemented

    @_ieee
    def __rtruediv__(self, other):
        if is_scalar(other):
            f = self._value
            g = np.float64(other) / f
            g1 = -g / f
            g11 = -2.0 * g1 / f
            g111 = -3.0 * g11 / f
            return self.unary(self, g, g1, g11, g111)
        return NotImplemented

    def __pow__(self, other):
        if isinstance(other, ExtendedDualNumber) or is_scalar(other):
            return pow(self, other)
        return NotImplemented

    def __rpow__(self, other):
        if is_scalar(other):
            return pow(other, self)
        return NotImplemented

    def __repr__(self):
        return "<ExtendedDualNumber(%r, n=%d, n0=%d)>" % (
            self.value, self.n, self._n0
        )


ExtendedDualNumber.ZERO = ExtendedDualNumber(0.0)


def _as_dual(f):
    if isinstance(f, ExtendedDualNumber):
        return f
    if is_scalar(f):
        return ExtendedDualNumber.constant(f)
    raise TypeError("Expected an extended dual number, got: %r" % (f,))


@_ieee
def exp(f):
    f = _as_dual(f)
    g = np.exp(f._value)
    return ExtendedDualNumber.unary(f, g, g, g, g)


@_ieee
def log(f):
    f = _as_dual(f)
    x = f._value
    g1 = 1.0 / x
    g11 = -g1 / x
    return ExtendedDualNumber.unary(f, np.log(x), g1, g11, -2.0 * g11 / x)


@_ieee
def sqr(f):
    f = _as_dual(f)
    x = f._value
    return ExtendedDualNumber.unary(f, x * x, 2.0 * x, 2.0, 0.0)


@_ieee
def sqrt(f):
    f = _as_dual(f)
    x = f._value
    g = np.sqrt(x)
    g1 = 0.5 / g
    g11 = -0.5 * g1 / x
    return ExtendedDualNumber.unary(f, g, g1, g11, -3.0 * g11 / (2.0 * x))


@_ieee
def pow(f1, f2):
    r"""Power of extended dual numbers and/or plain numbers."""
    # pylint: disable=redefined-builtin
    if isinstance(f1, ExtendedDualNumber) and isinstance(f2, ExtendedDualNumber):
        x, y = f1._value, f2._value
        g = np.power(x, y)
        c1 = np.power(x, y - 1.0)
        c2 = np.power(x, y - 2.0)
        ln = np.log(x)
        g1 = y * c1
        g2 = ln * g
        g11 = y * (y - 1.0) * c2
        g12 = c1 * (1.0 + ln * y)
        g22 = ln * g2
        g111 = y * (y - 1.0) * (y - 2.0) * np.power(x, y - 3.0)
        g112 = (2.0 * y - 1.0 + y * (y - 1.0) * ln) * c2
        g122 = 2.0 * ln / x * g + ln * ln * y * c1
        g222 = ln * g22
        return ExtendedDualNumber.binary(f1, f2, g, g1, g2, g11, g12, g22,
                                         g111, g112, g122, g222)
    if isinstance(f1, ExtendedDualNumber):
        a = np.float64(f2)
        x = f1._value
        g = np.power(x, a)
        g1 = a * np.power(x, a - 1.0)
        g11 = a * (a - 1.0) * np.power(x, a - 2.0)
        g111 = a * (a - 1.0) * (a - 2.0) * np.power(x, a - 3.0)
        return ExtendedDualNumber.unary(f1, g, g1, g11, g111)
    if isinstance(f2, ExtendedDualNumber):
        a = np.float64(f1)
        g = np.power(a, f2._value)
        c = np.log(a)
        g1 = c * g
        g11 = c * g1
        return ExtendedDualNumber.unary(f2, g, g1, g11, c * g11)
    return ExtendedDualNumber(np.power(np.float64(f1), np.float64(f2)))


@_ieee
def sin(f):
    f = _as_dual(f)
    g = np.sin(f._value)
    g1 = np.cos(f._value)
    return ExtendedDualNumber.unary(f, g, g1, -g, -g1)


@_ieee
def cos(f):
    f = _as_dual(f)
    g = np.cos(f._value)
    s = np.sin(f._value)
    return ExtendedDualNumber.unary(f, g, -s, -g, s)
