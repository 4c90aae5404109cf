r"""@package funcdiff.exprs.elementary

Constants, variables and elementary operations on functions.

The node classes in this module should usually not be instantiated directly.
Instead, the Python operators on function.Function objects and the
constructor functions exp(), log(), sqr(), sqrt(), pow(), sin(), cos(),
positive(), step(), abs_() and sum_() should be used. These perform constant
folding and simplify trivial cases, e.g. ``f * 1`` returns `f` itself and
``f * 0`` returns the zero constant.

Constant folding follows IEEE floating point semantics, e.g. ``log(-1)``
becomes a `nan` constant (issuing an common.ExpressionWarning) and ``1/0``
an infinite one.
"""

import itertools
import operator
import warnings

import numpy as np
from mpmath import mp
import sympy as sp

from .common import ExpressionWarning
from .function import Function, is_number


__all__ = [
    "Constant",
    "Variable",
    "ZERO",
    "ONE",
    "as_function",
    "constant",
    "add",
    "subtract",
    "multiply",
    "divide",
    "negate",
    "exp",
    "log",
    "sqr",
    "sqrt",
    "pow",
    "sin",
    "cos",
    "positive",
    "step",
    "abs_",
    "sum_",
]


def _ctx(*values):
    r"""Numeric context for folding `values` (mpmath if any is an `mpf`)."""
    if any(isinstance(v, mp.mpf) for v in values):
        return mp
    return np


def _num(value):
    if isinstance(value, mp.mpf):
        return value
    return np.float64(value)


def _isnan(value):
    return value != value


def _fold(func, *values):
    r"""Compute a constant from constant operands."""
    values = [_num(v) for v in values]
    with np.errstate(all='ignore'):
        result = func(*values)
    if isinstance(result, mp.mpc):
        result = mp.nan
    if _isnan(result) and not any(_isnan(v) for v in values):
        warnings.warn("Constant folding resulted in NaN.", ExpressionWarning,
                      stacklevel=3)
    return constant(result)


def _fold_func(name, value):
    r"""Apply the function `name` of the suitable context to a constant."""
    return _fold(getattr(_ctx(value), name), value)


def _sympy_number(value):
    if isinstance(value, mp.mpf):
        return sp.Float(value)
    if float(value).is_integer():
        return sp.Integer(int(value))
    return sp.Float(value)


class Constant(Function):
    r"""Function with a constant value.

    Use constant() to create constants to reuse the ZERO and ONE instances.
    """
    def __init__(self, value):
        super(Constant, self).__init__()
        if not is_number(value):
            raise TypeError("Constants must be real numbers, got: %r"
                            % (value,))
        if isinstance(value, np.floating):
            value = float(value)
        self._value = value

    @property
    def constant(self):
        r"""The value of this constant as number."""
        return self._value

    @property
    def is_zero(self):
        return self._value == 0

    @property
    def is_constant(self):
        return True

    def _compute_value(self, evaluator):
        return evaluator.converter(self._value)

    def _compute_derivative(self, variable):
        return ZERO

    def _compute_partial_value(self, evaluator):
        return self

    def _to_sympy(self, converter):
        return _sympy_number(self._value)

    def _label(self):
        return "Constant %s" % (self._value,)

    def _expr_str(self):
        return "%s" % (self._value,)


## The zero constant. Zero derivatives always return this object.
ZERO = Constant(0.0)

## The constant one.
ONE = Constant(1.0)


def constant(value):
    r"""Create a Constant, reusing ZERO and ONE where possible."""
    if isinstance(value, np.floating):
        value = float(value)
    if value == 0:
        return ZERO
    if value == 1:
        return ONE
    return Constant(value)


def as_function(value):
    r"""Return `value` if it is a Function and a Constant for numbers."""
    if isinstance(value, Function):
        return value
    if is_number(value):
        return constant(value)
    raise TypeError("Cannot convert %r to a function." % (value,))


class Variable(Function):
    r"""Independent variable of functions.

    Variables are compared by identity, i.e. two variables with the same
    name are still different variables. The name is used for display only.
    """

    _counter = itertools.count()

    def __init__(self, name=None):
        super(Variable, self).__init__()
        self._name = name
        self._index = next(Variable._counter)

    @property
    def name(self):
        r"""Name of the variable or `None`."""
        return self._name

    def _compute_value(self, evaluator):
        return evaluator.variable_value(self)

    def _compute_derivative(self, variable):
        return ONE if variable is self else ZERO

    def _compute_partial_value(self, evaluator):
        replacement = evaluator.substitution(self)
        return self if replacement is None else replacement

    def _to_sympy(self, converter):
        return converter.symbol(self)

    def _label(self):
        return "Variable %s" % self

    def _expr_str(self):
        if self._name:
            return self._name
        return "v%d" % self._index


class _UnaryFunction(Function):
    r"""Base for functions of one argument.

    The derivative is computed as ``outer * f'``, where the outer derivative
    is created once by _create_outer() and stored.
    """

    ## Name used in the string representation.
    _name = None

    def __init__(self, f):
        super(_UnaryFunction, self).__init__()
        self._f = f
        self._outer = None

    @property
    def f(self):
        r"""The argument of this function."""
        return self._f

    def _sub_functions(self):
        return [("f", self._f)]

    def _compute_value(self, evaluator):
        return self._eval(evaluator, evaluator.evaluate(self._f))

    def _eval(self, evaluator, x):
        raise NotImplementedError

    def _compute_derivative(self, variable):
        df = self._f.derivative(variable)
        if df.is_zero:
            return ZERO
        if self._outer is None:
            self._outer = self._create_outer()
        return multiply(self._outer, df)

    def _create_outer(self):
        raise NotImplementedError

    def _compute_partial_value(self, evaluator):
        return self._rebuild(evaluator, self._recreate, self._f)

    def _recreate(self, f):
        raise NotImplementedError

    def _to_sympy(self, converter):
        return self._sympy(converter.convert(self._f))

    def _sympy(self, arg):
        raise NotImplementedError(
            "Function %s cannot be converted to SymPy." % type(self).__name__
        )

    def _expr_str(self):
        return "%s(%s)" % (self._name, self._f)


class Negation(_UnaryFunction):
    def _eval(self, evaluator, x):
        return -x

    def _create_outer(self):
        return constant(-1.0)

    def _recreate(self, f):
        return negate(f)

    def _sympy(self, arg):
        return -arg

    def _expr_str(self):
        return "-%s" % (self._f,)


class Scale(_UnaryFunction):
    r"""Function times a constant factor."""
    def __init__(self, f, factor):
        super(Scale, self).__init__(f)
        self._factor = factor

    @property
    def factor(self):
        return self._factor

    def _eval(self, evaluator, x):
        return evaluator.converter(self._factor) * x

    def _create_outer(self):
        return constant(self._factor)

    def _recreate(self, f):
        return multiply(f, self._factor)

    def _sympy(self, arg):
        return _sympy_number(self._factor) * arg

    def _label(self):
        return "Scale %s" % (self._factor,)

    def _expr_str(self):
        return "(%s * %s)" % (self._factor, self._f)


class Reciprocal(_UnaryFunction):
    r"""Constant divided by a function."""
    def __init__(self, numerator, f):
        super(Reciprocal, self).__init__(f)
        self._numerator = numerator

    @property
    def numerator(self):
        return self._numerator

    def _eval(self, evaluator, x):
        return evaluator.converter(self._numerator) / x

    def _create_outer(self):
        return divide(_fold(operator.neg, self._numerator), sqr(self._f))

    def _recreate(self, f):
        return divide(self._numerator, f)

    def _sympy(self, arg):
        return _sympy_number(self._numerator) / arg

    def _label(self):
        return "Reciprocal %s" % (self._numerator,)

    def _expr_str(self):
        return "(%s / %s)" % (self._numerator, self._f)


class Exp(_UnaryFunction):
    _name = "exp"

    def _eval(self, evaluator, x):
        return evaluator.ctx.exp(x)

    def _create_outer(self):
        return self

    def _recreate(self, f):
        return exp(f)

    def _sympy(self, arg):
        return sp.exp(arg)


class Log(_UnaryFunction):
    _name = "log"

    def _eval(self, evaluator, x):
        return evaluator.ctx.log(x)

    def _create_outer(self):
        return divide(1.0, self._f)

    def _recreate(self, f):
        return log(f)

    def _sympy(self, arg):
        return sp.log(arg)


class Square(_UnaryFunction):
    _name = "sqr"

    def _eval(self, evaluator, x):
        return x * x

    def _create_outer(self):
        return multiply(self._f, 2.0)

    def _recreate(self, f):
        return sqr(f)

    def _sympy(self, arg):
        return arg**2


class Sqrt(_UnaryFunction):
    _name = "sqrt"

    def _eval(self, evaluator, x):
        return evaluator.ctx.sqrt(x)

    def _create_outer(self):
        return divide(0.5, self)

    def _recreate(self, f):
        return sqrt(f)

    def _sympy(self, arg):
        return sp.sqrt(arg)


class PowerConstant(_UnaryFunction):
    r"""Function raised to a constant power."""
    def __init__(self, f, exponent):
        super(PowerConstant, self).__init__(f)
        self._exponent = exponent

    @property
    def exponent(self):
        return self._exponent

    def _eval(self, evaluator, x):
        return evaluator.ctx.power(x, evaluator.converter(self._exponent))

    def _create_outer(self):
        exponent = self._exponent
        return multiply(
            pow(self._f, _fold(lambda a: a - 1, exponent)), exponent
        )

    def _recreate(self, f):
        return pow(f, self._exponent)

    def _sympy(self, arg):
        return arg**_sympy_number(self._exponent)

    def _label(self):
        return "PowerConstant %s" % (self._exponent,)

    def _expr_str(self):
        return "(%s ^ %s)" % (self._f, self._exponent)


class ConstantBasePower(_UnaryFunction):
    r"""Constant raised to the power of a function."""
    def __init__(self, base, f):
        super(ConstantBasePower, self).__init__(f)
        self._base = base

    @property
    def base(self):
        return self._base

    def _eval(self, evaluator, x):
        return evaluator.ctx.power(evaluator.converter(self._base), x)

    def _create_outer(self):
        return multiply(self, _fold_func('log', self._base))

    def _recreate(self, f):
        return pow(self._base, f)

    def _sympy(self, arg):
        return _sympy_number(self._base)**arg

    def _label(self):
        return "ConstantBasePower %s" % (self._base,)

    def _expr_str(self):
        return "(%s ^ %s)" % (self._base, self._f)


class _Trigonometric(_UnaryFunction):
    r"""Base for sine and cosine.

    Each of them creates its counterpart (the cosine for a sine and vice
    versa) once when differentiated. The counterpart references back, so
    repeated differentiation alternates between just two nodes.
    """
    def __init__(self, f, partner=None):
        super(_Trigonometric, self).__init__(f)
        self._partner = partner

    def _get_partner(self):
        if self._partner is None:
            self._partner = self._create_partner()
        return self._partner

    def _create_partner(self):
        raise NotImplementedError


class Sin(_Trigonometric):
    _name = "sin"

    def _eval(self, evaluator, x):
        return evaluator.ctx.sin(x)

    def _create_partner(self):
        return Cos(self._f, partner=self)

    def _create_outer(self):
        return self._get_partner()

    def _recreate(self, f):
        return sin(f)

    def _sympy(self, arg):
        return sp.sin(arg)


class Cos(_Trigonometric):
    _name = "cos"

    def _eval(self, evaluator, x):
        return evaluator.ctx.cos(x)

    def _create_partner(self):
        return Sin(self._f, partner=self)

    def _create_outer(self):
        return negate(self._get_partner())

    def _recreate(self, f):
        return cos(f)

    def _sympy(self, arg):
        return sp.cos(arg)


class PositivePart(_UnaryFunction):
    r"""The function `max(0, f)`."""
    _name = "positive"

    def _eval(self, evaluator, x):
        if x > 0 or _isnan(x):
            return x
        return evaluator.converter(0)

    def _create_outer(self):
        return step(self._f)

    def _recreate(self, f):
        return positive(f)

    def _sympy(self, arg):
        return sp.Max(0, arg)


class Step(_UnaryFunction):
    r"""Heaviside step function, undefined (`nan`) at zero."""
    _name = "step"

    def _eval(self, evaluator, x):
        if x > 0:
            return evaluator.converter(1)
        if x < 0:
            return evaluator.converter(0)
        return evaluator.nan

    def _create_outer(self):
        return StepDerivative(self._f)

    def _recreate(self, f):
        return step(f)

    def _sympy(self, arg):
        return sp.Piecewise((1, arg > 0), (0, arg < 0), (sp.nan, True))


class StepDerivative(_UnaryFunction):
    r"""Derivative of the step function.

    Its value is zero away from zero and `nan` at zero. All its derivatives
    have the same values, hence the outer derivative is the function itself.
    """
    _name = "step'"

    def _eval(self, evaluator, x):
        if x == 0 or _isnan(x):
            return evaluator.nan
        return evaluator.converter(0)

    def _create_outer(self):
        return self

    def _recreate(self, f):
        return StepDerivative(f)

    def _sympy(self, arg):
        return sp.Piecewise((0, sp.Ne(arg, 0)), (sp.nan, True))


class Abs(_UnaryFunction):
    _name = "abs"

    def _eval(self, evaluator, x):
        return abs(x)

    def _create_outer(self):
        return Sign(self._f)

    def _recreate(self, f):
        return abs_(f)

    def _sympy(self, arg):
        return sp.Abs(arg)


class Sign(_UnaryFunction):
    r"""Derivative of the absolute value, undefined (`nan`) at zero."""
    _name = "sign"

    def _eval(self, evaluator, x):
        if x > 0:
            return evaluator.converter(1)
        if x < 0:
            return evaluator.converter(-1)
        return evaluator.nan

    def _create_outer(self):
        return StepDerivative(self._f)

    def _recreate(self, f):
        return Sign(f)

    def _sympy(self, arg):
        return sp.Piecewise((1, arg > 0), (-1, arg < 0), (sp.nan, True))


class _BinaryFunction(Function):
    r"""Base for operations with two function arguments."""

    ## Operator symbol used in the string representation.
    _op = None

    def __init__(self, f, g):
        super(_BinaryFunction, self).__init__()
        self._f = f
        self._g = g

    @property
    def f(self):
        return self._f

    @property
    def g(self):
        return self._g

    def _sub_functions(self):
        return [("f", self._f), ("g", self._g)]

    def _compute_value(self, evaluator):
        return self._eval(evaluator, evaluator.evaluate(self._f),
                          evaluator.evaluate(self._g))

    def _eval(self, evaluator, x, y):
        raise NotImplementedError

    def _compute_partial_value(self, evaluator):
        return self._rebuild(evaluator, self._recreate, self._f, self._g)

    def _recreate(self, f, g):
        raise NotImplementedError

    def _to_sympy(self, converter):
        return self._sympy(converter.convert(self._f),
                           converter.convert(self._g))

    def _sympy(self, a, b):
        raise NotImplementedError

    def _expr_str(self):
        return "(%s %s %s)" % (self._f, self._op, self._g)


class Addition(_BinaryFunction):
    _op = "+"

    def _eval(self, evaluator, x, y):
        return x + y

    def _compute_derivative(self, variable):
        return add(self._f.derivative(variable), self._g.derivative(variable))

    def _recreate(self, f, g):
        return add(f, g)

    def _sympy(self, a, b):
        return a + b


class Subtraction(_BinaryFunction):
    _op = "-"

    def _eval(self, evaluator, x, y):
        return x - y

    def _compute_derivative(self, variable):
        return subtract(self._f.derivative(variable),
                        self._g.derivative(variable))

    def _recreate(self, f, g):
        return subtract(f, g)

    def _sympy(self, a, b):
        return a - b


class Product(_BinaryFunction):
    _op = "*"

    def _eval(self, evaluator, x, y):
        return x * y

    def _compute_derivative(self, variable):
        f, g = self._f, self._g
        return add(multiply(f.derivative(variable), g),
                   multiply(f, g.derivative(variable)))

    def _recreate(self, f, g):
        return multiply(f, g)

    def _sympy(self, a, b):
        return a * b


class Quotient(_BinaryFunction):
    _op = "/"

    def __init__(self, f, g):
        super(Quotient, self).__init__(f, g)
        self._g_squared = None

    def _eval(self, evaluator, x, y):
        return x / y

    def _compute_derivative(self, variable):
        f, g = self._f, self._g
        df = f.derivative(variable)
        dg = g.derivative(variable)
        result = divide(df, g)
        if not dg.is_zero:
            if self._g_squared is None:
                self._g_squared = sqr(g)
            result = subtract(result, divide(multiply(f, dg), self._g_squared))
        return result

    def _recreate(self, f, g):
        return divide(f, g)

    def _sympy(self, a, b):
        return a / b


class Power(_BinaryFunction):
    r"""Function raised to the power of another function."""
    _op = "^"

    def __init__(self, f, g):
        super(Power, self).__init__(f, g)
        self._base_factor = None
        self._exponent_factor = None

    def _eval(self, evaluator, x, y):
        return evaluator.ctx.power(x, y)

    def _compute_derivative(self, variable):
        f, g = self._f, self._g
        df = f.derivative(variable)
        dg = g.derivative(variable)
        terms = []
        if not df.is_zero:
            if self._base_factor is None:
                self._base_factor = multiply(g, pow(f, subtract(g, 1.0)))
            terms.append(multiply(self._base_factor, df))
        if not dg.is_zero:
            if self._exponent_factor is None:
                self._exponent_factor = multiply(log(f), self)
            terms.append(multiply(self._exponent_factor, dg))
        return sum_(terms)

    def _recreate(self, f, g):
        return pow(f, g)

    def _sympy(self, a, b):
        return a**b


class Sum(Function):
    r"""Sum of an arbitrary number of functions.

    Use sum_() to create sums, which drops zero terms and folds constants.
    """
    def __init__(self, functions):
        super(Sum, self).__init__()
        self._functions = tuple(functions)

    @property
    def functions(self):
        r"""Tuple of the summands."""
        return self._functions

    def _sub_functions(self):
        return [("f%d" % i, f) for i, f in enumerate(self._functions)]

    def _compute_value(self, evaluator):
        result = evaluator.converter(0)
        for f in self._functions:
            result = result + evaluator.evaluate(f)
        return result

    def _compute_derivative(self, variable):
        return sum_([f.derivative(variable) for f in self._functions])

    def _compute_partial_value(self, evaluator):
        return self._rebuild(evaluator, lambda *fs: sum_(fs),
                             *self._functions)

    def _to_sympy(self, converter):
        return sp.Add(*[converter.convert(f) for f in self._functions])

    def _expr_str(self):
        return "(%s)" % " + ".join(str(f) for f in self._functions)


def _is_sum(f):
    return isinstance(f, (Sum, Addition, Subtraction))


def _summands(f):
    r"""Terms of `f` if it is a sum or difference, otherwise just `f`."""
    if isinstance(f, Sum):
        return f.functions
    if isinstance(f, Addition):
        return (f.f, f.g)
    if isinstance(f, Subtraction):
        return (f.f, negate(f.g))
    return (f,)


def _extend_sum(f, g):
    r"""Sum of `f` and `g` where at least one of them is a sum.

    The summands are collected into one Sum node. Sums built term by term,
    e.g. using ``+`` in a loop or the builtin `sum()`, hence stay flat
    instead of becoming a chain nested as deep as there are terms.
    """
    if isinstance(f, Sum) and not g.is_constant and not _is_sum(g):
        return Sum(f.functions + (g,))
    if isinstance(g, Sum) and not f.is_constant and not _is_sum(f):
        return Sum((f,) + g.functions)
    return sum_(_summands(f) + _summands(g))


def add(f, g):
    r"""Sum of two functions or numbers."""
    f, g = as_function(f), as_function(g)
    if f.is_constant and g.is_constant:
        return _fold(operator.add, f.constant, g.constant)
    if f.is_zero:
        return g
    if g.is_zero:
        return f
    if _is_sum(f) or _is_sum(g):
        return _extend_sum(f, g)
    return Addition(f, g)


def subtract(f, g):
    r"""Difference of two functions or numbers."""
    f, g = as_function(f), as_function(g)
    if f.is_constant and g.is_constant:
        return _fold(operator.sub, f.constant, g.constant)
    if g.is_zero:
        return f
    if f.is_zero:
        return negate(g)
    if _is_sum(f) or _is_sum(g):
        return _extend_sum(f, negate(g))
    return Subtraction(f, g)


def multiply(f, g):
    r"""Product of two functions or numbers.

    Multiplication by zero returns ZERO regardless of the other factor.
    """
    f, g = as_function(f), as_function(g)
    if f.is_constant and g.is_constant:
        return _fold(operator.mul, f.constant, g.constant)
    if f.is_constant:
        f, g = g, f
    if g.is_constant:
        factor = g.constant
        if factor == 0:
            return ZERO
        if factor == 1:
            return f
        if factor == -1:
            return negate(f)
        if isinstance(f, Scale):
            return multiply(f.f, _fold(operator.mul, f.factor, factor))
        return Scale(f, factor)
    return Product(f, g)


def divide(f, g):
    r"""Quotient of two functions or numbers."""
    f, g = as_function(f), as_function(g)
    if f.is_constant and g.is_constant:
        return _fold(operator.truediv, f.constant, g.constant)
    if g.is_constant:
        return multiply(f, _fold(lambda a: 1 / a, g.constant))
    if f.is_constant:
        if f.is_zero:
            return ZERO
        return Reciprocal(f.constant, g)
    return Quotient(f, g)


def negate(f):
    r"""Negative of a function."""
    f = as_function(f)
    if f.is_constant:
        return _fold(operator.neg, f.constant)
    if isinstance(f, Negation):
        return f.f
    return Negation(f)


def exp(f):
    r"""Exponential function."""
    f = as_function(f)
    if f.is_constant:
        return _fold_func('exp', f.constant)
    return Exp(f)


def log(f):
    r"""Natural logarithm. Negative arguments result in `nan`."""
    f = as_function(f)
    if f.is_constant:
        return _fold_func('log', f.constant)
    return Log(f)


def sqr(f):
    r"""Square of a function."""
    f = as_function(f)
    if f.is_constant:
        return _fold(lambda a: a * a, f.constant)
    return Square(f)


def sqrt(f):
    r"""Square root. Negative arguments result in `nan`."""
    f = as_function(f)
    if f.is_constant:
        return _fold_func('sqrt', f.constant)
    return Sqrt(f)


def pow(f, g):
    r"""Power `f^g` of two functions or numbers.

    Constant exponents of `0`, `0.5`, `1` and `2` return ONE, sqrt(), `f`
    itself and sqr(), respectively.
    """
    # pylint: disable=redefined-builtin
    f, g = as_function(f), as_function(g)
    if f.is_constant and g.is_constant:
        return _fold(_ctx(f.constant, g.constant).power,
                     f.constant, g.constant)
    if g.is_constant:
        exponent = g.constant
        if exponent == 0:
            return ONE
        if exponent == 1:
            return f
        if exponent == 0.5:
            return sqrt(f)
        if exponent == 2:
            return sqr(f)
        return PowerConstant(f, exponent)
    if f.is_constant:
        return ConstantBasePower(f.constant, g)
    return Power(f, g)


def sin(f):
    r"""Sine function."""
    f = as_function(f)
    if f.is_constant:
        return _fold_func('sin', f.constant)
    return Sin(f)


def cos(f):
    r"""Cosine function."""
    f = as_function(f)
    if f.is_constant:
        return _fold_func('cos', f.constant)
    return Cos(f)


def positive(f):
    r"""Positive part `max(0, f)`."""
    f = as_function(f)
    if f.is_constant:
        return _fold(lambda a: a if a > 0 or _isnan(a) else 0.0, f.constant)
    return PositivePart(f)


def step(f):
    r"""Step function: `1` for positive, `0` for negative, `nan` at zero."""
    f = as_function(f)
    if f.is_constant:
        return constant(1.0 if f.constant > 0 else
                        0.0 if f.constant < 0 else np.nan)
    return Step(f)


def abs_(f):
    r"""Absolute value."""
    f = as_function(f)
    if f.is_constant:
        return _fold(abs, f.constant)
    return Abs(f)


def sum_(functions):
    r"""Sum of any number of functions or numbers.

    Zero terms are dropped and constant terms combined. Terms that are sums
    themselves are merged into the result. An empty sum is ZERO.
    """
    terms = []
    offset = ZERO
    for f in functions:
        for term in _summands(as_function(f)):
            if term.is_constant:
                offset = add(offset, term)
            else:
                terms.append(term)
    if not offset.is_zero:
        terms.append(offset)
    if not terms:
        return ZERO
    if len(terms) == 1:
        return terms[0]
    if len(terms) == 2:
        return add(terms[0], terms[1])
    return Sum(terms)
