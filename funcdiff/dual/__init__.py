r"""@package funcdiff.dual

Forward mode automatic differentiation using dual numbers.

A dualnumber.DualNumber carries the value, gradient and (packed) Hessian of
a function at a fixed point. Evaluating a formula on dual numbers yields the
exact derivatives of the formula at that point, without building an
expression graph. The extended.ExtendedDualNumber adds third derivatives for
a leading subset of the variables.

The bridge module turns formulas on dual numbers into ordinary
funcdiff.exprs.function.Function nodes, and derivtest checks derivatives of
any function against finite differences.
"""

from .indexing import (hessian_size, hessian_index, third_size,
                       third_reduced_size, third_reduced_index)
from .dualnumber import DualNumber
from .extended import ExtendedDualNumber, Tensor
from .bridge import DualNumberFunction, DualNumberTransform
from .derivtest import DualNumberDerivativeTest, DerivativeMismatch
