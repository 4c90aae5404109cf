r"""@package funcdiff.exprs

Symbolic expression graphs with cached derivatives.

Functions are built from constants and variables using the usual operators
and elementary functions (see the elementary module). Each node computes its
derivative symbolically, i.e. as another function, on first request and
stores it. Asking for the same derivative again returns the identical object,
so that higher and mixed derivatives share their sub-graphs.

To compute values, a function is evaluated at a point.Point. This happens
through an evaluator (see the evaluators module), which visits each distinct
node of the graph only once. Evaluation can use either fast floating point
operations or slower `mpmath` arbitrary precision operations.

Partial evaluation replaces some variables by constants (or by other
functions) and returns a new, reduced function.

All functions are *picklable* and can be stored to disk using
function.Function.save() and restored with function.Function.load().
"""

from .common import (VariableNotAssignedError, UnsupportedDerivativeOrderError,
                     ExpressionWarning)
from .point import VariableAssignment, Point, VariableCollection, as_point
from .function import (Function, FunctionConstraint,
                       FunctionEqualityConstraint, SubstitutedFunction)
from .elementary import (Constant, Variable, ZERO, ONE, constant, exp, log,
                         sqr, sqrt, pow, sin, cos, positive, step, abs_, sum_)
from .evaluators import (Evaluator, CompactEvaluator, PartialEvaluator,
                         evaluate, evaluate_compact, partial_evaluate)
from .pointcache import PointCache
