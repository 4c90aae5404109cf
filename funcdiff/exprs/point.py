r"""@package funcdiff.exprs.point

Assignments of values to variables.

A Point is an immutable mapping from elementary.Variable objects to numbers.
Points are hashable and their hash does not depend on the order in which the
assignments were given, so they can be used as keys of caches like
pointcache.PointCache.

@b Examples

\code
    x, y = Variable("x"), Variable("y")
    p = Point({x: 1.0, y: 2.0})
    q = Point([(y, 2.0), (x, 1.0)])
    assert p == q and hash(p) == hash(q)
\endcode
"""

from collections.abc import Mapping

from .common import VariableNotAssignedError


__all__ = [
    "VariableAssignment",
    "Point",
    "VariableCollection",
    "as_point",
]


def check_variable(variable):
    r"""Raise a `TypeError` if `variable` is not a Variable."""
    from .elementary import Variable
    if not isinstance(variable, Variable):
        raise TypeError("Expected a variable, got: %r" % (variable,))


class VariableAssignment(object):
    r"""Immutable pair of a variable and the value assigned to it.

    Assignments unpack like tuples, i.e. ``variable, value = assignment``.
    """
    def __init__(self, variable, value):
        check_variable(variable)
        self._variable = variable
        self._value = value

    @property
    def variable(self):
        r"""The assigned variable."""
        return self._variable

    @property
    def value(self):
        r"""The value assigned to the variable."""
        return self._value

    @classmethod
    def create(cls, variables, values):
        r"""Create a list of assignments from two sequences of equal length."""
        variables = list(variables)
        values = list(values)
        if len(variables) != len(values):
            raise ValueError("The number of variables and the number of "
                             "values don't agree.")
        return [cls(v, x) for v, x in zip(variables, values)]

    def __iter__(self):
        yield self._variable
        yield self._value

    def __repr__(self):
        return "<VariableAssignment(%s = %r)>" % (self._variable, self._value)


def _iter_pairs(assignments):
    r"""Generate `(variable, value)` pairs from the supported input types."""
    if isinstance(assignments, Mapping):
        return iter(assignments.items())
    return (tuple(a) for a in assignments)


class Point(object):
    r"""Immutable assignment of values to a set of variables.

    Two points are equal if they assign identical values to the same
    variables. The hash is the exclusive-or of the hashes of the individual
    `(variable, value)` pairs and hence independent of their order.
    """

    ## The point with no variables, for evaluation of constant functions.
    EMPTY = None

    def __init__(self, assignments=()):
        r"""Create a point from assignments.

        @param assignments
            A mapping ``{variable: value}``, another Point, or an iterable of
            `(variable, value)` pairs or VariableAssignment objects. The same
            variable may appear multiple times if it is always assigned the
            same value.

        @b Raises
            `ValueError` if a variable is assigned two different values and
            `TypeError` if a key is not a variable.
        """
        self._assignments = dict()
        self._hash = 0
        if isinstance(assignments, Point):
            self._assignments.update(assignments._assignments)
            self._hash = assignments._hash
            return
        for variable, value in _iter_pairs(assignments):
            self._add(variable, value)

    def _add(self, variable, value):
        check_variable(variable)
        try:
            previous = self._assignments[variable]
        except KeyError:
            pass
        else:
            if previous != value:
                raise ValueError("The variable %s is already assigned to a "
                                 "different value." % (variable,))
            return
        self._assignments[variable] = value
        # Xor makes the hash independent of the order of the pairs.
        self._hash ^= hash((variable, value))

    @classmethod
    def create(cls, variables, values):
        r"""Create a point from a sequence of variables and one of values."""
        return cls(VariableAssignment.create(variables, values))

    def contains_variable(self, variable):
        r"""Test whether a value is assigned to `variable`."""
        return variable in self._assignments

    __contains__ = contains_variable

    def __getitem__(self, variable):
        r"""Value assigned to `variable`.

        @b Raises
            common.VariableNotAssignedError if the variable is not assigned.
        """
        try:
            return self._assignments[variable]
        except KeyError:
            raise VariableNotAssignedError(variable) from None

    def get(self, variable, default=None):
        r"""Value assigned to `variable` or `default` if not assigned."""
        return self._assignments.get(variable, default)

    def __len__(self):
        return len(self._assignments)

    def __iter__(self):
        r"""Iterate over the VariableAssignment objects of this point."""
        for variable, value in self._assignments.items():
            yield VariableAssignment(variable, value)

    @property
    def variables(self):
        r"""List of all assigned variables."""
        return list(self._assignments)

    def items(self):
        r"""List of `(variable, value)` tuples."""
        return list(self._assignments.items())

    def to_dict(self):
        r"""Return a (mutable) copy of the assignments as `dict`."""
        return dict(self._assignments)

    def replace(self, assignments):
        r"""Return a new point with some values added or overridden."""
        values = self.to_dict()
        values.update(_iter_pairs(assignments))
        return Point(values)

    def __eq__(self, other):
        if self is other:
            return True
        if not isinstance(other, Point):
            return NotImplemented
        if self._hash != other._hash:
            return False
        if len(self._assignments) != len(other._assignments):
            return False
        for variable, value in self._assignments.items():
            if variable not in other._assignments:
                return False
            if other._assignments[variable] != value:
                return False
        return True

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return self._hash

    def __str__(self):
        parts = []
        for variable, value in self._assignments.items():
            if variable.name:
                parts.append("%s = %r" % (variable.name, value))
            else:
                parts.append("%r" % (value,))
        return ", ".join(parts)

    def __repr__(self):
        return "<Point(%s)>" % self


Point.EMPTY = Point()


class VariableCollection(object):
    r"""Immutable ordered collection of unique variables.

    Duplicates given at construction are ignored, so that each variable has a
    unique index.
    """
    def __init__(self, variables=()):
        self._variables = []
        self._indices = dict()
        for variable in variables:
            if variable is None:
                raise TypeError("Variables must not be None.")
            check_variable(variable)
            if variable not in self._indices:
                self._indices[variable] = len(self._variables)
                self._variables.append(variable)

    def __contains__(self, variable):
        return variable in self._indices

    def index_of(self, variable):
        r"""Index of `variable`. Raises `ValueError` if not contained."""
        try:
            return self._indices[variable]
        except KeyError:
            raise ValueError("Variable %s is not in the collection."
                             % (variable,)) from None

    def __getitem__(self, index):
        return self._variables[index]

    def __len__(self):
        return len(self._variables)

    def __iter__(self):
        return iter(self._variables)

    def __repr__(self):
        return "<VariableCollection(%s)>" % ", ".join(
            str(v) for v in self._variables
        )


def as_point(*args):
    r"""Convert the supported ways of specifying a point to a Point.

    Accepts no arguments (the empty point), a single Point (returned as is),
    a mapping, a single VariableAssignment or `(variable, value)` pair, an
    iterable of such pairs, or multiple pairs as separate arguments.
    """
    from .elementary import Variable
    if not args:
        return Point.EMPTY
    if len(args) > 1:
        return Point(args)
    arg = args[0]
    if arg is None:
        return Point.EMPTY
    if isinstance(arg, Point):
        return arg
    if isinstance(arg, VariableAssignment):
        return Point([arg])
    if (isinstance(arg, tuple) and len(arg) == 2
            and isinstance(arg[0], Variable)):
        return Point([arg])
    return Point(arg)
