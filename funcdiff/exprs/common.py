r"""@package funcdiff.exprs.common

Exceptions and warnings used by multiple modules in funcdiff.exprs and
funcdiff.dual.
"""


__all__ = [
    "VariableNotAssignedError",
    "UnsupportedDerivativeOrderError",
    "ExpressionWarning",
]


class VariableNotAssignedError(KeyError):
    r"""Raised when the value of a variable is needed but not assigned.

    Callers can recover from this by supplying a point that assigns a value
    to the variable stored in the `variable` attribute.
    """
    def __init__(self, variable, message=None):
        if message is None:
            message = "Value of a non-assigned variable is required: %s" % (
                variable,
            )
        super(VariableNotAssignedError, self).__init__(message)
        ## The variable lacking a value.
        self.variable = variable

    def __str__(self):
        # KeyError would show the repr of the message otherwise.
        return str(self.args[0])


class UnsupportedDerivativeOrderError(NotImplementedError):
    r"""Raised when a derivative of a too high order is requested."""
    pass


class ExpressionWarning(UserWarning):
    """Warning issued when expressions might not evaluate as expected."""
    pass
