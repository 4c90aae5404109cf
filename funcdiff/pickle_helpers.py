r"""@package funcdiff.pickle_helpers

Helper functions to (un)pickle problematic objects.

The main problem are mpmath constants such as `mp.pi`, which may end up as
the value of a constant expression node when graphs are built for
arbitrary precision evaluation. Running all your values to pickle through
prepare_value() replaces the problematic ones with placeholders. To restore
the values to their original form, run them through restore_value().

For convenience, prepare_dict() and restore_dict() do this on the values of
dictionaries, which is suitable for use in a `__getstate__()` and
`__setstate__()` implementation, respectively.

Example implementations might look like:

\code
def __getstate__(self):
    return prepare_dict(self.__dict__)

def __setstate__(self, state):
    self.__dict__.update(restore_dict(state))
\endcode
"""

from mpmath import mp


__all__ = [
    "prepare_value",
    "prepare_dict",
    "restore_value",
    "restore_dict",
]


## Names of the lazily evaluated `mpmath` constants we know how to restore.
_MP_CONSTANTS = ("pi", "e", "euler", "ln2", "ln10", "phi", "degree",
                 "catalan", "khinchin", "glaisher", "apery", "mertens",
                 "twinprime")


class _MpConstant(object):
    r"""Placeholder for one of the mpmath constants (e.g. `mp.pi`)."""
    # pylint: disable=too-few-public-methods
    def __init__(self, name):
        ## Attribute name of the constant on the `mp` context.
        self.name = name

    @property
    def value(self):
        r"""The actual mpmath constant."""
        return getattr(mp, self.name)


def _mp_constant_name(value):
    r"""Return the name of the mpmath constant `value` or `None`."""
    for name in _MP_CONSTANTS:
        if value is getattr(mp, name, None):
            return name
    return None


def prepare_value(value):
    r"""Prepare a value for being pickled.

    Most values are left untouched, only problematic ones are replaced by
    placeholders that can be pickled.

    There is no guarantee that all kinds of (e.g. nested) types are prepared
    in such a way that pickling succeeds. This function (and restore_value())
    should be extended on a case-by-case basis if such functionality is
    required.
    """
    if type(value) is tuple:
        return tuple(prepare_value(v) for v in value)
    if type(value) is list:
        return [prepare_value(v) for v in value]
    name = _mp_constant_name(value)
    if name is not None:
        return _MpConstant(name)
    return value


def restore_value(value):
    r"""Restore an unpickled value to its original form."""
    if type(value) is tuple:
        return tuple(restore_value(v) for v in value)
    if type(value) is list:
        return [restore_value(v) for v in value]
    if isinstance(value, _MpConstant):
        return value.value
    return value


def prepare_dict(data):
    r"""Convenience method to run prepare_value() on a dict."""
    return dict((k, prepare_value(v)) for k, v in data.items())


def restore_dict(data):
    r"""Convenience method to run restore_value() on a dict."""
    return dict((k, restore_value(v)) for k, v in data.items())
