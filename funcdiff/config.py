r"""@package funcdiff.config

Package wide settings and loading them from configuration files.

The settings are simple class attributes of Settings, which may be changed
at runtime directly, e.g.

\code
    from funcdiff.config import Settings
    Settings.point_cache_size = 1000
\endcode

Alternatively, an INI style file can be loaded with load_config(). All keys
are read from the `[funcdiff]` section, e.g.

\code
    [funcdiff]
    point_cache_size = 1000
    use_mp = yes
    mp_dps = 50
\endcode

Next to a given file `funcdiff.cfg`, a file `funcdiff.mine.cfg` is read too
(if it exists) and overrides values of the former. This allows keeping
machine specific settings out of version control.
"""

from configparser import ConfigParser
import logging
import os.path as op


__all__ = [
    "Settings",
    "load_config",
]


logger = logging.getLogger(__name__)

## Name of the section in configuration files.
SECTION = "funcdiff"


class Settings(object):
    """Global settings of the package."""
    ## Number of points for which bridge functions cache their dual numbers.
    ## A value of `0` disables caching.
    point_cache_size = 100
    ## Default evaluation mode of Function.value() (`True` for mpmath).
    use_mp = False
    ## Decimal places used for mpmath evaluation.
    mp_dps = 30
    ## Relative error above which the derivative checker reports a mismatch.
    derivative_test_tolerance = 1e-4
    ## Relative perturbation used by the derivative checker.
    derivative_test_perturbation = 1e-6


_INT_KEYS = ("point_cache_size", "mp_dps")
_FLOAT_KEYS = ("derivative_test_tolerance", "derivative_test_perturbation")
_BOOL_KEYS = ("use_mp",)


def _mine_filename(filename):
    r"""Return the name of the local override file for `filename`."""
    base, ext = op.splitext(filename)
    return "%s.mine%s" % (base, ext)


def load_config(filename=None):
    r"""Update Settings from a configuration file.

    @param filename
        INI file to read. By default, ``funcdiff.cfg`` in the current working
        directory is used. Missing files are silently skipped.

    @return List of files that were actually read.
    """
    if filename is None:
        filename = "funcdiff.cfg"
    filename = op.expanduser(filename)
    config = ConfigParser()
    files = config.read([filename, _mine_filename(filename)])
    for fname in files:
        logger.info("Configuration read from: %s", fname)
    if not config.has_section(SECTION):
        return files
    for key in config.options(SECTION):
        if key in _INT_KEYS:
            value = config.getint(SECTION, key)
        elif key in _FLOAT_KEYS:
            value = config.getfloat(SECTION, key)
        elif key in _BOOL_KEYS:
            value = config.getboolean(SECTION, key)
        else:
            raise ValueError("Unknown configuration key: %s" % key)
        if key == "point_cache_size" and value < 0:
            raise ValueError("Cache size must not be negative.")
        setattr(Settings, key, value)
        logger.debug("Setting %s = %r", key, value)
    return files
