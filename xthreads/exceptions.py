"""Custom exception hierarchy for xthreads.

The reconstruction engine itself never raises: malformed records are dropped
and unresolvable references are left empty. These exceptions belong to the
surfaces around it (file loading, settings, CLI, HTTP).
"""


class XThreadsError(Exception):
    """Base exception for all xthreads errors."""


class InputError(XThreadsError):
    """Input file or payload could not be read as a fetch result."""


class ConfigError(XThreadsError):
    """Invalid configuration."""
