"""Exceptions raised by the Valhalla client.

Only misconfiguration and lifecycle misuse raise. Runtime failures (timeouts,
pool exhaustion, statement errors) come back as ``Err`` values instead.
"""


class ValhallaError(Exception):
    """Base class for Valhalla client errors."""
    pass


class ValhallaConfigError(ValhallaError):
    """Raised when a required connection setting is missing or malformed."""
    pass


class ValhallaClosedError(ValhallaError):
    """Raised when opening a client that has already been closed."""
    pass
