# trackmax/errors

"""
trackmax.errors

Central exception hierarchy for trackmax.

Rationale:
  - Modules should raise specific, meaningful errors.
  - Callers can catch TrackmaxError (broad) or specific subclasses (narrow).
  - The session tracker never lets these escape start()/stop(); they are
    turned into warnings and a "did not start" / "not saved" outcome.
"""


class TrackmaxError(RuntimeError):
    """Base class for all trackmax runtime errors."""


# ---- Location feed errors ----------------------

class LocationError(TrackmaxError):
    """Errors raised by a location feed while starting to track."""

class PermissionDeniedError(LocationError):
    """Foreground location permission was not granted."""

class PositionUnavailableError(LocationError):
    """The initial position fix could not be obtained."""


# ---- Storage errors ----------------------------

class StoreError(TrackmaxError):
    """Errors reading or writing persisted data."""

class DatabaseError(StoreError):
    """Errors interacting with the SQLite database."""


# ---- Format / config errors --------------------

class InvalidGpxError(TrackmaxError):
    """GPX file could not be parsed or did not contain expected data structures."""

class ConfigError(TrackmaxError):
    """A config file exists but could not be parsed."""
