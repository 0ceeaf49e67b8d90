"""Exceptions raised by lumen3d.

Configuration and resource problems are detected before a render starts and
are fatal. Degenerate geometry inside the tracing kernels never raises; it is
resolved where it happens (a miss, or no refraction).
"""


class Lumen3DError(Exception):
    """Base class for all lumen3d errors."""


class ConfigurationError(Lumen3DError, ValueError):
    """Scene data is malformed or breaks an invariant of the engine."""


class DegenerateGeometryError(Lumen3DError, ArithmeticError):
    """A vector operation has no defined result (e.g. normalizing zero)."""


class MissingResourceError(Lumen3DError):
    """A file referenced by the scene (a texture image) cannot be loaded."""

    def __init__(self, path, reference=None, reason=None):
        self.path = str(path)
        self.reference = reference
        self.reason = reason
        message = f"Could not load texture file {self.path}"
        if reference:
            message += f" (used by {reference})"
        if reason:
            message += f": {reason}"
        super().__init__(message)
