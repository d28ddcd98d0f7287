class NebulaEdgeError(Exception):
    """Base class for errors raised by nebula_edge."""


class ValidationError(NebulaEdgeError, ValueError):
    """A local operation was rejected; session state is left unchanged."""
