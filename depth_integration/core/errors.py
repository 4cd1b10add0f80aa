"""Exceptions raised by depth map integration."""


class DepthIntegrationError(RuntimeError):
    """Base class for integration failures."""


class PreconditionError(DepthIntegrationError, ValueError):
    """Raised when the caller violates a precondition (programmer error)."""


class UnsupportedResourceTypeError(PreconditionError):
    """Raised when a resource type other than a depth map is requested."""


class InternalConsistencyError(DepthIntegrationError):
    """Raised when map data contradicts itself, e.g. a buffered resource is missing."""
