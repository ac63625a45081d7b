"""
Error types raised by the obscura core.

All of them subclass ValueError: each one signals a contract violation by
the caller (or by the inference collaborator), never a transient condition,
so there is nothing to retry.
"""


class ObscuraError(ValueError):
    """Base class for all core errors."""


class InvalidImageError(ObscuraError):
    """The image is missing or has a zero width or height."""


class MalformedOutputError(ObscuraError):
    """The model output tensor does not match the declared box layout."""


class InvalidRegionError(ObscuraError):
    """A region's coordinates cannot be mapped to pixels (non-finite values)."""
