class OverlayError(Exception):
    """Base class for everything the overlay engine reports to its caller."""


class InputError(OverlayError):
    """Missing or empty caption, or missing background image."""


class ConfigError(OverlayError, ValueError):
    """StyleConfig values outside their allowed ranges."""


class CodecError(OverlayError):
    """Background image could not be decoded."""


class ResourceError(OverlayError):
    """A required font could not be loaded and fallback is disabled."""
