"""Error types raised by the MapNav service clients and navigator."""


class MapNavError(Exception):
    """Base class for every recoverable MapNav error."""


class NotFound(MapNavError):
    """The upstream service answered but had no matching result."""


class ServiceError(MapNavError):
    """The upstream service could not be reached or sent a malformed reply."""


class InvalidRouteError(MapNavError, ValueError):
    """A route cannot be navigated (for example it has no steps)."""
