class SyncError(Exception):
    """Base class for errors raised by the sync jobs."""


class ConfigurationError(SyncError):
    """A required setting is missing or malformed. Raised before any stage runs."""


class AuthError(SyncError):
    """Token acquisition against an upstream authority failed."""


class UpstreamDecodeError(SyncError):
    """An upstream payload could not be unwrapped into the expected shape."""
