"""Error taxonomy for the relay core.

Only ``ConfigError`` escapes to callers. Everything raised while talking to the
device or the payload source is caught inside the component that raised it and
turned into a retry or a boolean failure.
"""


class RelayError(Exception):
    """Base class for relay errors."""

    pass


class ConfigError(RelayError):
    """Invalid configuration or sequence parameters."""

    pass


class InvalidGoalError(ConfigError):
    """Flow goal parameters are missing or empty."""

    pass


class TransientNotFound(RelayError):
    """Element absent from the current snapshot."""

    pass


class TargetNotFoundError(TransientNotFound):
    """Input element not found."""

    pass


class SendControlNotFoundError(TransientNotFound):
    """Send control did not render after text was entered."""

    pass


class TimeoutExceeded(RelayError):
    """Send operation ran past its overall timeout."""

    pass


class ConcurrentRejection(RelayError):
    """A send is already in progress."""

    pass


class SourceFetchError(RelayError):
    """Payload source fetch or parse failed."""

    pass
