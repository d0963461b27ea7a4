"""Error taxonomy for the ride scheduling client."""
from typing import Optional

# Recorded alongside warnings when a secondary step fails after the primary
# effect succeeded. Never raised.
PARTIAL_SUCCESS = 'PartialSuccess'


class RideSchedulerError(Exception):
    """Base class for every failure the client turns into a result."""
    code = 'RideSchedulerError'

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidUrl(RideSchedulerError, ValueError):
    """Malformed event or route URL. Never reaches the network."""
    code = 'InvalidUrl'


class InvalidEvent(RideSchedulerError, ValueError):
    code = 'InvalidEvent'


class InvalidDate(RideSchedulerError, ValueError):
    code = 'InvalidDate'


class AuthRequired(RideSchedulerError):
    """A session-authenticated call was attempted without a session cookie."""
    code = 'AuthRequired'


class AuthFailed(RideSchedulerError):
    """The login call did not yield a session cookie."""
    code = 'AuthFailed'


class AlreadyCancelled(RideSchedulerError):
    code = 'AlreadyCancelled'


class NotCancelled(RideSchedulerError):
    code = 'NotCancelled'


class RemoteError(RideSchedulerError):
    """The remote service answered with an unexpected status or body."""
    code = 'RemoteError'


class TransportError(RideSchedulerError):
    """The transport could not complete the request (DNS, timeout, reset)."""
    code = 'TransportError'


class CredentialsError(RideSchedulerError):
    code = 'CredentialsError'
