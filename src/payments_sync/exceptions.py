"""Exception hierarchy for provider synchronization."""

from typing import Optional


class PaymentsSyncError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(PaymentsSyncError):
    """No usable provider settings could be resolved for a sales channel."""


class ProviderError(PaymentsSyncError):
    """Base class for failures talking to the payment provider."""


class ProviderUnavailable(ProviderError):
    """The provider could not be reached (connection, DNS, timeout)."""


class ProviderProtocolError(ProviderError):
    """The provider answered with a body that could not be decoded or validated."""


class ProviderApiError(ProviderError):
    """The provider rejected the request with a non-success status code."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RecordNotFound(PaymentsSyncError):
    """A local mirror row that was expected to exist is missing."""


class MediaPipelineFailure(PaymentsSyncError):
    """Creating a media folder or downloading/storing a media file failed."""


class PersistenceFailure(PaymentsSyncError):
    """A write against the local store failed."""
