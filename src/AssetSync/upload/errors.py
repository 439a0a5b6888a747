"""Error taxonomy for uploads and sync passes."""

from typing import Optional


class SyncError(RuntimeError):
    """Base class for every failure raised while syncing assets."""


class ConfigurationError(SyncError):
    """Project or credential settings make the requested sync impossible."""


class NoneBackendError(ConfigurationError):
    """Raised when the ``none`` target is asked to upload a changed asset."""

    def __init__(self, message: str = "Cannot upload assets with the 'none' target."):
        super().__init__(message)


class RateLimitedError(SyncError):
    """The upload service asked us to slow down, or every retry attempt was used up."""

    def __init__(
        self,
        message: str = "Rate-limited trying to upload assets. Try again in a little bit.",
    ):
        super().__init__(message)


class ApiError(SyncError):
    """The upload service rejected a request."""

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class ModeratedNameError(ApiError):
    """The upload was refused because of its display name, not its content."""


class TransportError(SyncError):
    """The request never produced a usable response (network, bad JSON, missing fields)."""


class AssetResolutionError(SyncError):
    """The service accepted an upload but never confirmed its asset id in time.

    The remote side may still finish the upload later; only confirmation
    failed.
    """


class SyncAbortedError(SyncError):
    """A fatal error stopped the sync pass before every input was processed."""

    def __init__(self, message: str, report=None):
        super().__init__(message)
        self.report = report
