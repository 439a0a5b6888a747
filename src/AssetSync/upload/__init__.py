"""Upload dispatcher: backends, retry policy, and the upload service contract."""

from .errors import (
    SyncError,
    ConfigurationError,
    NoneBackendError,
    RateLimitedError,
    ApiError,
    ModeratedNameError,
    TransportError,
    AssetResolutionError,
    SyncAbortedError,
)
from .service import (
    AssetCreator,
    PendingOperation,
    UploadService,
    HttpUploadService,
)
from .backends import (
    UploadInfo,
    SyncBackend,
    RemoteSyncBackend,
    LocalSyncBackend,
    DebugSyncBackend,
    NoneSyncBackend,
)
from .retry import RetryBackend

__all__ = [
    "SyncError", "ConfigurationError", "NoneBackendError", "RateLimitedError",
    "ApiError", "ModeratedNameError", "TransportError", "AssetResolutionError",
    "SyncAbortedError",
    "AssetCreator", "PendingOperation", "UploadService", "HttpUploadService",
    "UploadInfo", "SyncBackend", "RemoteSyncBackend", "LocalSyncBackend",
    "DebugSyncBackend", "NoneSyncBackend",
    "RetryBackend",
]
