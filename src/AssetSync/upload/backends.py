"""Sync backends: where changed assets go and what identifier they get back."""

import logging
import os
import time
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Callable, Optional

from ..core.asset_id import AssetIdentifier, LocalAssetId, RemoteAssetId
from ..core.paths import normalize_rel_asset_path
from .errors import AssetResolutionError, ModeratedNameError, NoneBackendError
from .service import AssetCreator, PendingOperation, UploadService

logger = logging.getLogger("asset_sync.upload")

LOCAL_ROOT_DIR = ".assetsync"
MODERATED_FALLBACK_NAME = "image"


@dataclass(frozen=True)
class UploadInfo:
    """Everything a backend needs to store one changed asset."""

    name: str
    contents: bytes
    hash: str


class SyncBackend:
    """Base class for upload targets.

    Subclasses implement `upload` and either return the new identifier or
    raise one of the errors from `AssetSync.upload.errors`.
    """

    #: When True, a failed upload only fails that input and the pass goes on.
    supports_partial_success = False

    def upload(self, info: UploadInfo) -> AssetIdentifier:
        raise NotImplementedError


class RemoteSyncBackend(SyncBackend):
    """Upload through an `UploadService` and wait for the asset id."""

    supports_partial_success = True

    def __init__(
        self,
        service: UploadService,
        creator: AssetCreator,
        description: str = "Uploaded by AssetSync.",
        poll_max_retries: int = 5,
        poll_initial_sleep: float = 0.05,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Wrap a service client; ``sleep`` is injectable for tests."""
        if poll_max_retries < 0:
            raise ValueError("poll_max_retries must be >= 0")
        self.service = service
        self.creator = creator
        self.description = description
        self.poll_max_retries = poll_max_retries
        self.poll_initial_sleep = poll_initial_sleep
        self._sleep = sleep

    def upload(self, info):
        logger.info("Uploading %s", info.name)
        try:
            result = self.service.upload(
                info.name, info.contents, self.description, self.creator
            )
        except ModeratedNameError:
            logger.warning(
                "Name %r was moderated, retrying with name %r",
                info.name, MODERATED_FALLBACK_NAME,
            )
            result = self.service.upload(
                MODERATED_FALLBACK_NAME, info.contents, self.description, self.creator
            )
        if isinstance(result, PendingOperation):
            return RemoteAssetId(self._resolve(info.name, result))
        return RemoteAssetId(result)

    def _resolve(self, name: str, operation: PendingOperation) -> int:
        """Poll an operation: immediately, then ``initial * attempt**2`` apart."""
        for attempt in range(self.poll_max_retries + 1):
            if attempt:
                delay = self.poll_initial_sleep * attempt * attempt
                logger.debug(
                    "Operation %s for %s still pending, polling again in %.2fs",
                    operation.operation_id, name, delay,
                )
                self._sleep(delay)
            asset_id = self.service.get_operation(operation.operation_id)
            if asset_id is not None:
                return asset_id
        raise AssetResolutionError(
            f"Upload of {name} was accepted but its asset id was not available "
            f"after {self.poll_max_retries + 1} polls (operation "
            f"{operation.operation_id})"
        )


class LocalSyncBackend(SyncBackend):
    """Copy assets under ``<content_path>/.assetsync[/<scope>]``."""

    def __init__(self, content_path: str, scope: Optional[str] = None):
        """Validate the scope; ``content_path`` is created on first write."""
        self.content_path = content_path
        self._base = PurePosixPath(LOCAL_ROOT_DIR)
        if scope:
            self._base = self._base / _safe_path(scope, "scope")

    def upload(self, info):
        rel = self._base / _safe_path(info.name, "asset name")
        if rel.suffix.lower() != ".png":
            rel = rel.with_name(rel.name + ".png")
        target = os.path.join(self.content_path, *rel.parts)
        os.makedirs(os.path.dirname(target), exist_ok=True)
        logger.info("Writing %s to %s", info.name, target)
        with open(target, "wb") as f:
            f.write(info.contents)
        return LocalAssetId(rel.as_posix())


class DebugSyncBackend(SyncBackend):
    """Write each asset to ``<debug_dir>/<n>`` and hand out sequential ids."""

    def __init__(self, debug_dir: str):
        """Counting starts at 1 for every new backend."""
        self.debug_dir = debug_dir
        self._last_id = 0

    def upload(self, info):
        self._last_id += 1
        os.makedirs(self.debug_dir, exist_ok=True)
        path = os.path.join(self.debug_dir, str(self._last_id))
        logger.info("Copying %s to %s", info.name, path)
        with open(path, "wb") as f:
            f.write(info.contents)
        return RemoteAssetId(self._last_id)


class NoneSyncBackend(SyncBackend):
    """Refuse every upload; useful to check a project is fully synced."""

    def upload(self, info):
        raise NoneBackendError()


def _safe_path(path: str, what: str) -> PurePosixPath:
    try:
        return normalize_rel_asset_path(path)
    except ValueError as exc:
        raise ValueError(f"Invalid {what} {path!r}: {exc}") from exc
