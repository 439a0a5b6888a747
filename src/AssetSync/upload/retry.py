"""Rate-limit retry decorator for sync backends."""

import logging
import time
from typing import Callable

from .backends import SyncBackend
from .errors import RateLimitedError

logger = logging.getLogger("asset_sync.upload.retry")


class RetryBackend(SyncBackend):
    """Retry ``inner.upload`` on `RateLimitedError` only.

    Makes at most ``max_retries + 1`` attempts and sleeps ``delay`` seconds
    between attempts, never before the first. Any other error propagates
    immediately.
    """

    def __init__(
        self,
        inner: SyncBackend,
        max_retries: int,
        delay: float,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self.inner = inner
        self.max_retries = max_retries
        self.delay = delay
        self._sleep = sleep

    @property
    def supports_partial_success(self):
        return self.inner.supports_partial_success

    def upload(self, info):
        for attempt in range(self.max_retries + 1):
            if attempt:
                logger.info(
                    "Retrying upload of %s in %.1fs (attempt %d/%d)",
                    info.name, self.delay, attempt + 1, self.max_retries + 1,
                )
                self._sleep(self.delay)
            try:
                return self.inner.upload(info)
            except RateLimitedError:
                logger.warning("Rate limited uploading %s", info.name)
        raise RateLimitedError()
