"""Orchestrate one sync pass end to end.

`SyncSession` scans the project, compares inputs against the last manifest,
preprocesses and uploads only the changed ones, writes the manifest once,
and generates bindings when the whole pass succeeded. The module also holds
the manifest-driven `write_asset_list` and `create_cache_map` operations.
"""

import json
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from tqdm import tqdm

from . import __version__
from .codegen import CodegenTreeError, perform_codegen, write_text_atomic
from .config import Credentials, ProjectConfig, summarize_rules
from .core.asset_id import RemoteAssetId
from .core.manifest import Manifest, ManifestEntry
from .core.preprocess import PngPreprocessor
from .core.scanning import InputError, classify_inputs, scan_inputs
from .upload.backends import (
    DebugSyncBackend,
    LocalSyncBackend,
    NoneSyncBackend,
    RemoteSyncBackend,
    SyncBackend,
    UploadInfo,
)
from .upload.errors import (
    ConfigurationError,
    RateLimitedError,
    SyncAbortedError,
    SyncError,
)
from .upload.retry import RetryBackend
from .upload.service import HttpUploadService, UploadService

logger = logging.getLogger("asset_sync")


@dataclass
class SyncReport:
    """Outcome of one pass."""

    total: int = 0
    unchanged: int = 0
    uploaded: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)
    input_errors: List[InputError] = field(default_factory=list)
    codegen_outputs: List[str] = field(default_factory=list)
    aborted: Optional[str] = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.failed and not self.input_errors and self.aborted is None


def create_upload_service(config: ProjectConfig, credentials: Credentials) -> UploadService:
    """Build the HTTP upload service client from project settings."""
    if not config.remote.base_url:
        raise ConfigurationError(
            "remote.base_url must be set in the project config to upload remotely"
        )
    return HttpUploadService(
        api_key=credentials.require_api_key(),
        base_url=config.remote.base_url,
        download_url=config.remote.download_url,
        timeout=config.remote.timeout_seconds,
    )


def create_backend(
    config: ProjectConfig,
    credentials: Optional[Credentials] = None,
    target: Optional[str] = None,
    max_retries: Optional[int] = None,
    retry_delay: Optional[float] = None,
    service: Optional[UploadService] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> SyncBackend:
    """Build the backend for ``target`` wrapped in the rate-limit retry policy.

    Explicit arguments override the ``sync`` section of the config.

    Raises:
        ConfigurationError: if the target is unknown or missing settings.
    """
    target = target or config.sync.target
    max_retries = config.sync.max_retries if max_retries is None else max_retries
    retry_delay = config.sync.retry_delay if retry_delay is None else retry_delay

    if target == "none":
        inner = NoneSyncBackend()
    elif target == "debug":
        inner = DebugSyncBackend(config.resolve_path(config.sync.debug_dir))
    elif target == "local":
        if not config.sync.local_content_path:
            raise ConfigurationError(
                "sync.local_content_path must be set to use the 'local' target"
            )
        try:
            inner = LocalSyncBackend(
                config.resolve_path(config.sync.local_content_path),
                config.sync.local_scope or None,
            )
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
    elif target == "remote":
        credentials = credentials or Credentials.resolve(config=config)
        creator = credentials.creator()
        if service is None:
            service = create_upload_service(config, credentials)
        inner = RemoteSyncBackend(
            service,
            creator,
            description=config.remote.upload_description,
            poll_max_retries=config.remote.poll_max_retries,
            poll_initial_sleep=config.remote.poll_initial_sleep,
            sleep=sleep,
        )
    else:
        raise ConfigurationError(f"Unknown sync target: {target!r}")

    if max_retries < 0 or retry_delay < 0:
        raise ConfigurationError("Retry count and delay must be >= 0")
    logger.debug(
        "Using %s backend (retries=%d, delay=%.1fs)", target, max_retries, retry_delay
    )
    return RetryBackend(inner, max_retries, retry_delay, sleep=sleep)


class SyncSession:
    """One sync pass over a project.

    Changed inputs are handled strictly in catalog order, one at a time.
    The manifest is written exactly once at the end of the pass, even when
    it fails: successes are recorded and every failed input keeps whatever
    entry it had before.
    """

    def __init__(
        self,
        config: ProjectConfig,
        backend: SyncBackend,
        preprocessor: Optional[Callable] = None,
        show_progress: bool = True,
    ):
        self.config = config
        self.backend = backend
        self.preprocessor = preprocessor or PngPreprocessor(
            alpha_bleed=config.preprocess.alpha_bleed
        )
        self.show_progress = show_progress

    @property
    def manifest_path(self) -> str:
        return self.config.resolve_path(self.config.manifest_path)

    def run(self) -> SyncReport:
        """Run the pass and return its report.

        Raises:
            SyncAbortedError: when a fatal error stopped the pass. The
                partial report is attached as ``.report``.
        """
        start_time = time.time()
        report = SyncReport()
        logger.info("=" * 60)
        logger.info(f"AssetSync v{__version__}: {self.config.name}")
        logger.info("=" * 60)
        logger.info(f"Project:  {self.config.project_dir}")
        logger.info(f"Manifest: {self.manifest_path}")
        rule_counts = summarize_rules(self.config.inputs)
        logger.info(
            f"Rules:    {rule_counts['rules']} "
            f"({rule_counts['codegen']} codegen, {rule_counts['packable']} packable)"
        )

        try:
            old_manifest = Manifest.load(self.manifest_path)
        except (OSError, ValueError) as exc:
            report.aborted = str(exc)
            logger.error("Cannot read manifest: %s", exc)
            raise SyncAbortedError(f"Cannot read manifest: {exc}", report) from exc

        catalog = scan_inputs(self.config)
        report.total = len(catalog.inputs)
        report.input_errors = list(catalog.errors)
        unchanged, changed = classify_inputs(catalog.inputs, old_manifest)
        report.unchanged = len(unchanged)

        new_manifest = Manifest()
        for inp in unchanged:
            new_manifest.set(inp.name, old_manifest.get(inp.name))

        fatal_error = None
        try:
            fatal_error = self._upload_changed(changed, old_manifest, new_manifest, report)
        finally:
            # Changed inputs without a fresh entry keep their old one.
            for inp in changed:
                if inp.name not in new_manifest:
                    self._keep_old(inp, old_manifest, new_manifest)
            if catalog.errors:
                # Inputs under an unreadable config or file were never seen;
                # keep their old entries.
                seen = {inp.name for inp in catalog.inputs}
                for name, entry in old_manifest.items():
                    if name not in seen:
                        new_manifest.set(name, entry)
            new_manifest.save(self.manifest_path)

        if report.ok:
            try:
                report.codegen_outputs = perform_codegen(self.config, catalog.inputs)
            except CodegenTreeError as exc:
                fatal_error = exc
                report.aborted = f"Codegen failed: {exc}"
                logger.error(report.aborted)
        else:
            logger.warning("Skipping codegen because the sync did not fully succeed")

        report.elapsed = time.time() - start_time
        self._log_summary(report)

        if fatal_error is not None:
            raise SyncAbortedError(report.aborted or str(fatal_error), report) from fatal_error
        return report

    def _upload_changed(self, changed, old_manifest, new_manifest, report):
        """Upload changed inputs; return the fatal error that stopped the loop, if any."""
        fatal_error = None
        progress = tqdm(
            changed, desc="Uploading", unit="asset", disable=not self.show_progress
        )
        with progress:
            for idx, inp in enumerate(progress):
                try:
                    result = self.preprocessor(inp.contents)
                except ValueError as exc:
                    self._fail(inp, f"Preprocessing failed: {exc}", old_manifest,
                               new_manifest, report)
                    continue

                info = UploadInfo(name=inp.name, contents=result.contents, hash=inp.hash)
                try:
                    inp.id = self.backend.upload(info)
                except (ConfigurationError, RateLimitedError) as exc:
                    fatal_error = exc
                except (SyncError, OSError) as exc:
                    if not self.backend.supports_partial_success:
                        fatal_error = exc
                    else:
                        self._fail(inp, str(exc), old_manifest, new_manifest, report)
                        continue

                if fatal_error is not None:
                    report.aborted = f"{inp.human_name()}: {fatal_error}"
                    logger.error("Sync aborted while uploading %s: %s", inp.name, fatal_error)
                    self._fail(inp, str(fatal_error), old_manifest, new_manifest, report)
                    for rest in changed[idx + 1:]:
                        report.skipped.append(rest.name)
                        self._keep_old(rest, old_manifest, new_manifest)
                    break

                inp.slice = result.slice
                new_manifest.set(inp.name, ManifestEntry(
                    hash=inp.hash,
                    packable=inp.config.packable,
                    id=inp.id,
                    slice=inp.slice,
                ))
                report.uploaded.append(inp.name)
                logger.debug("Synced %s -> %s", inp.name, inp.id)
        return fatal_error

    @staticmethod
    def _keep_old(inp, old_manifest, new_manifest):
        entry = old_manifest.get(inp.name)
        if entry is not None:
            new_manifest.set(inp.name, entry)

    def _fail(self, inp, message, old_manifest, new_manifest, report):
        inp.id = None
        report.failed[inp.name] = message
        logger.error("Failed to sync %s: %s", inp.human_name(), message)
        self._keep_old(inp, old_manifest, new_manifest)

    @staticmethod
    def _log_summary(report: SyncReport):
        logger.info("=" * 60)
        logger.info(
            f"SYNC {'COMPLETE' if report.ok else 'FAILED'} in {report.elapsed:.1f}s: "
            f"{report.total} inputs, {report.unchanged} unchanged, "
            f"{len(report.uploaded)} uploaded, {len(report.failed)} failed"
        )
        for err in report.input_errors:
            logger.error(f"  Input error: {err}")
        for name, message in sorted(report.failed.items()):
            logger.error(f"  {name}: {message}")
        if report.skipped:
            logger.warning(f"  {len(report.skipped)} inputs not attempted")
        for path in report.codegen_outputs:
            logger.info(f"  Generated: {path}")
        logger.info("=" * 60)


def write_asset_list(config: ProjectConfig, output_path: str) -> int:
    """Write every asset id in the manifest to ``output_path``, one per line."""
    manifest = Manifest.load(config.resolve_path(config.manifest_path))
    ids = [str(asset_id) for asset_id in manifest.identifiers()]
    write_text_atomic(output_path, "".join(f"{i}\n" for i in ids))
    logger.info(f"Wrote {len(ids)} asset ids to {output_path}")
    return len(ids)


def create_cache_map(
    config: ProjectConfig,
    service: UploadService,
    cache_dir: str,
    index_file: str,
) -> Dict[str, str]:
    """Download every remote asset in the manifest into ``cache_dir``.

    Files are named ``<id>.png`` and are only downloaded when missing. The
    index maps each rendered identifier to its cached path, relative to the
    index file's folder. Local identifiers already point at files and are
    skipped.
    """
    manifest = Manifest.load(config.resolve_path(config.manifest_path))
    os.makedirs(cache_dir, exist_ok=True)
    index_dir = os.path.dirname(os.path.abspath(index_file))
    index = {}
    remote_ids = [i for i in manifest.identifiers() if isinstance(i, RemoteAssetId)]
    for asset_id in tqdm(remote_ids, desc="Downloading", unit="asset"):
        path = os.path.join(cache_dir, f"{asset_id.id}.png")
        if not os.path.exists(path):
            contents = service.download(asset_id.id)
            tmp_path = f"{path}.tmp.{os.getpid()}"
            with open(tmp_path, "wb") as f:
                f.write(contents)
            os.replace(tmp_path, path)
            logger.debug("Downloaded %s to %s", asset_id, path)
        index[str(asset_id)] = os.path.relpath(
            os.path.abspath(path), index_dir
        ).replace(os.sep, "/")
    write_text_atomic(index_file, json.dumps(index, indent=2, sort_keys=True) + "\n")
    logger.info(f"Cache map written: {index_file} ({len(index)} assets)")
    return index
