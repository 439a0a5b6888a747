"""Command-line interface for AssetSync."""

import argparse
import logging
import os
import sys

from . import CONFIG_FILE_NAME, __version__
from .config import Credentials, ProjectConfig
from .core.logging import level_from_verbosity, setup_logging
from .core.preprocess import PngPreprocessor
from .core.scanning import file_hash_bytes
from .upload.backends import UploadInfo
from .upload.errors import ConfigurationError, SyncAbortedError, SyncError

logger = logging.getLogger("asset_sync")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="assetsync",
        description="Incremental image asset sync with Lua/TypeScript codegen",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  assetsync sync
  assetsync sync --target debug path/to/{CONFIG_FILE_NAME}
  assetsync --api-key KEY sync --retry 3 --retry-delay 30
  assetsync --api-key KEY upload-image icon.png --name Icon --user-id 1234 --base-url https://assets.example.com
  assetsync asset-list --output assets.txt
  assetsync create-cache-map --cache-dir .cache --index-file cache.json
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--api-key", help="API key for the upload service")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Increase log verbosity (repeatable)")
    parser.add_argument("--log-level",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    parser.add_argument("--log-file", help="Also write logs to this rotating file")

    sub = parser.add_subparsers(dest="command", required=True)

    p_sync = sub.add_parser("sync", help="Upload changed inputs and generate bindings")
    p_sync.add_argument("config_path", nargs="?",
                        help=f"Project folder or {CONFIG_FILE_NAME} (default: cwd)")
    p_sync.add_argument("--target", choices=["remote", "none", "debug", "local"])
    p_sync.add_argument("--retry", type=int, metavar="N",
                        help="Retries after a rate-limit response")
    p_sync.add_argument("--retry-delay", type=float, metavar="SECONDS",
                        help="Delay between rate-limit retries")
    p_sync.add_argument("--no-progress", action="store_true", help="Hide the progress bar")

    p_upload = sub.add_parser("upload-image", help="Upload one image and print its id")
    p_upload.add_argument("path")
    p_upload.add_argument("--name", required=True)
    p_upload.add_argument("--description", default="")
    p_upload.add_argument("--project", help="Project folder or config for remote settings")
    p_upload.add_argument("--base-url",
                          help="Upload service URL when the project config sets none")
    creator = p_upload.add_mutually_exclusive_group()
    creator.add_argument("--group-id", type=int)
    creator.add_argument("--user-id", type=int)

    p_cache = sub.add_parser("create-cache-map",
                             help="Download synced assets into a local cache")
    p_cache.add_argument("project_path", nargs="?")
    p_cache.add_argument("--cache-dir", required=True)
    p_cache.add_argument("--index-file", required=True)

    p_list = sub.add_parser("asset-list", help="Write every synced asset id to a file")
    p_list.add_argument("project_path", nargs="?")
    p_list.add_argument("--output", required=True)

    return parser


def _load_config(path, required: bool = True) -> ProjectConfig:
    config_file = ProjectConfig.locate(path)
    if not os.path.exists(config_file) and not required:
        config = ProjectConfig()
        config.project_dir = os.path.dirname(config_file)
        return config
    return ProjectConfig.from_yaml(config_file)


def _cmd_sync(args, config: ProjectConfig) -> int:
    from .pipeline import SyncSession, create_backend

    credentials = Credentials.resolve(api_key=args.api_key, config=config)
    backend = create_backend(
        config,
        credentials,
        target=args.target,
        max_retries=args.retry,
        retry_delay=args.retry_delay,
    )
    session = SyncSession(config, backend, show_progress=not args.no_progress)
    try:
        report = session.run()
    except SyncAbortedError as exc:
        logger.error("Sync aborted: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_FAILED
    return EXIT_OK if report.ok else EXIT_FAILED


def _cmd_upload_image(args, config: ProjectConfig) -> int:
    from .pipeline import create_backend

    if args.description:
        config.remote.upload_description = args.description
    if args.base_url and not config.remote.base_url:
        if not args.base_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"--base-url must be an http(s) URL, got {args.base_url!r}")
        config.remote.base_url = args.base_url
    if not config.remote.base_url:
        raise ConfigurationError(
            "No upload service URL: pass --base-url or set remote.base_url in the project config"
        )
    credentials = Credentials.resolve(
        api_key=args.api_key,
        user_id=args.user_id,
        group_id=args.group_id,
        config=config,
    )
    backend = create_backend(config, credentials, target="remote")
    try:
        with open(args.path, "rb") as f:
            raw = f.read()
    except OSError as exc:
        print(f"Error: Cannot read {args.path}: {exc}", file=sys.stderr)
        return EXIT_FAILED
    try:
        contents = PngPreprocessor(config.preprocess.alpha_bleed).preprocess(raw).contents
    except ValueError as exc:
        print(f"Error: {args.path}: {exc}", file=sys.stderr)
        return EXIT_FAILED
    asset_id = backend.upload(UploadInfo(args.name, contents, file_hash_bytes(raw)))
    print(asset_id)
    return EXIT_OK


def _cmd_create_cache_map(args, config: ProjectConfig) -> int:
    from .pipeline import create_cache_map, create_upload_service

    credentials = Credentials.resolve(api_key=args.api_key, config=config)
    service = create_upload_service(config, credentials)
    create_cache_map(config, service, args.cache_dir, args.index_file)
    return EXIT_OK


def _cmd_asset_list(args, config: ProjectConfig) -> int:
    from .pipeline import write_asset_list

    write_asset_list(config, args.output)
    return EXIT_OK


_COMMANDS = {
    "sync": (_cmd_sync, "config_path", True),
    "upload-image": (_cmd_upload_image, "project", False),
    "create-cache-map": (_cmd_create_cache_map, "project_path", True),
    "asset-list": (_cmd_asset_list, "project_path", True),
}


def run(argv=None) -> int:
    """Parse ``argv`` and run one command; return the process exit code."""
    args = build_parser().parse_args(argv)

    # Early validation warnings from from_yaml() need a handler before the
    # configured logging is in place.
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")

    handler, path_attr, required = _COMMANDS[args.command]
    try:
        config = _load_config(getattr(args, path_attr), required=required)
    except ValueError as exc:
        logger.error("Invalid config: %s", exc)
        print(f"Error: Invalid config: {exc}", file=sys.stderr)
        return EXIT_CONFIG

    level = args.log_level or level_from_verbosity(args.verbose, config.log_level)
    setup_logging(level, args.log_file, force=True)

    try:
        return handler(args, config)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_CONFIG
    except (SyncError, OSError, ValueError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_FAILED
    except KeyboardInterrupt:
        logger.warning("Interrupted by user.")
        return 130


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
