"""Entrypoint for `python -m AssetSync`.

Usage:
  - Sync a project:   `python -m AssetSync sync --target debug`
  - Upload an image:  `python -m AssetSync upload-image icon.png --name Icon`
"""
import logging

logger = logging.getLogger("asset_sync")


def _run_cli():
    from .cli import main as cli_main
    logger.debug("Dispatching to CLI entrypoint.")
    cli_main()


if __name__ == "__main__":
    _run_cli()
