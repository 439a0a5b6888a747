"""Provide package metadata for `AssetSync`."""

import logging as _logging

__version__ = "0.4.0"
_logger = _logging.getLogger("asset_sync")

# Name of the project file discovered at the project root and in nested
# folders that contribute their own input rules.
CONFIG_FILE_NAME = "assetsync.yaml"

__all__ = ["__version__", "CONFIG_FILE_NAME"]
