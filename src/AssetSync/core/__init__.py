"""Core utilities -- re-exports the leaf modules for convenience.

``scanning`` is imported directly (``AssetSync.core.scanning``) because it
depends on the project configuration.
"""

from .asset_id import (
    RemoteAssetId,
    LocalAssetId,
    AssetIdentifier,
    parse_asset_id,
)
from .paths import (
    DEFAULT_DPI_SCALE,
    collapse_segments,
    normalize_rel_asset_path,
    split_dpi_scale,
)
from .records import ImageSlice, InputConfig, SyncInput
from .manifest import Manifest, ManifestEntry
from .preprocess import PngPreprocessor, PreprocessResult, alpha_bleed
from .logging import setup_logging, level_from_verbosity

__all__ = [
    "RemoteAssetId", "LocalAssetId", "AssetIdentifier", "parse_asset_id",
    "DEFAULT_DPI_SCALE", "collapse_segments", "normalize_rel_asset_path",
    "split_dpi_scale",
    "ImageSlice", "InputConfig", "SyncInput",
    "Manifest", "ManifestEntry",
    "PngPreprocessor", "PreprocessResult", "alpha_bleed",
    "setup_logging", "level_from_verbosity",
]
