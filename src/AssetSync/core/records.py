"""In-memory records for one sync pass."""

import os
from dataclasses import dataclass, asdict
from typing import Optional

from .asset_id import AssetIdentifier


@dataclass(frozen=True)
class ImageSlice:
    """Sub-rectangle of a packed sheet that holds one logical image."""

    x: int
    y: int
    width: int
    height: int

    def __post_init__(self) -> None:
        """Reject negative offsets and empty rectangles."""
        if self.x < 0 or self.y < 0:
            raise ValueError(f"ImageSlice offset must be >= 0, got ({self.x}, {self.y})")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"ImageSlice size must be > 0, got {self.width}x{self.height}"
            )

    def to_dict(self) -> dict:
        """Return slice fields as a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ImageSlice":
        """Build a slice from a manifest dictionary."""
        return cls(
            x=int(data["x"]), y=int(data["y"]),
            width=int(data["width"]), height=int(data["height"]),
        )


@dataclass(frozen=True)
class InputConfig:
    """Settings resolved from the nearest input rule that matched a file."""

    packable: bool = False
    codegen: bool = False
    codegen_base_path: str = "."


@dataclass
class SyncInput:
    """One discovered input file (or one DPI variant of a logical image).

    Records are created by the input catalog, filled in from the previous
    manifest or from an upload, and read by code generation.
    """

    name: str
    path: str
    path_without_dpi_scale: str
    dpi_scale: int
    config: InputConfig
    contents: bytes
    hash: str
    id: Optional[AssetIdentifier] = None
    slice: Optional[ImageSlice] = None

    def is_unchanged_since_last_sync(self, old_entry) -> bool:
        """Return True when neither the bytes nor packability changed."""
        return self.hash == old_entry.hash and self.config.packable == old_entry.packable

    def human_name(self) -> str:
        """Return a non-unique, human-friendly label for log messages."""
        stem = os.path.splitext(os.path.basename(self.path_without_dpi_scale))[0]
        if self.path == self.path_without_dpi_scale:
            return stem
        scale = self.dpi_scale / 100
        label = f"{scale:g}"
        return f"{stem} ({label}x)"
