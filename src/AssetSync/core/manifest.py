"""Manifest store: the outcome of the previous sync, per asset name."""

import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional

from .asset_id import AssetIdentifier, parse_asset_id
from .records import ImageSlice

logger = logging.getLogger("asset_sync.manifest")
MANIFEST_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class ManifestEntry:
    """What the last successful sync recorded for one asset name."""

    hash: str
    packable: bool
    id: AssetIdentifier
    slice: Optional[ImageSlice] = None

    def to_dict(self) -> dict:
        """Return the JSON form of this entry."""
        data = {"hash": self.hash, "packable": self.packable, "id": str(self.id)}
        if self.slice is not None:
            data["slice"] = self.slice.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ManifestEntry":
        """Parse an entry, raising ``ValueError`` on malformed fields."""
        if not isinstance(data.get("hash"), str):
            raise ValueError("'hash' must be a string")
        if not isinstance(data.get("packable"), bool):
            raise ValueError("'packable' must be a boolean")
        raw_slice = data.get("slice")
        if raw_slice is not None and not isinstance(raw_slice, dict):
            raise ValueError("'slice' must be a mapping")
        try:
            slice_ = ImageSlice.from_dict(raw_slice) if raw_slice is not None else None
        except (KeyError, TypeError) as exc:
            raise ValueError(f"'slice' is incomplete: {exc}") from exc
        return cls(
            hash=data["hash"],
            packable=data["packable"],
            id=parse_asset_id(data.get("id")),
            slice=slice_,
        )


class Manifest:
    """Mapping of asset name to ``ManifestEntry`` with atomic JSON persistence.

    Entries are only ever replaced as a whole. A missing file loads as an
    empty manifest; a corrupt one raises, because silently discarding it
    would re-upload every asset in the project.
    """

    def __init__(self, entries: Optional[Dict[str, ManifestEntry]] = None):
        """Wrap an optional initial set of entries."""
        self._entries: Dict[str, ManifestEntry] = dict(entries or {})

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._entries))

    def get(self, name: str) -> Optional[ManifestEntry]:
        """Return the entry for ``name`` or ``None``."""
        return self._entries.get(name)

    def set(self, name: str, entry: ManifestEntry) -> None:
        """Replace the entry for ``name`` as a whole."""
        self._entries[name] = entry

    def items(self):
        """Return ``(name, entry)`` pairs sorted by name."""
        return sorted(self._entries.items())

    def identifiers(self) -> Iterable[AssetIdentifier]:
        """Return every recorded identifier, deduplicated and sorted by text."""
        return sorted({e.id for e in self._entries.values()}, key=str)

    @staticmethod
    def _validate_schema(data) -> bool:
        """Validate top-level manifest structure to fail fast on corrupt data."""
        if not isinstance(data, dict):
            return False
        inputs = data.get("inputs", {})
        if not isinstance(inputs, dict):
            return False
        return all(isinstance(k, str) and isinstance(v, dict) for k, v in inputs.items())

    @classmethod
    def load(cls, path: str) -> "Manifest":
        """Load a manifest file; an absent file yields an empty manifest."""
        if not os.path.exists(path):
            logger.info("No manifest at %s; treating every input as changed.", path)
            return cls()
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Malformed manifest '{path}': {e}") from e
        except OSError as e:
            raise OSError(f"Failed to read manifest '{path}': {e}") from e

        if not cls._validate_schema(data):
            raise ValueError(f"Manifest '{path}' has invalid structure")
        version = data.get("schema_version", MANIFEST_SCHEMA_VERSION)
        if isinstance(version, int) and version > MANIFEST_SCHEMA_VERSION:
            logger.warning(
                "Manifest '%s' has schema_version=%d, but this build only "
                "supports up to version %d.",
                path, version, MANIFEST_SCHEMA_VERSION,
            )

        entries = {}
        for name, raw in data.get("inputs", {}).items():
            try:
                entries[name] = ManifestEntry.from_dict(raw)
            except ValueError as e:
                raise ValueError(
                    f"Failed to parse manifest '{path}' entry '{name}': {e}"
                ) from e
        logger.info(f"Loaded manifest: {len(entries)} entries")
        return cls(entries)

    def save(self, path: str) -> None:
        """Write the manifest atomically (temp file, fsync, replace)."""
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        data = {
            "schema_version": MANIFEST_SCHEMA_VERSION,
            "last_saved": time.strftime("%Y-%m-%dT%H:%M:%S"),
            "inputs": {name: entry.to_dict() for name, entry in self.items()},
        }
        tmp_path = f"{path}.tmp.{os.getpid()}"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=False)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        finally:
            if os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    pass
        logger.info(f"Manifest saved: {path} ({len(self)} entries)")
