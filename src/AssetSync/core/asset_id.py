"""Asset identifiers assigned by an upload target.

An identifier is either a numeric id handed out by the remote hosting
service or a path inside a local content folder. Both render to a URI-like
string that is embedded verbatim in generated code and stored in the
manifest; the scheme prefix alone decides which variant a string parses to.
"""

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Union

REMOTE_SCHEME = "remoteasset://"
LOCAL_SCHEME = "localasset://"


@dataclass(frozen=True, order=True)
class RemoteAssetId:
    """Numeric id assigned by the hosting service."""

    id: int

    def __post_init__(self) -> None:
        """Reject ids that cannot come from the service."""
        if isinstance(self.id, bool) or not isinstance(self.id, int):
            raise TypeError(f"Remote asset id must be an int, got {self.id!r}")
        if self.id < 0:
            raise ValueError(f"Remote asset id must be >= 0, got {self.id}")

    def __str__(self) -> str:
        return f"{REMOTE_SCHEME}{self.id}"


@dataclass(frozen=True, order=True)
class LocalAssetId:
    """Relative path of an asset copied into a local content folder."""

    path: str

    def __post_init__(self) -> None:
        """Store the path with forward slashes so rendering is OS-independent."""
        normalized = str(self.path).replace("\\", "/")
        if not normalized or normalized in (".", "/"):
            raise ValueError(f"Local asset path must not be empty, got {self.path!r}")
        object.__setattr__(self, "path", str(PurePosixPath(normalized)))

    def __str__(self) -> str:
        return f"{LOCAL_SCHEME}{self.path}"


AssetIdentifier = Union[RemoteAssetId, LocalAssetId]


def parse_asset_id(text: str) -> AssetIdentifier:
    """Parse the string form produced by ``str(identifier)``.

    Raises:
        ValueError: if the scheme is unknown or the payload is malformed.
    """
    if not isinstance(text, str):
        raise ValueError(f"Asset id must be a string, got {type(text).__name__}")
    if text.startswith(REMOTE_SCHEME):
        payload = text[len(REMOTE_SCHEME):]
        if not payload.isdigit():
            raise ValueError(f"Malformed remote asset id: {text!r}")
        return RemoteAssetId(int(payload))
    if text.startswith(LOCAL_SCHEME):
        return LocalAssetId(text[len(LOCAL_SCHEME):])
    raise ValueError(f"Unknown asset id scheme: {text!r}")
