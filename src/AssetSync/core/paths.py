"""Path helpers: segment collapsing, DPI suffixes, and input-rule globs."""

import os
import re
from pathlib import PurePosixPath
from typing import Iterable, List, Tuple

DEFAULT_DPI_SCALE = 100

# ``icon@2x`` / ``icon@1.5x`` -> ("icon", "2") / ("icon", "1.5")
_DPI_SUFFIX_RE = re.compile(r"^(?P<stem>.+?)@(?P<scale>\d+(?:\.\d+)?)x$")


def collapse_segments(parts: Iterable[str]) -> List[str]:
    """Collapse ``.`` and ``..`` segments lexically.

    ``..`` pops exactly one already-collected segment. Popping with nothing
    collected is a configuration error and raises ``ValueError`` instead of
    being clamped at the root.
    """
    parts = list(parts)
    segments: List[str] = []
    for part in parts:
        if part in ("", "."):
            continue
        if part == "..":
            if not segments:
                raise ValueError(
                    "Path escapes its base via '..': " + "/".join(parts)
                )
            segments.pop()
            continue
        segments.append(part)
    return segments


def normalize_rel_asset_path(rel_path: str) -> PurePosixPath:
    """Normalize a relative asset path to a canonical, traversal-free form."""
    raw = str(rel_path).replace("\\", "/")
    p = PurePosixPath(raw)
    if p.is_absolute():
        raise ValueError(f"Asset path must be relative, got absolute path: {rel_path}")
    parts = collapse_segments(list(p.parts))
    if not parts:
        raise ValueError(f"Asset path is empty after normalization: {rel_path}")
    return PurePosixPath(*parts)


def split_dpi_scale(path: str) -> Tuple[str, int]:
    """Return ``(path_without_dpi_scale, dpi_scale)`` for a file path.

    The scale is expressed in percent: ``icon@2x.png`` -> ``("icon.png", 200)``.
    Paths without a suffix get ``DEFAULT_DPI_SCALE``.
    """
    parent, filename = os.path.split(str(path))
    stem, ext = os.path.splitext(filename)
    match = _DPI_SUFFIX_RE.match(stem)
    if not match:
        return str(path), DEFAULT_DPI_SCALE
    scale = round(float(match.group("scale")) * 100)
    if scale <= 0:
        raise ValueError(f"DPI scale must be positive: {path}")
    return os.path.join(parent, match.group("stem") + ext), scale


def glob_to_regex(pattern: str) -> "re.Pattern[str]":
    """Translate an input-rule glob into a compiled regex.

    ``**`` matches across directories, ``*`` and ``?`` stay inside one
    path segment.
    """
    pattern = pattern.replace("\\", "/")
    while pattern.startswith("./"):
        pattern = pattern[2:]
    out = []
    i = 0
    while i < len(pattern):
        c = pattern[i]
        if c == "*":
            if pattern[i:i + 3] == "**/":
                out.append("(?:.*/)?")
                i += 3
                continue
            if pattern[i:i + 2] == "**":
                out.append(".*")
                i += 2
                continue
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                out.append(re.escape(c))
            else:
                body = pattern[i + 1:end]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append(f"[{body}]")
                i = end
        else:
            out.append(re.escape(c))
        i += 1
    return re.compile("^" + "".join(out) + "$")


def glob_literal_prefix(pattern: str) -> str:
    """Return the wildcard-free directory prefix of a glob."""
    parts = []
    for part in pattern.replace("\\", "/").split("/"):
        if any(ch in part for ch in "*?["):
            break
        parts.append(part)
    return "/".join(p for p in parts if p not in ("", "."))
