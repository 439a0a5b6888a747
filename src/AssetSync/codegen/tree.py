"""Group codegen-enabled inputs into a folder tree keyed by path segment."""

import logging
import posixpath
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Tuple, Union

from ..core.paths import collapse_segments
from ..core.records import SyncInput

logger = logging.getLogger("asset_sync.codegen")


class CodegenTreeError(ValueError):
    """An input cannot be placed in the codegen tree."""


@dataclass
class CodegenLeaf:
    """All DPI variants of one logical image, keyed by scale in percent."""

    variants: Dict[int, SyncInput] = field(default_factory=dict)

    def sorted_variants(self) -> List[Tuple[int, SyncInput]]:
        return sorted(self.variants.items())


@dataclass
class CodegenFolder:
    children: Dict[str, "CodegenNode"] = field(default_factory=dict)

    def sorted_children(self) -> List[Tuple[str, "CodegenNode"]]:
        return sorted(self.children.items())

    def __len__(self) -> int:
        return len(self.children)


CodegenNode = Union[CodegenFolder, CodegenLeaf]


def codegen_segments(inp: SyncInput) -> List[str]:
    """Return the tree path of an input: its canonical path without extension,
    relative to its codegen base path, with ``.``/``..`` collapsed.
    """
    stem = posixpath.splitext(inp.path_without_dpi_scale.replace("\\", "/"))[0]
    try:
        relative = PurePosixPath(stem).relative_to(
            PurePosixPath(inp.config.codegen_base_path.replace("\\", "/"))
        )
    except ValueError as e:
        raise CodegenTreeError(
            f"{inp.path}: codegen base path '{inp.config.codegen_base_path}' "
            f"is not a parent of '{inp.path_without_dpi_scale}'"
        ) from e
    try:
        segments = collapse_segments(relative.parts)
    except ValueError as e:
        raise CodegenTreeError(f"{inp.path}: {e}") from e
    if not segments:
        raise CodegenTreeError(f"{inp.path}: empty path relative to codegen base path")
    return segments


def build_codegen_tree(inputs: Iterable[SyncInput]) -> CodegenFolder:
    """Build the codegen tree for every input with ``config.codegen`` set.

    The result depends only on the set of inputs, not their order.

    Raises:
        CodegenTreeError: on a path that cannot be made relative or that
            collapses above its base, a name used both as a folder and as an
            image, or two inputs with the same path and DPI scale.
    """
    root = CodegenFolder()
    count = 0
    for inp in inputs:
        if not inp.config.codegen:
            continue
        segments = codegen_segments(inp)

        folder = root
        for depth, segment in enumerate(segments[:-1]):
            node = folder.children.setdefault(segment, CodegenFolder())
            if not isinstance(node, CodegenFolder):
                raise CodegenTreeError(
                    f"{inp.path}: '{'/'.join(segments[:depth + 1])}' is both an "
                    f"image and a folder"
                )
            folder = node

        name = segments[-1]
        leaf = folder.children.setdefault(name, CodegenLeaf())
        if not isinstance(leaf, CodegenLeaf):
            raise CodegenTreeError(
                f"{inp.path}: '{'/'.join(segments)}' is both an image and a folder"
            )
        existing = leaf.variants.get(inp.dpi_scale)
        if existing is not None:
            raise CodegenTreeError(
                f"{inp.path} and {existing.path} both map to "
                f"'{'/'.join(segments)}' at {inp.dpi_scale}% scale"
            )
        leaf.variants[inp.dpi_scale] = inp
        count += 1

    logger.debug("Built codegen tree from %d inputs", count)
    return root


def dpi_key(dpi_scale: int) -> Union[int, float]:
    """Scale multiplier used as a key in generated code (200 -> 2, 150 -> 1.5)."""
    return dpi_scale // 100 if dpi_scale % 100 == 0 else dpi_scale / 100


def asset_uri(inp: SyncInput) -> str:
    """Rendered identifier of an input, which must have been synced."""
    if inp.id is None:
        raise CodegenTreeError(f"{inp.path} has no asset id; sync it before codegen")
    return str(inp.id)
