"""Code generation: asset tree to Lua and TypeScript bindings."""

import logging
import os
from typing import Iterable, List

from .tree import (
    CodegenFolder,
    CodegenLeaf,
    CodegenTreeError,
    build_codegen_tree,
)
from .lua import render_lua
from .typescript import render_typescript

logger = logging.getLogger("asset_sync.codegen")


def write_text_atomic(path: str, text: str) -> None:
    """Write ``text`` to ``path`` via a temp file, fsync and ``os.replace``."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    tmp_path = f"{path}.tmp.{os.getpid()}"
    try:
        with open(tmp_path, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            try:
                os.remove(tmp_path)
            except OSError:
                pass


def perform_codegen(config, inputs: Iterable) -> List[str]:
    """Write every configured binding file; return the paths written.

    Raises:
        CodegenTreeError: if the inputs cannot form a tree.
    """
    targets = [
        (config.codegen.lua_path, render_lua),
        (config.codegen.typescript_path, render_typescript),
    ]
    targets = [(path, render) for path, render in targets if path]
    if not targets:
        logger.debug("No codegen outputs configured")
        return []

    tree = build_codegen_tree(inputs)
    written = []
    for rel_path, render in targets:
        path = config.resolve_path(rel_path)
        write_text_atomic(path, render(tree))
        logger.info("Generated %s", path)
        written.append(path)
    return written


__all__ = [
    "CodegenFolder", "CodegenLeaf", "CodegenTreeError", "build_codegen_tree",
    "render_lua", "render_typescript",
    "perform_codegen", "write_text_atomic",
]
