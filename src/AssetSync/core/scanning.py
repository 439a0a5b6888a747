"""Input catalog: discover input files, hash them, and detect changes."""

import hashlib
import logging
import os
import posixpath
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .. import CONFIG_FILE_NAME
from ..config import InputRule, ProjectConfig, load_input_rules
from .manifest import Manifest
from .paths import glob_literal_prefix, glob_to_regex, split_dpi_scale
from .records import InputConfig, SyncInput

logger = logging.getLogger("asset_sync.scanning")


def file_hash_bytes(data: bytes) -> str:
    """Compute SHA-256 hash from in-memory bytes."""
    return hashlib.sha256(data).hexdigest()


def file_hash(filepath: str) -> str:
    """Compute SHA-256 hash of a file, streaming it in chunks."""
    h = hashlib.sha256()
    with open(filepath, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


@dataclass
class InputError:
    """An input file or nested config that could not be read."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


@dataclass
class InputCatalog:
    """Inputs discovered in one pass, in walk order, plus per-file errors."""

    inputs: List[SyncInput] = field(default_factory=list)
    errors: List[InputError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def by_name(self) -> Dict[str, SyncInput]:
        return {i.name: i for i in self.inputs}


@dataclass
class _CompiledRule:
    rule: InputRule
    pattern: "re.Pattern[str]"
    prefix_len: int


def _compile_rules(rules: List[InputRule]) -> List[_CompiledRule]:
    return [
        _CompiledRule(r, glob_to_regex(r.glob), len(glob_literal_prefix(r.glob)))
        for r in rules
    ]


def _best_rule(rules: List[_CompiledRule], rel_path: str) -> Optional[_CompiledRule]:
    """Return the matching rule with the longest literal prefix (first wins ties)."""
    best = None
    for compiled in rules:
        if not compiled.pattern.match(rel_path):
            continue
        if best is None or compiled.prefix_len > best.prefix_len:
            best = compiled
    return best


def _resolve_rule(
    rules_by_dir: Dict[str, List[_CompiledRule]], rel_path: str
) -> Optional[Tuple[str, InputRule]]:
    """Find the rule for a project-relative path.

    Configs are tried from the file's nearest enclosing folder up to the
    project root; the first config with a matching rule wins.
    """
    directory = posixpath.dirname(rel_path)
    while True:
        rules = rules_by_dir.get(directory)
        if rules:
            local = rel_path[len(directory) + 1:] if directory else rel_path
            match = _best_rule(rules, local)
            if match is not None:
                return directory, match.rule
        if not directory:
            return None
        directory = posixpath.dirname(directory)


def _input_config(config_dir: str, rule: InputRule) -> InputConfig:
    base = posixpath.normpath(posixpath.join(config_dir, rule.codegen_base_path or "."))
    return InputConfig(
        packable=rule.packable,
        codegen=rule.codegen,
        codegen_base_path=base,
    )


def scan_inputs(config: ProjectConfig) -> InputCatalog:
    """Walk the project and build one `SyncInput` per matched image file.

    Hidden folders and files are skipped. Nested project files contribute their
    ``inputs`` rules rooted at their own folder; a nested file that fails
    to load is recorded as an error and its subtree is skipped. Unreadable
    input files are recorded and skipped without stopping the walk.
    """
    root = config.project_dir
    root_real = os.path.realpath(root)
    supported = {ext.lower() for ext in config.preprocess.supported_formats}
    catalog = InputCatalog()
    rules_by_dir: Dict[str, List[_CompiledRule]] = {"": _compile_rules(config.inputs)}

    for dirpath, dirs, files in os.walk(root):
        dirs[:] = sorted(d for d in dirs if not d.startswith("."))
        rel_dir = os.path.relpath(dirpath, root)
        rel_dir = "" if rel_dir == "." else Path(rel_dir).as_posix()

        if rel_dir and CONFIG_FILE_NAME in files:
            nested = os.path.join(dirpath, CONFIG_FILE_NAME)
            try:
                rules_by_dir[rel_dir] = _compile_rules(load_input_rules(nested))
            except ValueError as e:
                logger.error("Skipping %s: %s", rel_dir, e)
                catalog.errors.append(InputError(nested, str(e)))
                dirs[:] = []
                continue
            logger.debug("Loaded nested rules from %s", nested)

        for fname in sorted(files):
            if fname.startswith("."):
                continue
            if Path(fname).suffix.lower() not in supported:
                continue
            fpath = os.path.join(dirpath, fname)
            rel_path = posixpath.join(rel_dir, fname) if rel_dir else fname

            real_fpath = os.path.realpath(fpath)
            try:
                if os.path.commonpath([root_real, real_fpath]) != root_real:
                    logger.warning(
                        "Skipping file outside project root via symlink: %s", fpath
                    )
                    continue
            except ValueError:
                logger.warning("Skipping file with incompatible path root: %s", fpath)
                continue

            resolved = _resolve_rule(rules_by_dir, rel_path)
            if resolved is None:
                logger.debug("No input rule matches %s", rel_path)
                continue
            config_dir, rule = resolved

            try:
                with open(fpath, "rb") as f:
                    contents = f.read()
                path_without_dpi, dpi_scale = split_dpi_scale(rel_path)
            except (OSError, ValueError) as e:
                logger.warning("Failed to read %s: %s", fpath, e)
                catalog.errors.append(InputError(fpath, str(e)))
                continue

            catalog.inputs.append(SyncInput(
                name=rel_path,
                path=rel_path,
                path_without_dpi_scale=Path(path_without_dpi).as_posix(),
                dpi_scale=dpi_scale,
                config=_input_config(config_dir, rule),
                contents=contents,
                hash=file_hash_bytes(contents),
            ))

    logger.info(
        f"Scanned {len(catalog.inputs)} inputs from {root}"
        + (f" ({len(catalog.errors)} errors)" if catalog.errors else "")
    )
    return catalog


def classify_inputs(
    inputs: List[SyncInput], manifest: Manifest
) -> Tuple[List[SyncInput], List[SyncInput]]:
    """Split inputs into ``(unchanged, changed)`` against the last manifest.

    Unchanged inputs get the recorded identifier and slice carried forward;
    changed inputs have both cleared until they are uploaded again.
    """
    unchanged, changed = [], []
    for inp in inputs:
        entry = manifest.get(inp.name)
        if entry is not None and inp.is_unchanged_since_last_sync(entry):
            inp.id = entry.id
            inp.slice = entry.slice
            unchanged.append(inp)
        else:
            inp.id = None
            inp.slice = None
            changed.append(inp)
    logger.info(f"{len(unchanged)} unchanged, {len(changed)} changed")
    return unchanged, changed
