"""Define typed configuration models for a sync project.

Use `ProjectConfig` to load, validate, and persist project settings, and
`Credentials` to assemble upload credentials once at startup.
"""

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

import yaml

from . import CONFIG_FILE_NAME
from .upload.errors import ConfigurationError
from .upload.service import AssetCreator

logger = logging.getLogger("asset_sync.config")

API_KEY_ENV = "ASSETSYNC_API_KEY"
USER_ID_ENV = "ASSETSYNC_USER_ID"

SYNC_TARGETS = ("remote", "none", "debug", "local")


@dataclass
class InputRule:
    """Select input files by glob and attach per-input settings."""

    glob: str = ""
    codegen: bool = False
    codegen_base_path: str = "."
    packable: bool = False


@dataclass
class CodegenConfig:
    """Where generated bindings are written (empty = language disabled)."""

    lua_path: str = ""
    typescript_path: str = ""


@dataclass
class SyncConfig:
    """Upload target selection and rate-limit retry policy."""

    target: str = "remote"
    max_retries: int = 0
    retry_delay: float = 60.0
    local_content_path: str = ""
    local_scope: str = ""
    debug_dir: str = ".assetsync-debug"


@dataclass
class RemoteConfig:
    """Settings for the HTTP upload service."""

    base_url: str = ""
    download_url: str = ""
    timeout_seconds: float = 30.0
    poll_max_retries: int = 5
    poll_initial_sleep: float = 0.05
    upload_description: str = "Uploaded by AssetSync."


@dataclass
class PreprocessConfig:
    """Image preprocessing applied to changed inputs before upload."""

    alpha_bleed: bool = True
    supported_formats: List[str] = field(default_factory=lambda: [
        ".png", ".jpg", ".jpeg", ".bmp", ".tga",
    ])


_SUPPORTED_CONFIG_VERSION = 1

# List-valued fields whose items are themselves dataclasses.
_LIST_ITEM_TYPES = {"inputs": InputRule}


@dataclass
class ProjectConfig:
    """Master project configuration."""

    config_version: int = 1
    name: str = ""
    project_dir: str = "."
    manifest_path: str = "asset-manifest.json"
    upload_to_group_id: Optional[int] = None
    log_level: str = "INFO"

    inputs: List[InputRule] = field(default_factory=list)
    codegen: CodegenConfig = field(default_factory=CodegenConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    preprocess: PreprocessConfig = field(default_factory=PreprocessConfig)

    @classmethod
    def locate(cls, path: Optional[str] = None) -> str:
        """Resolve a config path or project folder to the config file path."""
        path = path or os.getcwd()
        if os.path.isdir(path):
            path = os.path.join(path, CONFIG_FILE_NAME)
        return os.path.abspath(path)

    @classmethod
    def from_yaml(cls, path: str) -> "ProjectConfig":
        """Load project configuration from YAML.

        ``project_dir`` is always the directory containing the file; it is
        never read from the YAML itself.
        """
        if not os.path.exists(path):
            raise ValueError(f"Config file not found: {path}")
        data = _read_yaml_mapping(path)
        yaml_version = data.get("config_version", 1)
        if isinstance(yaml_version, int) and yaml_version > _SUPPORTED_CONFIG_VERSION:
            logger.warning(
                "Config file '%s' has config_version=%d, but this build only "
                "supports up to version %d. Some settings may be ignored.",
                path, yaml_version, _SUPPORTED_CONFIG_VERSION,
            )
        data.pop("project_dir", None)
        config = cls()
        config.project_dir = os.path.dirname(os.path.abspath(path))
        try:
            _merge_dict_to_dataclass(config, data)
            if not config.name:
                config.name = os.path.basename(config.project_dir)
            config.validate()
        except ValueError as exc:
            raise ValueError(f"{path}: {exc}") from exc
        return config

    def to_yaml(self, path: str):
        """Write project configuration to a YAML file."""
        data = dataclasses.asdict(self)
        data.pop("project_dir", None)
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        tmp_path = f"{path}.tmp.{os.getpid()}"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
            os.replace(tmp_path, path)
        finally:
            if os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    pass

    def resolve_path(self, path: str) -> str:
        """Resolve a config-relative path against the project directory."""
        if not path:
            return ""
        return os.path.normpath(os.path.join(self.project_dir, path))

    def validate(self):
        """Validate configuration values. Raises ValueError on invalid config."""
        errors = []

        valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level.upper() not in valid_log_levels:
            errors.append(
                f"log_level must be one of {sorted(valid_log_levels)}, "
                f"got '{self.log_level}'"
            )
        if not self.manifest_path:
            errors.append("manifest_path must not be empty")
        if self.upload_to_group_id is not None and (
            isinstance(self.upload_to_group_id, bool)
            or not isinstance(self.upload_to_group_id, int)
            or self.upload_to_group_id < 0
        ):
            errors.append("upload_to_group_id must be a non-negative integer")

        errors.extend(validate_input_rules(self.inputs))

        # Sync
        if self.sync.target not in SYNC_TARGETS:
            errors.append(
                f"sync.target must be one of {list(SYNC_TARGETS)}, got '{self.sync.target}'"
            )
        if self.sync.max_retries < 0:
            errors.append("sync.max_retries must be >= 0")
        if self.sync.retry_delay < 0:
            errors.append("sync.retry_delay must be >= 0")
        if not self.sync.debug_dir:
            errors.append("sync.debug_dir must not be empty")

        # Remote
        if self.remote.timeout_seconds <= 0:
            errors.append("remote.timeout_seconds must be > 0")
        if self.remote.poll_max_retries < 0:
            errors.append("remote.poll_max_retries must be >= 0")
        if self.remote.poll_initial_sleep < 0:
            errors.append("remote.poll_initial_sleep must be >= 0")
        for key in ("base_url", "download_url"):
            url = getattr(self.remote, key)
            if url and not url.startswith(("http://", "https://")):
                errors.append(f"remote.{key} must be an http(s) URL, got '{url}'")

        # Preprocess
        if not self.preprocess.supported_formats:
            errors.append(
                "preprocess.supported_formats must not be empty; no files would be synced"
            )
        for ext in self.preprocess.supported_formats:
            if not isinstance(ext, str) or not ext.startswith("."):
                errors.append(
                    f"preprocess.supported_formats entries must start with '.', got {ext!r}"
                )

        if errors:
            raise ValueError(
                "Configuration validation failed:\n" +
                "\n".join(f"  - {e}" for e in errors)
            )


def validate_input_rules(rules: List[InputRule]) -> List[str]:
    """Return validation messages for a list of input rules."""
    errors = []
    for idx, rule in enumerate(rules):
        if not isinstance(rule, InputRule):
            errors.append(f"inputs[{idx}] must be a mapping")
            continue
        if not rule.glob:
            errors.append(f"inputs[{idx}].glob must not be empty")
        elif os.path.isabs(rule.glob):
            errors.append(f"inputs[{idx}].glob must be relative, got '{rule.glob}'")
        if os.path.isabs(rule.codegen_base_path):
            errors.append(
                f"inputs[{idx}].codegen_base_path must be relative, "
                f"got '{rule.codegen_base_path}'"
            )
    return errors


def load_input_rules(path: str) -> List[InputRule]:
    """Load only the ``inputs`` rules from a nested project file.

    Raises:
        ValueError: if the file is not valid YAML or its rules are invalid.
    """
    data = _read_yaml_mapping(path)
    holder = ProjectConfig()
    _merge_dict_to_dataclass(holder, {"inputs": data.get("inputs", [])})
    errors = validate_input_rules(holder.inputs)
    if errors:
        raise ValueError(f"{path}: " + "; ".join(errors))
    return holder.inputs


def _read_yaml_mapping(path: str) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ValueError(
            f"Failed to parse YAML config '{path}': {exc}"
        ) from exc
    except OSError as exc:
        raise ValueError(f"Failed to read config '{path}': {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Config file '{path}' must contain a YAML mapping, "
            f"got {type(data).__name__}"
        )
    return data


def _merge_dict_to_dataclass(obj, data: dict, _path: str = ""):
    for key, value in data.items():
        full_key = f"{_path}{key}"
        if not hasattr(obj, key):
            logger.warning(f"Unknown config key ignored: '{full_key}'")
            continue
        field_val = getattr(obj, key)
        if dataclasses.is_dataclass(field_val) and isinstance(value, dict):
            _merge_dict_to_dataclass(field_val, value, f"{full_key}.")
            continue
        if key in _LIST_ITEM_TYPES and not _path:
            if not isinstance(value, list):
                raise ValueError(
                    f"Config key '{full_key}' must be a list, got {type(value).__name__}"
                )
            items = []
            for idx, item in enumerate(value):
                if not isinstance(item, dict):
                    raise ValueError(
                        f"Config key '{full_key}[{idx}]' must be a mapping, "
                        f"got {type(item).__name__}"
                    )
                rule = _LIST_ITEM_TYPES[key]()
                _merge_dict_to_dataclass(rule, item, f"{full_key}[{idx}].")
                items.append(rule)
            setattr(obj, key, items)
            continue
        # Reject None for fields with non-None defaults
        if value is None and field_val is not None:
            logger.warning(
                f"Config key '{full_key}' is null but field default is "
                f"{type(field_val).__name__}. Using default value."
            )
            continue
        expected_type = type(field_val)
        # Check type compatibility (allow int->float and float->int promotion)
        if (field_val is not None
                and not isinstance(value, expected_type)
                and not (expected_type is float
                         and isinstance(value, int))
                and not (expected_type is int
                         and isinstance(value, float)
                         and value == int(value))):
            logger.warning(
                f"Config type mismatch for '{full_key}': "
                f"expected {expected_type.__name__}, "
                f"got {type(value).__name__} ({value!r}). "
                f"Using default value."
            )
            continue
        # Promote exact-integer floats to int (e.g. YAML 4.0 -> 4)
        if (expected_type is int and isinstance(value, float)
                and value == int(value)):
            value = int(value)
        setattr(obj, key, value)


@dataclass(frozen=True, repr=False)
class Credentials:
    """Upload credentials assembled once at startup.

    Precedence for each value: explicit CLI flag, then environment
    variable, then project configuration (group id only).
    """

    api_key: Optional[str] = None
    user_id: Optional[int] = None
    group_id: Optional[int] = None

    def __repr__(self) -> str:
        masked = "***" if self.api_key else None
        return (
            f"Credentials(api_key={masked!r}, user_id={self.user_id!r}, "
            f"group_id={self.group_id!r})"
        )

    @classmethod
    def resolve(
        cls,
        api_key: Optional[str] = None,
        user_id: Optional[int] = None,
        group_id: Optional[int] = None,
        environ: Optional[Mapping[str, str]] = None,
        config: Optional[ProjectConfig] = None,
    ) -> "Credentials":
        """Combine flags, environment and project config into credentials."""
        env = os.environ if environ is None else environ
        if not api_key:
            api_key = env.get(API_KEY_ENV) or None
        if user_id is None:
            raw = env.get(USER_ID_ENV)
            if raw:
                try:
                    user_id = int(raw)
                except ValueError as exc:
                    raise ConfigurationError(
                        f"{USER_ID_ENV} must be a numeric user id, got {raw!r}"
                    ) from exc
        if group_id is None and config is not None:
            group_id = config.upload_to_group_id
        return cls(api_key=api_key, user_id=user_id, group_id=group_id)

    def creator(self) -> AssetCreator:
        """Return the upload creator, rejecting missing or ambiguous identity."""
        if self.group_id is not None and self.user_id is not None:
            raise ConfigurationError("Group ID and user ID cannot both be specified")
        if self.group_id is not None:
            return AssetCreator.group(self.group_id)
        if self.user_id is not None:
            return AssetCreator.user(self.user_id)
        raise ConfigurationError(
            "Either a group or a user ID must be specified when uploading "
            f"(use --group-id/--user-id or set {USER_ID_ENV})"
        )

    def require_api_key(self) -> str:
        """Return the API key or raise ``ConfigurationError``."""
        if not self.api_key:
            raise ConfigurationError(
                f"No API key found (use --api-key or set {API_KEY_ENV})"
            )
        return self.api_key


def summarize_rules(rules: List[InputRule]) -> Dict[str, int]:
    """Count rules by flag for startup logging."""
    return {
        "rules": len(rules),
        "codegen": sum(1 for r in rules if r.codegen),
        "packable": sum(1 for r in rules if r.packable),
    }
