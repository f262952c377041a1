"""
File Config Provider - Load configuration from YAML or TOML files.

Supported files (auto-detected in the working directory, in this order):
- .vcsbridge.yaml / .vcsbridge.yml
- .vcsbridge.toml
- pyproject.toml ([tool.vcsbridge] section)

Example .vcsbridge.yaml:

    provider: azure_repos
    vcs:
      api_endpoint: https://dev.azure.com/my-org
      token: my-pat
      project: my-project
    logging:
      level: info
      format: text
    timeout: 30
"""

import logging
import tomllib
from pathlib import Path
from typing import Any

import yaml

from vcsbridge.core.domain.enums import VcsProvider
from vcsbridge.core.exceptions import ConfigFileError, ConfigValidationError
from vcsbridge.core.ports.config_provider import AppConfig, ConfigProviderPort, VcsInfo


logger = logging.getLogger("FileConfigProvider")

CONFIG_FILE_NAMES = (
    ".vcsbridge.yaml",
    ".vcsbridge.yml",
    ".vcsbridge.toml",
)

PYPROJECT_FILE = "pyproject.toml"


# =============================================================================
# Helpers shared by the config providers
# =============================================================================


def get_nested(data: dict[str, Any], key: str, default: Any = None) -> Any:
    """Look up a dot-notation key ('vcs.token') in nested dicts."""
    current: Any = data
    for part in key.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


def set_nested(data: dict[str, Any], key: str, value: Any) -> None:
    """Set a dot-notation key, creating intermediate dicts."""
    parts = key.split(".")
    current = data
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, dict):
            child = {}
            current[part] = child
        current = child
    current[parts[-1]] = value


def merge_nested(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_nested(merged[key], value)
        else:
            merged[key] = value
    return merged


def parse_log_level(value: Any) -> int:
    """Accept a level name ('debug') or number."""
    if isinstance(value, int):
        return value
    level = logging.getLevelName(str(value).strip().upper())
    if not isinstance(level, int):
        raise ConfigValidationError([f"Invalid log level: {value!r}"])
    return level


def build_app_config(data: dict[str, Any]) -> AppConfig:
    """
    Build AppConfig from a nested configuration dict.

    Raises:
        ConfigValidationError: If a value cannot be interpreted
    """
    errors: list[str] = []

    provider = VcsProvider.AZURE_REPOS
    provider_value = data.get("provider")
    if provider_value:
        try:
            provider = VcsProvider.from_string(str(provider_value))
        except ValueError as e:
            errors.append(str(e))

    timeout = data.get("timeout")
    if timeout is not None and timeout != "":
        try:
            timeout = float(timeout)
        except (TypeError, ValueError):
            errors.append(f"Invalid timeout: {timeout!r}")
            timeout = None
    else:
        timeout = None

    log_level = logging.INFO
    try:
        log_level = parse_log_level(get_nested(data, "logging.level", "info"))
    except ConfigValidationError as e:
        errors.extend(e.errors)

    if errors:
        raise ConfigValidationError(errors)

    vcs = VcsInfo(
        api_endpoint=str(get_nested(data, "vcs.api_endpoint", "") or ""),
        token=str(get_nested(data, "vcs.token", "") or ""),
        project=str(get_nested(data, "vcs.project", "") or ""),
        username=str(get_nested(data, "vcs.username", "") or ""),
        repository=str(get_nested(data, "vcs.repository", "") or ""),
    )

    return AppConfig(
        vcs=vcs,
        provider=provider,
        log_level=log_level,
        log_format=str(get_nested(data, "logging.format", "text") or "text").lower(),
        timeout=timeout,
    )


# =============================================================================
# Provider
# =============================================================================


class FileConfigProvider(ConfigProviderPort):
    """
    Configuration provider that reads a YAML or TOML file.

    CLI overrides (nested dict, dot-notation keys allowed) win over file values.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        cli_overrides: dict[str, Any] | None = None,
    ):
        """
        Args:
            config_path: Explicit config file; auto-detected when None
            cli_overrides: Values taking precedence over the file
        """
        self._config_path = config_path
        self._cli_overrides = cli_overrides or {}
        self._data: dict[str, Any] | None = None

    @property
    def name(self) -> str:
        path = self.config_path
        return f"File ({path})" if path else "File (none)"

    @property
    def config_path(self) -> Path | None:
        """The file in use: explicit, or the first one found in the cwd."""
        if self._config_path is not None:
            return self._config_path
        return self._find_config_file()

    # -------------------------------------------------------------------------
    # ConfigProviderPort
    # -------------------------------------------------------------------------

    def load(self) -> AppConfig:
        data = self._get_data()
        return build_app_config(data)

    def get(self, key: str, default: Any = None) -> Any:
        return get_nested(self._get_data(), key, default)

    def set(self, key: str, value: Any) -> None:
        set_nested(self._get_data(), key, value)

    def validate(self) -> list[str]:
        try:
            data = self._get_data()
        except ConfigFileError as e:
            return [e.message]

        try:
            config = build_app_config(data)
        except ConfigValidationError as e:
            return list(e.errors)

        return config.validate()

    # -------------------------------------------------------------------------
    # File loading
    # -------------------------------------------------------------------------

    def read_file_data(self) -> dict[str, Any]:
        """
        Read the raw nested dict from the config file ({} when there is none).

        Raises:
            ConfigFileError: If an explicit file is missing or a file is malformed
        """
        path = self.config_path
        if path is None:
            return {}
        if not path.exists():
            raise ConfigFileError(f"Config file not found: {path}", path=str(path))

        logger.debug(f"Loading configuration from {path}")
        if path.suffix in (".yaml", ".yml"):
            return self._load_yaml(path)
        if path.name == PYPROJECT_FILE:
            return self._load_toml(path).get("tool", {}).get("vcsbridge", {})
        if path.suffix == ".toml":
            return self._load_toml(path)
        raise ConfigFileError(f"Unsupported config file format: {path.suffix}", path=str(path))

    def _get_data(self) -> dict[str, Any]:
        if self._data is None:
            data = self.read_file_data()
            overrides: dict[str, Any] = {}
            for key, value in self._cli_overrides.items():
                if value is not None:
                    set_nested(overrides, key, value)
            self._data = merge_nested(data, overrides)
        return self._data

    @staticmethod
    def _load_yaml(path: Path) -> dict[str, Any]:
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigFileError(
                f"Invalid YAML syntax in {path}: {e}", path=str(path), cause=e
            ) from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigFileError(f"Expected a mapping at the top of {path}", path=str(path))
        return data

    @staticmethod
    def _load_toml(path: Path) -> dict[str, Any]:
        try:
            return tomllib.loads(path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise ConfigFileError(
                f"Invalid TOML syntax in {path}: {e}", path=str(path), cause=e
            ) from e

    @staticmethod
    def _find_config_file() -> Path | None:
        cwd = Path.cwd()
        for name in CONFIG_FILE_NAMES:
            candidate = cwd / name
            if candidate.is_file():
                return candidate

        pyproject = cwd / PYPROJECT_FILE
        if pyproject.is_file():
            try:
                data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
            except (OSError, tomllib.TOMLDecodeError):
                return None
            if "vcsbridge" in data.get("tool", {}):
                return pyproject
        return None
