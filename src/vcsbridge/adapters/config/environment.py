"""
Environment Config Provider - Load configuration from environment variables.

Precedence (highest first):
1. CLI overrides
2. Environment variables
3. .env file in the working directory
4. Config file (YAML/TOML, see FileConfigProvider)

Variables:
    VCS_PROVIDER            azure_repos (default), github, gitlab, ...
    VCS_API_ENDPOINT        https://dev.azure.com/<org>
    VCS_TOKEN               personal access token
    VCS_PROJECT             Azure DevOps project
    VCS_USERNAME
    VCS_REPOSITORY
    VCSBRIDGE_LOG_LEVEL     debug | info | warning | error
    VCSBRIDGE_LOG_FORMAT    text | json
    VCSBRIDGE_TIMEOUT       per-call timeout in seconds
"""

import logging
import os
from pathlib import Path
from typing import Any

from vcsbridge.core.exceptions import ConfigFileError, ConfigValidationError
from vcsbridge.core.ports.config_provider import AppConfig, ConfigProviderPort

from .file_config import (
    FileConfigProvider,
    build_app_config,
    get_nested,
    merge_nested,
    set_nested,
)


logger = logging.getLogger("EnvironmentConfigProvider")

ENV_MAPPING = {
    "VCS_PROVIDER": "provider",
    "VCS_API_ENDPOINT": "vcs.api_endpoint",
    "VCS_TOKEN": "vcs.token",
    "VCS_PROJECT": "vcs.project",
    "VCS_USERNAME": "vcs.username",
    "VCS_REPOSITORY": "vcs.repository",
    "VCSBRIDGE_LOG_LEVEL": "logging.level",
    "VCSBRIDGE_LOG_FORMAT": "logging.format",
    "VCSBRIDGE_TIMEOUT": "timeout",
}

# argparse destination -> config key
CLI_MAPPING = {
    "provider": "provider",
    "endpoint": "vcs.api_endpoint",
    "token": "vcs.token",
    "project": "vcs.project",
    "log_format": "logging.format",
    "timeout": "timeout",
}


def parse_env_file(path: Path) -> dict[str, str]:
    """
    Parse a .env file of KEY=VALUE lines.

    Blank lines and '#' comments are skipped; an 'export ' prefix and
    matching surrounding quotes are removed.
    """
    values: dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export ") :]
        key, _, value = line.partition("=")
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        values[key.strip()] = value
    return values


class EnvironmentConfigProvider(ConfigProviderPort):
    """Configuration provider layering CLI, environment, .env and file values."""

    def __init__(
        self,
        config_file: Path | None = None,
        env_file: Path | None = None,
        cli_overrides: dict[str, Any] | None = None,
    ):
        """
        Args:
            config_file: Optional YAML/TOML file (lowest precedence)
            env_file: .env file; ./.env when None
            cli_overrides: argparse namespace as a dict (see CLI_MAPPING)
        """
        self._config_file = config_file
        self._env_file = env_file
        self._cli_overrides = cli_overrides or {}
        self._data: dict[str, Any] | None = None
        self._errors: list[str] = []

    @property
    def name(self) -> str:
        if self._config_file:
            return f"Environment + {self._config_file}"
        return "Environment"

    # -------------------------------------------------------------------------
    # ConfigProviderPort
    # -------------------------------------------------------------------------

    def load(self) -> AppConfig:
        return build_app_config(self._get_data())

    def get(self, key: str, default: Any = None) -> Any:
        return get_nested(self._get_data(), key, default)

    def set(self, key: str, value: Any) -> None:
        set_nested(self._get_data(), key, value)

    def validate(self) -> list[str]:
        data = self._get_data()
        errors = list(self._errors)
        try:
            config = build_app_config(data)
        except ConfigValidationError as e:
            return [*errors, *e.errors]
        return [*errors, *config.validate()]

    # -------------------------------------------------------------------------
    # Layering
    # -------------------------------------------------------------------------

    def _get_data(self) -> dict[str, Any]:
        if self._data is None:
            data = self._file_values()
            data = merge_nested(data, self._env_values(self._dotenv_values()))
            data = merge_nested(data, self._env_values(dict(os.environ)))
            data = merge_nested(data, self._cli_values())
            self._data = data
        return self._data

    def _file_values(self) -> dict[str, Any]:
        if self._config_file is None:
            return {}
        try:
            return FileConfigProvider(config_path=self._config_file).read_file_data()
        except ConfigFileError as e:
            self._errors.append(e.message)
            return {}

    def _dotenv_values(self) -> dict[str, str]:
        path = self._env_file or Path.cwd() / ".env"
        if not path.is_file():
            return {}
        logger.debug(f"Loading environment from {path}")
        return parse_env_file(path)

    @staticmethod
    def _env_values(source: dict[str, str]) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for env_name, key in ENV_MAPPING.items():
            value = source.get(env_name)
            if value:
                set_nested(values, key, value)
        return values

    def _cli_values(self) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for arg_name, key in CLI_MAPPING.items():
            value = self._cli_overrides.get(arg_name)
            if value is not None:
                set_nested(values, key, value)
        if self._cli_overrides.get("verbose"):
            set_nested(values, "logging.level", "debug")
        return values
