"""
Loading of ``walletguard.config.yaml``.

Only the ``walletguard:`` section is read, so the settings can live in a
larger application config file. String values may reference the environment:

- ``${NAME}`` must be set
- ``${NAME:-fallback}`` uses ``fallback`` when unset
- ``${NAME:?hint}`` fails with ``hint`` when unset
"""

import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from ..exceptions import ConfigurationError
from .schema import WalletGuardConfig

DEFAULT_CONFIG_FILE = "walletguard.config.yaml"
CONFIG_SECTION = "walletguard"

ENV_REFERENCE = re.compile(r"\$\{(?P<name>[^}:]+)(?:(?P<op>:-|:\?)(?P<arg>[^}]*))?\}")


def expand_env_references(value: Any) -> Any:
    """Resolve ``${...}`` references in every string of a parsed YAML tree."""
    if isinstance(value, str):
        return ENV_REFERENCE.sub(_resolve_reference, value)
    if isinstance(value, dict):
        return {key: expand_env_references(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env_references(item) for item in value]
    return value


def _resolve_reference(match: re.Match) -> str:
    name, op, arg = match.group("name"), match.group("op"), match.group("arg")
    resolved = os.environ.get(name)
    if resolved is not None:
        return resolved

    if op == ":-":
        return arg
    if op == ":?":
        raise ConfigurationError(f"Required environment variable '{name}' not set: {arg}")
    raise ConfigurationError(f"Environment variable '{name}' not set")


class WalletGuardConfigLoader:
    """Reads and validates WalletGuard settings."""

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> WalletGuardConfig:
        """Load the ``walletguard`` section of a YAML config file.

        Args:
            config_path: Config file; ./walletguard.config.yaml when omitted

        Raises:
            ConfigurationError: If the file is missing, unparsable, has no
                walletguard section or fails validation
        """
        path = cls.validate_config_exists(config_path)

        try:
            document = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(document, dict):
            raise ConfigurationError(f"{path} must contain a mapping")
        if document.get(CONFIG_SECTION) is None:
            raise ConfigurationError(f"No '{CONFIG_SECTION}' section found in {path}")

        return cls.from_dict(document[CONFIG_SECTION])

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> WalletGuardConfig:
        """Validate an already-parsed ``walletguard`` section."""
        section = expand_env_references(raw or {})
        if not isinstance(section, dict):
            raise ConfigurationError("Invalid walletguard configuration: expected a mapping")

        try:
            return WalletGuardConfig.model_validate(section)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid walletguard configuration: {e}", {"errors": e.errors()}
            ) from e

    @classmethod
    def get_default_config_path(cls) -> Path:
        return Path.cwd() / DEFAULT_CONFIG_FILE

    @classmethod
    def validate_config_exists(cls, config_path: Optional[Path] = None) -> Path:
        path = Path(config_path) if config_path is not None else cls.get_default_config_path()
        if not path.is_file():
            raise ConfigurationError(f"Configuration file not found: {path}")
        return path
