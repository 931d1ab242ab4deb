"""Configuration management for Time Ledger.

Settings live in a YAML file and are addressed with dotted keys such as
``general.user_id``. Values missing from the file fall back to
``DEFAULT_CONFIG``; the merged result is checked against a JSON schema.
"""

import copy
import secrets
from pathlib import Path
from typing import Any, Iterator, Optional

import yaml  # type: ignore[import-untyped]
from jsonschema import ValidationError as SchemaValidationError  # type: ignore[import-untyped]
from jsonschema import validate  # type: ignore[import-untyped]

DEFAULT_PATH = Path.home() / ".time-ledger" / "config.yml"

DEFAULT_CONFIG: dict[str, Any] = {
    "version": "1.0",
    "general": {
        "data_dir": "~/.time-ledger/data",
        "user_id": "local-user",
        "date_format": "%Y-%m-%d",
        "time_format": "%H:%M",
    },
    "display": {
        "show_seconds": True,
        "recent_limit": 5,
        "history_limit": 20,
    },
    "advanced": {
        "backup_on_start": False,
        "log_level": "WARNING",
        "log_file": None,
    },
    "api": {
        "enabled": False,
        "host": "localhost",
        "port": 8000,
        "authentication": {
            "enabled": True,
            "token_expiry_hours": 24,
            "secret_key": None,
        },
        "cors": {
            "enabled": True,
            "origins": ["http://localhost:3000"],
        },
        "advanced": {
            "reload": False,
            "log_level": "info",
            "access_log": True,
        },
    },
}


def _section(**properties: Any) -> dict[str, Any]:
    return {"type": "object", "properties": properties}


def _int(low: int, high: Optional[int] = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "integer", "minimum": low}
    if high is not None:
        schema["maximum"] = high
    return schema


STRING = {"type": "string"}
BOOLEAN = {"type": "boolean"}
OPTIONAL_STRING = {"type": ["string", "null"]}

CONFIG_SCHEMA: dict[str, Any] = {
    **_section(
        version=STRING,
        general=_section(
            data_dir=STRING,
            user_id={"type": "string", "minLength": 1},
            date_format=STRING,
            time_format=STRING,
        ),
        display=_section(
            show_seconds=BOOLEAN,
            recent_limit=_int(0, 50),
            history_limit=_int(1),
        ),
        advanced=_section(
            backup_on_start=BOOLEAN,
            log_level={"type": "string", "enum": ["DEBUG", "INFO", "WARNING", "ERROR"]},
            log_file=OPTIONAL_STRING,
        ),
        api=_section(
            enabled=BOOLEAN,
            host=STRING,
            port=_int(1, 65535),
            authentication=_section(
                enabled=BOOLEAN,
                token_expiry_hours=_int(1, 8760),
                secret_key=OPTIONAL_STRING,
            ),
            cors=_section(
                enabled=BOOLEAN,
                origins={"type": "array", "items": STRING},
            ),
            advanced=_section(
                reload=BOOLEAN,
                log_level=STRING,
                access_log=BOOLEAN,
            ),
        ),
    ),
    "required": ["version"],
}


def merge_settings(base: dict[str, Any], override: dict[str, Any]) -> None:
    """Recursively overlay override onto base, in place."""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merge_settings(base[key], value)
        else:
            base[key] = value


def iter_leaf_keys(settings: dict[str, Any], prefix: str = "") -> Iterator[str]:
    """Yield the dotted key of every non-section value."""
    for key, value in settings.items():
        dotted = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            yield from iter_leaf_keys(value, dotted)
        else:
            yield dotted


class ConfigManager:
    """YAML-backed application settings."""

    def __init__(self, config_path: Optional[Path] = None):
        """Load settings, writing a default file on first use.

        Args:
            config_path: Path to config file. Defaults to ~/.time-ledger/config.yml

        Raises:
            ValueError: If the existing file fails validation. The file is
                moved aside to ``config.yml.backup`` and defaults are written.
        """
        self.config_path = config_path or DEFAULT_PATH
        self._config: dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)

        if not self.config_path.exists():
            self.save()
            return

        with open(self.config_path, encoding="utf-8") as f:
            merge_settings(self._config, yaml.safe_load(f) or {})
        try:
            self.validate()
        except ValueError as e:
            backup_path = self.config_path.with_suffix(".yml.backup")
            self.config_path.rename(backup_path)
            self.reset()
            raise ValueError(
                f"Config validation failed, backed up to {backup_path}. "
                f"Using defaults. Error: {e}"
            ) from e

    @property
    def data_dir(self) -> Path:
        return Path(self.get("general.data_dir", "~/.time-ledger/data")).expanduser()

    @property
    def user_id(self) -> str:
        """Identity used to scope reads and mutations."""
        return str(self.get("general.user_id", "local-user"))

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key.

        A missing key, a null value, or a path that runs through a
        non-section value all give ``default``.

        Example:
            >>> config.get('display.recent_limit')
            5
        """
        node: Any = self._config
        for part in key.split("."):
            if not isinstance(node, dict) or node.get(part) is None:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        """Store a dotted key and persist the file.

        Raises:
            ValueError: If the result fails validation; nothing is changed
        """
        *sections, leaf = key.split(".")
        candidate = copy.deepcopy(self._config)
        node = candidate
        for part in sections:
            node = node.setdefault(part, {})
        node[leaf] = value

        self._check(candidate)
        self._config = candidate
        self.save()

    def validate(self) -> bool:
        """Check the current settings against the schema.

        Raises:
            ValueError: If configuration is invalid
        """
        self._check(self._config)
        return True

    @staticmethod
    def _check(settings: dict[str, Any]) -> None:
        try:
            validate(instance=settings, schema=CONFIG_SCHEMA)
        except SchemaValidationError as e:
            raise ValueError(f"Invalid configuration: {e.message}") from e

    def save(self) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self._config, f, default_flow_style=False, sort_keys=False)

    def reset(self) -> None:
        """Restore and persist the defaults."""
        self._config = copy.deepcopy(DEFAULT_CONFIG)
        self.save()

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._config)

    def get_all_keys(self, prefix: str = "") -> list[str]:
        """Dotted keys of every leaf value, optionally under a section."""
        section = self.get(prefix, {}) if prefix else self._config
        if not isinstance(section, dict):
            return []
        return list(iter_leaf_keys(section, prefix))

    def ensure_api_secret_key(self) -> str:
        """Return the API signing secret, generating and saving one if unset."""
        secret_key: Optional[str] = self.get("api.authentication.secret_key")
        if not secret_key:
            secret_key = secrets.token_urlsafe(32)
            self.set("api.authentication.secret_key", secret_key)
        return secret_key
