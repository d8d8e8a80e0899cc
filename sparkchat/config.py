"""Configuration management for the Spark chat client."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, TextIO

import structlog
import yaml
from dotenv import load_dotenv

from sparkchat.llm.models import (
    DEFAULT_UID,
    VERSION_SPECS,
    Credentials,
    ProtocolVersion,
    VersionSpec,
)

logger = structlog.get_logger(__name__)

DEFAULT_URL_TEMPLATE = "wss://spark-api.xf-yun.com/{version}/chat"
DEFAULT_TEMPERATURE = 0.5
DEFAULT_MAX_TOKENS = 2048
DEFAULT_TOP_K = 4
MIN_TOP_K = 1
MAX_TOP_K = 6

# max_tokens is validated against the version, so version goes first
OPTION_ORDER = (
    "version", "temperature", "max_tokens", "top_k",
    "output", "receive_timeout", "uid", "url_template",
)

CREDENTIAL_ENV_KEYS = {
    "app_id": "SPARK_APP_ID",
    "api_key": "SPARK_API_KEY",
    "api_secret": "SPARK_API_SECRET",
}


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


class ChatSettings:
    """
    Per-client session configuration.

    Every setter is permissive: a value outside its valid range is ignored
    and the previous value is kept.
    """

    def __init__(self) -> None:
        self._version = ProtocolVersion.V1
        self._temperature = DEFAULT_TEMPERATURE
        self._max_tokens = DEFAULT_MAX_TOKENS
        self._top_k = DEFAULT_TOP_K
        self._output: TextIO = sys.stderr
        self._receive_timeout: float | None = None
        self._uid = DEFAULT_UID
        self._url_template = DEFAULT_URL_TEMPLATE

    @staticmethod
    def _ignored(field: str, value: Any) -> None:
        logger.warning("Ignoring invalid chat setting", field=field, value=value)

    @property
    def version(self) -> ProtocolVersion:
        return self._version

    @version.setter
    def version(self, value: ProtocolVersion | int) -> None:
        try:
            self._version = ProtocolVersion(value)
        except (ValueError, TypeError):
            self._ignored("version", value)

    @property
    def version_spec(self) -> VersionSpec:
        return VERSION_SPECS[self._version]

    @property
    def domain(self) -> str:
        return self.version_spec.domain

    @property
    def base_url(self) -> str:
        return self.url_template.format(version=self.version_spec.path_version)

    @property
    def temperature(self) -> float:
        """Sampling threshold in [0, 1]."""
        return self._temperature

    @temperature.setter
    def temperature(self, value: float) -> None:
        if _is_number(value) and 0 <= value <= 1:
            self._temperature = float(value)
        else:
            self._ignored("temperature", value)

    @property
    def max_tokens(self) -> int:
        """Maximum answer length, bounded by the active version."""
        return self._max_tokens

    @max_tokens.setter
    def max_tokens(self, value: int) -> None:
        limit = self.version_spec.max_tokens_limit
        if isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= limit:
            self._max_tokens = value
        else:
            self._ignored("max_tokens", value)

    @property
    def top_k(self) -> int:
        """Candidate pool size in [1, 6]."""
        return self._top_k

    @top_k.setter
    def top_k(self, value: int) -> None:
        if isinstance(value, int) and not isinstance(value, bool) and MIN_TOP_K <= value <= MAX_TOP_K:
            self._top_k = value
        else:
            self._ignored("top_k", value)

    @property
    def output(self) -> TextIO:
        return self._output

    @output.setter
    def output(self, value: TextIO) -> None:
        if callable(getattr(value, "write", None)):
            self._output = value
        else:
            self._ignored("output", value)

    @property
    def receive_timeout(self) -> float | None:
        """Seconds to wait for each frame; None waits forever."""
        return self._receive_timeout

    @receive_timeout.setter
    def receive_timeout(self, value: float | None) -> None:
        if value is None or (_is_number(value) and value > 0):
            self._receive_timeout = value
        else:
            self._ignored("receive_timeout", value)

    @property
    def uid(self) -> str:
        return self._uid

    @uid.setter
    def uid(self, value: str | int) -> None:
        # unquoted YAML ids arrive as int
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str) and value.strip():
            self._uid = value
        else:
            self._ignored("uid", value)

    @property
    def url_template(self) -> str:
        """Endpoint with a {version} placeholder."""
        return self._url_template

    @url_template.setter
    def url_template(self, value: str) -> None:
        if isinstance(value, str) and "{version}" in value:
            self._url_template = value
        else:
            self._ignored("url_template", value)

    def apply(self, **options: Any) -> ChatSettings:
        """
        Apply options in a fixed order so max_tokens is checked against
        the chosen version.
        """
        unknown = set(options) - set(OPTION_ORDER)
        if unknown:
            raise TypeError(f"Unknown chat options: {', '.join(sorted(unknown))}")
        for name in OPTION_ORDER:
            if name in options and options[name] is not None:
                setattr(self, name, options[name])
        return self


class Configuration:
    """Manages configuration and environment variables for the Spark client."""

    def __init__(self, config_path: str | os.PathLike[str] | None = None) -> None:
        """Initialize configuration from YAML and environment variables."""
        self.load_env()  # Load .env for credentials
        self._config = self._load_yaml_config(config_path)

    @staticmethod
    def load_env() -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    @staticmethod
    def _load_yaml_config(config_path: str | os.PathLike[str] | None) -> dict[str, Any]:
        """Load configuration from YAML file."""
        path = Path(config_path) if config_path else Path(__file__).with_name("config.yaml")
        with open(path) as file:
            config = yaml.safe_load(file)
            if not isinstance(config, dict):
                raise ValueError(
                    f"Config file must be YAML dict, got {type(config)}"
                )
            return config

    @property
    def credentials(self) -> Credentials:
        """Get the Spark credentials from the environment.

        Raises:
            ValueError: If any credential is missing.
        """
        values = {}
        for field, env_key in CREDENTIAL_ENV_KEYS.items():
            value = os.getenv(env_key)
            if not value:
                raise ValueError(
                    f"Credential '{env_key}' not found in environment variables"
                )
            values[field] = value
        return Credentials(**values)

    def get_spark_config(self) -> dict[str, Any]:
        """Get the spark chat section from YAML.

        Returns:
            Chat option dictionary, possibly empty.
        """
        spark_config = self._config.get("spark") or {}
        if not isinstance(spark_config, dict):
            raise ValueError("spark section in config.yaml must be a mapping")
        return spark_config

    def get_logging_config(self) -> dict[str, Any]:
        """Get the logging section from YAML.

        Returns:
            Logging option dictionary, possibly empty.
        """
        logging_config = self._config.get("logging") or {}
        if not isinstance(logging_config, dict):
            raise ValueError("logging section in config.yaml must be a mapping")
        return logging_config

    def build_settings(self, **overrides: Any) -> ChatSettings:
        """Build chat settings from YAML values, then explicit overrides."""
        options = {**self.get_spark_config(), **overrides}
        return ChatSettings().apply(**options)
