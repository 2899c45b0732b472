"""StepFlow settings loader.

Loads scenario settings from YAML files, YAML strings or dictionaries.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import ValidationError

from stepflow.config.schema import Settings
from stepflow.errors import ConfigurationError

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Loads and validates :class:`Settings`.

    Example YAML:
        ```yaml
        name: "Checkout"
        loop_count: 5
        step_delay: 1.5
        blocked_domains:
          - ads.example.com
        ```
    """

    @staticmethod
    def load(path: Union[str, Path]) -> Settings:
        """Load settings from a YAML file.

        Raises:
            ConfigurationError: If the file is missing or its content is invalid
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Settings file not found: {path}")
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Cannot read settings file {path}: {e}") from e
        logger.debug(f"Loading settings from {path}")
        return ConfigLoader.loads(text)

    @staticmethod
    def loads(text: str) -> Settings:
        """Load settings from a YAML string.

        Raises:
            ConfigurationError: If the YAML is malformed or fails validation
        """
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML: {e}") from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Settings must be a mapping, got {type(data).__name__}"
            )
        return ConfigLoader.from_dict(data)

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Settings:
        """Validate a settings dictionary.

        Raises:
            ConfigurationError: If validation fails
        """
        try:
            return Settings.model_validate(data)
        except ValidationError as e:
            details = [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            raise ConfigurationError("Invalid settings", details=details) from e
