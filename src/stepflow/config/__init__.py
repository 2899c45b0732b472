"""StepFlow configuration: settings schema and YAML loader."""

from stepflow.config.loader import ConfigLoader
from stepflow.config.schema import DEFAULT_WAIT_TIMEOUT_SECONDS, Settings

__all__ = ["ConfigLoader", "Settings", "DEFAULT_WAIT_TIMEOUT_SECONDS"]
