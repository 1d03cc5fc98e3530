"""Configuration manager module for engine settings.

This module loads the YAML configuration file and validates it against
the EngineConfig schema.
"""

import logging
from typing import Optional

import yaml
from pydantic import BaseModel, ValidationError

from engine.engine_config import EngineConfig

logger = logging.getLogger(__name__)


class ConfigManager(BaseModel):
    """Configuration management for the timer engine.

    Handles loading and validation of the engine configuration file.
    """

    config_file: Optional[str] = None

    def __init__(self, config_file: Optional[str] = None):
        """Initialize ConfigManager with configuration file path.

        Args:
            config_file: Path to the YAML configuration file; None means
                built-in defaults.
        """
        super().__init__(config_file=config_file)

    def load_config(self) -> EngineConfig:
        """Load and validate configuration from the specified file.

        Returns:
            EngineConfig: The validated configuration object.

        Raises:
            ValidationError: If the configuration data is invalid.
            Exception: If there's an error reading or parsing the file.
        """
        if not self.config_file:
            return EngineConfig.default()

        try:
            with open(self.config_file) as f:
                config_data = yaml.safe_load(f) or {}
            if not isinstance(config_data, dict):
                raise ValueError("top-level configuration must be a mapping")
            return EngineConfig(**config_data)
        except ValidationError as e:
            logger.error(f"Error validating configuration: {e}")
            raise e
        except Exception as e:
            logger.error(
                f"Error loading configuration from file '{self.config_file}': {e}"
            )
            raise e
