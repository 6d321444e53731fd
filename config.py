"""
wiring - Configuration

Centralized configuration for the container and its observability.
Uses environment variables with sensible defaults.
"""
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from observability.logging import LoggingConfig
from observability.tracing import TracingConfig

# Load environment variables from .env file
load_dotenv()


class Environment(Enum):
    """Deployment environments."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


@dataclass
class ContainerConfig:
    """Defaults applied to every newly created container."""
    # Pass constructor arguments by type-hinted parameters
    autowire: bool = field(default_factory=lambda: os.getenv("WIRING_AUTOWIRE", "true").lower() == "true")
    # Index every class and ancestor of a definition as a reference
    full_reference: bool = field(default_factory=lambda: os.getenv("WIRING_FULL_REFERENCE", "true").lower() == "true")
    # Reject any redefinition instead of overwriting unbuilt ones
    strict_definitions: bool = field(default_factory=lambda: os.getenv("WIRING_STRICT_DEFINITIONS", "false").lower() == "true")
    default_instance: str = field(default_factory=lambda: os.getenv("WIRING_DEFAULT_INSTANCE", "default"))


@dataclass
class Config:
    """Main configuration class combining all sub-configs."""
    env: Environment = field(default_factory=lambda: Environment(os.getenv("ENVIRONMENT", "development")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")

    container: ContainerConfig = field(default_factory=ContainerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.env == Environment.PRODUCTION

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "env": self.env.value,
            "debug": self.debug,
            "container": {
                "autowire": self.container.autowire,
                "full_reference": self.container.full_reference,
                "strict_definitions": self.container.strict_definitions,
                "default_instance": self.container.default_instance,
            },
            "logging": {
                "level": self.logging.level,
                "json_format": self.logging.json_format,
            },
            "tracing": {
                "enabled": self.tracing.enabled,
                "otlp_endpoint": self.tracing.otlp_endpoint,
            },
        }


# Singleton configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create configuration singleton."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Forget the cached configuration so the environment is read again."""
    global _config
    _config = None
