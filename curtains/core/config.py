"""
Configuration management for curtain controllers.

Configuration hierarchy (later wins):
1. Code defaults
2. config/curtain.yaml
3. .env file
4. CURTAIN_* environment variables
"""

import logging
import sys
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .errors import CurtainConfigurationError
from .service_config import apply_env_overrides, load_yaml_config, merge_configs

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass
class CurtainConfig:
    """
    Top-level controller configuration.

    Only the engine name lives here; everything engine specific sits in
    ``engines[<engine name>]`` and is interpreted by that engine's own
    config class.
    """
    engine: str = "mock"
    log_level: str = "INFO"

    # Engine-specific configurations
    engines: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def __post_init__(self):
        self.engine = str(self.engine).lower()
        self.log_level = str(self.log_level).upper()
        if not isinstance(self.engines, dict):
            raise CurtainConfigurationError(
                f"'engines' must be a mapping, got {type(self.engines).__name__}"
            )
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise CurtainConfigurationError(f"Unknown log level: {self.log_level}")

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "CurtainConfig":
        """Create from dictionary (e.g., from YAML)."""
        return cls(
            engine=config.get("engine", cls.engine),
            log_level=config.get("log_level", cls.log_level),
            engines=config.get("engines") or {},
        )

    @classmethod
    def load(cls) -> "CurtainConfig":
        """Load configuration from file and environment."""
        load_env_file()
        config = merge_configs(asdict(cls()), load_yaml_config("curtain"))
        config = apply_env_overrides(config, "CURTAIN")
        return cls.from_dict(config)

    def engine_config(self, engine: Optional[str] = None) -> Dict[str, Any]:
        """Get the settings block for an engine (defaults to the selected one)."""
        return self.engines.get(engine or self.engine) or {}


def load_env_file() -> Optional[Path]:
    """Load environment variables from a .env file in cwd or its parent."""
    for env_file in (Path.cwd() / '.env', Path.cwd().parent / '.env'):
        if env_file.exists():
            load_dotenv(env_file)
            logger.info(f"Loaded environment variables from {env_file}")
            return env_file

    logger.debug("No .env file found. Using system environment variables or defaults.")
    return None


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """Setup logging configuration."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=log_level, format=LOG_FORMAT, handlers=handlers)
    logger.info(f"Logging configured: {logging.getLevelName(log_level)}")
