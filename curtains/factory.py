"""
Curtain Engine Factory.

Creates controller instances based on configuration.
"""

import logging
from typing import Any, Dict, Optional, Tuple, Type

from curtains.core.config import CurtainConfig
from curtains.core.curtain import Curtain
from curtains.core.errors import CurtainConfigurationError

from .engines.mock_engine import MockCurtain, MockCurtainConfig

logger = logging.getLogger(__name__)


# Registry of available curtain engines: name -> (engine class, engine config class)
CURTAIN_ENGINE_REGISTRY: Dict[str, Tuple[Type[Curtain], Any]] = {
    "mock": (MockCurtain, MockCurtainConfig),
}


class CurtainFactory:
    """Factory for creating curtain controller instances."""

    @staticmethod
    def create(config: CurtainConfig) -> Curtain:
        """
        Create a curtain controller based on configuration.

        Args:
            config: Curtain configuration

        Returns:
            Configured, not yet initialized Curtain instance

        Raises:
            CurtainConfigurationError: If the engine is unknown or its
                settings are invalid
        """
        engine_name = config.engine

        if engine_name not in CURTAIN_ENGINE_REGISTRY:
            available = ", ".join(CURTAIN_ENGINE_REGISTRY.keys())
            raise CurtainConfigurationError(
                f"Unknown curtain engine: {engine_name}. "
                f"Available engines: {available}"
            )

        engine_class, config_class = CURTAIN_ENGINE_REGISTRY[engine_name]
        logger.info(f"Creating curtain engine: {engine_name}")
        return engine_class(config_class.from_dict(config.engine_config(engine_name)))

    @staticmethod
    def get_available_engines() -> Dict[str, str]:
        """Get registered engine names and their implementing classes."""
        return {name: engine_class.__name__ for name, (engine_class, _) in CURTAIN_ENGINE_REGISTRY.items()}


def create_curtain(config: Optional[CurtainConfig] = None) -> Curtain:
    """Create a controller from the given config, or from file and environment."""
    return CurtainFactory.create(config or CurtainConfig.load())
