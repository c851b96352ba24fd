"""
Curtain controller engines.

- mock: simulated controller driven by a background tick worker
"""

from .mock_engine import MockCurtain, MockCurtainConfig, DEFAULT_TICK_INTERVAL

__all__ = [
    "MockCurtain",
    "MockCurtainConfig",
    "DEFAULT_TICK_INTERVAL",
]
