"""
Curtains - motorized window-covering controller contract and simulator.
"""

from .core import (
    Completion,
    Curtain,
    CurtainConfig,
    CurtainConnectionError,
    CurtainError,
    CurtainSnapshot,
    CurtainState,
    DeliveryMode,
    Subscription,
    SubscriptionClosed,
)
from .engines import MockCurtain, MockCurtainConfig
from .factory import CurtainFactory, create_curtain

__version__ = "0.1.0"

__all__ = [
    'Completion',
    'Curtain',
    'CurtainConfig',
    'CurtainConnectionError',
    'CurtainError',
    'CurtainSnapshot',
    'CurtainState',
    'DeliveryMode',
    'Subscription',
    'SubscriptionClosed',
    'MockCurtain',
    'MockCurtainConfig',
    'CurtainFactory',
    'create_curtain',
]
