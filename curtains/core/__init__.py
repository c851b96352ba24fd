"""
Core Package

Backend-agnostic building blocks for curtain controllers:
- curtain: The Curtain controller contract
- channels: Subscriptions and the completion signal
- delivery: Non-blocking publishing to subscriptions
- config: Configuration management
- types: Shared type definitions
"""

from .types import (
    CurtainState,
    CurtainSnapshot,
    DeliveryMode,
    POSITION_OPEN,
    POSITION_CLOSED,
    clamp_position,
)
from .errors import (
    CurtainError,
    CurtainConnectionError,
    CurtainConfigurationError,
    SubscriptionClosed,
)
from .channels import Subscription, Completion
from .curtain import Curtain
from .delivery import EventDelivery
from .config import CurtainConfig, setup_logging

__all__ = [
    # Types
    'CurtainState',
    'CurtainSnapshot',
    'DeliveryMode',
    'POSITION_OPEN',
    'POSITION_CLOSED',
    'clamp_position',
    # Errors
    'CurtainError',
    'CurtainConnectionError',
    'CurtainConfigurationError',
    'SubscriptionClosed',
    # Contract
    'Subscription',
    'Completion',
    'Curtain',
    'EventDelivery',
    # Config
    'CurtainConfig',
    'setup_logging',
]
