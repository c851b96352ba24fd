"""
Curtain controller exceptions.
"""


class CurtainError(Exception):
    """Base exception for curtain controller errors."""
    pass


class CurtainConnectionError(CurtainError):
    """The controller lost its connection to the device."""
    pass


class CurtainConfigurationError(CurtainError):
    """Error in controller configuration."""
    pass


class SubscriptionClosed(CurtainError):
    """A subscription was closed and will deliver no more values."""
    pass
