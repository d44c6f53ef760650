"""Configuration system for WalletGuard.

Configuration lives under a ``walletguard:`` section of a YAML file and is
validated with Pydantic models. Every field has a default, so an empty section
yields the stock policy.
"""

from .loader import CONFIG_SECTION, DEFAULT_CONFIG_FILE, WalletGuardConfigLoader
from .schema import (
    BackendConfig,
    BackendsConfig,
    RateLimitConfig,
    SecurityPolicyConfig,
    SessionConfig,
    WalletGuardConfig,
)

__all__ = [
    "BackendConfig",
    "BackendsConfig",
    "CONFIG_SECTION",
    "DEFAULT_CONFIG_FILE",
    "RateLimitConfig",
    "SecurityPolicyConfig",
    "SessionConfig",
    "WalletGuardConfig",
    "WalletGuardConfigLoader",
]
