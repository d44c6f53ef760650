"""Configuration schema models using Pydantic."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..addresses import is_valid_address, normalize_address


class SessionConfig(BaseModel):
    """Challenge and session lifetime configuration."""

    app_name: str = Field("WalletGuard", description="Name shown in challenge text")
    session_ttl_hours: float = Field(24, description="Session lifetime in hours")
    challenge_expiry_minutes: float = Field(
        5, description="Maximum age of a signed challenge"
    )
    token_secret: Optional[str] = Field(
        None, description="HMAC secret for session tokens; unsigned when unset"
    )
    token_algorithm: str = Field("HS256", description="JWT algorithm when signed")

    @field_validator("session_ttl_hours", "challenge_expiry_minutes")
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("Durations must be positive")
        return v

    @field_validator("app_name")
    @classmethod
    def validate_app_name(cls, v):
        if not v or not v.strip():
            raise ValueError("App name cannot be empty")
        if "\n" in v:
            raise ValueError("App name must be a single line")
        return v.strip()

    @field_validator("token_algorithm")
    @classmethod
    def validate_algorithm(cls, v):
        if v not in ("HS256", "HS384", "HS512"):
            raise ValueError(f"Unsupported token algorithm: {v}")
        return v


class RateLimitConfig(BaseModel):
    """Sliding-window rate limit configuration."""

    window_minutes: float = Field(5, description="Sliding window length")
    max_attempts: int = Field(3, description="Attempts allowed per window")

    @field_validator("window_minutes")
    @classmethod
    def validate_window(cls, v):
        if v <= 0:
            raise ValueError("Rate limit window must be positive")
        return v

    @field_validator("max_attempts")
    @classmethod
    def validate_max_attempts(cls, v):
        if v < 1:
            raise ValueError("Rate limit must allow at least one attempt")
        return v


class SecurityPolicyConfig(BaseModel):
    """Abuse detection, lockout and transaction policy."""

    max_failed_logins: int = Field(5, description="Failed logins in window that lock")
    max_transaction_attempts: int = Field(
        10, description="Transaction attempts in window that lock"
    )
    activity_window_minutes: float = Field(
        5, description="Trailing window for abuse detection"
    )
    lockout_duration_minutes: float = Field(15, description="Lockout length")
    rapid_event_gap_seconds: float = Field(
        30, description="Gap under which consecutive events count as rapid"
    )
    rapid_event_threshold: int = Field(
        5, description="Rapid consecutive pairs in window that lock"
    )
    event_log_capacity: int = Field(1000, description="Maximum events kept")
    max_transaction_amount: Decimal = Field(
        Decimal("1000"), description="Largest allowed transaction value"
    )
    deny_list: List[str] = Field(
        default_factory=list, description="Addresses flagged as suspicious"
    )
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)

    @field_validator(
        "max_failed_logins",
        "max_transaction_attempts",
        "rapid_event_threshold",
        "event_log_capacity",
    )
    @classmethod
    def validate_positive_count(cls, v):
        if v < 1:
            raise ValueError("Thresholds must be at least 1")
        return v

    @field_validator(
        "activity_window_minutes", "lockout_duration_minutes", "rapid_event_gap_seconds"
    )
    @classmethod
    def validate_positive_duration(cls, v):
        if v <= 0:
            raise ValueError("Durations must be positive")
        return v

    @field_validator("max_transaction_amount")
    @classmethod
    def validate_amount(cls, v):
        if v <= 0:
            raise ValueError("Maximum transaction amount must be positive")
        return v

    @field_validator("deny_list")
    @classmethod
    def validate_deny_list(cls, v):
        normalized = []
        for address in v:
            if not is_valid_address(address):
                raise ValueError(f"Invalid deny-list address: {address}")
            normalized.append(normalize_address(address))
        return normalized

class BackendConfig(BaseModel):
    """A pluggable component named by import path."""

    backend: str = Field(..., description="Import path in 'module.path:ClassName' form")
    options: Dict[str, Any] = Field(
        default_factory=dict, description="Keyword arguments for the constructor"
    )

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v):
        if ":" not in v:
            raise ValueError(
                f"Invalid backend path format: {v}. Expected 'module:class'"
            )
        return v


class BackendsConfig(BaseModel):
    """Backends for the external collaborators."""

    store: BackendConfig = Field(
        default_factory=lambda: BackendConfig(
            backend="walletguard.storage:MemorySecureStore"
        )
    )
    signer: BackendConfig = Field(
        default_factory=lambda: BackendConfig(
            backend="walletguard.signers:LocalAccountSigner"
        )
    )
    reporter: BackendConfig = Field(
        default_factory=lambda: BackendConfig(
            backend="walletguard.reporting:LoggingErrorReporter"
        )
    )


class WalletGuardConfig(BaseModel):
    """Main configuration."""

    session: SessionConfig = Field(default_factory=SessionConfig)
    security: SecurityPolicyConfig = Field(default_factory=SecurityPolicyConfig)
    backends: BackendsConfig = Field(default_factory=BackendsConfig)
