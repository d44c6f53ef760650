"""
CLI command handlers.

Each handler takes the parsed argument namespace, prints its report and returns
True on success.
"""

import json
import logging
import sys
from pathlib import Path

from walletguard.addresses import addresses_match, recover_signer
from walletguard.config import WalletGuardConfig, WalletGuardConfigLoader
from walletguard.exceptions import (
    ConfigurationError,
    SignatureVerificationError,
    ValidationError,
)
from walletguard.session.challenge import parse_challenge_message
from walletguard.tokens import SessionTokenService
from walletguard.utils import minutes_to_ms, now_ms

logger = logging.getLogger(__name__)


def _load_config(args_ns) -> WalletGuardConfig:
    """Configured settings, or defaults when no config file exists."""
    config_path = Path(args_ns.config) if args_ns.config else None
    if config_path is None and not WalletGuardConfigLoader.get_default_config_path().exists():
        logger.debug("No config file found, using defaults")
        return WalletGuardConfig()
    return WalletGuardConfigLoader.load(config_path)


def handle_config_validate_command(args_ns):
    """Handles the 'config validate' command."""
    logger.debug("Config validate command started.")

    try:
        config_path = Path(args_ns.config) if args_ns.config else None
        config = WalletGuardConfigLoader.load(config_path)
    except ConfigurationError as e:
        print(f"❌ {e.message}")
        return False

    print("✅ Configuration is valid")
    print(f"   Session lifetime: {config.session.session_ttl_hours} hours")
    print(f"   Challenge expiry: {config.session.challenge_expiry_minutes} minutes")
    print(f"   Session tokens: {'signed' if config.session.token_secret else 'unsigned'}")
    print(
        f"   Lockout: {config.security.max_failed_logins} failed logins, "
        f"{config.security.lockout_duration_minutes} minutes"
    )
    print(
        f"   Rate limit: {config.security.rate_limit.max_attempts} attempts per "
        f"{config.security.rate_limit.window_minutes} minutes"
    )
    if config.security.deny_list:
        print(f"   Deny list: {len(config.security.deny_list)} address(es)")
    return True


def handle_token_inspect_command(args_ns):
    """Handles the 'token inspect' command."""
    logger.debug("Token inspect command started.")

    try:
        service = SessionTokenService(_load_config(args_ns).session)
        if args_ns.verify:
            claims = service.verify(args_ns.token)
        else:
            claims = service.inspect(args_ns.token)
    except (ConfigurationError, ValidationError) as e:
        print(f"❌ {e.message}")
        return False

    print(json.dumps(claims, indent=2, sort_keys=True))
    exp = claims.get("exp")
    if isinstance(exp, int) and exp * 1000 <= now_ms():
        print("⚠️  Token is expired")
    return True


def handle_challenge_parse_command(args_ns):
    """Handles the 'challenge parse' command."""
    logger.debug("Challenge parse command started.")

    try:
        if args_ns.file == "-":
            message = sys.stdin.read()
        else:
            message = Path(args_ns.file).read_text()
    except OSError as e:
        print(f"❌ Could not read challenge: {e}")
        return False

    try:
        config = _load_config(args_ns)
        challenge = parse_challenge_message(message.strip("\n"))
    except (ConfigurationError, ValidationError) as e:
        print(f"❌ {e.message}")
        return False

    now = now_ms()
    report = {
        "address": challenge.address,
        "timestamp": challenge.timestamp,
        "nonce": challenge.nonce,
        "age_ms": challenge.age(now),
        "expired": challenge.is_expired(
            now, minutes_to_ms(config.session.challenge_expiry_minutes)
        ),
    }

    if args_ns.signature:
        try:
            recovered = recover_signer(challenge.message, args_ns.signature)
        except SignatureVerificationError as e:
            print(f"❌ {e.message}")
            return False
        report["recovered"] = recovered
        report["signature_matches"] = addresses_match(recovered, challenge.address)

    print(json.dumps(report, indent=2))
    return report.get("signature_matches", True)
