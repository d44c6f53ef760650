"""
CLI argument parser.

This module contains the argument parser setup for the WalletGuard CLI.
"""

import argparse

from walletguard.config import DEFAULT_CONFIG_FILE

from .commands import (
    handle_challenge_parse_command,
    handle_config_validate_command,
    handle_token_inspect_command,
)

WALLETGUARD_VERSION = "0.1.0"


def create_parser():
    """Create and configure the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="walletguard",
        description="Inspect WalletGuard configuration, session tokens and challenges.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {WALLETGUARD_VERSION}"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging."
    )
    parser.add_argument(
        "--config",
        "-c",
        help=f"Path to config file. Default: ./{DEFAULT_CONFIG_FILE}",
        default=None,
    )

    subparsers = parser.add_subparsers(
        title="commands", dest="command", required=False, help="Command to execute"
    )

    # Config commands
    config_parser = subparsers.add_parser(
        "config", help="Configuration management commands"
    )
    config_subparsers = config_parser.add_subparsers(
        title="config commands",
        dest="config_command",
        required=True,
        help="Config command to execute",
    )
    config_validate_parser = config_subparsers.add_parser(
        "validate", help="Validate configuration file"
    )
    config_validate_parser.set_defaults(func=handle_config_validate_command)

    # Token commands
    token_parser = subparsers.add_parser("token", help="Session token commands")
    token_subparsers = token_parser.add_subparsers(
        title="token commands",
        dest="token_command",
        required=True,
        help="Token command to execute",
    )
    token_inspect_parser = token_subparsers.add_parser(
        "inspect", help="Decode a session token and show its claims"
    )
    token_inspect_parser.add_argument("token", help="Encoded session token")
    token_inspect_parser.add_argument(
        "--verify",
        action="store_true",
        help="Check the token signature with the configured token secret",
    )
    token_inspect_parser.set_defaults(func=handle_token_inspect_command)

    # Challenge commands
    challenge_parser = subparsers.add_parser(
        "challenge", help="Authentication challenge commands"
    )
    challenge_subparsers = challenge_parser.add_subparsers(
        title="challenge commands",
        dest="challenge_command",
        required=True,
        help="Challenge command to execute",
    )
    challenge_parse_parser = challenge_subparsers.add_parser(
        "parse", help="Extract the fields of a challenge message"
    )
    challenge_parse_parser.add_argument(
        "file", help="File containing the challenge message ('-' for stdin)"
    )
    challenge_parse_parser.add_argument(
        "--signature", help="Signature to recover the signing address from"
    )
    challenge_parse_parser.set_defaults(func=handle_challenge_parse_command)

    return parser
