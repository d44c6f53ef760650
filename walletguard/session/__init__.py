"""Wallet challenge authentication and session lifecycle."""

from .authenticator import SessionAuthenticator
from .challenge import CHALLENGE_TEMPLATE, create_challenge, parse_challenge_message
from .persistence import SessionRepository, SessionStorageKeys

__all__ = [
    "CHALLENGE_TEMPLATE",
    "SessionAuthenticator",
    "SessionRepository",
    "SessionStorageKeys",
    "create_challenge",
    "parse_challenge_message",
]
