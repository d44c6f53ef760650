"""
Pytest configuration and shared fixtures for WalletGuard tests.
"""

import pytest

from tests.helpers import TOKEN_SECRET, FakeClock, FlakyStore, ScriptedSigner
from walletguard.config import SecurityPolicyConfig, SessionConfig
from walletguard.reporting import LoggingErrorReporter
from walletguard.security import SecurityPolicyEngine
from walletguard.session import SessionAuthenticator


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return FlakyStore()


@pytest.fixture
def signer():
    return ScriptedSigner()


@pytest.fixture
def reporter():
    return LoggingErrorReporter()


@pytest.fixture
def policy_config():
    return SecurityPolicyConfig()


@pytest.fixture
def session_config():
    return SessionConfig(token_secret=TOKEN_SECRET)


@pytest.fixture
def engine(store, clock, policy_config):
    return SecurityPolicyEngine(store, policy_config, clock=clock)


@pytest.fixture
def authenticator(signer, store, engine, session_config, reporter, clock):
    return SessionAuthenticator(
        signer, store, engine, session_config, reporter=reporter, clock=clock
    )
