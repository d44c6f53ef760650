import pytest

from tests.helpers import START_MS
from walletguard.exceptions import ValidationError
from walletguard.session.challenge import (
    create_challenge,
    generate_nonce,
    parse_challenge_message,
)

ADDRESS = "0x19E7E376E7C213B7E7e7e46cc70A5dD086DAff2A"


class TestCreateChallenge:
    """Test challenge message construction."""

    def test_message_layout(self):
        challenge = create_challenge(ADDRESS, START_MS, "Celo Wallet", nonce="abc123")

        assert challenge.message.splitlines() == [
            "Welcome to Celo Wallet!",
            "",
            "Please sign this message to authenticate your wallet.",
            "",
            f"Address: {ADDRESS}",
            f"Timestamp: {START_MS}",
            "Nonce: abc123",
            "",
            "This request will not trigger a blockchain transaction or cost any gas fees.",
        ]
        assert challenge.timestamp == START_MS
        assert challenge.address == ADDRESS

    def test_nonces_are_unique(self):
        nonces = {create_challenge(ADDRESS, START_MS).nonce for _ in range(100)}

        assert len(nonces) == 100
        assert all(len(nonce) == 32 for nonce in nonces)

    def test_generate_nonce_is_hex(self):
        int(generate_nonce(), 16)

    def test_expiry_boundary(self):
        challenge = create_challenge(ADDRESS, START_MS)
        five_minutes = 5 * 60_000

        assert not challenge.is_expired(START_MS + five_minutes, five_minutes)
        assert challenge.is_expired(START_MS + five_minutes + 1, five_minutes)


class TestParseChallengeMessage:
    """Test recovering challenge fields from message text."""

    def test_parse_created_challenge(self):
        challenge = create_challenge(ADDRESS, START_MS)

        assert parse_challenge_message(challenge.message) == challenge

    @pytest.mark.parametrize(
        "message",
        [
            "",
            "Welcome!\nAddress: 0x1234\nTimestamp: 1\nNonce: ab",
            f"Address: {ADDRESS}\nNonce: ab",
            f"Address: {ADDRESS}\nTimestamp: soon\nNonce: ab",
        ],
    )
    def test_malformed_messages(self, message):
        with pytest.raises(ValidationError):
            parse_challenge_message(message)
