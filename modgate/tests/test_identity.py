"""Tests for synthetic identity detection."""

import pytest

from modgate.services.identity import is_synthetic_identity


@pytest.mark.parametrize(
    "username,discord_id",
    [
        ("test_user", "123"),
        ("TestAccount", "555666777888"),
        ("mybot", "555666777888"),
        ("Demo", "555666777888"),
        ("fake_alice", "555666777888"),
        ("dummy", "555666777888"),
        ("example", "555666777888"),
        ("user", "555666777888"),
        ("Alice", "0000"),
        ("Alice", "123456789"),
        ("Alice", "test-555666"),
        ("Alice", "1234"),
        ("", "555666777888"),
        ("Alice", ""),
        (None, None),
    ],
)
def test_synthetic_identities(username, discord_id):
    assert is_synthetic_identity(username, discord_id) is True


@pytest.mark.parametrize(
    "username,discord_id",
    [
        ("Alice", "555666777888"),
        ("Bruno", 555666777889),
        ("users_united", "12345"),
    ],
)
def test_real_identities(username, discord_id):
    assert is_synthetic_identity(username, discord_id) is False
