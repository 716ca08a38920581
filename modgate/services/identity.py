"""Detection of synthetic applicant identities (test, demo and bot accounts)."""

from __future__ import annotations

from typing import Callable

IdentityPredicate = Callable[[str, str], bool]

USERNAME_MARKERS = ("test", "bot", "demo", "fake", "dummy", "example")
PLACEHOLDER_USERNAMES = frozenset({"user"})
PLACEHOLDER_IDS = frozenset({"0000", "123456789"})
MIN_DISCORD_ID_LENGTH = 5


def is_synthetic_identity(username: str | None, discord_id: str | int | None) -> bool:
    """Return True when the applicant looks like a test/demo/bot account.

    Synthetic identities are never given roles or DMs; a missing username
    or id counts as synthetic.
    """
    name = (username or "").strip().lower()
    ident = str(discord_id or "").strip().lower()
    if not name or not ident:
        return True

    if name in PLACEHOLDER_USERNAMES or any(marker in name for marker in USERNAME_MARKERS):
        return True
    if ident in PLACEHOLDER_IDS or "test" in ident:
        return True
    return len(ident) < MIN_DISCORD_ID_LENGTH
