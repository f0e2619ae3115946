import pytest

from copilot_oauth import ServiceToken

NOW = 1_700_000_000


@pytest.mark.parametrize(
    "offset, expired",
    [
        (-100, True),
        (0, True),
        (1, True),
        (59, True),
        (60, True),
        (61, False),
        (3600, False),
    ],
)
def test_expiry_buffer_of_sixty_seconds(offset, expired):
    token = ServiceToken(token="t", expires_at=NOW + offset, refresh_in=1500)
    assert token.is_expired(now=NOW) is expired


def test_refresh_in_does_not_affect_expiry():
    token = ServiceToken(token="t", expires_at=NOW + 600, refresh_in=0)
    assert not token.is_expired(now=NOW)
