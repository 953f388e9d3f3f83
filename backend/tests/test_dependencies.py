"""
Request gate tests
"""

from datetime import datetime, timedelta, timezone

from booking_auth.api.dependencies import resolve_caller
from booking_auth.core.errors import Unauthorized
from booking_auth.core.security import TokenService

tokens = TokenService("gate-secret")


def test_valid_bearer_token():
    caller_id, error = resolve_caller(f"Bearer {tokens.issue(3)}", tokens)
    assert caller_id == 3
    assert error is None


def test_scheme_is_case_insensitive():
    caller_id, error = resolve_caller(f"bearer {tokens.issue(3)}", tokens)
    assert caller_id == 3
    assert error is None


def test_missing_header():
    caller_id, error = resolve_caller(None, tokens)
    assert caller_id is None
    assert isinstance(error, Unauthorized)


def test_wrong_scheme():
    caller_id, error = resolve_caller(f"Basic {tokens.issue(3)}", tokens)
    assert caller_id is None
    assert isinstance(error, Unauthorized)


def test_bearer_without_token():
    _, error = resolve_caller("Bearer ", tokens)
    assert isinstance(error, Unauthorized)


def test_tampered_token():
    _, error = resolve_caller("Bearer abc.def.ghi", tokens)
    assert isinstance(error, Unauthorized)
    assert error.status_code == 401


def test_expired_token():
    issued = datetime.now(timezone.utc) - timedelta(days=8)
    _, error = resolve_caller(f"Bearer {tokens.issue(3, now=issued)}", tokens)
    assert isinstance(error, Unauthorized)
