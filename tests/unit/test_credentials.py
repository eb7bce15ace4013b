"""Tests for the credential boundary."""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from workout_mix.credentials import Credential
from workout_mix.errors import PreconditionError


def test_from_session():
    credential = Credential.from_session({"user": {"accessToken": "abc", "refreshToken": "r", "expiresAt": 2000}})
    assert credential == Credential("abc", "r", 2000.0)


@pytest.mark.parametrize("session", [None, {}, {"user": {}}, {"user": {"accessToken": ""}}])
def test_from_session_requires_token(session):
    with pytest.raises(PreconditionError) as exc_info:
        Credential.from_session(session)
    assert exc_info.value.reason == "unauthenticated"


def test_bearer_token_without_expiry():
    assert Credential(" abc ").bearer_token() == "abc"


def test_expired_token_rejected():
    credential = Credential("abc", expires_at=1000.0)
    with pytest.raises(PreconditionError, match="expired"):
        credential.bearer_token(now=990.0)
    assert credential.bearer_token(now=900.0) == "abc"


def test_blank_token_rejected():
    with pytest.raises(PreconditionError):
        Credential("   ").bearer_token()
