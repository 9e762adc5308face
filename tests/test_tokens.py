from datetime import datetime, timedelta, timezone

import jwt
import pytest

from services.tokens import TokenIssuer

SECRET = "unit-secret"
PAYLOAD = {"userId": 42, "phone": "970599123456", "isAdmin": False}


@pytest.fixture
def issuer():
    return TokenIssuer(SECRET)


def test_issue_then_validate_returns_payload(issuer):
    data = issuer.validate(issuer.issue(PAYLOAD))
    assert data["userId"] == "42"
    assert data["phone"] == "970599123456"
    assert data["isAdmin"] is False


def test_expiry_is_ninety_days_after_issue(issuer):
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    claims = jwt.decode(issuer.issue(PAYLOAD, now=now), SECRET, algorithms=["HS256"],
                        options={"verify_exp": False})
    assert claims["exp"] - claims["iat"] == 90 * 24 * 60 * 60
    assert claims["iat"] == int(now.timestamp())


def test_admin_flag_survives(issuer):
    token = issuer.issue({**PAYLOAD, "isAdmin": True})
    assert issuer.validate(token)["isAdmin"] is True


def test_expired_token_is_rejected(issuer):
    long_ago = datetime.now(timezone.utc) - timedelta(days=91)
    assert issuer.validate(issuer.issue(PAYLOAD, now=long_ago)) is None


def test_other_secret_never_validates(issuer):
    other = TokenIssuer("another-secret")
    assert other.validate(issuer.issue(PAYLOAD)) is None
    assert issuer.validate(other.issue(PAYLOAD)) is None


@pytest.mark.parametrize("bad", [None, "", "not-a-jwt", "a.b.c", 12345])
def test_malformed_tokens_return_none(issuer, bad):
    assert issuer.validate(bad) is None


def test_tampered_payload_is_rejected(issuer):
    header, _, sig = issuer.issue(PAYLOAD).split(".")
    forged_body = jwt.encode({**PAYLOAD, "isAdmin": True, "exp": 9999999999}, "x", algorithm="HS256").split(".")[1]
    assert issuer.validate(f"{header}.{forged_body}.{sig}") is None


def test_token_without_user_is_rejected(issuer):
    token = jwt.encode({"phone": "1", "exp": 9999999999}, SECRET, algorithm="HS256")
    assert issuer.validate(token) is None


def test_empty_secret_refused():
    with pytest.raises(ValueError):
        TokenIssuer("")
