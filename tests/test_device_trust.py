import pytest
from werkzeug.wrappers import Response
from itsdangerous import URLSafeTimedSerializer

from services.device_trust import SALT_DEVICE_TRUST, TRUST_COOKIE, DeviceTrustManager

SECRET = "device-secret"
PHONE_A = "970599123456"
PHONE_B = "970599654321"


@pytest.fixture
def trust():
    return DeviceTrustManager(SECRET, max_age=90 * 24 * 60 * 60)


def _signed(payload):
    return URLSafeTimedSerializer(SECRET, salt=SALT_DEVICE_TRUST).dumps(payload)


def test_marker_trusts_only_its_own_phone(trust):
    value = trust.encode(PHONE_A)
    assert trust.is_trusted(PHONE_A, value) is True
    assert trust.is_trusted(PHONE_B, value) is False


def test_legacy_boolean_cookie_is_not_trusted(trust):
    assert trust.is_trusted(PHONE_A, "true") is False


@pytest.mark.parametrize("value", [None, "", "garbage", "eyJ2IjoxfQ.bad.sig"])
def test_unreadable_values_fail_closed(trust, value):
    assert trust.is_trusted(PHONE_A, value) is False


def test_other_secret_is_not_trusted(trust):
    forged = DeviceTrustManager("someone-else").encode(PHONE_A)
    assert trust.is_trusted(PHONE_A, forged) is False


def test_expired_marker_is_not_trusted():
    value = DeviceTrustManager(SECRET).encode(PHONE_A)
    assert DeviceTrustManager(SECRET, max_age=-1).is_trusted(PHONE_A, value) is False


def test_unknown_schema_version_is_not_trusted(trust):
    value = _signed({"v": 2, "phone": PHONE_A, "verified": True, "issuedAt": 0})
    assert trust.is_trusted(PHONE_A, value) is False


def test_unverified_payload_is_not_trusted(trust):
    value = _signed({"v": 1, "phone": PHONE_A, "verified": "yes", "issuedAt": 0})
    assert trust.is_trusted(PHONE_A, value) is False


def test_empty_phone_is_never_trusted(trust):
    assert trust.is_trusted("", trust.encode("")) is False


def test_mark_trusted_sets_http_only_cookie(trust):
    resp = Response()
    trust.mark_trusted(PHONE_A, resp)
    header = resp.headers["Set-Cookie"]
    assert header.startswith(f"{TRUST_COOKIE}=")
    assert "HttpOnly" in header
    assert "SameSite=Lax" in header
    assert "Path=/" in header
    assert "Max-Age=7776000" in header

    value = header.split(";", 1)[0].split("=", 1)[1]
    assert trust.is_trusted(PHONE_A, value)


def test_marking_second_phone_overwrites_first(trust):
    resp = Response()
    trust.mark_trusted(PHONE_A, resp)
    resp = Response()
    trust.mark_trusted(PHONE_B, resp)
    value = resp.headers["Set-Cookie"].split(";", 1)[0].split("=", 1)[1]
    assert trust.is_trusted(PHONE_B, value)
    assert not trust.is_trusted(PHONE_A, value)


def test_clear_expires_cookie(trust):
    resp = Response()
    trust.clear(resp)
    header = resp.headers["Set-Cookie"]
    assert header.startswith(f"{TRUST_COOKIE}=;")
    assert "Max-Age=0" in header
