import hashlib
import hmac

import pytest

from rap_dashboard.core.exceptions import AuthError
from rap_dashboard.core.security import compute_signature, verify_webhook_signature

SECRET = "s3cret"
BODY = b'{"eventType":"profile_view","data":{}}'


def sign(secret: str, body: bytes) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def test_compute_signature_format():
    assert compute_signature(SECRET, BODY) == sign(SECRET, BODY)


def test_matching_signature_is_accepted():
    assert verify_webhook_signature(BODY, sign(SECRET, BODY), SECRET) is True


@pytest.mark.parametrize("header", [
    sign("other", BODY),
    sign(SECRET, BODY + b" "),
    "sha256=deadbeef",
    sign(SECRET, BODY).replace("sha256=", ""),
])
def test_other_signature_is_rejected(header):
    with pytest.raises(AuthError) as exc:
        verify_webhook_signature(BODY, header, SECRET)
    assert exc.value.status_code == 401
    assert exc.value.retryable is False


@pytest.mark.parametrize("header,secret", [(None, None), (None, SECRET), ("sha256=abc", "")])
def test_missing_header_or_secret_permissive(header, secret):
    assert verify_webhook_signature(BODY, header, secret, policy="permissive") is False


@pytest.mark.parametrize("header,secret", [(None, None), (None, SECRET), ("sha256=abc", "")])
def test_missing_header_or_secret_strict(header, secret):
    with pytest.raises(AuthError):
        verify_webhook_signature(BODY, header, secret, policy="strict")
