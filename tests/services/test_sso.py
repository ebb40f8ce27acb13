# mypy: ignore-errors
"""Tests for the SSO handshake."""

import json
from urllib.parse import parse_qs, urlsplit

import pytest
from sqlalchemy import func, select

from threadline.core.errors import (
    MissingConfigError,
    MissingFieldError,
    NoSuchDomainError,
    NoSuchTokenError,
    SsoCallbackError,
    SsoSignatureError,
)
from threadline.core.security import sign_hmac_sha256, verify_hmac_sha256
from threadline.models import Commenter, CommenterSession, SsoToken
from threadline.services.commenter_auth import CommenterAuthService
from threadline.services.sso import SsoService

from tests.conftest import SSO_SECRET_HEX, TEST_DOMAIN

SSO_KEY = bytes.fromhex(SSO_SECRET_HEX)


def _signed(payload: dict, key: bytes = SSO_KEY) -> tuple[str, str]:
    raw = json.dumps(payload).encode()
    return raw.hex(), sign_hmac_sha256(key, raw).hex()


@pytest.fixture()
def service(db_session, test_settings):
    return SsoService(db_session, settings=test_settings)


@pytest.fixture()
def auth(db_session, test_settings):
    return CommenterAuthService(db_session, settings=test_settings)


@pytest.fixture()
def handshake(service, auth, domain):
    """Start an SSO round-trip and return (pending commenter token, SSO token)."""
    commenter_token = auth.new_token()
    url = service.redirect_url(TEST_DOMAIN, commenter_token)
    sso_token = parse_qs(urlsplit(url).query)["token"][0]
    return commenter_token, sso_token


def test_redirect_url_carries_signed_token(service, auth, domain, db_session) -> None:
    commenter_token = auth.new_token()

    url = service.redirect_url(TEST_DOMAIN, commenter_token)

    parts = urlsplit(url)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://example.com/sso"
    query = parse_qs(parts.query)
    token = query["token"][0]
    assert verify_hmac_sha256(SSO_KEY, bytes.fromhex(token), bytes.fromhex(query["hmac"][0]))
    stored = db_session.get(SsoToken, token)
    assert stored.domain == TEST_DOMAIN
    assert stored.commenter_token == commenter_token


def test_redirect_requires_pending_token(service, domain, alice) -> None:
    with pytest.raises(NoSuchTokenError):
        service.redirect_url(TEST_DOMAIN, alice.token)
    with pytest.raises(NoSuchTokenError):
        service.redirect_url(TEST_DOMAIN, "1" * 64)


def test_redirect_requires_known_configured_domain(service, auth, domain, db_session) -> None:
    commenter_token = auth.new_token()
    with pytest.raises(NoSuchDomainError):
        service.redirect_url("unknown.example", commenter_token)

    domain.sso_url = None
    db_session.commit()
    with pytest.raises(MissingConfigError):
        service.redirect_url(TEST_DOMAIN, commenter_token)


def test_callback_binds_new_commenter(service, auth, handshake, db_session) -> None:
    commenter_token, sso_token = handshake
    payload_hex, hmac_hex = _signed(
        {"token": sso_token, "email": "sam@corp.example", "name": "Sam"}
    )

    commenter = service.callback(payload_hex, hmac_hex)

    assert commenter.provider == "sso:example.com"
    assert commenter.link == "undefined"
    assert commenter.photo == "undefined"
    assert auth.get_by_token(commenter_token).commenter_hex == commenter.commenter_hex
    assert db_session.get(SsoToken, sso_token) is None


def test_callback_replay_fails(service, handshake) -> None:
    _, sso_token = handshake
    payload_hex, hmac_hex = _signed(
        {"token": sso_token, "email": "sam@corp.example", "name": "Sam"}
    )
    service.callback(payload_hex, hmac_hex)

    with pytest.raises(NoSuchTokenError):
        service.callback(payload_hex, hmac_hex)


def test_tampered_payload_binds_nothing_and_can_retry(service, handshake, db_session) -> None:
    commenter_token, sso_token = handshake
    payload = {"token": sso_token, "email": "sam@corp.example", "name": "Sam"}
    _, hmac_hex = _signed(payload)
    forged = json.dumps({**payload, "email": "admin@corp.example"}).encode().hex()

    with pytest.raises(SsoSignatureError):
        service.callback(forged, hmac_hex)

    assert db_session.get(CommenterSession, commenter_token).commenter_hex is None
    assert db_session.get(SsoToken, sso_token) is not None
    assert db_session.scalar(select(func.count()).select_from(Commenter)) == 0

    commenter = service.callback(*_signed(payload))
    assert commenter.email == "sam@corp.example"


def test_wrong_key_is_rejected(service, handshake) -> None:
    _, sso_token = handshake
    payload_hex, hmac_hex = _signed(
        {"token": sso_token, "email": "sam@corp.example", "name": "Sam"},
        key=b"not-the-domain-secret",
    )
    with pytest.raises(SsoSignatureError):
        service.callback(payload_hex, hmac_hex)


@pytest.mark.parametrize(
    ("payload_hex", "hmac_hex"),
    [("zz", "00"), ("7b7d", "not-hex"), ("6e6f74206a736f6e", "00")],
)
def test_malformed_callback_input(service, payload_hex, hmac_hex) -> None:
    with pytest.raises(SsoCallbackError):
        service.callback(payload_hex, hmac_hex)


def test_callback_requires_identity_fields(service, handshake) -> None:
    _, sso_token = handshake
    with pytest.raises(MissingFieldError):
        service.callback(*_signed({"token": sso_token, "name": "Sam"}))


def test_unknown_sso_token(service, domain) -> None:
    with pytest.raises(NoSuchTokenError):
        service.callback(*_signed({"token": "ab" * 32, "email": "a@b.c", "name": "A"}))


def test_existing_sso_commenter_profile_is_refreshed(service, auth, domain, db_session) -> None:
    for name, photo in (("Sam", ""), ("Samantha", "https://corp.example/sam.png")):
        commenter_token = auth.new_token()
        url = service.redirect_url(TEST_DOMAIN, commenter_token)
        sso_token = parse_qs(urlsplit(url).query)["token"][0]
        service.callback(
            *_signed(
                {"token": sso_token, "email": "sam@corp.example", "name": name, "photo": photo}
            )
        )

    db_session.expire_all()
    commenters = db_session.scalars(select(Commenter)).all()
    assert len(commenters) == 1
    assert commenters[0].name == "Samantha"
    assert commenters[0].photo == "https://corp.example/sam.png"
