# mypy: ignore-errors
"""Tests for local commenter accounts and session tokens."""

import time

import pytest

from threadline.core.errors import (
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    MissingFieldError,
    NoSuchTokenError,
)
from threadline.models import CommenterSession
from threadline.services.commenter_auth import CommenterAuthService

from tests.conftest import COMMENTER_PASSWORD


@pytest.fixture()
def service(db_session, test_settings):
    return CommenterAuthService(db_session, settings=test_settings)


def test_register_and_login(service) -> None:
    commenter_hex = service.register(
        "carol@example.org", "Carol", "pw", link="https://carol.example.org"
    )

    token, commenter = service.login("carol@example.org", "pw")

    assert commenter.commenter_hex == commenter_hex
    assert commenter.link == "https://carol.example.org"
    assert commenter.photo == "undefined"
    assert service.get_by_token(token).commenter_hex == commenter_hex


def test_register_rejects_duplicate_local_email(service, alice) -> None:
    with pytest.raises(EmailAlreadyExistsError):
        service.register(alice.commenter.email, "Other Alice", "pw")


def test_register_requires_fields(service) -> None:
    with pytest.raises(MissingFieldError):
        service.register("carol@example.org", "", "pw")


def test_login_failures_share_error_and_delay(service, alice, test_settings) -> None:
    delay = test_settings.wrong_auth_delay_seconds

    started = time.perf_counter()
    with pytest.raises(InvalidCredentialsError) as unknown:
        service.login("ghost@example.org", COMMENTER_PASSWORD)
    unknown_elapsed = time.perf_counter() - started

    started = time.perf_counter()
    with pytest.raises(InvalidCredentialsError) as wrong:
        service.login(alice.commenter.email, "nope")
    wrong_elapsed = time.perf_counter() - started

    assert unknown.value.message == wrong.value.message
    assert min(unknown_elapsed, wrong_elapsed) >= delay


def test_login_ignores_passwordless_commenters(service, bob) -> None:
    with pytest.raises(InvalidCredentialsError):
        service.login(bob.commenter.email, "anything")


def test_pending_token_never_resolves(service, db_session) -> None:
    token = service.new_token()

    assert db_session.get(CommenterSession, token).commenter_hex is None
    with pytest.raises(NoSuchTokenError):
        service.get_by_token(token)


def test_get_by_token_errors(service) -> None:
    with pytest.raises(MissingFieldError):
        service.get_by_token("")
    with pytest.raises(NoSuchTokenError):
        service.get_by_token("0" * 64)


def test_logout_keeps_comments(service, alice, post_comment, comment_service) -> None:
    created = post_comment(alice.commenter)

    service.logout(alice.token)

    with pytest.raises(NoSuchTokenError):
        service.get_by_token(alice.token)
    listing = comment_service.list("example.com", "/post-1", None)
    assert [c.comment_hex for c in listing.comments] == [created.comment_hex]
