# tests/conftest.py
from __future__ import annotations

import time
from collections.abc import Callable, Generator, Iterator
from dataclasses import dataclass, field
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from threadline.api.v1.dependencies import get_dispatcher, get_spam_checker_dep
from threadline.core.security import hash_password
from threadline.core.settings import Settings, get_settings
from threadline.db.session import Base
from threadline.db.session import get_db as app_get_session
from threadline.main import app as fastapi_app
from threadline.models import Commenter, Domain, DomainModerator, Owner
from threadline.repositories.credentials import CredentialStore
from threadline.services.authz import LOCAL_PROVIDER
from threadline.services.comments import CommentService
from threadline.services.notifications import NotificationDispatcher, NotificationEvent, Recipient
from threadline.services.spam import SpamContext

TEST_DB_URL = "sqlite://"

TEST_DOMAIN = "example.com"
MODERATOR_EMAIL = "mod@example.com"
SSO_SECRET_HEX = "a1" * 32
OWNER_PASSWORD = "owner-password"
COMMENTER_PASSWORD = "commenter-password"


@dataclass
class RecordingNotifier:
    """Notifier keeping every delivery in memory."""

    deliveries: list[tuple[NotificationEvent, Recipient]] = field(default_factory=list)
    fail: bool = False

    def notify(self, event: NotificationEvent, recipient: Recipient) -> None:
        if self.fail:
            raise RuntimeError("mail server unavailable")
        self.deliveries.append((event, recipient))


@dataclass
class FakeSpamChecker:
    """Spam oracle with a fixed verdict that records what it was asked."""

    verdict: bool = False
    delay: float = 0.0
    contexts: list[SpamContext] = field(default_factory=list)

    def is_spam(self, context: SpamContext) -> bool:
        if self.delay:
            time.sleep(self.delay)
        self.contexts.append(context)
        return self.verdict


@dataclass
class CommenterIdentity:
    commenter: Commenter
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def test_settings() -> Settings:
    """Settings with a short failed-login delay and no outbound mail."""
    return Settings(
        wrong_auth_delay_seconds=0.05,
        smtp_host=None,
        smtp_from_address=None,
        akismet_key=None,
    )


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def dispatcher(notifier: RecordingNotifier) -> NotificationDispatcher:
    """Dispatcher without a worker thread; tests drain it with process_pending()."""
    return NotificationDispatcher(notifier, maxsize=10)


@pytest.fixture()
def spam_checker() -> FakeSpamChecker:
    return FakeSpamChecker()


@pytest.fixture()
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    test_settings: Settings,
    dispatcher: NotificationDispatcher,
    spam_checker: FakeSpamChecker,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_spam_checker_dep] = lambda: spam_checker
    try:
        yield
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def owner(db_session: Session) -> Owner:
    owner = Owner(
        owner_hex="0" * 64,
        email="owner@example.com",
        name="Olivia Owner",
        password_hash=hash_password(OWNER_PASSWORD),
        confirmed_email=True,
    )
    db_session.add(owner)
    db_session.commit()
    return owner


@pytest.fixture()
def domain(db_session: Session, owner: Owner) -> Domain:
    domain = Domain(
        domain=TEST_DOMAIN,
        owner_hex=owner.owner_hex,
        name="Example Blog",
        require_identification=False,
        require_moderation=False,
        moderate_all_anonymous=False,
        auto_spam_filter=True,
        email_notification_policy="all",
        sso_secret=SSO_SECRET_HEX,
        sso_url="https://example.com/sso",
        idps={"sso": True, "github": False},
    )
    domain.moderators.append(DomainModerator(domain=TEST_DOMAIN, email=MODERATOR_EMAIL))
    db_session.add(domain)
    db_session.commit()
    return domain


@pytest.fixture()
def make_commenter(
    db_session: Session, test_settings: Settings
) -> Callable[..., CommenterIdentity]:
    """Create a commenter with an active session."""

    def _make(email: str, name: str, password: str | None = None) -> CommenterIdentity:
        store = CredentialStore(db_session, test_settings)
        commenter = store.insert_commenter(
            email=email,
            name=name,
            provider=LOCAL_PROVIDER,
            password_hash=hash_password(password) if password else None,
        )
        token = store.insert_commenter_session(commenter.commenter_hex)
        db_session.commit()
        return CommenterIdentity(commenter=commenter, token=token)

    return _make


@pytest.fixture()
def alice(make_commenter: Callable[..., CommenterIdentity]) -> CommenterIdentity:
    return make_commenter("alice@example.org", "Alice", COMMENTER_PASSWORD)


@pytest.fixture()
def bob(make_commenter: Callable[..., CommenterIdentity]) -> CommenterIdentity:
    return make_commenter("bob@example.org", "Bob")


@pytest.fixture()
def moderator(make_commenter: Callable[..., CommenterIdentity]) -> CommenterIdentity:
    return make_commenter(MODERATOR_EMAIL, "Moe Moderator")


@pytest.fixture()
def comment_service(
    db_session: Session,
    test_settings: Settings,
    spam_checker: FakeSpamChecker,
    dispatcher: NotificationDispatcher,
) -> CommentService:
    return CommentService(
        db_session,
        settings=test_settings,
        spam_checker=spam_checker,
        dispatcher=dispatcher,
    )


@pytest.fixture()
def post_comment(
    comment_service: CommentService, domain: Domain
) -> Callable[..., Any]:
    """Submit a comment to the test domain and return the creation result."""

    def _post(
        commenter: Commenter | None,
        markdown: str = "Hello **world**",
        path: str = "/post-1",
        parent_hex: str = "root",
    ) -> Any:
        return comment_service.create(TEST_DOMAIN, path, parent_hex, markdown, commenter)

    return _post
