"""Commenter accounts and bearer sessions."""

from __future__ import annotations

import logging
import time

from sqlalchemy.orm import Session

from threadline.core.errors import (
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    MissingFieldError,
    NoSuchTokenError,
)
from threadline.core.security import hash_password, verify_password
from threadline.core.settings import Settings, get_settings
from threadline.models import Commenter
from threadline.repositories.credentials import CredentialStore
from threadline.services.authz import LOCAL_PROVIDER

logger = logging.getLogger(__name__)


class CommenterAuthService:
    """Local registration and login plus session token resolution."""

    def __init__(self, db: Session, *, settings: Settings | None = None) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.store = CredentialStore(db, self.settings)

    def register(
        self,
        email: str,
        name: str,
        password: str,
        link: str | None = None,
        photo: str | None = None,
    ) -> str:
        """Create a local commenter and return its identifier."""
        if not email or not name or not password:
            raise MissingFieldError()
        if self.store.get_commenter_by_email(email, LOCAL_PROVIDER) is not None:
            raise EmailAlreadyExistsError()

        commenter = self.store.insert_commenter(
            email=email,
            name=name,
            provider=LOCAL_PROVIDER,
            link=link,
            photo=photo,
            password_hash=hash_password(password),
        )
        self.store.commit("registering commenter")
        logger.info("commenter %s registered", commenter.commenter_hex)
        return commenter.commenter_hex

    def login(self, email: str, password: str) -> tuple[str, Commenter]:
        """Authenticate a local commenter and return a new session token.

        Unknown emails and wrong passwords fail identically after the same
        delay.
        """
        if not email or not password:
            raise MissingFieldError()

        commenter = self.store.get_commenter_by_email(email, LOCAL_PROVIDER)
        if not verify_password(commenter.password_hash if commenter else None, password):
            time.sleep(self.settings.wrong_auth_delay_seconds)
            raise InvalidCredentialsError()

        commenter_token = self.store.insert_commenter_session(commenter.commenter_hex)
        self.store.commit("creating commenter session")
        return commenter_token, commenter

    def new_token(self) -> str:
        """Create a pending session for an upcoming SSO round-trip."""
        commenter_token = self.store.insert_commenter_session()
        self.store.commit("creating pending commenter session")
        return commenter_token

    def get_by_token(self, commenter_token: str) -> Commenter:
        """Resolve a session token to its commenter.

        Raises:
            MissingFieldError: If the token is empty.
            NoSuchTokenError: If the token is unknown or still pending.
        """
        if not commenter_token:
            raise MissingFieldError()
        commenter = self.store.get_commenter_by_token(commenter_token)
        if commenter is None:
            raise NoSuchTokenError()
        return commenter

    def logout(self, commenter_token: str) -> None:
        """Invalidate a session token; comments are left untouched."""
        if not commenter_token:
            raise MissingFieldError()
        if self.store.delete_commenter_session(commenter_token) == 0:
            self.store.rollback()
            raise NoSuchTokenError()
        self.store.commit("deleting commenter session")
