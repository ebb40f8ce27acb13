"""Owner registration, email confirmation, login and account deletion."""

from __future__ import annotations

import logging
import time

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from threadline.core.errors import (
    CannotDeleteOwnerWithActiveDomainsError,
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    MissingFieldError,
    NoSuchConfirmationTokenError,
    NoSuchOwnerError,
    NoSuchTokenError,
    RegistrationForbiddenError,
    ThreadlineError,
    UnconfirmedEmailError,
)
from threadline.core.security import hash_password, verify_password
from threadline.core.settings import Settings, get_settings
from threadline.db.guard import storage_guard
from threadline.models import (
    Domain,
    Owner,
    OwnerConfirmToken,
    OwnerResetToken,
    OwnerSession,
)
from threadline.repositories.credentials import CredentialStore
from threadline.services.authz import LOCAL_PROVIDER
from threadline.services.domains import delete_domain_rows
from threadline.services.notifications import (
    EVENT_OWNER_CONFIRM,
    NotificationDispatcher,
    NotificationEvent,
    Recipient,
    get_notification_dispatcher,
)

logger = logging.getLogger(__name__)


class OwnerAuthService:
    """Business logic for owner accounts."""

    def __init__(
        self,
        db: Session,
        *,
        settings: Settings | None = None,
        dispatcher: NotificationDispatcher | None = None,
    ) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.store = CredentialStore(db, self.settings)
        self.dispatcher = dispatcher or get_notification_dispatcher()

    def register(self, email: str, name: str, password: str) -> str:
        """Create an owner account and return its identifier.

        The account is confirmed immediately unless outbound mail is
        configured, in which case a confirmation link is sent. A local
        commenter sharing the same credentials is provisioned on a best-effort
        basis.
        """
        if not email or not name or not password:
            raise MissingFieldError()
        if not self.settings.allow_new_owners:
            raise RegistrationForbiddenError()
        if self.store.owner_email_exists(email):
            raise EmailAlreadyExistsError()

        password_hash = hash_password(password)
        needs_confirmation = self.settings.smtp_configured
        owner = self.store.insert_owner(
            email=email,
            name=name,
            password_hash=password_hash,
            confirmed_email=not needs_confirmation,
        )
        confirm_hex = None
        if needs_confirmation:
            confirm_hex = self.store.insert_confirm_token(owner.owner_hex)
        self.store.commit("registering owner")
        logger.info("owner %s registered", owner.owner_hex)

        if confirm_hex is not None:
            self._send_confirmation(owner, confirm_hex)

        self._provision_commenter(email, name, password_hash)
        return owner.owner_hex

    def _send_confirmation(self, owner: Owner, confirm_hex: str) -> None:
        confirm_url = f"{self.settings.base_url}/api/v1/owners/confirm?token={confirm_hex}"
        event = NotificationEvent(
            kind=EVENT_OWNER_CONFIRM,
            subject="Please confirm your email address",
            data={"confirm_url": confirm_url},
        )
        self.dispatcher.submit(event, [Recipient(email=owner.email, name=owner.name)])

    def _provision_commenter(self, email: str, name: str, password_hash: str) -> None:
        try:
            if self.store.get_commenter_by_email(email, LOCAL_PROVIDER) is None:
                self.store.insert_commenter(
                    email=email,
                    name=name,
                    provider=LOCAL_PROVIDER,
                    password_hash=password_hash,
                )
                self.store.commit("provisioning owner commenter")
        except ThreadlineError as exc:
            self.store.rollback()
            logger.warning("could not provision commenter for new owner %s: %s", email, exc.message)

    def confirm(self, confirm_hex: str) -> None:
        """Mark the owner referenced by ``confirm_hex`` as confirmed."""
        if not confirm_hex:
            raise MissingFieldError()
        if self.store.confirm_owner_email(confirm_hex) == 0:
            self.store.rollback()
            raise NoSuchConfirmationTokenError()
        self.store.commit("confirming owner email")

        try:
            self.store.delete_confirm_token(confirm_hex)
            self.store.commit("deleting confirmation token")
        except ThreadlineError as exc:
            logger.warning("could not delete confirmation token: %s", exc.message)

    def login(self, email: str, password: str) -> str:
        """Authenticate an owner and return a fresh session token.

        Unknown emails and wrong passwords fail identically after the same
        delay; the confirmation check only happens once the password matched.
        """
        if not email or not password:
            raise MissingFieldError()

        owner = self.store.get_owner_by_email(email)
        if not verify_password(owner.password_hash if owner else None, password):
            time.sleep(self.settings.wrong_auth_delay_seconds)
            raise InvalidCredentialsError()
        if not owner.confirmed_email:
            raise UnconfirmedEmailError()

        owner_token = self.store.insert_owner_session(owner.owner_hex)
        self.store.commit("creating owner session")
        return owner_token

    def get_by_token(self, owner_token: str) -> Owner:
        """Resolve a session token to its owner."""
        if not owner_token:
            raise MissingFieldError()
        owner = self.store.get_owner_by_token(owner_token)
        if owner is None:
            raise NoSuchTokenError()
        return owner

    def logout(self, owner_token: str) -> None:
        """Invalidate a session token."""
        if not owner_token:
            raise MissingFieldError()
        if self.store.delete_owner_session(owner_token) == 0:
            self.store.rollback()
            raise NoSuchTokenError()
        self.store.commit("deleting owner session")

    def delete_owner(self, owner_hex: str, cascade_domains: bool = False) -> None:
        """Delete an owner with its sessions and tokens.

        Raises:
            CannotDeleteOwnerWithActiveDomainsError: If the owner still has
                domains and ``cascade_domains`` is false.
        """
        if not owner_hex:
            raise MissingFieldError()
        if self.store.get_owner_by_hex(owner_hex) is None:
            raise NoSuchOwnerError()

        with storage_guard(self.db, "deleting owner"):
            domain_names = list(
                self.db.scalars(select(Domain.domain).where(Domain.owner_hex == owner_hex))
            )
            if domain_names and not cascade_domains:
                raise CannotDeleteOwnerWithActiveDomainsError()

            for domain_name in domain_names:
                delete_domain_rows(self.db, domain_name)

            self.db.execute(delete(OwnerSession).where(OwnerSession.owner_hex == owner_hex))
            self.db.execute(
                delete(OwnerConfirmToken).where(OwnerConfirmToken.owner_hex == owner_hex)
            )
            self.db.execute(delete(OwnerResetToken).where(OwnerResetToken.owner_hex == owner_hex))
            self.db.execute(delete(Owner).where(Owner.owner_hex == owner_hex))
            self.db.commit()
        logger.info("owner %s deleted with %d domain(s)", owner_hex, len(domain_names))
