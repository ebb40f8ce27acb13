"""Data access helpers for owners, commenters and their sessions."""
from __future__ import annotations

from sqlalchemy import delete, exists, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from threadline.core.errors import EmailAlreadyExistsError
from threadline.core.security import random_hex
from threadline.core.settings import Settings, get_settings
from threadline.db.guard import storage_guard
from threadline.models import (
    Commenter,
    CommenterSession,
    Owner,
    OwnerConfirmToken,
    OwnerSession,
)
from threadline.models.commenter import UNDEFINED

__all__ = ["CredentialStore"]


class CredentialStore:
    """Thin wrapper around database access for credentials and sessions.

    Lookups return ``None`` when no row matches; any storage failure rolls the
    session back and surfaces as ``InternalError``. Writes are flushed, never
    committed: the calling service owns the transaction.
    """

    def __init__(self, session: Session, settings: Settings | None = None) -> None:
        """Initialize the store with a SQLAlchemy session."""
        self.session = session
        self.settings = settings or get_settings()

    def new_hex(self) -> str:
        """Return a fresh random identifier."""
        return random_hex(self.settings.token_bytes)

    def commit(self, action: str) -> None:
        """Commit the current transaction."""
        with storage_guard(self.session, action):
            self.session.commit()

    def rollback(self) -> None:
        """Discard pending changes."""
        self.session.rollback()

    # Owners

    def get_owner_by_hex(self, owner_hex: str) -> Owner | None:
        """Return an owner by identifier."""
        with storage_guard(self.session, "loading owner"):
            return self.session.get(Owner, owner_hex)

    def get_owner_by_email(self, email: str) -> Owner | None:
        """Return an owner by email address."""
        with storage_guard(self.session, "loading owner by email"):
            return self.session.scalars(select(Owner).where(Owner.email == email)).first()

    def get_owner_by_token(self, owner_token: str) -> Owner | None:
        """Return the owner bound to a session token."""
        stmt = (
            select(Owner)
            .join(OwnerSession, OwnerSession.owner_hex == Owner.owner_hex)
            .where(OwnerSession.owner_token == owner_token)
        )
        with storage_guard(self.session, "resolving owner token"):
            return self.session.scalars(stmt).first()

    def owner_email_exists(self, email: str) -> bool:
        """Return True if an owner already registered ``email``."""
        with storage_guard(self.session, "checking owner email"):
            return bool(self.session.scalar(select(exists().where(Owner.email == email))))

    def insert_owner(
        self,
        *,
        email: str,
        name: str,
        password_hash: str,
        confirmed_email: bool,
    ) -> Owner:
        """Insert a new owner and return the persisted ORM instance.

        Raises:
            EmailAlreadyExistsError: If the email collides with an existing owner.
        """
        owner = Owner(
            owner_hex=self.new_hex(),
            email=email,
            name=name,
            password_hash=password_hash,
            confirmed_email=confirmed_email,
        )
        with storage_guard(self.session, "inserting owner"):
            self.session.add(owner)
            try:
                self.session.flush()
            except IntegrityError as exc:
                self.session.rollback()
                raise EmailAlreadyExistsError() from exc
        return owner

    def insert_owner_session(self, owner_hex: str) -> str:
        """Persist a new session for ``owner_hex`` and return its token."""
        owner_token = self.new_hex()
        with storage_guard(self.session, "inserting owner session"):
            self.session.add(OwnerSession(owner_token=owner_token, owner_hex=owner_hex))
            self.session.flush()
        return owner_token

    def delete_owner_session(self, owner_token: str) -> int:
        """Delete an owner session; return the number of rows removed."""
        stmt = delete(OwnerSession).where(OwnerSession.owner_token == owner_token)
        with storage_guard(self.session, "deleting owner session"):
            return self.session.execute(stmt).rowcount

    def insert_confirm_token(self, owner_hex: str) -> str:
        """Persist an email confirmation token for ``owner_hex``."""
        confirm_hex = self.new_hex()
        with storage_guard(self.session, "inserting confirmation token"):
            self.session.add(OwnerConfirmToken(confirm_hex=confirm_hex, owner_hex=owner_hex))
            self.session.flush()
        return confirm_hex

    def confirm_owner_email(self, confirm_hex: str) -> int:
        """Flag the owner referenced by ``confirm_hex`` as confirmed.

        Returns the number of owners updated (0 when the token is unknown).
        """
        owner_hexes = select(OwnerConfirmToken.owner_hex).where(
            OwnerConfirmToken.confirm_hex == confirm_hex
        )
        stmt = (
            update(Owner)
            .where(Owner.owner_hex.in_(owner_hexes))
            .values(confirmed_email=True)
            .execution_options(synchronize_session=False)
        )
        with storage_guard(self.session, "confirming owner email"):
            return self.session.execute(stmt).rowcount

    def delete_confirm_token(self, confirm_hex: str) -> None:
        """Delete a consumed confirmation token."""
        stmt = delete(OwnerConfirmToken).where(OwnerConfirmToken.confirm_hex == confirm_hex)
        with storage_guard(self.session, "deleting confirmation token"):
            self.session.execute(stmt)

    # Commenters

    def get_commenter_by_hex(self, commenter_hex: str) -> Commenter | None:
        """Return a commenter by identifier."""
        with storage_guard(self.session, "loading commenter"):
            return self.session.get(Commenter, commenter_hex)

    def get_commenter_by_email(self, email: str, provider: str) -> Commenter | None:
        """Return the commenter registered with ``email`` under ``provider``."""
        stmt = select(Commenter).where(Commenter.email == email, Commenter.provider == provider)
        with storage_guard(self.session, "loading commenter by email"):
            return self.session.scalars(stmt).first()

    def get_commenters(self, commenter_hexes: set[str]) -> list[Commenter]:
        """Return every commenter in ``commenter_hexes`` in a single query."""
        if not commenter_hexes:
            return []
        stmt = select(Commenter).where(Commenter.commenter_hex.in_(commenter_hexes))
        with storage_guard(self.session, "loading commenters"):
            return list(self.session.scalars(stmt))

    def insert_commenter(
        self,
        *,
        email: str,
        name: str,
        provider: str,
        link: str | None = None,
        photo: str | None = None,
        password_hash: str | None = None,
    ) -> Commenter:
        """Insert a new commenter and return the persisted ORM instance.

        Raises:
            EmailAlreadyExistsError: If ``(email, provider)`` is already taken.
        """
        commenter = Commenter(
            commenter_hex=self.new_hex(),
            email=email,
            name=name,
            link=link or UNDEFINED,
            photo=photo or UNDEFINED,
            provider=provider,
            password_hash=password_hash,
        )
        with storage_guard(self.session, "inserting commenter"):
            self.session.add(commenter)
            try:
                self.session.flush()
            except IntegrityError as exc:
                self.session.rollback()
                raise EmailAlreadyExistsError() from exc
        return commenter

    def update_commenter_profile(
        self, commenter_hex: str, *, name: str, link: str, photo: str
    ) -> None:
        """Overwrite the display attributes of a commenter."""
        stmt = (
            update(Commenter)
            .where(Commenter.commenter_hex == commenter_hex)
            .values(name=name, link=link, photo=photo)
        )
        with storage_guard(self.session, "updating commenter profile"):
            self.session.execute(stmt)

    def get_commenter_session(self, commenter_token: str) -> CommenterSession | None:
        """Return a commenter session, pending or bound."""
        with storage_guard(self.session, "loading commenter session"):
            return self.session.get(CommenterSession, commenter_token)

    def get_commenter_by_token(self, commenter_token: str) -> Commenter | None:
        """Return the commenter bound to a session token.

        Pending sessions have no commenter and therefore never match.
        """
        stmt = (
            select(Commenter)
            .join(CommenterSession, CommenterSession.commenter_hex == Commenter.commenter_hex)
            .where(CommenterSession.commenter_token == commenter_token)
        )
        with storage_guard(self.session, "resolving commenter token"):
            return self.session.scalars(stmt).first()

    def insert_commenter_session(self, commenter_hex: str | None = None) -> str:
        """Persist a commenter session and return its token.

        Passing no ``commenter_hex`` creates a pending session.
        """
        commenter_token = self.new_hex()
        with storage_guard(self.session, "inserting commenter session"):
            self.session.add(
                CommenterSession(commenter_token=commenter_token, commenter_hex=commenter_hex)
            )
            self.session.flush()
        return commenter_token

    def bind_commenter_session(self, commenter_token: str, commenter_hex: str) -> int:
        """Attach a commenter to a pending session.

        Returns the number of sessions updated; 0 if the token is unknown or
        already bound.
        """
        stmt = (
            update(CommenterSession)
            .where(
                CommenterSession.commenter_token == commenter_token,
                CommenterSession.commenter_hex.is_(None),
            )
            .values(commenter_hex=commenter_hex)
            .execution_options(synchronize_session=False)
        )
        with storage_guard(self.session, "binding commenter session"):
            return self.session.execute(stmt).rowcount

    def delete_commenter_session(self, commenter_token: str) -> int:
        """Delete a commenter session; return the number of rows removed."""
        stmt = delete(CommenterSession).where(CommenterSession.commenter_token == commenter_token)
        with storage_guard(self.session, "deleting commenter session"):
            return self.session.execute(stmt).rowcount
