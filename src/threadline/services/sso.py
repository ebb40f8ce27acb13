"""Single-Sign-On handshake between a domain's identity endpoint and Threadline.

The flow has two legs:

1. ``redirect_url`` mints an SSO token tied to a domain and a pending commenter
   session and returns the domain's SSO URL carrying that token and its HMAC.
2. ``callback`` receives a hex-encoded JSON identity signed with the domain
   secret, verifies it, resolves or creates the commenter and binds it to the
   pending session. The SSO token is consumed only when binding succeeds, so a
   failed callback can be retried and a replayed one cannot.
"""

from __future__ import annotations

import binascii
import logging
from urllib.parse import urlencode

from pydantic import ValidationError
from sqlalchemy import delete
from sqlalchemy.orm import Session

from threadline.core.errors import (
    InternalError,
    MissingConfigError,
    MissingFieldError,
    NoSuchDomainError,
    NoSuchTokenError,
    SsoCallbackError,
    SsoSignatureError,
    ThreadlineError,
)
from threadline.core.security import sign_hmac_sha256, verify_hmac_sha256
from threadline.core.settings import Settings, get_settings
from threadline.db.guard import storage_guard
from threadline.models import Commenter, Domain, SsoToken
from threadline.models.commenter import UNDEFINED
from threadline.repositories.credentials import CredentialStore
from threadline.schemas.sso import SsoPayload
from threadline.services.authz import AuthProvider

logger = logging.getLogger(__name__)


def _decode_hex(value: str, what: str) -> bytes:
    try:
        return bytes.fromhex(value)
    except (ValueError, TypeError) as exc:
        raise SsoCallbackError(f"invalid {what} hex encoding") from exc


def _domain_key(domain: Domain) -> bytes:
    try:
        return binascii.unhexlify(domain.sso_secret or "")
    except (binascii.Error, ValueError) as exc:
        logger.error("SSO secret of domain %s is not valid hex", domain.domain)
        raise InternalError() from exc


class SsoService:
    """Both legs of the SSO handshake."""

    def __init__(self, db: Session, *, settings: Settings | None = None) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.store = CredentialStore(db, self.settings)

    def _load_sso_domain(self, domain_name: str) -> Domain:
        with storage_guard(self.db, "loading SSO domain"):
            domain = self.db.get(Domain, domain_name)
        if domain is None:
            raise NoSuchDomainError()
        if not domain.sso_configured:
            raise MissingConfigError()
        return domain

    def redirect_url(self, domain_name: str, commenter_token: str) -> str:
        """Mint an SSO token and return the URL to send the commenter to.

        Raises:
            MissingFieldError: If an argument is empty.
            NoSuchTokenError: If the session is unknown or already bound.
            NoSuchDomainError: If the domain is not registered.
            MissingConfigError: If the domain has no SSO secret or URL.
        """
        if not domain_name or not commenter_token:
            raise MissingFieldError()
        session = self.store.get_commenter_session(commenter_token)
        if session is None or not session.is_pending:
            raise NoSuchTokenError()
        domain = self._load_sso_domain(domain_name)

        token = self.store.new_hex()
        with storage_guard(self.db, "storing SSO token"):
            self.db.add(SsoToken(token=token, domain=domain.domain, commenter_token=commenter_token))
            self.db.commit()

        signature = sign_hmac_sha256(_domain_key(domain), bytes.fromhex(token))
        query = urlencode({"token": token, "hmac": signature.hex()})
        separator = "&" if "?" in (domain.sso_url or "") else "?"
        return f"{domain.sso_url}{separator}{query}"

    def _resolve_token(self, token: str) -> SsoToken:
        with storage_guard(self.db, "resolving SSO token"):
            sso_token = self.db.get(SsoToken, token)
        if sso_token is None:
            raise NoSuchTokenError()
        session = self.store.get_commenter_session(sso_token.commenter_token)
        if session is None or not session.is_pending:
            raise NoSuchTokenError()
        return sso_token

    def _upsert_commenter(self, payload: SsoPayload, provider: str) -> Commenter:
        commenter = self.store.get_commenter_by_email(payload.email, provider)
        if commenter is None:
            return self.store.insert_commenter(
                email=payload.email,
                name=payload.name,
                provider=provider,
                link=payload.link,
                photo=payload.photo,
            )

        try:
            self.store.update_commenter_profile(
                commenter.commenter_hex,
                name=payload.name,
                link=payload.link,
                photo=payload.photo,
            )
            self.store.commit("updating SSO commenter profile")
        except ThreadlineError as exc:
            logger.warning(
                "cannot update profile of commenter %s: %s", commenter.commenter_hex, exc.message
            )
        return commenter

    def callback(self, payload_hex: str, hmac_hex: str) -> Commenter:
        """Verify a signed identity and bind it to the pending session.

        Raises:
            SsoCallbackError: If the payload or signature is malformed.
            MissingFieldError: If token, email or name is absent.
            NoSuchTokenError: If the SSO token is unknown or already used.
            MissingConfigError: If the domain has no SSO secret or URL.
            SsoSignatureError: If the HMAC does not match.
        """
        payload_bytes = _decode_hex(payload_hex or "", "payload")
        signature = _decode_hex(hmac_hex or "", "HMAC signature")

        try:
            payload = SsoPayload.model_validate_json(payload_bytes)
        except ValidationError as exc:
            raise SsoCallbackError("cannot decode JSON payload") from exc
        if not payload.token or not payload.email or not payload.name:
            raise MissingFieldError()
        payload.link = payload.link or UNDEFINED
        payload.photo = payload.photo or UNDEFINED

        sso_token = self._resolve_token(payload.token)
        domain_name = sso_token.domain
        commenter_token = sso_token.commenter_token

        domain = self._load_sso_domain(domain_name)
        if not verify_hmac_sha256(_domain_key(domain), payload_bytes, signature):
            raise SsoSignatureError()

        commenter = self._upsert_commenter(payload, AuthProvider.sso(domain_name).tag)
        commenter_hex = commenter.commenter_hex

        if self.store.bind_commenter_session(commenter_token, commenter_hex) == 0:
            self.store.rollback()
            raise NoSuchTokenError()
        with storage_guard(self.db, "consuming SSO token"):
            self.db.execute(delete(SsoToken).where(SsoToken.token == payload.token))
        self.store.commit("binding SSO session")
        logger.info("SSO commenter %s bound for domain %s", commenter_hex, domain_name)
        return commenter
