"""Error taxonomy shared by services and the HTTP layer.

Every failure a caller can observe is a ``ThreadlineError`` subclass carrying a
stable ``code`` (the kind) and the HTTP status the API answers with.
"""

from __future__ import annotations


class ThreadlineError(Exception):
    """Base error for all expected failures."""

    code = "error"
    status_code = 400
    default_message = "request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class MissingFieldError(ThreadlineError):
    code = "missing_field"
    default_message = "missing field(s)"


class NotAuthorisedError(ThreadlineError):
    code = "not_authorised"
    status_code = 403
    default_message = "you're not authorised to perform this action"


class NotModeratorError(NotAuthorisedError):
    code = "not_moderator"
    default_message = "you're not a moderator of this domain"


class NoSuchDomainError(ThreadlineError):
    code = "no_such_domain"
    status_code = 404
    default_message = "this domain is not registered"


class NoSuchCommentError(ThreadlineError):
    code = "no_such_comment"
    status_code = 404
    default_message = "no such comment"


class NoSuchOwnerError(ThreadlineError):
    code = "no_such_owner"
    status_code = 404
    default_message = "no such owner"


class NoSuchCommenterError(ThreadlineError):
    code = "no_such_commenter"
    status_code = 404
    default_message = "no such commenter"


class NoSuchTokenError(ThreadlineError):
    code = "no_such_token"
    status_code = 401
    default_message = "this session token is invalid or has expired"


class NoSuchConfirmationTokenError(ThreadlineError):
    code = "no_such_confirmation_token"
    status_code = 404
    default_message = "this email confirmation link has expired"


class EmailAlreadyExistsError(ThreadlineError):
    code = "email_already_exists"
    status_code = 409
    default_message = "that email address has already been registered"


class RegistrationForbiddenError(ThreadlineError):
    code = "registration_forbidden"
    status_code = 403
    default_message = "new owner registrations are disabled"


class DomainFrozenError(ThreadlineError):
    code = "domain_frozen"
    status_code = 403
    default_message = "cannot add a new comment because this domain is frozen"


class ThreadLockedError(ThreadlineError):
    code = "thread_locked"
    status_code = 403
    default_message = "this thread is locked; you cannot add new comments"


class SelfVoteError(ThreadlineError):
    code = "self_vote"
    default_message = "you cannot vote on your own comment"


class UnconfirmedEmailError(ThreadlineError):
    code = "unconfirmed_email"
    status_code = 403
    default_message = "your email address is still unconfirmed"


class InvalidCredentialsError(ThreadlineError):
    code = "invalid_credentials"
    status_code = 401
    default_message = "invalid email/password combination"


class MissingConfigError(ThreadlineError):
    code = "missing_config"
    default_message = "missing configuration"


class EmptyPathsError(ThreadlineError):
    code = "empty_paths"
    default_message = "empty paths field"


class CannotDeleteOwnerWithActiveDomainsError(ThreadlineError):
    code = "owner_has_active_domains"
    status_code = 409
    default_message = "you cannot delete your account until all domains associated with your account are deleted"


class SsoCallbackError(ThreadlineError):
    """Malformed SSO callback input (hex or JSON decoding)."""

    code = "sso_callback_invalid"


class SsoSignatureError(ThreadlineError):
    code = "sso_signature_mismatch"
    status_code = 401
    default_message = "HMAC signature verification failed"


class InternalError(ThreadlineError):
    """Storage or unexpected failure; the cause is logged, never surfaced."""

    code = "internal"
    status_code = 500
    default_message = "internal error"
