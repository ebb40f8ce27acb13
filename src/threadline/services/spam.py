"""Spam screening for newly submitted comments.

The comment engine only needs a yes/no answer; this module provides the
Akismet-backed checker used in production and a null checker used when no
Akismet key is configured.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from threadline.core.settings import Settings, get_settings

logger = logging.getLogger(__name__)

AKISMET_URL_TEMPLATE = "https://{key}.rest.akismet.com/1.1/comment-check"


@dataclass(frozen=True)
class SpamContext:
    """Everything known about a submission at screening time."""

    domain: str
    ip: str
    user_agent: str
    name: str
    email: str
    link: str
    markdown: str


class SpamChecker(Protocol):
    """Oracle deciding whether a submission is spam."""

    def is_spam(self, context: SpamContext) -> bool:
        ...


class NullSpamChecker:
    """Checker that accepts everything."""

    def is_spam(self, context: SpamContext) -> bool:
        return False


class AkismetSpamChecker:
    """HTTP client wrapper for the Akismet comment-check API.

    Transport failures and unexpected answers are logged and treated as
    "not spam" so that an unreachable oracle never blocks commenting.
    """

    def __init__(
        self,
        api_key: str,
        *,
        timeout_seconds: float = 5.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.api_key = api_key
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout_seconds))

    def is_spam(self, context: SpamContext) -> bool:
        data = {
            "blog": f"https://{context.domain}",
            "user_ip": context.ip,
            "user_agent": context.user_agent,
            "comment_type": "comment",
            "comment_author": context.name,
            "comment_author_email": context.email,
            "comment_author_url": context.link,
            "comment_content": context.markdown,
        }
        try:
            response = self._client.post(AKISMET_URL_TEMPLATE.format(key=self.api_key), data=data)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Akismet check failed for %s: %s", context.domain, exc)
            return False

        verdict = response.text.strip()
        if verdict not in {"true", "false"}:
            logger.warning("unexpected Akismet response for %s: %r", context.domain, verdict)
            return False
        return verdict == "true"

    def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        self._client.close()


def build_spam_checker(settings: Settings | None = None) -> SpamChecker:
    """Return the checker matching the configured Akismet key."""
    settings = settings or get_settings()
    if settings.akismet_key:
        return AkismetSpamChecker(
            settings.akismet_key,
            timeout_seconds=settings.akismet_timeout_seconds,
        )
    return NullSpamChecker()


_spam_checker: SpamChecker | None = None


def get_spam_checker() -> SpamChecker:
    """Return the process-wide spam checker."""
    global _spam_checker
    if _spam_checker is None:
        _spam_checker = build_spam_checker()
    return _spam_checker
