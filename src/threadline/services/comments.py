"""Comment lifecycle: submission, moderation, edits, deletion and listing.

Every mutating operation authorizes the requester against the comment's
domain before touching storage. Validation failures are raised before any
write; storage failures surface as ``InternalError``.
"""

from __future__ import annotations

import logging

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from threadline.core.errors import (
    DomainFrozenError,
    EmptyPathsError,
    MissingFieldError,
    NoSuchCommentError,
    NotAuthorisedError,
    NotModeratorError,
    ThreadLockedError,
    ThreadlineError,
)
from threadline.core.security import random_hex
from threadline.core.settings import Settings, get_settings
from threadline.db.guard import storage_guard
from threadline.db.session import dialect_insert
from threadline.db.time import utcnow
from threadline.models import Comment, Commenter, CommentVote, Domain, Page
from threadline.models.comment import (
    COMMENT_STATE_APPROVED,
    COMMENT_STATE_FLAGGED,
    COMMENT_STATE_UNAPPROVED,
    ROOT_PARENT_HEX,
    TOMBSTONE,
)
from threadline.models.commenter import ANONYMOUS_COMMENTER_HEX, UNDEFINED
from threadline.models.domain import NOTIFY_ALL, NOTIFY_PENDING_MODERATION
from threadline.repositories.credentials import CredentialStore
from threadline.schemas.comment import (
    CommentCreated,
    CommenterView,
    CommentListResponse,
    CommentView,
    PageView,
)
from threadline.services.authz import (
    Role,
    authorize_comment_mutation,
    is_anonymous,
    is_moderator,
    resolve_role,
)
from threadline.services.domains import get_domain
from threadline.services.markdown import render_markdown
from threadline.services.notifications import (
    EVENT_COMMENT_NEW,
    EVENT_COMMENT_REPLY,
    NotificationDispatcher,
    NotificationEvent,
    Recipient,
    get_notification_dispatcher,
)
from threadline.services.spam import SpamChecker, SpamContext, get_spam_checker

logger = logging.getLogger(__name__)

ANONYMOUS_NAME = "Anonymous"


def _anonymous_view() -> CommenterView:
    return CommenterView(
        commenter_hex=ANONYMOUS_COMMENTER_HEX,
        name=ANONYMOUS_NAME,
        link=UNDEFINED,
        photo=UNDEFINED,
        provider=UNDEFINED,
        is_moderator=False,
    )


class CommentService:
    """Comment state machine and per-requester projections."""

    def __init__(
        self,
        db: Session,
        *,
        settings: Settings | None = None,
        spam_checker: SpamChecker | None = None,
        dispatcher: NotificationDispatcher | None = None,
    ) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.store = CredentialStore(db, self.settings)
        self.spam_checker = spam_checker or get_spam_checker()
        self.dispatcher = dispatcher or get_notification_dispatcher()

    def _get_comment(self, comment_hex: str) -> Comment:
        if not comment_hex:
            raise MissingFieldError()
        with storage_guard(self.db, "loading comment"):
            comment = self.db.get(Comment, comment_hex)
        if comment is None:
            raise NoSuchCommentError()
        return comment

    def _initial_state(
        self,
        domain: Domain,
        commenter: Commenter | None,
        role: Role,
        markdown: str,
        ip: str,
        user_agent: str,
    ) -> str:
        if role is Role.MODERATOR:
            return COMMENT_STATE_APPROVED
        anonymous = is_anonymous(commenter)
        if domain.require_moderation or (anonymous and domain.moderate_all_anonymous):
            return COMMENT_STATE_UNAPPROVED
        if domain.auto_spam_filter:
            context = SpamContext(
                domain=domain.domain,
                ip=ip,
                user_agent=user_agent,
                name=ANONYMOUS_NAME if anonymous else commenter.name,
                email="" if anonymous else commenter.email,
                link="" if anonymous else commenter.link,
                markdown=markdown,
            )
            if self.spam_checker.is_spam(context):
                return COMMENT_STATE_FLAGGED
        return COMMENT_STATE_APPROVED

    def create(
        self,
        domain_name: str,
        path: str,
        parent_hex: str,
        markdown: str,
        commenter: Commenter | None,
        ip: str = "",
        user_agent: str = "",
    ) -> CommentCreated:
        """Submit a comment to the ``(domain, path)`` thread.

        Raises:
            NoSuchDomainError: If the domain is not registered.
            DomainFrozenError: If the domain no longer accepts comments.
            NotAuthorisedError: If the domain requires identification and the
                commenter is anonymous.
            MissingFieldError: If ``markdown`` is empty.
            NoSuchCommentError: If ``parent_hex`` is not a comment of the thread.
            ThreadLockedError: If the page is locked.
        """
        domain = get_domain(self.db, domain_name)
        if domain.is_frozen:
            raise DomainFrozenError()
        if is_anonymous(commenter) and domain.require_identification:
            raise NotAuthorisedError()
        if not markdown or not markdown.strip():
            raise MissingFieldError()

        parent_hex = parent_hex or ROOT_PARENT_HEX
        parent: Comment | None = None
        if parent_hex != ROOT_PARENT_HEX:
            parent = self._get_comment(parent_hex)
            if parent.domain != domain.domain or parent.path != path:
                raise NoSuchCommentError()

        role = resolve_role(domain, commenter)
        state = self._initial_state(domain, commenter, role, markdown, ip, user_agent)
        commenter_hex = ANONYMOUS_COMMENTER_HEX if is_anonymous(commenter) else commenter.commenter_hex

        with storage_guard(self.db, "creating comment"):
            self.db.execute(
                dialect_insert(self.db, Page)
                .values(domain=domain.domain, path=path, is_locked=False, comment_count=0)
                .on_conflict_do_nothing(index_elements=["domain", "path"])
            )
            is_locked = self.db.scalar(
                select(Page.is_locked).where(Page.domain == domain.domain, Page.path == path)
            )
            if is_locked:
                self.db.rollback()
                raise ThreadLockedError()

            html = render_markdown(markdown)
            comment = Comment(
                comment_hex=random_hex(self.settings.token_bytes),
                domain=domain.domain,
                path=path,
                commenter_hex=commenter_hex,
                parent_hex=parent_hex,
                markdown=markdown,
                html=html,
                state=state,
                creation_date=utcnow(),
            )
            self.db.add(comment)
            self.db.execute(
                update(Page)
                .where(Page.domain == domain.domain, Page.path == path)
                .values(comment_count=Page.comment_count + 1)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()

        logger.info("comment %s created on %s%s as %s", comment.comment_hex, domain.domain, path, state)
        created = CommentCreated(
            comment_hex=comment.comment_hex,
            commenter_hex=commenter_hex,
            parent_hex=parent_hex,
            state=state,
            html=html,
        )
        self._notify_new_comment(domain, path, created, markdown, parent)
        return created

    def _moderator_recipients(
        self, domain: Domain, state: str, author_email: str | None
    ) -> list[Recipient]:
        policy = domain.email_notification_policy
        if policy == NOTIFY_ALL:
            wanted = True
        elif policy == NOTIFY_PENDING_MODERATION:
            wanted = state != COMMENT_STATE_APPROVED
        else:
            wanted = False
        if not wanted:
            return []

        emails = sorted(domain.moderator_emails - {author_email})
        if not emails:
            return []
        with storage_guard(self.db, "loading moderator names"):
            names = dict(
                self.db.execute(
                    select(Commenter.email, Commenter.name).where(Commenter.email.in_(emails))
                ).all()
            )
        return [Recipient(email=email, name=names.get(email, email)) for email in emails]

    def _notify_new_comment(
        self,
        domain: Domain,
        path: str,
        created: CommentCreated,
        markdown: str,
        parent: Comment | None,
    ) -> None:
        data = {
            "domain": domain.domain,
            "path": path,
            "comment_hex": created.comment_hex,
            "commenter_hex": created.commenter_hex,
            "state": created.state,
            "markdown": markdown,
            "html": created.html,
        }
        try:
            author = None
            if created.commenter_hex != ANONYMOUS_COMMENTER_HEX:
                author = self.store.get_commenter_by_hex(created.commenter_hex)
            moderators = self._moderator_recipients(
                domain, created.state, author.email if author else None
            )
            self.dispatcher.submit(
                NotificationEvent(
                    kind=EVENT_COMMENT_NEW,
                    subject=f"New comment on {domain.name}",
                    data=data,
                ),
                moderators,
            )

            if (
                parent is not None
                and created.state == COMMENT_STATE_APPROVED
                and parent.commenter_hex not in {ANONYMOUS_COMMENTER_HEX, created.commenter_hex}
            ):
                parent_author = self.store.get_commenter_by_hex(parent.commenter_hex)
                if parent_author is not None:
                    self.dispatcher.submit(
                        NotificationEvent(
                            kind=EVENT_COMMENT_REPLY,
                            subject=f"New reply to your comment on {domain.name}",
                            data=data,
                        ),
                        [Recipient(email=parent_author.email, name=parent_author.name)],
                    )
        except ThreadlineError as exc:
            logger.warning(
                "could not queue notifications for comment %s: %s",
                created.comment_hex,
                exc.message,
            )

    def approve(self, comment_hex: str, commenter: Commenter | None) -> None:
        """Mark a comment as approved.

        Raises:
            NoSuchCommentError: If the comment does not exist.
            NotModeratorError: If the requester does not moderate its domain.
        """
        comment = self._get_comment(comment_hex)
        domain = get_domain(self.db, comment.domain)
        if is_anonymous(commenter) or not is_moderator(domain, commenter.email):
            raise NotModeratorError()
        with storage_guard(self.db, "approving comment"):
            comment.state = COMMENT_STATE_APPROVED
            self.db.commit()
        logger.info("comment %s approved", comment_hex)

    def edit(self, comment_hex: str, markdown: str, commenter: Commenter | None) -> str:
        """Replace a comment's markdown and return the re-rendered HTML.

        The moderation state is left unchanged.
        """
        if not markdown or not markdown.strip():
            raise MissingFieldError()
        comment = self._get_comment(comment_hex)
        if comment.deleted:
            raise NoSuchCommentError()
        domain = get_domain(self.db, comment.domain)
        authorize_comment_mutation(domain, commenter, comment)

        html = render_markdown(markdown)
        with storage_guard(self.db, "editing comment"):
            comment.markdown = markdown
            comment.html = html
            self.db.commit()
        return html

    def delete(self, comment_hex: str, commenter: Commenter | None) -> None:
        """Replace a comment with a tombstone.

        Replies stay attached to the tombstone. Deleting an already deleted
        comment changes nothing.
        """
        comment = self._get_comment(comment_hex)
        if is_anonymous(commenter):
            raise NotModeratorError()
        if comment.deleted:
            return
        domain = get_domain(self.db, comment.domain)
        authorize_comment_mutation(domain, commenter, comment)

        with storage_guard(self.db, "deleting comment"):
            result = self.db.execute(
                update(Comment)
                .where(Comment.comment_hex == comment_hex, Comment.deleted.is_(False))
                .values(
                    deleted=True,
                    markdown=TOMBSTONE,
                    html=TOMBSTONE,
                    commenter_hex=ANONYMOUS_COMMENTER_HEX,
                    deleter_hex=commenter.commenter_hex,
                    deletion_date=utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount:
                self.db.execute(
                    update(Page)
                    .where(Page.domain == comment.domain, Page.path == comment.path)
                    .values(comment_count=Page.comment_count - 1)
                    .execution_options(synchronize_session=False)
                )
            self.db.commit()
        logger.info("comment %s deleted by %s", comment_hex, commenter.commenter_hex)

    def list(self, domain_name: str, path: str, commenter: Commenter | None) -> CommentListResponse:
        """Return the thread as visible to ``commenter``.

        Moderators see every live comment with its markdown and state. Others
        see approved comments plus their own, with markdown only on their own.
        """
        domain = get_domain(self.db, domain_name)
        anonymous = is_anonymous(commenter)
        requester_hex = ANONYMOUS_COMMENTER_HEX if anonymous else commenter.commenter_hex
        moderator = not anonymous and is_moderator(domain, commenter.email)

        stmt = select(Comment).where(
            Comment.domain == domain.domain,
            Comment.path == path,
            Comment.deleted.is_(False),
        )
        if not moderator:
            if anonymous:
                stmt = stmt.where(Comment.state == COMMENT_STATE_APPROVED)
            else:
                stmt = stmt.where(
                    or_(
                        Comment.state == COMMENT_STATE_APPROVED,
                        Comment.commenter_hex == requester_hex,
                    )
                )
        stmt = stmt.order_by(Comment.creation_date)

        with storage_guard(self.db, "listing comments"):
            page = self.db.get(Page, (domain.domain, path))
            comments = list(self.db.scalars(stmt))
            directions: dict[str, int] = {}
            if not anonymous and comments:
                directions = dict(
                    self.db.execute(
                        select(CommentVote.comment_hex, CommentVote.direction).where(
                            CommentVote.commenter_hex == requester_hex,
                            CommentVote.comment_hex.in_([c.comment_hex for c in comments]),
                        )
                    ).all()
                )

        authors = self.store.get_commenters(
            {c.commenter_hex for c in comments} - {ANONYMOUS_COMMENTER_HEX}
        )
        moderator_emails = domain.moderator_emails
        directory = {ANONYMOUS_COMMENTER_HEX: _anonymous_view()}
        for author in authors:
            directory[author.commenter_hex] = CommenterView(
                commenter_hex=author.commenter_hex,
                name=author.name,
                link=author.link,
                photo=author.photo,
                provider=author.provider,
                is_moderator=author.email in moderator_emails,
            )

        views = []
        for comment in comments:
            own = not anonymous and comment.commenter_hex == requester_hex
            views.append(
                CommentView(
                    comment_hex=comment.comment_hex,
                    commenter_hex=comment.commenter_hex,
                    parent_hex=comment.parent_hex,
                    html=comment.html,
                    markdown=comment.markdown if moderator or own else None,
                    state=comment.state if moderator else None,
                    score=comment.score,
                    direction=directions.get(comment.comment_hex, 0),
                    creation_date=comment.creation_date,
                )
            )

        page_view = PageView()
        if page is not None:
            page_view = PageView(
                is_locked=page.is_locked,
                comment_count=page.comment_count,
                sticky_comment_hex=page.sticky_comment_hex,
                title=page.title,
            )

        return CommentListResponse(
            comments=views,
            commenters=directory,
            requester_is_moderator=moderator,
            requester_hex=requester_hex,
            page=page_view,
            is_frozen=domain.is_frozen,
            require_identification=domain.require_identification,
            require_moderation=domain.require_moderation,
            default_sort_policy=domain.default_sort_policy,
            configured_idps=sorted(name for name, enabled in (domain.idps or {}).items() if enabled),
        )

    def count(self, domain_name: str, paths: list[str]) -> dict[str, int]:
        """Return the comment count of each requested path that has a page.

        Raises:
            MissingFieldError: If ``domain_name`` is empty.
            EmptyPathsError: If ``paths`` is empty.
        """
        if not domain_name:
            raise MissingFieldError()
        if not paths:
            raise EmptyPathsError()
        stmt = select(Page.path, Page.comment_count).where(
            Page.domain == domain_name,
            Page.path.in_(paths),
        )
        with storage_guard(self.db, "counting comments"):
            return dict(self.db.execute(stmt).all())
