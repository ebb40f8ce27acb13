"""initial schema

Revision ID: 5c1f0a7e2b34
Revises:
Create Date: 2026-10-18 09:12:40.511204

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1f0a7e2b34"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create owner, commenter, domain and comment tables."""
    op.create_table(
        "owners",
        sa.Column("owner_hex", sa.String(length=128), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("confirmed_email", sa.Boolean(), nullable=False),
        sa.Column("join_date", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("owner_hex"),
        sa.UniqueConstraint("email"),
    )
    op.create_table(
        "owner_sessions",
        sa.Column("owner_token", sa.String(length=128), nullable=False),
        sa.Column("owner_hex", sa.String(length=128), nullable=False),
        sa.Column("login_date", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["owner_hex"], ["owners.owner_hex"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("owner_token"),
    )
    op.create_index("ix_owner_sessions_owner_hex", "owner_sessions", ["owner_hex"])
    op.create_table(
        "owner_confirm_tokens",
        sa.Column("confirm_hex", sa.String(length=128), nullable=False),
        sa.Column("owner_hex", sa.String(length=128), nullable=False),
        sa.Column("send_date", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["owner_hex"], ["owners.owner_hex"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("confirm_hex"),
    )
    op.create_table(
        "owner_reset_tokens",
        sa.Column("reset_hex", sa.String(length=128), nullable=False),
        sa.Column("owner_hex", sa.String(length=128), nullable=False),
        sa.Column("send_date", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["owner_hex"], ["owners.owner_hex"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("reset_hex"),
    )
    op.create_table(
        "commenters",
        sa.Column("commenter_hex", sa.String(length=128), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("link", sa.Text(), nullable=False),
        sa.Column("photo", sa.Text(), nullable=False),
        sa.Column("provider", sa.Text(), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=True),
        sa.Column("join_date", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("commenter_hex"),
        sa.UniqueConstraint("email", "provider", name="uq_commenters_email_provider"),
    )
    op.create_table(
        "commenter_sessions",
        sa.Column("commenter_token", sa.String(length=128), nullable=False),
        sa.Column("commenter_hex", sa.String(length=128), nullable=True),
        sa.Column("creation_date", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["commenter_hex"], ["commenters.commenter_hex"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("commenter_token"),
    )
    op.create_index("ix_commenter_sessions_commenter_hex", "commenter_sessions", ["commenter_hex"])
    op.create_table(
        "domains",
        sa.Column("domain", sa.String(length=255), nullable=False),
        sa.Column("owner_hex", sa.String(length=128), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("creation_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("state", sa.String(length=16), nullable=False),
        sa.Column("require_identification", sa.Boolean(), nullable=False),
        sa.Column("require_moderation", sa.Boolean(), nullable=False),
        sa.Column("moderate_all_anonymous", sa.Boolean(), nullable=False),
        sa.Column("auto_spam_filter", sa.Boolean(), nullable=False),
        sa.Column("email_notification_policy", sa.String(length=32), nullable=False),
        sa.Column("default_sort_policy", sa.String(length=32), nullable=False),
        sa.Column("sso_secret", sa.Text(), nullable=True),
        sa.Column("sso_url", sa.Text(), nullable=True),
        sa.Column("idps", sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(["owner_hex"], ["owners.owner_hex"]),
        sa.PrimaryKeyConstraint("domain"),
    )
    op.create_index("ix_domains_owner_hex", "domains", ["owner_hex"])
    op.create_table(
        "domain_moderators",
        sa.Column("domain", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("add_date", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["domain"], ["domains.domain"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("domain", "email"),
    )
    op.create_table(
        "pages",
        sa.Column("domain", sa.String(length=255), nullable=False),
        sa.Column("path", sa.String(length=2048), nullable=False),
        sa.Column("is_locked", sa.Boolean(), nullable=False),
        sa.Column("comment_count", sa.Integer(), nullable=False),
        sa.Column("sticky_comment_hex", sa.String(length=128), nullable=True),
        sa.Column("title", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["domain"], ["domains.domain"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("domain", "path"),
    )
    op.create_table(
        "sso_tokens",
        sa.Column("token", sa.String(length=128), nullable=False),
        sa.Column("domain", sa.String(length=255), nullable=False),
        sa.Column("commenter_token", sa.String(length=128), nullable=False),
        sa.Column("creation_date", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["domain"], ["domains.domain"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("token"),
    )
    op.create_table(
        "comments",
        sa.Column("comment_hex", sa.String(length=128), nullable=False),
        sa.Column("domain", sa.String(length=255), nullable=False),
        sa.Column("path", sa.String(length=2048), nullable=False),
        sa.Column("commenter_hex", sa.String(length=128), nullable=False),
        sa.Column("parent_hex", sa.String(length=128), nullable=False),
        sa.Column("markdown", sa.Text(), nullable=False),
        sa.Column("html", sa.Text(), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("state", sa.String(length=16), nullable=False),
        sa.Column("deleted", sa.Boolean(), nullable=False),
        sa.Column("creation_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleter_hex", sa.String(length=128), nullable=True),
        sa.Column("deletion_date", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "state IN ('unapproved', 'approved', 'flagged')", name="ck_comments_state"
        ),
        sa.ForeignKeyConstraint(["domain"], ["domains.domain"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("comment_hex"),
    )
    op.create_index("ix_comments_domain_path", "comments", ["domain", "path"])
    op.create_table(
        "votes",
        sa.Column("comment_hex", sa.String(length=128), nullable=False),
        sa.Column("commenter_hex", sa.String(length=128), nullable=False),
        sa.Column("direction", sa.SmallInteger(), nullable=False),
        sa.Column("vote_date", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("direction IN (-1, 0, 1)", name="ck_votes_direction"),
        sa.ForeignKeyConstraint(["comment_hex"], ["comments.comment_hex"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("comment_hex", "commenter_hex"),
    )
    op.create_index("ix_votes_comment_hex", "votes", ["comment_hex"])


def downgrade() -> None:
    """Drop every table created by this revision."""
    op.drop_index("ix_votes_comment_hex", table_name="votes")
    op.drop_table("votes")
    op.drop_index("ix_comments_domain_path", table_name="comments")
    op.drop_table("comments")
    op.drop_table("sso_tokens")
    op.drop_table("pages")
    op.drop_table("domain_moderators")
    op.drop_index("ix_domains_owner_hex", table_name="domains")
    op.drop_table("domains")
    op.drop_index("ix_commenter_sessions_commenter_hex", table_name="commenter_sessions")
    op.drop_table("commenter_sessions")
    op.drop_table("commenters")
    op.drop_table("owner_reset_tokens")
    op.drop_index("ix_owner_sessions_owner_hex", table_name="owner_sessions")
    op.drop_table("owner_sessions")
    op.drop_table("owners")
