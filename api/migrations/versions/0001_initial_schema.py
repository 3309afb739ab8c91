"""Initial schema: users, posts, comments, rating ledger, activity events

Revision ID: 5e1f0a2b7c31
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates all 6 tables: users, posts, comments, ratings, rating_milestones,
activity_events.

Indexes follow the read paths:
  - (user_id, posted_at) / (user_id, commented_at) / (user_id, created_at)
    for the per-user timeline sources
  - (user_id, rater_id, rated_at) for the latest-rating-per-rater lookup
    behind the derived score
  - comments.post_id for the post page

activity_events.id is the GitHub event id (not generated), which makes
INSERT ... ON CONFLICT (id) DO NOTHING idempotent.
"""
from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5e1f0a2b7c31"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- users table ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("github_username", sa.String(100), nullable=True),
        sa.Column(
            "registered_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )

    # --- posts table ---
    op.create_table(
        "posts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", name="fk_posts_user_id_users"),
            nullable=False,
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "posted_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index("ix_posts_user_id_posted_at", "posts", ["user_id", "posted_at"])

    # --- comments table ---
    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", name="fk_comments_user_id_users"),
            nullable=False,
        ),
        sa.Column(
            "post_id",
            sa.Integer(),
            sa.ForeignKey("posts.id", name="fk_comments_post_id_posts", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column(
            "commented_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index("ix_comments_user_id_commented_at", "comments", ["user_id", "commented_at"])
    op.create_index("ix_comments_post_id", "comments", ["post_id"])

    # --- ratings table (append-only ledger) ---
    op.create_table(
        "ratings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "rater_id",
            sa.Integer(),
            sa.ForeignKey("users.id", name="fk_ratings_rater_id_users"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", name="fk_ratings_user_id_users"),
            nullable=False,
        ),
        sa.Column("rating", sa.Float(), nullable=False),
        sa.Column(
            "rated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.CheckConstraint(
            "rating >= 1.0 AND rating <= 5.0", name="ck_ratings_rating_range"
        ),
    )
    op.create_index(
        "ix_ratings_user_id_rater_id_rated_at",
        "ratings",
        ["user_id", "rater_id", "rated_at"],
    )

    # --- rating_milestones table (at most one per rating) ---
    op.create_table(
        "rating_milestones",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "rating_id",
            sa.Integer(),
            sa.ForeignKey("ratings.id", name="fk_rating_milestones_rating_id_ratings"),
            nullable=False,
            unique=True,
        ),
        sa.Column("score_before", sa.Float(), nullable=False),
        sa.Column("score_after", sa.Float(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )

    # --- activity_events table ---
    op.create_table(
        "activity_events",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", name="fk_activity_events_user_id_users"),
            nullable=False,
        ),
        sa.Column("kind", sa.String(32), nullable=False),
        sa.Column("repo_name", sa.String(255), nullable=False),
        sa.Column("pr_number", sa.Integer(), nullable=True),
        sa.Column("num_commits", sa.Integer(), nullable=True),
        sa.Column("head", sa.String(64), nullable=True),
    )
    op.create_index(
        "ix_activity_events_user_id_created_at",
        "activity_events",
        ["user_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_activity_events_user_id_created_at", table_name="activity_events")
    op.drop_table("activity_events")
    op.drop_table("rating_milestones")
    op.drop_index("ix_ratings_user_id_rater_id_rated_at", table_name="ratings")
    op.drop_table("ratings")
    op.drop_index("ix_comments_post_id", table_name="comments")
    op.drop_index("ix_comments_user_id_commented_at", table_name="comments")
    op.drop_table("comments")
    op.drop_index("ix_posts_user_id_posted_at", table_name="posts")
    op.drop_table("posts")
    op.drop_table("users")
