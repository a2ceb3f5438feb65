"""initial_schema

Users, departments, suggestions (with media), bilingual posts
(likes, comments) and member applications.

Revision ID: a1c3e5f70001
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = "a1c3e5f70001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    ]


def upgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing_tables = set(inspector.get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("email", sa.String(length=200), nullable=False),
            sa.Column("role", sa.String(length=20), nullable=False, server_default="student"),
            sa.Column("password_hash", sa.String(length=256), nullable=False),
            sa.Column("department", sa.String(length=100), nullable=True),
            sa.Column("phone", sa.String(length=50), nullable=True),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("email"),
        )
        op.create_index("ix_users_role", "users", ["role"])

    if "departments" not in existing_tables:
        op.create_table(
            "departments",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("description", sa.String(length=500), nullable=True),
            sa.Column("head", sa.String(length=100), nullable=True),
            sa.Column("email", sa.String(length=200), nullable=True),
            sa.Column("phone", sa.String(length=50), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("name"),
        )
        op.create_index("ix_departments_is_active", "departments", ["is_active"])

    if "suggestions" not in existing_tables:
        op.create_table(
            "suggestions",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=True),
            sa.Column("anonymous", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("category", sa.String(length=30), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="Received"),
            sa.Column("assigned_department", sa.String(length=100), nullable=True),
            sa.Column("assigned_to", sa.String(length=200), nullable=True),
            sa.Column("action_taken", sa.Text(), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_suggestions_user_id", "suggestions", ["user_id"])
        op.create_index("ix_suggestions_category", "suggestions", ["category"])
        op.create_index("ix_suggestions_status", "suggestions", ["status"])
        op.create_index("ix_suggestions_assigned_department", "suggestions", ["assigned_department"])
        op.create_index("ix_suggestions_created_at", "suggestions", ["created_at"])
        op.create_index("ix_suggestions_updated_at", "suggestions", ["updated_at"])

    if "suggestion_media" not in existing_tables:
        op.create_table(
            "suggestion_media",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("suggestion_id", sa.String(length=36), nullable=False),
            sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("type", sa.String(length=10), nullable=False),
            sa.Column("url", sa.String(length=1000), nullable=False),
            sa.Column("filename", sa.String(length=255), nullable=False),
            sa.Column("mimetype", sa.String(length=100), nullable=False),
            sa.Column("size", sa.Integer(), nullable=False),
            sa.Column("storage_key", sa.String(length=500), nullable=False),
            sa.ForeignKeyConstraint(["suggestion_id"], ["suggestions.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_suggestion_media_suggestion_id", "suggestion_media", ["suggestion_id"])

    if "posts" not in existing_tables:
        op.create_table(
            "posts",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("title_en", sa.String(length=500), nullable=True),
            sa.Column("title_np", sa.String(length=500), nullable=True),
            sa.Column("content_en", sa.Text(), nullable=True),
            sa.Column("content_np", sa.Text(), nullable=True),
            sa.Column("excerpt_en", sa.String(length=1000), nullable=True),
            sa.Column("excerpt_np", sa.String(length=1000), nullable=True),
            sa.Column("category", sa.String(length=40), nullable=True),
            sa.Column("image", sa.String(length=1000), nullable=True),
            sa.Column("image_key", sa.String(length=500), nullable=True),
            sa.Column("author_id", sa.Integer(), nullable=True),
            sa.Column("tags", sa.JSON(), nullable=True),
            sa.Column("featured", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("views", sa.Integer(), nullable=False, server_default="0"),
            *_timestamps(),
            sa.ForeignKeyConstraint(["author_id"], ["users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_posts_category", "posts", ["category"])
        op.create_index("ix_posts_featured", "posts", ["featured"])
        op.create_index("ix_posts_published", "posts", ["published"])
        op.create_index("ix_posts_created_at", "posts", ["created_at"])

    if "post_likes" not in existing_tables:
        op.create_table(
            "post_likes",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("post_id", sa.Integer(), nullable=False),
            sa.Column("liker", sa.String(length=100), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["post_id"], ["posts.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("post_id", "liker", name="uq_post_like_liker"),
        )

    if "post_comments" not in existing_tables:
        op.create_table(
            "post_comments",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("post_id", sa.Integer(), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=True),
            sa.Column("user_name", sa.String(length=50), nullable=False, server_default="Anonymous"),
            sa.Column("text", sa.String(length=1000), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["post_id"], ["posts.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_post_comments_post_id", "post_comments", ["post_id"])

    if "member_applications" not in existing_tables:
        op.create_table(
            "member_applications",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("general_info", sa.JSON(), nullable=False),
            sa.Column("professional_details", sa.JSON(), nullable=False),
            sa.Column("membership_details", sa.JSON(), nullable=False),
            sa.Column("endorsement", sa.JSON(), nullable=False),
            sa.Column("declaration", sa.JSON(), nullable=False),
            sa.Column("documents", sa.JSON(), nullable=False),
            sa.Column("full_name", sa.String(length=200), nullable=False),
            sa.Column("email", sa.String(length=200), nullable=False),
            sa.Column("citizenship_id", sa.String(length=100), nullable=False),
            sa.Column("province", sa.String(length=100), nullable=True),
            sa.Column("membership_level", sa.String(length=50), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("email"),
            sa.UniqueConstraint("citizenship_id"),
        )
        op.create_index("ix_member_applications_province", "member_applications", ["province"])
        op.create_index(
            "ix_member_applications_membership_level", "member_applications", ["membership_level"],
        )
        op.create_index("ix_member_applications_status", "member_applications", ["status"])
        op.create_index("ix_member_applications_created_at", "member_applications", ["created_at"])


def downgrade():
    op.drop_table("member_applications")
    op.drop_table("post_comments")
    op.drop_table("post_likes")
    op.drop_table("posts")
    op.drop_table("suggestion_media")
    op.drop_table("suggestions")
    op.drop_table("departments")
    op.drop_table("users")
