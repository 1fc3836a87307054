"""Initial Prompt Hub schema: repositories, tags, versions and profiles.

Revision ID: 001_initial_schema
Revises: 
Create Date: 2026-10-17 10:00:00
"""

revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "prompt_repositories",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("model_compatibility", JSON_TYPE, nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_prompt_repositories_user_id", "prompt_repositories", ["user_id"])
    op.create_index("ix_prompt_repositories_is_public", "prompt_repositories", ["is_public"])
    op.create_index("ix_prompt_repositories_created_at", "prompt_repositories", ["created_at"])

    op.create_table(
        "prompt_repository_tags",
        sa.Column(
            "repository_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("prompt_repositories.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("tag", sa.Text(), primary_key=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_prompt_repository_tags_tag", "prompt_repository_tags", ["tag"])

    op.create_table(
        "prompt_versions",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "repository_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("prompt_repositories.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("version_number", sa.Integer(), nullable=False),
        sa.Column("prompt_text", sa.Text(), nullable=False),
        sa.Column("variables", JSON_TYPE, nullable=True),
        sa.Column("model_settings", JSON_TYPE, nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("repository_id", "version_number", name="uq_prompt_versions_repository_number"),
    )
    op.create_index("ix_prompt_versions_repository_id", "prompt_versions", ["repository_id"])
    op.create_index("ix_prompt_versions_user_id", "prompt_versions", ["user_id"])

    op.create_table(
        "profiles",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("external_id", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_profiles_external_id", "profiles", ["external_id"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_profiles_external_id", table_name="profiles")
    op.drop_table("profiles")
    op.drop_index("ix_prompt_versions_user_id", table_name="prompt_versions")
    op.drop_index("ix_prompt_versions_repository_id", table_name="prompt_versions")
    op.drop_table("prompt_versions")
    op.drop_index("ix_prompt_repository_tags_tag", table_name="prompt_repository_tags")
    op.drop_table("prompt_repository_tags")
    op.drop_index("ix_prompt_repositories_created_at", table_name="prompt_repositories")
    op.drop_index("ix_prompt_repositories_is_public", table_name="prompt_repositories")
    op.drop_index("ix_prompt_repositories_user_id", table_name="prompt_repositories")
    op.drop_table("prompt_repositories")
