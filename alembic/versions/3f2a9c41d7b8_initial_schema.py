"""initial schema

Revision ID: 3f2a9c41d7b8
Revises:
Create Date: 2026-10-19 09:12:47.203518

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '3f2a9c41d7b8'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "memos",
        sa.Column("id", sa.BigInteger(), sa.Identity(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column(
            "priority",
            sa.Text(),
            nullable=False,
            server_default=sa.text("'NONE'"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "priority IN ('HIGH', 'MEDIUM', 'LOW', 'NONE')", name="ck_memos_priority"
        ),
    )
    op.create_index("idx_memos_priority", "memos", ["priority"])
    op.create_index("idx_memos_created_at", "memos", ["created_at"])


def downgrade() -> None:
    op.drop_index("idx_memos_created_at", table_name="memos")
    op.drop_index("idx_memos_priority", table_name="memos")
    op.drop_table("memos")
