"""SQLAlchemy ORM models for Memo App."""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, CheckConstraint, Identity, Index, String, Text, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from memo_app.core.models import MAX_TITLE_LENGTH, Priority


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Memo(Base):
    """A memo row."""

    __tablename__ = "memos"

    id: Mapped[int] = mapped_column(BigInteger, Identity(), primary_key=True)
    title: Mapped[str] = mapped_column(String(MAX_TITLE_LENGTH), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    priority: Mapped[str] = mapped_column(
        Text, default=Priority.NONE.value, server_default=text(f"'{Priority.NONE.value}'")
    )
    created_at: Mapped[datetime] = mapped_column(default=_utc_now, server_default=text("now()"))
    updated_at: Mapped[datetime] = mapped_column(default=_utc_now, server_default=text("now()"))

    __table_args__ = (
        Index("idx_memos_priority", "priority"),
        Index("idx_memos_created_at", "created_at"),
        CheckConstraint(
            "priority IN ('HIGH', 'MEDIUM', 'LOW', 'NONE')", name="ck_memos_priority"
        ),
    )
