"""ActivityEvent ORM model.

One row per external (GitHub) event. The primary key is the source's own
event id, so re-ingesting the same event is a no-op at the DB level
(INSERT ... ON CONFLICT DO NOTHING in services.activity).

kind values:
  "create_repo"   - repository created
  "open_pr"       - pull request opened (pr_number set)
  "merge_pr"      - pull request merged (pr_number set)
  "push_commits"  - push (num_commits and head set)
"""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class ActivityKind(str, enum.Enum):
    create_repo = "create_repo"
    open_pr = "open_pr"
    merge_pr = "merge_pr"
    push_commits = "push_commits"


class ActivityEvent(Base):
    __tablename__ = "activity_events"
    __table_args__ = (
        Index("ix_activity_events_user_id_created_at", "user_id", "created_at"),
    )

    # Source-assigned id - not autoincremented
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", name="fk_activity_events_user_id_users"), nullable=False
    )
    kind: Mapped[str] = mapped_column(String(32), nullable=False)
    repo_name: Mapped[str] = mapped_column(String(255), nullable=False)
    pr_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    num_commits: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    head: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
