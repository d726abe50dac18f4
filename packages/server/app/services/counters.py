"""
Cached counter repair.

``like_count`` and ``subscriber_count`` are bumped next to each toggle and
can drift (crashed requests, manual edits). Reconciliation recounts them
from the relation rows, which are always authoritative.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog
from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.content import Comment, Tweet, Video
from app.models.like import Like
from app.models.subscription import Subscription
from app.models.user import User
from vidhub_shared.schemas.common import TargetKind

log = structlog.get_logger()


@dataclass
class ReconcileReport:
    # table name -> rows whose cached value was wrong
    repaired: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.repaired.values())


def _recount_likes(model, kind: TargetKind):
    return (
        select(func.count(Like.id))
        .where(Like.target_kind == kind.value, Like.target_id == model.id)
        .correlate(model)
        .scalar_subquery()
    )


async def _repair(session: AsyncSession, model, column, fresh) -> int:
    result = await session.execute(
        update(model)
        .where(column != fresh)
        .values({column.key: fresh})
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def reconcile_counters(session: AsyncSession) -> ReconcileReport:
    """Recount every cached counter from relation rows."""
    report = ReconcileReport()

    for model, kind in (
        (Video, TargetKind.VIDEO),
        (Comment, TargetKind.COMMENT),
        (Tweet, TargetKind.TWEET),
    ):
        fresh = _recount_likes(model, kind)
        report.repaired[model.__tablename__] = await _repair(
            session, model, model.like_count, fresh
        )

    subscribers = (
        select(func.count(Subscription.id))
        .where(Subscription.channel_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )
    report.repaired[User.__tablename__] = await _repair(
        session, User, User.subscriber_count, subscribers
    )

    log.info("counters.reconciled", total=report.total, **report.repaired)
    return report
