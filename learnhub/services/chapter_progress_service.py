"""
learnhub/services/chapter_progress_service.py
Chapter Progress Tracker

Reads and writes one user's completion state for one chapter.

Every write is a single INSERT ... ON CONFLICT (user_id, chapter_id)
DO UPDATE, so there is never more than one record per pair and
repeating a call leaves the same observable state.

Storage errors are logged and re-raised: silently dropping a completion
event would corrupt the learner's standing.
"""
import logging
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.core.upsert import upsert_one
from learnhub.orm.user_progress import UserProgress
from learnhub.schemas.progress import ChapterProgressRecord

logger = logging.getLogger(__name__)

_CONFLICT_KEY = ["user_id", "chapter_id"]


async def _upsert_progress(
    db: AsyncSession,
    user_id: str,
    chapter_id: str,
    insert_values: Dict[str, Any],
    update_values: Dict[str, Any],
    action: str,
) -> ChapterProgressRecord:
    try:
        row = await upsert_one(
            db,
            UserProgress,
            _CONFLICT_KEY,
            {"user_id": user_id, "chapter_id": chapter_id, **insert_values},
            update_values,
        )
        record = ChapterProgressRecord.model_validate(row)
        await db.commit()
    except Exception as e:
        logger.error(f"Failed to {action} (user={user_id}, chapter={chapter_id}): {str(e)}")
        await db.rollback()
        raise
    
    logger.info(f"✓ {action} (user={user_id}, chapter={chapter_id}, completed={record.completed})")
    return record


async def mark_chapter_completed(db: AsyncSession, user_id: str, chapter_id: str) -> ChapterProgressRecord:
    now = datetime.utcnow()
    values = {"completed": True, "completed_at": now, "updated_at": now}
    return await _upsert_progress(db, user_id, chapter_id, values, values, "mark chapter completed")


async def mark_chapter_incomplete(db: AsyncSession, user_id: str, chapter_id: str) -> ChapterProgressRecord:
    now = datetime.utcnow()
    values = {"completed": False, "completed_at": None, "updated_at": now}
    return await _upsert_progress(db, user_id, chapter_id, values, values, "mark chapter incomplete")


async def update_chapter_access(db: AsyncSession, user_id: str, chapter_id: str) -> ChapterProgressRecord:
    """
    Touch updated_at without changing completion.
    
    Creates the record with completed=False on first access.
    """
    now = datetime.utcnow()
    return await _upsert_progress(
        db,
        user_id,
        chapter_id,
        {"completed": False, "updated_at": now},
        {"updated_at": now},
        "update chapter access",
    )


async def get_chapter_progress(db: AsyncSession, user_id: str, chapter_id: str) -> ChapterProgressRecord:
    """
    Stored progress for (user, chapter), or the implicit default
    (completed=False, no timestamps) when nothing has been recorded.
    """
    result = await db.execute(
        select(UserProgress).where(
            and_(
                UserProgress.user_id == user_id,
                UserProgress.chapter_id == chapter_id
            )
        )
    )
    row = result.scalar_one_or_none()
    
    if row is None:
        return ChapterProgressRecord.default(user_id, chapter_id)
    return ChapterProgressRecord.model_validate(row)
