"""
learnhub/services/user_stats_service.py
User Stats Aggregator

Account-wide totals across every course a user owns.

Four independent queries, no shared transaction snapshot:
1. total courses owned
2. total chapters in those courses
3. distinct completed chapters in those courses
4. per-course summaries (same aggregation as get_all_courses_progress)

totals come from 1-3; completed_courses is counted from 4. Under
concurrent writes the two sources may disagree slightly (read skew is
accepted in exchange for cheap queries).
"""
import logging

from sqlalchemy import select, and_, distinct, func
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.core.numeric import parse_count, completion_percentage
from learnhub.exceptions import MalformedAggregateRowError
from learnhub.orm.course import Course
from learnhub.orm.chapter import Chapter
from learnhub.orm.user_progress import UserProgress
from learnhub.schemas.progress import UserStats
from learnhub.services.course_progress_service import get_all_courses_progress

logger = logging.getLogger(__name__)


async def _fetch_count(db: AsyncSession, stmt, field: str) -> int:
    result = await db.execute(stmt)
    row = result.mappings().first()
    if row is None:
        raise MalformedAggregateRowError(f"Count query for '{field}' returned no row", field=field)
    return parse_count(row.get("count"), field)


async def count_courses(db: AsyncSession, user_id: str) -> int:
    return await _fetch_count(
        db,
        select(func.count(Course.id).label("count")).where(Course.user_id == user_id),
        "total_courses",
    )


async def count_chapters(db: AsyncSession, user_id: str) -> int:
    return await _fetch_count(
        db,
        select(func.count(Chapter.id).label("count"))
        .join(Course, Chapter.course_id == Course.id)
        .where(Course.user_id == user_id),
        "total_chapters",
    )


async def count_completed_chapters(db: AsyncSession, user_id: str) -> int:
    return await _fetch_count(
        db,
        select(func.count(distinct(UserProgress.chapter_id)).label("count"))
        .join(Chapter, UserProgress.chapter_id == Chapter.id)
        .join(Course, Chapter.course_id == Course.id)
        .where(
            and_(
                UserProgress.user_id == user_id,
                UserProgress.completed == True,
                Course.user_id == user_id
            )
        ),
        "completed_chapters",
    )


async def get_user_stats(db: AsyncSession, user_id: str) -> UserStats:
    total_courses = await count_courses(db, user_id)
    total_chapters = await count_chapters(db, user_id)
    completed_chapters = await count_completed_chapters(db, user_id)
    course_summaries = await get_all_courses_progress(db, user_id)
    
    completed_courses = sum(1 for summary in course_summaries if summary.is_completed)
    
    stats = UserStats(
        total_courses=total_courses,
        completed_courses=completed_courses,
        total_chapters=total_chapters,
        completed_chapters=completed_chapters,
        overall_progress=completion_percentage(completed_chapters, total_chapters),
    )
    logger.debug(f"User stats for {user_id}: {stats.to_dict()}")
    return stats
