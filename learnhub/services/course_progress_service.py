"""
learnhub/services/course_progress_service.py
Course Progress Aggregator

Computes per-course progress for one user from chapters joined with
that user's progress records:

    courses
      LEFT JOIN chapters       ON chapters.course_id = courses.id
      LEFT JOIN user_progress  ON user_progress.chapter_id = chapters.id
                              AND user_progress.user_id = :user
    WHERE courses.user_id = :user
    GROUP BY course

Percentages are computed in SQL (0 for courses without chapters) and
trusted as returned; counts are parsed at the boundary by
CourseProgressSummary.from_row.
"""
import logging
from typing import List, Optional

from sqlalchemy import select, and_, case, cast, distinct, func, Integer
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.orm.course import Course
from learnhub.orm.chapter import Chapter
from learnhub.orm.user_progress import UserProgress
from learnhub.schemas.progress import CourseProgressSummary

logger = logging.getLogger(__name__)


def build_course_progress_query(user_id: str):
    """
    Aggregate query producing one row per course owned by `user_id`.
    
    Labels: course_id, total_chapters, completed_chapters,
    progress_percentage, last_accessed_at plus the course's descriptive
    columns.
    """
    total_chapters = func.count(distinct(Chapter.id))
    completed_chapters = func.count(
        distinct(case((UserProgress.completed == True, UserProgress.chapter_id)))
    )
    progress_percentage = case(
        (total_chapters == 0, 0),
        else_=cast(func.round(completed_chapters * 100.0 / total_chapters), Integer),
    )
    
    return (
        select(
            Course.id.label("course_id"),
            Course.title.label("course_title"),
            Course.topic.label("course_topic"),
            Course.status.label("course_status"),
            Course.study_type.label("study_type"),
            Course.difficulty_level.label("difficulty_level"),
            Course.created_at.label("created_at"),
            total_chapters.label("total_chapters"),
            completed_chapters.label("completed_chapters"),
            progress_percentage.label("progress_percentage"),
            func.max(UserProgress.updated_at).label("last_accessed_at"),
        )
        .select_from(Course)
        .outerjoin(Chapter, Chapter.course_id == Course.id)
        .outerjoin(
            UserProgress,
            and_(
                UserProgress.chapter_id == Chapter.id,
                UserProgress.user_id == user_id
            )
        )
        .where(Course.user_id == user_id)
        .group_by(
            Course.id,
            Course.title,
            Course.topic,
            Course.status,
            Course.study_type,
            Course.difficulty_level,
            Course.created_at,
        )
    )


async def get_course_progress(
    db: AsyncSession,
    user_id: str,
    course_id: str
) -> Optional[CourseProgressSummary]:
    """
    Progress of one course for one user.
    
    Returns None when the course does not exist or is not owned by the
    user; that is a normal outcome, not an error.
    """
    stmt = build_course_progress_query(user_id).where(Course.id == course_id)
    result = await db.execute(stmt)
    row = result.mappings().first()
    
    if row is None:
        logger.debug(f"No progress row for course {course_id} (user={user_id})")
        return None
    return CourseProgressSummary.from_row(row)


async def get_all_courses_progress(db: AsyncSession, user_id: str) -> List[CourseProgressSummary]:
    """
    Progress of every course the user owns, one summary per course.
    
    Most recently accessed first, never-accessed courses last (newest
    first among those).
    """
    stmt = build_course_progress_query(user_id).order_by(
        func.max(UserProgress.updated_at).desc().nulls_last(),
        Course.created_at.desc(),
    )
    result = await db.execute(stmt)
    rows = result.mappings().all()
    
    return [CourseProgressSummary.from_row(row) for row in rows]
