"""
Progress CLI Commands

Operations: stats, courses, course, chapter, complete, incomplete, touch
Output is JSON on stdout.
"""
import asyncio
import json

from learnhub.services.chapter_progress_service import (
    get_chapter_progress,
    mark_chapter_completed,
    mark_chapter_incomplete,
    update_chapter_access,
)
from learnhub.services.course_progress_service import (
    get_course_progress,
    get_all_courses_progress,
)
from learnhub.services.user_stats_service import get_user_stats


_CHAPTER_ACTIONS = {
    "chapter": get_chapter_progress,
    "complete": mark_chapter_completed,
    "incomplete": mark_chapter_incomplete,
    "touch": update_chapter_access,
}


class ProgressCommand:
    """Progress CLI command handler."""
    
    def __init__(self, session_factory=None):
        self.session_factory = session_factory
    
    def execute(self, args) -> int:
        """Execute progress command."""
        if args.progress_action not in ("stats", "courses", "course", *_CHAPTER_ACTIONS):
            print("Error: Unknown progress action")
            return 1
        return asyncio.run(self._run(args))
    
    async def _run(self, args) -> int:
        if self.session_factory is not None:
            return await self._run_with(self.session_factory, args)
        
        from learnhub.database import AsyncSessionLocal, close_db
        try:
            return await self._run_with(AsyncSessionLocal, args)
        finally:
            await close_db()
    
    async def _run_with(self, session_factory, args) -> int:
        async with session_factory() as db:
            action = args.progress_action
            
            if action == "stats":
                payload = (await get_user_stats(db, args.user)).to_dict()
            elif action == "courses":
                summaries = await get_all_courses_progress(db, args.user)
                payload = [summary.to_dict() for summary in summaries]
            elif action == "course":
                summary = await get_course_progress(db, args.user, args.course)
                if summary is None:
                    print(f"Error: No course {args.course} for user {args.user}")
                    return 1
                payload = summary.to_dict()
            else:
                record = await _CHAPTER_ACTIONS[action](db, args.user, args.chapter)
                payload = record.to_dict()
        
        print(json.dumps(payload, indent=2))
        return 0
