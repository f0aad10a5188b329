from .base import Base

# Core models
from .course import Course
from .chapter import Chapter
from .user_progress import UserProgress

__all__ = [
    "Base",
    "Course",
    "Chapter",
    "UserProgress",
]
