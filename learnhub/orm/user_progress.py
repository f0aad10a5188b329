"""
learnhub/orm/user_progress.py
UserProgress - Tracks chapter completion per user

This model records one row per (user, chapter) pair:
- Created lazily on the first access or completion event
- Upserted on every mutation (never deleted here)

Purpose:
- Track which chapters a user has completed
- Resume learning from the most recently touched chapter
- Feed course and account level completion percentages

Key Design Decisions:
- user_id is the external (auth provider) id, not a FK
- chapter_id has no FK so progress survives chapter regeneration
- Completion is reversible (mark incomplete clears completed_at)
"""
from sqlalchemy import Column, String, DateTime, Boolean, Index, UniqueConstraint
from datetime import datetime
from learnhub.orm.base import BaseModel


class UserProgress(BaseModel):
    """
    Completion and access state of one chapter for one user.
    
    Fields:
    - user_id: Who the progress belongs to
    - chapter_id: Which chapter
    - completed: True once the user marks the chapter done
    - completed_at: When marked complete (NULL otherwise)
    - updated_at: Last completion change OR last access
    
    Constraints:
    - Unique: (user_id, chapter_id) -> One record per user per chapter
    
    Business Logic:
    - Mark complete -> completed=True, completed_at=NOW
    - Mark incomplete -> completed=False, completed_at=NULL
    - Access -> updated_at=NOW, completion untouched
    """
    __tablename__ = "user_progress"
    
    user_id = Column(
        String(255),
        nullable=False,
        index=True,
        comment="External id of the learner"
    )
    
    chapter_id = Column(
        String(36),
        nullable=False,
        index=True,
        comment="Chapter the progress refers to"
    )
    
    completed = Column(
        Boolean,
        default=False,
        nullable=False,
        comment="True when user marks chapter as complete"
    )
    
    completed_at = Column(
        DateTime,
        nullable=True,
        comment="Timestamp when marked complete (NULL if not completed)"
    )
    
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "chapter_id",
            name="user_progress_user_chapter_idx"
        ),
        # Used by the per-course MAX(updated_at) and completed counts
        Index(
            "ix_user_progress_user_completed",
            "user_id",
            "completed",
            "updated_at"
        ),
    )
    
    def __repr__(self):
        return (
            f"<UserProgress("
            f"user_id={self.user_id}, "
            f"chapter_id={self.chapter_id}, "
            f"completed={self.completed})>"
        )
