"""
learnhub/schemas/progress.py
Typed records for chapter progress, course progress and user stats

Aggregate rows arrive from storage loosely typed (counts as text or
Decimal depending on the driver). These models are the boundary: every
count passes through parse_count on the way in, and to_dict() gives the
JSON-ready shape callers hand to the route layer.
"""
from datetime import datetime
from typing import Any, Mapping, Optional
from pydantic import BaseModel, Field, field_validator

from learnhub.core.numeric import parse_count, completion_percentage
from learnhub.exceptions import MalformedAggregateRowError


class ChapterProgressRecord(BaseModel):
    """
    Completion state of one chapter for one user.
    
    A user who never touched a chapter gets the implicit default:
    completed=False and no timestamps.
    """
    user_id: str = Field(..., description="External id of the learner")
    chapter_id: str = Field(..., description="Chapter the progress refers to")
    completed: bool = Field(False, description="True once marked complete")
    completed_at: Optional[datetime] = Field(None, description="When marked complete")
    updated_at: Optional[datetime] = Field(None, description="Last completion change or access")
    
    class Config:
        from_attributes = True
    
    @classmethod
    def default(cls, user_id: str, chapter_id: str) -> "ChapterProgressRecord":
        return cls(user_id=user_id, chapter_id=chapter_id)
    
    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


class CourseProgressSummary(BaseModel):
    """
    Derived progress of one course for one user.
    
    progress_percentage is taken from storage when the query computed
    it, otherwise derived from the two counts (0 when the course has no
    chapters).
    """
    course_id: str
    total_chapters: int = Field(..., ge=0)
    completed_chapters: int = Field(..., ge=0)
    progress_percentage: int = Field(..., ge=0, le=100)
    
    course_title: Optional[str] = None
    course_topic: Optional[str] = None
    course_status: Optional[str] = None
    study_type: Optional[str] = None
    difficulty_level: Optional[str] = None
    created_at: Optional[datetime] = None
    last_accessed_at: Optional[datetime] = None
    
    @field_validator("total_chapters", "completed_chapters", "progress_percentage", mode="before")
    @classmethod
    def parse_counts(cls, v: Any, info) -> int:
        return parse_count(v, info.field_name)
    
    @field_validator("course_id", mode="before")
    @classmethod
    def stringify_course_id(cls, v: Any) -> str:
        if v is None:
            raise MalformedAggregateRowError("Aggregate row has no course_id", field="course_id")
        return str(v)
    
    @property
    def is_completed(self) -> bool:
        return self.total_chapters > 0 and self.completed_chapters == self.total_chapters
    
    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CourseProgressSummary":
        """
        Build a summary from one aggregate row (a mapping of column label -> value).
        
        Missing count columns raise MalformedAggregateRowError; a missing or
        NULL percentage is derived from the counts.
        """
        data = dict(row)
        for field in ("course_id", "total_chapters", "completed_chapters"):
            if field not in data:
                raise MalformedAggregateRowError(
                    f"Aggregate row is missing '{field}'",
                    field=field
                )
        
        total = parse_count(data["total_chapters"], "total_chapters")
        completed = parse_count(data["completed_chapters"], "completed_chapters")
        data["total_chapters"] = total
        data["completed_chapters"] = completed
        if data.get("progress_percentage") is None:
            data["progress_percentage"] = completion_percentage(completed, total)
        
        known = {key: value for key, value in data.items() if key in cls.model_fields}
        return cls(**known)
    
    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


class UserStats(BaseModel):
    """Account-wide totals across every course a user owns."""
    total_courses: int = Field(0, ge=0)
    completed_courses: int = Field(0, ge=0)
    total_chapters: int = Field(0, ge=0)
    completed_chapters: int = Field(0, ge=0)
    overall_progress: int = Field(0, ge=0, le=100)
    
    class Config:
        json_schema_extra = {
            "example": {
                "total_courses": 4,
                "completed_courses": 1,
                "total_chapters": 10,
                "completed_chapters": 7,
                "overall_progress": 70
            }
        }
    
    def to_dict(self) -> dict:
        return self.model_dump(mode="json")
