"""
learnhub/orm/course.py
Course model for learner-generated courses
"""
from sqlalchemy import Column, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from learnhub.orm.base import BaseModel


class Course(BaseModel):
    """
    A course owned by exactly one user.

    Courses are created and edited by the web tier; this package only
    reads them when aggregating progress.
    """
    __tablename__ = "courses"
    
    user_id = Column(
        String(255),
        nullable=False,
        index=True,
        comment="External id of the owning user"
    )
    title = Column(String(255), nullable=False)
    topic = Column(Text, nullable=False)
    study_type = Column(String(100), nullable=False)
    difficulty_level = Column(String(50), nullable=False)
    summary = Column(Text, nullable=True)
    status = Column(String(50), default="draft")
    
    # Relationships
    chapters = relationship(
        "Chapter",
        back_populates="course",
        cascade="all, delete-orphan"
    )
    
    __table_args__ = (
        UniqueConstraint("user_id", "title", name="courses_user_title_idx"),
    )
    
    def __repr__(self):
        return f"<Course(id={self.id}, title='{self.title}')>"
