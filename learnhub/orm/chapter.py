"""
learnhub/orm/chapter.py
Chapter model - ordered content units of a course
"""
from sqlalchemy import Column, Integer, String, Text, ForeignKey
from sqlalchemy.orm import relationship
from learnhub.orm.base import BaseModel


class Chapter(BaseModel):
    __tablename__ = "chapters"
    
    course_id = Column(
        String(36),
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    title = Column(String(255), nullable=False)
    summary = Column(Text, nullable=True)
    order = Column(Integer, nullable=False)
    
    course = relationship("Course", back_populates="chapters")
    
    def __repr__(self):
        return f"<Chapter(id={self.id}, course_id={self.course_id}, order={self.order})>"
