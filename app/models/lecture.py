from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base

class Lecture(Base):
    __tablename__ = "lectures"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, index=True, nullable=False)
    duration = Column(Integer, nullable=False, default=0) # Duration in seconds
    order = Column(Integer, nullable=False, default=0)
    section_id = Column(Integer, ForeignKey("sections.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    section = relationship("Section", back_populates="lectures")
    progress_records = relationship("LectureProgress", back_populates="lecture", cascade="all, delete-orphan")

    @property
    def course(self):
        return self.section.course if self.section else None
