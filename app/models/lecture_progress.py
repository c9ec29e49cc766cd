from sqlalchemy import Column, Integer, ForeignKey, DateTime, Boolean, Float, String, Text, Enum as SQLEnum, UniqueConstraint, func
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.core.constants import ScormLessonStatusEnum


class LectureProgress(Base):
    __tablename__ = "lecture_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "lecture_id", name="uq_lecture_progress_user_lecture"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    lecture_id = Column(Integer, ForeignKey("lectures.id"), nullable=False)
    is_completed = Column(Boolean, nullable=False, default=False)
    watched_duration = Column(Integer, nullable=False, default=0)
    last_position = Column(Integer, nullable=False, default=0)
    completed_at = Column(DateTime, nullable=True)

    scorm_lesson_status = Column(SQLEnum(ScormLessonStatusEnum), nullable=False, default=ScormLessonStatusEnum.NOT_ATTEMPTED)
    scorm_score_raw = Column(Float, nullable=True)
    scorm_session_time = Column(String, nullable=True)
    scorm_total_time = Column(String, nullable=True)
    scorm_lesson_location = Column(String, nullable=True)
    scorm_suspend_data = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True)

    user = relationship("User", back_populates="lecture_progress")
    lecture = relationship("Lecture", back_populates="progress_records")
