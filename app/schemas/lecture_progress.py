from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional, Dict, Any
from datetime import datetime

from app.core.constants import ScormLessonStatusEnum


class LectureProgressReport(BaseModel):
    """A partial progress report for one lecture.

    Fields the client leaves out are absent and never touch the stored row.
    ``model_fields_set`` is the presence marker: a field sent as ``null`` is
    present (and clears the opaque SCORM strings), a field not sent is absent.
    """
    is_completed: Optional[bool] = None
    watched_duration: Optional[int] = Field(None, ge=0)
    last_position: Optional[int] = Field(None, ge=0)

    scorm_session_time: Optional[str] = None
    scorm_lesson_location: Optional[str] = None
    scorm_suspend_data: Optional[str] = None

    quiz_correct: Optional[int] = None
    quiz_total: Optional[int] = None

    @field_validator("is_completed", "watched_duration", "last_position")
    @classmethod
    def reject_explicit_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null.")
        return v

    @model_validator(mode="after")
    def quiz_counts_come_together(self):
        sent = {"quiz_correct", "quiz_total"} & self.model_fields_set
        if len(sent) == 1:
            raise ValueError("quiz_correct and quiz_total must be reported together.")
        if sent and (self.quiz_correct is None or self.quiz_total is None):
            raise ValueError("quiz_correct and quiz_total cannot be null.")
        return self

    def present_fields(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)

    @property
    def has_quiz(self) -> bool:
        return "quiz_total" in self.model_fields_set


class LectureProgress(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    lecture_id: int
    is_completed: bool
    watched_duration: int
    last_position: int
    completed_at: Optional[datetime] = None
    scorm_lesson_status: ScormLessonStatusEnum
    scorm_score_raw: Optional[float] = None
    scorm_session_time: Optional[str] = None
    scorm_total_time: Optional[str] = None
    scorm_lesson_location: Optional[str] = None
    scorm_suspend_data: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
