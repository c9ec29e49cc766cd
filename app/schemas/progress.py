from pydantic import BaseModel
from typing import Optional

from app.core.constants import ScormLessonStatusEnum
from app.schemas.lecture_progress import LectureProgress
from app.schemas.certificate import Certificate


class ProgressReportResult(BaseModel):
    lecture_progress: LectureProgress
    course_progress: int
    just_completed: bool
    scorm_status: ScormLessonStatusEnum
    certificate: Optional[Certificate] = None
