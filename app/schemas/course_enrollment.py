from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime
from app.core.constants import ScormLessonStatusEnum


class Enrollment(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    course_id: int
    progress: int
    scorm_status: ScormLessonStatusEnum
    last_accessed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
