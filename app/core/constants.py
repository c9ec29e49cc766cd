from enum import Enum


class ScormLessonStatusEnum(str, Enum):
    """Values of cmi.core.lesson_status in the SCORM 1.2 CMI data model."""
    NOT_ATTEMPTED = "not attempted"
    INCOMPLETE = "incomplete"
    COMPLETED = "completed"
    PASSED = "passed"
    FAILED = "failed"


class ErrorCodeEnum(str, Enum):
    LECTURE_NOT_FOUND = "LECTURE_NOT_FOUND"
    COURSE_NOT_FOUND = "COURSE_NOT_FOUND"
    NOT_ENROLLED = "NOT_ENROLLED"
    COURSE_NOT_COMPLETED = "COURSE_NOT_COMPLETED"
    CERTIFICATE_NOT_FOUND = "CERTIFICATE_NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
