from typing import Optional
from fastapi import HTTPException, status

from app.core.constants import ErrorCodeEnum


class AppException(HTTPException):
    """HTTPException carrying a machine-readable rejection code."""

    def __init__(self, status_code: int, detail: str, code: ErrorCodeEnum):
        super().__init__(status_code=status_code, detail=detail)
        self.code = code


class LectureNotFoundError(AppException):
    def __init__(self, detail: str = "Lecture not found."):
        super().__init__(status.HTTP_404_NOT_FOUND, detail, ErrorCodeEnum.LECTURE_NOT_FOUND)


class CourseNotFoundError(AppException):
    def __init__(self, detail: str = "Course not found."):
        super().__init__(status.HTTP_404_NOT_FOUND, detail, ErrorCodeEnum.COURSE_NOT_FOUND)


class NotEnrolledError(AppException):
    def __init__(self, detail: str = "You are not enrolled in this course."):
        super().__init__(status.HTTP_403_FORBIDDEN, detail, ErrorCodeEnum.NOT_ENROLLED)


class CourseNotCompletedError(AppException):
    def __init__(self, completed: Optional[int] = None, total: Optional[int] = None):
        detail = "Course not completed yet."
        if completed is not None and total is not None:
            detail = f"Course not completed yet ({completed}/{total} lectures completed)."
        super().__init__(status.HTTP_400_BAD_REQUEST, detail, ErrorCodeEnum.COURSE_NOT_COMPLETED)


class CertificateNotFoundError(AppException):
    def __init__(self, detail: str = "Certificate not found."):
        super().__init__(status.HTTP_404_NOT_FOUND, detail, ErrorCodeEnum.CERTIFICATE_NOT_FOUND)


class ForbiddenError(AppException):
    def __init__(self, detail: str = "You do not have access to this resource."):
        super().__init__(status.HTTP_403_FORBIDDEN, detail, ErrorCodeEnum.FORBIDDEN)
