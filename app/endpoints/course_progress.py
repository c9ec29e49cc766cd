from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.schemas.response import APIResponse
from app.utils import deps
from app.models.user import User
from app.schemas.course_enrollment import Enrollment
from app.schemas.lecture_progress import LectureProgress, LectureProgressReport
from app.schemas.certificate import Certificate
from app.schemas.progress import ProgressReportResult
from app.services.course_progress import course_progress_service

router = APIRouter()


@router.post("/lectures/{lecture_id}/progress", response_model=APIResponse[ProgressReportResult])
def report_lecture_progress(
    *,
    db: Session = Depends(deps.get_transactional_db),
    lecture_id: int,
    report_in: LectureProgressReport,
    current_user: User = Depends(deps.get_current_user)
):
    outcome = course_progress_service.report_lecture_outcome(
        db, lecture_id=lecture_id, report=report_in, current_user=current_user
    )
    result = ProgressReportResult(
        lecture_progress=LectureProgress.model_validate(outcome.lecture_progress),
        course_progress=outcome.new_progress,
        just_completed=outcome.just_completed,
        scorm_status=outcome.scorm_status,
        certificate=Certificate.model_validate(outcome.certificate) if outcome.certificate else None,
    )
    return APIResponse(message="Progress updated successfully", data=result)


@router.get("/courses/{course_id}/progress", response_model=APIResponse[Enrollment])
def get_course_progress(
    *,
    db: Session = Depends(deps.get_db),
    course_id: int,
    current_user: User = Depends(deps.get_current_user)
):
    enrollment = course_progress_service.get_course_progress(db, course_id=course_id, current_user=current_user)
    return APIResponse(message="Course progress retrieved successfully", data=Enrollment.model_validate(enrollment))


@router.get("/courses/{course_id}/lecture-progress", response_model=APIResponse[List[LectureProgress]])
def get_lecture_progress_details(
    *,
    db: Session = Depends(deps.get_db),
    course_id: int,
    current_user: User = Depends(deps.get_current_user)
):
    progress = course_progress_service.get_lecture_progress_details(
        db, course_id=course_id, current_user=current_user
    )
    return APIResponse(
        message="Lecture progress details retrieved successfully",
        data=[LectureProgress.model_validate(lp) for lp in progress]
    )


@router.get("/enrollments/completed", response_model=APIResponse[List[Enrollment]])
def get_completed_enrollments(
    *,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user)
):
    enrollments = course_progress_service.get_completed_enrollments(db, current_user=current_user)
    return APIResponse(
        message="Completed enrollments retrieved successfully",
        data=[Enrollment.model_validate(e) for e in enrollments]
    )
