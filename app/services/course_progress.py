import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import ScormLessonStatusEnum
from app.core.exceptions import CourseNotFoundError, LectureNotFoundError, NotEnrolledError
from app.crud.course import course as crud_course, lecture as crud_lecture
from app.crud.course_enrollment import enrollment as crud_enrollment
from app.crud.lecture_progress import lecture_progress as crud_lecture_progress
from app.models.certificate import Certificate
from app.models.course import Course
from app.models.course_enrollment import Enrollment
from app.models.lecture import Lecture
from app.models.lecture_progress import LectureProgress
from app.models.user import User
from app.schemas.lecture_progress import LectureProgressReport
from app.services.certificate import certificate_service
from app.services.scorm import add_durations, derive_lesson_status, parse_duration, score_from_counts
from app.utils.locks import enrollment_locks

logger = logging.getLogger(__name__)


@dataclass
class CourseProgressUpdate:
    new_progress: int
    just_completed: bool
    scorm_status: ScormLessonStatusEnum


@dataclass
class ProgressOutcome:
    lecture_progress: LectureProgress
    new_progress: int
    just_completed: bool
    scorm_status: ScormLessonStatusEnum
    certificate: Optional[Certificate] = None


def calculate_progress(completed: int, total: int) -> int:
    """Whole percentage of ``completed`` over ``total``, rounded half-up and clamped to 0-100."""
    if total <= 0:
        return 0
    percent = (Decimal(completed) * 100 / Decimal(total)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return max(0, min(100, int(percent)))


def calculate_lecture_percent(progress: LectureProgress, lecture_duration: Optional[int]) -> int:
    if progress.is_completed:
        return 100
    if lecture_duration and progress.watched_duration:
        # Watching alone never completes a lecture.
        return min(99, calculate_progress(progress.watched_duration, lecture_duration))
    return 0


def apply_lecture_outcome(
    enrollment: Enrollment,
    total_lectures: int,
    completed_lectures: int,
    now: Optional[datetime] = None,
) -> CourseProgressUpdate:
    """Fold a fresh completed-lecture count into the enrollment.

    ``just_completed`` is true only on the report that first takes the
    enrollment to 100%; ``completed_at`` is written then and never again.
    """
    now = now or datetime.now()
    new_progress = calculate_progress(completed_lectures, total_lectures)
    just_completed = new_progress == 100 and enrollment.completed_at is None
    scorm_status = derive_lesson_status(new_progress)

    enrollment.progress = new_progress
    enrollment.last_accessed_at = now
    enrollment.scorm_status = scorm_status
    if just_completed:
        enrollment.completed_at = now

    return CourseProgressUpdate(new_progress=new_progress, just_completed=just_completed, scorm_status=scorm_status)


class CourseProgressService:

    def _get_or_raise_course(self, db: Session, course_id: int) -> Course:
        course = crud_course.get(db, id=course_id)
        if not course:
            raise CourseNotFoundError()
        return course

    def _get_or_raise_enrollment(self, db: Session, user_id: int, course_id: int) -> Enrollment:
        enrollment = crud_enrollment.get_by_user_and_course(db, user_id=user_id, course_id=course_id)
        if not enrollment:
            raise NotEnrolledError()
        return enrollment

    def _upsert_lecture_progress(
        self,
        db: Session,
        user_id: int,
        lecture: Lecture,
        course: Course,
        report: LectureProgressReport,
        now: datetime,
    ) -> LectureProgress:
        fields = report.present_fields()
        fields.pop("quiz_correct", None)
        fields.pop("quiz_total", None)

        progress = crud_lecture_progress.get_by_user_and_lecture(db, user_id=user_id, lecture_id=lecture.id)
        if not progress:
            progress = crud_lecture_progress.create(
                db,
                obj_in={
                    "user_id": user_id,
                    "lecture_id": lecture.id,
                    "is_completed": False,
                    "watched_duration": 0,
                    "last_position": 0,
                    "scorm_lesson_status": ScormLessonStatusEnum.NOT_ATTEMPTED,
                },
                commit=False,
            )

        if "is_completed" in fields:
            is_completed = fields.pop("is_completed")
            if is_completed and not progress.is_completed:
                progress.completed_at = now
            elif not is_completed:
                progress.completed_at = None
            progress.is_completed = is_completed

        if "scorm_session_time" in fields:
            session_time = fields.pop("scorm_session_time")
            progress.scorm_session_time = session_time
            if parse_duration(session_time) > 0:
                progress.scorm_total_time = add_durations(progress.scorm_total_time, session_time)

        if report.has_quiz:
            progress.scorm_score_raw = score_from_counts(report.quiz_correct, report.quiz_total)

        progress = crud_lecture_progress.update(db, db_obj=progress, obj_in=fields, commit=False)

        progress.scorm_lesson_status = derive_lesson_status(
            calculate_lecture_percent(progress, lecture.duration),
            progress.scorm_score_raw,
            course.passing_score if course.passing_score is not None else settings.SCORM_PASSING_SCORE,
        )
        return progress

    def report_lecture_outcome(
        self, db: Session, lecture_id: int, report: LectureProgressReport, current_user: User
    ) -> ProgressOutcome:
        lecture = crud_lecture.get(db, id=lecture_id)
        if not lecture or not lecture.course:
            raise LectureNotFoundError()

        user_id = current_user.id
        course = lecture.course
        course_id = course.id
        self._get_or_raise_enrollment(db, user_id, course_id)
        # End the read transaction so the locked section starts from a fresh snapshot.
        db.commit()

        # Count, recompute and completion detection must not interleave for one learner and course.
        with enrollment_locks.hold((user_id, course_id)):
            try:
                now = datetime.now()
                enrollment = crud_enrollment.lock_by_user_and_course(db, user_id=user_id, course_id=course_id)
                if not enrollment:
                    raise NotEnrolledError()

                progress = self._upsert_lecture_progress(db, user_id, lecture, course, report, now)

                total = crud_course.count_lectures(db, course_id=course_id)
                completed = crud_lecture_progress.count_completed_by_course(
                    db, user_id=user_id, course_id=course_id
                )
                update = apply_lecture_outcome(enrollment, total, completed, now=now)
                crud_enrollment.update(db, db_obj=enrollment, obj_in={}, commit=False)

                certificate = None
                if update.just_completed:
                    certificate, _ = certificate_service.issue_if_absent(
                        db,
                        user_id=user_id,
                        course_id=course_id,
                        course_title=course.title,
                        organization_name=certificate_service.organization_name_for(current_user),
                        cpd_points=course.cpd_points,
                        commit=False,
                    )

                db.commit()
            except Exception:
                db.rollback()
                raise

        db.refresh(progress)
        if certificate is not None:
            db.refresh(certificate)

        if update.just_completed:
            logger.info(f"User {user_id} completed course {course_id}")
        logger.debug(
            f"Lecture {lecture.id} progress for user {user_id}: "
            f"course {course_id} at {update.new_progress}% ({completed}/{total})"
        )

        return ProgressOutcome(
            lecture_progress=progress,
            new_progress=update.new_progress,
            just_completed=update.just_completed,
            scorm_status=update.scorm_status,
            certificate=certificate,
        )

    def get_course_progress(self, db: Session, course_id: int, current_user: User) -> Enrollment:
        self._get_or_raise_course(db, course_id)
        return self._get_or_raise_enrollment(db, current_user.id, course_id)

    def get_lecture_progress_details(self, db: Session, course_id: int, current_user: User) -> List[LectureProgress]:
        self._get_or_raise_course(db, course_id)
        self._get_or_raise_enrollment(db, current_user.id, course_id)
        return crud_lecture_progress.get_all_by_course(db, user_id=current_user.id, course_id=course_id)

    def get_completed_enrollments(self, db: Session, current_user: User) -> List[Enrollment]:
        return crud_enrollment.get_completed_by_user(db, user_id=current_user.id)


course_progress_service = CourseProgressService()
