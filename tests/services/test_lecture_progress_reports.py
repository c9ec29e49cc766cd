import pytest
from pydantic import ValidationError

from app.core.constants import ScormLessonStatusEnum
from app.core.exceptions import LectureNotFoundError, NotEnrolledError
from app.crud.course_enrollment import enrollment as crud_enrollment
from app.models.certificate import Certificate
from app.models.lecture_progress import LectureProgress
from app.schemas.lecture_progress import LectureProgressReport
from app.services import course_progress as course_progress_module
from app.services.course_progress import course_progress_service
from tests.helpers.progress import complete, lecture_ids, report


def _certificate_count(db_session, user, course):
    return db_session.query(Certificate).filter_by(user_id=user.id, course_id=course.id).count()


def test_monotonic_completion_over_four_lectures(db_session, user_factory, course_factory, enroll):
    course = course_factory(lecture_count=4)
    user = user_factory()
    enroll(user, course)
    ids = lecture_ids(course)

    for lecture_id in ids[:3]:
        outcome = complete(db_session, user, lecture_id)
        assert outcome.just_completed is False
    assert outcome.new_progress == 75

    outcome = complete(db_session, user, ids[3])
    assert outcome.new_progress == 100
    assert outcome.just_completed is True
    assert outcome.certificate is not None

    enrollment = crud_enrollment.get_by_user_and_course(db_session, user_id=user.id, course_id=course.id)
    completed_at = enrollment.completed_at
    assert completed_at is not None

    outcome = complete(db_session, user, ids[3])
    assert outcome.new_progress == 100
    assert outcome.just_completed is False
    assert outcome.certificate is None

    db_session.expire_all()
    enrollment = crud_enrollment.get_by_user_and_course(db_session, user_id=user.id, course_id=course.id)
    assert enrollment.completed_at == completed_at
    assert _certificate_count(db_session, user, course) == 1


def test_five_lecture_course_end_to_end(db_session, user_factory, course_factory, enroll):
    course = course_factory(lecture_count=5, section_count=2, cpd_points=2.5)
    user = user_factory()
    enroll(user, course)

    progress_seen, statuses_seen = [], []
    for index, lecture_id in enumerate(lecture_ids(course)):
        outcome = complete(db_session, user, lecture_id)
        progress_seen.append(outcome.new_progress)
        statuses_seen.append(outcome.scorm_status)
        if index < 4:
            assert _certificate_count(db_session, user, course) == 0

    assert progress_seen == [20, 40, 60, 80, 100]
    assert statuses_seen == [
        ScormLessonStatusEnum.INCOMPLETE,
        ScormLessonStatusEnum.INCOMPLETE,
        ScormLessonStatusEnum.INCOMPLETE,
        ScormLessonStatusEnum.INCOMPLETE,
        ScormLessonStatusEnum.COMPLETED,
    ]
    assert _certificate_count(db_session, user, course) == 1

    certificate = db_session.query(Certificate).filter_by(user_id=user.id, course_id=course.id).one()
    assert certificate.course_name == course.title
    assert certificate.cpd_points == 2.5


def test_first_report_creates_lecture_progress(db_session, user_factory, course_factory, enroll):
    course = course_factory(lecture_count=2)
    user = user_factory()
    enroll(user, course)
    lecture_id = lecture_ids(course)[0]

    outcome = report(db_session, user, lecture_id, watched_duration=120, last_position=100)

    progress = outcome.lecture_progress
    assert progress.id is not None
    assert progress.is_completed is False
    assert progress.completed_at is None
    assert progress.watched_duration == 120
    assert progress.last_position == 100
    assert progress.scorm_lesson_status == ScormLessonStatusEnum.INCOMPLETE
    assert outcome.new_progress == 0
    assert outcome.scorm_status == ScormLessonStatusEnum.NOT_ATTEMPTED


def test_lecture_status_reflects_the_same_report(db_session, user_factory, course_factory, enroll):
    course = course_factory(lecture_count=2, lecture_duration=600)
    user = user_factory()
    enroll(user, course)
    watched, quizzed = lecture_ids(course)

    outcome = report(db_session, user, watched, watched_duration=120)
    assert outcome.lecture_progress.watched_duration == 120
    assert outcome.lecture_progress.scorm_lesson_status == ScormLessonStatusEnum.INCOMPLETE

    outcome = report(db_session, user, quizzed, watched_duration=300, quiz_correct=9, quiz_total=10)
    assert outcome.lecture_progress.scorm_score_raw == 90
    assert outcome.lecture_progress.scorm_lesson_status == ScormLessonStatusEnum.PASSED


def test_absent_fields_leave_stored_values_alone(db_session, user_factory, course_factory, enroll):
    course = course_factory(lecture_count=2)
    user = user_factory()
    enroll(user, course)
    lecture_id = lecture_ids(course)[0]

    report(db_session, user, lecture_id, watched_duration=120, last_position=100, scorm_lesson_location="slide-3")
    outcome = report(db_session, user, lecture_id, last_position=150)

    progress = outcome.lecture_progress
    assert progress.watched_duration == 120
    assert progress.last_position == 150
    assert progress.is_completed is False
    assert progress.scorm_lesson_location == "slide-3"

    assert db_session.query(LectureProgress).filter_by(user_id=user.id, lecture_id=lecture_id).count() == 1


def test_explicit_null_clears_scorm_strings(db_session, user_factory, course_factory, enroll):
    course = course_factory(lecture_count=1)
    user = user_factory()
    enroll(user, course)
    lecture_id = lecture_ids(course)[0]

    report(db_session, user, lecture_id, scorm_lesson_location="slide-3", scorm_suspend_data="cmi=1")
    outcome = report(db_session, user, lecture_id, scorm_lesson_location=None)

    assert outcome.lecture_progress.scorm_lesson_location is None
    assert outcome.lecture_progress.scorm_suspend_data == "cmi=1"


def test_explicit_null_rejected_for_counters():
    with pytest.raises(ValidationError):
        LectureProgressReport(is_completed=None)
    with pytest.raises(ValidationError):
        LectureProgressReport(watched_duration=None)
    with pytest.raises(ValidationError):
        LectureProgressReport(last_position=-1)


def test_quiz_counts_must_be_reported_together():
    with pytest.raises(ValidationError):
        LectureProgressReport(quiz_correct=3)
    with pytest.raises(ValidationError):
        LectureProgressReport(quiz_correct=3, quiz_total=None)
    assert LectureProgressReport(quiz_correct=3, quiz_total=4).has_quiz is True
    assert LectureProgressReport().has_quiz is False


def test_uncompleting_a_lecture_lowers_progress(db_session, user_factory, course_factory, enroll):
    course = course_factory(lecture_count=4)
    user = user_factory()
    enroll(user, course)
    ids = lecture_ids(course)

    complete(db_session, user, ids[0])
    outcome = complete(db_session, user, ids[1])
    assert outcome.new_progress == 50
    assert outcome.lecture_progress.completed_at is not None

    outcome = report(db_session, user, ids[1], is_completed=False)
    assert outcome.new_progress == 25
    assert outcome.lecture_progress.is_completed is False
    assert outcome.lecture_progress.completed_at is None


def test_recompleting_a_course_keeps_first_completion(db_session, user_factory, course_factory, enroll):
    course = course_factory(lecture_count=2)
    user = user_factory()
    enroll(user, course)
    ids = lecture_ids(course)

    complete(db_session, user, ids[0])
    assert complete(db_session, user, ids[1]).just_completed is True
    enrollment = crud_enrollment.get_by_user_and_course(db_session, user_id=user.id, course_id=course.id)
    first_completion = enrollment.completed_at

    assert report(db_session, user, ids[1], is_completed=False).new_progress == 50
    outcome = complete(db_session, user, ids[1])
    assert outcome.new_progress == 100
    assert outcome.just_completed is False

    db_session.expire_all()
    enrollment = crud_enrollment.get_by_user_and_course(db_session, user_id=user.id, course_id=course.id)
    assert enrollment.completed_at == first_completion
    assert _certificate_count(db_session, user, course) == 1


def test_redundant_completion_keeps_lecture_completed_at(db_session, user_factory, course_factory, enroll):
    course = course_factory(lecture_count=3)
    user = user_factory()
    enroll(user, course)
    lecture_id = lecture_ids(course)[0]

    first = complete(db_session, user, lecture_id).lecture_progress.completed_at
    second = complete(db_session, user, lecture_id).lecture_progress.completed_at

    assert first is not None
    assert second == first


def test_session_time_accumulates_into_total(db_session, user_factory, course_factory, enroll):
    course = course_factory(lecture_count=1)
    user = user_factory()
    enroll(user, course)
    lecture_id = lecture_ids(course)[0]

    report(db_session, user, lecture_id, scorm_session_time="00:00:30")
    outcome = report(db_session, user, lecture_id, scorm_session_time="00:01:00")
    assert outcome.lecture_progress.scorm_session_time == "00:01:00"
    assert outcome.lecture_progress.scorm_total_time == "0000:01:30"

    outcome = report(db_session, user, lecture_id, scorm_session_time="not-a-time")
    assert outcome.lecture_progress.scorm_session_time == "not-a-time"
    assert outcome.lecture_progress.scorm_total_time == "0000:01:30"


def test_failed_quiz_labels_lecture_only(db_session, user_factory, course_factory, enroll):
    course = course_factory(lecture_count=1)
    user = user_factory()
    enroll(user, course)
    lecture_id = lecture_ids(course)[0]

    outcome = report(db_session, user, lecture_id, is_completed=True, quiz_correct=6, quiz_total=10)

    assert outcome.lecture_progress.scorm_score_raw == 60
    assert outcome.lecture_progress.scorm_lesson_status == ScormLessonStatusEnum.FAILED
    assert outcome.new_progress == 100
    assert outcome.scorm_status == ScormLessonStatusEnum.COMPLETED
    assert outcome.just_completed is True


def test_quiz_uses_course_passing_score(db_session, user_factory, course_factory, enroll):
    course = course_factory(lecture_count=2, passing_score=50)
    user = user_factory()
    enroll(user, course)
    lecture_id = lecture_ids(course)[0]

    outcome = report(db_session, user, lecture_id, watched_duration=60, quiz_correct=6, quiz_total=10)
    assert outcome.lecture_progress.scorm_lesson_status == ScormLessonStatusEnum.PASSED

    # The stored score survives a later report without quiz counts.
    outcome = report(db_session, user, lecture_id, last_position=90)
    assert outcome.lecture_progress.scorm_score_raw == 60
    assert outcome.lecture_progress.scorm_lesson_status == ScormLessonStatusEnum.PASSED


def test_not_enrolled_is_rejected_before_any_write(db_session, user_factory, course_factory, enroll):
    course = course_factory(lecture_count=2)
    outsider = user_factory()
    lecture_id = lecture_ids(course)[0]

    with pytest.raises(NotEnrolledError) as exc_info:
        complete(db_session, outsider, lecture_id)

    assert exc_info.value.status_code == 403
    assert db_session.query(LectureProgress).filter_by(user_id=outsider.id).count() == 0


def test_unknown_lecture_is_rejected(db_session, user_factory):
    user = user_factory()

    with pytest.raises(LectureNotFoundError):
        complete(db_session, user, 999999)


def test_failure_after_upsert_rolls_back_everything(db_session, user_factory, course_factory, enroll, monkeypatch):
    course = course_factory(lecture_count=1)
    user = user_factory()
    enroll(user, course)
    lecture_id = lecture_ids(course)[0]

    def _broken_issue(*args, **kwargs):
        raise RuntimeError("certificate store unavailable")

    monkeypatch.setattr(course_progress_module.certificate_service, "issue_if_absent", _broken_issue)

    with pytest.raises(RuntimeError):
        complete(db_session, user, lecture_id)

    db_session.expire_all()
    enrollment = crud_enrollment.get_by_user_and_course(db_session, user_id=user.id, course_id=course.id)
    assert enrollment.progress == 0
    assert enrollment.completed_at is None
    assert db_session.query(LectureProgress).filter_by(user_id=user.id).count() == 0

    monkeypatch.undo()
    outcome = complete(db_session, user, lecture_id)
    assert outcome.just_completed is True
    assert outcome.certificate is not None


def test_completed_enrollments_listing(db_session, user_factory, course_factory, enroll):
    finished = course_factory(lecture_count=1, title="Finished Course")
    started = course_factory(lecture_count=2, title="Started Course")
    user = user_factory()
    enroll(user, finished)
    enroll(user, started)

    complete(db_session, user, lecture_ids(finished)[0])
    complete(db_session, user, lecture_ids(started)[0])

    completed = course_progress_service.get_completed_enrollments(db_session, current_user=user)
    assert [e.course_id for e in completed] == [finished.id]


def test_lecture_progress_details_follow_course_order(db_session, user_factory, course_factory, enroll):
    course = course_factory(lecture_count=4, section_count=2)
    user = user_factory()
    enroll(user, course)
    ids = lecture_ids(course)

    for lecture_id in reversed(ids):
        complete(db_session, user, lecture_id)

    details = course_progress_service.get_lecture_progress_details(db_session, course_id=course.id, current_user=user)
    assert [p.lecture_id for p in details] == ids
