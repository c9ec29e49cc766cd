from sqlalchemy.orm import Session
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.lecture_progress import LectureProgress
from app.models.lecture import Lecture
from app.models.section import Section

class CRUDLectureProgress(CRUDBase[LectureProgress, None, None]):

    def _query_for_course(self, db: Session, user_id: int, course_id: int):
        return (
            db.query(LectureProgress)
            .join(Lecture, Lecture.id == LectureProgress.lecture_id)
            .join(Section, Section.id == Lecture.section_id)
            .filter(LectureProgress.user_id == user_id)
            .filter(Section.course_id == course_id)
        )

    def get_by_user_and_lecture(self, db: Session, user_id: int, lecture_id: int) -> Optional[LectureProgress]:
        return (
            db.query(LectureProgress)
            .filter(LectureProgress.user_id == user_id)
            .filter(LectureProgress.lecture_id == lecture_id)
            .first()
        )

    def get_all_by_course(self, db: Session, user_id: int, course_id: int) -> List[LectureProgress]:
        return (
            self._query_for_course(db, user_id, course_id)
            .order_by(Section.order, Lecture.order)
            .all()
        )

    def count_completed_by_course(self, db: Session, user_id: int, course_id: int) -> int:
        return (
            self._query_for_course(db, user_id, course_id)
            .filter(LectureProgress.is_completed == True)
            .count()
        )


lecture_progress = CRUDLectureProgress(LectureProgress)
