from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.crud.base import CRUDBase
from app.models.course import Course
from app.models.section import Section
from app.models.lecture import Lecture


class CRUDCourse(CRUDBase[Course, None, None]):

    def get(self, db: Session, id: int) -> Optional[Course]:
        return (
            db.query(Course)
            .options(selectinload(Course.sections).selectinload(Section.lectures))
            .filter(Course.id == id)
            .filter(Course.deleted_at.is_(None))
            .first()
        )

    def count_lectures(self, db: Session, course_id: int) -> int:
        return (
            db.query(func.count(Lecture.id))
            .join(Section, Section.id == Lecture.section_id)
            .filter(Section.course_id == course_id)
            .scalar()
        ) or 0


class CRUDLecture(CRUDBase[Lecture, None, None]):

    def get(self, db: Session, id: int) -> Optional[Lecture]:
        return (
            db.query(Lecture)
            .options(selectinload(Lecture.section).selectinload(Section.course))
            .filter(Lecture.id == id)
            .first()
        )


course = CRUDCourse(Course)
lecture = CRUDLecture(Lecture)
