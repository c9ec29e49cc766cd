from sqlalchemy.orm import Session, selectinload
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.course_enrollment import Enrollment

class CRUDEnrollment(CRUDBase[Enrollment, None, None]):

    def _query_with_relationships(self, db: Session):
        return db.query(Enrollment).options(
            selectinload(Enrollment.course)
        )

    def get_by_user_and_course(self, db: Session, user_id: int, course_id: int) -> Optional[Enrollment]:
        return (
            self._query_with_relationships(db)
            .filter(Enrollment.user_id == user_id)
            .filter(Enrollment.course_id == course_id)
            .first()
        )

    def lock_by_user_and_course(self, db: Session, user_id: int, course_id: int) -> Optional[Enrollment]:
        """Re-read the enrollment row with a row lock held until the transaction ends."""
        return (
            db.query(Enrollment)
            .filter(Enrollment.user_id == user_id)
            .filter(Enrollment.course_id == course_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    def get_completed_by_user(self, db: Session, user_id: int) -> List[Enrollment]:
        return (
            self._query_with_relationships(db)
            .filter(Enrollment.user_id == user_id)
            .filter(Enrollment.completed_at.isnot(None))
            .order_by(Enrollment.completed_at.desc())
            .all()
        )

enrollment = CRUDEnrollment(Enrollment)
