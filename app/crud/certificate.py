import logging
from typing import List, Optional, Tuple
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.certificate import Certificate
from app.schemas.certificate import CertificateCreate

logger = logging.getLogger(__name__)


class CRUDCertificate(CRUDBase[Certificate, CertificateCreate, None]):

    def get_by_certificate_id(self, db: Session, certificate_id: str) -> Optional[Certificate]:
        return db.query(Certificate).filter(Certificate.certificate_id == certificate_id).first()

    def get_by_user_and_course(self, db: Session, user_id: int, course_id: int) -> Optional[Certificate]:
        return (
            db.query(Certificate)
            .filter(Certificate.user_id == user_id)
            .filter(Certificate.course_id == course_id)
            .first()
        )

    def get_by_user(self, db: Session, user_id: int) -> List[Certificate]:
        return (
            db.query(Certificate)
            .filter(Certificate.user_id == user_id)
            .order_by(Certificate.issued_at.desc(), Certificate.id.desc())
            .all()
        )

    def create_unique(self, db: Session, *, obj_in: CertificateCreate) -> Tuple[Certificate, bool]:
        """Insert inside a SAVEPOINT; a (user, course) collision yields the stored row.

        Returns ``(certificate, created)``. The enclosing transaction is left
        open for the caller to commit.
        """
        db_obj = Certificate(**obj_in.model_dump())
        try:
            with db.begin_nested():
                db.add(db_obj)
        except IntegrityError:
            existing = self.get_by_user_and_course(db, user_id=obj_in.user_id, course_id=obj_in.course_id)
            if existing is None:
                raise
            logger.warning(
                f"Certificate insert raced for user {obj_in.user_id} course {obj_in.course_id}; "
                f"returning {existing.certificate_id}"
            )
            return existing, False
        return db_obj, True


certificate = CRUDCertificate(Certificate)
