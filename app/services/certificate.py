import logging
import secrets
import string
from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    CertificateNotFoundError,
    CourseNotCompletedError,
    CourseNotFoundError,
    ForbiddenError,
    NotEnrolledError,
)
from app.crud.certificate import certificate as crud_certificate
from app.crud.course import course as crud_course
from app.crud.course_enrollment import enrollment as crud_enrollment
from app.crud.lecture_progress import lecture_progress as crud_lecture_progress
from app.models.certificate import Certificate
from app.models.user import User
from app.schemas.certificate import CertificateCreate

logger = logging.getLogger(__name__)

CERTIFICATE_ID_ALPHABET = string.ascii_uppercase + string.digits


class CertificateService:

    def _new_certificate_id(self) -> str:
        suffix = "".join(secrets.choice(CERTIFICATE_ID_ALPHABET) for _ in range(settings.CERTIFICATE_ID_LENGTH))
        return f"{settings.CERTIFICATE_ID_PREFIX}{suffix}"

    def organization_name_for(self, user: User) -> str:
        if user.organization and user.organization.name:
            return user.organization.name
        return settings.DEFAULT_ORGANIZATION_NAME

    def issue_if_absent(
        self,
        db: Session,
        *,
        user_id: int,
        course_id: int,
        course_title: str,
        organization_name: str,
        cpd_points: Optional[float] = None,
        commit: bool = True,
    ) -> Tuple[Certificate, bool]:
        """Return the learner's certificate for the course, creating it on first call.

        Safe to call repeatedly and concurrently: the (user, course) unique
        constraint backs the existence check, and a losing insert resolves to
        the row that won. Returns ``(certificate, created)``.
        """
        existing = crud_certificate.get_by_user_and_course(db, user_id=user_id, course_id=course_id)
        if existing:
            return existing, False

        certificate_in = CertificateCreate(
            certificate_id=self._new_certificate_id(),
            user_id=user_id,
            course_id=course_id,
            course_name=course_title,
            organization_name=organization_name,
            cpd_points=cpd_points,
            issued_at=datetime.now(),
        )
        certificate, created = crud_certificate.create_unique(db, obj_in=certificate_in)

        if commit:
            db.commit()
            db.refresh(certificate)

        if created:
            logger.info(f"Issued certificate {certificate.certificate_id} to user {user_id} for course {course_id}")
        return certificate, created

    def generate_for_course(self, db: Session, course_id: int, current_user: User) -> Certificate:
        course = crud_course.get(db, id=course_id)
        if not course:
            raise CourseNotFoundError()

        enrollment = crud_enrollment.get_by_user_and_course(db, user_id=current_user.id, course_id=course_id)
        if not enrollment:
            raise NotEnrolledError()

        total = crud_course.count_lectures(db, course_id=course_id)
        completed = crud_lecture_progress.count_completed_by_course(db, user_id=current_user.id, course_id=course_id)
        if completed < total:
            raise CourseNotCompletedError(completed=completed, total=total)

        certificate, _ = self.issue_if_absent(
            db,
            user_id=current_user.id,
            course_id=course.id,
            course_title=course.title,
            organization_name=self.organization_name_for(current_user),
            cpd_points=course.cpd_points,
        )
        return certificate

    def list_certificates(self, db: Session, current_user: User) -> List[Certificate]:
        return crud_certificate.get_by_user(db, user_id=current_user.id)

    def get_certificate(self, db: Session, certificate_id: str, current_user: User) -> Certificate:
        certificate = crud_certificate.get_by_certificate_id(db, certificate_id=certificate_id)
        if not certificate:
            raise CertificateNotFoundError()

        if certificate.user_id != current_user.id:
            raise ForbiddenError("You can only view your own certificates.")
        return certificate


certificate_service = CertificateService()
