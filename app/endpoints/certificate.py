from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.schemas.response import APIResponse
from app.utils import deps
from app.models.user import User
from app.schemas.certificate import Certificate, CertificateGenerateRequest
from app.services.certificate import certificate_service

router = APIRouter()


@router.post("/generate", response_model=APIResponse[Certificate])
def generate_certificate(
    *,
    db: Session = Depends(deps.get_transactional_db),
    request_in: CertificateGenerateRequest,
    current_user: User = Depends(deps.get_current_user)
):
    certificate = certificate_service.generate_for_course(db, course_id=request_in.course_id, current_user=current_user)
    return APIResponse(message="Certificate ready", data=Certificate.model_validate(certificate))


@router.get("", response_model=APIResponse[List[Certificate]])
def list_certificates(
    *,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user)
):
    certificates = certificate_service.list_certificates(db, current_user=current_user)
    return APIResponse(
        message="Certificates retrieved successfully",
        data=[Certificate.model_validate(c) for c in certificates]
    )


@router.get("/{certificate_id}", response_model=APIResponse[Certificate])
def get_certificate(
    *,
    db: Session = Depends(deps.get_db),
    certificate_id: str,
    current_user: User = Depends(deps.get_current_user)
):
    certificate = certificate_service.get_certificate(db, certificate_id=certificate_id, current_user=current_user)
    return APIResponse(message="Certificate retrieved successfully", data=Certificate.model_validate(certificate))
