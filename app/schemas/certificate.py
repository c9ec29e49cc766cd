from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class CertificateCreate(BaseModel):
    certificate_id: str
    user_id: int
    course_id: int
    course_name: str
    organization_name: str
    cpd_points: Optional[float] = None
    issued_at: datetime


class CertificateGenerateRequest(BaseModel):
    course_id: int


class Certificate(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    certificate_id: str
    user_id: int
    course_id: int
    course_name: str
    organization_name: str
    cpd_points: Optional[float] = None
    issued_at: datetime
