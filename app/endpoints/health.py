from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.core.config import settings
from app.schemas.response import APIResponse
from app.utils import deps

router = APIRouter()


@router.get("", response_model=APIResponse[dict])
def health(db: Session = Depends(deps.get_db)):
    db.execute(text("SELECT 1"))
    return APIResponse(message="ok", data={"service": settings.PROJECT_NAME, "version": settings.VERSION})
