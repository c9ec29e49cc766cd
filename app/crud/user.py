from typing import Optional
from sqlalchemy.orm import Session, selectinload

from app.crud.base import CRUDBase
from app.models.user import User


class CRUDUser(CRUDBase[User, None, None]):

    def get(self, db: Session, id: int) -> Optional[User]:
        return (
            db.query(User)
            .options(selectinload(User.organization))
            .filter(User.id == id)
            .filter(User.deleted_at.is_(None))
            .first()
        )


user = CRUDUser(User)
