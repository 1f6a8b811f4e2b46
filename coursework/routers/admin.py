import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coursework.core.current_user import Caller
from coursework.core.deps import commit_or_raise, get_db
from coursework.core.errors import NotFound
from coursework.core.permissions import require_admin
from coursework.models.user import User
from coursework.schemas.user import UserRead, UserRoleUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/users", response_model=list[UserRead])
def list_users(
    db: Session = Depends(get_db),
    admin: Caller = Depends(require_admin),
):
    return db.query(User).order_by(User.email.asc()).all()


@router.patch("/users/{user_id}/role", response_model=UserRead)
def set_user_role(
    user_id: int,
    payload: UserRoleUpdate,
    db: Session = Depends(get_db),
    admin: Caller = Depends(require_admin),
):
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User", user_id)

    user.role = payload.role
    commit_or_raise(db)
    db.refresh(user)

    logger.info("user %s role set to %s by admin %s", user.id, user.role, admin.id)
    return user
