from dataclasses import dataclass

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from coursework.core.config import ROLE_ADMIN
from coursework.core.deps import get_db
from coursework.core.security import decode_access_token
from coursework.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


@dataclass(frozen=True)
class Caller:
    """Identity every policy check is evaluated against.

    Built once per request from the bearer token and the ``users`` row, then
    passed explicitly to the service layer.
    """

    id: int
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_user(cls, user: User) -> "Caller":
        return cls(id=user.id, email=user.email, role=user.role)


def _credentials_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    try:
        payload = decode_access_token(token)
        user_id = int(payload["sub"])
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise _credentials_error()

    user = db.get(User, user_id)
    if user is None:
        raise _credentials_error()
    return user


def get_caller(current_user: User = Depends(get_current_user)) -> Caller:
    # role comes from the users row, not the token claim, so a role change
    # takes effect on the next request
    return Caller.from_user(current_user)
