# storefront/api/deps.py
from dataclasses import dataclass
from fastapi import Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.repos.user_repo import UserRepo
from storefront.services.lock_service import LockService


@dataclass(frozen=True)
class Actor:
    """Caller identity, already authenticated by the gateway in front of us."""

    id: int
    is_admin: bool


def get_actor(user_id: int = Query(..., gt=0), db: Session = Depends(get_db)) -> Actor:
    user = UserRepo(db).get_user(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    return Actor(id=user.id, is_admin=bool(user.is_admin))


def get_lock_service() -> LockService:
    return LockService()
