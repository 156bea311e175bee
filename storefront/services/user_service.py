# storefront/services/user_service.py
from sqlalchemy.orm import Session

from storefront.data.models.user import UserModel
from storefront.domain.errors import EmailTaken, UserNotFound
from storefront.domain.schemas import UserCreate, UserRead
from storefront.repos.user_repo import UserRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    """
    Identity records behind the caller claim: who owns an order and who may
    act as admin. Registering an existing id returns the stored user.
    """

    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        existing = self.repo.get_user(payload.id)
        if existing:
            return UserRead.model_validate(existing)

        email = payload.email.strip()
        if email and self.repo.get_by_email(email):
            raise EmailTaken(email)

        created = self.repo.add_user(
            UserModel(id=payload.id, name=payload.name, email=email, is_admin=payload.is_admin)
        )
        logger.info(f"User {created.id} registered (admin={created.is_admin})")
        return UserRead.model_validate(created)

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise UserNotFound(user_id)
        return UserRead.model_validate(user)
