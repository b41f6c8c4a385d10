"""
Profile service.
Reads and edits a user's public profile. Going private hands out an
anonymous display name, kept across later toggles.
"""
import logging
import random
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from evergreeners.models import User
from evergreeners.schemas import ProfileUpdate
from evergreeners.repositories.user_repository import UserRepository
from evergreeners.exceptions import UserNotFoundException, ValidationException
from evergreeners.constants import ANONYMOUS_ADJECTIVES, ANONYMOUS_NOUNS

logger = logging.getLogger("evergreeners.profiles")


def generate_anonymous_name(rng: Optional[random.Random] = None) -> str:
    """Random display name such as "QuietSprout417" """
    rng = rng or random
    return f"{rng.choice(ANONYMOUS_ADJECTIVES)}{rng.choice(ANONYMOUS_NOUNS)}{rng.randint(0, 999)}"


def assign_anonymous_name(user: User, rng: Optional[random.Random] = None) -> None:
    """Give a private user an anonymous name unless they already have one"""
    if not user.is_public and not user.anonymous_name:
        user.anonymous_name = generate_anonymous_name(rng)


class ProfileService:
    """Service for profile reads and edits"""

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository()

    def get_profile(self, user_id: str) -> User:
        user = self.user_repo.get_by_id(self.db, user_id)
        if not user:
            raise UserNotFoundException(user_id)
        return user

    def update_profile(
        self,
        user_id: str,
        profile: ProfileUpdate,
        rng: Optional[random.Random] = None
    ) -> User:
        """
        Apply the fields present in the request.

        An explicit anonymous_name always wins; otherwise one is generated
        the first time the user goes private.

        Raises:
            UserNotFoundException: unknown user
            ValidationException: the new username belongs to someone else
        """
        user = self.get_profile(user_id)
        for key, value in profile.model_dump(exclude_unset=True).items():
            if value is None and key in ("username", "is_public", "anonymous_name"):
                continue
            setattr(user, key, value)

        assign_anonymous_name(user, rng)

        try:
            user = self.user_repo.update(self.db, user)
        except IntegrityError:
            self.db.rollback()
            raise ValidationException("username", f"'{profile.username}' is already taken")

        logger.info(f"Profile updated for {user_id} (public={user.is_public})")
        return user
