import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from quotes_api.database import session_scope
from quotes_api.errors import UserNotFound
from quotes_api.models.user import AccountType, UserEntry
from quotes_api.schemas.users import ProfileUpdate, UserProfile

LOGGER = logging.getLogger(__name__)


def needs_profile_setup(entry: UserEntry) -> bool:
    return not entry.name or not entry.name.strip()


class UserStore:
    def get_by_phone(self, session: Session, phone_number: str) -> UserEntry | None:
        result = session.execute(
            select(UserEntry).where(UserEntry.phone_number == phone_number)
        )
        return result.scalar_one_or_none()

    def get_or_create(
        self, session: Session, phone_number: str
    ) -> tuple[UserEntry, bool]:
        entry = self.get_by_phone(session, phone_number)
        if entry is not None:
            return entry, False

        entry = UserEntry(
            phone_number=phone_number,
            name="",
            account_type=AccountType.PERSONAL.value,
            is_verified=False,
            is_deleted=False,
        )
        session.add(entry)
        session.flush()
        LOGGER.info("Created user id=%s for phone=%s", entry.id, phone_number)
        return entry, True

    def get_profile(self, user_id: int) -> UserProfile:
        with session_scope() as session:
            entry = session.get(UserEntry, user_id)
            if entry is None:
                raise UserNotFound("User not found.")
            return self.to_profile(entry)

    def update_profile(self, user_id: int, payload: ProfileUpdate) -> UserProfile:
        with session_scope() as session:
            entry = session.get(UserEntry, user_id)
            if entry is None:
                raise UserNotFound("User not found.")
            if payload.name is not None:
                entry.name = payload.name
            if payload.account_type is not None:
                entry.account_type = payload.account_type.value
            session.flush()
            return self.to_profile(entry)

    def to_profile(self, entry: UserEntry) -> UserProfile:
        return UserProfile(
            id=entry.id,
            phone_number=entry.phone_number,
            name=entry.name or None,
            profile_image_url=entry.profile_image_url or None,
            account_type=AccountType(entry.account_type),
            is_verified=bool(entry.is_verified),
            is_deleted=bool(entry.is_deleted),
        )


user_store = UserStore()
