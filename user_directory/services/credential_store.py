import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from user_directory.models.user import User
from user_directory.utils.errors import DuplicateEmail

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def find_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(func.lower(User.email) == normalize_email(email)).first()


def find_by_id(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def create_credential(db: Session, first_name: str, last_name: str, email: str, password_hash: str) -> User:
    """Persist a signup identity; the email must not be taken yet."""
    if find_by_email(db, email):
        raise DuplicateEmail()

    user = User(
        first_name=first_name,
        last_name=last_name,
        email=normalize_email(email),
        password_hash=password_hash,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race against a concurrent signup for the same address
        db.rollback()
        raise DuplicateEmail() from exc

    db.refresh(user)
    logger.info("Created credential for user_id=%s", user.id)
    return user
