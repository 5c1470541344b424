import logging
from pathlib import Path

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from user_directory.models.user import User
from user_directory.schemas.user import UserForm
from user_directory.services import credential_store, profile_store, upload_service
from user_directory.services.upload_service import (
    APPOINTMENT_LETTER_FIELD,
    PROFILE_PHOTO_FIELD,
    PendingUpload,
)
from user_directory.utils.errors import DuplicateEmail, NotFound

logger = logging.getLogger(__name__)

# Upload field -> User column holding its path reference
FILE_COLUMNS = {
    PROFILE_PHOTO_FIELD: "profile_pic",
    APPOINTMENT_LETTER_FIELD: "appointment_letter",
}


def _ensure_email_available(db: Session, email: str, user_id: int | None = None) -> None:
    existing = credential_store.find_by_email(db, email)
    if existing and existing.id != user_id:
        raise DuplicateEmail()


def _compensate(db: Session, stored: dict) -> None:
    db.rollback()
    upload_service.discard(stored.values())


def _commit_or_compensate(db: Session, stored: dict) -> None:
    """Commit the session; on failure roll back and drop files written for it."""
    try:
        db.commit()
    except IntegrityError as exc:
        _compensate(db, stored)
        raise DuplicateEmail() from exc
    except Exception:
        _compensate(db, stored)
        raise


def add_user(db: Session, form: UserForm, uploads: list[PendingUpload], upload_root: Path) -> User:
    """Create a user and its address in a single transaction."""
    _ensure_email_available(db, form.email)

    stored = upload_service.store_uploads(uploads, upload_root)
    try:
        user = User(
            first_name=form.first_name,
            last_name=form.last_name,
            email=credential_store.normalize_email(form.email),
        )
        for field, column in FILE_COLUMNS.items():
            setattr(user, column, stored[field].reference if field in stored else None)
        db.add(user)
        db.flush()

        db.add(profile_store.build_address(user.id, form.address_data()))
    except IntegrityError as exc:
        _compensate(db, stored)
        raise DuplicateEmail() from exc
    except Exception:
        _compensate(db, stored)
        raise

    _commit_or_compensate(db, stored)
    db.refresh(user)
    logger.info("Added user %s with %s attachment(s)", user.id, len(stored))
    return user


def view_users(db: Session) -> list[User]:
    return db.query(User).options(joinedload(User.address)).order_by(User.id.asc()).all()


def get_record(db: Session, user_id: int):
    user = credential_store.find_by_id(db, user_id)
    address = profile_store.find_by_user_id(db, user_id)
    if not user or not address:
        raise NotFound()
    return user, address


def edit_user(
    db: Session,
    user_id: int,
    form: UserForm,
    uploads: list[PendingUpload],
    upload_root: Path,
) -> User:
    """Overwrite a record; file references change only when a new file arrives."""
    user, address = get_record(db, user_id)
    _ensure_email_available(db, form.email, user_id=user.id)

    stored = upload_service.store_uploads(uploads, upload_root)
    try:
        user.first_name = form.first_name
        user.last_name = form.last_name
        user.email = credential_store.normalize_email(form.email)
        for field, item in stored.items():
            setattr(user, FILE_COLUMNS[field], item.reference)

        profile_store.apply_address(address, form.address_data())
    except Exception:
        _compensate(db, stored)
        raise

    _commit_or_compensate(db, stored)
    db.refresh(user)
    logger.info("Edited user %s, replaced %s", user.id, sorted(stored) or "no files")
    return user
