import logging
from datetime import datetime, timedelta

from jose import JWTError, jwt
from passlib.hash import bcrypt
from sqlalchemy.orm import Session

from user_directory.config import Settings
from user_directory.models.user import User
from user_directory.schemas.user import SignupRequest
from user_directory.services import credential_store
from user_directory.utils.errors import InvalidCredentials, InvalidToken

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"


def hash_password(password: str, rounds: int = 10) -> str:
    return bcrypt.using(rounds=rounds).hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.verify(password, password_hash)
    except ValueError:
        # Stored value is not a recognizable bcrypt digest
        return False


def create_access_token(user_id: int, settings: Settings, expires_delta: timedelta | None = None) -> str:
    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    claims = {"sub": str(user_id), "type": ACCESS_TOKEN_TYPE, "iat": now, "exp": expire}
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> int:
    """Return the user id carried by a valid access token."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.ALGORITHM])
    except JWTError as exc:
        raise InvalidToken() from exc

    if payload.get("type", ACCESS_TOKEN_TYPE) != ACCESS_TOKEN_TYPE:
        raise InvalidToken("Invalid token type")

    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError) as exc:
        raise InvalidToken("Invalid token payload") from exc


def signup(db: Session, body: SignupRequest, settings: Settings) -> tuple[User, str]:
    password_hash = hash_password(body.password, settings.BCRYPT_ROUNDS)
    user = credential_store.create_credential(
        db,
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        password_hash=password_hash,
    )
    logger.info("User %s signed up", user.id)
    return user, create_access_token(user.id, settings)


def login(db: Session, email: str, password: str, settings: Settings) -> tuple[User, str]:
    user = credential_store.find_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        logger.warning("Rejected login attempt")
        raise InvalidCredentials()

    logger.info("User %s logged in", user.id)
    return user, create_access_token(user.id, settings)


def verify(db: Session, token: str | None, settings: Settings) -> User:
    if not token:
        raise InvalidToken("Missing bearer token")

    user_id = decode_access_token(token, settings)
    user = credential_store.find_by_id(db, user_id)
    if not user:
        raise InvalidToken("Token user no longer exists")
    return user
