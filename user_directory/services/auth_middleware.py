from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from user_directory.config import Settings, get_settings
from user_directory.database import get_db
from user_directory.services import auth_service

# Missing credentials are reported as InvalidToken rather than FastAPI's default 403
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    token = credentials.credentials if credentials else None
    return auth_service.verify(db, token, settings)
