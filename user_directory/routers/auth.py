from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from user_directory.config import Settings, get_settings
from user_directory.database import get_db
from user_directory.schemas.user import LoginRequest, SignupRequest
from user_directory.services import auth_service
from user_directory.utils.response import create_response, handle_exception

router = APIRouter(tags=["Auth"])


def _token_payload(user, token: str) -> dict:
    return {"token": token, "token_type": "bearer", "user_id": user.id}


@router.post("/signup")
def signup(
    body: SignupRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        user, token = auth_service.signup(db, body, settings)
        return create_response(
            message="Signup successful",
            data=_token_payload(user, token),
            status_code=status.HTTP_201_CREATED,
        )
    except Exception as exc:
        return handle_exception(exc, fallback_message="Server error")


@router.post("/login")
def login(
    body: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        user, token = auth_service.login(db, body.email, body.password, settings)
        return create_response(
            message="Login successful",
            data=_token_payload(user, token),
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, fallback_message="Server error")
