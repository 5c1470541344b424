import logging

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from pydantic import EmailStr
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from user_directory.config import Settings, get_settings
from user_directory.database import get_db
from user_directory.models.user import User
from user_directory.schemas.user import UserForm, serialize_user
from user_directory.services import record_service, upload_service
from user_directory.services.auth_middleware import get_current_user
from user_directory.services.upload_service import APPOINTMENT_LETTER_FIELD, PROFILE_PHOTO_FIELD
from user_directory.utils.response import create_response, handle_exception

router = APIRouter(prefix="/users", tags=["Users"], dependencies=[Depends(get_current_user)])
logger = logging.getLogger(__name__)


def user_form(
    first_name: str = Form(..., alias="firstName", min_length=1, max_length=100),
    last_name: str = Form(..., alias="lastName", min_length=1, max_length=100),
    email: EmailStr = Form(...),
    company_address: str = Form(..., alias="companyAddress", min_length=1, max_length=255),
    company_city: str = Form(..., alias="companyCity", min_length=1, max_length=100),
    company_state: str = Form(..., alias="companyState", min_length=1, max_length=100),
    company_zip: str = Form(..., alias="companyZip", min_length=6, max_length=6),
    home_address: str = Form(..., alias="homeAddress", min_length=1, max_length=255),
    home_city: str = Form(..., alias="homeCity", min_length=1, max_length=100),
    home_state: str = Form(..., alias="homeState", min_length=1, max_length=100),
    home_zip: str = Form(..., alias="homeZip", min_length=6, max_length=6),
) -> UserForm:
    return UserForm(
        first_name=first_name,
        last_name=last_name,
        email=email,
        company_address=company_address,
        company_city=company_city,
        company_state=company_state,
        company_zip=company_zip,
        home_address=home_address,
        home_city=home_city,
        home_state=home_state,
        home_zip=home_zip,
    )


def _attachments(profile_photo: UploadFile | None, appointment_letter: UploadFile | None) -> dict:
    return {
        PROFILE_PHOTO_FIELD: profile_photo,
        APPOINTMENT_LETTER_FIELD: appointment_letter,
    }


@router.post("")
async def add_user(
    request: Request,
    form: UserForm = Depends(user_form),
    profile_photo: UploadFile | None = File(None, alias=PROFILE_PHOTO_FIELD),
    appointment_letter: UploadFile | None = File(None, alias=APPOINTMENT_LETTER_FIELD),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: User = Depends(get_current_user),
):
    try:
        logger.info("User %s adding record for a new user", current_user.id)
        upload_service.ensure_single_parts(await request.form())
        uploads = await upload_service.accept_uploads(
            _attachments(profile_photo, appointment_letter),
            settings.MAX_UPLOAD_BYTES,
        )
        # Queries, commits and file writes stay off the event loop
        user = await run_in_threadpool(record_service.add_user, db, form, uploads, settings.upload_root)
        return create_response(
            message="User added successfully",
            data=serialize_user(user),
            status_code=status.HTTP_201_CREATED,
        )
    except Exception as exc:
        return handle_exception(exc, fallback_message="Error adding user")


@router.get("")
def view_users(db: Session = Depends(get_db)):
    try:
        users = record_service.view_users(db)
        payload = [serialize_user(user) for user in users]
        return create_response(
            message="Users fetched successfully",
            data={"count": len(payload), "users": payload},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, fallback_message="Error fetching users")


@router.put("/{user_id}")
async def edit_user(
    request: Request,
    user_id: int,
    form: UserForm = Depends(user_form),
    profile_photo: UploadFile | None = File(None, alias=PROFILE_PHOTO_FIELD),
    appointment_letter: UploadFile | None = File(None, alias=APPOINTMENT_LETTER_FIELD),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: User = Depends(get_current_user),
):
    try:
        logger.info("User %s editing record %s", current_user.id, user_id)
        upload_service.ensure_single_parts(await request.form())
        uploads = await upload_service.accept_uploads(
            _attachments(profile_photo, appointment_letter),
            settings.MAX_UPLOAD_BYTES,
        )
        user = await run_in_threadpool(
            record_service.edit_user, db, user_id, form, uploads, settings.upload_root
        )
        return create_response(
            message="User updated successfully",
            data=serialize_user(user),
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, fallback_message="Error updating user")
