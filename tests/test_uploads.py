import asyncio
import io

import pytest
from starlette.datastructures import Headers, UploadFile

from conftest import user_form
from user_directory.models.user import User
from user_directory.services import upload_service
from user_directory.utils.errors import FileTooLarge, UnsupportedFileType

SIX_MIB = 6 * 1024 * 1024


def _upload(filename, contents, content_type):
    return UploadFile(
        file=io.BytesIO(contents),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


def test_gif_profile_photo_is_rejected(client, auth_headers, db_session):
    response = client.post(
        "/users",
        data=user_form(),
        files={"profilePhoto": ("face.gif", b"GIF89a", "image/gif")},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Only JPEG, JPG, and PNG files are allowed for profile photos"
    assert db_session.query(User).filter(User.email == "a@b.com").count() == 0


def test_profile_photo_needs_matching_extension(client, auth_headers):
    response = client.post(
        "/users",
        data=user_form(),
        files={"profilePhoto": ("face.gif", b"\x89PNG", "image/png")},
        headers=auth_headers,
    )

    assert response.status_code == 400


def test_appointment_letter_must_be_pdf(client, auth_headers):
    response = client.post(
        "/users",
        data=user_form(),
        files={"appointmentLetter": ("letter.docx", b"PK", "application/msword")},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Only PDF files are allowed for appointment letters"


@pytest.mark.parametrize(
    "field, filename, content_type",
    [
        ("profilePhoto", "big.png", "image/png"),
        ("appointmentLetter", "big.pdf", "application/pdf"),
    ],
)
def test_six_mib_upload_is_too_large(client, auth_headers, settings, field, filename, content_type):
    response = client.post(
        "/users",
        data=user_form(),
        files={field: (filename, b"0" * SIX_MIB, content_type)},
        headers=auth_headers,
    )

    assert response.status_code == 413
    assert list(settings.upload_root.rglob("*.*")) == []


def test_rejected_second_file_prevents_storing_the_first(client, auth_headers, settings):
    response = client.post(
        "/users",
        data=user_form(),
        files={
            "profilePhoto": ("face.png", b"\x89PNG", "image/png"),
            "appointmentLetter": ("letter.txt", b"text", "text/plain"),
        },
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert list(settings.upload_root.rglob("*.*")) == []


def test_check_type_accepts_declared_policies():
    assert upload_service.check_type("profilePhoto", "me.JPEG", "image/jpeg").bucket == "profile_photos"
    assert upload_service.check_type("appointmentLetter", "x.pdf", "application/pdf").bucket == "appointment_letters"

    with pytest.raises(UnsupportedFileType):
        upload_service.check_type("resume", "cv.pdf", "application/pdf")


def test_accept_upload_enforces_size_limit():
    assert FileTooLarge().status_code == 413

    with pytest.raises(FileTooLarge):
        asyncio.run(upload_service.accept_upload("appointmentLetter", _upload("a.pdf", b"0" * 11, "application/pdf"), 10))

    pending = asyncio.run(upload_service.accept_upload("appointmentLetter", _upload("a.pdf", b"0" * 10, "application/pdf"), 10))
    assert pending.contents == b"0" * 10


def test_accept_uploads_skips_missing_files():
    accepted = asyncio.run(upload_service.accept_uploads({"profilePhoto": None, "appointmentLetter": None}, 10))

    assert accepted == []


def test_store_and_discard_round_trip(tmp_path):
    pending = upload_service.PendingUpload(
        field="profilePhoto",
        filename="../../etc/face.png",
        content_type="image/png",
        contents=b"png",
    )

    stored = upload_service.store_upload(pending, tmp_path)

    assert stored.path.parent == tmp_path / "profile_photos"
    assert stored.path.read_bytes() == b"png"
    assert stored.reference == f"uploads/profile_photos/{stored.path.name}"
    assert stored.path.name.split("-", 1)[1] == "face.png"

    upload_service.discard([stored])
    assert not stored.path.exists()


@pytest.mark.parametrize(
    "field, parts",
    [
        ("profilePhoto", [("one.png", b"\x89PNG", "image/png"), ("two.png", b"\x89PNG", "image/png")]),
        ("appointmentLetter", [("a.pdf", b"%PDF", "application/pdf"), ("b.pdf", b"%PDF", "application/pdf")]),
    ],
)
def test_repeated_attachment_field_is_rejected(client, auth_headers, db_session, settings, field, parts):
    response = client.post(
        "/users",
        data=user_form(),
        files=[(field, part) for part in parts],
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == f"Only one file is allowed for {field}"
    assert db_session.query(User).filter(User.email == "a@b.com").count() == 0
    assert list(settings.upload_root.rglob("*.*")) == []


def test_repeated_attachment_field_is_rejected_on_edit(client, auth_headers):
    created = client.post("/users", data=user_form(), headers=auth_headers).json()["data"]

    response = client.put(
        f"/users/{created['id']}",
        data=user_form(),
        files=[
            ("profilePhoto", ("one.png", b"\x89PNG", "image/png")),
            ("profilePhoto", ("two.png", b"\x89PNG", "image/png")),
        ],
        headers=auth_headers,
    )

    assert response.status_code == 400
