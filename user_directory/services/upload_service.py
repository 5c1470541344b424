"""Acceptance and storage of the two attachment kinds a user record carries.

Every form field maps to a bucket under the upload root and a policy on what
it may contain. Files are fully validated before anything touches the disk so
that a rejected attachment never leaves a sibling file behind.
"""
import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile

from user_directory.utils.errors import FileTooLarge, UnsupportedFileType

logger = logging.getLogger(__name__)

PROFILE_PHOTO_FIELD = "profilePhoto"
APPOINTMENT_LETTER_FIELD = "appointmentLetter"


@dataclass(frozen=True)
class UploadPolicy:
    bucket: str
    content_types: frozenset
    extensions: frozenset | None
    message: str


UPLOAD_POLICIES = {
    PROFILE_PHOTO_FIELD: UploadPolicy(
        bucket="profile_photos",
        content_types=frozenset({"image/jpeg", "image/jpg", "image/png"}),
        extensions=frozenset({".jpeg", ".jpg", ".png"}),
        message="Only JPEG, JPG, and PNG files are allowed for profile photos",
    ),
    APPOINTMENT_LETTER_FIELD: UploadPolicy(
        bucket="appointment_letters",
        content_types=frozenset({"application/pdf"}),
        extensions=None,
        message="Only PDF files are allowed for appointment letters",
    ),
}


@dataclass
class PendingUpload:
    field: str
    filename: str
    content_type: str
    contents: bytes

    @property
    def policy(self) -> UploadPolicy:
        return UPLOAD_POLICIES[self.field]


@dataclass
class StoredFile:
    field: str
    reference: str
    path: Path


def has_file(upload: UploadFile | None) -> bool:
    # Browsers submit an empty part for an untouched file input
    return upload is not None and bool(upload.filename)


def _safe_name(filename: str) -> str:
    name = Path(filename).name
    return re.sub(r"[^A-Za-z0-9._-]", "_", name) or "upload"


def check_type(field: str, filename: str, content_type: str | None) -> UploadPolicy:
    policy = UPLOAD_POLICIES.get(field)
    if policy is None:
        raise UnsupportedFileType(f"Unexpected file field: {field}")

    content_type = (content_type or "").split(";")[0].strip().lower()
    if content_type not in policy.content_types:
        raise UnsupportedFileType(policy.message)
    if policy.extensions is not None and Path(filename).suffix.lower() not in policy.extensions:
        raise UnsupportedFileType(policy.message)
    return policy


async def accept_upload(field: str, upload: UploadFile, max_bytes: int) -> PendingUpload:
    try:
        check_type(field, upload.filename, upload.content_type)
    except UnsupportedFileType:
        logger.warning("Rejected %s upload %r (%s)", field, upload.filename, upload.content_type)
        raise

    # One extra byte is enough to know the limit was crossed
    contents = await upload.read(max_bytes + 1)
    if len(contents) > max_bytes:
        logger.warning("Rejected %s upload %r: larger than %s bytes", field, upload.filename, max_bytes)
        raise FileTooLarge(f"File too large: {field} exceeds {max_bytes} bytes")

    return PendingUpload(
        field=field,
        filename=upload.filename,
        content_type=upload.content_type,
        contents=contents,
    )


def ensure_single_parts(form) -> None:
    """Reject a multipart body that repeats an attachment field."""
    for field in UPLOAD_POLICIES:
        parts = [part for part in form.getlist(field) if part not in (None, "")]
        if len(parts) > 1:
            logger.warning("Rejected %s parts for %s: one file allowed", len(parts), field)
            raise UnsupportedFileType(f"Only one file is allowed for {field}")


async def accept_uploads(files: dict, max_bytes: int) -> list[PendingUpload]:
    """Validate every supplied file; fields without a file are skipped."""
    accepted = []
    for field, upload in files.items():
        if not has_file(upload):
            continue
        accepted.append(await accept_upload(field, upload, max_bytes))
    return accepted


def store_upload(pending: PendingUpload, upload_root: Path) -> StoredFile:
    bucket = pending.policy.bucket
    bucket_dir = Path(upload_root) / bucket
    bucket_dir.mkdir(parents=True, exist_ok=True)

    filename = f"{int(time.time() * 1000)}-{_safe_name(pending.filename)}"
    path = bucket_dir / filename
    path.write_bytes(pending.contents)

    logger.info("Stored %s upload at %s (%s bytes)", pending.field, path, len(pending.contents))
    return StoredFile(field=pending.field, reference=f"uploads/{bucket}/{filename}", path=path)


def store_uploads(pending: list[PendingUpload], upload_root: Path) -> dict[str, StoredFile]:
    stored = {}
    try:
        for item in pending:
            stored[item.field] = store_upload(item, upload_root)
    except OSError:
        discard(stored.values())
        raise
    return stored


def discard(stored_files) -> None:
    for stored in stored_files:
        try:
            stored.path.unlink(missing_ok=True)
            logger.info("Discarded stored upload %s", stored.path)
        except OSError:
            logger.exception("Could not remove stored upload %s", stored.path)
