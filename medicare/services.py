from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import DuplicateEmail, NotFound, StorageError, ValidationError
from .mailer import MailTransport, send_registration_email
from .models import ContactMessage, Patient

logger = logging.getLogger(__name__)

MAX_ID = 2**63 - 1

# Deferred file intake: called only once the text fields are valid,
# returns the stored file name (or None when no file was sent)
UploadThunk = Callable[[], "str | None"]


# =========================
# Helper / DTO
# =========================
@dataclass(frozen=True)
class RegistrationOutcome:
    id: int
    email_sent: bool


def _clean(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _require_patient_fields(name, email, phone) -> tuple[str, str, str]:
    name, email, phone = _clean(name), _clean(email), _clean(phone)
    if not name or not email or not phone:
        raise ValidationError("Name, email, and phone are required")
    return name, email, phone


def _parse_id(patient_id) -> int:
    # digits only ("1_0", "+1", " 1" are not ids), within a signed 64-bit column
    text = str(patient_id) if patient_id is not None else ""
    if not text.isascii() or not text.isdigit():
        raise NotFound()
    pid = int(text)
    if pid < 1 or pid > MAX_ID:
        raise NotFound()
    return pid


@contextmanager
def _storage_guard(s: Session, action: str, unique_email: bool = False) -> Iterator[None]:
    """
    Maps SQLAlchemy failures onto the front desk error kinds:
    - unique violation on patients.email -> DuplicateEmail
    - anything else -> StorageError (logged)
    """
    try:
        yield
    except IntegrityError as e:
        s.rollback()
        if unique_email:
            logger.info("%s: email already registered", action)
            raise DuplicateEmail() from e
        logger.exception("%s failed", action)
        raise StorageError(str(e.orig)) from e
    except SQLAlchemyError as e:
        s.rollback()
        logger.exception("%s failed", action)
        raise StorageError(str(getattr(e, "orig", None) or e)) from e


# =========================
# Registration (core use case)
# =========================
def register_patient(
    s: Session,
    transport: MailTransport,
    name,
    email,
    phone,
    upload: UploadThunk | None = None,
) -> RegistrationOutcome:
    """
    Use case: register a patient.
    - validate name/email/phone (before any file is written)
    - store the optional profile picture
    - insert the row and commit
    - send the confirmation email, outside the transaction
    """
    name, email, phone = _require_patient_fields(name, email, phone)
    profile_picture = upload() if upload else None

    with _storage_guard(s, "Patient registration", unique_email=True):
        p = Patient(name=name, email=email, phone=phone, profile_picture=profile_picture)
        s.add(p)
        s.flush()
        patient_id = p.id
        s.commit()

    logger.info("Patient %s registered (%s)", patient_id, email)
    email_sent = send_registration_email(transport, email, name)
    return RegistrationOutcome(id=patient_id, email_sent=email_sent)


# =========================
# Patient directory
# =========================
def list_patients(s: Session) -> list[dict]:
    with _storage_guard(s, "Patient list"):
        rows = s.scalars(select(Patient).order_by(Patient.created_at.desc(), Patient.id.desc()))
        return [p.to_dict() for p in rows]


def get_patient(s: Session, patient_id) -> dict:
    pid = _parse_id(patient_id)
    with _storage_guard(s, "Patient lookup"):
        p = s.get(Patient, pid)
    if p is None:
        raise NotFound()
    return p.to_dict()


def update_patient(
    s: Session,
    patient_id,
    name,
    email,
    phone,
    upload: UploadThunk | None = None,
) -> None:
    """
    name/email/phone are always overwritten.
    profile_picture is only touched when a new file came in: the statement
    itself changes, the column is never reset to NULL.
    A missing id is detected by the affected row count.
    """
    pid = _parse_id(patient_id)
    name, email, phone = _require_patient_fields(name, email, phone)
    profile_picture = upload() if upload else None

    values = {"name": name, "email": email, "phone": phone}
    if profile_picture:
        values["profile_picture"] = profile_picture

    stmt = update(Patient).where(Patient.id == pid).values(**values)
    with _storage_guard(s, "Patient update", unique_email=True):
        result = s.execute(stmt)
        if result.rowcount == 0:
            raise NotFound()
        s.commit()


def delete_patient(s: Session, patient_id) -> None:
    # the stored picture is left on disk
    pid = _parse_id(patient_id)
    stmt = delete(Patient).where(Patient.id == pid)
    with _storage_guard(s, "Patient delete"):
        result = s.execute(stmt)
        if result.rowcount == 0:
            raise NotFound()
        s.commit()


# =========================
# Contact form
# =========================
def submit_contact_message(s: Session, name, email, message) -> int:
    name, email, message = _clean(name), _clean(email), _clean(message)
    if not name or not email or not message:
        raise ValidationError("Name, email, and message are required")

    with _storage_guard(s, "Contact message"):
        m = ContactMessage(name=name, email=email, message=message)
        s.add(m)
        s.flush()
        message_id = m.id
        s.commit()

    logger.info("Contact message %s received from %s", message_id, email)
    return message_id


def list_contact_messages(s: Session) -> list[dict]:
    with _storage_guard(s, "Contact message list"):
        rows = s.scalars(
            select(ContactMessage).order_by(ContactMessage.created_at.desc(), ContactMessage.id.desc())
        )
        return [m.to_dict() for m in rows]
