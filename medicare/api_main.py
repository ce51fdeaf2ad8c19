from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from medicare import services
from medicare.config import Settings, configure_logging, load_settings
from medicare.db import build_engine, build_session_factory, get_session, init_db
from medicare.errors import FrontDeskError, NotFound, ValidationError
from medicare.mailer import MailTransport, SmtpMailer
from medicare.uploads import UploadStore

logger = logging.getLogger(__name__)

PROFILE_PICTURE_FIELD = "profilePicture"
STATIC_PAGES = ("about.html", "services.html", "contact.html")


# Schemas
# Every field is optional: a missing one is reported as a ValidationError (400)
# by the service layer, with the same message for JSON and form bodies.

class ContactIn(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str | None = None
    email: str | None = None
    message: str | None = None


class PatientIn(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str | None = None
    email: str | None = None
    phone: str | None = None


class MessageOut(BaseModel):
    message: str


class RegistrationOut(BaseModel):
    message: str
    id: int
    emailSent: bool


# Dependencies

def get_mailer(request: Request) -> MailTransport:
    return request.app.state.mailer


def get_upload_store(request: Request) -> UploadStore:
    return request.app.state.upload_store


@dataclass(frozen=True)
class PatientPayload:
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    # runs after the text fields have been validated
    upload: services.UploadThunk | None = None


async def patient_payload(
    request: Request,
    store: UploadStore = Depends(get_upload_store),
) -> AsyncIterator[PatientPayload]:
    """
    JSON body -> fields only, no file.
    Anything else -> form (multipart or urlencoded), with the optional
    `profilePicture` file, which is written only when the thunk is called.
    """
    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValidationError("Invalid JSON body") from None
        if not isinstance(body, dict):
            body = {}
        yield PatientPayload(body.get("name"), body.get("email"), body.get("phone"))
        return

    form = await request.form()
    try:
        text = {k: form.get(k) for k in ("name", "email", "phone")}
        text = {k: (v if isinstance(v, str) else None) for k, v in text.items()}

        picture = form.get(PROFILE_PICTURE_FIELD)
        accept = None
        # browsers send an empty part (no filename) when no file was chosen
        if isinstance(picture, UploadFile) and picture.filename:
            def accept() -> str:
                return store.accept(picture.file, picture.filename, picture.content_type, picture.size)

        yield PatientPayload(upload=accept, **text)
    finally:
        await form.close()


def registration_response(outcome: services.RegistrationOutcome) -> dict[str, Any]:
    return {
        "message": "Patient registered successfully",
        "id": outcome.id,
        "emailSent": outcome.email_sent,
    }


# API routes

router = APIRouter(prefix="/api")


@router.post("/contact", status_code=status.HTTP_201_CREATED, response_model=MessageOut)
def api_contact(payload: ContactIn, s: Session = Depends(get_session)) -> dict[str, Any]:
    services.submit_contact_message(s, payload.name, payload.email, payload.message)
    return {"message": "Message sent successfully!"}


@router.post("/patients/test", status_code=status.HTTP_201_CREATED, response_model=RegistrationOut)
def api_register_patient_json(
    payload: PatientIn,
    s: Session = Depends(get_session),
    mailer: MailTransport = Depends(get_mailer),
) -> dict[str, Any]:
    """JSON only registration, no file handling."""
    outcome = services.register_patient(s, mailer, payload.name, payload.email, payload.phone)
    return registration_response(outcome)


@router.post("/patients", status_code=status.HTTP_201_CREATED, response_model=RegistrationOut)
def api_register_patient(
    payload: PatientPayload = Depends(patient_payload),
    s: Session = Depends(get_session),
    mailer: MailTransport = Depends(get_mailer),
) -> dict[str, Any]:
    """Registration from JSON or from a form with an optional profile picture."""
    outcome = services.register_patient(s, mailer, payload.name, payload.email, payload.phone, payload.upload)
    return registration_response(outcome)


@router.get("/patients")
def api_list_patients(s: Session = Depends(get_session)) -> list[dict]:
    return services.list_patients(s)


@router.get("/patients/{patient_id}")
def api_get_patient(patient_id: str, s: Session = Depends(get_session)) -> dict:
    return services.get_patient(s, patient_id)


@router.put("/patients/{patient_id}", response_model=MessageOut)
def api_update_patient(
    patient_id: str,
    payload: PatientPayload = Depends(patient_payload),
    s: Session = Depends(get_session),
) -> dict[str, Any]:
    services.update_patient(s, patient_id, payload.name, payload.email, payload.phone, payload.upload)
    return {"message": "Patient updated successfully"}


@router.delete("/patients/{patient_id}", response_model=MessageOut)
def api_delete_patient(patient_id: str, s: Session = Depends(get_session)) -> dict[str, Any]:
    services.delete_patient(s, patient_id)
    return {"message": "Patient deleted successfully"}


# Registered last: unknown /api paths answer in JSON instead of reaching the public site mount
@router.api_route("/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"], include_in_schema=False)
def api_not_found(path: str) -> dict[str, Any]:
    raise NotFound("Not found")


# Error handlers

async def frontdesk_error_handler(request: Request, exc: FrontDeskError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    detail = errors[0].get("msg", "invalid value") if errors else "invalid value"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": f"Invalid request body: {detail}"})


# Static pages

def add_page_routes(app: FastAPI, settings: Settings) -> None:
    public_dir = settings.public_dir

    def page(name: str) -> FileResponse:
        path = public_dir / name
        if not path.is_file():
            raise HTTPException(status_code=404, detail="Page not found")
        return FileResponse(path)

    def page_route(name: str):
        def endpoint() -> FileResponse:
            return page(name)
        return endpoint

    app.add_api_route("/", page_route("index.html"), methods=["GET"], include_in_schema=False)
    for name in STATIC_PAGES:
        app.add_api_route(f"/{name}", page_route(name), methods=["GET"], include_in_schema=False)


# App factory

def create_app(settings: Settings | None = None, mailer: MailTransport | None = None) -> FastAPI:
    settings = settings or load_settings()

    engine = build_engine(settings.database_url)
    upload_store = UploadStore(settings.uploads_dir)
    upload_store.ensure_directory()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create tables (idempotent). A database that is down is logged, not fatal:
        # the server keeps running and requests fail with a StorageError.
        try:
            init_db(engine)
            logger.info("Patients table ready")
            logger.info("Contact messages table ready")
        except SQLAlchemyError:
            logger.exception("Database connection failed")
        yield
        engine.dispose()

    app = FastAPI(title="MediCare Hospital API", version="1.0.0", lifespan=lifespan)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.upload_store = upload_store
    app.state.mailer = mailer or SmtpMailer.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(FrontDeskError, frontdesk_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)

    app.include_router(router)
    add_page_routes(app, settings)

    app.mount("/uploads", StaticFiles(directory=upload_store.directory), name="uploads")
    if settings.public_dir.is_dir():
        # stylesheets, scripts, images of the public site
        app.mount("/", StaticFiles(directory=settings.public_dir), name="public")

    return app


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    if not settings.mail_configured:
        logger.warning("EMAIL_USER / EMAIL_PASS not set: confirmation emails will not be sent")
    logger.info("Server running on port %s", settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
