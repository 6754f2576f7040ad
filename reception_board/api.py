"""FastAPI application exposing the reception board REST API."""

from __future__ import annotations

import logging
import secrets
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, Response, UploadFile, status
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ConfigDict, Field
from starlette.middleware.sessions import SessionMiddleware

from .config import Settings, load_settings
from .errors import NotFoundError, PersistenceError, ValidationError
from .persistence import StateFile
from .service import ReceptionService
from .store import StateStore
from .uploads import URL_PREFIX, UploadStorage

logger = logging.getLogger(__name__)

SESSION_COOKIE = "reception.sid"
SESSION_MAX_AGE = 60 * 60 * 24 * 7


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class StatusUpdate(BaseModel):
    isCheckedIn: bool = False


class AbsenceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    employeeId: str = ""
    start: str = Field("", alias="from")
    end: str = Field("", alias="to")
    reason: Optional[str] = None


def _uploaded(file: Optional[UploadFile]) -> Optional[UploadFile]:
    # browsers submit an empty part when no file was picked
    if file is None or not file.filename:
        return None
    return file


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    store = StateStore(StateFile(settings.state_path))
    uploads = UploadStorage(settings.uploads_dir, settings.max_upload_bytes)
    service = ReceptionService(store, uploads)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        await store.init()
        try:
            yield
        finally:
            await store.aclose()

    app = FastAPI(title="Reception Board API", version="1.0.0", lifespan=lifespan)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=SESSION_COOKIE,
        max_age=SESSION_MAX_AGE,
        same_site="lax",
    )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(_: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def not_found_handler(_: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(_: Request, exc: PersistenceError) -> JSONResponse:
        logger.error("State write failed: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Could not save changes"},
        )

    def get_service() -> ReceptionService:
        return service

    def require_admin(request: Request) -> None:
        if not request.session.get("user"):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not logged in")

    @app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    # region Session
    @app.get("/api/session")
    async def get_session(request: Request) -> dict[str, bool]:
        return {"authenticated": bool(request.session.get("user"))}

    @app.post("/api/login")
    async def login(payload: LoginRequest, request: Request) -> dict[str, bool]:
        username_ok = secrets.compare_digest(payload.username.encode(), settings.admin_username.encode())
        password_ok = secrets.compare_digest(payload.password.encode(), settings.admin_password.encode())
        if not (username_ok and password_ok):
            logger.warning("Rejected login for %r", payload.username)
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")
        request.session["user"] = {"username": payload.username}
        return {"success": True}

    @app.post("/api/logout")
    async def logout(request: Request) -> dict[str, bool]:
        request.session.clear()
        return {"success": True}

    # endregion

    @app.get("/api/state")
    async def get_state(svc: ReceptionService = Depends(get_service)) -> Dict[str, Any]:
        return svc.get_state().to_dict()

    # region Branding
    @app.post("/api/branding/logo", dependencies=[Depends(require_admin)])
    async def upload_logo(
        logo: Optional[UploadFile] = File(None),
        svc: ReceptionService = Depends(get_service),
    ) -> dict[str, str]:
        logo = _uploaded(logo)
        if logo is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file received")
        return {"logo": await svc.replace_logo(logo)}

    @app.delete("/api/branding/logo", dependencies=[Depends(require_admin)])
    async def delete_logo(svc: ReceptionService = Depends(get_service)) -> dict[str, bool]:
        await svc.clear_logo()
        return {"success": True}

    # endregion

    # region Employees
    @app.post("/api/employees", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
    async def create_employee(
        name: str = Form(""),
        department: str = Form(""),
        role: str = Form(""),
        photo: Optional[UploadFile] = File(None),
        svc: ReceptionService = Depends(get_service),
    ) -> Dict[str, Any]:
        employee = await svc.create_employee(name, department, role, _uploaded(photo))
        logger.info("Created employee %s", employee.id)
        return {"employee": employee.to_dict()}

    @app.put("/api/employees/{employee_id}", dependencies=[Depends(require_admin)])
    async def update_employee(
        employee_id: str,
        name: str = Form(""),
        department: str = Form(""),
        role: str = Form(""),
        removePhoto: str = Form("false"),
        photo: Optional[UploadFile] = File(None),
        svc: ReceptionService = Depends(get_service),
    ) -> Dict[str, Any]:
        employee = await svc.update_employee(
            employee_id,
            name,
            department,
            role,
            photo=_uploaded(photo),
            remove_photo=removePhoto == "true",
        )
        return {"employee": employee.to_dict()}

    @app.delete("/api/employees/{employee_id}", dependencies=[Depends(require_admin)])
    async def delete_employee(employee_id: str, svc: ReceptionService = Depends(get_service)) -> Response:
        removed = await svc.delete_employee(employee_id)
        logger.info("Removed employee %s", removed.id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.patch("/api/employees/{employee_id}/status")
    async def set_employee_status(
        employee_id: str,
        payload: StatusUpdate,
        svc: ReceptionService = Depends(get_service),
    ) -> Dict[str, Any]:
        employee = await svc.set_status(employee_id, payload.isCheckedIn)
        return {"employee": employee.to_dict()}

    # endregion

    # region Absences
    @app.post("/api/absences", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
    async def create_absence(payload: AbsenceRequest, svc: ReceptionService = Depends(get_service)) -> Dict[str, Any]:
        if not (payload.employeeId and payload.start and payload.end):
            raise ValidationError("Employee, start date and end date are required")
        absence = await svc.add_absence(payload.employeeId, payload.start, payload.end, payload.reason)
        return {"absence": absence.to_dict()}

    @app.delete("/api/absences/{absence_id}", dependencies=[Depends(require_admin)])
    async def delete_absence(absence_id: str, svc: ReceptionService = Depends(get_service)) -> Response:
        await svc.remove_absence(absence_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    # endregion

    app.mount(URL_PREFIX, StaticFiles(directory=settings.uploads_dir, check_dir=False), name="uploads")
    if settings.static_dir and settings.static_dir.is_dir():
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")

    return app


app = create_app()


__all__ = ["app", "create_app"]
