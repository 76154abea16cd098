"""
Planner HTTP API — FastAPI transport in front of PlannerServer.

The session token travels in the ``X-Session-Token`` header. Endpoints are
plain ``def`` handlers: FastAPI runs them in its thread pool and the server
serialises them internally.

Run:
    planner run --state PlannerServer.json

Error mapping (body is PlannerError.to_dict()):
    401  UnauthenticatedError, UnknownUserError, wrong password
    403  NotAdminError
    404  DepartmentNotFoundError, DocumentNotFoundError, TemplateNotFoundError
    409  NotEditableError
    422  MissingYearError
    500  PersistenceError
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from planner import __version__
from planner.documents.models import Document
from planner.engine.errors import (
    MissingYearError,
    NotAdminError,
    NotEditableError,
    PersistenceError,
    PlannerError,
    PlannerNotFoundError,
    PlannerSecurityError,
    UnknownUserError,
)
from planner.engine.server import PlannerServer

logger = logging.getLogger("planner.engine.api")

INVALID_LOGIN_MESSAGE = "Invalid username and/or password"

# Most specific class first
ERROR_STATUS = [
    (NotAdminError, 403),
    (PlannerSecurityError, 401),
    (PlannerNotFoundError, 404),
    (NotEditableError, 409),
    (MissingYearError, 422),
    (PersistenceError, 500),
]


def status_for(error: PlannerError) -> int:
    for error_cls, status in ERROR_STATUS:
        if isinstance(error, error_cls):
            return status
    return 400


# ---------------------------------------------------------------------------
# Request / Response Models
# ---------------------------------------------------------------------------

class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    token: str


class NewUserRequest(BaseModel):
    username: str
    password: str
    department: str
    is_admin: bool = False


class NewDepartmentRequest(BaseModel):
    name: str = Field(min_length=1)


class FlagRequest(BaseModel):
    editable: bool


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float
    departments: int
    templates: int


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def session_token(x_session_token: Optional[str] = Header(None)) -> Optional[str]:
    """Pass the header through; PlannerServer decides whether it is valid."""
    return x_session_token


def create_app(server: PlannerServer) -> FastAPI:
    app = FastAPI(
        title="Planner Server",
        description="Department plan store with session login",
        version=__version__,
    )
    app.state.planner = server
    started = datetime.now(timezone.utc)

    @app.exception_handler(PlannerError)
    async def planner_error_handler(request: Request, exc: PlannerError) -> JSONResponse:
        status = status_for(exc)
        if status >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
        body = exc.to_dict()
        if isinstance(exc, UnknownUserError):
            # Unknown user and wrong password must look the same to clients
            body["error_type"] = "InvalidCredentials"
            body["username"] = None
        return JSONResponse(status_code=status, content=body)

    @app.get("/health", response_model=HealthResponse)
    def health_check():
        """Public health check, no session required."""
        summary = server.summary()
        uptime = (datetime.now(timezone.utc) - started).total_seconds()
        return HealthResponse(
            status="healthy",
            version=__version__,
            uptime_seconds=round(uptime, 2),
            departments=len(summary["departments"]),
            templates=len(summary["templates"]),
        )

    @app.post("/api/v1/login", response_model=LoginResponse)
    def log_in(payload: LoginRequest):
        token = server.log_in(payload.username, payload.password)
        if token is None:
            return JSONResponse(
                status_code=401,
                content={"error_type": "InvalidCredentials", "message": INVALID_LOGIN_MESSAGE},
            )
        return LoginResponse(token=token)

    @app.get("/api/v1/plans/{year}", response_model=Document)
    def get_plan(year: str, token: Optional[str] = Depends(session_token)):
        return server.get_document(year, token)

    @app.put("/api/v1/plans", response_model=Document)
    def save_plan(document: Document, token: Optional[str] = Depends(session_token)):
        return server.save_document(document, token)

    @app.get("/api/v1/templates/{name}", response_model=Document)
    def get_template(name: str, token: Optional[str] = Depends(session_token)):
        return server.get_template(name, token)

    @app.put("/api/v1/templates/{name}")
    def add_template(name: str, document: Document, token: Optional[str] = Depends(session_token)) -> Dict[str, Any]:
        return {"template": server.add_template(name, document, token)}

    @app.post("/api/v1/users", status_code=201)
    def add_user(payload: NewUserRequest, token: Optional[str] = Depends(session_token)) -> Dict[str, Any]:
        username = server.add_user(
            payload.username,
            payload.password,
            payload.department,
            payload.is_admin,
            token,
        )
        return {"username": username, "department": payload.department, "is_admin": payload.is_admin}

    @app.post("/api/v1/departments", status_code=201)
    def add_department(payload: NewDepartmentRequest, token: Optional[str] = Depends(session_token)) -> Dict[str, Any]:
        return {"department": server.add_department(payload.name, token)}

    @app.patch("/api/v1/departments/{department}/plans/{year}", response_model=Document)
    def flag_plan(
        department: str,
        year: str,
        payload: FlagRequest,
        token: Optional[str] = Depends(session_token),
    ):
        return server.flag_document(department, year, payload.editable, token)

    @app.post("/api/v1/save")
    def save_state(token: Optional[str] = Depends(session_token)) -> Dict[str, Any]:
        # Saving is a process-level action; over HTTP only admins may trigger it
        server.require_admin(token, "save")
        path = server.save()
        return {"saved": True, "path": str(path)}

    return app
