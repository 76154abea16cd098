"""
Planner Server — The access-controlled façade every caller goes through.

Owns the four state components (sessions, accounts, departments, templates)
and is their only writer. Each operation checks, in order:

    1. session  — token must be registered      → UnauthenticatedError
    2. role     — admin-only operations          → NotAdminError
    3. domain   — department / plan / template / editable lock

Concurrency: every operation runs under one re-entrant lock, so each call is
atomic with respect to the others and ``snapshot()`` never sees a torn state.
Two saves of the same editable plan still resolve as last-writer-wins.

Usage:
    server = PlannerServer()                      # first-run defaults
    server = PlannerServer.load("PlannerServer.json")
    token = server.log_in("user", "1")
    plan = server.get_document("2019", token)
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from planner.documents.models import Document
from planner.engine.accounts import Account, AccountDirectory
from planner.engine.bootstrap import default_state
from planner.engine.config import ServerConfig
from planner.engine.departments import DepartmentStore
from planner.engine.errors import (
    MissingYearError,
    NotAdminError,
    NotEditableError,
    PlannerSecurityError,
    UnknownUserError,
)
from planner.engine.logging import (
    log,
    log_access_denied,
    log_admin_action,
    log_login_attempt,
    log_plan_event,
    log_system_event,
)
from planner.engine.persistence import ServerState, load_state, save_state
from planner.engine.sessions import SessionRegistry
from planner.engine.templates import TemplateCatalog

logger = logging.getLogger("planner.engine.server")


class PlannerServer:
    """
    Session-authenticated, department-scoped plan store.

    Documents handed in are copied before storing; documents handed out are
    copies, so no caller ever holds a reference into server state.
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        state: Optional[ServerState] = None,
        state_path: Optional[str] = None,
    ):
        self._config = config or ServerConfig()
        self._state_path = Path(state_path or self._config.state.path)
        self._lock = threading.RLock()

        self._sessions = SessionRegistry(token_length=self._config.security.token_length)
        self._accounts = AccountDirectory()
        self._departments = DepartmentStore()
        self._templates = TemplateCatalog()

        self._apply_state(state if state is not None else default_state())

    # -------------------------------------------------------------------
    # Construction / persistence
    # -------------------------------------------------------------------

    @classmethod
    def from_state(
        cls,
        state: ServerState,
        config: Optional[ServerConfig] = None,
        state_path: Optional[str] = None,
    ) -> "PlannerServer":
        """Build a server over an already validated state; the state is copied."""
        return cls(config=config, state=state, state_path=state_path)

    @classmethod
    def load(cls, path: Optional[str] = None, config: Optional[ServerConfig] = None) -> "PlannerServer":
        """
        Build a server from a saved state file.

        Raises:
            PersistenceError if the file is absent or corrupt.
        """
        config = config or ServerConfig()
        state_path = path or config.state.path
        state = load_state(state_path)
        server = cls.from_state(state, config=config, state_path=str(state_path))
        log(log_system_event("state_loaded", details={"path": str(state_path)}))
        return server

    def save(self, path: Optional[str] = None) -> Path:
        """
        Write a consistent snapshot of all state to the state file.

        Raises:
            PersistenceError if the write fails.
        """
        target = Path(path) if path else self._state_path
        state = self.snapshot()
        saved = save_state(state, target)
        log(log_system_event("state_saved", details={"path": str(saved)}))
        return saved

    def snapshot(self) -> ServerState:
        """Deep copy of every owned map, taken under the server lock."""
        with self._lock:
            retired = [a for a in self._sessions.accounts() if not self._accounts.is_current(a)]
            return ServerState(
                accounts={a.username: a.model_copy(deep=True) for a in self._accounts.values()},
                retired_accounts={a.account_id: a.model_copy(deep=True) for a in retired},
                sessions=self._sessions.to_dict(),
                departments={
                    name: dept.model_copy(deep=True) for name, dept in self._departments.items()
                },
                templates={
                    name: doc.model_copy(deep=True) for name, doc in self._templates.items()
                },
            )

    def _apply_state(self, state: ServerState) -> None:
        for name, department in state.departments.items():
            self._departments.add(name, department.model_copy(deep=True))
        accounts = {
            account_id: account.model_copy(deep=True)
            for account_id, account in state.accounts_by_id().items()
        }
        for account in accounts.values():
            if account.account_id not in state.retired_accounts:
                self._accounts.add(account)
        for token, account_id in state.sessions.items():
            self._sessions.bind(token, accounts[account_id])
        for name, template in state.templates.items():
            self._templates.put(name, template.model_copy(deep=True))

    @property
    def config(self) -> ServerConfig:
        return self._config

    @property
    def state_path(self) -> Path:
        return self._state_path

    # -------------------------------------------------------------------
    # Precondition helpers
    # -------------------------------------------------------------------

    @contextmanager
    def _operation(self, operation: str, object_type: str, token: Optional[str] = None) -> Iterator[None]:
        """Hold the server lock; write refused calls to the security log."""
        with self._lock:
            try:
                yield
            except (PlannerSecurityError, NotEditableError) as e:
                log(log_access_denied(
                    operation=operation,
                    error_type=e.error_type,
                    object_type=object_type,
                    username=e.username,
                    token=token,
                    message=e.message,
                ))
                raise

    def _require_session(self, token: Optional[str], operation: str) -> Account:
        return self._sessions.resolve(token, operation=operation)

    def _require_admin(self, token: Optional[str], operation: str) -> Account:
        account = self._require_session(token, operation)
        if not account.is_admin:
            raise NotAdminError(
                "You're not an admin",
                username=account.username,
                operation=operation,
            )
        return account

    def require_admin(self, token: Optional[str], operation: str) -> str:
        """
        Check that token belongs to an administrator; return the username.

        For transport-level actions (such as an HTTP-triggered save) that sit
        outside the façade operations.
        """
        with self._operation(operation, "system", token):
            return self._require_admin(token, operation).username

    # -------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------

    def log_in(self, username: str, password: str) -> Optional[str]:
        """
        Start a session for username.

        Returns:
            A new session token, or None when the password does not match.

        Raises:
            UnknownUserError if username is not registered.
        """
        with self._lock:
            try:
                token = self._accounts.authenticate(username, password, self._sessions)
            except UnknownUserError:
                log(log_login_attempt(username, success=False, failure_reason="unknown_user"))
                logger.info(f"Login refused for unknown user '{username}'")
                raise

            if token is None:
                log(log_login_attempt(username, success=False, failure_reason="invalid_password"))
                logger.info(f"Login refused for '{username}': wrong password")
                return None

            log(log_login_attempt(username, success=True, token=token))
            logger.info(f"User '{username}' logged in")
            return token

    def get_document(self, year: str, token: Optional[str]) -> Document:
        """Return the caller's department plan for year."""
        with self._operation("get_document", "plans", token):
            account = self._require_session(token, "get_document")
            document = self._departments.get_document(account.department, year)
            return document.model_copy(deep=True)

    def get_template(self, name: str, token: Optional[str]) -> Document:
        with self._operation("get_template", "templates", token):
            self._require_session(token, "get_template")
            return self._templates.get(name).model_copy(deep=True)

    def save_document(self, document: Document, token: Optional[str]) -> Document:
        """
        Store document under the caller's department at document.year.

        The target department always comes from the caller's account, never
        from the request.

        Raises:
            UnauthenticatedError, MissingYearError, NotEditableError
        """
        with self._operation("save_document", "plans", token):
            account = self._require_session(token, "save_document")
            if document.year is None:
                raise MissingYearError(
                    "This plan needs a year!",
                    username=account.username,
                    department=account.department,
                    operation="save_document",
                )

            existing = self._departments.find_document(account.department, document.year)
            if existing is not None and not existing.editable:
                raise NotEditableError(
                    "Not allowed to edit this plan",
                    username=account.username,
                    department=account.department,
                    year=document.year,
                )

            stored = document.model_copy(deep=True)
            self._departments.put_document(account.department, stored.year, stored)
            log(log_plan_event("plan_saved", account.username, account.department, stored.year))
            logger.info(f"'{account.username}' saved plan {account.department}/{stored.year}")
            return stored.model_copy(deep=True)

    def add_user(
        self,
        username: str,
        password: str,
        department: str,
        is_admin: bool,
        token: Optional[str],
    ) -> str:
        """
        Create or replace an account and bind a fresh session token to it.

        Raises:
            UnauthenticatedError, NotAdminError, DepartmentNotFoundError
        """
        with self._operation("add_user", "accounts", token):
            caller = self._require_admin(token, "add_user")
            self._departments.ensure_exists(department)

            new_token = self._sessions.new_token()
            account = self._accounts.register(username, password, department, is_admin, new_token)
            self._sessions.bind(new_token, account)
            log(log_admin_action(
                "user_added", "accounts", caller.username, username,
                details={"department": department, "is_admin": is_admin},
            ))
            logger.info(f"'{caller.username}' added user '{username}' to '{department}'")
            return username

    def flag_document(self, department: str, year: str, editable: bool, token: Optional[str]) -> Document:
        """
        Lock (editable=False) or unlock a department's plan.

        Raises:
            UnauthenticatedError, NotAdminError, DepartmentNotFoundError, DocumentNotFoundError
        """
        with self._operation("flag_document", "plans", token):
            caller = self._require_admin(token, "flag_document")
            document = self._departments.get_document(department, year)
            document.editable = editable
            log(log_plan_event("plan_flagged", caller.username, department, year, editable=editable))
            logger.info(f"'{caller.username}' set {department}/{year} editable={editable}")
            return document.model_copy(deep=True)

    def add_department(self, name: str, token: Optional[str]) -> str:
        """Create an empty department, replacing any department of the same name."""
        with self._operation("add_department", "departments", token):
            caller = self._require_admin(token, "add_department")
            self._departments.create(name)
            log(log_admin_action("department_added", "departments", caller.username, name))
            return name

    def add_template(self, name: str, document: Document, token: Optional[str] = None) -> str:
        """
        Register a template. The stored copy always has year None.

        Open to any caller unless security.require_session_for_templates is set,
        in which case an admin session is required.
        """
        with self._operation("add_template", "templates", token):
            caller: Optional[Account] = None
            if self._config.security.require_session_for_templates:
                caller = self._require_admin(token, "add_template")

            if not document.is_template:
                logger.warning(f"Template '{name}' submitted with year {document.year!r}; year dropped")
            self._templates.put(name, document.as_template())
            log(log_admin_action(
                "template_added", "templates", caller.username if caller else None, name,
            ))
            return name

    # -------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------

    def summary(self) -> Dict[str, Any]:
        """Names and counts for display; never includes passwords or tokens."""
        with self._lock:
            return {
                "departments": {
                    name: sorted(dept.plans) for name, dept in self._departments.items()
                },
                "templates": self._templates.names(),
                "users": [
                    {
                        "username": a.username,
                        "department": a.department,
                        "is_admin": a.is_admin,
                    }
                    for a in sorted(self._accounts.values(), key=lambda a: a.username)
                ],
                "sessions": len(self._sessions),
            }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PlannerServer):
            return NotImplemented
        return self.snapshot() == other.snapshot()

    __hash__ = None  # type: ignore[assignment]
