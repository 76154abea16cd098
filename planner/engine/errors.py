"""
Planner Error Hierarchy — Structured exceptions for every caller-visible failure.

All errors carry keyword context and serialize to JSON so the HTTP layer and
the security log can emit them without extra translation.

Hierarchy:
    PlannerError
    ├── PlannerSecurityError         — Session / role / login failures
    │   ├── UnauthenticatedError     — Missing or unknown session token
    │   ├── NotAdminError            — Admin-only operation, non-admin caller
    │   └── UnknownUserError         — Login for a username that does not exist
    ├── PlannerNotFoundError         — Lookup failed
    │   ├── DepartmentNotFoundError
    │   ├── DocumentNotFoundError
    │   └── TemplateNotFoundError
    ├── PlannerValidationError       — Request rejected by a domain rule
    │   ├── MissingYearError         — Plan saved without a year
    │   └── NotEditableError         — Plan is locked against edits
    ├── PersistenceError             — State file could not be read or written
    └── ConfigError                  — planner.yaml is invalid
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class PlannerError(Exception):
    """
    Base error for all planner server failures.
    All context is kept as keyword arguments and serializable to JSON.
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.error_type: str = self.__class__.__name__
        self.username: Optional[str] = context.get("username")
        self.department: Optional[str] = context.get("department")
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict for logging and HTTP bodies."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "username": self.username,
            "department": self.department,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("username", "department")
            },
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.username:
            parts.append(f"username={self.username}")
        if self.department:
            parts.append(f"department={self.department}")
        return " | ".join(parts)


class PlannerSecurityError(PlannerError):
    """
    Access denied. Logged to the security log files.
    Includes the operation that was refused.
    """

    def __init__(self, message: str, **context: Any):
        self.operation: Optional[str] = context.get("operation")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["operation"] = self.operation
        return d


class UnauthenticatedError(PlannerSecurityError):
    """No valid session token was presented."""
    pass


class NotAdminError(PlannerSecurityError):
    """The session is valid but the account is not an administrator."""
    pass


class UnknownUserError(PlannerSecurityError):
    """Login attempted for a username that is not registered."""
    pass


class PlannerNotFoundError(PlannerError):
    """A department, plan or template lookup failed."""
    pass


class DepartmentNotFoundError(PlannerNotFoundError):
    pass


class DocumentNotFoundError(PlannerNotFoundError):
    """No plan is stored for the requested year."""

    def __init__(self, message: str, **context: Any):
        self.year: Optional[str] = context.get("year")
        super().__init__(message, **context)


class TemplateNotFoundError(PlannerNotFoundError):
    def __init__(self, message: str, **context: Any):
        self.template: Optional[str] = context.get("template")
        super().__init__(message, **context)


class PlannerValidationError(PlannerError):
    """The request is well-formed but a domain rule refuses it."""
    pass


class MissingYearError(PlannerValidationError):
    pass


class NotEditableError(PlannerValidationError):
    """The stored plan has its editable flag cleared by an admin."""

    def __init__(self, message: str, **context: Any):
        self.year: Optional[str] = context.get("year")
        super().__init__(message, **context)


class PersistenceError(PlannerError):
    """
    The state file could not be loaded or saved.
    Carries the file path; the original exception is chained as __cause__.
    """

    def __init__(self, message: str, **context: Any):
        self.path: Optional[str] = context.get("path")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["path"] = self.path
        return d


class ConfigError(PlannerError):
    """Configuration error — invalid planner.yaml."""
    pass
