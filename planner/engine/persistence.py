"""
Planner Persistence — Whole-server state snapshot to and from one JSON file.

Layout (format_version 1):
    {
      "format_version":   1,
      "accounts":         {username: Account},
      "retired_accounts": {account_id: Account},
      "sessions":         {token: account_id},
      "departments":      {name: {"plans": {year: Document}}},
      "templates":        {name: Document}
    }

``accounts`` holds the current account per username. ``retired_accounts``
holds accounts replaced through add_user that session tokens still point at.

Writes go to a sibling temp file first and are moved into place with
``os.replace``, so readers only ever see a complete file.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, Set
from uuid import uuid4

from pydantic import BaseModel, Field, ValidationError, model_validator

from planner.documents.models import Department, Document
from planner.engine.accounts import Account
from planner.engine.errors import PersistenceError

logger = logging.getLogger("planner.engine.persistence")

FORMAT_VERSION = 1


class ServerState(BaseModel):
    """Everything the server owns, as plain data."""

    format_version: int = FORMAT_VERSION
    accounts: Dict[str, Account] = Field(default_factory=dict)
    retired_accounts: Dict[str, Account] = Field(default_factory=dict)
    sessions: Dict[str, str] = Field(default_factory=dict)
    departments: Dict[str, Department] = Field(default_factory=dict)
    templates: Dict[str, Document] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_references(self) -> "ServerState":
        if self.format_version != FORMAT_VERSION:
            raise ValueError(f"unsupported format_version {self.format_version}")

        account_ids: Set[str] = set()
        for username, account in self.accounts.items():
            if account.username != username:
                raise ValueError(f"account key '{username}' does not match '{account.username}'")
            account_ids.add(account.account_id)
        for account_id, account in self.retired_accounts.items():
            if account.account_id != account_id:
                raise ValueError(f"retired account key '{account_id}' does not match '{account.account_id}'")
            account_ids.add(account_id)
        if len(account_ids) != len(self.accounts) + len(self.retired_accounts):
            raise ValueError("account ids are not unique")

        for account in [*self.accounts.values(), *self.retired_accounts.values()]:
            if account.department not in self.departments:
                raise ValueError(
                    f"account '{account.username}' references unknown department '{account.department}'"
                )
        for token, account_id in self.sessions.items():
            if account_id not in account_ids:
                raise ValueError(f"session bound to unknown account id '{account_id}'")
        for name, department in self.departments.items():
            for year, plan in department.plans.items():
                if plan.year != year:
                    raise ValueError(f"plan '{name}/{year}' carries year {plan.year!r}")
        for name, template in self.templates.items():
            if not template.is_template:
                raise ValueError(f"template '{name}' has a year")
        return self

    def accounts_by_id(self) -> Dict[str, Account]:
        """Current and retired accounts keyed by account_id."""
        merged = {a.account_id: a for a in self.accounts.values()}
        merged.update(self.retired_accounts)
        return merged


def dump_state(state: ServerState) -> str:
    # Stable key order so saved files diff cleanly
    return json.dumps(state.model_dump(mode="json"), indent=2, sort_keys=True, ensure_ascii=False)


def save_state(state: ServerState, path: str | Path) -> Path:
    """
    Write state to path atomically.

    Raises:
        PersistenceError if the file cannot be written.
    """
    target = Path(path)
    temp = target.with_name(f"{target.name}.tmp-{uuid4().hex[:8]}")
    payload = dump_state(state)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(temp, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp, target)
    except OSError as e:
        if temp.exists():
            temp.unlink()
        raise PersistenceError(f"Failed to save server state to {target}: {e}", path=str(target)) from e

    logger.info(
        f"Saved server state to {target} "
        f"({len(state.accounts)} accounts, {len(state.departments)} departments, "
        f"{len(state.templates)} templates)"
    )
    return target


def load_state(path: str | Path) -> ServerState:
    """
    Read and validate the state file.

    Raises:
        PersistenceError if the file is absent, unreadable, not UTF-8, not JSON, or
        does not match the ServerState schema.
    """
    source = Path(path)
    if not source.exists():
        raise PersistenceError(f"State file not found: {source}", path=str(source))

    try:
        with open(source, "r", encoding="utf-8") as f:
            raw = f.read()
    except OSError as e:
        raise PersistenceError(f"Cannot read state file {source}: {e}", path=str(source)) from e
    except UnicodeDecodeError as e:
        raise PersistenceError(f"State file {source} is not valid UTF-8: {e}", path=str(source)) from e

    try:
        state = ServerState.model_validate_json(raw)
    except ValidationError as e:
        raise PersistenceError(f"State file {source} is corrupt: {e}", path=str(source)) from e

    logger.info(f"Loaded server state from {source}")
    return state
