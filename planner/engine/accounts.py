"""
Planner Account Directory — username → credentials, role and department.

Credentials are compared as plain strings. Accounts are created or replaced
by ``register`` and only ever mutated by a successful login, which stores the
newly minted session token on the account.

Every account carries an ``account_id`` that outlives replacement: a replaced
account drops out of the directory but stays reachable through the session
tokens bound to it.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from planner.engine.errors import UnknownUserError
from planner.engine.sessions import SessionRegistry

logger = logging.getLogger("planner.engine.accounts")


def new_account_id() -> str:
    return uuid4().hex


class Account(BaseModel):
    """A login identity bound to one department."""

    account_id: str = Field(default_factory=new_account_id)
    username: str
    password: str = Field(repr=False)
    session_token: str = Field(repr=False)
    department: str = Field(description="Name of the department the account belongs to")
    is_admin: bool = False

    def test_credentials(self, password: str) -> Optional[str]:
        """Return the current session token if password matches, else None."""
        if self.password == password:
            return self.session_token
        return None


class AccountDirectory:
    """Holds the current Account for every username."""

    def __init__(self) -> None:
        self._accounts: Dict[str, Account] = {}

    def register(
        self,
        username: str,
        password: str,
        department: str,
        is_admin: bool,
        session_token: str,
    ) -> Account:
        """Insert a new account for username, replacing the current one if any."""
        if username in self._accounts:
            logger.warning(f"Account '{username}' replaced; its existing sessions keep the old account")
        account = Account(
            username=username,
            password=password,
            session_token=session_token,
            department=department,
            is_admin=is_admin,
        )
        self._accounts[username] = account
        return account

    def add(self, account: Account) -> None:
        self._accounts[account.username] = account

    def get(self, username: str) -> Account:
        """
        Raises:
            UnknownUserError if username is not registered.
        """
        account = self._accounts.get(username)
        if account is None:
            raise UnknownUserError(
                "Invalid username and/or password",
                username=username,
                operation="log_in",
            )
        return account

    def is_current(self, account: Account) -> bool:
        """True if account is the one registered under its username."""
        return self._accounts.get(account.username) is account

    def authenticate(self, username: str, password: str, sessions: SessionRegistry) -> Optional[str]:
        """
        Check credentials and start a new session.

        Returns:
            The new session token, or None when the password does not match.

        Raises:
            UnknownUserError if username is not registered.
        """
        account = self.get(username)
        if account.test_credentials(password) is None:
            return None
        token = sessions.issue(account)
        account.session_token = token
        return token

    def values(self) -> Iterator[Account]:
        return iter(list(self._accounts.values()))
