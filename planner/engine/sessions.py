"""
Planner Session Registry — Mints and resolves opaque session tokens.

A token is 25 characters drawn uniformly from the 90 printable ASCII code
points '!' (0x21) through 'z' (0x7A). Each token is bound to the Account
object that logged in, not to its username: when an admin later replaces an
account of the same name, tokens issued earlier keep resolving to the old
account with its old role and department.

Tokens never expire; logging in again mints a new token without removing the
old one, so both stay resolvable.

Not thread-safe on its own: PlannerServer serialises every call.
"""

from __future__ import annotations

import logging
import secrets
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Tuple

from planner.engine.errors import UnauthenticatedError

if TYPE_CHECKING:
    from planner.engine.accounts import Account

logger = logging.getLogger("planner.engine.sessions")

TOKEN_LENGTH = 25
TOKEN_ALPHABET = "".join(chr(c) for c in range(0x21, 0x7A + 1))


def generate_token(length: int = TOKEN_LENGTH) -> str:
    """Sample ``length`` characters uniformly from TOKEN_ALPHABET."""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


class SessionRegistry:
    """token → Account bindings."""

    def __init__(self, token_length: int = TOKEN_LENGTH):
        self._token_length = token_length
        self._bindings: Dict[str, Account] = {}

    def new_token(self) -> str:
        """Mint a token not yet registered. The caller binds it."""
        token = generate_token(self._token_length)
        while token in self._bindings:
            logger.warning("Session token collision, regenerating")
            token = generate_token(self._token_length)
        return token

    def issue(self, account: Account) -> str:
        """Mint a unique token and bind it to account."""
        token = self.new_token()
        self._bindings[token] = account
        return token

    def bind(self, token: str, account: Account) -> None:
        """Bind a fixed token (bootstrap accounts, state load, new accounts)."""
        self._bindings[token] = account

    def resolve(self, token: Optional[str], operation: str = "resolve_session") -> Account:
        """
        Return the Account bound to token.

        Raises:
            UnauthenticatedError if the token is missing or unknown.
        """
        if not token or token not in self._bindings:
            raise UnauthenticatedError("Need to log in", operation=operation)
        return self._bindings[token]

    def items(self) -> Iterator[Tuple[str, Account]]:
        return iter(list(self._bindings.items()))

    def accounts(self) -> List[Account]:
        """Every distinct Account with at least one session, in binding order."""
        seen: Dict[int, Account] = {}
        for account in self._bindings.values():
            seen.setdefault(id(account), account)
        return list(seen.values())

    def to_dict(self) -> Dict[str, str]:
        """token → account_id, the persisted form."""
        return {token: account.account_id for token, account in self._bindings.items()}

    def __len__(self) -> int:
        return len(self._bindings)
