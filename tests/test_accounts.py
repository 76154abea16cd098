"""Unit tests for planner.engine.accounts — credential checks and registration."""

import pytest

from planner.engine.accounts import Account, AccountDirectory
from planner.engine.errors import UnknownUserError
from planner.engine.sessions import SessionRegistry


@pytest.fixture
def directory():
    d = AccountDirectory()
    d.register("alice", "secret", "default", False, "tok-a")
    return d


class TestAccount:
    def test_test_credentials(self):
        account = Account(username="a", password="pw", session_token="t", department="d")
        assert account.test_credentials("pw") == "t"
        assert account.test_credentials("PW") is None

    def test_repr_hides_secrets(self):
        account = Account(username="a", password="hunter2", session_token="tok123", department="d")
        r = repr(account)
        assert "hunter2" not in r
        assert "tok123" not in r


class TestAccountDirectory:
    def test_get_unknown_raises(self, directory):
        with pytest.raises(UnknownUserError) as exc_info:
            directory.get("mallory")
        assert exc_info.value.username == "mallory"

    def test_authenticate_success_issues_new_token(self, directory):
        sessions = SessionRegistry()
        token = directory.authenticate("alice", "secret", sessions)
        assert token is not None
        assert sessions.resolve(token) is directory.get("alice")
        assert directory.get("alice").session_token == token

    def test_authenticate_wrong_password(self, directory):
        sessions = SessionRegistry()
        assert directory.authenticate("alice", "wrong", sessions) is None
        assert len(sessions) == 0
        assert directory.get("alice").session_token == "tok-a"

    def test_authenticate_unknown_user(self, directory):
        with pytest.raises(UnknownUserError):
            directory.authenticate("mallory", "x", SessionRegistry())

    def test_register_overwrites(self, directory):
        directory.register("alice", "new", "eng", True, "tok-b")
        account = directory.get("alice")
        assert account.password == "new"
        assert account.department == "eng"
        assert account.is_admin is True
        assert [a.username for a in directory.values()] == ["alice"]

    def test_replaced_account_is_not_current(self, directory):
        old = directory.get("alice")
        new = directory.register("alice", "new", "default", False, "tok-b")
        assert old.account_id != new.account_id
        assert not directory.is_current(old)
        assert directory.is_current(new)

    def test_account_ids_are_unique(self):
        a = Account(username="a", password="pw", session_token="t", department="d")
        b = Account(username="a", password="pw", session_token="t", department="d")
        assert a.account_id != b.account_id
