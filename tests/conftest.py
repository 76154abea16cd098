"""
Planner Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pytest

from planner.documents.models import Document
from planner.engine.bootstrap import ADMIN_TOKEN, USER_TOKEN
from planner.engine.config import ServerConfig
from planner.engine.server import PlannerServer


# ---------------------------------------------------------------------------
# Global state isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_globals():
    """Stop any event log queue a test left running."""
    import planner.engine.logging as log_mod

    log_mod.shutdown_logging()
    yield
    log_mod.shutdown_logging()


# ---------------------------------------------------------------------------
# Server fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def state_file(tmp_path):
    """Path for a state file inside the test's temp directory."""
    return tmp_path / "PlannerServer.json"


@pytest.fixture
def config(state_file):
    return ServerConfig(state={"path": str(state_file)})


@pytest.fixture
def server(config):
    """A server in its first-run state."""
    return PlannerServer(config=config)


@pytest.fixture
def admin_token():
    return ADMIN_TOKEN


@pytest.fixture
def user_token():
    return USER_TOKEN


@pytest.fixture
def make_plan():
    """Factory for plan documents."""

    def _make(year="2019", editable=True, **payload):
        return Document(year=year, editable=editable, payload=payload or {"name": f"Plan_{year}"})

    return _make


@pytest.fixture
def read_log():
    """Reader for today's JSONL event log of one object type and category."""

    def _read(log_dir, object_type, category):
        path = Path(log_dir) / object_type / category / f"{date.today().isoformat()}.jsonl"
        if not path.exists():
            return []
        with open(path, "r", encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]

    return _read
