"""
Integration test fixtures — a real state file, config file and log directory.

Run: pytest tests/integration/ -v -m integration
"""

from __future__ import annotations

import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: end-to-end through CLI, files and HTTP")


@pytest.fixture
def integration_project(tmp_path):
    """
    Create a project directory with planner.yaml pointing state and logs
    inside it. Returns the root Path.
    """
    root = tmp_path / "project"
    root.mkdir()
    (root / "planner.yaml").write_text(
        "server:\n"
        "  name: IntegrationPlanner\n"
        "  environment: dev\n"
        "state:\n"
        "  path: " + str(root / "PlannerServer.json") + "\n"
        "logging:\n"
        "  directory: " + str(root / ".planner" / "logs") + "\n",
        encoding="utf-8",
    )
    return root
