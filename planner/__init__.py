"""
Planner Server — Session-authenticated store for department strategic plans.

Departments own one plan per year, built from named outline templates
(Centre, VMOSA). Every call goes through planner.engine.server.PlannerServer.
"""

__version__ = "1.0.0"
__all__ = ["engine", "documents", "cli"]
