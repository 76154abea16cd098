"""
Planner Document Models — Pydantic definitions for stored plans.

Document: a plan file. ``year`` keys it inside a department; a Document with
no year is a template and only lives in the template catalog.
Department: year → Document map for one organizational department.

The server never looks inside ``payload``; it is the client's plan tree.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class Document(BaseModel):
    """
    A stored plan or template.

    Value semantics: the store keeps its own copy on write and hands out copies
    on read, so callers always pass a full replacement.
    """

    year: Optional[str] = Field(default=None, description="Plan year; None for templates")
    editable: bool = Field(default=True, description="Cleared by an admin to lock the plan")
    payload: Dict[str, Any] = Field(default_factory=dict, description="Opaque plan tree")

    @property
    def is_template(self) -> bool:
        return self.year is None

    def as_template(self) -> "Document":
        """Return a copy with the year cleared."""
        return self.model_copy(update={"year": None}, deep=True)


class Department(BaseModel):
    """A department's plans keyed by year."""

    plans: Dict[str, Document] = Field(default_factory=dict)

    def contains_plan(self, year: str) -> bool:
        return year in self.plans
