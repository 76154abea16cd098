"""
Planner Department Store — department name → year → Document.

``put_document`` is unconditional; the editable-lock check belongs to the
caller (PlannerServer.save_document).
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, Tuple

from planner.documents.models import Department, Document
from planner.engine.errors import DepartmentNotFoundError, DocumentNotFoundError

logger = logging.getLogger("planner.engine.departments")


class DepartmentStore:
    def __init__(self) -> None:
        self._departments: Dict[str, Department] = {}

    def create(self, name: str) -> Department:
        """Insert an empty department. An existing one of the same name is replaced."""
        if name in self._departments:
            previous = self._departments[name]
            logger.warning(
                f"Department '{name}' replaced; {len(previous.plans)} plan(s) discarded"
            )
        department = Department()
        self._departments[name] = department
        return department

    def add(self, name: str, department: Department) -> None:
        self._departments[name] = department

    def ensure_exists(self, name: str) -> Department:
        department = self._departments.get(name)
        if department is None:
            raise DepartmentNotFoundError("Department doesn't exist", department=name)
        return department

    def get_document(self, department: str, year: str) -> Document:
        """
        Return the stored Document itself (not a copy).

        Raises:
            DepartmentNotFoundError, DocumentNotFoundError
        """
        dept = self.ensure_exists(department)
        if not dept.contains_plan(year):
            raise DocumentNotFoundError(
                "Plan doesn't exist within this department",
                department=department,
                year=year,
            )
        return dept.plans[year]

    def find_document(self, department: str, year: str) -> Document | None:
        dept = self.ensure_exists(department)
        return dept.plans.get(year)

    def put_document(self, department: str, year: str, document: Document) -> None:
        dept = self.ensure_exists(department)
        dept.plans[year] = document

    def items(self) -> Iterator[Tuple[str, Department]]:
        return iter(list(self._departments.items()))
