"""Planner Template Catalog — name → year-less Document shared by all departments."""

from __future__ import annotations

from typing import Dict, Iterator, List, Tuple

from planner.documents.models import Document
from planner.engine.errors import TemplateNotFoundError


class TemplateCatalog:
    def __init__(self) -> None:
        self._templates: Dict[str, Document] = {}

    def get(self, name: str) -> Document:
        template = self._templates.get(name)
        if template is None:
            raise TemplateNotFoundError("Plan outline doesn't exist", template=name)
        return template

    def put(self, name: str, document: Document) -> None:
        self._templates[name] = document

    def names(self) -> List[str]:
        return sorted(self._templates)

    def items(self) -> Iterator[Tuple[str, Document]]:
        return iter(list(self._templates.items()))
