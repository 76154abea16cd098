"""
Built-in plan outlines.

Each outline is a tree of sections; every node holds a name, free text and
its children. The first run seeds the template catalog with these skeletons.

    Centre: Mission → Goal → Learning Objective → Assessment Process → Results
    VMOSA:  Vision → Mission → Objective → Strategy → Action Plan → Assessment
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List

from planner.documents.models import Document

CENTRE_SECTIONS: List[str] = [
    "Mission",
    "Goal",
    "Learning Objective",
    "Assessment Process",
    "Results",
]

VMOSA_SECTIONS: List[str] = [
    "Vision",
    "Mission",
    "Objective",
    "Strategy",
    "Action Plan",
    "Assessment",
]


def _chain(sections: List[str]) -> Dict[str, Any]:
    """Build a single-branch section tree, outermost section first."""
    node: Dict[str, Any] = {}
    for name in reversed(sections):
        node = {"name": name, "data": "", "children": [node] if node else []}
    return node


def centre_outline(name: str = "") -> Dict[str, Any]:
    return {"name": name, "outline": "Centre", "root": _chain(CENTRE_SECTIONS)}


def vmosa_outline(name: str = "") -> Dict[str, Any]:
    return {"name": name, "outline": "VMOSA", "root": _chain(VMOSA_SECTIONS)}


OUTLINES: Dict[str, Callable[[str], Dict[str, Any]]] = {
    "Centre": centre_outline,
    "VMOSA": vmosa_outline,
}


def outline_document(outline: str, name: str = "", year: str | None = None, editable: bool = True) -> Document:
    """
    Build a Document from a built-in outline.

    Raises:
        KeyError if the outline name is unknown.
    """
    builder = OUTLINES[outline]
    return Document(year=year, editable=editable, payload=builder(name))
