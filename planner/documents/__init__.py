"""
Planner Documents — Plan file models and built-in outlines.

A Document wraps the client's plan tree with a year and an editable flag.
Templates are Documents without a year.
"""

from planner.documents.models import Department, Document
from planner.documents.outlines import OUTLINES, centre_outline, outline_document, vmosa_outline

__all__ = [
    "Document",
    "Department",
    "OUTLINES",
    "centre_outline",
    "vmosa_outline",
    "outline_document",
]
