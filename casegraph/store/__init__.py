"""Collaborator interfaces and their in-memory and JSON implementations."""

from .interfaces import GraphState, IGraphStateStore, IReportArchive
from .memory import InMemoryGraphStateStore, InMemoryReportArchive
from .json_store import JsonGraphStateStore, JsonReportArchive

__all__ = [
    "GraphState",
    "IGraphStateStore",
    "IReportArchive",
    "InMemoryGraphStateStore",
    "InMemoryReportArchive",
    "JsonGraphStateStore",
    "JsonReportArchive",
]
