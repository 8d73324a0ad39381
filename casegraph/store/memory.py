"""In-memory store implementations."""

import threading
from typing import Callable, List, Optional

from ..logging_config import get_logger
from ..models import InvestigationReport, mention_name
from .interfaces import GraphState, IGraphStateStore, IReportArchive, StateListener

logger = get_logger(__name__)


class InMemoryGraphStateStore(IGraphStateStore):
    """Graph state held in process memory."""

    def __init__(self, initial: Optional[GraphState] = None):
        self._state = initial.model_copy(deep=True) if initial else GraphState()
        self._listeners: List[StateListener] = []
        self._lock = threading.RLock()

    def get(self) -> GraphState:
        with self._lock:
            return self._state.model_copy(deep=True)

    def replace(self, state: GraphState) -> None:
        with self._lock:
            self._state = state.model_copy(deep=True)
            listeners = list(self._listeners)
            snapshot = self._state.model_copy(deep=True)

        for listener in listeners:
            listener(snapshot)

    def subscribe(self, callback: StateListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe


def rename_mentions(report: InvestigationReport, old_name: str, new_name: str) -> bool:
    """Rename entity mentions in place; legacy bare names stay bare."""
    changed = False
    renamed = []
    for mention in report.entities:
        if mention_name(mention) != old_name:
            renamed.append(mention)
            continue
        changed = True
        if isinstance(mention, str):
            renamed.append(new_name)
        else:
            renamed.append(mention.model_copy(update={"name": new_name}))
    if changed:
        report.entities = renamed
    return changed


class InMemoryReportArchive(IReportArchive):
    """Report archive held in process memory."""

    def __init__(self, reports: Optional[List[InvestigationReport]] = None):
        self._reports: List[InvestigationReport] = [
            r.model_copy(deep=True) for r in (reports or [])
        ]
        self._lock = threading.RLock()

    def list_reports(self) -> List[InvestigationReport]:
        with self._lock:
            return [r.model_copy(deep=True) for r in self._reports]

    def add_report(self, report: InvestigationReport) -> InvestigationReport:
        with self._lock:
            stored = report.model_copy(deep=True)
            self._reports.append(stored)
            return stored.model_copy(deep=True)

    def rename_entity(self, old_name: str, new_name: str) -> int:
        with self._lock:
            changed = sum(
                1 for report in self._reports
                if rename_mentions(report, old_name, new_name)
            )
        logger.info(f"Renamed '{old_name}' to '{new_name}' in {changed} reports")
        return changed
