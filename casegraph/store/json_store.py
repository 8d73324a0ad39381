"""JSON file persistence for graph state and report archives."""

import json
from pathlib import Path
from typing import List, Optional, Union

import pydantic
from pydantic import TypeAdapter

from ..errors import ErrorHandler, StoreError
from ..logging_config import get_logger, log_event
from ..models import InvestigationReport
from .interfaces import GraphState
from .memory import InMemoryGraphStateStore, InMemoryReportArchive

logger = get_logger(__name__)

_reports_adapter = TypeAdapter(List[InvestigationReport])


def _report(error: StoreError, strict: bool, path: Path, kind: str) -> None:
    """Log a store failure; raise it when the store is strict."""
    handler = ErrorHandler(context={"path": str(path), "kind": kind})
    handler.handle_error(error, critical=strict)


def _read_json(path: Path, strict: bool, kind: str):
    """Read a JSON document; None when missing or unreadable (non-strict)."""
    if not path.exists():
        return None

    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
        store_error = StoreError(
            f"Could not read {kind} file",
            path=str(path),
            context={"original_error": type(e).__name__},
        )
        _report(store_error, strict, path, kind)
        return None


def _write_json(path: Path, payload, strict: bool, kind: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        tmp_path.replace(path)
    except OSError as e:
        store_error = StoreError(
            f"Could not write {kind} file",
            path=str(path),
            context={"original_error": type(e).__name__},
        )
        _report(store_error, strict, path, kind)
        return

    log_event(__name__, f"{kind}_saved", path=str(path))


class JsonGraphStateStore(InMemoryGraphStateStore):
    """Graph state persisted to a single JSON file after every replace."""

    def __init__(self, path: Union[str, Path], strict: bool = False):
        """Load state from ``path``.

        Args:
            path: JSON file; a missing file starts from empty state
            strict: Raise StoreError on unreadable or malformed files
                instead of logging and starting empty
        """
        self.path = Path(path)
        self.strict = strict
        super().__init__(self._load())

    def _load(self) -> Optional[GraphState]:
        data = _read_json(self.path, self.strict, "graph_state")
        if data is None:
            return None

        try:
            return GraphState.model_validate(data)
        except pydantic.ValidationError as e:
            store_error = StoreError(
                "Graph state file has an invalid shape",
                path=str(self.path),
                context={"errors": e.error_count()},
            )
            _report(store_error, self.strict, self.path, "graph_state")
            return None

    def replace(self, state: GraphState) -> None:
        payload = state.model_dump(mode="json", by_alias=True)
        payload["hiddenNodeIds"] = sorted(state.hidden_node_ids)
        payload["flaggedNodeIds"] = sorted(state.flagged_node_ids)
        _write_json(self.path, payload, self.strict, "graph_state")
        super().replace(state)


class JsonReportArchive(InMemoryReportArchive):
    """Report archive persisted as a JSON array of report records."""

    def __init__(self, path: Union[str, Path], strict: bool = False):
        self.path = Path(path)
        self.strict = strict
        super().__init__(self._load())

    def _load(self) -> List[InvestigationReport]:
        data = _read_json(self.path, self.strict, "report_archive")
        if data is None:
            return []

        try:
            return _reports_adapter.validate_python(data)
        except pydantic.ValidationError as e:
            store_error = StoreError(
                "Report archive has an invalid shape",
                path=str(self.path),
                context={"errors": e.error_count()},
            )
            _report(store_error, self.strict, self.path, "report_archive")
            return []

    def _save(self) -> None:
        payload = _reports_adapter.dump_python(
            self._reports, mode="json", by_alias=True, exclude_none=True
        )
        _write_json(self.path, payload, self.strict, "report_archive")

    def add_report(self, report: InvestigationReport) -> InvestigationReport:
        with self._lock:
            stored = super().add_report(report)
            self._save()
        return stored

    def rename_entity(self, old_name: str, new_name: str) -> int:
        with self._lock:
            changed = super().rename_entity(old_name, new_name)
            if changed:
                self._save()
        return changed
