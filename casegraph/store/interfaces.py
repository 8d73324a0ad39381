"""Interfaces for the collaborators casegraph reads from and writes to."""

from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Set

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..models import InvestigationReport, ManualConnection, ManualNode


class GraphState(BaseModel):
    """
    Snapshot of the mutable alias and manual-graph state.

    Stores hand out copies; a mutation is always a full ``replace`` of the
    snapshot.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    aliases: Dict[str, str] = Field(default_factory=dict)
    manual_nodes: List[ManualNode] = Field(default_factory=list)
    manual_connections: List[ManualConnection] = Field(default_factory=list)
    hidden_node_ids: Set[str] = Field(default_factory=set)
    flagged_node_ids: Set[str] = Field(default_factory=set)


StateListener = Callable[[GraphState], None]


class IGraphStateStore(ABC):
    """Holds the alias map, manual nodes and links, and hidden/flagged sets."""

    @abstractmethod
    def get(self) -> GraphState:
        """Return a copy of the current state."""
        pass

    @abstractmethod
    def replace(self, state: GraphState) -> None:
        """Replace the whole state and notify subscribers."""
        pass

    @abstractmethod
    def subscribe(self, callback: StateListener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        pass

    def update(self, **changes) -> GraphState:
        """Replace selected fields of the current state."""
        state = self.get().model_copy(update=changes, deep=True)
        self.replace(state)
        return state


class IReportArchive(ABC):
    """Ordered store of investigation reports."""

    @abstractmethod
    def list_reports(self) -> List[InvestigationReport]:
        """All reports, oldest first."""
        pass

    @abstractmethod
    def add_report(self, report: InvestigationReport) -> InvestigationReport:
        """Append a report and return it as stored."""
        pass

    @abstractmethod
    def rename_entity(self, old_name: str, new_name: str) -> int:
        """Rewrite every mention of ``old_name``; returns reports changed."""
        pass
