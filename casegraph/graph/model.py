"""Graph model produced by the graph builder."""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional

from ..models import EntityType, InvestigationReport, NodeKind


@dataclass
class GraphNode:
    """A CASE or ENTITY node with its layout state."""
    id: str
    kind: NodeKind
    label: str
    subtype: Optional[EntityType] = None
    source_record: Optional[InvestigationReport] = None
    connection_count: int = 0
    is_manual: bool = False

    # Layout state, owned by the simulation
    x: Optional[float] = None
    y: Optional[float] = None
    vx: float = 0.0
    vy: float = 0.0
    fx: Optional[float] = None
    fy: Optional[float] = None

    @property
    def is_pinned(self) -> bool:
        return self.fx is not None or self.fy is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert node to dictionary representation."""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "subtype": self.subtype.value if self.subtype else None,
            "label": self.label,
            "connection_count": self.connection_count,
            "is_manual": self.is_manual,
            "report_id": self.source_record.id if self.source_record else None,
            "x": self.x,
            "y": self.y,
        }


@dataclass
class GraphEdge:
    """An undirected edge between two node ids."""
    source_id: str
    target_id: str
    weight: int
    is_manual: bool = False

    @property
    def key(self) -> FrozenSet[str]:
        return frozenset((self.source_id, self.target_id))

    def connects(self, a: str, b: str) -> bool:
        return self.key == frozenset((a, b))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source_id,
            "target": self.target_id,
            "weight": self.weight,
            "is_manual": self.is_manual,
        }


@dataclass
class GraphStats:
    """Aggregate counts over the filtered graph."""
    reports_in_scope: int = 0
    entity_node_count: int = 0
    edge_count: int = 0
    hub_count: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "reports_in_scope": self.reports_in_scope,
            "entity_node_count": self.entity_node_count,
            "edge_count": self.edge_count,
            "hub_count": self.hub_count,
        }


@dataclass
class GraphModel:
    """Nodes, edges and stats of one build."""
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)
    stats: GraphStats = field(default_factory=GraphStats)

    def node(self, node_id: str) -> Optional[GraphNode]:
        """Look up a node by id; None for unknown ids."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]


@dataclass
class VisibilityOptions:
    """
    Display toggles applied after the graph is assembled.

    Precedence: ``show_flagged_only`` first, then ``show_singletons``.
    ``show_hidden_nodes`` acts earlier, at node creation.
    """
    show_singletons: bool = True
    show_hidden_nodes: bool = False
    show_flagged_only: bool = False
