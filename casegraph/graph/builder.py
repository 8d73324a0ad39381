"""
Graph Builder

Assembles the investigation graph from reports, manual annotations and the
alias map. A build is a pure function of its inputs: callers rebuild from
scratch whenever any input changes and never patch a previous model.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import AbstractSet, Dict, FrozenSet, List, Mapping, Optional, Set

from ..config import GraphConfig
from ..logging_config import get_logger, log_performance, Timer
from ..models import (
    EntityType,
    InvestigationReport,
    ManualConnection,
    ManualNode,
    NodeKind,
    ReportStatus,
    mention_name,
    mention_type,
)
from ..resolution.canonical import clean_entity_name, normalize_id
from .model import GraphEdge, GraphModel, GraphNode, GraphStats, VisibilityOptions

logger = get_logger(__name__)

ALL_CASES = "ALL"


def reports_in_scope(
    reports: List[InvestigationReport], case_id: Optional[str]
) -> List[InvestigationReport]:
    """Reports of one case; no case or ``"ALL"`` selects every report."""
    if not case_id or case_id == ALL_CASES:
        return list(reports)
    return [r for r in reports if r.case_id == case_id]


@dataclass
class GraphInputs:
    """Everything a build depends on."""
    reports: List[InvestigationReport] = field(default_factory=list)
    manual_nodes: List[ManualNode] = field(default_factory=list)
    manual_connections: List[ManualConnection] = field(default_factory=list)
    aliases: Mapping[str, str] = field(default_factory=dict)
    hidden_node_ids: AbstractSet[str] = field(default_factory=set)
    flagged_node_ids: AbstractSet[str] = field(default_factory=set)
    options: VisibilityOptions = field(default_factory=VisibilityOptions)


def placeholder_report(node: ManualNode) -> InvestigationReport:
    """Minimal report standing in for a manual CASE node."""
    created = datetime.fromtimestamp(node.timestamp / 1000, tz=timezone.utc)
    return InvestigationReport(
        id=node.id,
        case_id=node.id,
        topic=node.label,
        summary="Manually created report node. Content pending investigation.",
        date_str=created.date().isoformat(),
        status=ReportStatus.COMPLETED,
    )


class _GraphAssembly:
    """Mutable scratch space for a single build."""

    def __init__(self, inputs: GraphInputs):
        self.inputs = inputs
        self.nodes: Dict[str, GraphNode] = {}
        self.edges: List[GraphEdge] = []
        self._edge_keys: Set[FrozenSet[str]] = set()

    def is_gated(self, node_id: str) -> bool:
        return (
            node_id in self.inputs.hidden_node_ids
            and not self.inputs.options.show_hidden_nodes
        )

    def get_or_create(
        self,
        node_id: str,
        kind: NodeKind,
        label: str,
        subtype: Optional[EntityType] = None,
        source_record: Optional[InvestigationReport] = None,
        is_manual: bool = False,
    ) -> Optional[GraphNode]:
        """Existing node for ``node_id``, a new one, or None when hidden."""
        if self.is_gated(node_id):
            return None
        node = self.nodes.get(node_id)
        if node is None:
            node = GraphNode(
                id=node_id,
                kind=kind,
                label=label,
                subtype=subtype,
                source_record=source_record,
                is_manual=is_manual,
            )
            self.nodes[node_id] = node
        return node

    def has_edge(self, a: str, b: str) -> bool:
        return frozenset((a, b)) in self._edge_keys

    def add_edge(self, edge: GraphEdge) -> None:
        self.edges.append(edge)
        self._edge_keys.add(edge.key)


class GraphBuilder:
    """Builds a GraphModel from GraphInputs."""

    def __init__(self, config: Optional[GraphConfig] = None):
        self.config = config or GraphConfig()

    def case_node_id(self, report_id: Optional[str]) -> str:
        return f"{self.config.case_id_prefix}{report_id}"

    def entity_node_id(self, display_name: str) -> str:
        return f"{self.config.entity_id_prefix}{normalize_id(display_name)}"

    def build(self, inputs: GraphInputs) -> GraphModel:
        """
        Build the graph.

        Args:
            inputs: Reports already scoped by the caller plus annotations

        Returns:
            Filtered nodes and edges with stats over the filtered sets
        """
        with Timer() as timer:
            assembly = _GraphAssembly(inputs)

            self._add_manual_nodes(assembly)
            for report in inputs.reports:
                self._add_report(assembly, report)
            self._add_manual_connections(assembly)

            model = self._apply_visibility(assembly)

        log_performance(
            __name__,
            "graph_build",
            timer.duration_ms,
            reports=len(inputs.reports),
            nodes=len(model.nodes),
            edges=len(model.edges),
        )
        return model

    def _add_manual_nodes(self, assembly: _GraphAssembly) -> None:
        for manual in assembly.inputs.manual_nodes:
            record = placeholder_report(manual) if manual.type == NodeKind.CASE else None
            assembly.get_or_create(
                manual.id,
                manual.type,
                manual.label,
                subtype=manual.subtype,
                source_record=record,
                is_manual=True,
            )

    def _add_report(self, assembly: _GraphAssembly, report: InvestigationReport) -> None:
        cfg = self.config
        aliases = assembly.inputs.aliases

        case_id = self.case_node_id(report.id)
        case_node = assembly.get_or_create(
            case_id, NodeKind.CASE, report.topic, source_record=report
        )
        if case_node is None:
            return

        if report.parent_topic:
            parent = next(
                (r for r in assembly.inputs.reports if r.topic == report.parent_topic),
                None,
            )
            if parent is not None:
                parent_id = self.case_node_id(parent.id)
                if (
                    parent_id != case_id
                    and not assembly.is_gated(parent_id)
                    and not assembly.has_edge(parent_id, case_id)
                ):
                    assembly.add_edge(GraphEdge(parent_id, case_id, cfg.parent_edge_weight))

        for mention in report.entities:
            clean = clean_entity_name(mention_name(mention))
            if not clean:
                continue

            display = aliases.get(clean, clean)
            declared = mention_type(mention)
            entity_id = self.entity_node_id(display)
            entity_node = assembly.get_or_create(
                entity_id, NodeKind.ENTITY, display, subtype=declared
            )
            if entity_node is None:
                continue

            if declared != EntityType.UNKNOWN and entity_node.subtype == EntityType.UNKNOWN:
                entity_node.subtype = declared

            if not assembly.has_edge(case_id, entity_id):
                assembly.add_edge(GraphEdge(case_id, entity_id, cfg.entity_edge_weight))
                case_node.connection_count += 1
                entity_node.connection_count += 1

    def _add_manual_connections(self, assembly: _GraphAssembly) -> None:
        for link in assembly.inputs.manual_connections:
            source = assembly.nodes.get(link.source)
            target = assembly.nodes.get(link.target)
            if source is None or target is None:
                continue
            if assembly.has_edge(link.source, link.target):
                continue
            assembly.add_edge(
                GraphEdge(link.source, link.target, self.config.manual_edge_weight, is_manual=True)
            )
            source.connection_count += 1
            target.connection_count += 1

    def _apply_visibility(self, assembly: _GraphAssembly) -> GraphModel:
        options = assembly.inputs.options
        flagged = assembly.inputs.flagged_node_ids
        nodes = list(assembly.nodes.values())

        if options.show_flagged_only:
            nodes = [n for n in nodes if n.id in flagged or n.kind == NodeKind.CASE]
        elif not options.show_singletons:
            nodes = [
                n for n in nodes
                if n.is_manual or n.kind == NodeKind.CASE or n.connection_count > 1
            ]

        kept = {n.id for n in nodes}
        edges = [e for e in assembly.edges if e.source_id in kept and e.target_id in kept]

        stats = GraphStats(
            reports_in_scope=len(assembly.inputs.reports),
            entity_node_count=sum(1 for n in nodes if n.kind == NodeKind.ENTITY),
            edge_count=len(edges),
            hub_count=sum(1 for n in nodes if n.connection_count > 1),
        )
        return GraphModel(nodes=nodes, edges=edges, stats=stats)
