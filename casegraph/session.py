"""
Investigation graph session.

Wires the resolution engine, graph builder, layout loop and linking
controller to a graph-state store and a report archive. Every build reads
the store and archive fresh; nothing derived from them is cached across
calls except the last built model, which is only used to look up clicked
nodes and to seed the layout.
"""

from typing import AbstractSet, Callable, Dict, List, Optional, Union

from .config import CaseGraphConfig
from .graph.builder import GraphBuilder, GraphInputs, reports_in_scope
from .graph.dossier import Dossier, build_dossier
from .graph.model import GraphModel, VisibilityOptions
from .layout.interfaces import ILayoutLoop
from .layout.linking import LinkingController, LinkRequest
from .layout.simulation import ForceSimulation
from .logging_config import get_logger, log_context, log_event
from .models import (
    EntityType,
    InvestigationReport,
    ManualConnection,
    ManualNode,
    NodeKind,
    now_ms,
    parse_report,
)
from .resolution.aliases import AliasMergeEngine
from .resolution.clustering import Cluster, ClusterDetector
from .resolution.matching import NameMatcher
from .resolution.normalizer import EntityNormalizer
from .store.interfaces import IGraphStateStore, IReportArchive

logger = get_logger(__name__)

LayoutFactory = Callable[[GraphModel], ILayoutLoop]


class InvestigationGraphSession:
    """Entry point for resolving entities and building the investigation graph."""

    def __init__(
        self,
        store: IGraphStateStore,
        archive: IReportArchive,
        config: Optional[CaseGraphConfig] = None,
        layout_factory: Optional[LayoutFactory] = None,
    ):
        """Initialize the session.

        Args:
            store: Alias and manual-graph state
            archive: Investigation reports
            config: Configuration; defaults when omitted
            layout_factory: Builds a layout loop for a model; defaults to
                ForceSimulation
        """
        self.store = store
        self.archive = archive
        self.config = config or CaseGraphConfig()

        self.matcher = NameMatcher(self.config.matching)
        self.detector = ClusterDetector(self.matcher, self.config.clustering)
        self.merge_engine = AliasMergeEngine(store)
        self.normalizer = EntityNormalizer(self.config.normalization)
        self.builder = GraphBuilder(self.config.graph)
        self.linking = LinkingController(on_link=self._on_link)

        self.layout_factory = layout_factory or (
            lambda model: ForceSimulation(model, self.config.layout)
        )
        self.layout: Optional[ILayoutLoop] = None
        self.model: Optional[GraphModel] = None

    # Entity resolution

    def entity_names(self, case_id: Optional[str] = None) -> List[str]:
        """Raw entity names of the reports in scope, in report order."""
        reports = reports_in_scope(self.archive.list_reports(), case_id)
        return [name for report in reports for name in report.entity_names()]

    def detect_clusters(self, case_id: Optional[str] = None) -> List[Cluster]:
        """Detect clusters among entity names in scope."""
        with log_context(case_id=case_id or "ALL"):
            return self.detector.detect(
                self.entity_names(case_id),
                self.store.get().aliases,
                self.merge_engine.ignored_keys,
            )

    def merge_cluster(
        self,
        cluster: Cluster,
        target: Optional[str] = None,
        excluded: Optional[AbstractSet[str]] = None,
    ) -> Dict[str, str]:
        return self.merge_engine.merge_cluster(cluster, target, excluded)

    def merge_all(
        self, clusters: Optional[List[Cluster]] = None, case_id: Optional[str] = None
    ) -> Dict[str, str]:
        """Merge the given clusters, or every cluster currently detected."""
        if clusters is None:
            clusters = self.detect_clusters(case_id)
        return self.merge_engine.merge_all(clusters)

    def unmerge(self, variant: str) -> bool:
        return self.merge_engine.unmerge(variant)

    def ignore_cluster(self, cluster: Cluster) -> str:
        return self.merge_engine.ignore_cluster(cluster)

    def resolve(self, name: str) -> str:
        return self.merge_engine.resolve(name)

    # Graph

    def build_graph(
        self,
        case_id: Optional[str] = None,
        options: Optional[VisibilityOptions] = None,
    ) -> GraphModel:
        """Rebuild the graph model from the current store and archive."""
        state = self.store.get()
        inputs = GraphInputs(
            reports=reports_in_scope(self.archive.list_reports(), case_id),
            manual_nodes=state.manual_nodes,
            manual_connections=state.manual_connections,
            aliases=state.aliases,
            hidden_node_ids=state.hidden_node_ids,
            flagged_node_ids=state.flagged_node_ids,
            options=options or VisibilityOptions(),
        )
        with log_context(case_id=case_id or "ALL"):
            self.model = self.builder.build(inputs)
        return self.model

    def dossier(self, case_id: Optional[str]) -> Dossier:
        return build_dossier(self.archive.list_reports(), case_id)

    # Annotations

    def create_manual_node(
        self,
        label: str,
        kind: NodeKind = NodeKind.ENTITY,
        subtype: EntityType = EntityType.PERSON,
    ) -> Optional[ManualNode]:
        """Add a manual node; blank labels are ignored."""
        label = (label or "").strip()
        if not label:
            return None

        state = self.store.get()
        taken = {n.id for n in state.manual_nodes}
        timestamp = now_ms()
        while f"manual-{timestamp}" in taken:
            timestamp += 1

        node = ManualNode(
            id=f"manual-{timestamp}",
            label=label,
            type=kind,
            subtype=subtype if kind == NodeKind.ENTITY else EntityType.UNKNOWN,
            timestamp=timestamp,
        )
        self.store.update(manual_nodes=state.manual_nodes + [node])
        log_event(__name__, "manual_node_created", node_id=node.id, kind=kind.value)
        return node

    def create_manual_link(self, source_id: str, target_id: str) -> Optional[ManualConnection]:
        """Add a manual connection between two node ids."""
        if not source_id or not target_id or source_id == target_id:
            return None

        state = self.store.get()
        link = ManualConnection(source=source_id, target=target_id)
        self.store.update(manual_connections=state.manual_connections + [link])
        log_event(__name__, "manual_link_created", source=source_id, target=target_id)
        return link

    def toggle_hidden(self, node_id: str) -> bool:
        """Flip hidden membership; returns whether the node is now hidden."""
        hidden = set(self.store.get().hidden_node_ids)
        now_hidden = node_id not in hidden
        hidden.symmetric_difference_update({node_id})
        self.store.update(hidden_node_ids=hidden)
        return now_hidden

    def toggle_flagged(self, node_id: str) -> bool:
        """Flip flagged membership; returns whether the node is now flagged."""
        flagged = set(self.store.get().flagged_node_ids)
        now_flagged = node_id not in flagged
        flagged.symmetric_difference_update({node_id})
        self.store.update(flagged_node_ids=flagged)
        return now_flagged

    def rename_entity(self, old_name: str, new_name: str) -> int:
        """
        Rename an entity across the archive.

        Flag membership follows the rename, whether it was recorded under the
        raw name or the entity node id.

        Returns:
            Number of reports changed
        """
        new_name = (new_name or "").strip()
        if not new_name or new_name == old_name:
            return 0

        changed = self.archive.rename_entity(old_name, new_name)

        flagged = set(self.store.get().flagged_node_ids)
        moves = {
            old_name: new_name,
            self.builder.entity_node_id(old_name): self.builder.entity_node_id(new_name),
        }
        moved = False
        for old_key, new_key in moves.items():
            if old_key in flagged:
                flagged.discard(old_key)
                flagged.add(new_key)
                moved = True
        if moved:
            self.store.update(flagged_node_ids=flagged)

        log_event(__name__, "entity_renamed", old_name=old_name, new_name=new_name, reports=changed)
        return changed

    def ingest_report(
        self,
        report: Union[InvestigationReport, dict],
        case_id: Optional[str] = None,
    ) -> InvestigationReport:
        """Validate a report, normalize its entity names and archive it.

        Raises:
            ValidationError: If a raw record is not a valid report
        """
        report = parse_report(report)
        state = self.store.get()
        normalized, new_aliases = self.normalizer.normalize(
            report, self.archive.list_reports(), state.aliases, case_id
        )

        if new_aliases:
            aliases = dict(state.aliases)
            for variant, target in new_aliases.items():
                aliases.setdefault(variant, target)
            self.store.update(aliases=aliases)

        return self.archive.add_report(normalized)

    # Interaction

    def click_node(self, node_id: str) -> Optional[LinkRequest]:
        """Forward a node click; unknown ids are ignored."""
        node = self.model.node(node_id) if self.model else None
        if node is None:
            return None
        return self.linking.click(node)

    def click_background(self) -> None:
        self.linking.click_background()

    def _on_link(self, request: LinkRequest) -> None:
        self.create_manual_link(request.source_id, request.target_id)
        self.linking.set_linking_mode(False)

    # Layout

    def start_layout(self, model: Optional[GraphModel] = None) -> ILayoutLoop:
        """Start a layout loop, stopping any running one first."""
        self.stop_layout()
        if model is not None:
            self.model = model
        elif self.model is None:
            self.build_graph()

        self.layout = self.layout_factory(self.model)
        self.layout.start()
        return self.layout

    def stop_layout(self) -> None:
        if self.layout is not None and self.layout.is_running:
            self.layout.stop()
