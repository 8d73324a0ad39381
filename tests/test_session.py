"""Tests for the investigation graph session."""

from unittest.mock import Mock

import pytest

from casegraph.errors import ValidationError
from casegraph.graph.model import VisibilityOptions
from casegraph.layout.simulation import ForceSimulation
from casegraph.models import EntityType, NodeKind
from casegraph.session import InvestigationGraphSession
from casegraph.store.interfaces import GraphState
from casegraph.store.memory import InMemoryGraphStateStore, InMemoryReportArchive


class TestResolution:
    """Cluster detection and merges through the session."""

    def test_detects_scoped_clusters(self, session):
        clusters = session.detect_clusters("case-1")

        assert [c.key for c in clusters] == ["Atlas Holdings::Atlas Holdings Inc."]
        assert clusters[0].target == "Atlas Holdings Inc."

    def test_merge_then_rebuild(self, session):
        before = session.build_graph("case-1")
        assert before.stats.entity_node_count == 5

        session.merge_all(case_id="case-1")
        after = session.build_graph("case-1")

        assert after.stats.entity_node_count == 4
        assert after.node("entity-atlasholdingsinc").connection_count == 2
        assert session.detect_clusters("case-1") == []

    def test_unmerge_restores_entity(self, session):
        session.merge_all(case_id="case-1")

        assert session.unmerge("Atlas Holdings")

        assert session.build_graph("case-1").stats.entity_node_count == 5

    def test_ignored_cluster_stays_hidden_for_session(self, session, state_store, archive):
        cluster = session.detect_clusters("case-1")[0]
        session.ignore_cluster(cluster)

        assert session.detect_clusters("case-1") == []
        assert state_store.get().aliases == {}
        fresh = InvestigationGraphSession(state_store, archive)
        assert len(fresh.detect_clusters("case-1")) == 1

    def test_merge_cluster_with_chosen_target(self, session):
        cluster = session.detect_clusters("case-1")[0]

        session.merge_cluster(cluster, target="Atlas Holdings")

        assert session.resolve("Atlas Holdings Inc.") == "Atlas Holdings"


class TestManualAnnotations:
    """Manual nodes, links, hidden and flagged ids."""

    def test_create_manual_node(self, session, state_store):
        node = session.create_manual_node("  Informant  ")

        assert node.id.startswith("manual-")
        assert node.label == "Informant"
        assert node.subtype == EntityType.PERSON
        assert state_store.get().manual_nodes == [node]
        assert session.build_graph("case-1").node(node.id).is_manual

    def test_blank_label_is_ignored(self, session, state_store):
        assert session.create_manual_node("   ") is None
        assert state_store.get().manual_nodes == []

    def test_manual_case_node(self, session):
        node = session.create_manual_node("Offshore leak", kind=NodeKind.CASE)

        assert node.type == NodeKind.CASE
        assert node.subtype == EntityType.UNKNOWN
        built = session.build_graph("case-1").node(node.id)
        assert built.source_record.topic == "Offshore leak"

    def test_manual_node_ids_are_unique(self, session):
        ids = {session.create_manual_node(f"Node {i}").id for i in range(5)}
        assert len(ids) == 5

    def test_create_manual_link(self, session):
        link = session.create_manual_link("entity-marialopez", "entity-shadowcorp")

        model = session.build_graph("case-1")

        assert link.source == "entity-marialopez"
        manual = [e for e in model.edges if e.is_manual]
        assert len(manual) == 1
        assert model.node("entity-shadowcorp").connection_count == 2

    def test_self_link_is_ignored(self, session, state_store):
        assert session.create_manual_link("entity-marialopez", "entity-marialopez") is None
        assert state_store.get().manual_connections == []

    def test_toggle_hidden(self, session):
        assert session.toggle_hidden("entity-shadowcorp") is True
        assert "entity-shadowcorp" not in session.build_graph("case-1").node_ids()

        options = VisibilityOptions(show_hidden_nodes=True)
        assert "entity-shadowcorp" in session.build_graph("case-1", options).node_ids()

        assert session.toggle_hidden("entity-shadowcorp") is False
        assert "entity-shadowcorp" in session.build_graph("case-1").node_ids()

    def test_toggle_flagged(self, session, state_store):
        assert session.toggle_flagged("entity-marialopez") is True
        assert state_store.get().flagged_node_ids == {"entity-marialopez"}

        model = session.build_graph(
            "case-1", VisibilityOptions(show_flagged_only=True)
        )
        assert set(model.node_ids()) == {"case-r1", "case-r2", "entity-marialopez"}

        assert session.toggle_flagged("entity-marialopez") is False
        assert state_store.get().flagged_node_ids == set()


class TestRename:
    def test_rename_updates_reports(self, session, archive):
        assert session.rename_entity("Maria Lopez", "María López") == 1
        assert "María López" in archive.list_reports()[1].entity_names()

    def test_rename_moves_flags(self, session, state_store):
        state_store.update(flagged_node_ids={"entity-marialopez", "Maria Lopez"})

        session.rename_entity("Maria Lopez", "Maria Lopez-Reyes")

        assert state_store.get().flagged_node_ids == {
            "entity-marialopezreyes", "Maria Lopez-Reyes",
        }

    def test_blank_or_unchanged_name(self, session):
        assert session.rename_entity("Maria Lopez", "  ") == 0
        assert session.rename_entity("Maria Lopez", "Maria Lopez") == 0


class TestIngest:
    """Report ingestion with auto-normalization."""

    def test_ingest_normalizes_against_case(self, session, archive, state_store):
        report = session.ingest_report({
            "topic": "Follow-up",
            "caseId": "case-1",
            "entities": [{"name": "Maria Lopes", "type": "PERSON"}, "New Person"],
        })

        assert report.id.startswith("rep-")
        assert report.entity_names() == ["Maria Lopez", "New Person"]
        assert archive.list_reports()[-1].id == report.id
        assert state_store.get().aliases == {"Maria Lopes": "Maria Lopez"}

    def test_existing_alias_is_not_overwritten(self, report_factory):
        store = InMemoryGraphStateStore(GraphState(aliases={"Maria Lopes": "M. Lopez"}))
        archive = InMemoryReportArchive([report_factory("r1", ["Maria Lopez"])])
        session = InvestigationGraphSession(store, archive)

        report = session.ingest_report(report_factory(None, ["Maria Lopes"]))

        assert report.entities == ["M. Lopez"]
        assert store.get().aliases == {"Maria Lopes": "M. Lopez"}

    def test_invalid_record(self, session, archive):
        with pytest.raises(ValidationError) as exc_info:
            session.ingest_report({"entities": []})

        assert exc_info.value.field_name == "topic"
        assert len(archive.list_reports()) == 3


class TestInteraction:
    """Clicks and the layout loop."""

    def test_click_to_link(self, session, state_store):
        session.build_graph("case-1")
        session.linking.set_linking_mode(True)

        assert session.click_node("entity-marialopez") is None
        request = session.click_node("case-r1")

        assert request.source_id == "entity-marialopez"
        (link,) = state_store.get().manual_connections
        assert (link.source, link.target) == ("entity-marialopez", "case-r1")
        assert session.linking.linking_mode is False

    def test_click_unknown_node(self, session):
        assert session.click_node("case-r1") is None
        session.build_graph("case-1")
        assert session.click_node("entity-nobody") is None

    def test_click_selects_outside_linking_mode(self, session):
        session.build_graph("case-1")
        session.click_node("entity-johnsmith")
        assert session.linking.selected.id == "entity-johnsmith"
        session.click_background()
        assert session.linking.selected is None

    def test_start_layout_stops_previous_loop(self, state_store, archive):
        loops = []

        def factory(model):
            loop = Mock()
            loop.is_running = True
            loops.append(loop)
            return loop

        session = InvestigationGraphSession(state_store, archive, layout_factory=factory)
        session.start_layout()
        session.start_layout()

        assert len(loops) == 2
        loops[0].stop.assert_called_once()
        loops[1].start.assert_called_once()
        loops[1].stop.assert_not_called()

    def test_default_layout_is_force_simulation(self, session):
        layout = session.start_layout(session.build_graph("case-1"))

        assert isinstance(layout, ForceSimulation)
        assert layout.is_running
        session.stop_layout()
        assert not layout.is_running
