"""Tests for case dossier aggregation."""

from casegraph.graph.dossier import build_dossier
from casegraph.models import Entity, EntityType, Source


def test_empty_selection_gives_empty_dossier(sample_reports):
    dossier = build_dossier(sample_reports, None)
    assert dossier.reports == []
    assert dossier.entities == []


def test_entities_deduplicated_by_raw_name(sample_reports):
    dossier = build_dossier(sample_reports, "case-1")

    assert [r.id for r in dossier.reports] == ["r1", "r2"]
    assert dossier.entity_names() == [
        "Atlas Holdings Inc.", "John Smith", "ShadowCorp", "Atlas Holdings", "Maria Lopez",
    ]


def test_bare_mentions_become_unknown_entities(sample_reports):
    dossier = build_dossier(sample_reports, "case-1")
    shadow = [e for e in dossier.entities if e.name == "ShadowCorp"][0]
    assert shadow.type == EntityType.UNKNOWN


def test_typed_mention_replaces_untyped(report_factory):
    reports = [
        report_factory("r1", ["Helios Energy"]),
        report_factory("r2", [("Helios Energy", EntityType.ORGANIZATION)]),
    ]

    dossier = build_dossier(reports, "case-1")

    assert dossier.entities == [Entity(name="Helios Energy", type=EntityType.ORGANIZATION)]


def test_leads_and_sources(report_factory):
    reports = [
        report_factory(
            "r1", [], leads=["Check filings", "Call registrar"],
            sources=[Source(title="Registry", url="https://example.org/a")],
        ),
        report_factory(
            "r2", [], leads=["Call registrar", "Follow the money"],
            sources=[
                Source(title="Registry mirror", url="https://example.org/a"),
                Source(title="Court record", url="https://example.org/b"),
            ],
        ),
        report_factory("r3", [], case_id="case-2", leads=["Unrelated"]),
    ]

    dossier = build_dossier(reports, "case-1")

    assert dossier.leads == ["Check filings", "Call registrar", "Follow the money"]
    assert [s.title for s in dossier.sources] == ["Registry", "Court record"]


def test_all_cases(sample_reports):
    dossier = build_dossier(sample_reports, "ALL")
    assert len(dossier.reports) == 3
    assert "Helios Energy" in dossier.entity_names()
