"""Shared fixtures for casegraph tests."""

import pytest

from casegraph.config import CaseGraphConfig
from casegraph.models import Entity, EntityType, InvestigationReport
from casegraph.session import InvestigationGraphSession
from casegraph.store.memory import InMemoryGraphStateStore, InMemoryReportArchive


def make_report(report_id, entities, case_id="case-1", topic=None, parent_topic=None, **kwargs):
    """Build a report; entity tuples are (name, type), strings stay bare."""
    mentions = [
        Entity(name=e[0], type=e[1]) if isinstance(e, tuple) else e
        for e in entities
    ]
    return InvestigationReport(
        id=report_id,
        case_id=case_id,
        topic=topic or f"Topic {report_id}",
        parent_topic=parent_topic,
        entities=mentions,
        **kwargs,
    )


@pytest.fixture
def sample_reports():
    """Two cases with overlapping and near-duplicate entity names."""
    return [
        make_report(
            "r1",
            [
                ("Atlas Holdings Inc.", EntityType.ORGANIZATION),
                ("John Smith", EntityType.PERSON),
                "ShadowCorp",
            ],
            topic="Atlas Holdings",
        ),
        make_report(
            "r2",
            [
                ("Atlas Holdings", EntityType.UNKNOWN),
                ("John Smith", EntityType.PERSON),
                ("Maria Lopez", EntityType.PERSON),
            ],
            topic="Atlas subsidiaries",
            parent_topic="Atlas Holdings",
        ),
        make_report(
            "r3",
            [("Helios Energy", EntityType.ORGANIZATION)],
            case_id="case-2",
            topic="Helios",
        ),
    ]


@pytest.fixture
def state_store():
    return InMemoryGraphStateStore()


@pytest.fixture
def archive(sample_reports):
    return InMemoryReportArchive(sample_reports)


@pytest.fixture
def config():
    return CaseGraphConfig()


@pytest.fixture
def session(state_store, archive, config):
    return InvestigationGraphSession(state_store, archive, config)


@pytest.fixture
def report_factory():
    return make_report
