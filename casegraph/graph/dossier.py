"""Case dossier aggregation."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..models import Entity, EntityType, InvestigationReport, Source
from .builder import reports_in_scope


@dataclass
class Dossier:
    """Reports, leads, sources and entities gathered for one case scope."""
    reports: List[InvestigationReport] = field(default_factory=list)
    leads: List[str] = field(default_factory=list)
    sources: List[Source] = field(default_factory=list)
    entities: List[Entity] = field(default_factory=list)

    def entity_names(self) -> List[str]:
        return [e.name for e in self.entities]


def build_dossier(reports: List[InvestigationReport], case_id: Optional[str]) -> Dossier:
    """
    Aggregate the material of a case.

    Args:
        reports: All archived reports
        case_id: Selected case; empty selects nothing, ``"ALL"`` everything

    Returns:
        Dossier with leads de-duplicated in first-seen order, sources
        de-duplicated by URL, and entities de-duplicated by raw name
    """
    if not case_id:
        return Dossier()

    scoped = reports_in_scope(reports, case_id)

    leads = list(dict.fromkeys(lead for r in scoped for lead in r.leads))

    sources: Dict[str, Source] = {}
    for report in scoped:
        for source in report.sources:
            sources.setdefault(source.url, source)

    entities: Dict[str, Entity] = {}
    for report in scoped:
        for mention in report.entities:
            entity = Entity(name=mention) if isinstance(mention, str) else mention
            known = entities.get(entity.name)
            # A typed mention replaces an earlier untyped one
            if known is None or (
                known.type == EntityType.UNKNOWN and entity.type != EntityType.UNKNOWN
            ):
                entities[entity.name] = entity

    return Dossier(
        reports=scoped,
        leads=leads,
        sources=list(sources.values()),
        entities=list(entities.values()),
    )
