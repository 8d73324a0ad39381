"""Ingest-time entity normalization for incoming reports."""

import random
import string
from typing import Dict, List, Optional, Tuple

from ..config import NormalizationConfig
from ..logging_config import get_logger, log_event
from ..models import InvestigationReport, mention_name, now_ms
from .matching import is_likely_same_entity

logger = get_logger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_report_id() -> str:
    suffix = "".join(random.choices(_ID_ALPHABET, k=5))
    return f"rep-{now_ms()}-{suffix}"


class EntityNormalizer:
    """
    Rewrites entity names on a report before it enters the archive.

    Names with an alias resolve through it. Otherwise, when enabled, a name
    that looks like one already mentioned in the same case is replaced by
    that existing name and a new alias records the decision.
    """

    def __init__(self, config: Optional[NormalizationConfig] = None):
        self.config = config or NormalizationConfig()

    def normalize(
        self,
        report: InvestigationReport,
        existing_reports: List[InvestigationReport],
        aliases: Dict[str, str],
        case_id: Optional[str] = None,
    ) -> Tuple[InvestigationReport, Dict[str, str]]:
        """
        Normalize a report's entity names.

        Args:
            report: Incoming report
            existing_reports: Reports already in the archive
            aliases: Current alias map (not modified)
            case_id: Case the report joins; defaults to ``report.case_id``

        Returns:
            Tuple of (normalized copy of the report, new alias entries)
        """
        target_case = case_id if case_id is not None else report.case_id
        case_names = [
            mention_name(mention)
            for existing in existing_reports
            if existing.case_id == target_case
            for mention in existing.entities
        ]

        new_aliases: Dict[str, str] = {}
        entities = []
        for mention in report.entities:
            name = mention_name(mention)
            resolved = aliases.get(name, name)

            if self.config.auto_normalize_entities and resolved == name:
                match = next(
                    (known for known in case_names if is_likely_same_entity(name, known)),
                    None,
                )
                if match is not None and match != name:
                    resolved = match
                    new_aliases[name] = match

            if isinstance(mention, str):
                entities.append(resolved)
            else:
                entities.append(mention.model_copy(update={"name": resolved}))

        normalized = report.model_copy(
            update={
                "entities": entities,
                "id": report.id or generate_report_id(),
                "case_id": target_case,
            },
            deep=True,
        )

        if new_aliases:
            log_event(
                __name__,
                "entities_auto_normalized",
                report_id=normalized.id,
                case_id=target_case,
                aliases=new_aliases,
            )
        return normalized, new_aliases
