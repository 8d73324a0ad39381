"""Record models consumed and produced by casegraph.

Reports and their entities arrive from the report archive; manual nodes and
manual connections are user-authored graph annotations. Field names are
snake_case in Python and camelCase on the wire, so archives written by other
tools load unchanged.
"""

import time
from enum import Enum
from typing import List, Optional, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .errors import ValidationError


def now_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


class EntityType(str, Enum):
    """Kinds of entities a report can mention."""

    PERSON = "PERSON"
    ORGANIZATION = "ORGANIZATION"
    UNKNOWN = "UNKNOWN"


class Sentiment(str, Enum):
    """Report author's stance towards an entity."""

    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"
    NEUTRAL = "NEUTRAL"


class ReportStatus(str, Enum):
    """Lifecycle status of an investigation report."""

    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class NodeKind(str, Enum):
    """Kinds of graph nodes."""

    CASE = "CASE"
    ENTITY = "ENTITY"


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Entity(_WireModel):
    """An entity mention inside a report."""

    name: str
    type: EntityType = EntityType.UNKNOWN
    role: Optional[str] = None
    sentiment: Optional[Sentiment] = None


class Source(_WireModel):
    """A cited source."""

    title: str = ""
    url: str


# Legacy archives store entities as bare names
EntityMention = Union[Entity, str]


def mention_name(mention: EntityMention) -> str:
    """Name of an entity mention, legacy or typed."""
    return mention if isinstance(mention, str) else mention.name


def mention_type(mention: EntityMention) -> EntityType:
    """Declared type of an entity mention; bare names are UNKNOWN."""
    return EntityType.UNKNOWN if isinstance(mention, str) else mention.type


class InvestigationReport(_WireModel):
    """A generated investigation report."""

    id: Optional[str] = None
    case_id: Optional[str] = None
    topic: str
    date_str: Optional[str] = None
    summary: str = ""
    agendas: List[str] = Field(default_factory=list)
    leads: List[str] = Field(default_factory=list)
    entities: List[EntityMention] = Field(default_factory=list)
    sources: List[Source] = Field(default_factory=list)
    raw_text: str = ""
    parent_topic: Optional[str] = None
    status: ReportStatus = ReportStatus.COMPLETED

    @field_validator("agendas", "leads", "entities", "sources", mode="before")
    @classmethod
    def missing_list_is_empty(cls, v):
        """Records missing their arrays default to empty ones."""
        return [] if v is None else v

    def entity_names(self) -> List[str]:
        """Names of every entity mention, in report order."""
        return [mention_name(e) for e in self.entities]


class ManualNode(_WireModel):
    """A user-authored graph node."""

    id: str
    label: str
    type: NodeKind
    subtype: Optional[EntityType] = None
    timestamp: int = Field(default_factory=now_ms)


class ManualConnection(_WireModel):
    """A user-authored graph connection between two node ids."""

    source: str
    target: str
    timestamp: int = Field(default_factory=now_ms)


def parse_report(data: Union[InvestigationReport, dict]) -> InvestigationReport:
    """Validate an incoming report record.

    Raises:
        ValidationError: If the record cannot be read as a report
    """
    if isinstance(data, InvestigationReport):
        return data
    try:
        return InvestigationReport.model_validate(data)
    except pydantic.ValidationError as e:
        first = e.errors()[0] if e.error_count() else {}
        field_name = ".".join(str(p) for p in first.get("loc", ()))
        raise ValidationError(
            f"Invalid report record: {first.get('msg', 'unreadable record')}",
            field_name=field_name or None,
            field_value=first.get("input"),
            context={"errors": e.error_count()},
        ) from e
