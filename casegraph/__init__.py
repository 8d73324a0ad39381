"""Entity resolution and investigative graph construction.

This package provides:
- Canonical-name normalization and multi-strategy name matching
- Union-find clustering of likely-duplicate entity names
- Alias-map merge, unmerge and ignore decisions
- Graph model construction over reports and manual annotations
- Force-directed layout and click-to-link interaction state
"""

import logging

from .config import CaseGraphConfig, ConfigManager
from .errors import CaseGraphError, ConfigurationError, StoreError, ValidationError
from .models import (
    Entity,
    EntityType,
    InvestigationReport,
    ManualConnection,
    ManualNode,
    NodeKind,
    Source,
)
from .resolution import AliasMergeEngine, Cluster, ClusterDetector, NameMatcher
from .graph import GraphBuilder, GraphInputs, GraphModel, VisibilityOptions
from .session import InvestigationGraphSession

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "CaseGraphConfig",
    "ConfigManager",
    "CaseGraphError",
    "ConfigurationError",
    "StoreError",
    "ValidationError",
    "Entity",
    "EntityType",
    "InvestigationReport",
    "ManualConnection",
    "ManualNode",
    "NodeKind",
    "Source",
    "AliasMergeEngine",
    "Cluster",
    "ClusterDetector",
    "NameMatcher",
    "GraphBuilder",
    "GraphInputs",
    "GraphModel",
    "VisibilityOptions",
    "InvestigationGraphSession",
]

__version__ = "0.1.0"
