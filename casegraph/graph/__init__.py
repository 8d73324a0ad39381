"""Graph model construction, dossier aggregation and export."""

from .model import GraphNode, GraphEdge, GraphStats, GraphModel, VisibilityOptions
from .builder import GraphBuilder, GraphInputs, reports_in_scope
from .dossier import Dossier, build_dossier
from .export import to_networkx, to_dict

__all__ = [
    "GraphNode",
    "GraphEdge",
    "GraphStats",
    "GraphModel",
    "VisibilityOptions",
    "GraphBuilder",
    "GraphInputs",
    "reports_in_scope",
    "Dossier",
    "build_dossier",
    "to_networkx",
    "to_dict",
]
