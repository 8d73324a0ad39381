"""Export a built graph model to networkx or a JSON-ready payload."""

from typing import Any, Dict

import networkx as nx

from .model import GraphModel


def to_networkx(model: GraphModel) -> nx.Graph:
    """Convert a graph model to an undirected networkx graph."""
    graph = nx.Graph()

    for node in model.nodes:
        graph.add_node(
            node.id,
            kind=node.kind.value,
            subtype=node.subtype.value if node.subtype else None,
            label=node.label,
            connection_count=node.connection_count,
            is_manual=node.is_manual,
        )

    for edge in model.edges:
        graph.add_edge(
            edge.source_id,
            edge.target_id,
            weight=edge.weight,
            is_manual=edge.is_manual,
        )

    graph.graph.update(model.stats.to_dict())
    return graph


def to_dict(model: GraphModel) -> Dict[str, Any]:
    """Payload with ``nodes``, ``edges`` and ``stats`` for a presentation surface."""
    return {
        "nodes": [node.to_dict() for node in model.nodes],
        "edges": [edge.to_dict() for edge in model.edges],
        "stats": model.stats.to_dict(),
    }
