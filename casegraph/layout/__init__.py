"""Layout loop and interaction state for the investigation graph."""

from .interfaces import ILayoutLoop
from .simulation import ForceSimulation, node_radius
from .linking import LinkingController, LinkRequest, LinkState

__all__ = [
    "ILayoutLoop",
    "ForceSimulation",
    "node_radius",
    "LinkingController",
    "LinkRequest",
    "LinkState",
]
