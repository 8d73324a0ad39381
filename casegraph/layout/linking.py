"""Linking-mode state machine for creating manual connections by clicking."""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..logging_config import get_logger
from ..graph.model import GraphNode

logger = get_logger(__name__)


class LinkState(Enum):
    IDLE = "idle"
    AWAITING_TARGET = "awaiting_target"


@dataclass(frozen=True)
class LinkRequest:
    """Request to connect two nodes with a manual connection."""
    source_id: str
    target_id: str


class LinkingController:
    """
    Turns node clicks into manual-connection requests.

    With linking mode on, the first click picks a source and the second
    click on a different node emits a request. Clicking the source again
    cancels. With linking mode off, clicks select a node for inspection.
    """

    def __init__(self, on_link: Optional[Callable[[LinkRequest], None]] = None):
        """Initialize the controller.

        Args:
            on_link: Called with each emitted request
        """
        self.on_link = on_link
        self.linking_mode = False
        self.state = LinkState.IDLE
        self.pending_source: Optional[GraphNode] = None
        self.selected: Optional[GraphNode] = None

    def _reset(self) -> None:
        self.state = LinkState.IDLE
        self.pending_source = None

    def toggle_linking_mode(self) -> bool:
        """Flip linking mode; either way no source is pending afterwards."""
        self.set_linking_mode(not self.linking_mode)
        return self.linking_mode

    def set_linking_mode(self, enabled: bool) -> None:
        self.linking_mode = enabled
        self._reset()

    def is_pending_source(self, node_id: str) -> bool:
        """True for the node to highlight as the pending link source."""
        return self.pending_source is not None and self.pending_source.id == node_id

    def click(self, node: GraphNode) -> Optional[LinkRequest]:
        """
        Handle a click on a node.

        Returns:
            The emitted link request, if this click completed a link
        """
        if not self.linking_mode:
            self.selected = node
            return None

        if self.state == LinkState.IDLE:
            self.pending_source = node
            self.state = LinkState.AWAITING_TARGET
            return None

        if self.pending_source.id == node.id:
            logger.debug(f"Link from {node.id} cancelled")
            self._reset()
            return None

        request = LinkRequest(self.pending_source.id, node.id)
        self._reset()
        if self.on_link is not None:
            self.on_link(request)
        return request

    def click_background(self) -> None:
        """Click on empty canvas: closes node inspection outside linking mode."""
        if not self.linking_mode:
            self.selected = None
