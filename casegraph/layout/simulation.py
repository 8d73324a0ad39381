"""
Force-directed layout.

A velocity-Verlet style simulation over the nodes of a built GraphModel:
many-body repulsion, spring links toward a target distance, weak centering
on both axes, and circle collision. Energy (``alpha``) decays toward
``alpha_target`` each tick and the loop stops once it falls below
``alpha_min``.

Node positions are mutated in place. One simulation owns its node objects;
stop it before starting another over the same model.
"""

import math
import random
from typing import Callable, Dict, List, Optional

from ..config import GraphConfig, LayoutConfig
from ..logging_config import get_logger, log_event
from ..models import NodeKind
from ..graph.model import GraphEdge, GraphModel, GraphNode
from .interfaces import ILayoutLoop, TickListener

logger = get_logger(__name__)


def node_radius(node: GraphNode, config: Optional[GraphConfig] = None) -> float:
    """Drawn radius: fixed for CASE nodes, growing with degree for ENTITY nodes."""
    cfg = config or GraphConfig()
    if node.kind == NodeKind.CASE:
        return cfg.case_radius
    return min(
        cfg.entity_base_radius + node.connection_count * cfg.entity_radius_per_connection,
        cfg.entity_max_radius,
    )


class ForceSimulation(ILayoutLoop):
    """Force simulation over a graph model's nodes and edges."""

    def __init__(
        self,
        model: GraphModel,
        config: Optional[LayoutConfig] = None,
        seed: Optional[int] = None,
    ):
        """Initialize the simulation.

        Args:
            model: Built graph; nodes without positions are placed near the center
            config: Force and cooling parameters
            seed: Seed for initial jitter and tie-breaking nudges
        """
        self.config = config or LayoutConfig()
        self.nodes: List[GraphNode] = model.nodes
        self._random = random.Random(seed)

        self._by_id: Dict[str, GraphNode] = {n.id: n for n in self.nodes}
        self.links: List[GraphEdge] = [
            e for e in model.edges
            if e.source_id != e.target_id
            and e.source_id in self._by_id and e.target_id in self._by_id
        ]

        self.alpha = self.config.alpha
        self.alpha_target = self.config.alpha_target
        self.tick_count = 0

        self._running = False
        self._listeners: List[TickListener] = []

        self._place_nodes()
        self._init_links()

    def _place_nodes(self) -> None:
        cfg = self.config
        cx, cy = cfg.width / 2, cfg.height / 2
        for node in self.nodes:
            if node.x is None:
                node.x = cx + (self._random.random() - 0.5) * cfg.jitter
            if node.y is None:
                node.y = cy + (self._random.random() - 0.5) * cfg.jitter

    def _init_links(self) -> None:
        degree: Dict[str, int] = {n.id: 0 for n in self.nodes}
        for link in self.links:
            degree[link.source_id] += 1
            degree[link.target_id] += 1

        self._link_strength = []
        self._link_bias = []
        for link in self.links:
            s, t = degree[link.source_id], degree[link.target_id]
            self._link_strength.append(1 / min(s, t))
            self._link_bias.append(s / (s + t))

    def _jiggle(self) -> float:
        return (self._random.random() - 0.5) * 1e-6

    # ILayoutLoop

    def start(self) -> None:
        self._running = True
        log_event(__name__, "layout_started", nodes=len(self.nodes), links=len(self.links))

    def stop(self) -> None:
        if self._running:
            self._running = False
            log_event(__name__, "layout_stopped", ticks=self.tick_count, alpha=self.alpha)

    def on_tick(self, callback: TickListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    @property
    def is_running(self) -> bool:
        return self._running

    # Driving

    def step(self) -> bool:
        """Advance one tick if running; returns whether still running."""
        if not self._running:
            return False

        self.tick()
        for listener in list(self._listeners):
            listener()

        if self.alpha < self.config.alpha_min and self.alpha_target < self.config.alpha_min:
            self.stop()
        return self._running

    def run(self, max_ticks: int = 300) -> int:
        """Start and step until cooled or ``max_ticks``; returns ticks taken."""
        self.start()
        ticks = 0
        while ticks < max_ticks and self.step():
            ticks += 1
        self.stop()
        return ticks

    def tick(self) -> None:
        """Apply every force once and integrate positions."""
        cfg = self.config
        self.alpha += (self.alpha_target - self.alpha) * cfg.alpha_decay

        self._apply_links()
        self._apply_charge()
        self._apply_centering()
        for _ in range(cfg.collide_iterations):
            self._apply_collide()

        for node in self.nodes:
            if node.fx is not None:
                node.x = node.fx
                node.vx = 0.0
            else:
                node.vx *= 1 - cfg.velocity_decay
                node.x += node.vx
            if node.fy is not None:
                node.y = node.fy
                node.vy = 0.0
            else:
                node.vy *= 1 - cfg.velocity_decay
                node.y += node.vy

        self.tick_count += 1

    # Forces

    def _apply_links(self) -> None:
        distance = self.config.link_distance
        for link, strength, bias in zip(self.links, self._link_strength, self._link_bias):
            source = self._by_id[link.source_id]
            target = self._by_id[link.target_id]

            dx = target.x + target.vx - source.x - source.vx or self._jiggle()
            dy = target.y + target.vy - source.y - source.vy or self._jiggle()
            length = math.sqrt(dx * dx + dy * dy)
            length = (length - distance) / length * self.alpha * strength
            dx *= length
            dy *= length

            target.vx -= dx * bias
            target.vy -= dy * bias
            source.vx += dx * (1 - bias)
            source.vy += dy * (1 - bias)

    def _apply_charge(self) -> None:
        strength = self.config.charge_strength * self.alpha
        nodes = self.nodes
        for i, node in enumerate(nodes):
            for other in nodes[i + 1:]:
                dx = other.x - node.x or self._jiggle()
                dy = other.y - node.y or self._jiggle()
                dist2 = max(dx * dx + dy * dy, 1.0)
                w = strength / dist2
                node.vx += dx * w
                node.vy += dy * w
                other.vx -= dx * w
                other.vy -= dy * w

    def _apply_centering(self) -> None:
        cfg = self.config
        cx, cy = cfg.width / 2, cfg.height / 2
        k = cfg.centering_strength * self.alpha
        for node in self.nodes:
            node.vx += (cx - node.x) * k
            node.vy += (cy - node.y) * k

    def _apply_collide(self) -> None:
        radius = self.config.collide_radius
        min_dist = radius * 2
        nodes = self.nodes
        for i, node in enumerate(nodes):
            for other in nodes[i + 1:]:
                dx = (node.x + node.vx) - (other.x + other.vx)
                dy = (node.y + node.vy) - (other.y + other.vy)
                dist2 = dx * dx + dy * dy
                if dist2 >= min_dist * min_dist:
                    continue
                if dx == 0:
                    dx = self._jiggle()
                if dy == 0:
                    dy = self._jiggle()
                dist = math.sqrt(dx * dx + dy * dy)
                push = (min_dist - dist) / dist * 0.5
                node.vx += dx * push
                node.vy += dy * push
                other.vx -= dx * push
                other.vy -= dy * push

    # Dragging

    def drag_start(self, node_id: str) -> None:
        """Pin a node at its position and reheat the simulation."""
        node = self._by_id.get(node_id)
        if node is None:
            return
        self.alpha_target = self.config.drag_alpha_target
        if not self._running:
            self.start()
        node.fx, node.fy = node.x, node.y

    def drag(self, node_id: str, x: float, y: float) -> None:
        node = self._by_id.get(node_id)
        if node is None:
            return
        node.fx, node.fy = x, y

    def drag_end(self, node_id: str) -> None:
        """Release a pinned node and let the simulation cool."""
        node = self._by_id.get(node_id)
        if node is None:
            return
        self.alpha_target = self.config.alpha_target
        node.fx, node.fy = None, None
