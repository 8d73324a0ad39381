"""
Cluster Detection

Groups entity names that likely denote the same real-world entity. Every
unordered pair of alias-resolved names goes through the matcher and matches
are joined transitively with a union-find, so A~B and B~C yield {A, B, C}.

Pair comparison is O(n^2) in the number of unique names. Universes larger
than ``ClusteringConfig.max_universe_size`` are skipped with a warning.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Set, AbstractSet

from ..config import ClusteringConfig, MatchingConfig
from ..logging_config import get_logger, log_performance, Timer
from .matching import CanonicalForm, NameMatcher

logger = get_logger(__name__)

CLUSTER_KEY_SEPARATOR = "::"


def cluster_key(members: Iterable[str]) -> str:
    """Stable key of a grouping: sorted members joined by ``::``."""
    return CLUSTER_KEY_SEPARATOR.join(sorted(members))


class UnionFind:
    """Disjoint-set forest with path compression and union by size."""

    def __init__(self, items: Iterable[str]):
        self.parent: Dict[str, str] = {}
        self.size: Dict[str, int] = {}
        for item in items:
            self.parent[item] = item
            self.size[item] = 1

    def find(self, item: str) -> str:
        root = item
        while self.parent[root] != root:
            root = self.parent[root]
        # Compress the walked path onto the root
        while self.parent[item] != root:
            self.parent[item], item = root, self.parent[item]
        return root

    def union(self, a: str, b: str) -> bool:
        """Join the sets of ``a`` and ``b``; False if already joined."""
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a == root_b:
            return False
        if self.size[root_a] < self.size[root_b]:
            root_a, root_b = root_b, root_a
        self.parent[root_b] = root_a
        self.size[root_a] += self.size[root_b]
        return True

    def groups(self) -> List[List[str]]:
        """Members grouped by root, in first-seen order."""
        grouped: Dict[str, List[str]] = {}
        for item in self.parent:
            grouped.setdefault(self.find(item), []).append(item)
        return list(grouped.values())


@dataclass
class Cluster:
    """
    A detected group of two or more names judged to be one entity.

    ``members`` are kept in sorted order. The merge target is always
    included; any other member can be excluded from the merge.
    """

    members: List[str]
    target: str
    excluded: Set[str] = field(default_factory=set)

    @classmethod
    def from_members(cls, members: Iterable[str]) -> "Cluster":
        ordered = sorted(members)
        return cls(members=ordered, target=default_target(ordered))

    @property
    def key(self) -> str:
        return cluster_key(self.members)

    def select_target(self, name: str) -> bool:
        """Choose another member as the merge target."""
        if name not in self.members:
            return False
        self.target = name
        self.excluded.discard(name)
        return True

    def toggle_exclusion(self, variant: str) -> bool:
        """Flip whether ``variant`` takes part in the merge.

        Returns the new inclusion state. The target cannot be excluded.
        """
        if variant not in self.members or variant == self.target:
            return True
        if variant in self.excluded:
            self.excluded.remove(variant)
            return True
        self.excluded.add(variant)
        return False

    def is_included(self, variant: str) -> bool:
        return variant == self.target or variant not in self.excluded

    def variants_to_merge(self) -> List[str]:
        """Members that will be aliased onto the target."""
        return [m for m in self.members if m != self.target and m not in self.excluded]

    def __len__(self) -> int:
        return len(self.members)


def default_target(members: List[str]) -> str:
    """Longest member; the first one wins a length tie."""
    best = members[0]
    for member in members[1:]:
        if len(member) > len(best):
            best = member
    return best


def resolve_universe(names: Iterable[str], aliases: Mapping[str, str]) -> List[str]:
    """Unique alias-resolved names in first-seen order (one lookup each)."""
    return list(dict.fromkeys(aliases.get(name, name) for name in names))


class ClusterDetector:
    """
    Detects clusters of likely-duplicate entity names.

    Runs are deterministic: the same names, aliases and ignore set always
    produce the same clusters in the same order with the same targets.
    """

    def __init__(
        self,
        matcher: Optional[NameMatcher] = None,
        config: Optional[ClusteringConfig] = None,
        matching_config: Optional[MatchingConfig] = None,
    ):
        """Initialize the detector."""
        self.matcher = matcher or NameMatcher(matching_config)
        self.config = config or ClusteringConfig()

        self.stats = {
            "runs": 0,
            "skipped_runs": 0,
            "comparisons": 0,
            "clusters_found": 0,
        }

    def detect(
        self,
        names: Iterable[str],
        aliases: Optional[Mapping[str, str]] = None,
        ignored: Optional[AbstractSet[str]] = None,
    ) -> List[Cluster]:
        """
        Detect clusters among raw entity names.

        Args:
            names: Entity names as they appear in reports; duplicates allowed
            aliases: Variant -> canonical alias map
            ignored: Cluster keys the analyst dismissed earlier

        Returns:
            Clusters of size >= 2, excluding ignored groupings
        """
        aliases = aliases or {}
        ignored = ignored or set()
        universe = resolve_universe(names, aliases)

        self.stats["runs"] += 1
        limit = self.config.max_universe_size
        if limit is not None and len(universe) > limit:
            self.stats["skipped_runs"] += 1
            logger.warning(
                f"Skipping cluster detection: {len(universe)} unique names exceeds "
                f"max_universe_size={limit}"
            )
            return []

        with Timer() as timer:
            forms = [CanonicalForm.of(name) for name in universe]
            union_find = UnionFind(universe)
            comparisons = 0

            for i, form_a in enumerate(forms):
                for form_b in forms[i + 1:]:
                    comparisons += 1
                    if self.matcher.match_forms(form_a, form_b).matched:
                        union_find.union(form_a.raw, form_b.raw)

            clusters = []
            for group in union_find.groups():
                if len(group) < 2:
                    continue
                cluster = Cluster.from_members(group)
                if cluster.key in ignored:
                    continue
                clusters.append(cluster)

        self.stats["comparisons"] += comparisons
        self.stats["clusters_found"] += len(clusters)

        log_performance(
            __name__,
            "cluster_detection",
            timer.duration_ms,
            universe_size=len(universe),
            comparisons=comparisons,
            clusters=len(clusters),
        )
        return clusters
