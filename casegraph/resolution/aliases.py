"""
Alias Merge Engine

Turns analyst decisions on detected clusters into alias-map edits. Every
mutation reads the current alias map from the graph-state store and writes
a full replacement map back.

Re-pointing after a merge is a single pass: entries whose value is exactly
the merged variant move to the new target, deeper chains are left as they
are.
"""

from typing import AbstractSet, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from ..logging_config import get_audit_logger, get_logger
from ..store.interfaces import IGraphStateStore
from .clustering import Cluster, cluster_key

logger = get_logger(__name__)
audit = get_audit_logger()


def apply_merge(
    aliases: Dict[str, str],
    members: Iterable[str],
    target: str,
    excluded: AbstractSet[str] = frozenset(),
) -> List[Tuple[str, str]]:
    """
    Alias every included member onto ``target`` in place.

    Args:
        aliases: Alias map to edit
        members: Cluster members
        target: Canonical name the members merge into
        excluded: Members that stay distinct

    Returns:
        (variant, target) pairs that were written
    """
    written = []
    for variant in members:
        if variant == target or variant in excluded:
            continue

        aliases[variant] = target
        written.append((variant, target))

        for key in list(aliases):
            if aliases[key] == variant:
                aliases[key] = target

    # A re-point can land an entry on itself
    if aliases.get(target) == target:
        del aliases[target]

    return written


class AliasMergeEngine:
    """Applies merge, unmerge and ignore decisions to the alias map."""

    def __init__(self, store: IGraphStateStore):
        """Initialize the engine.

        Args:
            store: Graph-state store holding the alias map
        """
        self.store = store
        # Dismissed cluster keys live only as long as this engine
        self._ignored: Set[str] = set()

    @property
    def ignored_keys(self) -> FrozenSet[str]:
        return frozenset(self._ignored)

    def aliases(self) -> Dict[str, str]:
        """Snapshot of the current alias map."""
        return self.store.get().aliases

    def resolve(self, name: str) -> str:
        """Single alias lookup, falling back to ``name``."""
        return self.aliases().get(name, name)

    def merge_cluster(
        self,
        cluster: Cluster,
        target: Optional[str] = None,
        excluded: Optional[AbstractSet[str]] = None,
    ) -> Dict[str, str]:
        """
        Merge one cluster into its target.

        Args:
            cluster: Detected cluster
            target: Overrides the cluster's chosen target
            excluded: Overrides the cluster's exclusion set

        Returns:
            The new alias map
        """
        target = target if target is not None else cluster.target
        excluded = cluster.excluded if excluded is None else excluded
        excluded = set(excluded) - {target}

        state = self.store.get()
        aliases = dict(state.aliases)
        written = apply_merge(aliases, cluster.members, target, excluded)

        if written:
            self.store.update(aliases=aliases)
        audit.info(
            "alias_merge",
            cluster=cluster.key,
            target=target,
            variants=[variant for variant, _ in written],
            excluded=sorted(excluded),
        )
        logger.info(f"🔗 Merged {len(written)} variant(s) into '{target}'")
        return aliases

    def merge_all(self, clusters: Iterable[Cluster]) -> Dict[str, str]:
        """Merge every cluster with its own target and exclusions in one write."""
        clusters = list(clusters)
        state = self.store.get()
        aliases = dict(state.aliases)

        total = 0
        for cluster in clusters:
            excluded = set(cluster.excluded) - {cluster.target}
            written = apply_merge(aliases, cluster.members, cluster.target, excluded)
            total += len(written)
            audit.info(
                "alias_merge",
                cluster=cluster.key,
                target=cluster.target,
                variants=[variant for variant, _ in written],
                excluded=sorted(excluded),
                batch=True,
            )

        if total:
            self.store.update(aliases=aliases)
        audit.info("alias_merge_all", clusters=len(clusters), variants=total)
        logger.info(f"🔗 Merged {total} variant(s) across {len(clusters)} cluster(s)")
        return aliases

    def unmerge(self, variant: str) -> bool:
        """Delete the alias entry keyed by ``variant``; False if absent."""
        state = self.store.get()
        aliases = dict(state.aliases)
        if variant not in aliases:
            logger.debug(f"No alias entry for '{variant}'")
            return False

        previous = aliases.pop(variant)
        self.store.update(aliases=aliases)
        audit.info("alias_unmerge", variant=variant, previous_target=previous)
        return True

    def ignore_cluster(self, cluster: Cluster) -> str:
        """Dismiss this exact grouping for future detection runs."""
        key = cluster_key(cluster.members)
        self._ignored.add(key)
        audit.info("cluster_ignored", cluster=key)
        return key

