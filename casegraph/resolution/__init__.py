"""Entity resolution: canonical names, matching, clustering and aliases."""

from .canonical import core_name, tokens, normalize_id, clean_entity_name
from .matching import NameMatcher, MatchResult, MatchStrategy, is_likely_same_entity
from .clustering import Cluster, ClusterDetector, UnionFind, cluster_key
from .aliases import AliasMergeEngine
from .normalizer import EntityNormalizer

__all__ = [
    "core_name",
    "tokens",
    "normalize_id",
    "clean_entity_name",
    "NameMatcher",
    "MatchResult",
    "MatchStrategy",
    "is_likely_same_entity",
    "Cluster",
    "ClusterDetector",
    "UnionFind",
    "cluster_key",
    "AliasMergeEngine",
    "EntityNormalizer",
]
