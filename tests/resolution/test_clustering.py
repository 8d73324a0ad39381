"""Tests for union-find cluster detection."""

import logging

import pytest

from casegraph.config import ClusteringConfig
from casegraph.resolution.clustering import (
    Cluster,
    ClusterDetector,
    UnionFind,
    cluster_key,
    default_target,
    resolve_universe,
)
from casegraph.resolution.matching import NameMatcher


@pytest.fixture
def detector():
    return ClusterDetector()


class TestUnionFind:
    def test_transitive_union(self):
        uf = UnionFind(["a", "b", "c", "d"])
        uf.union("a", "b")
        uf.union("c", "d")
        uf.union("b", "d")

        assert uf.find("a") == uf.find("c")
        assert uf.groups() == [["a", "b", "c", "d"]]

    def test_union_of_joined_sets_returns_false(self):
        uf = UnionFind(["a", "b"])
        assert uf.union("a", "b") is True
        assert uf.union("b", "a") is False

    def test_groups_in_first_seen_order(self):
        uf = UnionFind(["x", "a", "y", "b"])
        uf.union("a", "b")
        assert uf.groups() == [["x"], ["a", "b"], ["y"]]


class TestCluster:
    """Tests for cluster targets and exclusions."""

    def test_members_sorted_and_key(self):
        cluster = Cluster.from_members(["Atlas Holdings Inc.", "Atlas Holdings"])
        assert cluster.members == ["Atlas Holdings", "Atlas Holdings Inc."]
        assert cluster.key == "Atlas Holdings::Atlas Holdings Inc."

    def test_default_target_is_longest(self):
        cluster = Cluster.from_members(["Atlas Holdings", "Atlas Holdings Inc."])
        assert cluster.target == "Atlas Holdings Inc."

    def test_length_tie_goes_to_first_member(self):
        assert default_target(["abcd", "wxyz"]) == "abcd"
        assert Cluster.from_members(["wxyz", "abcd"]).target == "abcd"

    def test_toggle_exclusion(self):
        cluster = Cluster.from_members(["Jon Smith", "John Smith", "J. Smith"])
        assert cluster.toggle_exclusion("J. Smith") is False
        assert not cluster.is_included("J. Smith")
        assert cluster.variants_to_merge() == ["Jon Smith"]

        assert cluster.toggle_exclusion("J. Smith") is True
        assert cluster.is_included("J. Smith")

    def test_target_cannot_be_excluded(self):
        cluster = Cluster.from_members(["Jon Smith", "John Smith"])
        assert cluster.toggle_exclusion(cluster.target) is True
        assert cluster.excluded == set()

    def test_selecting_excluded_member_as_target_includes_it(self):
        cluster = Cluster.from_members(["Jon Smith", "John Smith"])
        cluster.toggle_exclusion("Jon Smith")
        assert cluster.select_target("Jon Smith")
        assert cluster.target == "Jon Smith"
        assert cluster.is_included("Jon Smith")

    def test_select_target_outside_cluster(self):
        cluster = Cluster.from_members(["Jon Smith", "John Smith"])
        assert not cluster.select_target("Someone Else")
        assert cluster.target == "John Smith"


def test_resolve_universe_uses_one_lookup():
    names = ["a", "b", "c", "a"]
    aliases = {"a": "b", "b": "c"}
    # "a" resolves to "b" only; the chain is not followed
    assert resolve_universe(names, aliases) == ["b", "c"]


class TestClusterDetector:
    """Tests for detection runs."""

    def test_containment_pair(self, detector):
        clusters = detector.detect(["Atlas Holdings Inc.", "Atlas Holdings"])

        assert len(clusters) == 1
        assert clusters[0].members == ["Atlas Holdings", "Atlas Holdings Inc."]
        assert clusters[0].target == "Atlas Holdings Inc."

    def test_equal_core_names_cluster_together(self, detector):
        clusters = detector.detect(["ShadowCorp", "Helios Energy", "**shadowcorp**"])
        assert [c.members for c in clusters] == [["**shadowcorp**", "ShadowCorp"]]

    def test_transitive_grouping(self, detector):
        names = ["North Atlantic", "North Atlantic Trading", "Atlantic Trading"]
        assert not NameMatcher().is_match("North Atlantic", "Atlantic Trading")

        clusters = detector.detect(names)

        assert len(clusters) == 1
        assert set(clusters[0].members) == set(names)
        assert clusters[0].target == "North Atlantic Trading"

    def test_singletons_are_dropped(self, detector):
        assert detector.detect(["Helios Energy", "Maria Lopez"]) == []

    def test_duplicates_do_not_matter(self, detector):
        once = detector.detect(["Atlas Holdings", "Atlas Holdings Inc."])
        repeated = detector.detect(["Atlas Holdings"] * 3 + ["Atlas Holdings Inc."] * 2)
        assert [c.members for c in once] == [c.members for c in repeated]

    def test_operates_on_alias_resolved_names(self, detector):
        clusters = detector.detect(
            ["A Corp", "ACorp Global", "ACorp Globale"],
            aliases={"A Corp": "ACorp Global"},
        )

        assert len(clusters) == 1
        assert clusters[0].members == ["ACorp Global", "ACorp Globale"]
        assert clusters[0].target == "ACorp Globale"

    def test_ignored_grouping_is_dropped(self, detector):
        ignored = {cluster_key(["Atlas Holdings", "Atlas Holdings Inc."])}
        clusters = detector.detect(
            ["Atlas Holdings Inc.", "Atlas Holdings", "Maria Lopez", "maria lopez"],
            ignored=ignored,
        )
        assert [c.key for c in clusters] == ["Maria Lopez::maria lopez"]

    def test_ignoring_is_exact_grouping_only(self, detector):
        ignored = {cluster_key(["Atlas Holdings", "Atlas Holdings Inc."])}
        clusters = detector.detect(
            ["Atlas Holdings Inc.", "Atlas Holdings", "ATLAS HOLDINGS"],
            ignored=ignored,
        )
        assert len(clusters) == 1
        assert len(clusters[0]) == 3

    def test_cluster_order_follows_first_member(self, detector):
        clusters = detector.detect(
            ["Maria Lopez", "Atlas Holdings", "maria lopez", "Atlas Holdings Inc."]
        )
        assert [c.key for c in clusters] == [
            "Maria Lopez::maria lopez",
            "Atlas Holdings::Atlas Holdings Inc.",
        ]

    def test_idempotent(self, detector):
        names = [
            "Atlas Holdings Inc.", "Atlas Holdings", "Jonathan Smyth",
            "Jonathon Smyth", "Helios Energy", "ShadowCorp", "Shadow Corp.",
        ]
        first = detector.detect(names, {"Shadow Corp.": "ShadowCorp"})
        second = detector.detect(names, {"Shadow Corp.": "ShadowCorp"})

        assert [(c.members, c.target) for c in first] == [(c.members, c.target) for c in second]

    def test_clusters_are_disjoint(self, detector):
        names = [
            "Atlas Holdings Inc.", "Atlas Holdings", "ATLAS HOLDINGS", "Jonathan Smyth",
            "Jonathon Smyth", "North Atlantic", "North Atlantic Trading",
            "Atlantic Trading", "Helios Energy", "Helios Energy Ltd",
        ]
        clusters = detector.detect(names)

        seen = [m for c in clusters for m in c.members]
        assert len(seen) == len(set(seen))
        assert all(len(c) >= 2 for c in clusters)

    def test_universe_guardrail(self, caplog):
        detector = ClusterDetector(config=ClusteringConfig(max_universe_size=2))

        with caplog.at_level(logging.WARNING):
            clusters = detector.detect(["Atlas Holdings", "Atlas Holdings Inc.", "Helios"])

        assert clusters == []
        assert detector.stats["skipped_runs"] == 1
        assert "max_universe_size=2" in caplog.text

    def test_guardrail_disabled(self):
        detector = ClusterDetector(config=ClusteringConfig(max_universe_size=None))
        assert len(detector.detect(["Atlas Holdings", "Atlas Holdings Inc.", "Helios"])) == 1

    def test_stats(self, detector):
        detector.detect(["Atlas Holdings", "Atlas Holdings Inc.", "Helios"])
        assert detector.stats["runs"] == 1
        assert detector.stats["comparisons"] == 3
        assert detector.stats["clusters_found"] == 1
