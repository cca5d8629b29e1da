"""
Unit tests for keep-first component deduplication.
"""

from sbom_manager.consolidators import Deduplicator
from sbom_manager.models import Component


def make(name, version, license=None, origin="npm"):
    return Component(name=name, version=version, origin=origin, license=license)


class TestDeduplicator:
    """Tests for Deduplicator."""

    def test_keeps_first_occurrence(self):
        """Test the first component with a key wins, attributes and all."""
        components = [
            make("lodash", "4.17.21", license="MIT"),
            make("express", "4.18.2"),
            make("lodash", "4.17.21", license="Apache-2.0"),
        ]

        unique = Deduplicator().deduplicate(components)

        assert [c.identity_key for c in unique] == ["lodash@4.17.21", "express@4.18.2"]
        assert unique[0].license == "MIT"
        assert unique[0] is components[0]

    def test_versions_are_distinct(self):
        """Test two versions of one package both survive."""
        unique = Deduplicator().deduplicate([make("a", "1.0"), make("a", "2.0")])
        assert len(unique) == 2

    def test_idempotent(self):
        """Test deduplicating twice changes nothing."""
        deduplicator = Deduplicator()
        components = [make("a", "1"), make("b", "1"), make("a", "1"), make("c", "1")]

        once = deduplicator.deduplicate(components)
        twice = deduplicator.deduplicate(once)

        assert [c.identity_key for c in twice] == [c.identity_key for c in once]

    def test_empty_input(self):
        """Test an empty list stays empty."""
        assert Deduplicator().deduplicate([]) == []

    def test_find_duplicates(self):
        """Test duplicate groups are reported by key."""
        components = [make("a", "1"), make("b", "1"), make("a", "1", origin="pypi")]
        duplicates = Deduplicator().find_duplicates(components)

        assert list(duplicates) == ["a@1"]
        assert len(duplicates["a@1"]) == 2

    def test_analyze_duplication(self):
        """Test the duplication summary."""
        components = [make("a", "1"), make("a", "1"), make("a", "1"), make("b", "1")]
        analysis = Deduplicator().analyze_duplication(components)

        assert analysis["total_components"] == 4
        assert analysis["unique_components"] == 2
        assert analysis["duplicate_count"] == 2
        assert analysis["duplicates_by_origin"] == {"npm": 2}

    def test_statistics(self):
        """Test statistics accumulate and reset."""
        deduplicator = Deduplicator()
        deduplicator.deduplicate([make("a", "1"), make("a", "1")])
        stats = deduplicator.get_deduplication_statistics()

        assert stats["components_processed"] == 2
        assert stats["duplicates_found"] == 1

        deduplicator.reset_statistics()
        assert deduplicator.get_deduplication_statistics()["duplicates_found"] == 0
