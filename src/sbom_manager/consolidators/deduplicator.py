"""
Component deduplicator enforcing the keep-first rule.
"""

import logging
from typing import List, Dict, Any
from collections import defaultdict

from ..models import Component

logger = logging.getLogger(__name__)


class Deduplicator:
    """
    Removes duplicate components by identity key ``name@version``.

    The first occurrence wins and later ones are discarded whole; no fields
    are merged. Input order therefore matters, and the ingestion pipeline
    hands components over in file order.
    """

    def __init__(self):
        """Initialize the deduplicator."""
        self._deduplication_statistics = {
            "components_processed": 0,
            "duplicates_found": 0,
            "unique_components": 0
        }

    def deduplicate(self, components: List[Component]) -> List[Component]:
        """
        Keep only the first occurrence of each identity key.

        Args:
            components: Components in ingestion order

        Returns:
            Unique components, in order of first appearance
        """
        if not components:
            return []

        seen_keys = set()
        unique_components = []
        duplicates_found = 0

        for component in components:
            key = component.identity_key

            if key not in seen_keys:
                seen_keys.add(key)
                unique_components.append(component)
            else:
                duplicates_found += 1
                logger.debug(f"Discarding duplicate component {key}")

        self._deduplication_statistics["components_processed"] += len(components)
        self._deduplication_statistics["duplicates_found"] += duplicates_found
        self._deduplication_statistics["unique_components"] += len(unique_components)

        logger.info(f"Deduplication complete: {len(components)} -> {len(unique_components)} "
                    f"({duplicates_found} duplicates discarded)")

        return unique_components

    def find_duplicates(self, components: List[Component]) -> Dict[str, List[Component]]:
        """
        Group components that share an identity key.

        Args:
            components: Components to inspect

        Returns:
            Mapping of identity key to every occurrence, for keys seen more than once
        """
        groups: Dict[str, List[Component]] = defaultdict(list)
        for component in components:
            groups[component.identity_key].append(component)
        return {key: group for key, group in groups.items() if len(group) > 1}

    def analyze_duplication(self, components: List[Component]) -> Dict[str, Any]:
        """
        Summarize duplication without changing anything.

        Returns:
            Totals plus the duplicated keys grouped by origin tag
        """
        duplicates = self.find_duplicates(components)
        by_origin: Dict[str, int] = defaultdict(int)
        for group in duplicates.values():
            by_origin[group[0].origin] += len(group) - 1

        total_duplicates = sum(len(group) - 1 for group in duplicates.values())
        return {
            "total_components": len(components),
            "unique_components": len(components) - total_duplicates,
            "duplicate_count": total_duplicates,
            "duplicated_keys": sorted(duplicates),
            "duplicates_by_origin": dict(by_origin)
        }

    def get_deduplication_statistics(self) -> Dict[str, Any]:
        """Get deduplication statistics."""
        return self._deduplication_statistics.copy()

    def reset_statistics(self) -> None:
        """Reset deduplication statistics."""
        self._deduplication_statistics = {
            "components_processed": 0,
            "duplicates_found": 0,
            "unique_components": 0
        }
