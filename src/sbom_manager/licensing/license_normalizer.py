"""
Maps free-form license strings to SPDX identifiers.
"""

import logging
import re
from typing import Optional

from .license_data import LicenseCatalog, default_catalog

logger = logging.getLogger(__name__)

UNKNOWN_LICENSE = "UNKNOWN"

_WHITESPACE = re.compile(r"\s+")


class LicenseNormalizer:
    """
    Normalizes raw license strings against a LicenseCatalog.

    The cascade stops at the first match: exact identifier, alias,
    case-insensitive identifier or full name, then substring containment in
    either direction in table order. Anything else is ``UNKNOWN``. The
    result is always a catalog identifier or ``UNKNOWN``, so normalizing
    twice gives the same answer.
    """

    def __init__(self, catalog: Optional[LicenseCatalog] = None):
        self.catalog = catalog or default_catalog()

    def normalize(self, raw: Optional[str]) -> str:
        """
        Normalize a license string.

        Args:
            raw: License text as found in a manifest, may be None

        Returns:
            SPDX identifier from the catalog, or ``UNKNOWN``
        """
        if not raw:
            return UNKNOWN_LICENSE

        cleaned = _WHITESPACE.sub(" ", raw.strip())
        if not cleaned:
            return UNKNOWN_LICENSE

        if cleaned in self.catalog.licenses:
            return cleaned

        alias = self.catalog.aliases.get(cleaned)
        if alias:
            return alias

        upper = cleaned.upper()
        for spdx_id, info in self.catalog.licenses.items():
            if spdx_id.upper() == upper or info.name.upper() == upper:
                return spdx_id

        # Ambiguous: "LGPL-3.0-or-later" resolves to GPL-3.0 here
        for spdx_id in self.catalog.licenses:
            candidate = spdx_id.upper()
            if candidate in upper or upper in candidate:
                return spdx_id

        logger.debug(f"Unrecognized license string: {cleaned}")
        return UNKNOWN_LICENSE


def normalize_license(raw: Optional[str], catalog: Optional[LicenseCatalog] = None) -> str:
    """Normalize a license string with the given or default catalog."""
    return LicenseNormalizer(catalog).normalize(raw)
