"""
Vulnerability records attached to components by an external lookup.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any, List


@dataclass
class VulnerabilityRecord:
    """
    Opaque vulnerability finding for one component.

    The SBOM manager never looks these up itself. Callers supply them keyed
    by component identity (``name@version``) and the exporters render them.
    """

    cve_id: str
    severity: Optional[str] = None
    cvss_score: Optional[float] = None
    description: Optional[str] = None
    fixed_version: Optional[str] = None
    status: Optional[str] = None
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "cve_id": self.cve_id,
            "severity": self.severity,
            "cvss_score": self.cvss_score,
            "description": self.description,
            "fixed_version": self.fixed_version,
            "status": self.status
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VulnerabilityRecord':
        """
        Create a record from a dictionary.

        Accepts both snake_case keys and the camelCase keys used by
        vulnerability feeds (``cveId``, ``cvssScore``, ``fixedVersion``).
        """
        score = data.get("cvss_score", data.get("cvssScore"))
        return cls(
            cve_id=data.get("cve_id") or data.get("cveId") or "",
            severity=data.get("severity"),
            cvss_score=float(score) if score is not None else None,
            description=data.get("description"),
            fixed_version=data.get("fixed_version", data.get("fixedVersion")),
            status=data.get("status"),
            id=data.get("id")
        )


def parse_vulnerability_map(data: Dict[str, Any]) -> Dict[str, List[VulnerabilityRecord]]:
    """
    Build the per-component record map exporters consume.

    Args:
        data: Mapping of component identity ``name@version`` to a list of
            record dictionaries, as stored in a vulnerabilities JSON file

    Returns:
        Mapping of identity key to VulnerabilityRecord list

    Raises:
        ValueError: If the mapping or one of its entries has the wrong shape
    """
    if not isinstance(data, dict):
        raise ValueError("Vulnerability data must map component keys to record lists")

    records: Dict[str, List[VulnerabilityRecord]] = {}
    for key, entries in data.items():
        if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
            raise ValueError(f"Vulnerabilities for {key} must be a list of objects")
        records[key] = [VulnerabilityRecord.from_dict(entry) for entry in entries]
    return records
