"""
Zone Planner Module
Maps document positions onto named distribution zones with link quotas
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass


class ConfigurationError(ValueError):
    """Raised when distribution or scoring settings are invalid"""


def check_number(label: str, value: Any, integer: bool = False) -> None:
    """Raise ConfigurationError unless value is an int (or float when allowed)"""
    allowed = (int,) if integer else (int, float)
    # bool is an int subclass but never a valid count or percent
    if isinstance(value, bool) or not isinstance(value, allowed):
        kind = "an integer" if integer else "a number"
        raise ConfigurationError(f"{label} must be {kind}, got {value!r}")


@dataclass(frozen=True)
class DistributionZone:
    """A percentile range of the document with its own link quota"""
    name: str
    start_percent: float
    end_percent: float
    min_links: int = 0
    max_links: int = 1
    priority: int = 1  # lower is processed first

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise ConfigurationError(f"Zone name must be a non-empty string, got {self.name!r}")
        if self.start_percent is None or self.end_percent is None:
            raise ConfigurationError(f"Zone {self.name}: start_percent and end_percent are required")
        check_number(f"Zone {self.name}: start_percent", self.start_percent)
        check_number(f"Zone {self.name}: end_percent", self.end_percent)
        for label in ('min_links', 'max_links', 'priority'):
            check_number(f"Zone {self.name}: {label}", getattr(self, label), integer=True)
        if self.start_percent >= self.end_percent:
            raise ConfigurationError(
                f"Zone {self.name}: start_percent must be below end_percent"
            )
        if self.min_links < 0 or self.max_links < 0:
            raise ConfigurationError(f"Zone {self.name}: link quotas cannot be negative")
        if self.min_links > self.max_links:
            raise ConfigurationError(f"Zone {self.name}: min_links exceeds max_links")

    def contains(self, percent: float) -> bool:
        return self.start_percent <= percent < self.end_percent

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DistributionZone':
        if not isinstance(data, dict):
            raise ConfigurationError(f"Zone must be a mapping, got {data!r}")
        if 'name' not in data:
            raise ConfigurationError(f"Zone is missing a name: {data}")
        return cls(
            name=data['name'],
            start_percent=data.get('start_percent', data.get('startPercent')),
            end_percent=data.get('end_percent', data.get('endPercent')),
            min_links=data.get('min_links', data.get('minLinks', 0)),
            max_links=data.get('max_links', data.get('maxLinks', 1)),
            priority=data.get('priority', 1),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'start_percent': self.start_percent,
            'end_percent': self.end_percent,
            'min_links': self.min_links,
            'max_links': self.max_links,
            'priority': self.priority,
        }


DEFAULT_ZONES = [
    DistributionZone('INTRO', 0, 10, min_links=0, max_links=2, priority=5),
    DistributionZone('EARLY_BODY', 10, 30, min_links=2, max_links=3, priority=3),
    DistributionZone('MID_BODY', 30, 60, min_links=3, max_links=4, priority=1),
    DistributionZone('LATE_BODY', 60, 80, min_links=2, max_links=3, priority=2),
    DistributionZone('FAQ_CONCLUSION', 80, 100, min_links=2, max_links=3, priority=4),
]


class ZonePlanner:
    """
    Assigns block elements to distribution zones.

    Usage:
        planner = ZonePlanner(DEFAULT_ZONES)
        zone = planner.zone_for(42.0)
        by_zone = planner.assign(elements)
    """

    def __init__(self, zones: Optional[List[DistributionZone]] = None):
        self.zones = list(zones if zones is not None else DEFAULT_ZONES)
        if not self.zones:
            raise ConfigurationError("At least one distribution zone is required")
        names = [zone.name for zone in self.zones]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Zone names must be unique: {names}")

    def zone_for(self, percent: float) -> DistributionZone:
        """Return the first zone containing the percent, else the last zone"""
        for zone in self.zones:
            if zone.contains(percent):
                return zone
        return self.zones[-1]

    def assign(self, elements: List[Any]) -> Dict[str, List[Any]]:
        """
        Group elements by zone, computing each element's zone once.

        Args:
            elements: Objects with a position_percent attribute, in document order

        Returns:
            Dict of zone name to its elements, document order preserved
        """
        assignment = {zone.name: [] for zone in self.zones}
        for element in elements:
            assignment[self.zone_for(element.position_percent).name].append(element)
        return assignment

    def by_priority(self) -> List[DistributionZone]:
        """Zones sorted ascending by priority (stable)"""
        return sorted(self.zones, key=lambda z: z.priority)

    def empty_counters(self) -> Dict[str, int]:
        return {zone.name: 0 for zone in self.zones}

    @property
    def total_capacity(self) -> int:
        return sum(zone.max_links for zone in self.zones)
