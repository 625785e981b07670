"""
Journey assembly.

A journey is the bear's origin followed by every committed sighting report,
ordered by the store-assigned creation timestamp. Reports are plain dicts as
returned by the store (``latitude``, ``longitude``, ``created_at`` ...).

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

Point = Tuple[float, float]


def is_number(value: Any) -> bool:
    """Check that a value is a real, finite number (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def has_coordinates(report: Dict[str, Any]) -> bool:
    """Check if a report carries a numeric latitude/longitude pair."""
    return is_number(report.get("latitude")) and is_number(report.get("longitude"))


def origin_point(bear: Dict[str, Any]) -> Point:
    """Get the (latitude, longitude) origin of a bear."""
    return float(bear["initial_latitude"]), float(bear["initial_longitude"])


@dataclass(frozen=True)
class Journey:
    """Origin plus time-ordered reports for one bear.

    Attributes:
        origin: Origin (latitude, longitude).
        stops: Committed reports, oldest first.
    """

    origin: Point
    stops: Tuple[Dict[str, Any], ...] = ()

    @property
    def points(self) -> List[Point]:
        """Path points: origin then every stop with usable coordinates."""
        return [self.origin] + [
            (r["latitude"], r["longitude"]) for r in self.stops if has_coordinates(r)
        ]

    @property
    def latest(self) -> Optional[Dict[str, Any]]:
        """Most recent stop that can be placed on a map."""
        for report in reversed(self.stops):
            if has_coordinates(report):
                return report
        return None

    @property
    def current_location(self) -> Point:
        return self.points[-1]

    def __len__(self) -> int:
        return 1 + len(self.stops)


def assemble_journey(origin: Point, reports: Sequence[Dict[str, Any]]) -> Journey:
    """Build a journey from an origin and the full set of a bear's reports.

    Reports without a ``created_at`` timestamp (not yet committed by the store)
    are left out. Sorting is stable, so equal timestamps keep the store's order.

    Args:
        origin: Origin (latitude, longitude).
        reports: All reports for the bear, in any order.

    Returns:
        The assembled Journey.
    """
    committed = [r for r in reports if r.get("created_at") is not None]
    committed.sort(key=lambda r: r["created_at"])
    return Journey(origin=(float(origin[0]), float(origin[1])), stops=tuple(committed))


def journey_for_bear(bear: Dict[str, Any], reports: Sequence[Dict[str, Any]]) -> Journey:
    return assemble_journey(origin_point(bear), reports)


def journey_to_dict(journey: Journey) -> Dict[str, Any]:
    """Serialise a journey for the JSON API.

    ``points`` holds only placeable coordinates; ``report_count`` counts every
    timestamped report, placeable or not.
    """
    return {
        "points": [list(p) for p in journey.points],
        "current": list(journey.current_location),
        "report_count": len(journey.stops),
    }
