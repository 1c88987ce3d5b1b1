"""
Polyline densification: evenly spaced points along a path of coordinates.

Distances are planar in degree units; no geodesic correction is applied.
"""

import math
from typing import Sequence

from ..constants import ARCSECONDS_PER_DEGREE, STEP_TOLERANCE, ErrorMessages
from ..errors import InsufficientPointsError
from .geometry import Coordinate


def _as_coordinate(point: Coordinate | Sequence[float]) -> Coordinate:
    if isinstance(point, Coordinate):
        return point
    return Coordinate(float(point[0]), float(point[1]))


def segment_steps(a: Coordinate, b: Coordinate, interval_arcsec: float) -> int:
    """Number of whole intervals between two points."""
    distance = math.sqrt(
        (b.latitude - a.latitude) ** 2 + (b.longitude - a.longitude) ** 2
    )
    step = interval_arcsec / ARCSECONDS_PER_DEGREE
    return int(math.floor(distance / step + STEP_TOLERANCE))


def coordinates_along_polygon(
    points: Sequence[Coordinate | Sequence[float]],
    interval_arcsec: float,
) -> list[Coordinate]:
    """
    Interpolate points every interval_arcsec along consecutive segments.

    Each segment A->B contributes A + (i/steps)(B - A) for i in 0..steps, so
    a vertex shared by two segments appears twice. A segment shorter than one
    interval contributes only A.

    Args:
        points: Ordered (latitude, longitude) vertices, at least 2
        interval_arcsec: Spacing in arcseconds

    Returns:
        Interpolated coordinates in path order
    """
    if len(points) < 2:
        raise InsufficientPointsError(ErrorMessages.INSUFFICIENT_POINTS.format(len(points)))
    if interval_arcsec <= 0:
        raise ValueError(ErrorMessages.INVALID_INTERVAL.format(interval_arcsec))

    vertices = [_as_coordinate(p) for p in points]
    result: list[Coordinate] = []

    for a, b in zip(vertices, vertices[1:]):
        steps = segment_steps(a, b, interval_arcsec)
        if steps == 0:
            result.append(a)
            continue

        d_lat = b.latitude - a.latitude
        d_lon = b.longitude - a.longitude
        for i in range(steps + 1):
            fraction = i / steps
            result.append(
                Coordinate(a.latitude + fraction * d_lat, a.longitude + fraction * d_lon)
            )

    return result
