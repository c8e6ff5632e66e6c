"""
Blue Whale Backend: Geographic Helpers
========================================

What:  Great-circle distance in Python and as a SQL expression, radius
       conversions, and a bounding box used to prefilter radius queries.
Who:   DiscoveryService (local feed, personalized feed, search filter).

How a radius filter is built:
    1. bounding_box() gives a lat/lon rectangle that contains the circle;
       these plain comparisons can use idx_contents_location.
    2. distance_km_expr() computes the haversine distance in SQL for the
       rows inside the rectangle; rows farther than the radius are dropped.

Coordinates are always WGS84 degrees. Public APIs take (longitude, latitude)
in GeoJSON order only where the payload is GeoJSON; everything in this module
is keyword-friendly (lat, lon) to avoid swapped arguments.
"""

import math
from typing import NamedTuple, Optional

from sqlalchemy import and_, func
from sqlalchemy.sql.elements import ColumnElement

# Mean earth radius used for radian <-> km conversion
EARTH_RADIUS_KM = 6371.0


class BoundingBox(NamedTuple):
    min_lat: float
    max_lat: float
    # None when the box wraps the antimeridian or reaches a pole
    min_lon: Optional[float]
    max_lon: Optional[float]


def km_to_radians(radius_km: float) -> float:
    """Angular radius on a sphere of EARTH_RADIUS_KM."""
    return radius_km / EARTH_RADIUS_KM


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = (
        math.sin(dphi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def bounding_box(lat: float, lon: float, radius_km: float) -> BoundingBox:
    """Smallest lat/lon rectangle guaranteed to contain the circle."""
    r = km_to_radians(radius_km)
    lat_r = math.radians(lat)
    min_lat_r, max_lat_r = lat_r - r, lat_r + r
    min_lat = max(-90.0, math.degrees(min_lat_r))
    max_lat = min(90.0, math.degrees(max_lat_r))

    if max_lat_r >= math.pi / 2 or min_lat_r <= -math.pi / 2:
        return BoundingBox(min_lat, max_lat, None, None)

    # Widest longitude is reached poleward of `lat`, not on its parallel
    dlon = math.degrees(math.asin(min(1.0, math.sin(r) / math.cos(lat_r))))
    min_lon, max_lon = lon - dlon, lon + dlon
    if min_lon < -180.0 or max_lon > 180.0:
        return BoundingBox(min_lat, max_lat, None, None)
    return BoundingBox(min_lat, max_lat, min_lon, max_lon)


def distance_km_expr(lat_col, lon_col, lat: float, lon: float) -> ColumnElement:
    """Haversine distance (km) between a row's coordinates and a fixed point."""
    dlat = func.radians(lat_col - lat)
    dlon = func.radians(lon_col - lon)
    a = (
        func.power(func.sin(dlat / 2), 2)
        + math.cos(math.radians(lat))
        * func.cos(func.radians(lat_col))
        * func.power(func.sin(dlon / 2), 2)
    )
    # least() guards asin() against rounding just above 1.0
    return 2 * EARTH_RADIUS_KM * func.asin(func.least(1.0, func.sqrt(a)))


def within_radius(lat_col, lon_col, lat: float, lon: float, radius_km: float) -> ColumnElement:
    """Boolean SQL expression: bounding-box prefilter AND exact haversine check."""
    box = bounding_box(lat, lon, radius_km)
    clauses = [lat_col.between(box.min_lat, box.max_lat)]
    if box.min_lon is not None:
        clauses.append(lon_col.between(box.min_lon, box.max_lon))
    clauses.append(distance_km_expr(lat_col, lon_col, lat, lon) <= radius_km)
    return and_(*clauses)


def parse_coordinate(value: Optional[str]) -> Optional[float]:
    """Float from a query-string value; None when absent, unparsable or not finite."""
    if value is None or str(value).strip() == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_radius_km(value: Optional[str], default: int) -> int:
    """Whole-kilometre radius; falls back to `default` unless a positive integer."""
    if value is None:
        return default
    try:
        radius = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default
    return radius if radius > 0 else default
