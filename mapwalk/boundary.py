import random
from dataclasses import dataclass
from typing import Iterable, NamedTuple


class GeoPoint(NamedTuple):
    lat: float
    lng: float


class PixelDelta(NamedTuple):
    dx: int
    dy: int


@dataclass(frozen=True)
class BoundaryRegion:
    # enclosing axis-aligned rectangle of the sample points, not their hull
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def __post_init__(self):
        if self.min_lat > self.max_lat or self.min_lng > self.max_lng:
            raise ValueError(f"inverted region: {self}")

    @property
    def center(self) -> GeoPoint:
        return GeoPoint(
            (self.min_lat + self.max_lat) / 2, (self.min_lng + self.max_lng) / 2
        )

    @property
    def half_lat_span(self) -> float:
        return (self.max_lat - self.min_lat) / 2

    @property
    def half_lng_span(self) -> float:
        return (self.max_lng - self.min_lng) / 2


def compute_region(points: Iterable[tuple[float, float]]) -> BoundaryRegion:
    points = [GeoPoint(*p) for p in points]
    if not points:
        raise ValueError("cannot compute a region from zero points")
    lats = [p.lat for p in points]
    lngs = [p.lng for p in points]
    return BoundaryRegion(min(lats), max(lats), min(lngs), max(lngs))


def contains(region: BoundaryRegion, lat: float, lng: float) -> bool:
    return (
        region.min_lat <= lat <= region.max_lat
        and region.min_lng <= lng <= region.max_lng
    )


def apply_delta(lat: float, lng: float, dx: int, dy: int, scale: float) -> GeoPoint:
    return GeoPoint(lat + dy * scale, lng + dx * scale)


def contains_after_delta(
    region: BoundaryRegion,
    lat: float,
    lng: float,
    dx: int,
    dy: int,
    scale: float,
) -> bool:
    return contains(region, *apply_delta(lat, lng, dx, dy, scale))


def jittered_center(
    region: BoundaryRegion,
    rng: random.Random,
    lat_jitter: float,
    lng_jitter: float,
) -> GeoPoint:
    """Pick a point near the region center.

    Each offset is drawn uniformly from [-j, j) where j is the requested
    jitter clamped to the region's half span on that axis, so the result
    can never leave the rectangle.
    """
    lat_j = min(abs(lat_jitter), region.half_lat_span)
    lng_j = min(abs(lng_jitter), region.half_lng_span)
    center = region.center
    lat = center.lat + (rng.random() - 0.5) * 2 * lat_j
    lng = center.lng + (rng.random() - 0.5) * 2 * lng_j
    # float rounding at the very edge
    lat = max(region.min_lat, min(region.max_lat, lat))
    lng = max(region.min_lng, min(region.max_lng, lng))
    return GeoPoint(lat, lng)
