from .boundary import (
    BoundaryRegion,
    GeoPoint,
    PixelDelta,
    compute_region,
    contains,
    contains_after_delta,
)
from .config import WalkConfig
from .walk import StepCandidate, WalkController, WalkState, WalkSummary

__all__ = [
    "BoundaryRegion",
    "GeoPoint",
    "PixelDelta",
    "StepCandidate",
    "WalkConfig",
    "WalkController",
    "WalkState",
    "WalkSummary",
    "compute_region",
    "contains",
    "contains_after_delta",
]
