from dataclasses import dataclass, field
from pathlib import Path

# sample points tracing the outline of the continental usa
BOUNDARY_POINTS = (
    (44.987931, -66.9010417),
    (42.7609504, -78.9952792),
    (48.0338732, -88.8417626),
    (48.7043183, -99.9140229),
    (49.2334375, -114.9865388),
    (47.8547471, -123.2837118),
    (40.9885808, -122.3273668),
    (34.2053609, -119.5019602),
    (31.3748893, -111.2504067),
    (28.7839807, -103.5092634),
    (26.1825747, -95.7952945),
    (23.4616577, -84.1811117),
    (25.9621554, -79.5121879),
    (33.2198245, -77.6353713),
    (41.3440684, -67.2432907),
)

PIXEL_SCALE = 0.0001  # degrees per dragged pixel (heuristic, not geodetic)

# zoom (3 = continent, 21 = street)
BASELINE_ZOOM = 5
MIN_ZOOM = 3
MAX_ZOOM = 21
ZOOM_STAGES = (3, 5, 7, 9, 12, 15, 18)

# random walk
ITERATIONS = 250
RESET_EVERY = 5
LARGE_JUMP_PROBABILITY = 0.1
SMALL_STEP_PX = 50
LARGE_STEP_PX = 200
LAT_JITTER = 1.0  # degrees around the region center on reset
LNG_JITTER = 2.0

# browser
HEADLESS = False
PAGE_LOAD_TIMEOUT = 25
PAGE_LOAD_ATTEMPTS = 5
CLICK_TIMEOUT = 3.0  # seconds per pop-up click
PAN_SETTLE_MS = 1000
ZOOM_SETTLE_MS = 500
DRAG_STEPS = 5
MAP_CANVAS = "canvas"
ZOOM_IN_BUTTON = "button[aria-label='Zoom in']"
ZOOM_OUT_BUTTON = "button[aria-label='Zoom out']"
POPUP_SELECTORS = (
    "button[aria-label='Close']",
    "div[aria-label='Close']",
    "button[jsaction='pane.close']",
    "div[id='consent-bump']",
    "button[aria-label='Dismiss']",
)

# output
SNAPSHOT_DIR_NAME = "snapshots"  # created under the working directory
CATALOG_NAME = "catalog.duckdb"


@dataclass
class WalkConfig:
    pixel_scale: float = PIXEL_SCALE
    baseline_zoom: int = BASELINE_ZOOM
    min_zoom: int = MIN_ZOOM
    max_zoom: int = MAX_ZOOM
    zoom_stages: tuple[int, ...] = ZOOM_STAGES
    iterations: int = ITERATIONS
    reset_every: int = RESET_EVERY
    large_jump_probability: float = LARGE_JUMP_PROBABILITY
    small_step_px: int = SMALL_STEP_PX
    large_step_px: int = LARGE_STEP_PX
    lat_jitter: float = LAT_JITTER
    lng_jitter: float = LNG_JITTER
    snapshot_dir: Path = field(default_factory=lambda: Path.cwd() / SNAPSHOT_DIR_NAME)

    def __post_init__(self):
        if self.min_zoom > self.max_zoom:
            raise ValueError(
                f"min_zoom {self.min_zoom} is above max_zoom {self.max_zoom}"
            )
        if self.reset_every < 1:
            raise ValueError("reset_every must be at least 1")
        if sorted(self.zoom_stages) != list(self.zoom_stages):
            raise ValueError("zoom_stages must be ascending")
        self.snapshot_dir = Path(self.snapshot_dir)

    def clamp_zoom(self, zoom: int) -> int:
        return max(self.min_zoom, min(self.max_zoom, zoom))
