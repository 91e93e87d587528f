import asyncio
import logging
import random
from dataclasses import dataclass
from pathlib import Path

from .boundary import (
    BoundaryRegion,
    PixelDelta,
    apply_delta,
    contains_after_delta,
    jittered_center,
)
from .config import WalkConfig
from .driver import DriverError

ACCEPTED = "accepted"
REJECTED = "rejected"
FAILED = "failed"


@dataclass
class WalkState:
    lat: float
    lng: float
    zoom: int
    step_index: int = 0  # accepted steps so far


@dataclass(frozen=True)
class StepCandidate:
    delta: PixelDelta
    zoom_delta: int
    large_jump: bool


@dataclass
class WalkSummary:
    accepted: int = 0
    rejected: int = 0
    failed: int = 0
    resets: int = 0
    screenshots: int = 0


class WalkController:
    """Zoom-stage demo followed by a bounded random walk over the map.

    Every candidate pan is checked against the boundary region before the
    driver is touched. A rejected candidate leaves both the browser and the
    walk state alone. Driver failures abandon the current step only.
    """

    def __init__(
        self,
        driver,
        region: BoundaryRegion,
        config: WalkConfig | None = None,
        rng: random.Random | None = None,
        catalog=None,
    ):
        self.driver = driver
        self.region = region
        self.config = config or WalkConfig()
        self.rng = rng or random.Random()
        self.catalog = catalog
        center = region.center
        self.state = WalkState(center.lat, center.lng, self.config.baseline_zoom)
        self.summary = WalkSummary()
        self.screenshot_index = 0

    async def _capture(self, name: str, kind: str, view=None) -> Path:
        # view is the (lat, lng, zoom) shown, defaulting to the current state
        lat, lng, zoom = view or (self.state.lat, self.state.lng, self.state.zoom)
        path = self.config.snapshot_dir / name
        await self.driver.screenshot(path)
        self.summary.screenshots += 1
        if self.catalog is not None:
            self.catalog.record_snapshot(self.screenshot_index, kind, path, lat, lng, zoom)
        return path

    def _record(self, i: int, outcome: str, candidate: StepCandidate, reason=None):
        if self.catalog is None:
            return
        self.catalog.record_step(
            i,
            outcome,
            candidate,
            self.state.lat,
            self.state.lng,
            self.state.zoom,
            reason,
        )

    async def start(self):
        self.config.snapshot_dir.mkdir(parents=True, exist_ok=True)
        center = self.region.center
        self.state = WalkState(center.lat, center.lng, self.config.baseline_zoom)
        await self.driver.navigate(self.state.lat, self.state.lng, self.state.zoom)
        await self.driver.wait_for_idle()
        await self._capture("screenshot_0.png", "initial")
        self.screenshot_index = 1

    async def set_zoom(self, level: int) -> int:
        target = self.config.clamp_zoom(level)
        if target != self.state.zoom and await self.driver.zoom_by(
            target - self.state.zoom
        ):
            self.state.zoom = target
        return self.state.zoom

    async def run_zoom_stages(self):
        for level in self.config.zoom_stages:
            name = f"screenshot_zoom_{level}_{self.screenshot_index}.png"
            try:
                reached = await self.set_zoom(level)
                if reached != level:
                    logging.warning(
                        "zoom stage %d not reached, map is at %d", level, reached
                    )
                await self._capture(name, "zoom")
            except (DriverError, asyncio.TimeoutError) as e:
                logging.warning("zoom stage %d abandoned: %r", level, e)
            self.screenshot_index += 1

    def generate_candidate(self) -> StepCandidate:
        large_jump = self.rng.random() < self.config.large_jump_probability
        reach = self.config.large_step_px if large_jump else self.config.small_step_px
        dx = self.rng.randrange(-reach, reach)
        dy = self.rng.randrange(-reach, reach)
        zoom_delta = self.rng.randint(-1, 1)
        return StepCandidate(PixelDelta(dx, dy), zoom_delta, large_jump)

    async def reset(self):
        center = jittered_center(
            self.region, self.rng, self.config.lat_jitter, self.config.lng_jitter
        )
        zoom = self.config.baseline_zoom
        logging.info(
            "resetting to %.6f,%.6f,%dz", center.lat, center.lng, zoom
        )
        await self.driver.navigate(center.lat, center.lng, zoom)
        # the map has moved even if it never settles
        self.state.lat, self.state.lng, self.state.zoom = center.lat, center.lng, zoom
        self.summary.resets += 1
        await self.driver.wait_for_idle()

    async def step(self, i: int) -> str:
        if i % self.config.reset_every == 0:
            try:
                await self.reset()
            except (DriverError, asyncio.TimeoutError) as e:
                logging.warning("step %d: reset failed: %r", i, e)
                self.summary.failed += 1
                return FAILED

        candidate = self.generate_candidate()
        dx, dy = candidate.delta
        s = self.state
        scale = self.config.pixel_scale
        if not contains_after_delta(self.region, s.lat, s.lng, dx, dy, scale):
            logging.info(
                "skipped movement: out of bounds from (%.6f, %.6f) with delta (%d, %d)",
                s.lat,
                s.lng,
                dx,
                dy,
            )
            self.summary.rejected += 1
            self._record(i, REJECTED, candidate, "out of bounds")
            return REJECTED

        target = apply_delta(s.lat, s.lng, dx, dy, scale)
        zoom = self.config.clamp_zoom(s.zoom + candidate.zoom_delta)
        try:
            await self.driver.dismiss_popups()
            if zoom != s.zoom and not await self.driver.zoom_by(zoom - s.zoom):
                zoom = s.zoom
            if not await self.driver.pan(dx, dy):
                raise DriverError("map canvas unavailable")
            await self._capture(
                f"screenshot_{self.screenshot_index}.png",
                "walk",
                (target.lat, target.lng, zoom),
            )
        except (DriverError, asyncio.TimeoutError) as e:
            logging.warning("step %d abandoned: %r", i, e)
            self.summary.failed += 1
            self._record(i, FAILED, candidate, repr(e))
            return FAILED

        s.lat, s.lng, s.zoom = target.lat, target.lng, zoom
        s.step_index += 1
        self.screenshot_index += 1
        self.summary.accepted += 1
        self._record(i, ACCEPTED, candidate)
        return ACCEPTED

    async def run(self) -> WalkSummary:
        await self.start()
        await self.run_zoom_stages()
        for i in range(self.config.iterations):
            await self.step(i)
        logging.info(
            "walk finished: accepted=%d rejected=%d failed=%d resets=%d screenshots=%d",
            self.summary.accepted,
            self.summary.rejected,
            self.summary.failed,
            self.summary.resets,
            self.summary.screenshots,
        )
        return self.summary
