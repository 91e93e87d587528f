"""Shared fixtures: an in-memory stand-in for the browser driver."""

import pytest

from mapwalk.boundary import compute_region
from mapwalk.config import WalkConfig
from mapwalk.driver import DriverError


class FakeDriver:
    """Records every call; zoom buttons and canvas can be switched off."""

    def __init__(self, *, has_canvas=True, has_zoom_buttons=True):
        self.calls = []
        self.has_canvas = has_canvas
        self.has_zoom_buttons = has_zoom_buttons
        self.fail_navigate = False
        self.fail_screenshot = False
        self.fail_wait_for_idle = False

    async def navigate(self, lat, lng, zoom):
        if self.fail_navigate:
            raise DriverError("navigation timed out")
        self.calls.append(("navigate", lat, lng, zoom))

    async def wait_for_idle(self):
        if self.fail_wait_for_idle:
            raise DriverError("page never went idle")
        self.calls.append(("wait_for_idle",))

    async def screenshot(self, path):
        if self.fail_screenshot:
            raise DriverError("screenshot failed")
        self.calls.append(("screenshot", path.name))

    async def zoom_by(self, levels):
        self.calls.append(("zoom_by", levels))
        return self.has_zoom_buttons

    async def pan(self, dx, dy):
        self.calls.append(("pan", dx, dy))
        return self.has_canvas

    async def dismiss_popups(self):
        self.calls.append(("dismiss_popups",))
        return 0

    def names(self, kind):
        return [c for c in self.calls if c[0] == kind]


@pytest.fixture
def region():
    return compute_region([(40.0, -100.0), (45.0, -90.0)])


@pytest.fixture
def driver():
    return FakeDriver()


@pytest.fixture
def walk_config(tmp_path):
    return WalkConfig(iterations=20, snapshot_dir=tmp_path / "snapshots")
