"""Tests for the CDP-backed map driver, against a fake tab."""

import asyncio
import base64
import json

import pytest

from mapwalk import config
from mapwalk.driver import (
    DriverError,
    ElementBox,
    MapDriver,
    drag_points,
    lat_lon_zoom,
    map_url,
)


def _rect(x, y, width, height, visible=True):
    return json.dumps(
        {"x": x, "y": y, "width": width, "height": height, "visible": visible}
    )


class FakeTab:
    def __init__(self, elements=None, failing=(), click_delay=0.0):
        # selector -> rect json
        self.elements = elements or {}
        self.failing = set(failing)
        self.click_delay = click_delay
        self.sent = []
        self.clicks = []
        self.visited = []

    async def evaluate(self, js):
        for selector in self.failing:
            if json.dumps(selector) in js:
                raise DriverError(f"boom {selector}")
        for selector, rect in self.elements.items():
            if json.dumps(selector) in js:
                return rect
        return ""

    async def send(self, cmd):
        request = next(cmd)
        self.sent.append(request)
        if request["method"] == "Page.captureScreenshot":
            return base64.b64encode(b"\x89PNG fake").decode()
        return None

    async def mouse_click(self, x, y):
        if self.click_delay:
            await asyncio.sleep(self.click_delay)
        self.clicks.append((x, y))

    async def get(self, url):
        self.visited.append(url)


def _driver(tab, **kwargs):
    kwargs.setdefault("settle_ms", 0)
    kwargs.setdefault("zoom_settle_ms", 0)
    return MapDriver(tab, **kwargs)


class TestUrls:
    def test_map_url(self):
        assert (
            map_url(36.3, -95.1, 5)
            == "https://www.google.com/maps/@36.3,-95.1,5z?entry=ttu"
        )

    def test_round_trip(self):
        assert lat_lon_zoom(map_url(36.34, -95.09, 12)) == [36.34, -95.09, 12.0]

    def test_unparseable(self):
        assert lat_lon_zoom("https://maps.google.com") == [None, None, None]


class TestDragPoints:
    def test_straight_line(self):
        points = drag_points(0, 0, 10, 20, steps=5)
        assert points == [(2, 4), (4, 8), (6, 12), (8, 16), (10, 20)]

    def test_single_step_jumps_to_target(self):
        assert drag_points(100, 100, 150, 80, steps=1) == [(150, 80)]

    def test_zero_distance(self):
        assert drag_points(5, 5, 5, 5, steps=3) == [(5, 5)] * 3


class TestFindElement:
    @pytest.mark.asyncio
    async def test_missing(self):
        assert await _driver(FakeTab()).find_element("canvas") is None

    @pytest.mark.asyncio
    async def test_found(self):
        tab = FakeTab({"canvas": _rect(0, 0, 800, 600)})
        box = await _driver(tab).find_element("canvas")
        assert box == ElementBox("canvas", 0, 0, 800, 600, True)
        assert box.center == (400, 300)

    @pytest.mark.asyncio
    async def test_zero_size_has_no_bounding_box(self):
        driver = _driver(FakeTab())
        box = ElementBox("canvas", 0, 0, 0, 0, False)
        assert await driver.bounding_box(box) is None


class TestPan:
    @pytest.mark.asyncio
    async def test_drags_from_canvas_center(self):
        tab = FakeTab({config.MAP_CANVAS: _rect(0, 0, 800, 600)})
        assert await _driver(tab).pan(10, -20)

        types = [r["params"]["type"] for r in tab.sent]
        assert types == ["mouseMoved", "mousePressed"] + ["mouseMoved"] * 5 + [
            "mouseReleased"
        ]
        assert (tab.sent[1]["params"]["x"], tab.sent[1]["params"]["y"]) == (400, 300)
        assert (tab.sent[-1]["params"]["x"], tab.sent[-1]["params"]["y"]) == (410, 280)

    @pytest.mark.asyncio
    async def test_missing_canvas(self):
        tab = FakeTab()
        assert not await _driver(tab).pan(10, 10)
        assert tab.sent == []


class TestZoom:
    @pytest.mark.asyncio
    async def test_zoom_in_clicks_each_level(self):
        tab = FakeTab({config.ZOOM_IN_BUTTON: _rect(10, 10, 20, 20)})
        assert await _driver(tab).zoom_by(3)
        assert tab.clicks == [(20, 20)] * 3

    @pytest.mark.asyncio
    async def test_zoom_out_uses_other_button(self):
        tab = FakeTab(
            {
                config.ZOOM_IN_BUTTON: _rect(10, 10, 20, 20),
                config.ZOOM_OUT_BUTTON: _rect(10, 40, 20, 20),
            }
        )
        assert await _driver(tab).zoom_by(-1)
        assert tab.clicks == [(20, 50)]

    @pytest.mark.asyncio
    async def test_missing_button(self):
        tab = FakeTab()
        assert not await _driver(tab).zoom_by(1)
        assert tab.clicks == []

    @pytest.mark.asyncio
    async def test_zero_is_noop(self):
        tab = FakeTab()
        assert await _driver(tab).zoom_by(0)


class TestDismissPopups:
    @pytest.mark.asyncio
    async def test_closes_visible_and_survives_failures(self):
        close, dismiss, consent = (
            "button[aria-label='Close']",
            "button[aria-label='Dismiss']",
            "div[id='consent-bump']",
        )
        tab = FakeTab(
            {close: _rect(0, 0, 10, 10), consent: _rect(0, 0, 10, 10, visible=False)},
            failing=["div[aria-label='Close']"],
        )
        tab.elements[dismiss] = _rect(100, 100, 10, 10)

        closed = await _driver(tab).dismiss_popups()

        assert closed == 2
        assert tab.clicks == [(5, 5), (105, 105)]

    @pytest.mark.asyncio
    async def test_click_timeout_is_caught(self):
        tab = FakeTab({"button[aria-label='Close']": _rect(0, 0, 10, 10)}, click_delay=1)
        driver = _driver(tab, click_timeout=0.01)
        assert await driver.dismiss_popups() == 0


class TestScreenshotAndNavigate:
    @pytest.mark.asyncio
    async def test_screenshot_written(self, tmp_path):
        tab = FakeTab()
        path = tmp_path / "screenshot_0.png"
        await _driver(tab).screenshot(path)
        assert path.read_bytes() == b"\x89PNG fake"
        assert tab.sent[0]["params"]["format"] == "png"

    @pytest.mark.asyncio
    async def test_navigate(self):
        tab = FakeTab()
        await _driver(tab).navigate(40.0, -100.0, 5)
        assert tab.visited == ["https://www.google.com/maps/@40.0,-100.0,5z?entry=ttu"]
