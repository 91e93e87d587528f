import asyncio
import base64
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path

import nodriverplus
from nodriverplus import cdp

from . import config

MAPS_URL = "https://www.google.com/maps/@{lat},{lng},{zoom}z?entry=ttu"


class DriverError(RuntimeError):
    pass


@dataclass
class ElementBox:
    # client rect of the first element matching selector, captured at lookup
    selector: str
    x: float
    y: float
    width: float
    height: float
    visible: bool

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2


def map_url(lat: float, lng: float, zoom: int | float) -> str:
    return MAPS_URL.format(lat=lat, lng=lng, zoom=zoom)


def lat_lon_zoom(url):
    # extract lat, lon, zoom from any '@lat,lon,zoomz' pattern in the url
    match = re.search(
        r"@(-?\d+(?:\.\d+)?),(-?\d+(?:\.\d+)?),(-?\d+(?:\.\d+)?)z",
        url,
    )
    if not match:
        logging.info("could not parse lat/lon/zoom from url: %s", url)
        return [None, None, None]
    return [float(d) for d in match.groups()]


def drag_points(
    x0: float, y0: float, x1: float, y1: float, *, steps: int = 5
) -> list[tuple[float, float]]:
    # evenly spaced positions along the line, the last one is always (x1, y1)
    steps = max(1, int(steps))
    dx, dy = (x1 - x0), (y1 - y0)
    return [(x0 + dx * i / steps, y0 + dy * i / steps) for i in range(1, steps + 1)]


async def drag(
    tab,
    x0: float,
    y0: float,
    x1: float,
    y1: float,
    *,
    steps: int = 5,
    button=cdp.input_.MouseButton.LEFT,
):
    await tab.send(cdp.input_.dispatch_mouse_event(type_="mouseMoved", x=x0, y=y0))
    await tab.send(
        cdp.input_.dispatch_mouse_event(
            type_="mousePressed", x=x0, y=y0, button=button, click_count=1
        )
    )
    for x, y in drag_points(x0, y0, x1, y1, steps=steps):
        await tab.send(
            cdp.input_.dispatch_mouse_event(type_="mouseMoved", x=x, y=y, button=button)
        )
    await tab.send(
        cdp.input_.dispatch_mouse_event(
            type_="mouseReleased", x=x1, y=y1, button=button, click_count=1
        )
    )


def _build_find_element_js(selector: str) -> str:
    # resolves to '' when nothing matches, otherwise the rect + visibility as json
    return (
        "(function(){const e=document.querySelector("
        + json.dumps(selector)
        + ");if(!e)return '';const b=e.getBoundingClientRect();const s=getComputedStyle(e);"
        + "const v=b.width>0&&b.height>0&&s.visibility!=='hidden'&&s.display!=='none';"
        + "return JSON.stringify({x:b.x,y:b.y,width:b.width,height:b.height,visible:v})})()"
    )


class MapDriver:
    """Google Maps operations on top of a single nodriverplus tab.

    The primitives (navigate, find_element, click, mouse_drag, screenshot,
    wait) map one to one onto CDP calls. pan, zoom_by and dismiss_popups
    combine them the way the walk needs them.
    """

    def __init__(
        self,
        tab,
        *,
        popup_selectors=config.POPUP_SELECTORS,
        click_timeout: float = config.CLICK_TIMEOUT,
        settle_ms: int = config.PAN_SETTLE_MS,
        zoom_settle_ms: int = config.ZOOM_SETTLE_MS,
        drag_steps: int = config.DRAG_STEPS,
    ):
        self.tab = tab
        self.popup_selectors = tuple(popup_selectors)
        self.click_timeout = click_timeout
        self.settle_ms = settle_ms
        self.zoom_settle_ms = zoom_settle_ms
        self.drag_steps = drag_steps

    async def navigate(self, lat: float, lng: float, zoom: int):
        url = map_url(lat, lng, zoom)
        logging.debug("navigating to %s", url)
        await self.tab.get(url)

    async def wait_for_idle(self):
        await nodriverplus.wait_for_page_load(self.tab)

    async def find_element(self, selector: str) -> ElementBox | None:
        js = _build_find_element_js(selector)
        res = await self.tab.evaluate(js)
        if isinstance(res, cdp.runtime.ExceptionDetails):
            logging.info(js)
            logging.info(res)
            raise DriverError(f"failed to query selector {selector}")
        if not res:
            return None
        return ElementBox(selector=selector, **json.loads(res))

    async def element_visible(self, handle: ElementBox) -> bool:
        return handle.visible

    async def click(self, handle: ElementBox, timeout: float | None = None):
        x, y = handle.center
        await asyncio.wait_for(self.tab.mouse_click(x=x, y=y), timeout=timeout)

    async def bounding_box(self, handle: ElementBox) -> ElementBox | None:
        if handle.width <= 0 or handle.height <= 0:
            return None
        return handle

    async def mouse_drag(self, start, end, steps: int):
        await drag(self.tab, start[0], start[1], end[0], end[1], steps=steps)

    async def screenshot(self, path):
        data = await self.tab.send(cdp.page.capture_screenshot(format_="png"))
        if not data:
            raise DriverError(f"empty screenshot for {path}")
        Path(path).write_bytes(base64.b64decode(data))

    async def wait(self, duration_ms: int):
        await asyncio.sleep(duration_ms / 1000)

    async def pan(self, dx: int, dy: int) -> bool:
        canvas = await self.find_element(config.MAP_CANVAS)
        if canvas is None:
            logging.info("map canvas not found")
            return False
        box = await self.bounding_box(canvas)
        if box is None:
            logging.info("map canvas has no bounding box")
            return False
        cx, cy = box.center
        await self.mouse_drag((cx, cy), (cx + dx, cy + dy), self.drag_steps)
        await self.wait(self.settle_ms)
        return True

    async def zoom_by(self, levels: int) -> bool:
        if levels == 0:
            return True
        selector = config.ZOOM_IN_BUTTON if levels > 0 else config.ZOOM_OUT_BUTTON
        button = await self.find_element(selector)
        if button is None:
            logging.info("zoom button not found: %s", selector)
            return False
        for _ in range(abs(levels)):
            await self.click(button, self.click_timeout)
            await self.wait(self.zoom_settle_ms)
        return True

    async def dismiss_popups(self) -> int:
        closed = 0
        for selector in self.popup_selectors:
            try:
                popup = await self.find_element(selector)
                if popup is not None and await self.element_visible(popup):
                    await self.click(popup, self.click_timeout)
                    closed += 1
                    logging.info("closed pop-up with selector: %s", selector)
            except Exception as e:
                logging.info(
                    "failed to close pop-up with selector %s: %r", selector, e
                )
        return closed
