import asyncio
import logging
import random

import nodriverplus
from nodriverplus import cdp

from . import config
from .boundary import compute_region
from .catalog import SnapshotCatalog
from .driver import MapDriver, lat_lon_zoom, map_url
from .walk import WalkController


async def open_map(ndp, url: str):
    res = await ndp.get_with_timeout(url, page_load_timeout=config.PAGE_LOAD_TIMEOUT)
    for _ in range(config.PAGE_LOAD_ATTEMPTS - 1):
        if not res.timed_out:
            break
        logging.info("page load timed out, retrying %s", url)
        await res.tab.send(cdp.page.stop_loading())
        await asyncio.sleep(random.uniform(1.5, 2.5))
        res = await ndp.get_with_timeout(
            url, page_load_timeout=config.PAGE_LOAD_TIMEOUT
        )
    return res.tab


async def main():
    region = compute_region(config.BOUNDARY_POINTS)
    logging.info(
        "boundary region lat=[%.6f, %.6f] lng=[%.6f, %.6f]",
        region.min_lat,
        region.max_lat,
        region.min_lng,
        region.max_lng,
    )
    walk_config = config.WalkConfig()
    walk_config.snapshot_dir.mkdir(parents=True, exist_ok=True)

    ndp = nodriverplus.NodriverPlus(solve_cloudflare=False)
    browser = await ndp.start(headless=config.HEADLESS)
    catalog = None
    try:
        catalog = SnapshotCatalog(walk_config.snapshot_dir / config.CATALOG_NAME)
        await browser.main_tab.maximize()
        center = region.center
        tab = await open_map(
            ndp, map_url(center.lat, center.lng, walk_config.baseline_zoom)
        )
        logging.info("map opened at %s", lat_lon_zoom(tab.url))
        controller = WalkController(
            MapDriver(tab), region, walk_config, catalog=catalog
        )
        await controller.run()
        logging.info("catalog counts: %s", catalog.counts())
    finally:
        if catalog is not None:
            catalog.close()
        browser.stop()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
