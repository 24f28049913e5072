from typing import Annotated, Any
import logging

from mcp.server.fastmcp import Image
from mcp.server.fastmcp.exceptions import ToolError
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright
from pydantic import Field

from utils import validate_page_url  # type: ignore

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: dict[str, Any] = {
    "headless": True,
    "viewport": {"width": 1280, "height": 720},
    "navigation_timeout_ms": 30000,
    "wait_until": "load",
}


def resolve_settings(settings: dict[str, Any] | None) -> dict[str, Any]:
    """Overlay the `screenshot` config section on the defaults."""
    merged = {**DEFAULT_SETTINGS, **(settings or {})}
    merged["viewport"] = {**DEFAULT_SETTINGS["viewport"], **(merged.get("viewport") or {})}
    return merged


async def capture_screenshot(url: str, settings: dict[str, Any], full_page: bool = False) -> bytes:
    """Open `url` in a fresh headless Chromium and return the page as PNG bytes.

    A browser is launched per call and always closed, even when navigation fails.
    """
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=settings["headless"])
        try:
            page = await browser.new_page(viewport=settings["viewport"])
            await page.goto(url, wait_until=settings["wait_until"], timeout=settings["navigation_timeout_ms"])
            return await page.screenshot(full_page=full_page, type="png")
        finally:
            await browser.close()


def get_tools(settings: dict[str, Any] | None = None) -> dict[str, Any]:
    resolved = resolve_settings(settings)

    async def _get_screenshot(
        url: Annotated[str, Field(description="スクリーンショットを取得するURL")],
        full_page: Annotated[bool, Field(description="ページ全体をキャプチャする")] = False,
    ) -> Image:
        problem = validate_page_url(url)
        if problem:
            raise ToolError(f"Invalid url '{url}': {problem}")

        try:
            png = await capture_screenshot(url.strip(), resolved, full_page=full_page)
        except PlaywrightError as e:
            logger.warning(f"Screenshot of {url} failed: {e}")
            raise ToolError(f"Failed to capture screenshot of {url}: {e}") from e

        logger.info(f"Captured screenshot of {url} ({len(png)} bytes, full_page={full_page})")
        return Image(data=png, format="png")

    return {
        "get_screenshot": {
            "func": _get_screenshot,
            "title": "Get screenshot",
            "description": "スクリーンショットを取得",
        }
    }
