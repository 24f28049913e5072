"""
Tests for the screenshot tool. Playwright is replaced by an in-process fake browser.
"""
from __future__ import annotations

import base64
from contextlib import asynccontextmanager

import pytest
from mcp.server.fastmcp.exceptions import ToolError
from mcp.shared.memory import create_connected_server_and_client_session
from playwright.async_api import Error as PlaywrightError

from server import create_server
from tools import screenshot
from tools.screenshot import get_tools, resolve_settings

PNG = b"\x89PNG\r\n\x1a\nfake-image-bytes"


class FakePage:
    def __init__(self, browser):
        self.browser = browser

    async def goto(self, url, wait_until, timeout):
        self.browser.calls.append(("goto", url, wait_until, timeout))
        if self.browser.goto_error:
            raise self.browser.goto_error

    async def screenshot(self, full_page, type):
        self.browser.calls.append(("screenshot", full_page, type))
        return PNG


class FakeBrowser:
    def __init__(self, goto_error=None):
        self.goto_error = goto_error
        self.calls = []
        self.closed = False

    async def new_page(self, viewport):
        self.calls.append(("new_page", viewport))
        return FakePage(self)

    async def close(self):
        self.closed = True


class FakeChromium:
    def __init__(self, browser):
        self.browser = browser
        self.launch_kwargs = None

    async def launch(self, **kwargs):
        self.launch_kwargs = kwargs
        return self.browser


@pytest.fixture
def fake_browser(monkeypatch):
    browser = FakeBrowser()
    chromium = FakeChromium(browser)

    class _Playwright:
        pass

    playwright = _Playwright()
    playwright.chromium = chromium

    @asynccontextmanager
    async def fake_async_playwright():
        yield playwright

    monkeypatch.setattr(screenshot, "async_playwright", fake_async_playwright)
    browser.chromium = chromium
    return browser


def _tool(settings=None):
    return get_tools(settings)["get_screenshot"]["func"]


def test_resolve_settings_merges_viewport():
    settings = resolve_settings({"viewport": {"width": 800}, "headless": False})
    assert settings["viewport"] == {"width": 800, "height": 720}
    assert settings["headless"] is False
    assert settings["wait_until"] == "load"


@pytest.mark.asyncio
async def test_captures_png_and_closes_browser(fake_browser):
    image = await _tool({"wait_until": "networkidle"})("https://example.com")
    content = image.to_image_content()
    assert content.mimeType == "image/png"
    assert base64.b64decode(content.data) == PNG
    assert fake_browser.closed is True
    assert fake_browser.chromium.launch_kwargs == {"headless": True}
    assert ("goto", "https://example.com", "networkidle", 30000) in fake_browser.calls
    assert ("screenshot", False, "png") in fake_browser.calls


@pytest.mark.asyncio
async def test_full_page_is_passed_through(fake_browser):
    await _tool()("https://example.com", full_page=True)
    assert ("screenshot", True, "png") in fake_browser.calls


@pytest.mark.asyncio
async def test_rejects_non_http_urls_without_launching(fake_browser):
    with pytest.raises(ToolError, match="only http/https"):
        await _tool()("file:///etc/passwd")
    assert fake_browser.chromium.launch_kwargs is None


@pytest.mark.asyncio
async def test_navigation_failure_becomes_tool_error(fake_browser):
    fake_browser.goto_error = PlaywrightError("net::ERR_NAME_NOT_RESOLVED")
    with pytest.raises(ToolError, match="Failed to capture screenshot of https://nope.invalid"):
        await _tool()("https://nope.invalid")
    assert fake_browser.closed is True


@pytest.mark.asyncio
async def test_screenshot_server_returns_image_payload(fake_browser):
    mcp = create_server("screenshot")
    async with create_connected_server_and_client_session(mcp._mcp_server) as client:
        tools = await client.list_tools()
        assert [tool.name for tool in tools.tools] == ["get_screenshot"]
        assert tools.tools[0].inputSchema["required"] == ["url"]

        result = await client.call_tool("get_screenshot", {"url": "https://example.com"})
        assert result.isError is False
        assert len(result.content) == 1
        item = result.content[0]
        assert item.type == "image"
        assert item.mimeType == "image/png"
        assert base64.b64decode(item.data) == PNG

        result = await client.call_tool("get_screenshot", {"url": "ftp://example.com"})
        assert result.isError is True
