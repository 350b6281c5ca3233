# File: tests/conftest.py
from __future__ import annotations

import asyncio
import socket
from collections import Counter
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, Dict, Tuple, Union

import pytest
import pytest_asyncio
from aiohttp import web

from link_scout.config import CrawlerConfig
from link_scout.crawler.classifier import LinkClassifier


@dataclass(frozen=True)
class Route:
    """How the test server answers one path."""

    body: str = ""
    status: int = 200
    delay: float = 0.0
    content_type: str = "text/html"


RouteSpec = Union[str, Route]
SiteFactory = Callable[[Dict[str, RouteSpec]], Awaitable[Tuple[str, Counter]]]


@asynccontextmanager
async def _serve_app(app: web.Application) -> AsyncIterator[str]:
    """Start *app* on an ephemeral port, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    host, port = runner.addresses[0][:2]
    try:
        yield f"http://{host}:{port}"
    finally:
        await runner.cleanup()


def _handler(path: str, route: Route, hits: Counter):
    async def handle(_request: web.Request) -> web.Response:
        hits[path] += 1
        if route.delay:
            await asyncio.sleep(route.delay)
        return web.Response(text=route.body, status=route.status, content_type=route.content_type)

    return handle


@pytest_asyncio.fixture
async def serve_site() -> AsyncIterator[SiteFactory]:
    """
    Factory fixture: ``base, hits = await serve_site({"/": "<a href=...>"})``.

    ``hits`` counts requests per path; unknown paths answer 404.
    """
    async with AsyncExitStack() as stack:

        async def start(pages: Dict[str, RouteSpec]) -> Tuple[str, Counter]:
            hits: Counter = Counter()
            app = web.Application()
            for path, spec in pages.items():
                route = spec if isinstance(spec, Route) else Route(body=spec)
                app.router.add_get(path, _handler(path, route, hits))
            base = await stack.enter_async_context(_serve_app(app))
            return base, hits

        yield start


@pytest.fixture()
def make_config() -> Callable[..., CrawlerConfig]:
    """Build a CrawlerConfig with test-friendly defaults."""

    def build(seed_url: str, **overrides) -> CrawlerConfig:
        values = {"worker_count": 4, "fetch_timeout": 2.0}
        values.update(overrides)
        return CrawlerConfig(seed_url=seed_url, **values)

    return build


@pytest.fixture()
def classifier() -> LinkClassifier:
    return LinkClassifier("http://example.com/")


@pytest.fixture()
def closed_port() -> int:
    """A local port nothing listens on (connections are refused)."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
