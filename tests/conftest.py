import asyncio

import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer


class FakeBackend:
    """Serves a configurable status and body on every GET path."""

    def __init__(self):
        self.status = 200
        self.body: object = {}
        self.raw: str | None = None
        self.delay = 0.0
        self.body_delay = 0.0
        self.requests: list[web.Request] = []
        self.endpoint = ""

    def app(self) -> web.Application:
        async def handler(request):
            self.requests.append(request)
            await asyncio.sleep(self.delay)
            if self.body_delay:
                resp = web.StreamResponse(status=self.status)
                resp.content_type = "application/json"
                await resp.prepare(request)
                await resp.write(b'{"memory": ')
                await asyncio.sleep(self.body_delay)
                await resp.write(b"1}")
                return resp
            if self.raw is not None:
                return web.Response(text=self.raw, status=self.status)
            return web.json_response(self.body, status=self.status)

        app = web.Application()
        app.router.add_get("/{path:.*}", handler)
        return app


async def _start():
    backend = FakeBackend()
    server = TestServer(backend.app())
    await server.start_server()
    backend.endpoint = f"http://{server.host}:{server.port}"
    return backend, server


@pytest_asyncio.fixture
async def backend():
    backend, server = await _start()
    yield backend
    await server.close()


@pytest_asyncio.fixture
async def backend_pair():
    first, first_server = await _start()
    second, second_server = await _start()
    yield first, second
    await first_server.close()
    await second_server.close()
