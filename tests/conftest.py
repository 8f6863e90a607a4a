import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

# Make the project packages importable when running tests without installing
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from core.api_client import MeshesApiClient  # noqa: E402
from core.models import MeshesConfig  # noqa: E402

ACCESS_KEY = "mk_test_0123456789"
SECRET_KEY = "test-secret-key-that-is-long-enough-for-hs256-signing"
ORG_ID = "0b8e2c1a-5f3d-4e7a-9c2b-1d4f6a8e0c3b"

WORKSPACE_ID = "11111111-2222-4333-8444-555555555555"
OTHER_WORKSPACE_ID = "66666666-7777-4888-9999-aaaaaaaaaaaa"
CONNECTION_ID = "aaaaaaaa-bbbb-4ccc-8ddd-eeeeeeeeeeee"
RULE_ID = "12345678-90ab-4cde-8f01-234567890abc"
EVENT_ID = "fedcba98-7654-4321-8fed-cba987654321"

Reply = Union[str, dict, list, Callable[[Any], Any], None]


@dataclass
class RecordedRequest:
    method: str
    path: str
    path_qs: str
    query: dict[str, str]
    headers: Mapping[str, str]
    body: Any


@dataclass
class FakeMeshes:
    """In-process stand-in for the Meshes REST API.

    Routes are registered with reply(); anything unregistered answers
    404 "not found".  Every request is recorded in ``requests``.
    """

    base_url: str = ""
    routes: dict[tuple[str, str], tuple[int, Reply]] = field(default_factory=dict)
    requests: list[RecordedRequest] = field(default_factory=list)

    def reply(self, method: str, path: str, status: int = 200, body: Reply = None) -> None:
        """Register a canned reply.

        A str body is sent as plain text, a callable is called with the
        decoded request body and its return value is sent as JSON.
        """
        self.routes[(method, path)] = (status, body)

    async def handle(self, request: web.Request) -> web.Response:
        raw = await request.text()
        body = json.loads(raw) if raw else None
        self.requests.append(
            RecordedRequest(
                method=request.method,
                path=request.path,
                path_qs=request.path_qs,
                query=dict(request.query),
                headers=request.headers,
                body=body,
            )
        )

        status, reply = self.routes.get((request.method, request.path), (404, "not found"))
        if callable(reply):
            reply = reply(body)
        if status == 204:
            return web.Response(status=204)
        if isinstance(reply, str):
            return web.Response(status=status, text=reply)
        return web.json_response(reply, status=status)

    @property
    def last(self) -> RecordedRequest:
        return self.requests[-1]


@pytest_asyncio.fixture
async def meshes_api():
    """Start a fake Meshes API on a local port for one test."""
    fake = FakeMeshes()
    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", fake.handle)

    server = TestServer(app)
    await server.start_server()
    fake.base_url = f"http://{server.host}:{server.port}"
    try:
        yield fake
    finally:
        await server.close()


@pytest.fixture
def config() -> MeshesConfig:
    return MeshesConfig(
        access_key=ACCESS_KEY,
        secret_key=SECRET_KEY,
        org_id=ORG_ID,
        base_url="https://api.meshes.test",
    )


@pytest.fixture
def client(meshes_api, config) -> MeshesApiClient:
    """A client pointed at the fake API."""
    return MeshesApiClient(
        MeshesConfig(
            access_key=config.access_key,
            secret_key=config.secret_key,
            org_id=config.org_id,
            base_url=meshes_api.base_url,
        )
    )


def page(records: list, next_cursor: Optional[str] = None, limit: int = 50) -> dict:
    return {"count": len(records), "limit": limit, "next_cursor": next_cursor, "records": records}
