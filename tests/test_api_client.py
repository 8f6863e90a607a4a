import asyncio
import json
import socket

import jwt
import pytest
from pydantic import ValidationError

from conftest import (
    CONNECTION_ID,
    EVENT_ID,
    OTHER_WORKSPACE_ID,
    RULE_ID,
    WORKSPACE_ID,
    page,
)
from core.api_client import MeshesApiClient, with_query
from core.errors import MeshesApiError, MeshesError, MeshesTransportError
from core.models import MeshesConfig


def _claims(request, config) -> dict:
    scheme, _, token = request.headers["Authorization"].partition(" ")
    assert scheme == "Bearer"
    return jwt.decode(
        token,
        config.secret_key.encode("utf-8"),
        algorithms=["HS256"],
        audience="meshes-api",
    )


# -----------------------------------------------------------------------------
# Query strings
# -----------------------------------------------------------------------------
def test_with_query_without_parameters_has_no_question_mark():
    assert with_query("/api/v1/events") == "/api/v1/events"
    assert with_query("/api/v1/events", {"limit": None, "cursor": None}) == "/api/v1/events"
    assert with_query("/api/v1/events", {"cursor": ""}) == "/api/v1/events"


def test_with_query_encodes_present_parameters_in_order():
    path = with_query("/api/v1/events", {"limit": 25, "cursor": "abc/=+", "event": None})
    assert path == "/api/v1/events?limit=25&cursor=abc%2F%3D%2B"


def test_with_query_booleans():
    assert with_query("/x", {"refresh": True}) == "/x?refresh=true"


# -----------------------------------------------------------------------------
# The request mechanism
# -----------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_request_carries_fresh_bearer_token_and_json_content_type(
    client, meshes_api, config
):
    meshes_api.reply("GET", f"/api/v1/workspaces/{WORKSPACE_ID}", body={"id": WORKSPACE_ID})

    result = await client.get_workspace(WORKSPACE_ID)

    assert result == {"id": WORKSPACE_ID}
    request = meshes_api.last
    assert request.method == "GET"
    assert request.headers["Content-Type"] == "application/json"
    claims = _claims(request, config)
    assert claims["org"] == config.org_id
    assert claims["exp"] - claims["iat"] == 30


@pytest.mark.asyncio
async def test_caller_headers_merge_over_defaults(client, meshes_api):
    meshes_api.reply("GET", "/api/v1/integrations", body=page([]))

    await client._request(
        "GET",
        "/api/v1/integrations",
        headers={"X-Request-Id": "req-1", "Content-Type": "application/vnd.meshes+json"},
    )

    headers = meshes_api.last.headers
    assert headers["X-Request-Id"] == "req-1"
    assert headers["Content-Type"] == "application/vnd.meshes+json"
    assert headers["Authorization"].startswith("Bearer ")


@pytest.mark.asyncio
async def test_no_content_returns_empty_object(client, meshes_api):
    meshes_api.reply("DELETE", f"/api/v1/rules/{RULE_ID}", status=204)

    result = await client.delete_rule(RULE_ID)

    assert result == {}
    assert result is not None


@pytest.mark.asyncio
async def test_non_2xx_embeds_status_and_raw_body(client, meshes_api):
    with pytest.raises(MeshesApiError) as excinfo:
        await client.get_event(EVENT_ID)

    error = excinfo.value
    assert error.status == 404
    assert error.body == "not found"
    assert "404" in str(error)
    assert "not found" in str(error)


@pytest.mark.asyncio
async def test_error_body_is_not_decoded(client, meshes_api):
    body = {"error": "conflict", "rules": [RULE_ID]}
    meshes_api.reply("DELETE", f"/api/v1/connections/{CONNECTION_ID}", status=409, body=body)

    with pytest.raises(MeshesApiError) as excinfo:
        await client.delete_connection(CONNECTION_ID)

    assert excinfo.value.status == 409
    assert json.loads(excinfo.value.body) == body


@pytest.mark.asyncio
async def test_invalid_json_propagates(client, meshes_api):
    meshes_api.reply("GET", "/api/v1/connections", body="<html>oops</html>")

    with pytest.raises(json.JSONDecodeError):
        await client.list_connections()


@pytest.mark.asyncio
async def test_connection_failure_is_a_transport_error(config):
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]

    closed = MeshesApiClient(
        MeshesConfig(
            access_key=config.access_key,
            secret_key=config.secret_key,
            org_id=config.org_id,
            base_url=f"http://127.0.0.1:{port}",
        )
    )

    with pytest.raises(MeshesTransportError) as excinfo:
        await closed.list_workspaces()
    assert isinstance(excinfo.value, MeshesError)


@pytest.mark.asyncio
async def test_concurrent_calls_do_not_interfere(client, meshes_api, config):
    meshes_api.reply("GET", f"/api/v1/workspaces/{WORKSPACE_ID}", body={"id": WORKSPACE_ID})
    meshes_api.reply(
        "GET", f"/api/v1/workspaces/{OTHER_WORKSPACE_ID}", body={"id": OTHER_WORKSPACE_ID}
    )

    first, second = await asyncio.gather(
        client.get_workspace(WORKSPACE_ID),
        client.get_workspace(OTHER_WORKSPACE_ID),
    )

    assert first == {"id": WORKSPACE_ID}
    assert second == {"id": OTHER_WORKSPACE_ID}
    assert len(meshes_api.requests) == 2
    for request in meshes_api.requests:
        claims = _claims(request, config)
        assert claims["org"] == config.org_id
        assert claims["iss"] == f"urn:meshes:m2m:{config.access_key}"


# -----------------------------------------------------------------------------
# Workspaces
# -----------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_create_workspace_round_trips_fields(client, meshes_api):
    meshes_api.reply(
        "POST",
        "/api/v1/workspaces",
        status=201,
        body=lambda sent: {"workspace": {"id": WORKSPACE_ID, **sent}},
    )

    result = await client.create_workspace("Acme Corp", description="Main tenant")

    assert meshes_api.last.body == {"name": "Acme Corp", "description": "Main tenant"}
    assert result["workspace"]["name"] == "Acme Corp"
    assert result["workspace"]["description"] == "Main tenant"


@pytest.mark.asyncio
async def test_create_workspace_omits_missing_description(client, meshes_api):
    meshes_api.reply("POST", "/api/v1/workspaces", status=201, body={"workspace": {}})

    await client.create_workspace("Acme Corp")

    assert meshes_api.last.body == {"name": "Acme Corp"}


@pytest.mark.asyncio
async def test_update_workspace_can_clear_description(client, meshes_api):
    path = f"/api/v1/workspaces/{WORKSPACE_ID}"
    meshes_api.reply("PUT", path, body=lambda sent: {"id": WORKSPACE_ID, **sent})

    result = await client.update_workspace(WORKSPACE_ID, "Renamed", description=None)
    assert meshes_api.last.body == {"name": "Renamed", "description": None}
    assert result["description"] is None

    await client.update_workspace(WORKSPACE_ID, "Renamed")
    assert meshes_api.last.body == {"name": "Renamed"}


@pytest.mark.asyncio
async def test_invalid_workspace_name_is_rejected_before_any_request(client, meshes_api):
    with pytest.raises(ValidationError):
        await client.create_workspace("ab")
    with pytest.raises(ValidationError):
        await client.create_workspace("bad/name!")

    assert meshes_api.requests == []


@pytest.mark.asyncio
async def test_workspace_sub_resources(client, meshes_api):
    for sub in ("connections", "rules"):
        meshes_api.reply("GET", f"/api/v1/workspaces/{WORKSPACE_ID}/{sub}", body=page([]))

    await client.get_workspace_connections(WORKSPACE_ID)
    await client.get_workspace_rules(WORKSPACE_ID)

    assert [r.path for r in meshes_api.requests] == [
        f"/api/v1/workspaces/{WORKSPACE_ID}/connections",
        f"/api/v1/workspaces/{WORKSPACE_ID}/rules",
    ]


@pytest.mark.asyncio
async def test_workspace_events_encodes_only_present_filters(client, meshes_api):
    path = f"/api/v1/workspaces/{WORKSPACE_ID}/events"
    meshes_api.reply("GET", path, body=page([], next_cursor="c2", limit=10))

    result = await client.get_workspace_events(
        WORKSPACE_ID, limit=10, cursor="c1", status="failed"
    )

    assert meshes_api.last.query == {"limit": "10", "cursor": "c1", "status": "failed"}
    assert result["next_cursor"] == "c2"
    assert result["limit"] == 10


@pytest.mark.asyncio
async def test_workspace_events_rejects_unknown_status(client, meshes_api):
    with pytest.raises(ValidationError):
        await client.get_workspace_events(WORKSPACE_ID, status="lost")
    with pytest.raises(ValidationError):
        await client.get_workspace_events(WORKSPACE_ID, limit=500)
    assert meshes_api.requests == []


# -----------------------------------------------------------------------------
# Connections
# -----------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_create_connection_preserves_metadata(client, meshes_api):
    meshes_api.reply(
        "POST",
        "/api/v1/connections",
        status=201,
        body=lambda sent: {"connection": {"id": CONNECTION_ID, **sent}},
    )
    metadata = {
        "api_key": "pk_live_123",
        "list_id": 42,
        "double_opt_in": False,
        "region": None,
        "fields": {"email": "email", "tags": ["a", "b"]},
    }

    result = await client.create_connection(
        workspace=WORKSPACE_ID, type="mailchimp", name="Newsletter", metadata=metadata
    )

    sent = meshes_api.last.body
    assert list(sent) == ["workspace", "type", "name", "metadata"]
    assert sent["metadata"] == metadata
    assert result["connection"]["metadata"] == metadata
    assert result["connection"]["name"] == "Newsletter"


@pytest.mark.asyncio
async def test_create_connection_rejects_unknown_type(client, meshes_api):
    with pytest.raises(ValidationError):
        await client.create_connection(
            workspace=WORKSPACE_ID, type="myspace", name="Nope", metadata={}
        )
    assert meshes_api.requests == []


@pytest.mark.asyncio
async def test_update_connection(client, meshes_api):
    path = f"/api/v1/connections/{CONNECTION_ID}"
    meshes_api.reply("PUT", path, body=lambda sent: {"id": CONNECTION_ID, **sent})

    result = await client.update_connection(
        CONNECTION_ID, name="Newsletter", metadata={"list_id": 7}, hidden=True
    )

    assert meshes_api.last.body == {"name": "Newsletter", "metadata": {"list_id": 7}, "hidden": True}
    assert result["hidden"] is True


@pytest.mark.asyncio
async def test_delete_connection_sends_force_flag_only_when_forced(client, meshes_api):
    path = f"/api/v1/connections/{CONNECTION_ID}"
    meshes_api.reply("DELETE", path, body={"id": CONNECTION_ID, "type": "hubspot"})

    result = await client.delete_connection(CONNECTION_ID)
    assert meshes_api.last.body is None
    assert result == {"id": CONNECTION_ID, "type": "hubspot"}

    await client.delete_connection(CONNECTION_ID, force_delete=True)
    assert meshes_api.last.body == {"force_delete": True}


@pytest.mark.asyncio
async def test_connection_catalog_endpoints(client, meshes_api):
    base = f"/api/v1/connections/{CONNECTION_ID}"
    meshes_api.reply("GET", f"{base}/actions", body=[{"action": "add_to_list"}])
    meshes_api.reply("GET", f"{base}/fields", body={"fields": []})
    meshes_api.reply("GET", f"{base}/mappings/default", body={"mappings": []})

    assert await client.get_connection_actions(CONNECTION_ID) == [{"action": "add_to_list"}]

    await client.get_connection_fields(CONNECTION_ID)
    assert meshes_api.last.path_qs == f"{base}/fields"

    await client.get_connection_fields(CONNECTION_ID, refresh=True)
    assert meshes_api.last.path_qs == f"{base}/fields?refresh=true"

    assert await client.get_connection_default_mappings(CONNECTION_ID) == {"mappings": []}


# -----------------------------------------------------------------------------
# Rules
# -----------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_list_rules_filters(client, meshes_api):
    meshes_api.reply("GET", "/api/v1/rules", body=page([]))

    await client.list_rules()
    assert meshes_api.last.path_qs == "/api/v1/rules"

    await client.list_rules(event="user.signup", resource_id="order-1")
    assert meshes_api.last.query == {"event": "user.signup", "resource_id": "order-1"}


@pytest.mark.asyncio
async def test_create_rule_requires_action(client, meshes_api):
    with pytest.raises(ValidationError):
        await client.create_rule(
            workspace=WORKSPACE_ID,
            connection=CONNECTION_ID,
            event="user.signup",
            metadata={"name": "no action"},
        )
    with pytest.raises(ValidationError):
        await client.create_rule(
            workspace=WORKSPACE_ID,
            connection=CONNECTION_ID,
            event="user.signup",
            metadata={"action": "add_to_list"},
            resource_id="has spaces",
        )
    assert meshes_api.requests == []


@pytest.mark.asyncio
async def test_create_rule_passes_metadata_through(client, meshes_api):
    meshes_api.reply(
        "POST",
        "/api/v1/rules",
        status=201,
        body=lambda sent: {"rule": {"id": RULE_ID, **sent}},
    )

    result = await client.create_rule(
        workspace=WORKSPACE_ID,
        connection=CONNECTION_ID,
        event="user.signup",
        metadata={"action": "add_to_list", "id": "list-9", "option_value": "vip"},
        active=True,
    )

    sent = meshes_api.last.body
    assert sent["metadata"] == {"action": "add_to_list", "id": "list-9", "option_value": "vip"}
    assert sent["active"] is True
    assert "hidden" not in sent
    assert result["rule"]["event"] == "user.signup"


@pytest.mark.asyncio
async def test_delete_rule_returns_confirmation(client, meshes_api):
    confirmation = {
        "id": RULE_ID,
        "connection": CONNECTION_ID,
        "type": "hubspot",
        "event": "user.signup",
    }
    meshes_api.reply("DELETE", f"/api/v1/rules/{RULE_ID}", body=confirmation)

    assert await client.delete_rule(RULE_ID) == confirmation
    assert meshes_api.last.body is None


# -----------------------------------------------------------------------------
# Events
# -----------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_list_events_pagination(client, meshes_api):
    meshes_api.reply("GET", "/api/v1/events", body=page([{"id": EVENT_ID}], next_cursor=None))

    result = await client.list_events()
    assert meshes_api.last.path_qs == "/api/v1/events"
    assert result["next_cursor"] is None

    await client.list_events(limit=5, cursor="opaque==")
    assert meshes_api.last.query == {"limit": "5", "cursor": "opaque=="}


@pytest.mark.asyncio
async def test_emit_event(client, meshes_api):
    meshes_api.reply(
        "POST",
        "/api/v1/events",
        status=201,
        body=lambda sent: {"event": {"id": EVENT_ID, "event": sent["event"]}},
    )

    result = await client.emit_event(
        workspace=WORKSPACE_ID,
        event="user.signup",
        payload={"email": "jane@example.com", "plan": {"tier": "pro"}},
        resource="user",
    )

    assert meshes_api.last.body == {
        "workspace": WORKSPACE_ID,
        "event": "user.signup",
        "payload": {"email": "jane@example.com", "plan": {"tier": "pro"}},
        "resource": "user",
    }
    assert result["event"]["id"] == EVENT_ID


@pytest.mark.asyncio
async def test_bulk_emit_partial_success(client, meshes_api):
    def partial(sent):
        records = [{"id": f"evt-{i}", "event": e["event"]} for i, e in enumerate(sent)]
        records[1] = {"error": "payload.email is required", "index": 1}
        return {"count": len(sent), "error_count": 1, "records": records}

    meshes_api.reply("POST", "/api/v1/events/bulk", status=207, body=partial)
    events = [
        {"workspace": WORKSPACE_ID, "event": "user.signup", "payload": {"email": "a@x.io"}},
        {"workspace": WORKSPACE_ID, "event": "user.signup", "payload": {}},
        {"workspace": WORKSPACE_ID, "event": "user.login", "payload": {"email": "c@x.io"}},
    ]

    result = await client.emit_bulk_events(events)

    assert isinstance(meshes_api.last.body, list)
    assert len(meshes_api.last.body) == 3
    assert result["count"] == 3
    assert result["error_count"] == 1
    assert len(result["records"]) == 3
    assert "error" in result["records"][1]
    assert all("error" not in r for i, r in enumerate(result["records"]) if i != 1)


@pytest.mark.asyncio
async def test_bulk_emit_limits(client, meshes_api):
    one = {"workspace": WORKSPACE_ID, "event": "ping", "payload": {}}
    with pytest.raises(ValidationError):
        await client.emit_bulk_events([])
    with pytest.raises(ValidationError):
        await client.emit_bulk_events([one] * 101)
    assert meshes_api.requests == []


@pytest.mark.asyncio
async def test_event_detail_and_retry(client, meshes_api):
    meshes_api.reply("GET", f"/api/v1/events/{EVENT_ID}", body={"id": EVENT_ID, "status": "failed"})
    meshes_api.reply(
        "GET", f"/api/v1/events/{EVENT_ID}/payload", body={"id": EVENT_ID, "payload": {"a": 1}}
    )
    retry_path = f"/api/v1/events/{EVENT_ID}/rules/{RULE_ID}/retry"
    meshes_api.reply("POST", retry_path, body={"type": "rule", "status": "pending", "attempt_count": 2})

    assert (await client.get_event(EVENT_ID))["status"] == "failed"
    assert (await client.get_event_payload(EVENT_ID))["payload"] == {"a": 1}

    retried = await client.retry_event_rule(EVENT_ID, RULE_ID)
    assert meshes_api.last.method == "POST"
    assert meshes_api.last.path == retry_path
    assert meshes_api.last.body is None
    assert retried["attempt_count"] == 2


@pytest.mark.asyncio
async def test_list_integrations(client, meshes_api):
    meshes_api.reply("GET", "/api/v1/integrations", body=page([{"type": "hubspot"}]))

    result = await client.list_integrations()

    assert result["records"] == [{"type": "hubspot"}]
    assert meshes_api.last.path_qs == "/api/v1/integrations"
