# =============================================================================
# core/api_client.py  —  Authenticated Meshes API Client
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Wraps every Meshes REST operation the tool server exposes.  Each public
#   method is an independent async call built on ONE mechanism, _request():
#
#     1. Mint a fresh 30-second token (core/auth.py)
#     2. URL = base_url + path (+ query string, only when a filter is present)
#     3. Headers: Bearer token + JSON content type (caller headers merge over)
#     4. Serialize the JSON body, if any
#     5. Send it with aiohttp
#     6. Non-2xx  → MeshesApiError(status, raw body text)
#     7. 204      → {}
#     8. else     → parsed JSON
#
# CONCURRENCY:
#   The client holds nothing but the frozen MeshesConfig, so any number of
#   calls can be in flight at once.  Each call opens its own ClientSession;
#   there is no pool, no queue and no retry.  Timeouts are aiohttp's defaults.
#
# IDENTIFIERS:
#   Path segments are interpolated directly.  The tool layer validates ids
#   (UUIDs) before they get here.
#
# Reference: https://docs.meshes.dev
# =============================================================================

import asyncio
import json
import logging
from typing import Any, Mapping, Optional, Sequence
from urllib.parse import urlencode

import aiohttp

from core.auth import mint_token
from core.errors import MeshesApiError, MeshesTransportError
from core.models import (
    BulkEmitResult,
    Connection,
    CreatedConnection,
    CreatedRule,
    CreatedWorkspace,
    DeletedConnection,
    DeletedRule,
    EmittedEvent,
    EventStatus,
    IntegrationType,
    MeshesConfig,
    MeshesEvent,
    Page,
    Rule,
    RuleEvent,
    Workspace,
)
from core.schemas import (
    BulkEmitParams,
    CreateConnectionParams,
    CreateRuleParams,
    CreateWorkspaceParams,
    EmitEventParams,
    EventPageParams,
    RuleFilters,
    UpdateConnectionParams,
    UpdateWorkspaceParams,
    WorkspaceEventFilters,
)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

# Marks "argument not passed", as distinct from an explicit None.
UNSET: Any = object()


def with_query(path: str, query: Optional[Mapping[str, Any]] = None) -> str:
    """Append a query string built from the parameters that are present.

    None and empty-string values are dropped; booleans become "true"/"false".
    Returns the bare path (no "?") when nothing is left.
    """
    pairs = []
    for key, value in (query or {}).items():
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        pairs.append((key, str(value)))
    if not pairs:
        return path
    return f"{path}?{urlencode(pairs)}"


class MeshesApiClient:
    """Async client for the Meshes REST API.

    Args:
        config: Credentials and base URL.  Read-only; shared by every call.
    """

    def __init__(self, config: MeshesConfig):
        self._config = config

    @property
    def config(self) -> MeshesConfig:
        return self._config

    async def _request(
        self,
        method: str,
        path: str,
        *,
        query: Optional[Mapping[str, Any]] = None,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        token = mint_token(self._config)
        url = f"{self._config.base_url}{with_query(path, query)}"

        request_headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        request_headers.update(headers or {})

        data = json.dumps(body) if body is not None else None

        logger.debug("%s %s", method, path)
        try:
            async with aiohttp.ClientSession() as session:
                async with session.request(
                    method, url, headers=request_headers, data=data
                ) as response:
                    text = await response.text()
                    status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise MeshesTransportError(
                f"Meshes API request {method} {path} failed: {exc!r}"
            ) from exc

        logger.debug("%s %s -> %s", method, path, status)
        if not 200 <= status < 300:
            raise MeshesApiError(status, text)
        if status == 204:
            return {}
        return json.loads(text)

    # -------------------------------------------------------------------------
    # Workspaces
    # -------------------------------------------------------------------------
    async def list_workspaces(self) -> Page:
        return await self._request("GET", f"{API_PREFIX}/workspaces")

    async def get_workspace(self, workspace_id: str) -> Workspace:
        return await self._request("GET", f"{API_PREFIX}/workspaces/{workspace_id}")

    async def create_workspace(
        self, name: str, description: Optional[str] = None
    ) -> CreatedWorkspace:
        params = CreateWorkspaceParams(name=name, description=description)
        return await self._request(
            "POST", f"{API_PREFIX}/workspaces", body=params.to_body()
        )

    async def update_workspace(
        self, workspace_id: str, name: str, description: Optional[str] = UNSET
    ) -> Workspace:
        """Replace a workspace's name and description.

        Pass description=None to clear it; leave it out to send name only.
        """
        fields: dict[str, Any] = {"name": name}
        if description is not UNSET:
            fields["description"] = description
        params = UpdateWorkspaceParams(**fields)
        return await self._request(
            "PUT", f"{API_PREFIX}/workspaces/{workspace_id}", body=params.to_body()
        )

    async def get_workspace_connections(self, workspace_id: str) -> Page:
        return await self._request(
            "GET", f"{API_PREFIX}/workspaces/{workspace_id}/connections"
        )

    async def get_workspace_rules(self, workspace_id: str) -> Page:
        return await self._request("GET", f"{API_PREFIX}/workspaces/{workspace_id}/rules")

    async def get_workspace_events(
        self,
        workspace_id: str,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
        event: Optional[str] = None,
        status: Optional[EventStatus] = None,
        resource: Optional[str] = None,
        resource_id: Optional[str] = None,
    ) -> Page:
        filters = WorkspaceEventFilters(
            limit=limit,
            cursor=cursor,
            event=event,
            status=status,
            resource=resource,
            resource_id=resource_id,
        )
        return await self._request(
            "GET",
            f"{API_PREFIX}/workspaces/{workspace_id}/events",
            query=filters.to_body(),
        )

    # -------------------------------------------------------------------------
    # Connections
    # -------------------------------------------------------------------------
    async def list_connections(self) -> Page:
        return await self._request("GET", f"{API_PREFIX}/connections")

    async def get_connection(self, connection_id: str) -> Connection:
        return await self._request("GET", f"{API_PREFIX}/connections/{connection_id}")

    async def create_connection(
        self,
        workspace: str,
        type: IntegrationType,
        name: str,
        metadata: Mapping[str, Any],
        hidden: Optional[bool] = None,
    ) -> CreatedConnection:
        params = CreateConnectionParams(
            workspace=workspace, type=type, name=name, metadata=metadata, hidden=hidden
        )
        return await self._request(
            "POST", f"{API_PREFIX}/connections", body=params.to_body()
        )

    async def update_connection(
        self,
        connection_id: str,
        name: str,
        metadata: Mapping[str, Any],
        hidden: Optional[bool] = None,
    ) -> Connection:
        params = UpdateConnectionParams(name=name, metadata=metadata, hidden=hidden)
        return await self._request(
            "PUT", f"{API_PREFIX}/connections/{connection_id}", body=params.to_body()
        )

    async def delete_connection(
        self, connection_id: str, force_delete: bool = False
    ) -> DeletedConnection:
        """Delete a connection.

        The server refuses (409) while rules still route to the connection,
        unless force_delete is set.
        """
        body = {"force_delete": True} if force_delete else None
        return await self._request(
            "DELETE", f"{API_PREFIX}/connections/{connection_id}", body=body
        )

    async def get_connection_actions(self, connection_id: str) -> Any:
        return await self._request(
            "GET", f"{API_PREFIX}/connections/{connection_id}/actions"
        )

    async def get_connection_fields(self, connection_id: str, refresh: bool = False) -> Any:
        return await self._request(
            "GET",
            f"{API_PREFIX}/connections/{connection_id}/fields",
            query={"refresh": True if refresh else None},
        )

    async def get_connection_default_mappings(self, connection_id: str) -> Any:
        return await self._request(
            "GET", f"{API_PREFIX}/connections/{connection_id}/mappings/default"
        )

    # -------------------------------------------------------------------------
    # Rules
    # -------------------------------------------------------------------------
    async def list_rules(
        self,
        event: Optional[str] = None,
        resource: Optional[str] = None,
        resource_id: Optional[str] = None,
    ) -> Page:
        filters = RuleFilters(event=event, resource=resource, resource_id=resource_id)
        return await self._request("GET", f"{API_PREFIX}/rules", query=filters.to_body())

    async def get_rule(self, rule_id: str) -> Rule:
        return await self._request("GET", f"{API_PREFIX}/rules/{rule_id}")

    async def create_rule(
        self,
        workspace: str,
        connection: str,
        event: str,
        metadata: Mapping[str, Any],
        resource: Optional[str] = None,
        resource_id: Optional[str] = None,
        active: Optional[bool] = None,
        hidden: Optional[bool] = None,
    ) -> CreatedRule:
        params = CreateRuleParams(
            workspace=workspace,
            connection=connection,
            event=event,
            metadata=metadata,
            resource=resource,
            resource_id=resource_id,
            active=active,
            hidden=hidden,
        )
        return await self._request("POST", f"{API_PREFIX}/rules", body=params.to_body())

    async def delete_rule(self, rule_id: str) -> DeletedRule:
        return await self._request("DELETE", f"{API_PREFIX}/rules/{rule_id}")

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------
    async def list_events(
        self, limit: Optional[int] = None, cursor: Optional[str] = None
    ) -> Page:
        page = EventPageParams(limit=limit, cursor=cursor)
        return await self._request("GET", f"{API_PREFIX}/events", query=page.to_body())

    async def emit_event(
        self,
        workspace: str,
        event: str,
        payload: Mapping[str, Any],
        resource: Optional[str] = None,
        resource_id: Optional[str] = None,
    ) -> EmittedEvent:
        params = EmitEventParams(
            workspace=workspace,
            event=event,
            payload=payload,
            resource=resource,
            resource_id=resource_id,
        )
        return await self._request("POST", f"{API_PREFIX}/events", body=params.to_body())

    async def emit_bulk_events(self, events: Sequence[Mapping[str, Any]]) -> BulkEmitResult:
        """Emit 1-100 events in one request.

        The server answers 201 when every event was accepted and 207 when only
        some were; failed members are reported in ``records`` and counted in
        ``error_count``.  They are not retried or split here.
        """
        params = BulkEmitParams(events=list(events))
        return await self._request(
            "POST", f"{API_PREFIX}/events/bulk", body=params.to_body()
        )

    async def get_event(self, event_id: str) -> MeshesEvent:
        return await self._request("GET", f"{API_PREFIX}/events/{event_id}")

    async def get_event_payload(self, event_id: str) -> MeshesEvent:
        return await self._request("GET", f"{API_PREFIX}/events/{event_id}/payload")

    async def retry_event_rule(self, event_id: str, rule_id: str) -> RuleEvent:
        return await self._request(
            "POST", f"{API_PREFIX}/events/{event_id}/rules/{rule_id}/retry"
        )

    # -------------------------------------------------------------------------
    # Integrations
    # -------------------------------------------------------------------------
    async def list_integrations(self) -> Page:
        return await self._request("GET", f"{API_PREFIX}/integrations")
