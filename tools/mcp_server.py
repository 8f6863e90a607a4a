# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server (ALL Meshes tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Defines every MCP tool the agent can call.  Each tool is a thin wrapper
#   around one MeshesApiClient method: it checks the arguments, calls
#   the API and renders its JSON back as text.
#
# HOW IT WORKS (the flow):
#   1. The agent decides it needs something (e.g., the events of a workspace)
#   2. It calls a tool by name via MCP (e.g., "meshes_get_workspace_events")
#   3. FastMCP validates the arguments against the tool's signature
#   4. The tool calls core/api_client.py, which mints a token and sends
#      the request
#   5. The agent receives the API's JSON response as pretty-printed text
#
# TOOL NAMING CONVENTIONS:
#   - meshes_list_* / meshes_get_*  → read-only (readOnlyHint)
#   - meshes_create_* / meshes_emit_* / meshes_retry_*  → write, not idempotent
#   - meshes_update_*  → write, idempotent (PUT replaces the record)
#   - meshes_delete_*  → destructive (destructiveHint)
#
# ERRORS:
#   Any MeshesError (transport failure or API rejection) and any input
#   ValidationError is turned into a ToolError.  MCP reports it to the agent
#   as an error result carrying the message text, e.g.
#   "Meshes API 404: not found".
#
# RUNNING THIS SERVER:
#     a) Standalone:  python -m tools.mcp_server   (or the meshes-mcp script)
#     b) Spawned by the ADK agent via stdio transport (agent/meshes_agent.py)
# =============================================================================

import json
import logging
import sys
from typing import Annotated, Any, Awaitable, Callable, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from mcp.types import ToolAnnotations
from pydantic import Field, ValidationError

from core.api_client import UNSET, MeshesApiClient
from core.config import load_config
from core.errors import MeshesConfigError, MeshesError
from core.models import EventStatus, IntegrationType
from core.schemas import (
    MAX_BULK_EVENTS,
    MAX_PAGE_LIMIT,
    UUID_PATTERN,
    EmitEventParams,
)

# =============================================================================
# Logging Setup
# =============================================================================
# We log to STDERR because the MCP server talks to the agent over STDOUT.
# Anything else written to stdout would corrupt the MCP JSON stream.
#
# ANSI COLOR CODES:
#     - CYAN for incoming requests (tool name + parameters)
#     - GREEN for response JSON
#     - YELLOW for intermediate status/progress messages
#     - RED for errors handed back to the agent
# =============================================================================

_CYAN = "\033[36m"     # Requests (tool calls with params)
_GREEN = "\033[32m"    # Responses (JSON output)
_YELLOW = "\033[33m"   # Status/progress messages
_RED = "\033[31m"      # Errors
_RESET = "\033[0m"     # Reset to default terminal color

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [MCP] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)

logger = logging.getLogger("meshes.mcp")

# Parameters whose values are never echoed to the log.
_REDACTED_PARAMS = {"metadata", "metadata_extra", "payload", "events"}


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(
        f"{k}=<{type(v).__name__}>" if k in _REDACTED_PARAMS else f"{k}={v!r}"
        for k, v in params.items()
    )
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_error(tool_name: str, message: str) -> None:
    logger.info(f"{_RED}  ✗ {tool_name} failed: {message}{_RESET}")


def _log_response(tool_name: str, result: Any) -> Any:
    """Log the tool response as compact JSON in GREEN, then return it."""
    logger.info(f"{_GREEN}  ← {tool_name} response: {json.dumps(result, separators=(',', ':'))}{_RESET}")
    return result


# =============================================================================
# The API client
# =============================================================================
# Built lazily from the environment on the first tool call, or injected up
# front with configure() (the entry point and the tests both do that).
# =============================================================================
_client: Optional[MeshesApiClient] = None


def configure(client: Optional[MeshesApiClient]) -> None:
    """Use this client for every tool call (None resets to lazy loading)."""
    global _client
    _client = client


def _get_client() -> MeshesApiClient:
    global _client
    if _client is None:
        _client = MeshesApiClient(load_config())
    return _client


def _to_text(result: Any) -> str:
    return json.dumps(result, indent=2)


def _field(result: Any, *path: str) -> Any:
    """Look up a nested key in a JSON reply, or None when the reply has no such shape."""
    for key in path:
        if not isinstance(result, dict):
            return None
        result = result.get(key)
    return result


async def _call(
    tool_name: str, operation: Callable[[MeshesApiClient], Awaitable[Any]]
) -> Any:
    """Run one client operation, turning failures into a ToolError."""
    try:
        result = await operation(_get_client())
    except (MeshesError, ValidationError) as exc:
        _log_error(tool_name, str(exc))
        raise ToolError(str(exc)) from exc
    return _log_response(tool_name, result)


# =============================================================================
# Shared parameter types and tool hints
# =============================================================================
WorkspaceId = Annotated[str, Field(pattern=UUID_PATTERN, description="The workspace UUID")]
ConnectionId = Annotated[str, Field(pattern=UUID_PATTERN, description="The connection UUID")]
RuleId = Annotated[str, Field(pattern=UUID_PATTERN, description="The rule UUID")]
EventId = Annotated[str, Field(pattern=UUID_PATTERN, description="The event UUID")]
PageLimit = Annotated[
    Optional[int],
    Field(ge=1, le=MAX_PAGE_LIMIT, description="Results per page (1-200, default 50)"),
]
PageCursor = Annotated[
    Optional[str],
    Field(description="Pagination cursor from the previous response's next_cursor"),
]
EventFilter = Annotated[
    Optional[str], Field(description="Filter by event type (e.g., 'user.signup')")
]
ResourceFilter = Annotated[Optional[str], Field(description="Filter by resource type")]
ResourceIdFilter = Annotated[Optional[str], Field(description="Filter by resource ID")]


def _read_only(title: str) -> ToolAnnotations:
    return ToolAnnotations(
        title=title,
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
    )


def _write(title: str, idempotent: bool = False, destructive: bool = False) -> ToolAnnotations:
    return ToolAnnotations(
        title=title,
        readOnlyHint=False,
        destructiveHint=destructive,
        idempotentHint=idempotent,
        openWorldHint=True,
    )


# =============================================================================
# Create the FastMCP server instance
# =============================================================================
mcp = FastMCP("meshes-mcp-server")


# =============================================================================
# WORKSPACES
# =============================================================================
# Workspaces are tenant-scoped containers.  In a multi-tenant app each
# customer usually has one, and every connection, rule and event lives
# inside exactly one workspace.
# =============================================================================
@mcp.tool(name="meshes_list_workspaces", annotations=_read_only("List Workspaces"))
async def meshes_list_workspaces() -> str:
    """List all workspaces in the Meshes organization.

    Workspaces are tenant-scoped containers holding connections, rules, and
    event logs. In multi-tenant apps, each customer typically has one
    workspace.
    """
    _log_request("meshes_list_workspaces")
    result = await _call("meshes_list_workspaces", lambda api: api.list_workspaces())
    return _to_text(result)


@mcp.tool(name="meshes_get_workspace", annotations=_read_only("Get Workspace"))
async def meshes_get_workspace(workspace_id: WorkspaceId) -> str:
    """Get details of a specific workspace by UUID, including its publishable
    key for client-side event ingestion."""
    _log_request("meshes_get_workspace", workspace_id=workspace_id)
    result = await _call("meshes_get_workspace", lambda api: api.get_workspace(workspace_id))
    return _to_text(result)


@mcp.tool(name="meshes_create_workspace", annotations=_write("Create Workspace"))
async def meshes_create_workspace(
    name: Annotated[
        str,
        Field(
            min_length=3,
            max_length=50,
            description="Workspace name (3-50 chars, alphanumeric/space/underscore/dash)",
        ),
    ],
    description: Annotated[
        Optional[str], Field(max_length=1024, description="Optional description (max 1024 chars)")
    ] = None,
) -> str:
    """Create a new workspace.

    Typically used when onboarding a new tenant in a multi-tenant SaaS app.
    Returns the created record wrapped as {"workspace": {...}}.
    """
    _log_request("meshes_create_workspace", name=name, description=description)
    result = await _call(
        "meshes_create_workspace",
        lambda api: api.create_workspace(name=name, description=description),
    )
    return _to_text(result)


@mcp.tool(
    name="meshes_update_workspace",
    annotations=_write("Update Workspace", idempotent=True),
)
async def meshes_update_workspace(
    workspace_id: WorkspaceId,
    name: Annotated[str, Field(min_length=3, max_length=50, description="New name")],
    description: Annotated[
        Optional[str],
        Field(max_length=1024, description="New description (omit to keep, null to clear)"),
    ] = Field(default_factory=lambda: UNSET),
) -> str:
    """Update a workspace's name and, when given, its description."""
    changes = {"name": name}
    if description is not UNSET:
        changes["description"] = description
    _log_request("meshes_update_workspace", workspace_id=workspace_id, **changes)
    result = await _call(
        "meshes_update_workspace",
        lambda api: api.update_workspace(workspace_id, **changes),
    )
    return _to_text(result)


@mcp.tool(
    name="meshes_get_workspace_connections",
    annotations=_read_only("Get Workspace Connections"),
)
async def meshes_get_workspace_connections(workspace_id: WorkspaceId) -> str:
    """List all connections scoped to a specific workspace."""
    _log_request("meshes_get_workspace_connections", workspace_id=workspace_id)
    result = await _call(
        "meshes_get_workspace_connections",
        lambda api: api.get_workspace_connections(workspace_id),
    )
    return _to_text(result)


@mcp.tool(name="meshes_get_workspace_rules", annotations=_read_only("Get Workspace Rules"))
async def meshes_get_workspace_rules(workspace_id: WorkspaceId) -> str:
    """List all routing rules scoped to a specific workspace."""
    _log_request("meshes_get_workspace_rules", workspace_id=workspace_id)
    result = await _call(
        "meshes_get_workspace_rules", lambda api: api.get_workspace_rules(workspace_id)
    )
    return _to_text(result)


@mcp.tool(name="meshes_get_workspace_events", annotations=_read_only("Get Workspace Events"))
async def meshes_get_workspace_events(
    workspace_id: WorkspaceId,
    limit: PageLimit = None,
    cursor: PageCursor = None,
    event: EventFilter = None,
    status: Annotated[
        Optional[EventStatus], Field(description="Filter by delivery status")
    ] = None,
    resource: ResourceFilter = None,
    resource_id: ResourceIdFilter = None,
) -> str:
    """List events for a workspace with optional filters.

    WHEN TO CALL THIS: checking delivery status, debugging, or monitoring
    event flow for one tenant.

    Pagination is cursor-based: when the response's next_cursor is not null,
    call again with cursor set to that value (verbatim) to get the next page.
    """
    _log_request(
        "meshes_get_workspace_events",
        workspace_id=workspace_id,
        limit=limit,
        cursor=cursor,
        event=event,
        status=status,
        resource=resource,
        resource_id=resource_id,
    )
    result = await _call(
        "meshes_get_workspace_events",
        lambda api: api.get_workspace_events(
            workspace_id,
            limit=limit,
            cursor=cursor,
            event=event,
            status=status,
            resource=resource,
            resource_id=resource_id,
        ),
    )
    _log_status(f"{_field(result, 'count')} events, next_cursor={_field(result, 'next_cursor')!r}")
    return _to_text(result)


# =============================================================================
# CONNECTIONS
# =============================================================================
# A connection is a configured destination (HubSpot, Salesforce, Resend,
# a webhook, ...).  Its metadata holds connector-specific configuration.
# The API never returns raw credentials.
# =============================================================================
@mcp.tool(name="meshes_list_connections", annotations=_read_only("List Connections"))
async def meshes_list_connections() -> str:
    """List all connections across the organization.

    Connections are configured destinations (HubSpot, Salesforce, Resend,
    webhooks, etc.) holding credentials and config.
    """
    _log_request("meshes_list_connections")
    result = await _call("meshes_list_connections", lambda api: api.list_connections())
    return _to_text(result)


@mcp.tool(name="meshes_get_connection", annotations=_read_only("Get Connection"))
async def meshes_get_connection(connection_id: ConnectionId) -> str:
    """Get details of a specific connection. Does not expose raw credentials."""
    _log_request("meshes_get_connection", connection_id=connection_id)
    result = await _call("meshes_get_connection", lambda api: api.get_connection(connection_id))
    return _to_text(result)


@mcp.tool(name="meshes_create_connection", annotations=_write("Create Connection"))
async def meshes_create_connection(
    workspace: Annotated[
        str,
        Field(pattern=UUID_PATTERN, description="The workspace UUID this connection belongs to"),
    ],
    type: Annotated[IntegrationType, Field(description="Integration type")],
    name: Annotated[
        str,
        Field(
            min_length=1,
            max_length=128,
            description="Connection name (alphanumeric/space/underscore/dash)",
        ),
    ],
    metadata: Annotated[dict[str, Any], Field(description="Connector-specific configuration")],
    hidden: Annotated[Optional[bool], Field(description="Hide from UI (default false)")] = None,
) -> str:
    """Create a new connection (destination) in a workspace.

    The metadata object contains connector-specific configuration (API keys,
    OAuth tokens, webhook URLs, etc.).
    """
    _log_request(
        "meshes_create_connection",
        workspace=workspace,
        type=type,
        name=name,
        metadata=metadata,
        hidden=hidden,
    )
    result = await _call(
        "meshes_create_connection",
        lambda api: api.create_connection(
            workspace=workspace, type=type, name=name, metadata=metadata, hidden=hidden
        ),
    )
    return _to_text(result)


@mcp.tool(
    name="meshes_update_connection",
    annotations=_write("Update Connection", idempotent=True),
)
async def meshes_update_connection(
    connection_id: ConnectionId,
    name: Annotated[str, Field(min_length=1, max_length=128, description="Updated name")],
    metadata: Annotated[
        dict[str, Any], Field(description="Updated connector-specific configuration")
    ],
    hidden: Annotated[Optional[bool], Field(description="Hide from UI")] = None,
) -> str:
    """Update a connection's name, metadata, or visibility."""
    _log_request(
        "meshes_update_connection",
        connection_id=connection_id,
        name=name,
        metadata=metadata,
        hidden=hidden,
    )
    result = await _call(
        "meshes_update_connection",
        lambda api: api.update_connection(
            connection_id, name=name, metadata=metadata, hidden=hidden
        ),
    )
    return _to_text(result)


@mcp.tool(
    name="meshes_delete_connection",
    annotations=_write("Delete Connection", destructive=True),
)
async def meshes_delete_connection(
    connection_id: ConnectionId,
    force_delete: Annotated[
        bool, Field(description="Force delete even if rules exist")
    ] = False,
) -> str:
    """Delete a connection.

    Returns 409 if it has active rules unless force_delete is true.
    """
    _log_request(
        "meshes_delete_connection", connection_id=connection_id, force_delete=force_delete
    )
    result = await _call(
        "meshes_delete_connection",
        lambda api: api.delete_connection(connection_id, force_delete=force_delete),
    )
    return _to_text(result)


@mcp.tool(
    name="meshes_get_connection_actions",
    annotations=_read_only("Get Connection Actions"),
)
async def meshes_get_connection_actions(connection_id: ConnectionId) -> str:
    """Get available actions for a connection (e.g., create_or_update_contact,
    add_to_list).

    WHEN TO CALL THIS: before meshes_create_rule, to discover which action to
    put in the rule's metadata.
    """
    _log_request("meshes_get_connection_actions", connection_id=connection_id)
    result = await _call(
        "meshes_get_connection_actions",
        lambda api: api.get_connection_actions(connection_id),
    )
    return _to_text(result)


@mcp.tool(
    name="meshes_get_connection_fields",
    annotations=_read_only("Get Connection Fields"),
)
async def meshes_get_connection_fields(
    connection_id: ConnectionId,
    refresh: Annotated[
        bool, Field(description="Force refresh the field catalog from the provider")
    ] = False,
) -> str:
    """Get the destination field catalog for a connection.

    Returns field keys, types, constraints, and allowed values. Useful for
    building field mappings.
    """
    _log_request("meshes_get_connection_fields", connection_id=connection_id, refresh=refresh)
    result = await _call(
        "meshes_get_connection_fields",
        lambda api: api.get_connection_fields(connection_id, refresh=refresh),
    )
    return _to_text(result)


@mcp.tool(
    name="meshes_get_connection_default_mappings",
    annotations=_read_only("Get Connection Default Mappings"),
)
async def meshes_get_connection_default_mappings(connection_id: ConnectionId) -> str:
    """Get the default field mapping for a connection.

    Mappings define how event payload fields map to destination fields with
    optional transforms (trim, lower, upper, to_string, etc.).
    """
    _log_request("meshes_get_connection_default_mappings", connection_id=connection_id)
    result = await _call(
        "meshes_get_connection_default_mappings",
        lambda api: api.get_connection_default_mappings(connection_id),
    )
    return _to_text(result)


# =============================================================================
# RULES
# =============================================================================
# A rule binds an event type (optionally narrowed to a resource) to a
# connection plus an action.  metadata.action is required; use
# meshes_get_connection_actions to find valid values.
# =============================================================================
@mcp.tool(name="meshes_list_rules", annotations=_read_only("List Rules"))
async def meshes_list_rules(
    event: EventFilter = None,
    resource: ResourceFilter = None,
    resource_id: ResourceIdFilter = None,
) -> str:
    """List all routing rules across the organization.

    Rules bind event types to connections with action metadata. Supports
    filtering by event, resource, and resource_id.
    """
    _log_request("meshes_list_rules", event=event, resource=resource, resource_id=resource_id)
    result = await _call(
        "meshes_list_rules",
        lambda api: api.list_rules(event=event, resource=resource, resource_id=resource_id),
    )
    return _to_text(result)


@mcp.tool(name="meshes_get_rule", annotations=_read_only("Get Rule"))
async def meshes_get_rule(rule_id: RuleId) -> str:
    """Get details of a specific routing rule by UUID."""
    _log_request("meshes_get_rule", rule_id=rule_id)
    result = await _call("meshes_get_rule", lambda api: api.get_rule(rule_id))
    return _to_text(result)


@mcp.tool(name="meshes_create_rule", annotations=_write("Create Rule"))
async def meshes_create_rule(
    workspace: Annotated[str, Field(pattern=UUID_PATTERN, description="The workspace UUID")],
    connection: Annotated[
        str, Field(pattern=UUID_PATTERN, description="The connection UUID this rule routes to")
    ],
    event: Annotated[
        str,
        Field(
            min_length=1,
            description="Event type to match (e.g., 'user.signup', 'payment.failed')",
        ),
    ],
    action: Annotated[
        str,
        Field(
            min_length=1,
            description="The action the destination performs (goes into metadata.action)",
        ),
    ],
    resource: Annotated[Optional[str], Field(description="Optional resource type filter")] = None,
    resource_id: Annotated[
        Optional[str],
        Field(description="Optional resource ID filter (pattern: ^[A-Za-z0-9._:-]{1,64}$)"),
    ] = None,
    active: Annotated[
        Optional[bool], Field(description="Whether the rule is active (default true)")
    ] = None,
    hidden: Annotated[Optional[bool], Field(description="Hide from UI (default false)")] = None,
    metadata_extra: Annotated[
        Optional[dict[str, str]],
        Field(
            description=(
                "Additional metadata fields (id, name, value, key, data, option, "
                "option_value). An 'action' key here is ignored; use the action argument."
            )
        ),
    ] = None,
) -> str:
    """Create a routing rule that binds an event type to a connection.

    The metadata.action field is required and determines what the destination
    does (e.g., 'create_or_update_contact'). Use meshes_get_connection_actions
    to discover available actions.
    """
    _log_request(
        "meshes_create_rule",
        workspace=workspace,
        connection=connection,
        event=event,
        action=action,
        resource=resource,
        resource_id=resource_id,
        active=active,
        hidden=hidden,
        metadata_extra=metadata_extra,
    )
    metadata = {"action": action}
    metadata.update({k: v for k, v in (metadata_extra or {}).items() if k != "action"})

    result = await _call(
        "meshes_create_rule",
        lambda api: api.create_rule(
            workspace=workspace,
            connection=connection,
            event=event,
            metadata=metadata,
            resource=resource,
            resource_id=resource_id,
            active=active,
            hidden=hidden,
        ),
    )
    return _to_text(result)


@mcp.tool(name="meshes_delete_rule", annotations=_write("Delete Rule", destructive=True))
async def meshes_delete_rule(rule_id: RuleId) -> str:
    """Delete a routing rule.

    Events matching this rule will no longer be routed to its connection.
    """
    _log_request("meshes_delete_rule", rule_id=rule_id)
    result = await _call("meshes_delete_rule", lambda api: api.delete_rule(rule_id))
    return _to_text(result)


# =============================================================================
# EVENTS
# =============================================================================
# Emitting an event hands it to Meshes for routing: it is matched against
# the workspace's rules and delivered to every matching connection.  Each
# delivery attempt is recorded as a rule_event on the event.
# =============================================================================
@mcp.tool(name="meshes_emit_event", annotations=_write("Emit Event"))
async def meshes_emit_event(
    workspace: Annotated[
        str, Field(pattern=UUID_PATTERN, description="The workspace UUID to emit the event into")
    ],
    event: Annotated[
        str,
        Field(
            min_length=1,
            description="Event type (e.g., 'user.signup', 'payment.failed', 'form.submitted')",
        ),
    ],
    payload: Annotated[
        dict[str, Any],
        Field(
            description=(
                "Event payload. Include 'email' for person-related events. Supports: email, "
                "id, ip_address, name, first_name, last_name, phone, resource_url, plus "
                "custom fields."
            )
        ),
    ],
    resource: Annotated[
        Optional[str], Field(description="Optional resource type (e.g., 'user', 'order')")
    ] = None,
    resource_id: Annotated[
        Optional[str], Field(description="Optional resource ID for deduplication")
    ] = None,
) -> str:
    """Emit a product event to Meshes for routing and delivery.

    The event is matched against rules in the specified workspace and
    delivered to all matching connections. Always include 'email' in the
    payload for person-related events.
    """
    _log_request(
        "meshes_emit_event",
        workspace=workspace,
        event=event,
        payload=payload,
        resource=resource,
        resource_id=resource_id,
    )
    result = await _call(
        "meshes_emit_event",
        lambda api: api.emit_event(
            workspace=workspace,
            event=event,
            payload=payload,
            resource=resource,
            resource_id=resource_id,
        ),
    )
    event_id = _field(result, "event", "id")
    _log_status(f"Emitted event {event_id}")
    return (
        f"Event emitted successfully. ID: {event_id}\n"
        f'Event "{event}" will be routed to all matching rules in workspace {workspace}.\n\n'
        f"{_to_text(result)}"
    )


@mcp.tool(name="meshes_emit_bulk_events", annotations=_write("Emit Bulk Events"))
async def meshes_emit_bulk_events(
    events: Annotated[
        list[EmitEventParams],
        Field(min_length=1, max_length=MAX_BULK_EVENTS, description="Array of 1-100 event objects"),
    ],
) -> str:
    """Emit up to 100 events in a single request.

    Returns 201 on full success, 207 on partial success with per-event error
    details. Failed events are NOT retried automatically: inspect the
    records, fix the failing events, and emit them again.
    """
    _log_request("meshes_emit_bulk_events", events=events)
    bodies = [item.to_body() for item in events]
    result = await _call("meshes_emit_bulk_events", lambda api: api.emit_bulk_events(bodies))
    error_count = _field(result, "error_count")
    if error_count:
        _log_status(f"{error_count} of {len(bodies)} events failed")
    return _to_text(result)


@mcp.tool(name="meshes_list_events", annotations=_read_only("List Events"))
async def meshes_list_events(limit: PageLimit = None, cursor: PageCursor = None) -> str:
    """List events across the organization with pagination."""
    _log_request("meshes_list_events", limit=limit, cursor=cursor)
    result = await _call(
        "meshes_list_events", lambda api: api.list_events(limit=limit, cursor=cursor)
    )
    return _to_text(result)


@mcp.tool(name="meshes_get_event", annotations=_read_only("Get Event"))
async def meshes_get_event(event_id: EventId) -> str:
    """Get event details including delivery status and per-rule results.

    Each entry in rule_events shows connection, integration_type, status,
    attempt_count, and last_error.
    """
    _log_request("meshes_get_event", event_id=event_id)
    result = await _call("meshes_get_event", lambda api: api.get_event(event_id))
    return _to_text(result)


@mcp.tool(name="meshes_get_event_payload", annotations=_read_only("Get Event with Payload"))
async def meshes_get_event_payload(event_id: EventId) -> str:
    """Get event details including the full event payload. Useful for
    debugging what data was sent."""
    _log_request("meshes_get_event_payload", event_id=event_id)
    result = await _call("meshes_get_event_payload", lambda api: api.get_event_payload(event_id))
    return _to_text(result)


@mcp.tool(name="meshes_retry_event_rule", annotations=_write("Retry Event Rule"))
async def meshes_retry_event_rule(
    event_id: EventId,
    rule_id: Annotated[
        str,
        Field(pattern=UUID_PATTERN, description="The rule UUID (from rule_events in the event detail)"),
    ],
) -> str:
    """Manually retry a failed rule delivery for a specific event.

    Use after investigating and fixing the underlying issue (e.g., expired
    credentials, misconfigured mapping).
    """
    _log_request("meshes_retry_event_rule", event_id=event_id, rule_id=rule_id)
    result = await _call(
        "meshes_retry_event_rule", lambda api: api.retry_event_rule(event_id, rule_id)
    )
    return _to_text(result)


# =============================================================================
# INTEGRATIONS
# =============================================================================
@mcp.tool(name="meshes_list_integrations", annotations=_read_only("List Integrations"))
async def meshes_list_integrations() -> str:
    """Get metadata about all supported integration types.

    Returns each type's authentication method (oauth, api_key, basic, none),
    available actions, and field definitions. Useful for discovering what
    integrations are possible and what actions they support.
    """
    _log_request("meshes_list_integrations")
    result = await _call("meshes_list_integrations", lambda api: api.list_integrations())
    return _to_text(result)


# =============================================================================
# Server entry point
# =============================================================================
# Loads .env, checks the credentials up front (so a misconfigured server
# fails at startup rather than on the first tool call), then serves MCP
# over stdio.
# =============================================================================
def main() -> None:
    load_dotenv()
    try:
        configure(MeshesApiClient(load_config()))
    except MeshesConfigError as exc:
        print(exc, file=sys.stderr)
        sys.exit(1)

    logger.info("Meshes MCP server running on stdio")
    mcp.run()


if __name__ == "__main__":
    main()
