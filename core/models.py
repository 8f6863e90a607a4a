# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the Meshes API)
# =============================================================================
#
# These types define the *shape* of every piece of information that flows
# between the tool server and the Meshes API.  They carry no behavior.
#
# TWO KINDS OF MODEL:
#   - MeshesConfig is a frozen dataclass.  It is built once at startup and
#     shared (read-only) by every in-flight request.
#   - Everything the API sends back is plain JSON, so the record shapes below
#     are TypedDicts: they document the fields without wrapping the payload.
#     The tool layer re-serializes whatever the API returned, untouched.
#
# Reference: https://docs.meshes.dev
# =============================================================================

from dataclasses import dataclass, field
from typing import Any, Literal, Optional, TypedDict, get_args

DEFAULT_BASE_URL = "https://api.meshes.io"

# -----------------------------------------------------------------------------
# Enumerations
# -----------------------------------------------------------------------------
IntegrationType = Literal[
    "activecampaign",
    "aweber",
    "hubspot",
    "intercom",
    "mailchimp",
    "mailerlite",
    "resend",
    "salesforce",
    "webhook",
    "zoom",
]

EventStatus = Literal["pending", "processing", "completed", "failed"]

INTEGRATION_TYPES: tuple[str, ...] = get_args(IntegrationType)
EVENT_STATUSES: tuple[str, ...] = get_args(EventStatus)


# -----------------------------------------------------------------------------
# MeshesConfig: machine-key credentials for one organization
# -----------------------------------------------------------------------------
# Find these in the Meshes dashboard under Settings > Machine Keys.
# The secret never leaves this process: it only signs short-lived tokens.
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class MeshesConfig:
    """Credentials and endpoint for the Meshes API."""

    access_key: str                    # Machine key id (becomes the JWT "kid")
    secret_key: str = field(repr=False)  # HMAC signing key, never sent
    org_id: str                        # Organization UUID (the "org" claim)
    base_url: str = DEFAULT_BASE_URL   # e.g. "https://api.meshes.io"


# -----------------------------------------------------------------------------
# Pagination
# -----------------------------------------------------------------------------
# Listings are cursor-based.  next_cursor is opaque: pass it back verbatim.
# A null next_cursor means there are no more records.
# -----------------------------------------------------------------------------
class Page(TypedDict):
    count: int
    limit: int
    next_cursor: Optional[str]
    records: list[Any]


# -----------------------------------------------------------------------------
# Workspaces
# -----------------------------------------------------------------------------
class PublishableKey(TypedDict):
    public_key: str
    name: str


class _WorkspaceBase(TypedDict):
    id: str
    name: str
    description: Optional[str]
    created_at: str
    updated_at: str


class Workspace(_WorkspaceBase, total=False):
    publishable_key: PublishableKey


class CreatedWorkspace(TypedDict):
    workspace: Workspace


# -----------------------------------------------------------------------------
# Connections
# -----------------------------------------------------------------------------
class _ConnectionBase(TypedDict):
    id: str
    workspace: str
    type: IntegrationType
    name: str
    metadata: dict[str, Any]
    hidden: bool
    created_by: str
    created_at: str
    updated_at: str


class Connection(_ConnectionBase, total=False):
    action_data: dict[str, Any]


class CreatedConnection(TypedDict):
    connection: Connection


class DeletedConnection(TypedDict):
    id: str
    type: IntegrationType


# -----------------------------------------------------------------------------
# Rules
# -----------------------------------------------------------------------------
# metadata.action is the only required key; the rest (id, name, value, key,
# data, option, option_value, ...) depend on the destination's action.
# -----------------------------------------------------------------------------
class _RuleMetadataBase(TypedDict):
    action: str


class RuleMetadata(_RuleMetadataBase, total=False):
    id: str
    name: str
    value: str
    key: str
    data: str
    option: str
    option_value: str


class _RuleBase(TypedDict):
    id: str
    connection: str
    workspace: str
    type: IntegrationType
    event: str
    metadata: RuleMetadata
    active: bool
    hidden: bool
    created_by: str
    created_at: str
    updated_at: str


class Rule(_RuleBase, total=False):
    resource: str
    resource_id: str


class CreatedRule(TypedDict):
    rule: Rule


class DeletedRule(TypedDict):
    id: str
    connection: str
    type: IntegrationType
    event: str


# -----------------------------------------------------------------------------
# Events
# -----------------------------------------------------------------------------
# A MeshesEvent tracks the aggregate delivery status across every rule it
# matched.  Each RuleEvent is one rule's delivery attempt record.
# -----------------------------------------------------------------------------
class _RuleEventBase(TypedDict):
    id: str
    type: Literal["rule"]
    workspace: str
    event: str
    event_id: str
    connection: str
    rule: str
    integration_type: IntegrationType
    status: EventStatus
    attempt_count: int
    created_by: str
    created_at: str


class RuleEvent(_RuleEventBase, total=False):
    resource: str
    resource_id: str
    started_at: str
    completed_at: str
    last_error: str


class _MeshesEventBase(TypedDict):
    id: str
    workspace: str
    event: str
    status: EventStatus
    created_by: str
    created_at: str


class MeshesEvent(_MeshesEventBase, total=False):
    type: Literal["event"]
    resource: str
    resource_id: str
    total_rules: int
    completed_count: int
    failed_count: int
    started_at: str
    completed_at: str
    rule_events: list[RuleEvent]
    payload: dict[str, Any]


class EmittedEventRecord(TypedDict):
    id: str
    event: str
    workspace: str
    created_by: str
    created_at: str


class EmittedEvent(TypedDict):
    event: EmittedEventRecord


class _BulkEmitBase(TypedDict):
    count: int
    records: list[Any]


class BulkEmitResult(_BulkEmitBase, total=False):
    # Present on 207 (partial success) responses.
    error_count: int
