# =============================================================================
# core/schemas.py  —  Input Validation (checked BEFORE any network call)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Declares the constraints on every request body the client sends:
#   required/optional fields, lengths, ranges, enumerations and patterns.
#   MeshesApiClient validates its arguments through these models first, so a
#   bad argument raises pydantic.ValidationError and no token is minted and
#   no request leaves the process.
#
# METADATA BAGS:
#   Connection metadata and event payloads are open-ended mappings.  They are
#   typed as dict[str, JsonValue] (string, number, boolean, null, nested
#   list or mapping) and passed through untouched.  Rule metadata has one
#   required key, "action"; every value is a string and the keys keep
#   the order the caller gave them.
#
# BODY SERIALIZATION:
#   to_body() dumps fields in declaration order and drops the ones that were
#   not supplied, so the JSON sent matches what the caller constructed.
# =============================================================================

from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, JsonValue, field_validator

from core.models import EventStatus, IntegrationType

UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
NAME_PATTERN = r"^[A-Za-z0-9 _-]+$"
RESOURCE_ID_PATTERN = r"^[A-Za-z0-9._:-]{1,64}$"

MAX_BULK_EVENTS = 100
MAX_PAGE_LIMIT = 200

UuidStr = Annotated[str, Field(pattern=UUID_PATTERN)]
Metadata = dict[str, JsonValue]


class RequestModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def to_body(self) -> dict[str, Any]:
        """JSON body for this request, omitting top-level fields left as None.

        Nulls nested inside metadata or payload mappings are kept.
        """
        body = self.model_dump(mode="json")
        return {key: value for key, value in body.items() if value is not None}


# -----------------------------------------------------------------------------
# Workspaces
# -----------------------------------------------------------------------------
class CreateWorkspaceParams(RequestModel):
    name: str = Field(min_length=3, max_length=50, pattern=NAME_PATTERN)
    description: Optional[str] = Field(default=None, max_length=1024)


class UpdateWorkspaceParams(RequestModel):
    name: str = Field(min_length=3, max_length=50, pattern=NAME_PATTERN)
    description: Optional[str] = Field(default=None, max_length=1024)

    def to_body(self) -> dict[str, Any]:
        # An explicit None clears the description, so keep it when it was set.
        return self.model_dump(mode="json", exclude_unset=True)


class WorkspaceEventFilters(RequestModel):
    limit: Optional[int] = Field(default=None, ge=1, le=MAX_PAGE_LIMIT)
    cursor: Optional[str] = None
    event: Optional[str] = None
    status: Optional[EventStatus] = None
    resource: Optional[str] = None
    resource_id: Optional[str] = None


# -----------------------------------------------------------------------------
# Connections
# -----------------------------------------------------------------------------
class CreateConnectionParams(RequestModel):
    workspace: UuidStr
    type: IntegrationType
    name: str = Field(min_length=1, max_length=128, pattern=NAME_PATTERN)
    metadata: Metadata
    hidden: Optional[bool] = None


class UpdateConnectionParams(RequestModel):
    name: str = Field(min_length=1, max_length=128, pattern=NAME_PATTERN)
    metadata: Metadata
    hidden: Optional[bool] = None


# -----------------------------------------------------------------------------
# Rules
# -----------------------------------------------------------------------------
RuleMetadataMap = dict[str, str]


class RuleFilters(RequestModel):
    event: Optional[str] = None
    resource: Optional[str] = None
    resource_id: Optional[str] = None


class CreateRuleParams(RequestModel):
    workspace: UuidStr
    connection: UuidStr
    event: str = Field(min_length=1)
    metadata: RuleMetadataMap
    resource: Optional[str] = None
    resource_id: Optional[str] = Field(default=None, pattern=RESOURCE_ID_PATTERN)
    active: Optional[bool] = None
    hidden: Optional[bool] = None

    @field_validator("metadata")
    @classmethod
    def _metadata_has_action(cls, value: RuleMetadataMap) -> RuleMetadataMap:
        if not value.get("action"):
            raise ValueError("rule metadata requires a non-empty 'action'")
        return value


# -----------------------------------------------------------------------------
# Events
# -----------------------------------------------------------------------------
class EventPageParams(RequestModel):
    limit: Optional[int] = Field(default=None, ge=1, le=MAX_PAGE_LIMIT)
    cursor: Optional[str] = None


class EmitEventParams(RequestModel):
    workspace: UuidStr
    event: str = Field(min_length=1)
    payload: Metadata
    resource: Optional[str] = None
    resource_id: Optional[str] = None


class BulkEmitParams(BaseModel):
    events: list[EmitEventParams] = Field(min_length=1, max_length=MAX_BULK_EVENTS)

    def to_body(self) -> list[dict[str, Any]]:
        return [event.to_body() for event in self.events]
