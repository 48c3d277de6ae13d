"""Response models for the SmartThings graph SmartApp API."""

from typing import Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, JsonValue, field_validator


class _Resource(BaseModel):
    """Read-only projection of a server response."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class EndpointLocation(_Resource):
    id: Optional[str] = None
    name: Optional[str] = None


class EndpointClient(_Resource):
    client_id: Optional[str] = Field(default=None, alias="clientId")


class Endpoint(_Resource):
    """Per-account API base returned by the endpoints URI."""

    uri: str = Field(description="Base URL for all SmartApp requests")
    base_url: Optional[str] = None
    url: Optional[str] = None
    location: Optional[EndpointLocation] = None
    oauth_client: Optional[EndpointClient] = Field(default=None, alias="oauthClient")


class DeviceSummary(_Resource):
    """One entry of the /devices listing."""

    id: str
    name: str = ""
    display_name: str = Field(default="", alias="displayName")

    @field_validator("name", "display_name", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return "" if value is None else value


class DeviceDetail(DeviceSummary):
    """A single device with its current attribute values."""

    attributes: Dict[str, JsonValue] = Field(default_factory=dict)


class DeviceCommand(_Resource):
    """A command supported by a device, with its parameters."""

    name: str = Field(validation_alias=AliasChoices("command", "name"))
    params: Dict[str, JsonValue] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("params", "parameters"),
    )


class CapabilityReading(_Resource):
    """One sensor entry of a capability listing such as /temperature."""

    name: str
    value: JsonValue = None
