"""Normalized server configuration produced from an uploaded bundle."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel


class BundleType(str, Enum):
    DXT = "dxt"
    MCPB_JSON = "mcpb-json"


class ServerType(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"
    REMOTE_STREAMABLE = "remote-streamable"


class ServerConfig(BaseModel):
    """MCP server configuration record.

    Accepts camelCase (``serverType``, ``autoStart``) as well as snake_case keys
    and keeps any extra keys a bundle carries.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    name: str = Field(min_length=1)
    server_type: ServerType = ServerType.LOCAL
    command: Optional[str] = None
    args: List[str] = Field(default_factory=list)
    env: Dict[str, str] = Field(default_factory=dict)
    remote_url: Optional[str] = None
    bearer_token: Optional[str] = None
    description: Optional[str] = None
    version: Optional[str] = None
    disabled: bool = False
    auto_start: bool = False
    verification_status: str = "unverified"

    @field_validator(
        "server_type", "args", "env", "disabled", "auto_start", "verification_status",
        mode="before",
    )
    @classmethod
    def _null_means_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value

    @field_validator("env", mode="before")
    @classmethod
    def _stringify_env(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(k): str(v) for k, v in value.items() if v is not None}
        return value
