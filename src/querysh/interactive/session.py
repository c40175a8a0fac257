# /src/querysh/interactive/session.py

from types import MappingProxyType
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class SessionState(BaseModel):
    """
    An immutable snapshot of the client-side connection parameters.

    A new SessionState is produced whenever the active catalog or schema
    changes; callers replace their reference instead of mutating it.
    """

    model_config = ConfigDict(frozen=True)

    catalog: Optional[str] = Field(None, description="The active catalog, if any.")
    schema_name: Optional[str] = Field(None, description="The active schema, if any.")
    debug: bool = Field(
        default=False, description="Surface full diagnostics for failed statements."
    )
    properties: Mapping[str, str] = Field(
        default_factory=dict,
        validate_default=True,
        description="Other connection parameters (server, user, source, session properties).",
    )

    @field_validator("properties", mode="after")
    @classmethod
    def freeze_properties(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))

    @field_serializer("properties")
    def serialize_properties(self, value: Mapping[str, str]):
        return dict(value)

    def with_catalog(self, catalog: str, schema_name: Optional[str] = None) -> "SessionState":
        """Switches catalog. The schema is replaced too, and cleared when not given."""
        return self.model_copy(update={"catalog": catalog, "schema_name": schema_name})

    def with_schema(self, schema_name: str) -> "SessionState":
        return self.model_copy(update={"schema_name": schema_name})

    def describe(self) -> str:
        """Short `catalog.schema` label used in logs and the help banner."""
        return f"{self.catalog or '<none>'}.{self.schema_name or '<none>'}"
