"""Normalized endpoint Pydantic v2 data models."""
from __future__ import annotations

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from src.shared.errors import ContractUnavailableError

_VERSION_SEGMENT = re.compile(r"^v\d+$", re.IGNORECASE)


class HttpMethod(str, Enum):
    """HTTP methods supported by the scenario generator."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class ParameterLocation(str, Enum):
    """Where a parameter is carried in the request."""
    PATH = "path"
    QUERY = "query"
    BODY = "body"
    HEADER = "header"


class ParameterType(str, Enum):
    """Normalized parameter value types."""
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    OBJECT = "object"
    OTHER = "other"


class Parameter(BaseModel):
    """A single endpoint parameter."""
    name: str = Field(..., min_length=1)
    location: ParameterLocation = ParameterLocation.QUERY
    required: bool = False
    type: ParameterType = ParameterType.OTHER
    description: str = ""

    model_config = {
        "frozen": True,
        "from_attributes": True,
        "populate_by_name": True,
        "alias_generator": to_camel,
    }

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> Any:
        if isinstance(value, ParameterType):
            return value
        known = {t.value for t in ParameterType}
        text = str(value or "").lower()
        return text if text in known else ParameterType.OTHER.value

    @field_validator("location", mode="before")
    @classmethod
    def normalize_location(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.lower()
        return value


class Endpoint(BaseModel):
    """One API operation, identified by ``(path, method)``."""
    path: str = Field(..., min_length=1)
    method: HttpMethod
    operation_id: str = ""
    summary: str = ""
    description: str = ""
    success_status_code: int = Field(default=200, ge=100, le=599)
    response_type: str = ""
    requires_authentication: bool = False
    parameters: tuple[Parameter, ...] = ()

    model_config = {
        "frozen": True,
        "from_attributes": True,
        "populate_by_name": True,
        "alias_generator": to_camel,
    }

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value

    @model_validator(mode="after")
    def check_parameter_names(self) -> "Endpoint":
        """Reject two parameters with the same name in different locations."""
        seen: set[str] = set()
        for parameter in self.parameters:
            if parameter.name in seen:
                raise ContractUnavailableError(
                    f"Endpoint {self.method.value} {self.path} declares parameter "
                    f"'{parameter.name}' more than once"
                )
            seen.add(parameter.name)
        return self

    @property
    def identity(self) -> tuple[str, str]:
        return (self.path, self.method.value)

    @property
    def required_parameters(self) -> list[Parameter]:
        return [p for p in self.parameters if p.required]

    @property
    def label(self) -> str:
        """Human-readable operation label used in scenario names."""
        return self.operation_id or f"{self.method.value} {self.path}"

    @property
    def category(self) -> str | None:
        """First literal path segment, skipping ``api``, versions and placeholders.

        ``/api/v1/users/{id}`` -> ``users``; ``/{id}`` -> ``None``.
        """
        for segment in self.path.strip("/").split("/"):
            if not segment or segment.startswith("{"):
                continue
            if segment.lower() == "api" or _VERSION_SEGMENT.match(segment):
                continue
            key = re.sub(r"[^a-z0-9]+", "_", segment.lower()).strip("_")
            if key:
                return key
        return None
