"""Load API contracts and normalize them into :class:`Endpoint` lists.

Supports OpenAPI 3.x (``requestBody``, ``content`` media types) and
Swagger 2.0 (``in: body`` parameters, response ``schema``) documents in
JSON or YAML.  Only local ``$ref`` pointers (``#/...``) are resolved.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Sequence, Union

import yaml
from pydantic import ValidationError

from src.shared.constants import SUPPORTED_CONTRACT_EXTENSIONS, SUPPORTED_METHODS
from src.shared.errors import ContractUnavailableError
from src.shared.models.endpoints import Endpoint, Parameter, ParameterLocation

logger = logging.getLogger(__name__)

ContractRef = Union[str, Path, Mapping[str, Any], Sequence[Union[Endpoint, Mapping[str, Any]]]]


def load_contract(path: str | Path) -> dict[str, Any]:
    """Read a contract document from *path*.

    Raises:
        ContractUnavailableError: When the extension is unsupported, the
            file is missing or unreadable, or the top level is not a mapping.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_CONTRACT_EXTENSIONS:
        raise ContractUnavailableError(f"Unsupported contract format: {path.name}")
    if not path.is_file():
        raise ContractUnavailableError(f"Contract file not found: {path}")

    try:
        text = path.read_text(encoding="utf-8")
        document = json.loads(text) if suffix == ".json" else yaml.safe_load(text)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ContractUnavailableError(f"Cannot read contract {path}: {exc}") from exc

    if not isinstance(document, dict):
        raise ContractUnavailableError(f"Contract {path} is not a mapping")
    logger.info("Loaded contract %s", path)
    return document


def extract_endpoints(document: Mapping[str, Any]) -> list[Endpoint]:
    """Normalize the ``paths`` of an OpenAPI/Swagger document.

    Endpoints are returned in document order: paths first, then methods
    in the order they appear under each path.
    """
    paths = document.get("paths")
    if not isinstance(paths, dict):
        raise ContractUnavailableError("Contract has no 'paths' section")

    document_security = document.get("security") or []
    endpoints: list[Endpoint] = []
    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        shared = path_item.get("parameters", [])
        for method, operation in path_item.items():
            if method.upper() not in SUPPORTED_METHODS or not isinstance(operation, dict):
                continue
            try:
                endpoints.append(
                    _build_endpoint(document, str(path), method, operation, shared, document_security)
                )
            except ValidationError as exc:
                raise ContractUnavailableError(
                    f"Invalid operation {method.upper()} {path}: {exc}"
                ) from exc

    logger.info("Extracted %d endpoints from contract", len(endpoints))
    return endpoints


def resolve_endpoints(contract_ref: ContractRef) -> list[Endpoint]:
    """Turn any accepted contract reference into a non-empty endpoint list.

    *contract_ref* may be a file path, an already decoded document, or a
    sequence of :class:`Endpoint` objects or endpoint mappings.

    Raises:
        ContractUnavailableError: When no usable endpoint list results.
    """
    if isinstance(contract_ref, (str, Path)):
        endpoints = extract_endpoints(load_contract(contract_ref))
    elif isinstance(contract_ref, Mapping):
        endpoints = extract_endpoints(contract_ref)
    elif isinstance(contract_ref, Sequence):
        try:
            endpoints = [
                item if isinstance(item, Endpoint) else Endpoint.model_validate(item)
                for item in contract_ref
            ]
        except ValidationError as exc:
            raise ContractUnavailableError(f"Invalid endpoint entry: {exc}") from exc
    else:
        raise ContractUnavailableError(
            f"Unsupported contract reference: {type(contract_ref).__name__}"
        )

    if not endpoints:
        raise ContractUnavailableError("Contract defines no endpoints")
    return endpoints


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_endpoint(
    document: Mapping[str, Any],
    path: str,
    method: str,
    operation: dict[str, Any],
    shared_parameters: list[Any],
    document_security: list[Any],
) -> Endpoint:
    parameters = [
        _to_parameter(document, raw) for raw in _merge_parameters(document, shared_parameters, operation)
    ]
    body = _request_body_parameter(document, operation.get("requestBody"))
    if body is not None:
        parameters.append(body)

    status_code, response_type = _success_response(document, operation.get("responses") or {})
    security = operation.get("security", document_security)

    return Endpoint(
        path=path,
        method=method.upper(),
        operation_id=operation.get("operationId", ""),
        summary=operation.get("summary", ""),
        description=operation.get("description", ""),
        success_status_code=status_code,
        response_type=response_type,
        requires_authentication=bool(security),
        parameters=tuple(parameters),
    )


def _resolve(document: Mapping[str, Any], node: Any) -> Any:
    """Follow a local ``$ref`` chain; unresolvable refs become ``{}``."""
    seen: set[str] = set()
    while isinstance(node, dict) and "$ref" in node:
        ref = node["$ref"]
        if not isinstance(ref, str) or not ref.startswith("#/") or ref in seen:
            return {}
        seen.add(ref)
        target: Any = document
        for part in ref[2:].split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            if not isinstance(target, dict) or part not in target:
                return {}
            target = target[part]
        node = target
    return node


def _merge_parameters(
    document: Mapping[str, Any], shared: list[Any], operation: dict[str, Any]
) -> list[dict[str, Any]]:
    # operation-level parameters override path-level ones with the same (name, in)
    merged: dict[tuple[str, str], dict[str, Any]] = {}
    for raw in list(shared or []) + list(operation.get("parameters") or []):
        param = _resolve(document, raw)
        if not isinstance(param, dict) or not param.get("name"):
            continue
        merged[(param["name"], str(param.get("in", "query")))] = param
    return list(merged.values())


def _schema_type(document: Mapping[str, Any], schema: Any, default: str = "") -> str:
    schema = _resolve(document, schema)
    if not isinstance(schema, dict) or not schema:
        return default
    if "type" in schema:
        return str(schema["type"])
    if "properties" in schema or "allOf" in schema:
        return "object"
    return default


def _to_parameter(document: Mapping[str, Any], raw: dict[str, Any]) -> Parameter:
    location = str(raw.get("in", "query")).lower()
    if location == "body":
        param_type = _schema_type(document, raw.get("schema"), "object")
    elif "schema" in raw:
        param_type = _schema_type(document, raw["schema"])
    else:
        param_type = str(raw.get("type", ""))

    if location not in {loc.value for loc in ParameterLocation}:
        # cookie and formData parameters are carried as query-like inputs
        location = ParameterLocation.QUERY.value

    return Parameter(
        name=raw["name"],
        location=location,
        required=bool(raw.get("required", location == "path")),
        type=param_type,
        description=raw.get("description", ""),
    )


def _request_body_parameter(document: Mapping[str, Any], request_body: Any) -> Parameter | None:
    body = _resolve(document, request_body)
    if not isinstance(body, dict) or not body:
        return None
    schema: Any = None
    for media in (body.get("content") or {}).values():
        if isinstance(media, dict) and "schema" in media:
            schema = media["schema"]
            break
    return Parameter(
        name="body",
        location=ParameterLocation.BODY,
        required=bool(body.get("required", False)),
        type=_schema_type(document, schema, "object"),
        description=body.get("description", ""),
    )


def _success_response(document: Mapping[str, Any], responses: dict[Any, Any]) -> tuple[int, str]:
    """Return ``(status_code, response_type)`` for the lowest 2xx response."""
    codes = sorted(
        int(code) for code in responses if str(code).isdigit() and 200 <= int(code) < 300
    )
    if not codes:
        return 200, ""

    code = codes[0]
    response = responses.get(str(code), responses.get(code))
    response = _resolve(document, response)
    if not isinstance(response, dict):
        return code, ""

    if "schema" in response:
        return code, _schema_type(document, response["schema"])
    for media in (response.get("content") or {}).values():
        if isinstance(media, dict) and "schema" in media:
            return code, _schema_type(document, media["schema"])
    return code, ""
