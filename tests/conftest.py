"""Shared test fixtures for the scenario-forge test suite."""
from __future__ import annotations

import json
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from src.shared.models.endpoints import Endpoint, Parameter

SAMPLE_CONTRACT = Path(__file__).resolve().parent.parent / "sample_data" / "users_api.json"


# ---------------------------------------------------------------------------
# Filesystem
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test artifacts."""
    d = tempfile.mkdtemp()
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@pytest.fixture
def get_user_endpoint() -> Endpoint:
    """GET /api/users/{id}: authenticated, one required string parameter."""
    return Endpoint(
        path="/api/users/{id}",
        method="GET",
        operation_id="getUserById",
        success_status_code=200,
        response_type="object",
        requires_authentication=True,
        parameters=(Parameter(name="id", location="path", required=True, type="string"),),
    )


@pytest.fixture
def create_order_endpoint() -> Endpoint:
    """POST /api/orders: no authentication, no parameters."""
    return Endpoint(
        path="/api/orders",
        method="POST",
        operation_id="createOrder",
        success_status_code=201,
        response_type="object",
    )


@pytest.fixture
def list_users_endpoint() -> Endpoint:
    """GET /api/users with an optional integer and a required string query parameter."""
    return Endpoint(
        path="/api/users",
        method="GET",
        operation_id="getUsers",
        response_type="array",
        parameters=(
            Parameter(name="limit", location="query", required=False, type="integer"),
            Parameter(name="role", location="query", required=True, type="string"),
        ),
    )


@pytest.fixture
def sample_endpoints(get_user_endpoint, create_order_endpoint, list_users_endpoint) -> list[Endpoint]:
    return [list_users_endpoint, get_user_endpoint, create_order_endpoint]


@pytest.fixture
def sample_contract_path() -> Path:
    """Path to the bundled OpenAPI 3 sample contract."""
    return SAMPLE_CONTRACT


@pytest.fixture
def swagger_contract(tmp_dir) -> Path:
    """A small Swagger 2.0 contract written to disk."""
    document = {
        "swagger": "2.0",
        "info": {"title": "Pets", "version": "1.0"},
        "securityDefinitions": {"apiKey": {"type": "apiKey", "in": "header", "name": "X-Key"}},
        "paths": {
            "/pets": {
                "post": {
                    "operationId": "addPet",
                    "security": [{"apiKey": []}],
                    "parameters": [
                        {
                            "name": "pet",
                            "in": "body",
                            "required": True,
                            "schema": {"$ref": "#/definitions/Pet"},
                        }
                    ],
                    "responses": {
                        "201": {"description": "created", "schema": {"$ref": "#/definitions/Pet"}},
                        "200": {"description": "ok", "schema": {"type": "string"}},
                    },
                }
            }
        },
        "definitions": {
            "Pet": {"type": "object", "properties": {"name": {"type": "string"}}}
        },
    }
    path = tmp_dir / "pets.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return path
