"""Scenario generator for normalized API endpoints.

Derives positive, negative and edge-case Gherkin scenarios from endpoint
metadata.  Generation is pure: the same endpoint always yields the same
scenarios in the same order.

Per endpoint, in order:

1. one positive scenario;
2. one missing-parameter negative scenario per required parameter;
3. one unauthorized negative scenario when authentication is required;
4. one edge-case scenario per string, integer or number parameter.
"""

from __future__ import annotations

import logging
from typing import Iterable

from src.shared.constants import (
    EDGE_CASE_TYPES,
    LONG_STRING_LENGTH,
    TAG_EDGE_CASE,
    TAG_NEGATIVE,
    TAG_POSITIVE,
    TAG_SECURITY,
)
from src.shared.errors import ContractUnavailableError
from src.shared.models.endpoints import Endpoint, Parameter, ParameterType
from src.shared.models.scenarios import Scenario

logger = logging.getLogger(__name__)

CLIENT_STEP = "Given I have a valid API client"
AUTHENTICATED_STEP = "And I am authenticated with valid credentials"
UNAUTHENTICATED_STEP = "But I am not authenticated"


def generate(endpoint: Endpoint) -> list[Scenario]:
    """Generate the ordered scenario list for *endpoint*."""
    scenarios: list[Scenario] = [_positive_scenario(endpoint)]
    scenarios.extend(_missing_parameter_scenarios(endpoint))
    if endpoint.requires_authentication:
        scenarios.append(_unauthorized_scenario(endpoint))
    scenarios.extend(_edge_case_scenarios(endpoint))
    return scenarios


def generate_all(endpoints: Iterable[Endpoint]) -> list[Scenario]:
    """Generate scenarios for every endpoint, in list order.

    Raises:
        ContractUnavailableError: When two endpoints share ``(path, method)``.
    """
    endpoints = ensure_unique_endpoints(endpoints)
    scenarios: list[Scenario] = []
    for endpoint in endpoints:
        generated = generate(endpoint)
        logger.debug(
            "Generated %d scenarios for %s %s",
            len(generated),
            endpoint.method.value,
            endpoint.path,
        )
        scenarios.extend(generated)
    return scenarios


def expected_scenario_count(endpoint: Endpoint) -> int:
    """Number of scenarios :func:`generate` produces for *endpoint*."""
    edge = sum(1 for p in endpoint.parameters if p.type.value in EDGE_CASE_TYPES)
    auth = 1 if endpoint.requires_authentication else 0
    return 1 + len(endpoint.required_parameters) + auth + edge


def ensure_unique_endpoints(endpoints: Iterable[Endpoint]) -> list[Endpoint]:
    """Return *endpoints* as a list, rejecting duplicate identities."""
    seen: set[tuple[str, str]] = set()
    result: list[Endpoint] = []
    for endpoint in endpoints:
        if endpoint.identity in seen:
            raise ContractUnavailableError(
                f"Duplicate endpoint {endpoint.method.value} {endpoint.path}"
            )
        seen.add(endpoint.identity)
        result.append(endpoint)
    return result


# ---------------------------------------------------------------------------
# Step helpers
# ---------------------------------------------------------------------------


def _when_step(endpoint: Endpoint) -> str:
    return f'When I send a {endpoint.method.value} request to "{endpoint.path}"'


def _status_step(status_code: int) -> str:
    return f"Then the response status code should be {status_code}"


def _valid_parameter_step(parameter: Parameter) -> str:
    return f"And I have a valid {parameter.name} parameter"


def _preamble(endpoint: Endpoint) -> list[str]:
    steps = [CLIENT_STEP]
    if endpoint.requires_authentication:
        steps.append(AUTHENTICATED_STEP)
    return steps


def _tags(endpoint: Endpoint, classification: str, *extra: str) -> tuple[str, ...]:
    return (classification, *extra, f"@{endpoint.method.value.lower()}")


def _scenario(endpoint: Endpoint, name: str, tags: tuple[str, ...], steps: list[str]) -> Scenario:
    return Scenario(
        name=name,
        category=endpoint.category,
        tags=tags,
        steps=tuple(steps),
    )


# ---------------------------------------------------------------------------
# Scenario builders
# ---------------------------------------------------------------------------


def _positive_scenario(endpoint: Endpoint) -> Scenario:
    steps = _preamble(endpoint)
    steps.extend(_valid_parameter_step(p) for p in endpoint.required_parameters)
    steps.append(_when_step(endpoint))
    steps.append(_status_step(endpoint.success_status_code))
    response_type = endpoint.response_type or "response"
    steps.append(f"And the response should contain valid {response_type} data")
    return _scenario(
        endpoint,
        f"Successful {endpoint.label} operation",
        _tags(endpoint, TAG_POSITIVE),
        steps,
    )


def _missing_parameter_scenarios(endpoint: Endpoint) -> list[Scenario]:
    required = endpoint.required_parameters
    scenarios: list[Scenario] = []
    for missing in required:
        steps = _preamble(endpoint)
        steps.extend(_valid_parameter_step(p) for p in required if p is not missing)
        steps.append(f"But I do not provide the {missing.name} parameter")
        steps.append(_when_step(endpoint))
        steps.append(_status_step(400))
        steps.append(
            f"And the response should contain an error message about the missing {missing.name}"
        )
        scenarios.append(
            _scenario(
                endpoint,
                f"Failed {endpoint.label} operation with missing {missing.name}",
                _tags(endpoint, TAG_NEGATIVE),
                steps,
            )
        )
    return scenarios


def _unauthorized_scenario(endpoint: Endpoint) -> Scenario:
    steps = [
        CLIENT_STEP,
        UNAUTHENTICATED_STEP,
        _when_step(endpoint),
        _status_step(401),
        "And the response should contain an authentication error message",
    ]
    return _scenario(
        endpoint,
        f"Failed {endpoint.label} operation with unauthorized access",
        _tags(endpoint, TAG_NEGATIVE, TAG_SECURITY),
        steps,
    )


def _edge_case_scenarios(endpoint: Endpoint) -> list[Scenario]:
    scenarios: list[Scenario] = []
    for parameter in endpoint.parameters:
        if parameter.type.value not in EDGE_CASE_TYPES:
            continue
        if parameter.type is ParameterType.STRING:
            name = f"Validate {endpoint.label} with extremely long {parameter.name}"
            value_step = (
                f"And I have a {parameter.name} parameter with "
                f"{LONG_STRING_LENGTH} characters"
            )
        else:
            name = f"Validate {endpoint.label} with boundary value for {parameter.name}"
            value_step = f"And I have a {parameter.name} parameter at the maximum allowed value"

        steps = [
            CLIENT_STEP,
            value_step,
            _when_step(endpoint),
            "Then the API should handle the request appropriately",
        ]
        scenarios.append(
            _scenario(endpoint, name, _tags(endpoint, TAG_EDGE_CASE), steps)
        )
    return scenarios
