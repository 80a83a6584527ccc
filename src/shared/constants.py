"""Shared constants used across the scenario engine and the workflow."""
from __future__ import annotations

# Application version
VERSION: str = "1.0.0"

APP_NAME: str = "scenario-forge"

# Supported HTTP methods for normalized endpoints
SUPPORTED_METHODS: list[str] = ["GET", "POST", "PUT", "PATCH", "DELETE"]

# Supported contract file extensions
SUPPORTED_CONTRACT_EXTENSIONS: list[str] = [".json", ".yaml", ".yml"]

# Scenario classification tags
TAG_POSITIVE: str = "@positive"
TAG_NEGATIVE: str = "@negative"
TAG_EDGE_CASE: str = "@edge-case"
TAG_SECURITY: str = "@security"

CLASSIFICATION_TAGS: frozenset[str] = frozenset(
    {TAG_POSITIVE, TAG_NEGATIVE, TAG_EDGE_CASE}
)

# Parameter types that produce an edge-case scenario
EDGE_CASE_TYPES: frozenset[str] = frozenset({"string", "integer", "number"})

LONG_STRING_LENGTH: int = 10000

# Fallback group for scenarios without category or grouping tag
DEFAULT_GROUP: str = "api"

# Outcome simulation
DEFAULT_SIMULATION_SEED: int = 42
PASSED_DURATION_RANGE: tuple[int, int] = (50, 500)
FAILED_DURATION_RANGE: tuple[int, int] = (100, 800)
SIMULATED_MS_PER_TEST: int = 500

CANONICAL_TEST_NAMES: list[str] = [
    "SuccessfulGetUsersOperation",
    "SuccessfulGetUserByIdOperation",
    "SuccessfulCreateUserOperation",
    "SuccessfulUpdateUserOperation",
    "SuccessfulDeleteUserOperation",
    "FailedGetUserByIdOperationWithMissingId",
    "FailedCreateUserOperationWithMissingBody",
    "FailedUpdateUserOperationWithUnauthorizedAccess",
    "ValidateGetUsersWithExtremelyLongLimit",
    "ValidateCreateUserWithBoundaryValueForUsername",
]

assert len(CANONICAL_TEST_NAMES) == 10, (
    f"Expected 10 canonical test names, got {len(CANONICAL_TEST_NAMES)}"
)
