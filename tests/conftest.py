"""
Pytest configuration and fixtures for policydsl tests.

This module provides shared fixtures used across unit and integration tests.
"""

import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Generator

import pytest

from policydsl.schema import (
    Actor,
    ActorType,
    DslPolicyContext,
    Environment,
    Resource,
)

FIXED_TIME = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fixed_clock():
    """Return a clock that always reports FIXED_TIME."""
    return lambda: FIXED_TIME


@pytest.fixture
def user_context() -> DslPolicyContext:
    """A user deleting a large production document."""
    return DslPolicyContext(
        actor=Actor(
            id="user-42",
            type=ActorType.USER,
            roles=["editor", "reviewer"],
            attributes={"department": "engineering", "level": 3, "verified": True},
        ),
        action="delete",
        resource=Resource(
            type="document",
            id="doc-1",
            attributes={"size": 150, "name": "prod-db-backup", "tags": ["pii", "finance"]},
        ),
        environment=Environment(
            timestamp=FIXED_TIME,
            ip_address="10.0.0.5",
            region="eu-west-1",
        ),
        custom={"ticket": None, "risk": 0.7},
    )


@pytest.fixture
def system_context() -> DslPolicyContext:
    """A system actor reading a small resource, no environment."""
    return DslPolicyContext(
        actor=Actor(id="svc-backup", type=ActorType.SYSTEM),
        action="read",
        resource=Resource(type="bucket", attributes={"size": 10}),
    )


@pytest.fixture
def sample_policy_yaml() -> str:
    """Return a policy YAML mixing DSL string and mapping conditions."""
    return """
version: "1.2.0"
name: document-access
description: Governs access to documents
defaultAction:
  type: deny
rules:
  - id: system-read
    name: System reads
    priority: 10
    conditions:
      - 'actor.type == "system"'
      - field: action
        operator: eq
        value: read
    action:
      type: allow
  - id: large-delete
    name: Large deletes need approval
    priority: 20
    conditions:
      - 'action == "delete"'
      - 'resource.attributes.size > 100'
    action:
      type: require_approval
      approval:
        minApprovers: 2
        requiredRoles: [admin]
        timeoutHours: 24
  - id: editors
    name: Editors
    priority: 30
    conditions:
      - field: actor.roles
        operator: exists
    action:
      type: allow
"""


@pytest.fixture
def sample_context_yaml() -> str:
    """Return a context YAML for a user deleting a large document."""
    return """
actor:
  id: user-42
  type: user
  roles: [editor]
action: delete
resource:
  type: document
  id: doc-1
  attributes:
    size: 150
environment:
  ipAddress: 10.0.0.5
  region: eu-west-1
"""


@pytest.fixture
def small_context_yaml() -> str:
    """Return a context YAML for a user deleting a small document."""
    return """
actor:
  id: user-7
  type: user
action: delete
resource:
  type: document
  attributes:
    size: 5
"""
