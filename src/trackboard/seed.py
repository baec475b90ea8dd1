"""Seed data for a trackboard session."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import orjson

from trackboard.errors import InvalidInputError
from trackboard.models import (
    Issue,
    IssueType,
    Priority,
    Project,
    Status,
    Workspace,
    dict_to_issue,
    dict_to_project,
    dict_to_workspace,
    issue_to_dict,
    project_to_dict,
    workspace_to_dict,
)


@dataclass
class Seed:
    """Initial collections handed to a new store."""

    workspaces: list[Workspace] = field(default_factory=list[Workspace])
    projects: list[Project] = field(default_factory=list[Project])
    issues: list[Issue] = field(default_factory=list[Issue])


def default_seed() -> Seed:
    """Return the sample workspaces, projects and issues shown on first launch."""
    workspaces = [
        Workspace(id="ws1", name="Personal Workspace"),
        Workspace(id="ws2", name="Team Alpha"),
    ]
    projects = [
        Project(id="proj1", name="Bug Tracker App", workspace_id="ws1"),
        Project(id="proj2", name="Website Redesign", workspace_id="ws1"),
        Project(id="proj3", name="API Development", workspace_id="ws2"),
    ]
    issues = [
        Issue(
            id="issue-1",
            title="Button not working on login page",
            description="The main login button is unresponsive.",
            issue_type=IssueType.BUG,
            status=Status.TODO,
            priority=Priority.HIGH,
            project_id="proj1",
            workspace_id="ws1",
        ),
        Issue(
            id="issue-2",
            title="Implement user authentication",
            description="Setup JWT authentication flow.",
            issue_type=IssueType.STORY,
            status=Status.IN_PROGRESS,
            priority=Priority.MEDIUM,
            project_id="proj1",
            workspace_id="ws1",
        ),
        Issue(
            id="issue-3",
            title="Design new landing page mockups",
            issue_type=IssueType.TASK,
            status=Status.DONE,
            priority=Priority.LOW,
            project_id="proj2",
            workspace_id="ws1",
        ),
        Issue(
            id="issue-4",
            title="Setup database schema",
            description="Define tables for users, projects, issues.",
            issue_type=IssueType.TASK,
            status=Status.TODO,
            priority=Priority.MEDIUM,
            project_id="proj3",
            workspace_id="ws2",
        ),
        Issue(
            id="issue-5",
            title="Define API endpoints for user profiles",
            description="CRUD operations for user data.",
            issue_type=IssueType.EPIC,
            status=Status.TODO,
            priority=Priority.MEDIUM,
            project_id="proj3",
            workspace_id="ws2",
        ),
    ]
    return Seed(workspaces=workspaces, projects=projects, issues=issues)


def seed_from_dict(data: dict[str, Any]) -> Seed:
    """Build a Seed from a ``{workspaces, projects, issues}`` mapping."""
    try:
        return Seed(
            workspaces=[dict_to_workspace(w) for w in data.get("workspaces", [])],
            projects=[dict_to_project(p) for p in data.get("projects", [])],
            issues=[dict_to_issue(i) for i in data.get("issues", [])],
        )
    except KeyError as e:
        msg = f"Seed record is missing required field {e}"
        raise InvalidInputError(msg) from e


def seed_to_dict(seed: Seed) -> dict[str, Any]:
    """Convert a Seed to a JSON-ready mapping."""
    return {
        "workspaces": [workspace_to_dict(w) for w in seed.workspaces],
        "projects": [project_to_dict(p) for p in seed.projects],
        "issues": [issue_to_dict(i) for i in seed.issues],
    }


def load_seed(path: str | Path) -> Seed:
    """Load seed data from a JSON file.

    Raises:
        InvalidInputError: If the file cannot be read or is not valid JSON.
    """
    path = Path(path)
    try:
        data = orjson.loads(path.read_bytes())
    except OSError as e:
        msg = f"Failed to read seed file {path}: {e}"
        raise InvalidInputError(msg) from e
    except orjson.JSONDecodeError as e:
        msg = f"Invalid seed file {path}: {e}"
        raise InvalidInputError(msg) from e

    if not isinstance(data, dict):
        msg = f"Seed file {path} must contain a JSON object"
        raise InvalidInputError(msg)
    return seed_from_dict(data)
