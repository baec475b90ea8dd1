"""Replay a list of façade operations (used by ``tboard run`` and ``tboard demo``).

A script is a JSON array of steps::

    {"op": "create_workspace", "args": {"name": "Team"}, "as": "team"}
    {"op": "create_project", "args": {"name": "API", "workspace_id": "$team"}}

``as`` names the step's result; a later string argument ``"$name"`` is replaced
by that result's id. Steps run in order and stop at the first failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import orjson

from trackboard.errors import InvalidInputError

if TYPE_CHECKING:
    from trackboard.tracker import Tracker

logger = logging.getLogger(__name__)

# Tracker methods a script may call
SCRIPT_OPS: frozenset[str] = frozenset(
    {
        "create_workspace",
        "create_project",
        "delete_workspace",
        "delete_project",
        "create_issue",
        "bulk_create_issues",
        "update_issue",
        "delete_issue",
        "add_attachment",
        "remove_attachment",
    },
)


@dataclass
class StepResult:
    """Outcome of one executed step."""

    index: int
    op: str
    result: Any


def _result_id(result: Any) -> str | None:
    entity = getattr(result, "entity", result)
    return getattr(entity, "id", None)


def _resolve(value: Any, names: dict[str, str]) -> Any:
    if isinstance(value, str) and value.startswith("$"):
        key = value[1:]
        if key not in names:
            msg = f"Unknown reference {value!r}"
            raise InvalidInputError(msg)
        return names[key]
    if isinstance(value, list):
        return [_resolve(v, names) for v in value]
    if isinstance(value, dict):
        return {k: _resolve(v, names) for k, v in value.items()}
    return value


def run_script(tracker: Tracker, steps: list[dict[str, Any]]) -> list[StepResult]:
    """Execute *steps* against *tracker* in order.

    Returns:
        One StepResult per executed step.

    Raises:
        InvalidInputError: If a step is malformed or names an unknown op.
        TrackboardError: Whatever the failing façade call raised; earlier
            steps stay applied.
    """
    names: dict[str, str] = {}
    results: list[StepResult] = []

    for index, step in enumerate(steps, start=1):
        op = step.get("op") if isinstance(step, dict) else None
        if op not in SCRIPT_OPS:
            msg = f"Step {index}: unknown op {op!r}"
            raise InvalidInputError(msg)
        args = step.get("args", {})
        if not isinstance(args, dict):
            msg = f"Step {index}: args must be an object"
            raise InvalidInputError(msg)

        kwargs = _resolve(args, names)
        logger.debug("Step %d: %s %s", index, op, kwargs)
        try:
            result = getattr(tracker, op)(**kwargs)
        except TypeError as e:
            msg = f"Step {index}: bad arguments for {op}: {e}"
            raise InvalidInputError(msg) from e

        alias = step.get("as")
        if alias:
            result_id = _result_id(result)
            if result_id is not None:
                names[alias] = result_id
        results.append(StepResult(index=index, op=op, result=result))

    return results


def load_script(path: str | Path) -> list[dict[str, Any]]:
    """Read a JSON script file.

    Raises:
        InvalidInputError: If the file is unreadable or not a JSON array.
    """
    path = Path(path)
    try:
        data = orjson.loads(path.read_bytes())
    except OSError as e:
        msg = f"Failed to read script {path}: {e}"
        raise InvalidInputError(msg) from e
    except orjson.JSONDecodeError as e:
        msg = f"Invalid script {path}: {e}"
        raise InvalidInputError(msg) from e
    if not isinstance(data, list):
        msg = f"Script {path} must contain a JSON array of steps"
        raise InvalidInputError(msg)
    return data
