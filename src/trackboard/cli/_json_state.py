"""Output mode shared by every tboard command.

``tboard --json`` and the per-command ``--json`` option both switch the
session into machine-readable mode. Once switched, results are printed as
one orjson document and failures become ``{"error": ...}`` objects
on stderr, so scripts can parse both streams.
"""

from __future__ import annotations

from typing import Any

import orjson
import typer

_json_mode: bool = False


def set_json_flag(value: bool) -> None:
    """Record the global ``--json`` option for this invocation."""
    global _json_mode  # noqa: PLW0603
    _json_mode = value


def is_json_output(local_flag: bool = False) -> bool:
    """Whether results should be printed as JSON.

    A per-command ``--json`` turns the whole session to JSON mode, so a
    later ``echo_error`` from the same command is JSON too.
    """
    global _json_mode  # noqa: PLW0603
    _json_mode = _json_mode or local_flag
    return _json_mode


def echo_json(data: Any) -> None:
    """Print a command result as indented JSON."""
    typer.echo(orjson.dumps(data, option=orjson.OPT_INDENT_2).decode())


def echo_error(message: str) -> None:
    """Report a failed tboard command on stderr."""
    if _json_mode:
        payload = {"error": message}
        typer.echo(orjson.dumps(payload).decode(), err=True)
    else:
        typer.echo(f"tboard: error: {message}", err=True)
