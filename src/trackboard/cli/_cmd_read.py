"""Read commands (list, show, workspaces) for the trackboard CLI."""

from __future__ import annotations

import typer

from trackboard.errors import TrackboardError
from trackboard.models import issue_to_dict, project_to_dict, workspace_to_dict
from trackboard.query import IssueQuery

from ._formatting import format_issue_brief, format_issue_table
from ._helpers import get_tracker
from ._json_state import echo_error, echo_json, is_json_output


def register(app: typer.Typer) -> None:
    """Register read commands."""

    @app.command(name="list")
    def list_issues(
        project_id: str = typer.Argument(..., help="Project to list issues for"),
        search: str | None = typer.Option(
            None,
            "--search",
            "-q",
            help="Case-insensitive text in title, description or ID",
        ),
        issue_type: list[str] | None = typer.Option(
            None,
            "--type",
            "-t",
            help="Allowed type (repeatable): Epic, Story, Task, Bug",
        ),
        status: list[str] | None = typer.Option(
            None,
            "--status",
            "-s",
            help="Allowed status (repeatable): ToDo, InProgress, Done, Blocked",
        ),
        priority: list[str] | None = typer.Option(
            None,
            "--priority",
            "-p",
            help="Allowed priority (repeatable): Low, Medium, High",
        ),
        sort: str = typer.Option(
            "createdAt",
            "--sort",
            help="Sort column: title, type, status, priority, createdAt",
        ),
        ascending: bool = typer.Option(
            False,
            "--asc/--desc",
            help="Sort direction (default: descending)",
        ),
        brief: bool = typer.Option(False, "--brief", "-b", help="One line per issue"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seed: str | None = typer.Option(None, "--seed", help="Seed data JSON file"),
        config: str | None = typer.Option(None, "--config", help="Config TOML file"),
    ) -> None:
        """List a project's issues with optional search, filters and sorting."""
        try:
            tracker = get_tracker(seed, config)
            project = tracker.get_project(project_id)
            if project is None:
                echo_error(f"Project {project_id} not found")
                raise typer.Exit(1)

            query = IssueQuery.build(
                search_term=search,
                types=issue_type or (),
                statuses=status or (),
                priorities=priority or (),
                sort_by=sort,
                direction="asc" if ascending else "desc",
            )
            issues = tracker.query(project_id, query)

            if is_json_output(json_output):
                echo_json([issue_to_dict(i) for i in issues])
            elif not issues:
                typer.echo("No issues found")
            elif brief:
                for issue in issues:
                    typer.echo(format_issue_brief(issue))
            else:
                typer.echo(format_issue_table(issues))
        except typer.Exit:
            raise
        except TrackboardError as e:
            echo_error(str(e))
            raise typer.Exit(1) from e

    @app.command()
    def show(
        issue_id: str = typer.Argument(..., help="Issue ID"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seed: str | None = typer.Option(None, "--seed", help="Seed data JSON file"),
        config: str | None = typer.Option(None, "--config", help="Config TOML file"),
    ) -> None:
        """Show all fields of one issue."""
        try:
            tracker = get_tracker(seed, config)
            issue = tracker.get_issue(issue_id)
            if issue is None:
                echo_error(f"Issue {issue_id} not found")
                raise typer.Exit(1)

            if is_json_output(json_output):
                echo_json(issue_to_dict(issue))
                return

            project = tracker.get_project(issue.project_id)
            workspace = tracker.get_workspace(issue.workspace_id)
            typer.echo(format_issue_brief(issue))
            ws_name = workspace.name if workspace else issue.workspace_id
            project_name = project.name if project else issue.project_id
            typer.echo(f"Workspace: {ws_name}")
            typer.echo(f"Project:   {project_name}")
            typer.echo(f"Created:   {issue.created_at.isoformat()}")
            typer.echo(f"Updated:   {issue.updated_at.isoformat()}")
            if issue.description:
                typer.echo(f"\n{issue.description}")
            if issue.attachments:
                typer.echo("\nAttachments:")
                for att in issue.attachments:
                    typer.echo(f"  {att.id}  {att.name} ({att.size} bytes)")
        except typer.Exit:
            raise
        except TrackboardError as e:
            echo_error(str(e))
            raise typer.Exit(1) from e

    @app.command()
    def workspaces(
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seed: str | None = typer.Option(None, "--seed", help="Seed data JSON file"),
        config: str | None = typer.Option(None, "--config", help="Config TOML file"),
    ) -> None:
        """Show workspaces with their projects and issue counts."""
        try:
            tracker = get_tracker(seed, config)
            store = tracker.store

            if is_json_output(json_output):
                echo_json(
                    [
                        {
                            **workspace_to_dict(ws),
                            "projects": [
                                {
                                    **project_to_dict(p),
                                    "issue_count": store.issue_count(p.id),
                                }
                                for p in tracker.list_projects(ws.id)
                            ],
                        }
                        for ws in tracker.list_workspaces()
                    ],
                )
                return

            all_workspaces = tracker.list_workspaces()
            if not all_workspaces:
                typer.echo("No workspaces")
                return
            for ws in all_workspaces:
                typer.echo(typer.style(f"{ws.name} ({ws.id})", bold=True))
                projects = tracker.list_projects(ws.id)
                if not projects:
                    typer.echo("  (no projects)")
                for p in projects:
                    typer.echo(f"  {p.id}  {p.name}  [{store.issue_count(p.id)}]")
        except TrackboardError as e:
            echo_error(str(e))
            raise typer.Exit(1) from e
