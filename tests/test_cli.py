"""Tests for the tboard CLI."""

import csv
import io
import json
from pathlib import Path

import orjson
import pytest
from typer.testing import CliRunner

from trackboard.cli import app
from trackboard.seed import default_seed, seed_to_dict

runner = CliRunner()


@pytest.fixture(autouse=True)
def _in_tmp_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every command where no trackboard.toml exists yet."""
    monkeypatch.chdir(tmp_path)


class TestListCommand:
    """Test the list command."""

    def test_list_table(self) -> None:
        """Issues of a project are shown as a table."""
        result = runner.invoke(app, ["list", "proj1"])
        assert result.exit_code == 0
        assert "issue-1" in result.output
        assert "issue-2" in result.output
        assert "issue-3" not in result.output

    def test_list_json_sorted_by_priority(self) -> None:
        """--sort priority --desc puts High first."""
        result = runner.invoke(
            app,
            ["list", "proj1", "--sort", "priority", "--desc", "--json"],
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [i["id"] for i in data] == ["issue-1", "issue-2"]

    def test_list_search(self) -> None:
        """--search matches case-insensitively."""
        result = runner.invoke(app, ["list", "proj1", "-q", "LOGIN", "--json"])
        assert result.exit_code == 0
        assert [i["id"] for i in json.loads(result.stdout)] == ["issue-1"]

    def test_list_filters(self) -> None:
        """Repeated filters allow several values."""
        result = runner.invoke(
            app,
            ["list", "proj3", "-t", "Epic", "-t", "Bug", "--json"],
        )
        assert result.exit_code == 0
        assert [i["id"] for i in json.loads(result.stdout)] == ["issue-5"]

    def test_list_no_match(self) -> None:
        """An empty result is reported, not an error."""
        result = runner.invoke(app, ["list", "proj1", "--search", "xyz"])
        assert result.exit_code == 0
        assert "No issues found" in result.output

    def test_list_brief(self) -> None:
        """--brief prints one line per issue."""
        result = runner.invoke(app, ["list", "proj3", "--brief"])
        assert result.exit_code == 0
        assert len(result.output.strip().splitlines()) == 2

    def test_list_unknown_project(self) -> None:
        """Unknown projects exit with an error."""
        result = runner.invoke(app, ["list", "proj-404"])
        assert result.exit_code == 1
        assert "Project proj-404 not found" in result.output

    def test_list_invalid_status(self) -> None:
        """Invalid filter values exit with an error."""
        result = runner.invoke(app, ["list", "proj1", "--status", "Closed"])
        assert result.exit_code == 1
        assert "Invalid status" in result.output

    def test_list_from_seed_file(self, tmp_path: Path) -> None:
        """--seed loads a different data set."""
        seed = seed_to_dict(default_seed())
        seed["issues"] = seed["issues"][:1]
        path = tmp_path / "seed.json"
        path.write_bytes(orjson.dumps(seed))
        result = runner.invoke(app, ["list", "proj1", "--seed", str(path), "--json"])
        assert result.exit_code == 0
        assert [i["id"] for i in json.loads(result.stdout)] == ["issue-1"]


class TestShowAndWorkspaces:
    """Test show and workspaces commands."""

    def test_show(self) -> None:
        """Show prints the issue with its project and workspace."""
        result = runner.invoke(app, ["show", "issue-2"])
        assert result.exit_code == 0
        assert "Implement user authentication" in result.output
        assert "Bug Tracker App" in result.output
        assert "Personal Workspace" in result.output
        assert "Setup JWT authentication flow." in result.output

    def test_show_json(self) -> None:
        """Show --json emits the issue dict."""
        result = runner.invoke(app, ["show", "issue-5", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["type"] == "Epic"
        assert data["workspace_id"] == "ws2"

    def test_show_missing_json_error(self) -> None:
        """Global --json turns errors into JSON on stderr."""
        result = runner.invoke(app, ["--json", "show", "issue-404"])
        assert result.exit_code == 1
        assert '"error"' in result.output

    def test_workspaces(self) -> None:
        """Workspaces lists projects with issue counts."""
        result = runner.invoke(app, ["workspaces"])
        assert result.exit_code == 0
        assert "Team Alpha (ws2)" in result.output
        assert "proj3  API Development  [2]" in result.output

    def test_workspaces_json(self) -> None:
        """Workspaces --json nests projects."""
        result = runner.invoke(app, ["workspaces", "--json"])
        data = json.loads(result.stdout)
        assert [w["id"] for w in data] == ["ws1", "ws2"]
        assert [p["issue_count"] for p in data[0]["projects"]] == [2, 1]


class TestExportCommands:
    """Test export and report commands."""

    def test_export_to_file(self, tmp_path: Path) -> None:
        """Export writes a CSV with one row per issue."""
        target = tmp_path / "out.csv"
        result = runner.invoke(app, ["export", "proj1", "-o", str(target)])
        assert result.exit_code == 0
        assert "Exported 2 issue(s)" in result.output
        with target.open(newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert [r["ID"] for r in rows] == ["issue-1", "issue-2"]

    def test_export_default_filename(self, tmp_path: Path) -> None:
        """Without -o the file is named after the project."""
        result = runner.invoke(app, ["export", "proj3"])
        assert result.exit_code == 0
        files = list(tmp_path.glob("API_Development_Issues_*.csv"))
        assert len(files) == 1

    def test_export_to_stdout(self) -> None:
        """'-' writes the CSV to stdout."""
        result = runner.invoke(app, ["export", "proj2", "-o", "-"])
        assert result.exit_code == 0
        rows = list(csv.DictReader(io.StringIO(result.stdout)))
        assert rows[0]["Title"] == "Design new landing page mockups"

    def test_export_unknown_project(self) -> None:
        """Exporting an unknown project fails."""
        result = runner.invoke(app, ["export", "proj-404"])
        assert result.exit_code == 1

    def test_report(self) -> None:
        """Freshly seeded issues fall inside a 7 day window."""
        result = runner.invoke(app, ["report", "7", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert len(data) == 5
        assert data[0]["Project"] == "proj1"

    def test_report_rejects_zero_days(self) -> None:
        """The window must be positive."""
        result = runner.invoke(app, ["report", "0"])
        assert result.exit_code == 1
        assert "positive" in result.output


class TestSessionCommands:
    """Test demo and run commands."""

    def test_demo_summary(self) -> None:
        """The demo summary has one line per activity, newest first."""
        result = runner.invoke(app, ["demo", "--summary"])
        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert len(lines) == 15
        assert 'deleted workspace "Team Alpha"' in lines[0]
        assert 'created workspace "Mobile Team"' in lines[-1]

    def test_demo_json(self) -> None:
        """The demo can emit the raw entries."""
        result = runner.invoke(app, ["demo", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert len(data) == 15
        assert data[0]["action"] == "DELETE_WORKSPACE"

    def test_demo_feed_cap(self, tmp_path: Path) -> None:
        """The feed shows at most feed_limit entries."""
        config = tmp_path / "trackboard.toml"
        config.write_text("feed_limit = 5\n")
        result = runner.invoke(app, ["demo"])
        assert result.exit_code == 0
        assert "Showing latest 5 of 15 activities" in result.output

    def test_demo_output_file(self, tmp_path: Path) -> None:
        """-o writes the full summary to a file."""
        target = tmp_path / "activity.txt"
        result = runner.invoke(app, ["demo", "-o", str(target)])
        assert result.exit_code == 0
        assert len(target.read_text(encoding="utf-8").splitlines()) == 15

    def test_run_script(self, tmp_path: Path) -> None:
        """run applies a script and prints the activity."""
        script = tmp_path / "steps.json"
        script.write_bytes(
            orjson.dumps(
                [
                    {
                        "op": "update_issue",
                        "args": {"issue_id": "issue-1", "changes": {"status": "Done"}},
                    },
                ],
            ),
        )
        result = runner.invoke(app, ["run", str(script), "--summary"])
        assert result.exit_code == 0
        summary = result.output
        assert 'changed status for issue "Button not working on login page"' in summary
        assert 'from "ToDo" to "Done"' in summary

    def test_run_script_failure(self, tmp_path: Path) -> None:
        """A failing step exits with an error."""
        script = tmp_path / "steps.json"
        script.write_bytes(
            orjson.dumps([{"op": "delete_project", "args": {"project_id": "x"}}]),
        )
        result = runner.invoke(app, ["run", str(script)])
        assert result.exit_code == 1
        assert "Project x not found" in result.output

    def test_run_script_with_bad_changes(self, tmp_path: Path) -> None:
        """A changes value that is not an object is reported, not a traceback."""
        script = tmp_path / "steps.json"
        args = {"issue_id": "issue-1", "changes": ["title"]}
        step = {"op": "update_issue", "args": args}
        script.write_bytes(orjson.dumps([step]))
        result = runner.invoke(app, ["run", str(script)])
        assert result.exit_code == 1
        assert "tboard: error: Changes must be a mapping" in result.output

    def test_run_empty_script(self, tmp_path: Path) -> None:
        """An empty script reports no activity."""
        script = tmp_path / "steps.json"
        script.write_text("[]")
        result = runner.invoke(app, ["run", str(script)])
        assert result.exit_code == 0
        assert "No recent activity." in result.output


class TestConfigCommands:
    """Test config subcommands."""

    def test_set_and_show(self) -> None:
        """Values set via the CLI are picked up by later commands."""
        result = runner.invoke(app, ["config", "set", "actor_name", "Ada"])
        assert result.exit_code == 0
        result = runner.invoke(app, ["config", "show", "--json"])
        assert json.loads(result.stdout)["actor_name"] == "Ada"

        result = runner.invoke(app, ["demo", "--summary"])
        assert " - Ada " in result.output

    def test_set_int_key(self) -> None:
        """Integer keys are stored as numbers."""
        result = runner.invoke(app, ["config", "set", "feed_limit", "3"])
        assert result.exit_code == 0
        result = runner.invoke(app, ["config", "show", "--json"])
        assert json.loads(result.stdout)["feed_limit"] == 3

    def test_set_invalid_int(self) -> None:
        """Non-numeric values for integer keys are rejected."""
        result = runner.invoke(app, ["config", "set", "feed_limit", "many"])
        assert result.exit_code != 0

    def test_set_unknown_key(self) -> None:
        """Unknown keys are rejected."""
        result = runner.invoke(app, ["config", "set", "colour", "red"])
        assert result.exit_code == 1
        assert "Unknown key" in result.output

    def test_keys(self) -> None:
        """keys lists every known setting."""
        result = runner.invoke(app, ["config", "keys"])
        assert result.exit_code == 0
        for key in ("actor_name", "max_attachment_size", "feed_limit", "seed_file"):
            assert key in result.output


class TestActivityFiles:
    """Test writing the activity log to files."""

    def test_demo_jsonl(self, tmp_path: Path) -> None:
        """A .jsonl target receives one raw record per line, oldest first."""
        target = tmp_path / "activity.jsonl"
        result = runner.invoke(app, ["demo", "-o", str(target)])
        assert result.exit_code == 0
        lines = target.read_bytes().splitlines()
        assert len(lines) == 15
        assert orjson.loads(lines[0])["action"] == "CREATE_WORKSPACE"
