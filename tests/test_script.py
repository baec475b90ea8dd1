"""Tests for script replay and the demo session."""

from pathlib import Path

import orjson
import pytest

from trackboard.audit import ActivityAction
from trackboard.demo import DEMO_STEPS, run_demo
from trackboard.errors import InvalidInputError, NotFoundError
from trackboard.models import Priority, Status
from trackboard.script import load_script, run_script
from trackboard.tracker import Tracker


class TestRunScript:
    """Test executing script steps."""

    def test_aliases_resolve_to_ids(self, tracker: Tracker) -> None:
        """``$name`` arguments are replaced by earlier results' ids."""
        results = run_script(
            tracker,
            [
                {"op": "create_workspace", "args": {"name": "W"}, "as": "w"},
                {
                    "op": "create_project",
                    "args": {"name": "P", "workspace_id": "$w"},
                    "as": "p",
                },
                {"op": "create_issue", "args": {"title": "T", "project_id": "$p"}},
            ],
        )
        assert [r.op for r in results] == [
            "create_workspace",
            "create_project",
            "create_issue",
        ]
        project = results[1].result
        assert project.workspace_id == results[0].result.id
        assert tracker.list_issues(project.id)[0].title == "T"

    def test_delete_result_alias_uses_entity(self, seeded_tracker: Tracker) -> None:
        """Aliases on deletes point at the removed entity."""
        results = run_script(
            seeded_tracker,
            [{"op": "delete_issue", "args": {"issue_id": "issue-2"}, "as": "gone"}],
        )
        assert results[0].result.entity.id == "issue-2"

    def test_unknown_op(self, tracker: Tracker) -> None:
        """Only whitelisted tracker methods may be called."""
        with pytest.raises(InvalidInputError, match="unknown op"):
            run_script(tracker, [{"op": "query", "args": {}}])

    def test_unknown_alias(self, tracker: Tracker) -> None:
        """Referencing an undefined alias fails."""
        with pytest.raises(InvalidInputError, match=r"\$nope"):
            run_script(
                tracker,
                [
                    {
                        "op": "create_project",
                        "args": {"name": "P", "workspace_id": "$nope"},
                    },
                ],
            )

    def test_bad_arguments(self, tracker: Tracker) -> None:
        """Wrong keyword arguments become InvalidInputError."""
        with pytest.raises(InvalidInputError, match="bad arguments"):
            run_script(tracker, [{"op": "create_workspace", "args": {"title": "W"}}])

    def test_stops_at_first_failure(self, seeded_tracker: Tracker) -> None:
        """Earlier steps stay applied when a later one fails."""
        with pytest.raises(NotFoundError):
            run_script(
                seeded_tracker,
                [
                    {"op": "delete_issue", "args": {"issue_id": "issue-1"}},
                    {"op": "delete_issue", "args": {"issue_id": "issue-1"}},
                ],
            )
        assert seeded_tracker.get_issue("issue-1") is None
        assert len(seeded_tracker.audit_log) == 1


class TestLoadScript:
    """Test reading script files."""

    def test_load(self, tmp_path: Path) -> None:
        """A JSON array loads as a list of steps."""
        path = tmp_path / "steps.json"
        path.write_bytes(orjson.dumps(DEMO_STEPS))
        assert load_script(path) == DEMO_STEPS

    def test_not_a_list(self, tmp_path: Path) -> None:
        """Scripts must be arrays."""
        path = tmp_path / "steps.json"
        path.write_text('{"op": "create_workspace"}')
        with pytest.raises(InvalidInputError, match="JSON array"):
            load_script(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises InvalidInputError."""
        with pytest.raises(InvalidInputError):
            load_script(tmp_path / "missing.json")


class TestDemo:
    """Test the demo session."""

    def test_demo_produces_fifteen_entries(self, seeded_tracker: Tracker) -> None:
        """The demo logs every kind of action."""
        run_demo(seeded_tracker)
        entries = seeded_tracker.audit_log.entries()
        assert len(entries) == 15
        assert {e.action for e in entries} == set(ActivityAction)

    def test_demo_end_state(self, seeded_tracker: Tracker) -> None:
        """The demo leaves the expected hierarchy behind."""
        run_demo(seeded_tracker)
        assert [w.name for w in seeded_tracker.list_workspaces()] == [
            "Personal Workspace",
            "Mobile Team",
        ]
        assert seeded_tracker.get_project("proj2") is None
        issue_1 = seeded_tracker.get_issue("issue-1")
        assert issue_1 is not None
        assert issue_1.priority is Priority.LOW

        ios = seeded_tracker.list_projects(seeded_tracker.list_workspaces()[1].id)[0]
        issues = seeded_tracker.list_issues(ios.id)
        assert len(issues) == 4
        crash = issues[0]
        assert crash.title == "Crash on launch when cache is empty"
        assert crash.status is Status.DONE
        assert crash.attachments == []
