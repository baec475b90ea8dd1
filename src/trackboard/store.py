"""In-memory entity store with cascading referential integrity."""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from trackboard.constants import (
    DEFAULT_PRIORITY,
    MAX_ATTACHMENT_SIZE,
    UPDATABLE_FIELDS,
)
from trackboard.errors import (
    InvalidInputError,
    InvalidReferenceError,
    NotFoundError,
    TooLargeError,
)
from trackboard.idgen import IDGenerator
from trackboard.models import (
    Attachment,
    Issue,
    IssueType,
    Priority,
    Project,
    Status,
    Workspace,
    parse_issue_type,
    parse_priority,
    parse_status,
    require_text,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from trackboard.seed import Seed

logger = logging.getLogger(__name__)


def _system_clock() -> datetime:
    return datetime.now().astimezone()


@dataclass
class Removal:
    """What a delete call removed: the target plus any cascaded children."""

    entity: Workspace | Project | Issue
    projects: list[Project] = field(default_factory=list[Project])
    issues: list[Issue] = field(default_factory=list[Issue])


class EntityStore:
    """Owns the canonical workspace, project and issue collections.

    Children are found through parent-id indexes so cascades never scan the
    full collections. Every mutation holds a single re-entrant lock, which
    makes a cascade appear atomic to readers on other threads.
    """

    def __init__(
        self,
        seed: Seed | None = None,
        *,
        max_attachment_size: int = MAX_ATTACHMENT_SIZE,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            seed: Optional initial workspaces, projects and issues.
            max_attachment_size: Largest accepted attachment, in bytes.
            clock: Source of timestamps (default: local wall clock).
        """
        self.max_attachment_size = max_attachment_size
        self._clock = clock or _system_clock
        self._workspaces: dict[str, Workspace] = {}
        self._projects: dict[str, Project] = {}
        self._issues: dict[str, Issue] = {}
        # Parent id -> child ids, in insertion order
        self._projects_by_workspace: dict[str, list[str]] = {}
        self._issues_by_project: dict[str, list[str]] = {}
        self._ids = IDGenerator()
        self._lock = threading.RLock()
        # Creation sequence per id, used to restore order after an undone delete
        self._order: dict[str, int] = {}
        self._seq = itertools.count()
        # Undo actions of the open transaction, newest last
        self._undo: list[Callable[[], None]] | None = None

        if seed is not None:
            self._load(seed)

    def _load(self, seed: Seed) -> None:
        """Populate the store from seed data, enforcing the same invariants."""
        for workspace in seed.workspaces:
            self._claim_id(workspace.id)
            self._add_workspace(workspace)

        for project in seed.projects:
            self._claim_id(project.id)
            if project.workspace_id not in self._workspaces:
                msg = (
                    f"Project {project.id} references unknown workspace "
                    f"{project.workspace_id}"
                )
                raise InvalidReferenceError(msg)
            self._add_project(project)

        for issue in seed.issues:
            self._claim_id(issue.id)
            self._check_issue_refs(issue.project_id, issue.workspace_id)
            for attachment in issue.attachments:
                self._claim_id(attachment.id)
                if attachment.size > self.max_attachment_size:
                    raise TooLargeError(
                        attachment.name,
                        attachment.size,
                        self.max_attachment_size,
                    )
            self._add_issue(issue)

        logger.debug(
            "Loaded seed: %d workspaces, %d projects, %d issues",
            len(self._workspaces),
            len(self._projects),
            len(self._issues),
        )

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group several calls into one all-or-nothing unit.

        Holds the write lock for the whole block. If the block raises, every
        change made inside it is undone, newest first, before the exception
        propagates. Transactions nest: an inner block that fails only undoes
        its own changes, and the outer block decides what happens next.
        """
        with self._lock:
            outermost = self._undo is None
            if outermost:
                self._undo = []
            undo = self._undo
            mark = len(undo)
            try:
                yield
            except BaseException:
                count = len(undo) - mark
                while len(undo) > mark:
                    undo.pop()()
                logger.debug("Rolled back %d change(s)", count)
                raise
            finally:
                if outermost:
                    self._undo = None

    def _on_undo(self, action: Callable[[], None]) -> None:
        """Register how to revert a change made inside a transaction."""
        if self._undo is not None:
            self._undo.append(action)

    def _in_order(self, entities: dict[str, Any]) -> dict[str, Any]:
        return dict(sorted(entities.items(), key=lambda kv: self._order[kv[0]]))

    def _restore(self, removal: Removal) -> None:
        """Put back everything a delete removed, in its original order."""
        entity = removal.entity
        if isinstance(entity, Workspace):
            self._workspaces[entity.id] = entity
            self._projects_by_workspace[entity.id] = []
            self._workspaces = self._in_order(self._workspaces)

        projects = [entity] if isinstance(entity, Project) else removal.projects
        issues = [entity] if isinstance(entity, Issue) else removal.issues
        for project in projects:
            self._add_project(project)
        for issue in issues:
            self._add_issue(issue)

        self._projects = self._in_order(self._projects)
        self._issues = self._in_order(self._issues)
        by_order = self._order.__getitem__
        for workspace_id in {p.workspace_id for p in projects}:
            self._projects_by_workspace[workspace_id].sort(key=by_order)
        for project_id in {i.project_id for i in issues}:
            self._issues_by_project[project_id].sort(key=by_order)

    def _claim_id(self, entity_id: str) -> None:
        if entity_id in self._ids.existing_ids:
            msg = f"Duplicate id {entity_id} in seed data"
            raise InvalidInputError(msg)
        self._ids.add_existing_id(entity_id)

    def _now(self) -> datetime:
        return self._clock()

    def _touch(self, issue: Issue) -> None:
        """Refresh updated_at, keeping it strictly increasing."""
        now = self._now()
        if now <= issue.updated_at:
            now = issue.updated_at + timedelta(microseconds=1)
        issue.updated_at = now

    def _add_workspace(self, workspace: Workspace) -> None:
        self._order.setdefault(workspace.id, next(self._seq))
        self._workspaces[workspace.id] = workspace
        self._projects_by_workspace[workspace.id] = []

    def _add_project(self, project: Project) -> None:
        self._order.setdefault(project.id, next(self._seq))
        self._projects[project.id] = project
        self._projects_by_workspace.setdefault(project.workspace_id, []).append(
            project.id,
        )
        self._issues_by_project[project.id] = []

    def _add_issue(self, issue: Issue) -> None:
        self._order.setdefault(issue.id, next(self._seq))
        self._issues[issue.id] = issue
        self._issues_by_project.setdefault(issue.project_id, []).append(issue.id)

    def _check_issue_refs(self, project_id: str, workspace_id: str) -> Project:
        project = self._projects.get(project_id)
        if project is None:
            msg = f"Project {project_id} does not exist"
            raise InvalidReferenceError(msg)
        if workspace_id not in self._workspaces:
            msg = f"Workspace {workspace_id} does not exist"
            raise InvalidReferenceError(msg)
        if project.workspace_id != workspace_id:
            msg = (
                f"Project {project_id} belongs to workspace {project.workspace_id}, "
                f"not {workspace_id}"
            )
            raise InvalidReferenceError(msg)
        return project

    def _require_issue(self, issue_id: str) -> Issue:
        issue = self._issues.get(issue_id)
        if issue is None:
            raise NotFoundError("Issue", issue_id)
        return issue

    # -- Read accessors --------------------------------------------------

    def get_workspace(self, workspace_id: str | None) -> Workspace | None:
        """Get a workspace by ID, or None if it does not exist."""
        if workspace_id is None:
            return None
        return self._workspaces.get(workspace_id)

    def get_project(self, project_id: str | None) -> Project | None:
        """Get a project by ID, or None if it does not exist."""
        if project_id is None:
            return None
        return self._projects.get(project_id)

    def get_issue(self, issue_id: str | None) -> Issue | None:
        """Get an issue by ID, or None if it does not exist."""
        if issue_id is None:
            return None
        return self._issues.get(issue_id)

    def list_workspaces(self) -> list[Workspace]:
        """List workspaces in creation order."""
        with self._lock:
            return list(self._workspaces.values())

    def list_projects(self, workspace_id: str | None = None) -> list[Project]:
        """List projects in creation order, optionally for one workspace."""
        with self._lock:
            if workspace_id is None:
                return list(self._projects.values())
            return [
                self._projects[pid]
                for pid in self._projects_by_workspace.get(workspace_id, [])
            ]

    def list_issues(self, project_id: str | None = None) -> list[Issue]:
        """List issues in creation order, optionally for one project."""
        with self._lock:
            if project_id is None:
                return list(self._issues.values())
            return [
                self._issues[iid] for iid in self._issues_by_project.get(project_id, [])
            ]

    def issue_count(self, project_id: str) -> int:
        """Number of issues in a project."""
        with self._lock:
            return len(self._issues_by_project.get(project_id, []))

    # -- Workspaces and projects -----------------------------------------

    def create_workspace(self, name: str) -> Workspace:
        """Create a workspace. Names are not required to be unique.

        Raises:
            InvalidInputError: If the name is blank.
        """
        name = require_text(name, "Workspace name")
        with self._lock:
            workspace = Workspace(
                id=self._ids.generate("ws"),
                name=name,
                created_at=self._now(),
            )
            self._add_workspace(workspace)
            self._on_undo(lambda: self._discard_workspace(workspace.id))
        logger.debug("Created workspace %s (%s)", workspace.id, workspace.name)
        return workspace

    def create_project(self, name: str, workspace_id: str) -> Project:
        """Create a project inside an existing workspace.

        Raises:
            InvalidInputError: If the name is blank.
            NotFoundError: If the workspace does not exist.
        """
        name = require_text(name, "Project name")
        with self._lock:
            if workspace_id not in self._workspaces:
                raise NotFoundError("Workspace", workspace_id)
            project = Project(
                id=self._ids.generate("proj"),
                name=name,
                workspace_id=workspace_id,
                created_at=self._now(),
            )
            self._add_project(project)
            self._on_undo(lambda: self._discard_project(project))
        logger.debug("Created project %s in %s", project.id, workspace_id)
        return project

    def _discard_workspace(self, workspace_id: str) -> None:
        del self._workspaces[workspace_id]
        del self._projects_by_workspace[workspace_id]

    def _discard_project(self, project: Project) -> None:
        del self._projects[project.id]
        del self._issues_by_project[project.id]
        self._projects_by_workspace[project.workspace_id].remove(project.id)

    def _discard_issue(self, issue: Issue) -> None:
        del self._issues[issue.id]
        self._issues_by_project[issue.project_id].remove(issue.id)

    def delete_workspace(self, workspace_id: str) -> Removal:
        """Delete a workspace with all of its projects and their issues.

        Raises:
            NotFoundError: If the workspace does not exist.
        """
        with self._lock:
            workspace = self._workspaces.get(workspace_id)
            if workspace is None:
                raise NotFoundError("Workspace", workspace_id)

            removal = Removal(entity=workspace)
            for project_id in self._projects_by_workspace.pop(workspace_id, []):
                removal.issues.extend(self._drop_project_issues(project_id))
                removal.projects.append(self._projects.pop(project_id))
            del self._workspaces[workspace_id]
            self._on_undo(lambda: self._restore(removal))

        logger.debug(
            "Deleted workspace %s (cascaded %d projects, %d issues)",
            workspace_id,
            len(removal.projects),
            len(removal.issues),
        )
        return removal

    def delete_project(self, project_id: str) -> Removal:
        """Delete a project and all of its issues.

        Raises:
            NotFoundError: If the project does not exist.
        """
        with self._lock:
            project = self._projects.get(project_id)
            if project is None:
                raise NotFoundError("Project", project_id)

            removal = Removal(entity=project)
            removal.issues.extend(self._drop_project_issues(project_id))
            siblings = self._projects_by_workspace.get(project.workspace_id, [])
            if project_id in siblings:
                siblings.remove(project_id)
            del self._projects[project_id]
            self._on_undo(lambda: self._restore(removal))

        logger.debug(
            "Deleted project %s (cascaded %d issues)",
            project_id,
            len(removal.issues),
        )
        return removal

    def _drop_project_issues(self, project_id: str) -> list[Issue]:
        issue_ids = self._issues_by_project.pop(project_id, [])
        return [self._issues.pop(iid) for iid in issue_ids]

    # -- Issues ----------------------------------------------------------

    def create_issue(
        self,
        title: str,
        project_id: str,
        workspace_id: str,
        *,
        description: str | None = None,
        issue_type: IssueType | str = IssueType.TASK,
        status: Status | str = Status.TODO,
        priority: Priority | str | None = None,
    ) -> Issue:
        """Create an issue in an existing project.

        Args:
            title: Issue title (required, non-blank).
            project_id: Owning project.
            workspace_id: Must equal the project's workspace.
            description: Optional description.
            issue_type: Epic, Story, Task or Bug.
            status: ToDo, InProgress, Done or Blocked.
            priority: Low, Medium or High (default: Medium).

        Returns:
            The created issue.

        Raises:
            InvalidInputError: If the title is blank or an enum value is invalid.
            InvalidReferenceError: If the project/workspace pair does not resolve
                or is inconsistent.
        """
        title = require_text(title, "Issue title")
        parsed_type = parse_issue_type(issue_type)
        parsed_status = parse_status(status)
        parsed_priority = parse_priority(priority or DEFAULT_PRIORITY)

        with self._lock:
            self._check_issue_refs(project_id, workspace_id)
            now = self._now()
            issue = Issue(
                id=self._ids.generate("issue"),
                title=title,
                project_id=project_id,
                workspace_id=workspace_id,
                description=description or None,
                issue_type=parsed_type,
                status=parsed_status,
                priority=parsed_priority,
                created_at=now,
                updated_at=now,
            )
            self._add_issue(issue)
            self._on_undo(lambda: self._discard_issue(issue))
        logger.debug("Created issue %s in %s", issue.id, project_id)
        return issue

    def _normalize_update(self, key: str, value: Any) -> Any:
        if key == "title":
            return require_text(value, "Issue title")
        if key == "description":
            if value is not None and not isinstance(value, str):
                msg = "Issue description must be a string"
                raise InvalidInputError(msg)
            return value or None
        if key == "issue_type":
            return parse_issue_type(value)
        if key == "status":
            return parse_status(value)
        return parse_priority(value)

    def update_issue(
        self,
        issue_id: str,
        changes: Mapping[str, Any],
    ) -> tuple[Issue, dict[str, tuple[Any, Any]]]:
        """Update title, description, type, status and/or priority.

        Fields whose new value equals the current value are left untouched.
        ``updated_at`` is refreshed only when at least one field changed.
        All values are validated before any is applied.

        Returns:
            The issue and a mapping of changed field -> (old, new), in the
            order the fields were given.

        Raises:
            NotFoundError: If the issue does not exist.
            InvalidInputError: If changes is not a mapping, a field is not
                updatable or a value is invalid.
        """
        if not isinstance(changes, Mapping):
            msg = f"Changes must be a mapping of field to value, got {changes!r}"
            raise InvalidInputError(msg)
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            msg = f"Cannot update field(s): {', '.join(sorted(unknown))}"
            raise InvalidInputError(msg)

        with self._lock:
            issue = self._require_issue(issue_id)
            normalized = {
                key: self._normalize_update(key, value)
                for key, value in changes.items()
            }

            diff: dict[str, tuple[Any, Any]] = {}
            for key, new in normalized.items():
                old = getattr(issue, key)
                if old != new:
                    diff[key] = (old, new)

            if diff:
                previous = issue.updated_at
                for key, (_, new) in diff.items():
                    setattr(issue, key, new)
                self._touch(issue)

                def revert() -> None:
                    for key, (old, _) in diff.items():
                        setattr(issue, key, old)
                    issue.updated_at = previous

                self._on_undo(revert)

        if diff:
            logger.debug("Updated issue %s: %s", issue_id, ", ".join(diff))
        return issue, diff

    def delete_issue(self, issue_id: str) -> Removal:
        """Delete a single issue.

        Raises:
            NotFoundError: If the issue does not exist.
        """
        with self._lock:
            issue = self._require_issue(issue_id)
            siblings = self._issues_by_project.get(issue.project_id, [])
            if issue_id in siblings:
                siblings.remove(issue_id)
            del self._issues[issue_id]
            removal = Removal(entity=issue)
            self._on_undo(lambda: self._restore(removal))
        logger.debug("Deleted issue %s", issue_id)
        return removal

    # -- Attachments -----------------------------------------------------

    def add_attachment(
        self,
        issue_id: str,
        name: str,
        size: int,
        mime_type: str = "",
        content_handle: Any = None,
    ) -> Attachment:
        """Append an attachment to an issue.

        The content handle is stored by reference and never read.

        Raises:
            NotFoundError: If the issue does not exist.
            InvalidInputError: If the name is blank or the size is negative.
            TooLargeError: If size exceeds ``max_attachment_size``.
        """
        name = require_text(name, "Attachment name")
        if isinstance(size, bool) or not isinstance(size, int) or size < 0:
            msg = f"Attachment size must be a non-negative integer, got {size!r}"
            raise InvalidInputError(msg)

        with self._lock:
            issue = self._require_issue(issue_id)
            if size > self.max_attachment_size:
                raise TooLargeError(name, size, self.max_attachment_size)
            attachment = Attachment(
                id=self._ids.generate("att"),
                name=name,
                size=size,
                mime_type=mime_type,
                content_handle=content_handle,
            )
            previous = issue.updated_at
            issue.attachments.append(attachment)
            self._touch(issue)

            def revert() -> None:
                issue.attachments.remove(attachment)
                issue.updated_at = previous

            self._on_undo(revert)
        logger.debug("Added attachment %s to %s", attachment.id, issue_id)
        return attachment

    def remove_attachment(self, issue_id: str, attachment_id: str) -> Attachment:
        """Remove an attachment from an issue by id.

        Raises:
            NotFoundError: If the issue or the attachment does not exist.
        """
        with self._lock:
            issue = self._require_issue(issue_id)
            for index, attachment in enumerate(issue.attachments):
                if attachment.id == attachment_id:
                    break
            else:
                raise NotFoundError("Attachment", attachment_id)
            previous = issue.updated_at
            del issue.attachments[index]
            self._touch(issue)

            def revert() -> None:
                issue.attachments.insert(index, attachment)
                issue.updated_at = previous

            self._on_undo(revert)
        logger.debug("Removed attachment %s from %s", attachment_id, issue_id)
        return attachment
