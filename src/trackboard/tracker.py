"""Mutation façade: every state change goes through here.

Each method performs one store mutation and records the matching audit
entries as a single unit under the store's lock. If recording fails the
mutation is undone, so store and log never diverge. Validation lives in
the store; this layer only fills defaults and captures the names an audit
entry needs to outlive the entities it mentions.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING, Any

from trackboard.audit import UPDATE_ACTIONS, ActivityAction, AuditLog
from trackboard.constants import (
    DEFAULT_STATUS,
    DEFAULT_TYPE,
    FIELD_LABELS,
    MAX_ATTACHMENT_SIZE,
)
from trackboard.errors import InvalidInputError
from trackboard.query import IssueQuery, query_issues
from trackboard.store import EntityStore

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

    from trackboard.audit import ActivityLogEntry
    from trackboard.config import TrackboardConfig
    from trackboard.models import (
        Attachment,
        Issue,
        IssueType,
        Priority,
        Project,
        Status,
        Workspace,
    )
    from trackboard.seed import Seed
    from trackboard.store import Removal

logger = logging.getLogger(__name__)


def _as_text(value: Any) -> str:
    """String form of a field value for oldValue/newValue."""
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class Tracker:
    """The single entry point external callers use to change state."""

    def __init__(
        self,
        store: EntityStore | None = None,
        audit_log: AuditLog | None = None,
        *,
        actor_name: str | None = None,
    ) -> None:
        """Initialize the façade.

        Args:
            store: Entity store to mutate (default: an empty store).
            audit_log: Log receiving one entry per change (default: new log).
            actor_name: Name recorded on every entry (None renders as System).
        """
        self.store = store if store is not None else EntityStore()
        self.audit_log = audit_log if audit_log is not None else AuditLog()
        self.actor_name = actor_name

    @classmethod
    def from_config(
        cls,
        config: TrackboardConfig,
        seed: Seed | None = None,
    ) -> Tracker:
        """Build a session from a loaded configuration and optional seed."""
        store = EntityStore(
            seed,
            max_attachment_size=config.max_attachment_size or MAX_ATTACHMENT_SIZE,
        )
        return cls(store, AuditLog(), actor_name=config.actor_name)

    @contextmanager
    def _atomic(self) -> Iterator[None]:
        """Run a mutation and its audit entries as one unit.

        If anything inside raises, the store changes are undone and the
        entries recorded so far are dropped.
        """
        with self.store.transaction(), self.audit_log.staged():
            yield

    def _record(
        self,
        action: ActivityAction,
        details: dict[str, str | None],
    ) -> ActivityLogEntry:
        return self.audit_log.record(action, details, actor_name=self.actor_name)

    def _names(
        self,
        project_id: str | None,
        workspace_id: str | None,
    ) -> dict[str, str | None]:
        """Project/workspace ids and their current names."""
        project = self.store.get_project(project_id)
        workspace = self.store.get_workspace(workspace_id)
        return {
            "projectId": project_id,
            "projectName": project.name if project else None,
            "workspaceId": workspace_id,
            "workspaceName": workspace.name if workspace else None,
        }

    def _issue_details(self, issue: Issue) -> dict[str, str | None]:
        return {
            "issueId": issue.id,
            "issueTitle": issue.title,
            **self._names(issue.project_id, issue.workspace_id),
        }

    # -- Reads -----------------------------------------------------------

    def get_workspace(self, workspace_id: str | None) -> Workspace | None:
        """Get a workspace by ID, or None."""
        return self.store.get_workspace(workspace_id)

    def get_project(self, project_id: str | None) -> Project | None:
        """Get a project by ID, or None."""
        return self.store.get_project(project_id)

    def get_issue(self, issue_id: str | None) -> Issue | None:
        """Get an issue by ID, or None."""
        return self.store.get_issue(issue_id)

    def list_workspaces(self) -> list[Workspace]:
        """List all workspaces."""
        return self.store.list_workspaces()

    def list_projects(self, workspace_id: str | None = None) -> list[Project]:
        """List projects, optionally for one workspace."""
        return self.store.list_projects(workspace_id)

    def list_issues(self, project_id: str | None = None) -> list[Issue]:
        """List issues in creation order, optionally for one project."""
        return self.store.list_issues(project_id)

    def query(self, project_id: str, query: IssueQuery | None = None) -> list[Issue]:
        """Filtered, searched and sorted issues of one project."""
        return query_issues(self.store.list_issues(), project_id, query)

    def activity(self, limit: int | None = None) -> list[ActivityLogEntry]:
        """Audit entries, newest first."""
        return self.audit_log.newest_first(limit)

    # -- Workspaces and projects -----------------------------------------

    def create_workspace(self, name: str) -> Workspace:
        """Create a workspace and log CREATE_WORKSPACE."""
        with self._atomic():
            workspace = self.store.create_workspace(name)
            self._record(
                ActivityAction.CREATE_WORKSPACE,
                {"workspaceId": workspace.id, "workspaceName": workspace.name},
            )
        return workspace

    def create_project(self, name: str, workspace_id: str) -> Project:
        """Create a project and log CREATE_PROJECT."""
        with self._atomic():
            project = self.store.create_project(name, workspace_id)
            self._record(
                ActivityAction.CREATE_PROJECT,
                self._names(project.id, workspace_id),
            )
        return project

    def delete_workspace(self, workspace_id: str) -> Removal:
        """Delete a workspace and everything in it.

        Only the workspace itself is logged; cascaded projects and issues are
        summarized as counts on that one entry.
        """
        with self._atomic():
            removal = self.store.delete_workspace(workspace_id)
            self._record(
                ActivityAction.DELETE_WORKSPACE,
                {
                    "workspaceId": workspace_id,
                    "workspaceName": removal.entity.name,
                    "removedProjects": str(len(removal.projects)),
                    "removedIssues": str(len(removal.issues)),
                },
            )
        return removal

    def delete_project(self, project_id: str) -> Removal:
        """Delete a project and its issues, logging one DELETE_PROJECT entry."""
        with self._atomic():
            project = self.store.get_project(project_id)
            names = self._names(project_id, project.workspace_id if project else None)
            removal = self.store.delete_project(project_id)
            names["removedIssues"] = str(len(removal.issues))
            self._record(ActivityAction.DELETE_PROJECT, names)
        return removal

    # -- Issues ----------------------------------------------------------

    def create_issue(
        self,
        title: str,
        project_id: str,
        workspace_id: str | None = None,
        *,
        description: str | None = None,
        issue_type: IssueType | str = DEFAULT_TYPE,
        status: Status | str = DEFAULT_STATUS,
        priority: Priority | str | None = None,
    ) -> Issue:
        """Create an issue and log CREATE_ISSUE.

        When ``workspace_id`` is omitted it is taken from the project.
        """
        with self._atomic():
            if workspace_id is None:
                project = self.store.get_project(project_id)
                workspace_id = project.workspace_id if project else ""
            issue = self.store.create_issue(
                title,
                project_id,
                workspace_id,
                description=description,
                issue_type=issue_type,
                status=status,
                priority=priority,
            )
            self._record(ActivityAction.CREATE_ISSUE, self._issue_details(issue))
        return issue

    def bulk_create_issues(
        self,
        titles: str | Iterable[str],
        project_id: str,
    ) -> list[Issue]:
        """Create one Task/ToDo/Medium issue per non-blank title.

        Args:
            titles: Titles, or a single string with one title per line.
            project_id: Project receiving every issue.

        Returns:
            The created issues in input order.

        Raises:
            InvalidInputError: If no non-blank title is given.
            InvalidReferenceError: If the project does not exist (nothing is
                created in that case).
        """
        if isinstance(titles, str):
            titles = titles.splitlines()
        cleaned = [t.strip() for t in titles if t and t.strip()]
        if not cleaned:
            msg = "Please enter at least one issue title"
            raise InvalidInputError(msg)

        with self._atomic():
            created = [self.create_issue(title, project_id) for title in cleaned]
        logger.debug("Bulk-created %d issues in %s", len(created), project_id)
        return created

    def update_issue(self, issue_id: str, changes: Mapping[str, Any]) -> Issue:
        """Apply field changes, logging one entry per field that differs.

        Args:
            issue_id: Issue to update.
            changes: Any of title, description, issue_type, status, priority.

        Returns:
            The updated issue.
        """
        with self._atomic():
            issue, diff = self.store.update_issue(issue_id, changes)
            for key, (old, new) in diff.items():
                self._record(
                    UPDATE_ACTIONS[key],
                    {
                        **self._issue_details(issue),
                        "fieldName": FIELD_LABELS[key],
                        "oldValue": _as_text(old),
                        "newValue": _as_text(new),
                    },
                )
        return issue

    def delete_issue(self, issue_id: str) -> Removal:
        """Delete a single issue and log DELETE_ISSUE."""
        with self._atomic():
            removal = self.store.delete_issue(issue_id)
            self._record(
                ActivityAction.DELETE_ISSUE,
                self._issue_details(removal.entity),  # type: ignore[arg-type]
            )
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
        """Attach a file to an issue and log ADD_ATTACHMENT."""
        with self._atomic():
            attachment = self.store.add_attachment(
                issue_id,
                name,
                size,
                mime_type,
                content_handle,
            )
            issue = self.store.get_issue(issue_id)
            self._record(
                ActivityAction.ADD_ATTACHMENT,
                {
                    **self._issue_details(issue),  # type: ignore[arg-type]
                    "attachmentId": attachment.id,
                    "attachmentName": attachment.name,
                },
            )
        return attachment

    def remove_attachment(self, issue_id: str, attachment_id: str) -> Attachment:
        """Remove an attachment and log DELETE_ATTACHMENT."""
        with self._atomic():
            attachment = self.store.remove_attachment(issue_id, attachment_id)
            issue = self.store.get_issue(issue_id)
            self._record(
                ActivityAction.DELETE_ATTACHMENT,
                {
                    **self._issue_details(issue),  # type: ignore[arg-type]
                    "attachmentId": attachment.id,
                    "attachmentName": attachment.name,
                },
            )
        return attachment
