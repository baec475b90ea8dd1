"""Read-only search, filter and sort over a project's issues."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from trackboard.errors import InvalidInputError
from trackboard.models import (
    Issue,
    IssueType,
    Priority,
    Status,
    parse_issue_type,
    parse_priority,
    parse_status,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable


class SortColumn(str, Enum):
    """Columns an issue list can be sorted by."""

    TITLE = "title"
    TYPE = "type"
    STATUS = "status"
    PRIORITY = "priority"
    CREATED_AT = "createdAt"


class SortDirection(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class IssueQuery:
    """Parameters for one issue list view.

    Empty filter sets mean "no restriction", not "match nothing".
    """

    search_term: str = ""
    types: frozenset[IssueType] = field(default_factory=frozenset[IssueType])
    statuses: frozenset[Status] = field(default_factory=frozenset[Status])
    priorities: frozenset[Priority] = field(default_factory=frozenset[Priority])
    sort_by: SortColumn = SortColumn.CREATED_AT
    direction: SortDirection = SortDirection.DESC

    @classmethod
    def build(
        cls,
        *,
        search_term: str | None = None,
        types: Iterable[IssueType | str] = (),
        statuses: Iterable[Status | str] = (),
        priorities: Iterable[Priority | str] = (),
        sort_by: SortColumn | str = SortColumn.CREATED_AT,
        direction: SortDirection | str = SortDirection.DESC,
    ) -> IssueQuery:
        """Build a query from loosely typed values (e.g. CLI strings).

        Raises:
            InvalidInputError: If a filter or sort value is not recognised.
        """
        return cls(
            search_term=search_term or "",
            types=frozenset(parse_issue_type(t) for t in types),
            statuses=frozenset(parse_status(s) for s in statuses),
            priorities=frozenset(parse_priority(p) for p in priorities),
            sort_by=_parse_choice(SortColumn, sort_by, "sort column"),
            direction=_parse_choice(SortDirection, direction, "sort direction"),
        )


def _parse_choice(enum_cls: Any, value: Any, label: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        msg = f"Invalid {label} {value!r} (expected one of: {allowed})"
        raise InvalidInputError(msg) from None


# Sort key per column; strings compare case-insensitively
_SORT_KEYS: dict[SortColumn, Callable[[Issue], Any]] = {
    SortColumn.TITLE: lambda i: i.title.casefold(),
    SortColumn.TYPE: lambda i: i.issue_type.value.casefold(),
    SortColumn.STATUS: lambda i: i.status.value.casefold(),
    SortColumn.PRIORITY: lambda i: i.priority.rank,
    SortColumn.CREATED_AT: lambda i: i.created_at.timestamp(),
}


def matches_search(issue: Issue, term: str) -> bool:
    """Case-insensitive substring match on title, description or id.

    A blank term matches everything. Any other term is matched as given,
    surrounding whitespace included.
    """
    if not term.strip():
        return True
    needle = term.casefold()
    if needle in issue.title.casefold():
        return True
    if issue.description and needle in issue.description.casefold():
        return True
    return needle in issue.id.casefold()


def query_issues(
    issues: Iterable[Issue],
    project_id: str,
    query: IssueQuery | None = None,
) -> list[Issue]:
    """Derive an ordered issue view for one project.

    Applies, in order: project scope, attribute filters, text search, and a
    stable sort. The input is never modified and a fresh list is returned.
    Ties keep their input order in both sort directions.

    Args:
        issues: Full issue collection, in canonical (creation) order.
        project_id: Only issues of this project are kept.
        query: Search/filter/sort parameters (default: newest first).

    Returns:
        The matching issues in display order; empty when nothing matches.
    """
    query = query or IssueQuery()

    result = [i for i in issues if i.project_id == project_id]

    if query.types:
        result = [i for i in result if i.issue_type in query.types]
    if query.statuses:
        result = [i for i in result if i.status in query.statuses]
    if query.priorities:
        result = [i for i in result if i.priority in query.priorities]

    if query.search_term.strip():
        result = [i for i in result if matches_search(i, query.search_term)]

    # sorted() stays stable when reverse=True
    return sorted(
        result,
        key=_SORT_KEYS[query.sort_by],
        reverse=query.direction == SortDirection.DESC,
    )
