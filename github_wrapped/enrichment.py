"""Best-effort enrichment of a freshly aggregated summary."""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Optional

from .aggregator import year_range
from .exceptions import RemoteDataError, RemoteQueryError
from .github_api import GitHubSession, as_count, graphql
from .models import ContributionSummary, RepoContribution

logger = logging.getLogger(__name__)

CALENDAR_QUERY = """
query($from: DateTime!, $to: DateTime!) {
  viewer {
    contributionsCollection(from: $from, to: $to) {
      contributionCalendar {
        weeks {
          contributionDays {
            date
            contributionCount
          }
        }
      }
    }
  }
}
"""


def _section(parent: Any, key: str, kind: type) -> Any:
    if parent is None:
        return kind()
    if not isinstance(parent, dict):
        raise RemoteDataError(f"Contribution calendar section above {key} is not an object")
    value = parent.get(key)
    if value is None:
        return kind()
    if not isinstance(value, kind):
        raise RemoteDataError(f"Contribution calendar {key} has the wrong shape: {value!r}")
    return value


def count_active_days(data: Any) -> int:
    """Count calendar days with a positive contribution count in a GraphQL ``data`` payload.

    Absent sections count as no activity; sections of the wrong type raise
    ``RemoteDataError``.
    """
    viewer = _section(data, "viewer", dict)
    collection = _section(viewer, "contributionsCollection", dict)
    calendar = _section(collection, "contributionCalendar", dict)
    active = 0
    for week in _section(calendar, "weeks", list):
        for day in _section(week, "contributionDays", list):
            if not isinstance(day, dict):
                raise RemoteDataError(f"Contribution calendar day is not an object: {day!r}")
            if as_count(day.get("contributionCount") or 0, "contributionCount") > 0:
                active += 1
    return active


def fetch_active_days(session: GitHubSession, year: int) -> int:
    start, end = year_range(year)
    try:
        data = graphql(session, CALENDAR_QUERY, {"from": start, "to": end})
        return count_active_days(data)
    except (RemoteQueryError, RemoteDataError) as error:
        logger.warning("Active days query failed for %s, defaulting to 0: %s", year, error)
        return 0


def count_distinct_repos(repos: Iterable[RepoContribution]) -> int:
    return len({repo.name_with_owner for repo in repos})


def _is_missing(value: Optional[int]) -> bool:
    # Zero counts as missing, so a year with genuinely no active days is
    # indistinguishable from "not computed".
    return value is None or value == 0


def safe_number(value: Any, fallback: int = 0) -> int | float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(number):
        return fallback
    return int(number) if number.is_integer() else number


def enrich(summary: ContributionSummary, session: GitHubSession, year: int) -> ContributionSummary:
    """Fill ``activeDays`` and ``repoCount`` when missing and normalise ``contributions``.

    The calendar is fetched again on purpose; a failure here never fails the
    generation and only leaves ``activeDays`` at 0.
    """
    active_days = fetch_active_days(session, year)
    repo_count = count_distinct_repos(summary.top_repos)

    totals = summary.totals
    if _is_missing(totals.active_days):
        totals.active_days = active_days
    if _is_missing(totals.repo_count):
        totals.repo_count = repo_count

    contributions = totals.contributions if totals.contributions is not None else totals.commits
    totals.contributions = safe_number(contributions, safe_number(totals.commits, 0))
    return summary
