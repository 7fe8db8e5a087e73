"""Yearly activity aggregation.

One GraphQL query returns the viewer identity, the contribution calendar and
three per-repository breakdowns (commits, pull requests, issues). The
breakdowns are merged into per-repository totals, the top repositories get
their language byte counts fetched over REST, and the calendar is folded into
per-month and per-weekday totals for the "fun" facts.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .config import WrappedConfig
from .exceptions import RemoteDataError, RemoteQueryError
from .github_api import GitHubSession, as_count, get_repo_languages, graphql, split_name_with_owner
from .models import ContributionSummary, FunFacts, LanguageShare, Profile, RepoContribution, Totals

logger = logging.getLogger(__name__)

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

DEFAULT_MONTH = "January"
DEFAULT_WEEKDAY_INDEX = 1

BREAKDOWN_FIELDS = (
    "commitContributionsByRepository",
    "pullRequestContributionsByRepository",
    "issueContributionsByRepository",
)

ACTIVITY_QUERY = """
query Wrapped($from: DateTime!, $to: DateTime!, $maxRepositories: Int!) {
  viewer {
    login
    name
    avatarUrl
    contributionsCollection(from: $from, to: $to) {
      contributionCalendar {
        totalContributions
        weeks {
          contributionDays {
            date
            contributionCount
            weekday
          }
        }
      }
      totalCommitContributions
      totalPullRequestContributions
      totalIssueContributions
      commitContributionsByRepository(maxRepositories: $maxRepositories) {
        repository { nameWithOwner url }
        contributions { totalCount }
      }
      pullRequestContributionsByRepository(maxRepositories: $maxRepositories) {
        repository { nameWithOwner url }
        contributions { totalCount }
      }
      issueContributionsByRepository(maxRepositories: $maxRepositories) {
        repository { nameWithOwner url }
        contributions { totalCount }
      }
    }
  }
}
"""


def year_range(year: int) -> Tuple[str, str]:
    return f"{year:04d}-01-01T00:00:00Z", f"{year:04d}-12-31T23:59:59Z"


def _require(mapping: Any, key: str, where: str) -> Any:
    if not isinstance(mapping, dict) or mapping.get(key) is None:
        raise RemoteDataError(f"GitHub response is missing {where}.{key}")
    return mapping[key]


def merge_repo_contributions(*breakdowns: Iterable[Dict[str, Any]]) -> Dict[str, RepoContribution]:
    """Fold per-repository breakdowns into one mapping keyed by ``owner/repo``.

    Counts for the same repository are summed. Keys keep first-seen order so a
    stable sort afterwards breaks ties by encounter order.
    """
    merged: Dict[str, RepoContribution] = {}
    for breakdown in breakdowns:
        for item in breakdown:
            repository = _require(item, "repository", "breakdown")
            key = str(_require(repository, "nameWithOwner", "repository"))
            count = as_count(_require(_require(item, "contributions", "breakdown"), "totalCount", "contributions"), "totalCount")
            existing = merged.get(key)
            if existing:
                existing.contributions += count
            else:
                merged[key] = RepoContribution(
                    name_with_owner=key,
                    url=str(repository.get("url") or ""),
                    contributions=count,
                )
    return merged


def rank_repos(merged: Dict[str, RepoContribution], limit: int) -> List[RepoContribution]:
    ranked = sorted(merged.values(), key=lambda repo: repo.contributions, reverse=True)
    return ranked[:limit]


def merge_language_bytes(breakdowns: Iterable[Dict[str, int]]) -> Dict[str, int]:
    totals: Dict[str, int] = {}
    for breakdown in breakdowns:
        for language, size in breakdown.items():
            totals[language] = totals.get(language, 0) + int(size)
    return totals


def language_shares(language_bytes: Dict[str, int], limit: int) -> List[LanguageShare]:
    # Percentages are taken over every language, before truncation.
    total = sum(language_bytes.values()) or 1
    shares = [
        LanguageShare(name=name, bytes=size, pct=size / total * 100)
        for name, size in language_bytes.items()
    ]
    shares.sort(key=lambda share: share.bytes, reverse=True)
    return shares[:limit]


def iter_calendar_days(calendar: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    weeks = _require(calendar, "weeks", "contributionCalendar")
    for week in weeks:
        for day in (week or {}).get("contributionDays") or []:
            yield day


def _month_of(day: Dict[str, Any]) -> str:
    raw = str(_require(day, "date", "contributionDays"))
    try:
        return MONTH_NAMES[date.fromisoformat(raw[:10]).month - 1]
    except ValueError as error:
        raise RemoteDataError(f"Invalid calendar date {raw!r}") from error


def best_month_and_weekday(days: Iterable[Dict[str, Any]]) -> Tuple[str, str]:
    """Return the month name and weekday abbreviation with the most contributions.

    Ties go to whichever key was encountered first while walking the calendar.
    """
    month_totals: Dict[str, int] = {}
    weekday_totals: Dict[int, int] = {}
    for day in days:
        count = as_count(day.get("contributionCount", 0), "contributionCount")
        month = _month_of(day)
        weekday = as_count(_require(day, "weekday", "contributionDays"), "weekday")
        if not 0 <= weekday < len(WEEKDAY_NAMES):
            raise RemoteDataError(f"Weekday index out of range: {weekday}")
        month_totals[month] = month_totals.get(month, 0) + count
        weekday_totals[weekday] = weekday_totals.get(weekday, 0) + count

    best_month = max(month_totals, key=month_totals.__getitem__) if month_totals else DEFAULT_MONTH
    best_weekday = max(weekday_totals, key=weekday_totals.__getitem__) if weekday_totals else DEFAULT_WEEKDAY_INDEX
    return best_month, WEEKDAY_NAMES[best_weekday]


def assign_badge(commits: int, prs: int, issues: int) -> str:
    if prs > commits and prs > issues:
        return "PR Machine"
    if commits > prs and commits > issues:
        return "Commit Captain"
    if issues > prs and issues > commits:
        return "Issue Hunter"
    return "Balanced Builder"


def _fetch_language_breakdowns(
    session: GitHubSession,
    repos: List[RepoContribution],
    config: WrappedConfig,
) -> List[Dict[str, int]]:
    def fetch(repo: RepoContribution, client: GitHubSession = session) -> Dict[str, int]:
        owner, name = split_name_with_owner(repo.name_with_owner)
        try:
            return get_repo_languages(client, owner, name)
        except (RemoteQueryError, RemoteDataError) as error:
            if not config.tolerate_language_errors:
                raise
            logger.warning("Skipping languages for %s: %s", repo.name_with_owner, error)
            return {}

    def fetch_isolated(repo: RepoContribution) -> Dict[str, int]:
        # requests.Session is not thread-safe, so every worker task gets its own.
        with session.fork() as client:
            return fetch(repo, client)

    if config.language_workers > 1 and len(repos) > 1:
        with ThreadPoolExecutor(max_workers=config.language_workers) as executor:
            # map() yields in submission order, so the merge order matches the ranking.
            return list(executor.map(fetch_isolated, repos))
    return [fetch(repo) for repo in repos]


def aggregate(session: GitHubSession, year: int, config: Optional[WrappedConfig] = None) -> ContributionSummary:
    config = config or WrappedConfig()
    start, end = year_range(year)
    data = graphql(
        session,
        ACTIVITY_QUERY,
        {"from": start, "to": end, "maxRepositories": config.max_repositories},
    )

    viewer = _require(data, "viewer", "data")
    collection = _require(viewer, "contributionsCollection", "viewer")
    calendar = _require(collection, "contributionCalendar", "contributionsCollection")

    merged = merge_repo_contributions(
        *(_require(collection, name, "contributionsCollection") for name in BREAKDOWN_FIELDS)
    )
    top_repos = rank_repos(merged, config.top_repos)

    language_bytes = merge_language_bytes(_fetch_language_breakdowns(session, top_repos, config))
    top_languages = language_shares(language_bytes, config.top_languages)

    best_month, best_weekday = best_month_and_weekday(iter_calendar_days(calendar))

    commits = as_count(_require(collection, "totalCommitContributions", "contributionsCollection"), "totalCommitContributions")
    prs = as_count(_require(collection, "totalPullRequestContributions", "contributionsCollection"), "totalPullRequestContributions")
    issues = as_count(_require(collection, "totalIssueContributions", "contributionsCollection"), "totalIssueContributions")
    contributions = as_count(_require(calendar, "totalContributions", "contributionCalendar"), "totalContributions")

    logger.debug(
        "Aggregated %s for %s: %d repos merged, %d languages",
        year,
        viewer.get("login"),
        len(merged),
        len(language_bytes),
    )

    return ContributionSummary(
        year=year,
        profile=Profile(
            login=str(_require(viewer, "login", "viewer")),
            name=viewer.get("name"),
            avatar_url=viewer.get("avatarUrl"),
        ),
        totals=Totals(commits=commits, prs=prs, issues=issues, contributions=contributions),
        top_repos=top_repos,
        top_languages=top_languages,
        fun=FunFacts(best_month=best_month, best_weekday=best_weekday, badge=assign_badge(commits, prs, issues)),
    )
