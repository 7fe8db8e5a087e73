from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


@dataclass(slots=True, frozen=True)
class Profile:
    login: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None


@dataclass(slots=True)
class Totals:
    commits: int = 0
    prs: int = 0
    issues: int = 0
    contributions: int = 0
    # None means "not computed yet"; enrichment fills these.
    active_days: Optional[int] = None
    repo_count: Optional[int] = None


@dataclass(slots=True)
class RepoContribution:
    name_with_owner: str
    url: str
    contributions: int = 0


@dataclass(slots=True)
class LanguageShare:
    name: str
    bytes: int
    pct: float


@dataclass(slots=True)
class FunFacts:
    best_month: str
    best_weekday: str
    badge: str


@dataclass(slots=True)
class ContributionSummary:
    year: int
    profile: Profile
    totals: Totals
    top_repos: List[RepoContribution] = field(default_factory=list)
    top_languages: List[LanguageShare] = field(default_factory=list)
    fun: FunFacts = field(default_factory=lambda: FunFacts("January", "Mon", "Balanced Builder"))
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Serialise using the camelCase field names the stored JSON uses."""
        totals: Dict[str, Any] = {
            "commits": self.totals.commits,
            "prs": self.totals.prs,
            "issues": self.totals.issues,
            "contributions": self.totals.contributions,
        }
        if self.totals.active_days is not None:
            totals["activeDays"] = self.totals.active_days
        if self.totals.repo_count is not None:
            totals["repoCount"] = self.totals.repo_count
        return {
            "year": self.year,
            "profile": {
                "login": self.profile.login,
                "name": self.profile.name,
                "avatarUrl": self.profile.avatar_url,
            },
            "totals": totals,
            "topRepos": [
                {"nameWithOwner": repo.name_with_owner, "url": repo.url, "contributions": repo.contributions}
                for repo in self.top_repos
            ],
            "topLanguages": [
                {"name": language.name, "bytes": language.bytes, "pct": language.pct}
                for language in self.top_languages
            ],
            "fun": {
                "bestMonth": self.fun.best_month,
                "bestWeekday": self.fun.best_weekday,
                "badge": self.fun.badge,
            },
            "generatedAt": self.generated_at.isoformat().replace("+00:00", "Z"),
        }
