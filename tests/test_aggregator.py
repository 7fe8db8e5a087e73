from __future__ import annotations

import unittest

from github_wrapped.aggregator import (
    aggregate,
    assign_badge,
    best_month_and_weekday,
    language_shares,
    merge_language_bytes,
    merge_repo_contributions,
    rank_repos,
    year_range,
)
from github_wrapped.config import WrappedConfig
from github_wrapped.exceptions import RemoteDataError, RemoteQueryError

from .fakes import FakeGitHub, activity_payload, breakdown, calendar_days, make_response


class RepoMergeTests(unittest.TestCase):
    def test_counts_are_summed_across_activity_kinds(self) -> None:
        merged = merge_repo_contributions(
            breakdown([("octo/a", 4), ("octo/b", 1)]),
            breakdown([("octo/a", 2)]),
            breakdown([("octo/c", 3), ("octo/a", 1)]),
        )
        self.assertEqual({name: repo.contributions for name, repo in merged.items()}, {"octo/a": 7, "octo/b": 1, "octo/c": 3})
        self.assertNotIn("octo/z", merged)
        self.assertEqual(merged["octo/a"].url, "https://github.com/octo/a")

    def test_merge_order_does_not_change_totals(self) -> None:
        commits = breakdown([("octo/a", 4), ("octo/b", 1)])
        prs = breakdown([("octo/b", 5)])
        issues = breakdown([("octo/a", 2)])
        forward = merge_repo_contributions(commits, prs, issues)
        backward = merge_repo_contributions(issues, prs, commits)
        self.assertEqual(
            {name: repo.contributions for name, repo in forward.items()},
            {name: repo.contributions for name, repo in backward.items()},
        )

    def test_sorted_descending(self) -> None:
        merged = merge_repo_contributions(breakdown([("octo/a", 5), ("octo/b", 3), ("octo/c", 8)]))
        self.assertEqual([repo.contributions for repo in rank_repos(merged, 8)], [8, 5, 3])

    def test_ties_keep_encounter_order(self) -> None:
        merged = merge_repo_contributions(breakdown([("octo/first", 5), ("octo/second", 5)]))
        self.assertEqual([repo.name_with_owner for repo in rank_repos(merged, 8)], ["octo/first", "octo/second"])

    def test_truncates_to_limit(self) -> None:
        merged = merge_repo_contributions(breakdown([(f"octo/r{i}", i) for i in range(20)]))
        ranked = rank_repos(merged, 8)
        self.assertEqual(len(ranked), 8)
        self.assertEqual(ranked[0].name_with_owner, "octo/r19")

    def test_missing_repository_field_is_a_data_error(self) -> None:
        with self.assertRaises(RemoteDataError):
            merge_repo_contributions([{"contributions": {"totalCount": 1}}])


class LanguageTests(unittest.TestCase):
    def test_bytes_summed_by_language(self) -> None:
        merged = merge_language_bytes([{"Python": 100, "Shell": 5}, {"Python": 50, "Go": 20}])
        self.assertEqual(merged, {"Python": 150, "Shell": 5, "Go": 20})

    def test_percentages_sum_to_hundred(self) -> None:
        shares = language_shares({"Python": 300, "Go": 100, "Rust": 100}, 6)
        self.assertAlmostEqual(sum(share.pct for share in shares), 100.0)
        self.assertAlmostEqual(shares[0].pct, 60.0)
        self.assertEqual([share.name for share in shares], ["Python", "Go", "Rust"])

    def test_percentages_use_total_before_truncation(self) -> None:
        languages = {f"Lang{i}": 10 for i in range(10)}
        shares = language_shares(languages, 6)
        self.assertEqual(len(shares), 6)
        for share in shares:
            self.assertAlmostEqual(share.pct, 10.0)

    def test_zero_bytes_do_not_divide_by_zero(self) -> None:
        shares = language_shares({"Markdown": 0}, 6)
        self.assertEqual(shares[0].pct, 0.0)
        self.assertEqual(language_shares({}, 6), [])


class FunFactTests(unittest.TestCase):
    def test_best_month_and_weekday(self) -> None:
        days = calendar_days([("2024-01-01", 1), ("2024-03-05", 4)])
        self.assertEqual(best_month_and_weekday(days), ("March", "Tue"))

    def test_ties_go_to_first_encountered(self) -> None:
        days = calendar_days([("2024-01-03", 2), ("2024-02-01", 2)])
        self.assertEqual(best_month_and_weekday(days), ("January", "Wed"))

    def test_empty_calendar_defaults(self) -> None:
        self.assertEqual(best_month_and_weekday([]), ("January", "Mon"))

    def test_bad_weekday_is_a_data_error(self) -> None:
        with self.assertRaises(RemoteDataError):
            best_month_and_weekday([{"date": "2024-01-01", "contributionCount": 1, "weekday": 9}])

    def test_badges(self) -> None:
        self.assertEqual(assign_badge(commits=10, prs=3, issues=2), "Commit Captain")
        self.assertEqual(assign_badge(commits=3, prs=10, issues=2), "PR Machine")
        self.assertEqual(assign_badge(commits=1, prs=2, issues=9), "Issue Hunter")
        self.assertEqual(assign_badge(commits=5, prs=5, issues=5), "Balanced Builder")
        self.assertEqual(assign_badge(commits=5, prs=5, issues=1), "Balanced Builder")
        self.assertEqual(assign_badge(commits=0, prs=0, issues=0), "Balanced Builder")

    def test_year_range(self) -> None:
        self.assertEqual(year_range(2024), ("2024-01-01T00:00:00Z", "2024-12-31T23:59:59Z"))


class AggregateTests(unittest.TestCase):
    def _github(self, **overrides: object) -> FakeGitHub:
        activity = activity_payload(
            commits=[("octo/api", 40), ("octo/web", 10)],
            prs=[("octo/web", 35), ("other/lib", 3)],
            issues=[("other/lib", 2)],
            days=[("2024-05-06", 6), ("2024-05-07", 0), ("2024-06-01", 3)],
            totals=(50, 38, 2),
            total_contributions=97,
        )
        languages = {
            "octo/api": {"Python": 9000, "Dockerfile": 100},
            "octo/web": {"TypeScript": 6000, "CSS": 900},
            "other/lib": {"Python": 1000},
        }
        return FakeGitHub(activity=activity, languages=languages, **overrides)

    def test_builds_summary(self) -> None:
        github = self._github()
        summary = aggregate(github.session(), 2024)

        self.assertEqual(summary.year, 2024)
        self.assertEqual(summary.profile.login, "octocat")
        self.assertEqual([(r.name_with_owner, r.contributions) for r in summary.top_repos], [("octo/web", 45), ("octo/api", 40), ("other/lib", 5)])
        self.assertEqual(summary.top_languages[0].name, "Python")
        self.assertEqual(summary.top_languages[0].bytes, 10000)
        self.assertAlmostEqual(sum(share.pct for share in summary.top_languages), 100.0)
        self.assertEqual(summary.totals.commits, 50)
        self.assertEqual(summary.totals.prs, 38)
        self.assertEqual(summary.totals.issues, 2)
        self.assertEqual(summary.totals.contributions, 97)
        self.assertIsNone(summary.totals.active_days)
        self.assertIsNone(summary.totals.repo_count)
        self.assertEqual(summary.fun.best_month, "May")
        self.assertEqual(summary.fun.best_weekday, "Mon")
        self.assertEqual(summary.fun.badge, "Commit Captain")
        self.assertEqual(github.language_calls(), ["octo/web", "octo/api", "other/lib"])

    def test_languages_fetched_only_for_top_repos(self) -> None:
        activity = activity_payload(commits=[(f"octo/r{i}", 20 - i) for i in range(12)])
        languages = {f"octo/r{i}": {"Python": 10} for i in range(12)}
        github = FakeGitHub(activity=activity, languages=languages)
        summary = aggregate(github.session(), 2024, WrappedConfig())
        self.assertEqual(len(summary.top_repos), 8)
        self.assertEqual(len(github.language_calls()), 8)

    def test_query_error_propagates(self) -> None:
        github = self._github(activity_response=make_response({"errors": [{"message": "boom"}]}))
        with self.assertRaises(RemoteQueryError):
            aggregate(github.session(), 2024)

    def test_missing_viewer_is_a_data_error(self) -> None:
        github = FakeGitHub(activity={"viewer": None})
        with self.assertRaises(RemoteDataError):
            aggregate(github.session(), 2024)

    def test_language_failure_aborts_by_default(self) -> None:
        github = self._github()
        del github.languages["octo/api"]
        with self.assertRaises(RemoteQueryError):
            aggregate(github.session(), 2024)

    def test_language_failure_skipped_when_tolerated(self) -> None:
        github = self._github()
        del github.languages["octo/api"]
        with self.assertLogs("github_wrapped.aggregator", level="WARNING"):
            summary = aggregate(github.session(), 2024, WrappedConfig(tolerate_language_errors=True))
        self.assertEqual({share.name for share in summary.top_languages}, {"TypeScript", "CSS", "Python"})

    def test_non_numeric_language_size_is_a_data_error(self) -> None:
        github = self._github()
        github.languages["octo/api"] = {"Python": "lots"}
        with self.assertRaises(RemoteDataError):
            aggregate(github.session(), 2024)

    def test_non_numeric_language_size_skipped_when_tolerated(self) -> None:
        github = self._github()
        github.languages["octo/api"] = {"Python": "lots"}
        with self.assertLogs("github_wrapped.aggregator", level="WARNING"):
            summary = aggregate(github.session(), 2024, WrappedConfig(tolerate_language_errors=True))
        self.assertEqual([share.name for share in summary.top_languages], ["TypeScript", "Python", "CSS"])

    def test_parallel_language_fetch_matches_sequential(self) -> None:
        sequential = aggregate(self._github().session(), 2024)
        session = self._github().session()
        parallel = aggregate(session, 2024, WrappedConfig(language_workers=3))
        # Language lookups run on per-task sessions; only the activity query uses the caller's.
        self.assertEqual(session.http.request.call_count, 1)
        self.assertEqual(len(session.forks), 3)
        for fork in session.forks:
            fork.http.close.assert_called_once()
        self.assertEqual(
            [(share.name, share.bytes) for share in sequential.top_languages],
            [(share.name, share.bytes) for share in parallel.top_languages],
        )

    def test_identical_responses_give_identical_summaries(self) -> None:
        first = aggregate(self._github().session(), 2024).to_dict()
        second = aggregate(self._github().session(), 2024).to_dict()
        first.pop("generatedAt")
        second.pop("generatedAt")
        self.assertEqual(first, second)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
