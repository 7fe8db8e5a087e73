from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

from .config import AppConfig


def write_report(payload: Dict[str, Any], config: AppConfig) -> Path:
    output_dir = config.output.directory
    output_dir.mkdir(parents=True, exist_ok=True)
    login = payload.get("profile", {}).get("login") or "unknown"
    report_path = output_dir / f"{login}-{payload.get('year')}-wrapped.md"
    report_path.write_text(_render_markdown(payload), encoding="utf-8")
    return report_path


def render_slides(payload: Dict[str, Any]) -> List[str]:
    if "error" in payload:
        return [f"Something went wrong: {payload.get('message') or payload['error']}"]

    profile = payload.get("profile", {})
    totals = payload.get("totals", {})
    fun = payload.get("fun", {})
    display_name = profile.get("name") or profile.get("login", "")
    year = payload.get("year")

    slides = [f"{display_name}'s {year} on GitHub"]
    slides.append(_render_totals(totals))
    slides.append(_render_repos(payload.get("topRepos", [])))
    slides.append(_render_languages(payload.get("topLanguages", [])))
    slides.append(
        f"Your best month was {fun.get('bestMonth', 'January')} "
        f"and you shipped the most on {fun.get('bestWeekday', 'Mon')}."
    )
    slides.append(f"Badge unlocked: {fun.get('badge', 'Balanced Builder')}")
    slides.append(f"That's a wrap on {year}, @{profile.get('login', '')}.")
    return slides


def _render_markdown(payload: Dict[str, Any]) -> str:
    lines: List[str] = []
    lines.append(f"# GitHub Wrapped {payload.get('year')}")
    lines.append("")
    if payload.get("generatedAt"):
        lines.append(f"Generated on: {payload['generatedAt']}")
        lines.append("")
    for index, slide in enumerate(render_slides(payload), start=1):
        lines.append(f"## Slide {index}")
        lines.append(slide)
        lines.append("")
    return "\n".join(lines)


def _render_totals(totals: Dict[str, Any]) -> str:
    rows: List[tuple[str, str]] = [
        ("Contributions", str(totals.get("contributions", 0))),
        ("Commits", str(totals.get("commits", 0))),
        ("Pull requests", str(totals.get("prs", 0))),
        ("Issues", str(totals.get("issues", 0))),
    ]
    if totals.get("activeDays") is not None:
        rows.append(("Active days", str(totals["activeDays"])))
    if totals.get("repoCount") is not None:
        rows.append(("Repositories", str(totals["repoCount"])))
    table_lines = ["| Metric | Value |", "| --- | --- |"]
    for label, value in rows:
        table_lines.append(f"| {label} | {value} |")
    return "\n".join(table_lines)


def _render_repos(repos: List[Dict[str, Any]]) -> str:
    if not repos:
        return "No repository activity this year."
    lines = ["Top repositories:"]
    for position, repo in enumerate(repos, start=1):
        name = repo.get("nameWithOwner") or repo.get("fullName") or repo.get("name") or "unknown"
        lines.append(f"{position}. [{name}]({repo.get('url', '')}) - {repo.get('contributions', 0)} contributions")
    return "\n".join(lines)


def _render_languages(languages: List[Dict[str, Any]]) -> str:
    if not languages:
        return "No language data for your top repositories."
    parts = [f"{language['name']} {round(language.get('pct', 0))}%" for language in languages]
    return "Top languages: " + ", ".join(parts)
