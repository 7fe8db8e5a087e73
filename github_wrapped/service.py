from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from .aggregator import aggregate
from .config import AppConfig
from .enrichment import enrich
from .exceptions import ForbiddenError, NotFoundError, UnauthorizedError, WrappedError
from .github_api import GitHubSession
from .storage import WrappedStore

SessionFactory = Callable[[str, AppConfig], GitHubSession]


def _default_session(token: str, config: AppConfig) -> GitHubSession:
    return GitHubSession.create(token, config.github)


def generate_wrapped(
    store: WrappedStore,
    user_id: str,
    config: AppConfig,
    year: Optional[int] = None,
    is_public: Optional[bool] = None,
    session_factory: SessionFactory = _default_session,
) -> str:
    """Aggregate, enrich and store the summary for ``user_id``; return the wrapped id.

    Aggregation errors propagate and nothing is written.
    """
    user = store.get_user(user_id)
    if user is None:
        raise NotFoundError(f"Unknown user {user_id}", error="user_not_found")

    year = year if year is not None else datetime.now(timezone.utc).year
    is_public = config.wrapped.default_public if is_public is None else is_public

    session = session_factory(user["access_token"], config)
    try:
        summary = aggregate(session, year, config.wrapped)
        summary = enrich(summary, session, year)
    finally:
        session.close()

    return store.upsert_wrapped(user["id"], year, summary.to_dict(), is_public)


def load_wrapped(store: WrappedStore, wrapped_id: str, viewer_id: Optional[str] = None) -> Dict[str, Any]:
    record = store.get_wrapped(wrapped_id)
    if record is None:
        raise NotFoundError(f"No wrapped with id {wrapped_id}")

    if not record["is_public"]:
        if viewer_id is None:
            raise UnauthorizedError("Sign in to view this wrapped")
        if viewer_id != record["user_id"]:
            raise ForbiddenError("This wrapped is private")

    return {
        "id": record["id"],
        "year": record["year"],
        "isPublic": record["is_public"],
        "createdAt": record["created_at"],
        "updatedAt": record["updated_at"],
        **record["data"],
    }


def error_payload(error: Exception) -> Dict[str, str]:
    code = error.error if isinstance(error, WrappedError) else "wrapped_failed"
    return {"error": code, "message": str(error)}
