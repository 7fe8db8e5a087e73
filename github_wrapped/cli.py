from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from .config import AppConfig, load_config
from .exceptions import ConfigurationError, WrappedError
from .github_api import GitHubSession, get_viewer
from .report import write_report
from .service import error_payload, generate_wrapped, load_wrapped
from .storage import WrappedStore

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="github-wrapped",
        description="Build a shareable year-in-review of your GitHub activity.",
    )
    parser.add_argument("--config", type=Path, help="Path to settings YAML file", default=None)
    parser.add_argument("--db", type=Path, help="SQLite database path", default=None)
    subparsers = parser.add_subparsers(dest="command", required=True)

    login = subparsers.add_parser("login", help="Register the GitHub account behind an access token")
    login.add_argument("--token", help="GitHub access token (defaults to the configured environment variable)")

    generate = subparsers.add_parser("generate", help="Generate and store a wrapped summary")
    generate.add_argument("user_id", help="User id printed by `login`")
    generate.add_argument("--year", type=int, default=None, help="Calendar year (defaults to the current year)")
    generate.add_argument("--private", dest="is_public", action="store_false", help="Only the owner may view the summary")
    generate.add_argument("--public", dest="is_public", action="store_true", help="Anyone with the id may view the summary")
    generate.set_defaults(is_public=None)

    show = subparsers.add_parser("show", help="Print a stored wrapped summary")
    show.add_argument("wrapped_id")
    show.add_argument("--viewer", dest="viewer_id", default=None, help="User id of the person viewing")
    show.add_argument("--render", action="store_true", help="Write the slideshow report instead of JSON")
    return parser


def _login(store: WrappedStore, config: AppConfig, token: str | None) -> str:
    token = token or os.getenv(config.github.token_env)
    if not token:
        raise ConfigurationError(f"No access token given and {config.github.token_env} is not set")
    with GitHubSession.create(token, config.github) as session:
        viewer = get_viewer(session)
    return store.upsert_user(
        github_id=viewer["id"],
        login=viewer["login"],
        access_token=token,
        name=viewer["name"],
        avatar_url=viewer["avatar_url"],
    )


def app(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    if args.db:
        config.storage.path = args.db
    logging.basicConfig(level=config.logging.level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    store = WrappedStore.open(config.storage.path)
    try:
        if args.command == "login":
            print(_login(store, config, args.token))
        elif args.command == "generate":
            print(generate_wrapped(store, args.user_id, config, year=args.year, is_public=args.is_public))
        elif args.command == "show":
            payload = load_wrapped(store, args.wrapped_id, viewer_id=args.viewer_id)
            if args.render:
                print(f"Report generated: {write_report(payload, config)}")
            else:
                print(json.dumps(payload, indent=2))
    except WrappedError as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(json.dumps(error_payload(exc)), file=sys.stderr)
        raise SystemExit(1) from exc
    except Exception as exc:
        logger.exception("%s failed", args.command)
        print(json.dumps(error_payload(exc)), file=sys.stderr)
        raise SystemExit(1) from exc
    finally:
        store.close()


if __name__ == "__main__":  # pragma: no cover
    app(sys.argv[1:])
