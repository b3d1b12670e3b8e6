# filename: get_next_version.py

import argparse
import json
import logging
import os
import sys
from dataclasses import dataclass
from typing import Optional

from github_source import GITHUB_API_URL, GitHubClient, Repository, Source, fetch_labels
from versioning import (
    bump_version,
    current_version,
    filter_and_sort_versions,
    increment_level_from_text,
    parse_version,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def compute_next_version(labels, prefix="", include_prereleases=False, commit_message=""):
    """Return ``(current, next)`` for the given tag or release names."""
    versions = [parse_version(label) for label in labels]
    logger.info("filtering and sorting %d versions", len(versions))
    ranked = filter_and_sort_versions(versions, prefix, include_prereleases)
    current = current_version(ranked)
    level = increment_level_from_text(commit_message)
    logger.info("%s bumping to next version (%s)", current, level.value)
    return current, bump_version(current, level)


def read_commit_message(event_path: Optional[str]) -> str:
    """Message of the head commit in the workflow event payload, or ``""``."""
    if not event_path or not os.path.isfile(event_path):
        return ""
    with open(event_path, "r", encoding="utf-8") as f:
        payload = json.load(f)
    head_commit = payload.get("head_commit") or {}
    return head_commit.get("message") or ""


def write_outputs(outputs, output_path: Optional[str] = None):
    lines = [f"{name}={value}" for name, value in outputs.items()]
    if not output_path:
        for line in lines:
            print(line)
        return
    with open(output_path, "a", encoding="utf-8") as f:
        for line in lines:
            f.write(f"{line}\n")


def _as_bool(value: str) -> bool:
    return (value or "").strip().lower() == "true"


@dataclass
class Settings:
    token: Optional[str]
    prefix: str
    source: Source
    include_prereleases: bool
    repository: Optional[str]
    api_url: str
    event_path: Optional[str]
    commit_message: Optional[str]
    output_path: Optional[str]

    @classmethod
    def from_args(cls, argv=None, environ=None) -> "Settings":
        """Read the action inputs; flags win over ``INPUT_*`` variables."""
        environ = os.environ if environ is None else environ
        parser = argparse.ArgumentParser(
            prog="get-next-version",
            description="Compute the next semantic version from existing tags or releases.",
        )
        parser.add_argument("--token", default=environ.get("INPUT_TOKEN") or environ.get("GITHUB_TOKEN"))
        parser.add_argument("--prefix", default=environ.get("INPUT_PREFIX", ""))
        parser.add_argument("--source", default=environ.get("INPUT_SOURCE") or Source.TAGS.value)
        parser.add_argument(
            "--include-prereleases",
            action="store_true",
            default=_as_bool(environ.get("INPUT_INCLUDEPRERELEASES", "")),
        )
        parser.add_argument("--repository", default=environ.get("GITHUB_REPOSITORY"), help="owner/name")
        parser.add_argument("--api-url", default=environ.get("GITHUB_API_URL") or GITHUB_API_URL)
        parser.add_argument("--event-path", default=environ.get("GITHUB_EVENT_PATH"))
        parser.add_argument(
            "--commit-message",
            default=None,
            help="use this text instead of the head commit of the event payload",
        )
        parser.add_argument("--output", dest="output_path", default=environ.get("GITHUB_OUTPUT"))
        args = parser.parse_args(argv)

        return cls(
            token=args.token,
            prefix=args.prefix,
            source=Source.from_input(args.source),
            include_prereleases=args.include_prereleases,
            repository=args.repository,
            api_url=args.api_url,
            event_path=args.event_path,
            commit_message=args.commit_message,
            output_path=args.output_path,
        )


def main(argv=None, environ=None) -> int:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    try:
        settings = Settings.from_args(argv, environ)
        repository = Repository.from_slug(settings.repository)
        client = GitHubClient(settings.token, api_url=settings.api_url)
        logger.info("client created")
        labels = fetch_labels(client, repository, settings.source)

        if settings.commit_message is not None:
            message = settings.commit_message
        else:
            message = read_commit_message(settings.event_path)

        current, nxt = compute_next_version(labels, settings.prefix, settings.include_prereleases, message)
        write_outputs({"currentVersion": str(current), "nextVersion": str(nxt)}, settings.output_path)
        logger.info("%s bumped to %s", current, nxt)
    except Exception as error:
        logger.exception("Failed to compute the next version")
        print(f"::error::{error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
