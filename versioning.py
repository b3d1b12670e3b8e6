"""Parse, filter, rank and bump semantic versions taken from tag or release names."""

import enum
import logging
import re
from dataclasses import dataclass

import semver

logger = logging.getLogger(__name__)

# major.minor.patch plus whatever prerelease/build suffix is glued to it
VERSION_PATTERN = re.compile(
    r"(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)"
    r"(?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
)

# Lenient coercion: any number of at most 16 digits, optionally dotted twice.
COERCE_PATTERN = re.compile(r"(?:^|\D)\d{1,16}(?:\.\d{1,16}){0,2}(?:$|\D)")


class IncrementLevel(str, enum.Enum):
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"


MARKERS = (
    ("(MAJOR)", IncrementLevel.MAJOR),
    ("(MINOR)", IncrementLevel.MINOR),
    ("(PATCH)", IncrementLevel.PATCH),
)


@dataclass(frozen=True)
class Version:
    """A tag or release name together with the semantic version found in it."""

    raw: str
    semantic: semver.Version

    def __str__(self):
        return str(self.semantic)


ZERO = Version("0.0.0", semver.Version(0, 0, 0))


def parse_version(raw: str) -> Version:
    """Build a Version from an arbitrary label.

    The first ``X.Y.Z`` found anywhere in the label is used, so ``v1.2.3`` and
    ``release-1.2.3-rc.1`` both work. Labels without one become ``0.0.0``.
    """
    match = VERSION_PATTERN.search(raw)
    if match:
        semantic = semver.Version(
            int(match["major"]),
            int(match["minor"]),
            int(match["patch"]),
            match["prerelease"],
            match["build"],
        )
    else:
        semantic = ZERO.semantic
    logger.info("Parsed version %s from raw: %s", semantic, raw)
    return Version(raw, semantic)


def is_coercible(raw: str) -> bool:
    return COERCE_PATTERN.search(raw) is not None


def is_prerelease(version: Version) -> bool:
    return bool(version.semantic.prerelease or version.semantic.build)


def filter_versions(versions, prefix="", include_prereleases=False):
    """Keep the versions whose label has a number, starts with ``prefix`` and,
    unless ``include_prereleases`` is set, carries no prerelease or build part.

    The prefix is matched literally against the raw label.
    """
    logger.info("Filtering versions with prefix: %r", prefix)
    kept = []
    for version in versions:
        check = is_coercible(version.raw)
        if not include_prereleases and is_prerelease(version):
            check = False
        check = check and version.raw.startswith(prefix)
        if check:
            kept.append(version)
        else:
            logger.info("Filtering out %s", version.raw)
    logger.info("Filtered versions: %s", [v.raw for v in kept])
    return kept


def sort_versions(versions):
    """Return the versions highest first. Build metadata does not affect order."""
    ranked = sorted(versions, key=lambda v: v.semantic, reverse=True)
    logger.info("Sorted versions: %s", [v.raw for v in ranked])
    return ranked


def filter_and_sort_versions(versions, prefix="", include_prereleases=False):
    return sort_versions(filter_versions(versions, prefix, include_prereleases))


def current_version(ranked) -> Version:
    return ranked[0] if ranked else ZERO


def increment_level_from_text(text) -> IncrementLevel:
    """Pick the bump level from ``(MAJOR)``, ``(MINOR)`` or ``(PATCH)`` markers.

    Markers are checked in that order and matched case-sensitively anywhere in
    the text. Without a marker the level is patch.
    """
    for marker, level in MARKERS:
        if marker in (text or ""):
            return level
    return IncrementLevel.PATCH


def bump_version(version: Version, level) -> Version:
    level = IncrementLevel(level)
    if level is IncrementLevel.MAJOR:
        bumped = version.semantic.bump_major()
    elif level is IncrementLevel.MINOR:
        bumped = version.semantic.bump_minor()
    else:
        bumped = version.semantic.bump_patch()
    return Version(str(bumped), bumped)
