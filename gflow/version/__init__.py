"""Version Calculator Package"""

from gflow.version.base import VersionCalculator, VersionUnavailable, parse_version_output
from gflow.version.gitversion import GitVersionCalculator
from gflow.version.tags import TagVersionCalculator

VALID_SOURCES = {"auto", "gitversion", "tags"}


def get_calculator(source: str = "auto", backend=None) -> VersionCalculator:
    """Get a version calculator. Source can be 'gitversion', 'tags', or 'auto'."""
    if source == "gitversion":
        return GitVersionCalculator()

    if source == "tags":
        return TagVersionCalculator(backend)

    if source == "auto":
        try:
            return GitVersionCalculator()
        except VersionUnavailable:
            return TagVersionCalculator(backend)

    raise VersionUnavailable(f"Unknown version source: {source}. Use 'gitversion', 'tags', or 'auto'.")


__all__ = [
    "VersionCalculator",
    "VersionUnavailable",
    "GitVersionCalculator",
    "TagVersionCalculator",
    "get_calculator",
    "parse_version_output",
    "VALID_SOURCES",
]
