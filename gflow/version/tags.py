"""Tag-based Version Calculator"""

from gflow.flow.versions import Version
from gflow.version.base import VersionCalculator, VersionUnavailable, parse_version_output


class TagVersionCalculator(VersionCalculator):
    """Derives the version from the most recent reachable tag.

    A tagged HEAD is that version. Commits past the tag count as the next
    patch, the same way gitversion reports untagged mainline commits.
    """

    def __init__(self, backend):
        self.backend = backend

    @property
    def name(self) -> str:
        return "git tags"

    def compute_version(self):
        tag = self.backend.latest_tag()
        if tag is None:
            raise VersionUnavailable(
                "No tags found. Tag the first version by hand:\n"
                "  gflow tag 0.1.0"
            )
        version = parse_version_output(tag, f"Tag '{tag}'")
        if tag in self.backend.tags_at():
            return version
        return Version(version.major, version.minor, version.patch + 1)
