"""Version Calculator Base Classes"""

from abc import ABC, abstractmethod

from gflow.flow.versions import Version


class VersionUnavailable(Exception):
    """Raised when no trustworthy version baseline can be computed."""
    pass


def parse_version_output(output: str, source: str) -> Version:
    """Parse a tool's Major.Minor.Patch output into a Version."""
    text = output.strip().splitlines()[-1].strip() if output.strip() else ''
    if not text:
        raise VersionUnavailable(f"{source} returned no version")
    try:
        return Version.parse(text)
    except ValueError:
        raise VersionUnavailable(f"{source} returned an unusable version: '{text[:50]}'")


class VersionCalculator(ABC):
    """Abstract base for version sources."""

    @abstractmethod
    def compute_version(self) -> Version:
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        pass
