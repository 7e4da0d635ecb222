"""Version Policy - compute the next release/hotfix version."""

import re
from dataclasses import dataclass
from datetime import date
from enum import Enum


VERSION_PATTERN = re.compile(r'^v?(\d+)\.(\d+)\.(\d+)$')


@dataclass(frozen=True, order=True)
class Version:
    """Major.Minor.Patch triple, ordered by its fields."""
    major: int
    minor: int
    patch: int

    def __post_init__(self):
        if min(self.major, self.minor, self.patch) < 0:
            raise ValueError(f"Version fields must be non-negative: {self.major}.{self.minor}.{self.patch}")

    @classmethod
    def parse(cls, text: str) -> 'Version':
        """Parse '1.4.2' (an optional leading 'v' is accepted)."""
        match = VERSION_PATTERN.match(text.strip())
        if not match:
            raise ValueError(f"Not a Major.Minor.Patch version: '{text}'")
        return cls(*(int(part) for part in match.groups()))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


class BumpMode(Enum):
    PATCH_INCREMENT = 'patch'
    PATCH_PRESERVE = 'preserve'
    MAJOR_INCREMENT = 'major'
    DATE_BASED = 'date'


def bump_mode_for(major_version: bool = False, use_date: bool = False) -> BumpMode:
    """Pick the release bump mode. Date wins over major."""
    if use_date:
        return BumpMode.DATE_BASED
    if major_version:
        return BumpMode.MAJOR_INCREMENT
    return BumpMode.PATCH_PRESERVE


def next_version(current: Version, mode: BumpMode, today: date) -> Version:
    """Return the version a new release/hotfix branch should carry.

    Args:
        current: Version reported by the version calculator
        mode: How to derive the new version
        today: Only read by DATE_BASED

    DATE_BASED ignores `current`: major is YYYYMM, minor is the day of month.
    """
    if mode is BumpMode.PATCH_INCREMENT:
        return Version(current.major, current.minor, current.patch + 1)
    if mode is BumpMode.MAJOR_INCREMENT:
        return Version(current.major + 1, 0, 0)
    if mode is BumpMode.DATE_BASED:
        return Version(today.year * 100 + today.month, today.day, 0)
    return current
