"""Branch Names - parse, render and classify gitflow branches."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from gflow import DEFAULT_TRUNK, DEFAULT_INTEGRATION
from gflow.flow.errors import UnrecognizedBranch, AmbiguousTarget
from gflow.flow.versions import Version


class Role(Enum):
    TRUNK = 'trunk'
    INTEGRATION = 'integration'
    FEATURE = 'feature'
    RELEASE = 'release'
    HOTFIX = 'hotfix'


# Roles whose qualifier is a version string
VERSIONED_ROLES = (Role.RELEASE, Role.HOTFIX)


@dataclass(frozen=True)
class BranchRef:
    """A typed branch: role plus qualifier (None for trunk/integration)."""
    role: Role
    qualifier: Optional[str] = None

    @property
    def version(self) -> Version:
        """Version carried by a release/hotfix qualifier."""
        if self.role not in VERSIONED_ROLES or self.qualifier is None:
            raise ValueError(f"{self.role.value} branches carry no version")
        return Version.parse(self.qualifier)


@dataclass
class BranchNaming:
    """Branch layout used to map names to roles."""
    trunk: str = DEFAULT_TRUNK
    integration: str = DEFAULT_INTEGRATION
    feature_prefix: str = 'feature'
    release_prefix: str = 'release'
    hotfix_prefix: str = 'hotfix'
    strict_versions: bool = True


class BranchNamer:
    """Single conversion boundary between raw branch names and BranchRef."""

    def __init__(self, naming: BranchNaming | None = None):
        self.naming = naming or BranchNaming()
        self._prefixes = {
            Role.FEATURE: self.naming.feature_prefix,
            Role.RELEASE: self.naming.release_prefix,
            Role.HOTFIX: self.naming.hotfix_prefix,
        }
        self._roles_by_prefix = {prefix: role for role, prefix in self._prefixes.items()}

    @property
    def trunk(self) -> BranchRef:
        return BranchRef(Role.TRUNK)

    @property
    def integration(self) -> BranchRef:
        return BranchRef(Role.INTEGRATION)

    def prefix(self, role: Role) -> str:
        if role not in self._prefixes:
            raise ValueError(f"{role.value} branches have no prefix")
        return self._prefixes[role]

    def parse(self, raw: str) -> BranchRef:
        """Classify a branch name. Raises UnrecognizedBranch."""
        name = raw.strip()
        if name == self.naming.trunk:
            return self.trunk
        if name == self.naming.integration:
            return self.integration

        head, sep, qualifier = name.partition('/')
        role = self._roles_by_prefix.get(head)
        if role is None or not sep:
            raise UnrecognizedBranch(f"Unrecognized branch '{raw}'. Expected {self._expected()}")
        if not qualifier:
            raise UnrecognizedBranch(f"Branch '{raw}' is missing a name after '{head}/'")
        if role in VERSIONED_ROLES:
            self.validate_version(qualifier, context=raw)
        return BranchRef(role, qualifier)

    def render(self, ref: BranchRef) -> str:
        if ref.role is Role.TRUNK:
            return self.naming.trunk
        if ref.role is Role.INTEGRATION:
            return self.naming.integration
        if not ref.qualifier:
            raise ValueError(f"{ref.role.value} branch needs a qualifier")
        return f"{self._prefixes[ref.role]}/{ref.qualifier}"

    def strip_role_prefix(self, raw: str, role: Role) -> str:
        """Drop a redundant '<prefix>/' so 'feature/x' and 'x' mean the same."""
        name = raw.strip()
        lead = f"{self.prefix(role)}/"
        while name.startswith(lead):
            name = name[len(lead):]
        return name

    def validate_version(self, qualifier: str, context: str | None = None) -> str:
        """Check a release/hotfix qualifier against the version policy."""
        if not self.naming.strict_versions:
            return qualifier
        try:
            Version.parse(qualifier)
        except ValueError:
            raise UnrecognizedBranch(
                f"'{context or qualifier}': version must be Major.Minor.Patch (e.g. 1.4.3)"
            )
        return qualifier

    def _expected(self) -> str:
        prefixes = ', '.join(f"{p}/<name>" for p in self._prefixes.values())
        return f"{self.naming.trunk}, {self.naming.integration}, or one of {prefixes}"


def resolve_ambiguous_target(explicit: Optional[BranchRef], current: Optional[BranchRef],
                             expected_role: Role) -> BranchRef:
    """Pick the branch a complete-operation acts on.

    An explicit branch always wins. Otherwise the current branch is used when
    its role matches; anything else is ambiguous.
    """
    if explicit is not None:
        if explicit.role is not expected_role:
            raise AmbiguousTarget(
                f"Expected a {expected_role.value} branch, got a {explicit.role.value} branch"
            )
        return explicit
    if current is not None and current.role is expected_role:
        return current
    raise AmbiguousTarget(
        f"Not on a {expected_role.value} branch. Pass the {expected_role.value} branch name explicitly."
    )
