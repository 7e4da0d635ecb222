"""Update Strategy - which branch to sync from, and how."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from gflow.flow.branches import BranchRef, Role
from gflow.flow.errors import ConflictingStrategy, NoImplicitSource


class Method(Enum):
    REBASE = 'rebase'
    MERGE = 'merge'
    MERGE_NO_FF = 'merge --no-ff'

    @property
    def rewrites_history(self) -> bool:
        return self is Method.REBASE


# Default upstream for each ephemeral role
IMPLICIT_SOURCES = {
    Role.HOTFIX: Role.TRUNK,
    Role.FEATURE: Role.INTEGRATION,
    Role.RELEASE: Role.INTEGRATION,
}


@dataclass(frozen=True)
class ReconcilePlan:
    """One update: bring `source` into the current branch with `method`."""
    source: BranchRef
    target_role: Optional[Role]
    method: Method


def resolve_source(current_role: Optional[Role], explicit: Optional[BranchRef] = None) -> BranchRef:
    """Explicit source wins; otherwise use the role's implicit upstream.

    `current_role` is None when the current branch is not a gitflow branch.
    """
    if explicit is not None:
        return explicit
    source_role = IMPLICIT_SOURCES.get(current_role)
    if source_role is None:
        label = current_role.value if current_role else 'unrecognized'
        raise NoImplicitSource(f"No default source for a {label} branch. Name the branch to update from.")
    return BranchRef(source_role)


def resolve_method(requested: Method, no_fast_forward: bool = False) -> Method:
    if requested is Method.REBASE:
        if no_fast_forward:
            raise ConflictingStrategy("--no-ff only applies to merges, not to --rebase")
        return Method.REBASE
    if requested is Method.MERGE_NO_FF or no_fast_forward:
        return Method.MERGE_NO_FF
    return Method.MERGE


def plan_update(current_role: Optional[Role], explicit: Optional[BranchRef],
                requested: Method, no_fast_forward: bool = False) -> ReconcilePlan:
    """Validate flags and resolve the source before touching the repository."""
    method = resolve_method(requested, no_fast_forward)
    source = resolve_source(current_role, explicit)
    return ReconcilePlan(source=source, target_role=current_role, method=method)
