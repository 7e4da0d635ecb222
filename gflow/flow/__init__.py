"""Workflow Decision Package

Pure branching/versioning rules. The side-effecting controller lives in
gflow.flow.controller and is imported from there directly.
"""

from gflow.flow.errors import FlowError, UnrecognizedBranch, AmbiguousTarget, ConflictingStrategy, NoImplicitSource
from gflow.flow.versions import Version, BumpMode, bump_mode_for, next_version
from gflow.flow.branches import Role, BranchRef, BranchNaming, BranchNamer, resolve_ambiguous_target
from gflow.flow.strategy import Method, ReconcilePlan, resolve_source, resolve_method, plan_update

__all__ = [
    "FlowError",
    "UnrecognizedBranch",
    "AmbiguousTarget",
    "ConflictingStrategy",
    "NoImplicitSource",
    "Version",
    "BumpMode",
    "bump_mode_for",
    "next_version",
    "Role",
    "BranchRef",
    "BranchNaming",
    "BranchNamer",
    "resolve_ambiguous_target",
    "Method",
    "ReconcilePlan",
    "resolve_source",
    "resolve_method",
    "plan_update",
]
