"""Workflow Controller - sequences git operations for each gitflow command."""

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Optional, Sequence

from gflow.flow.branches import BranchNamer, BranchRef, Role, resolve_ambiguous_target
from gflow.flow.errors import UnrecognizedBranch
from gflow.flow.strategy import Method, ReconcilePlan, plan_update, resolve_method
from gflow.flow.versions import BumpMode, Version, bump_mode_for, next_version
from gflow.git import BranchNotFound, GitError, NotFullyMerged
from gflow.output import colorize_branch, dim, print_step, print_success, print_warning
from gflow.version import VersionCalculator, VersionUnavailable


@dataclass
class Step:
    description: str
    action: Callable[[], object]


@dataclass
class CompletionPlan:
    """Ordered git operations that finish a release or hotfix branch."""
    target: BranchRef
    steps: list[Step] = field(default_factory=list)

    def add(self, description: str, action: Callable[[], object]) -> None:
        self.steps.append(Step(description, action))


def _decline(message: str) -> bool:
    return False


class WorkflowController:
    """Start/complete operations per branch role, plus generic git primitives.

    The only component with side effects. Everything it does to the
    repository goes through `backend`; the current branch is read once per
    operation and passed along.
    """

    def __init__(self, backend, calculator: Optional[VersionCalculator] = None,
                 namer: Optional[BranchNamer] = None, remote: str = "origin",
                 confirm: Callable[[str], bool] = _decline,
                 today: Callable[[], date] = date.today,
                 tag_message: str = "Version {version}",
                 delete_remote_branches: bool = False):
        self.backend = backend
        self.calculator = calculator
        self.namer = namer or BranchNamer()
        self.remote = remote
        self.confirm = confirm
        self.today = today
        self.tag_message = tag_message
        self.delete_remote_branches = delete_remote_branches

    @property
    def trunk(self) -> str:
        return self.namer.render(self.namer.trunk)

    @property
    def integration(self) -> str:
        return self.namer.render(self.namer.integration)

    # -- start --------------------------------------------------------------

    def start_feature(self, name: str) -> BranchRef:
        qualifier = self.namer.strip_role_prefix(name, Role.FEATURE)
        if not qualifier:
            raise UnrecognizedBranch("A feature name is required")
        ref = BranchRef(Role.FEATURE, qualifier)
        branch = self.namer.render(ref)

        self.backend.create_branch(branch, self.integration)
        self.backend.switch_branch(branch)
        print_success(f"Started {colorize_branch(branch)} from {colorize_branch(self.integration)}")
        return ref

    def start_hotfix(self) -> BranchRef:
        return self._start_versioned(Role.HOTFIX, self.namer.trunk, BumpMode.PATCH_INCREMENT)

    def start_release(self, major_version: bool = False, use_date: bool = False) -> BranchRef:
        mode = bump_mode_for(major_version=major_version, use_date=use_date)
        return self._start_versioned(Role.RELEASE, self.namer.integration, mode)

    def _start_versioned(self, role: Role, base: BranchRef, mode: BumpMode) -> BranchRef:
        base_name = self.namer.render(base)
        self.backend.switch_branch(base_name)

        current = self.current_version()
        version = next_version(current, mode, self.today())
        if self._is_tagged(str(version)):
            raise VersionUnavailable(
                f"Version {version} is already tagged; {self.calculator.name} is behind the released history"
            )
        ref = BranchRef(role, str(version))
        branch = self.namer.render(ref)

        self.backend.create_branch(branch, base_name)
        self.backend.switch_branch(branch)
        print_success(f"Started {colorize_branch(branch)} from {colorize_branch(base_name)} "
                      f"{dim(f'(current version {current}, {mode.value})')}")
        return ref

    def current_version(self) -> Version:
        if self.calculator is None:
            raise VersionUnavailable("No version source configured")
        return self.calculator.compute_version()

    # -- complete -----------------------------------------------------------

    def complete_hotfix(self, name: str | None = None) -> BranchRef:
        target = self._resolve_target(name, Role.HOTFIX)
        source = self.namer.render(target)
        version = self._tag_name(target.qualifier)
        trunk, integration = self.trunk, self.integration
        self._require_source(source, version)

        plan = CompletionPlan(target)
        plan.add(f"Switch to {trunk}", lambda: self.backend.switch_branch(trunk))
        plan.add(f"Merge {source} into {trunk} (no fast-forward)",
                 lambda: self._merge_from(source, Method.MERGE_NO_FF))
        plan.add(f"Switch to {integration}", lambda: self.backend.switch_branch(integration))
        plan.add(f"Merge {source} into {integration} (no fast-forward)",
                 lambda: self._merge_from(source, Method.MERGE_NO_FF))
        plan.add(f"Delete {source}", lambda: self._cleanup(source))
        plan.add(f"Tag {trunk} as {version}", lambda: self._tag(version, trunk))
        plan.add(f"Push {trunk} and {integration} with tags",
                 lambda: self._push([trunk, integration], include_tags=True))
        self._execute(plan)
        print_success(f"Completed {colorize_branch(source)}")
        return target

    def complete_release(self, name: str | None = None) -> BranchRef:
        target = self._resolve_target(name, Role.RELEASE)
        source = self.namer.render(target)
        version = self._tag_name(target.qualifier)
        trunk, integration = self.trunk, self.integration
        self._require_source(source, version)

        plan = CompletionPlan(target)
        plan.add(f"Switch to {trunk}", lambda: self.backend.switch_branch(trunk))
        plan.add(f"Merge {source} into {trunk} (no fast-forward)",
                 lambda: self._merge_from(source, Method.MERGE_NO_FF))
        plan.add(f"Tag {trunk} as {version}", lambda: self._tag(version, trunk))
        plan.add(f"Switch to {integration}", lambda: self.backend.switch_branch(integration))
        plan.add(f"Merge {trunk} into {integration}", lambda: self._merge_from(trunk, Method.MERGE))
        plan.add(f"Delete {source}", lambda: self._cleanup(source))
        plan.add("Push all branches with tags", lambda: self._push(None, include_tags=True))
        self._execute(plan)
        print_success(f"Completed {colorize_branch(source)}")
        return target

    def _resolve_target(self, name: str | None, role: Role) -> BranchRef:
        """Explicit name (with or without its prefix), else the current branch."""
        explicit = None
        if name:
            qualifier = self.namer.strip_role_prefix(name, role)
            if not qualifier:
                raise UnrecognizedBranch(f"'{name}' is missing a version")
            explicit = self.namer.parse(self.namer.render(BranchRef(role, qualifier)))
        return resolve_ambiguous_target(explicit, self._current_ref(), role)

    def _require_source(self, source: str, version: str) -> None:
        """Fail before the first step unless `source` exists or this is a re-run.

        A re-run is recognized by the version tag an earlier run left on trunk's tip.
        """
        if self.backend.branch_exists(source):
            return
        self.backend.fetch_branch(self.remote, source)
        if self.backend.branch_exists(source) or self._is_tagged(version, self.trunk):
            return
        raise BranchNotFound(f"Branch '{source}' does not exist locally or on {self.remote}")

    def _execute(self, plan: CompletionPlan) -> None:
        """Run steps in order; the first failure stops the plan."""
        total = len(plan.steps)
        for index, step in enumerate(plan.steps, 1):
            print_step(index, total, step.description)
            step.action()

    def _merge_from(self, source: str, method: Method) -> None:
        self.backend.fetch_branch(self.remote, source)
        if not self.backend.branch_exists(source):
            # Re-run after an earlier completion already merged and deleted it
            print_warning(f"{source} no longer exists, skipping merge")
            return
        self.backend.reconcile(method, source)

    def _cleanup(self, branch: str) -> None:
        try:
            self.backend.delete_branch(branch)
        except NotFullyMerged:
            print_warning(f"{branch} is not fully merged, deleting anyway")
            self.backend.delete_branch(branch, force=True)
        except BranchNotFound:
            print_warning(f"{branch} was already deleted")
        if self.delete_remote_branches:
            if not self.backend.delete_remote_branch(self.remote, branch):
                print_warning(f"{branch} does not exist on {self.remote}")

    # -- generic primitives -------------------------------------------------

    def update(self, source: str | None = None, rebase: bool = False,
               no_fast_forward: bool = False) -> ReconcilePlan:
        """Bring `source` (or the role's default upstream) into the current branch."""
        requested = Method.REBASE if rebase else Method.MERGE
        resolve_method(requested, no_fast_forward)
        explicit = self.namer.parse(source) if source else None

        current_name = self.backend.current_branch()
        current = self._parse_or_none(current_name)
        plan = plan_update(current.role if current else None, explicit, requested, no_fast_forward)
        source_name = self.namer.render(plan.source)

        self.backend.fetch_branch(self.remote, source_name)
        self.backend.reconcile(plan.method, source_name)
        print_success(f"Updated {colorize_branch(current_name)} from {colorize_branch(source_name)} "
                      f"{dim(f'({plan.method.value})')}")

        if plan.method.rewrites_history:
            self._push([current_name], force=True)
        return plan

    def resume_rebase(self) -> None:
        """Stage everything and continue a rebase stopped on conflicts."""
        if not self.backend.rebase_in_progress():
            raise GitError("No rebase in progress")
        self.backend.add_all()
        self.backend.continue_rebase()
        current_name = self.backend.current_branch()
        print_success(f"Rebase of {colorize_branch(current_name)} completed")
        self._push([current_name], force=True)

    def tag(self, version: str) -> str:
        name = self._tag_name(version)
        self._tag(name)
        return name

    def delete_branch(self, name: str, force: bool = False) -> None:
        self.backend.delete_branch(name, force=force)
        print_success(f"Deleted {colorize_branch(name)}")

    def switch_to(self, name: str) -> None:
        self.backend.switch_branch(name)
        print_success(f"Switched to {colorize_branch(name)}")

    # -- helpers ------------------------------------------------------------

    def _current_ref(self) -> Optional[BranchRef]:
        return self._parse_or_none(self.backend.current_branch())

    def _parse_or_none(self, name: str) -> Optional[BranchRef]:
        try:
            return self.namer.parse(name)
        except UnrecognizedBranch:
            return None

    def _tag_name(self, version: str) -> str:
        """Tag text for a version qualifier, normalized when versions are strict."""
        qualifier = self.namer.validate_version(version.strip())
        if self.namer.naming.strict_versions:
            return str(Version.parse(qualifier))
        return qualifier

    def _is_tagged(self, version: str, ref: str | None = None) -> bool:
        """Whether `version` (or v`version`) is tagged anywhere, or exactly at `ref`."""
        names = (version, f"v{version}")
        if ref is None:
            return any(self.backend.tag_exists(name) for name in names)
        tags = self.backend.tags_at(ref)
        return any(name in tags for name in names)

    def _tag(self, name: str, target: str | None = None) -> None:
        # Forced so a re-run completion overwrites its own tag
        self.backend.tag(name, self.tag_message.format(version=name), force=True, target=target)
        print_success(f"Tagged {colorize_branch(target) if target else 'HEAD'} as {name}")

    def _push(self, refs: Optional[Sequence[str]], include_tags: bool = False, force: bool = False) -> bool:
        targets = ', '.join(refs) if refs else 'all branches'
        action = "Force-push" if force else "Push"
        suffix = " with tags" if include_tags else ""
        if not self.confirm(f"{action} {targets}{suffix} to {self.remote}?"):
            print_warning(f"Push skipped. Push manually when ready: {self._push_hint(refs, include_tags, force)}")
            return False
        self.backend.push(self.remote, refs, include_tags=include_tags, force=force)
        print_success(f"Pushed {targets}{suffix}")
        return True

    def _push_hint(self, refs, include_tags, force) -> str:
        parts = ['git', 'push', self.remote]
        parts.extend(refs if refs else ['--all'])
        if force:
            parts.append('--force')
        if include_tags:
            parts.append('--tags' if refs else f'&& git push {self.remote} --tags')
        return ' '.join(parts)
