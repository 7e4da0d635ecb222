"""Shared fixtures: an in-memory git backend and fixed version sources."""

from datetime import date

import pytest

from gflow.flow import BranchNamer, Version
from gflow.flow.controller import WorkflowController
from gflow.git import BranchExists, BranchNotFound
from gflow.version import VersionCalculator, VersionUnavailable


class FakeBackend:
    """Records every mutating call as a tuple in `ops`.

    `fail` maps an op name to an exception raised (once) when that op runs.
    `tagged` maps a branch to the tags pointing at its tip.
    """

    def __init__(self, current='develop', branches=None, fail=None, latest_tag=None,
                 tags=None, tagged=None, remote_branches=None, rebasing=False):
        self.current = current
        self.branches = set(branches if branches is not None else ('master', 'develop')) | {current}
        self.fail = dict(fail or {})
        self.latest = latest_tag
        self.tagged = {ref: list(names) for ref, names in (tagged or {}).items()}
        self.tags = set(tags or ()) | {name for names in self.tagged.values() for name in names}
        self.remote_branches = set(remote_branches or ())
        self.rebasing = rebasing
        self.ops = []

    def _record(self, *op):
        self.ops.append(op)
        exc = self.fail.pop(op[0], None)
        if exc is not None:
            raise exc

    def current_branch(self):
        return self.current

    def branch_exists(self, name):
        return name in self.branches

    def latest_tag(self):
        return self.latest

    def tag_exists(self, name):
        return name in self.tags

    def tags_at(self, ref='HEAD'):
        return list(self.tagged.get(self.current if ref == 'HEAD' else ref, ()))

    def rebase_in_progress(self):
        return self.rebasing

    def switch_branch(self, name):
        self._record('switch', name)
        if name not in self.branches:
            raise BranchNotFound(f"Branch '{name}' does not exist")
        self.current = name

    def fetch_branch(self, remote, name):
        self._record('fetch', remote, name)
        if name in self.remote_branches:
            self.branches.add(name)
        return name in self.branches

    def reconcile(self, method, source):
        self._record('reconcile', self.current, source, method)

    def create_branch(self, name, start):
        self._record('create', name, start)
        if name in self.branches:
            raise BranchExists(f"Branch '{name}' already exists")
        self.branches.add(name)

    def delete_branch(self, name, force=False):
        self._record('delete', name, force)
        if name not in self.branches:
            raise BranchNotFound(f"Branch '{name}' does not exist")
        self.branches.discard(name)

    def delete_remote_branch(self, remote, name):
        self._record('delete-remote', remote, name)
        return True

    def tag(self, name, message, force=False, target=None):
        self._record('tag', name, target, force)
        self.tags.add(name)
        self.tagged.setdefault(target or self.current, []).append(name)

    def push(self, remote, refs=None, include_tags=False, force=False):
        self._record('push', tuple(refs) if refs is not None else None, include_tags, force)

    def add_all(self):
        self._record('add-all')

    def continue_rebase(self):
        self._record('continue-rebase')
        self.rebasing = False


class FixedVersion(VersionCalculator):
    def __init__(self, version=None):
        self.version = version
        self.calls = 0

    @property
    def name(self):
        return "fixed"

    def compute_version(self):
        self.calls += 1
        if self.version is None:
            raise VersionUnavailable("No version baseline")
        return Version.parse(self.version)


@pytest.fixture
def make_controller():
    """Return a factory building a controller over a FakeBackend.

    Confirmation answers are recorded in the backend's op list as ('confirm',).
    """
    def _make(current='develop', branches=None, fail=None, version='1.0.0',
              approve=True, today=date(2024, 3, 7), tags=None, tagged=None, remote_branches=None,
              rebasing=False, **kwargs):
        backend = FakeBackend(current=current, branches=branches, fail=fail, tags=tags, tagged=tagged,
                              remote_branches=remote_branches, rebasing=rebasing)

        def confirm(message):
            backend.ops.append(('confirm',))
            return approve

        controller = WorkflowController(
            backend,
            FixedVersion(version),
            namer=kwargs.pop('namer', BranchNamer()),
            confirm=confirm,
            today=lambda: today,
            **kwargs,
        )
        return controller, backend
    return _make
