"""Git Backend - run git and classify its failures."""

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from gflow.flow.strategy import Method


class GitError(Exception):
    """Raised when git operations fail."""
    pass


class BranchNotFound(GitError):
    pass


class BranchExists(GitError):
    pass


class NotFullyMerged(GitError):
    pass


class NetworkError(GitError):
    pass


class PushRejected(GitError):
    pass


class MergeConflict(GitError):
    """Reconciliation stopped on conflicts. Working tree is left as git left it."""

    def __init__(self, message: str, details: str = "", rebasing: bool = False):
        super().__init__(message)
        self.details = details
        self.rebasing = rebasing


@dataclass
class GitResult:
    """Outcome of a single git invocation."""
    args: tuple
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return '\n'.join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)

    def mentions(self, *needles: str) -> bool:
        text = self.output.lower()
        return any(needle in text for needle in needles)


NETWORK_MARKERS = (
    'could not read from remote',
    'could not resolve host',
    'connection refused',
    'connection timed out',
    'unable to access',
    'does not appear to be a git repository',
)

MERGE_ARGS = {
    Method.REBASE: ('rebase',),
    Method.MERGE: ('merge', '--no-edit'),
    Method.MERGE_NO_FF: ('merge', '--no-ff', '--no-edit'),
}


class GitBackend:
    """Thin outcome-only wrapper over the git executable.

    Every command is passed to `echo` before it runs so callers can show
    what was issued separately from what happened.
    """

    def __init__(self, echo: Optional[Callable[[str], None]] = None, cwd: str | None = None):
        self.echo = echo
        self.cwd = cwd
        self._verify_git_available()
        self._verify_in_repo()

    def _exec(self, *args: str, quiet: bool = False) -> GitResult:
        """Run git and return the result without raising on a non-zero exit."""
        if self.echo and not quiet:
            self.echo(' '.join(('git',) + args))
        try:
            proc = subprocess.run(
                ['git', *args],
                capture_output=True,
                text=True,
                cwd=self.cwd,
                encoding='utf-8',
                errors='replace'
            )
        except FileNotFoundError:
            raise GitError("Git is not installed or not in PATH")
        return GitResult(args=args, returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)

    def _run_git(self, *args: str, quiet: bool = False) -> str:
        """Run a git command and return stdout."""
        result = self._exec(*args, quiet=quiet)
        if not result.ok:
            raise GitError(f"Git command failed: git {' '.join(args)}\n{result.output}")
        return result.stdout

    def _verify_git_available(self) -> None:
        """Fail fast if git isn't available."""
        try:
            self._run_git('--version', quiet=True)
        except GitError:
            raise GitError("Git is not installed or not in PATH")

    def _verify_in_repo(self) -> None:
        """Fail fast if we're not in a git repository."""
        try:
            self._run_git('rev-parse', '--git-dir', quiet=True)
        except GitError:
            raise GitError("Not inside a git repository")

    # -- queries ------------------------------------------------------------

    def current_branch(self) -> str:
        name = self._run_git('rev-parse', '--abbrev-ref', 'HEAD', quiet=True).strip()
        if name == 'HEAD':
            raise GitError("HEAD is detached; check out a branch first")
        return name

    def branch_exists(self, name: str) -> bool:
        return self._exec('rev-parse', '--verify', '--quiet', f'refs/heads/{name}', quiet=True).ok

    def has_upstream(self, name: str) -> bool:
        return self._exec('rev-parse', '--abbrev-ref', f'{name}@{{upstream}}', quiet=True).ok

    def latest_tag(self) -> str | None:
        """Most recent tag reachable from HEAD, or None when there is none."""
        result = self._exec('describe', '--tags', '--abbrev=0', quiet=True)
        if not result.ok:
            return None
        return result.stdout.strip() or None

    def tag_exists(self, name: str) -> bool:
        return self._exec('rev-parse', '--verify', '--quiet', f'refs/tags/{name}', quiet=True).ok

    def tags_at(self, ref: str = 'HEAD') -> list[str]:
        """Tags pointing exactly at `ref`."""
        return self._run_git('tag', '--points-at', ref, quiet=True).split()

    def rebase_in_progress(self) -> bool:
        base = Path(self.cwd or '.')
        for marker in ('rebase-merge', 'rebase-apply'):
            path = self._run_git('rev-parse', '--git-path', marker, quiet=True).strip()
            if path and (base / path).is_dir():
                return True
        return False

    # -- mutations ----------------------------------------------------------

    def switch_branch(self, name: str) -> None:
        """Check out `name`, then fast-forward it from its upstream if it has one."""
        result = self._exec('checkout', name)
        if not result.ok:
            if result.mentions('did not match any', 'invalid reference', 'not a valid'):
                raise BranchNotFound(f"Branch '{name}' does not exist")
            raise GitError(f"Could not switch to '{name}':\n{result.output}")
        if self.has_upstream(name):
            pulled = self._exec('pull', '--ff-only')
            if not pulled.ok:
                self._raise_remote_error(pulled, f"Could not fast-forward '{name}'")

    def fetch_branch(self, remote: str, name: str) -> bool:
        """Update local `name` from `remote`. Returns False when nothing was fetched.

        A branch missing on the remote, or a local branch that is ahead of it,
        is not an error: the local branch is used as-is.
        """
        result = self._exec('fetch', remote, f'{name}:{name}')
        if result.ok:
            return True
        if result.mentions("couldn't find remote ref", 'non-fast-forward', 'refusing to fetch into'):
            return False
        self._raise_remote_error(result, f"Could not fetch '{name}' from {remote}")

    def reconcile(self, method: Method, source: str) -> None:
        result = self._exec(*MERGE_ARGS[method], source)
        if result.ok:
            return
        if result.mentions('conflict', 'could not apply'):
            raise MergeConflict(
                f"{method.value} of '{source}' stopped on conflicts",
                details=result.output,
                rebasing=method is Method.REBASE,
            )
        if result.mentions('not something we can merge', 'invalid upstream'):
            raise BranchNotFound(f"Branch '{source}' does not exist")
        raise GitError(f"git {' '.join(MERGE_ARGS[method])} {source} failed:\n{result.output}")

    def create_branch(self, name: str, start: str) -> None:
        result = self._exec('branch', name, start)
        if result.ok:
            return
        if result.mentions('already exists'):
            raise BranchExists(f"Branch '{name}' already exists")
        if result.mentions('not a valid object name'):
            raise BranchNotFound(f"Branch '{start}' does not exist")
        raise GitError(f"Could not create '{name}':\n{result.output}")

    def delete_branch(self, name: str, force: bool = False) -> None:
        result = self._exec('branch', '-D' if force else '-d', name)
        if result.ok:
            return
        if result.mentions('not fully merged'):
            raise NotFullyMerged(f"Branch '{name}' is not fully merged")
        if result.mentions('not found'):
            raise BranchNotFound(f"Branch '{name}' does not exist")
        raise GitError(f"Could not delete '{name}':\n{result.output}")

    def delete_remote_branch(self, remote: str, name: str) -> bool:
        result = self._exec('push', remote, '--delete', name)
        if result.ok:
            return True
        if result.mentions('remote ref does not exist'):
            return False
        self._raise_remote_error(result, f"Could not delete '{name}' on {remote}")

    def tag(self, name: str, message: str, force: bool = False, target: str | None = None) -> None:
        """Annotated tag on `target` (HEAD when None)."""
        args = ['tag', '-a', name, '-m', message]
        if force:
            args.append('-f')
        if target:
            args.append(target)
        self._run_git(*args)

    def push(self, remote: str, refs: Sequence[str] | None = None,
             include_tags: bool = False, force: bool = False) -> None:
        """Push `refs` (every branch when None), optionally with tags."""
        args = ['push', remote]
        args.extend(refs if refs is not None else ['--all'])
        if force:
            args.append('--force')
        if include_tags and refs is not None:
            args.append('--tags')
        commands = [args]
        if include_tags and refs is None:
            # --all and --tags cannot be combined
            commands.append(['push', remote, '--tags'])
        for command in commands:
            result = self._exec(*command)
            if not result.ok:
                self._raise_remote_error(result, f"Push to {remote} failed")

    def add_all(self) -> None:
        self._run_git('add', '-A')

    def continue_rebase(self) -> None:
        result = self._exec('-c', 'core.editor=true', 'rebase', '--continue')
        if result.ok:
            return
        if result.mentions('no rebase in progress'):
            raise GitError("No rebase in progress")
        raise MergeConflict("Rebase stopped on conflicts", details=result.output, rebasing=True)

    def _raise_remote_error(self, result: GitResult, message: str) -> None:
        if result.mentions('rejected', 'failed to push'):
            raise PushRejected(f"{message}:\n{result.output}")
        if result.mentions(*NETWORK_MARKERS):
            raise NetworkError(f"{message}:\n{result.output}")
        raise GitError(f"{message}:\n{result.output}")
