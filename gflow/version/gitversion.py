"""GitVersion Calculator - delegates to the external gitversion tool"""

import os
import shutil
import subprocess

from gflow.version.base import VersionCalculator, VersionUnavailable, parse_version_output


class GitVersionCalculator(VersionCalculator):
    """Runs gitversion, which inspects history and commit messages."""

    EXECUTABLES = ('gitversion', 'dotnet-gitversion')
    DEFAULT_TIMEOUT = 120

    def __init__(self, executable: str | None = None, cwd: str | None = None):
        self.executable = executable or self._find_executable()
        self.cwd = cwd
        self.timeout = self._timeout_from_env()

        if not self.executable:
            raise VersionUnavailable(
                "gitversion not found. Install it:\n"
                "  dotnet tool install --global GitVersion.Tool"
            )

    def _timeout_from_env(self) -> int:
        try:
            return int(os.environ.get("GFLOW_VERSION_TIMEOUT", self.DEFAULT_TIMEOUT))
        except ValueError:
            return self.DEFAULT_TIMEOUT

    @property
    def name(self) -> str:
        return f"GitVersion ({os.path.basename(self.executable)})"

    def _find_executable(self) -> str | None:
        for candidate in self.EXECUTABLES:
            path = shutil.which(candidate)
            if path:
                return path
        return None

    def compute_version(self):
        try:
            result = subprocess.run(
                [self.executable, '/showvariable', 'MajorMinorPatch'],
                capture_output=True,
                text=True,
                cwd=self.cwd,
                timeout=self.timeout,
                encoding='utf-8',
                errors='replace'
            )
        except FileNotFoundError:
            raise VersionUnavailable(f"{self.executable} is not installed or not in PATH")
        except subprocess.TimeoutExpired:
            raise VersionUnavailable(f"gitversion timed out after {self.timeout}s")

        if result.returncode != 0:
            reason = (result.stderr or result.stdout).strip().splitlines()
            raise VersionUnavailable(f"gitversion failed: {reason[-1] if reason else 'unknown error'}")
        return parse_version_output(result.stdout, "gitversion")
