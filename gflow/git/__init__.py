"""Git Operations Package"""

from gflow.git.backend import (
    GitBackend, GitResult, GitError, BranchNotFound, BranchExists,
    NotFullyMerged, NetworkError, PushRejected, MergeConflict,
)

__all__ = [
    "GitBackend",
    "GitResult",
    "GitError",
    "BranchNotFound",
    "BranchExists",
    "NotFullyMerged",
    "NetworkError",
    "PushRejected",
    "MergeConflict",
]
