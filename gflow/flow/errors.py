"""Workflow Errors - raised before any repository mutation."""


class FlowError(Exception):
    """Base for workflow decision errors."""
    pass


class UnrecognizedBranch(FlowError):
    """Branch name has an unknown role prefix or a malformed qualifier."""
    pass


class AmbiguousTarget(FlowError):
    """No branch given and the current branch has the wrong role."""
    pass


class ConflictingStrategy(FlowError):
    """Incompatible reconciliation flags were requested."""
    pass


class NoImplicitSource(FlowError):
    """Current branch has no default source to update from."""
    pass
