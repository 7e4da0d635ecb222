"""
gflow

Branch-based release workflow (gitflow) on top of plain git.
"""

__version__ = "1.0.0"

# Default branch layout - single source of truth
# Used by: config (defaults), flow.branches (naming)
DEFAULT_TRUNK = 'master'
DEFAULT_INTEGRATION = 'develop'

# Note on versions: release/hotfix qualifiers are Major.Minor.Patch
# Example: release/2.1.0, hotfix/1.4.3
