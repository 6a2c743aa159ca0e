"""gitpatch: apply git-style unified diffs without an external patch binary."""

__version__ = "0.1.0"

__all__ = ["__version__"]
