"""covguard - coverage comments and merge-gating status checks for pull requests."""

__version__ = "0.1.0"
